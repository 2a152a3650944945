"""
bookpress: multi-language markdown book build pipeline.

Public API:
    from bookpress.config import load_config, normalize_config, BookConfig
    from bookpress.resolve import resolve_image, resolve_template, find_cover
    from bookpress.assemble import assemble_book, parse_metadata_header
    from bookpress.builders import GENERATORS
    from bookpress.orchestrator import BuildOptions, build_book
    from bookpress.results import BuildResult, BuildReport
"""

__version__ = "0.3.0"
