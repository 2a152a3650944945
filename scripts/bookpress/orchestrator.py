"""
Build orchestration: languages × formats.

For each language the images are prepared and the fragments assembled
once; every enabled format then gets its own generator. A failure in one
(language, format) pair is recorded and never stops the others.
"""

import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from bookpress.assemble import assemble_book
from bookpress.builders import GENERATORS
from bookpress.builders.base import DEFAULT_TIMEOUT
from bookpress.config import FORMATS, load_config
from bookpress.images import prepare_images
from bookpress.resolve import CONFIG_NAME, find_project_root
from bookpress.results import BuildReport, BuildResult, FAILED


# Formats that read another format's output run in a second wave
DEPENDENT_FORMATS = {"mobi"}


@dataclass
class BuildOptions:
    project_root: str = None
    config_path: str = None
    languages: list = field(default_factory=list)
    all_languages: bool = False
    skip_formats: set = field(default_factory=set)
    verbose: bool = False
    jobs: int = 1
    timeout: int = DEFAULT_TIMEOUT
    json_report: bool = False

    def resolved_root(self):
        if self.project_root:
            return os.path.abspath(self.project_root)
        if self.config_path:
            return os.path.dirname(os.path.abspath(self.config_path))
        return os.path.abspath(find_project_root())

    def resolved_config_path(self):
        return self.config_path or os.path.join(self.resolved_root(), CONFIG_NAME)


def build_dir(project_root, language=None):
    path = os.path.join(project_root, "build")
    return os.path.join(path, language) if language else path


def select_languages(config, options):
    """Explicit languages, all configured ones, or the first configured."""
    if options.languages:
        for lang in options.languages:
            if lang not in config.languages:
                print(f"  Warning: language '{lang}' is not in the configured languages")
        return list(dict.fromkeys(options.languages))
    if options.all_languages:
        return list(config.languages)
    return [config.languages[0]]


def select_formats(config, options):
    skip = {fmt.lower() for fmt in options.skip_formats}
    unknown = skip - set(FORMATS)
    for fmt in sorted(unknown):
        print(f"  Warning: unknown format to skip: {fmt}")
    return [fmt for fmt in FORMATS if config.enabled(fmt) and fmt not in skip]


def prepare_language(config, project_root, language, options):
    """Images first, then assembly. Must finish before any generator runs."""
    print(f"\n  Preparing [{language}]")
    output_dir = build_dir(project_root, language)
    prepare_images(project_root, language, output_dir, verbose=options.verbose)
    return assemble_book(config, project_root, language, output_dir, verbose=options.verbose)


def run_task(config, project_root, book, fmt, options):
    """Run one generator. Any exception becomes a failed BuildResult."""
    generator_cls = GENERATORS[fmt]
    try:
        generator = generator_cls(
            config,
            project_root,
            book,
            build_dir(project_root, book.language),
            verbose=options.verbose,
            timeout=options.timeout,
        )
        return generator.build()
    except Exception as e:
        print(f"  ✗ {fmt} [{book.language}] crashed: {e}")
        return BuildResult(
            language=book.language,
            format=fmt,
            status=FAILED,
            diagnostic=f"{type(e).__name__}: {e}",
        )


def _run_wave(tasks, config, project_root, options):
    if options.jobs <= 1 or len(tasks) <= 1:
        return [run_task(config, project_root, book, fmt, options) for book, fmt in tasks]

    with ThreadPoolExecutor(max_workers=options.jobs) as pool:
        futures = [
            pool.submit(run_task, config, project_root, book, fmt, options)
            for book, fmt in tasks
        ]
        return [f.result() for f in futures]


def build_book(options, config=None):
    """
    Build every selected (language, format) pair.

    Returns a BuildReport; report.exit_code is 0 if anything succeeded.
    """
    project_root = options.resolved_root()
    if config is None:
        config = load_config(options.resolved_config_path(), project_root)

    config.summary()
    languages = select_languages(config, options)
    formats = select_formats(config, options)
    print(f"  Build:     {', '.join(languages)} → {', '.join(formats) or '(no formats)'}")

    report = BuildReport()
    books = []
    for lang in languages:
        try:
            books.append(prepare_language(config, project_root, lang, options))
        except Exception as e:
            print(f"  ✗ [{lang}] preparation failed: {e}")
            for fmt in formats:
                report.add(BuildResult(
                    language=lang,
                    format=fmt,
                    status=FAILED,
                    diagnostic=f"preparation failed: {type(e).__name__}: {e}",
                ))

    first = [(book, fmt) for book in books for fmt in formats if fmt not in DEPENDENT_FORMATS]
    second = [(book, fmt) for book in books for fmt in formats if fmt in DEPENDENT_FORMATS]

    for wave in (first, second):
        for result in _run_wave(wave, config, project_root, options):
            report.add(result)

    # Restore language-major order for the summary
    order = {(lang, fmt): i for i, (lang, fmt) in enumerate(
        (lang, fmt) for lang in languages for fmt in formats
    )}
    report.results.sort(key=lambda r: order.get((r.language, r.format), len(order)))

    report.summary()
    if options.json_report:
        path = report.write_json(os.path.join(build_dir(project_root), "build-report.json"))
        print(f"  Report: {path}")
    return report
