"""
MOBI (Kindle) generator.

Pipeline:
    1. Make sure <prefix>.epub exists (built through EpubGenerator if not)
    2. kindlegen epub → mobi
    3. calibre ebook-convert epub → mobi
    4. pandoc -t epub3 written to the .mobi path (degraded substitute)

Tier 4 does not produce a real MOBI file: it is an EPUB 3 container
carrying the .mobi extension. The result is marked `fallback` and the
diagnostic says so explicitly.
"""

import os

from bookpress.builders.base import BaseGenerator, ConversionFailure, Strategy
from bookpress.builders.epub import EpubGenerator
from bookpress.resolve import is_file
from bookpress.results import FAILED


SUBSTITUTE_NOTE = (
    "kindlegen and ebook-convert unavailable or failed; "
    "wrote an EPUB 3 container with a .mobi extension, not a valid MOBI file"
)


class MobiGenerator(BaseGenerator):
    format_key = "mobi"
    format_name = "MOBI"
    extension = ".mobi"
    writer = "epub3"

    @property
    def epub_file(self):
        return os.path.join(self.output_dir, f"{self.config.prefix}.epub")

    def ensure_epub(self):
        """Build the epub if missing. Returns its BuildResult, or None if it existed."""
        if is_file(self.epub_file):
            self.log(f"  Using existing {self.epub_file}")
            return None
        print("  No epub yet, building one for conversion...")
        epub = EpubGenerator(
            self.config, self.project_root, self.book, self.output_dir,
            verbose=self.verbose, timeout=self.timeout,
        )
        return epub.build()

    # ── Tiers ──────────────────────────────────────────────

    def primary_args(self):
        # kindlegen writes next to its input, named by -o
        return ["kindlegen", self.epub_file, "-o", os.path.basename(self.output_file)]

    def run_kindlegen(self, cmd):
        # Exit code 1 means "built with warnings"; trust the output file
        try:
            self.exec_cmd(cmd, "kindlegen")
        except ConversionFailure:
            if not is_file(self.output_file):
                raise
        self.check_output()

    def calibre_args(self):
        return ["ebook-convert", self.epub_file, self.output_file]

    def run_calibre(self, cmd):
        self.exec_cmd(cmd, "ebook-convert")
        self.check_output()

    def substitute_args(self):
        print("  Warning: falling back to pandoc epub3 output with a .mobi extension")
        return self.fallback_args()

    def check_output(self):
        if not is_file(self.output_file):
            raise ConversionFailure(f"expected output {self.output_file} was not created")

    def strategies(self):
        table = [
            Strategy("kindlegen", self.primary_args, self.run_kindlegen),
            Strategy("ebook-convert", self.calibre_args, self.run_calibre),
        ]
        if self.fallback_enabled:
            table.append(Strategy("pandoc-epub3", self.substitute_args, fallback=True))
        return table

    def success_note(self, strategy):
        if strategy.fallback:
            print(f"  Warning: {SUBSTITUTE_NOTE}")
            return SUBSTITUTE_NOTE
        return ""

    def build(self):
        epub_result = self.ensure_epub()
        if epub_result is not None and not epub_result.ok:
            self.header()
            print("  ✗ Could not produce the epub needed for MOBI conversion")
            if is_file(self.output_file):
                os.remove(self.output_file)
            return self.result(
                FAILED,
                diagnostic="epub prerequisite failed: " + (epub_result.diagnostic or "unknown error"),
            )
        return super().build()
