"""
EPUB generator.

Primary: pandoc → epub with TOC depth, stylesheet and cover image.
Fallback: plain epub with title/author/lang metadata and a short TOC.
"""

from bookpress.builders.base import BaseGenerator


class EpubGenerator(BaseGenerator):
    format_key = "epub"
    format_name = "EPUB"
    extension = ".epub"
    writer = "epub"

    def primary_args(self):
        epub = self.settings

        css_path = self.resolve("stylesheet", "css")
        cover_path = self.book.cover
        if cover_path:
            self.log(f"  Cover: {cover_path}")
        else:
            print("  Warning: No cover image found")

        cmd = self.base_command([css_path, cover_path])
        cmd.extend(self.toc_args(epub))

        if css_path:
            cmd.append(f"--css={css_path}")
        else:
            print("  Warning: No epub CSS found")

        if cover_path:
            cmd.append(f"--epub-cover-image={cover_path}")

        return cmd
