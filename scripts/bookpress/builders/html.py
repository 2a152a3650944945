"""
HTML generator.

Primary: single-page HTML with the resolved template and stylesheet,
optional TOC, section containers and embedded resources.
Fallback: standalone HTML with metadata and a short TOC.
"""

from bookpress.builders.base import BaseGenerator


class HtmlGenerator(BaseGenerator):
    format_key = "html"
    format_name = "HTML"
    extension = ".html"
    writer = "html"

    def primary_args(self):
        html = self.settings

        template = self.resolve("template", "template")
        css_path = self.resolve("stylesheet", "css")

        cmd = self.base_command([template, css_path])
        cmd.extend(["-t", "html5"])

        if template:
            cmd.append(f"--template={template}")
        if css_path:
            cmd.append(f"--css={css_path}")

        cmd.extend(self.toc_args(html))

        if html.get("sectionDivs"):
            cmd.append("--section-divs")
        if html.get("selfContained"):
            cmd.append("--embed-resources")

        return cmd
