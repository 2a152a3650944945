"""
PDF generator.

Primary: pandoc → LaTeX engine with paper size, margins, font size,
line height and the resolved LaTeX template.
Fallback: template-free LaTeX build with title/author/lang metadata.
"""

from bookpress.builders.base import BaseGenerator


class PdfGenerator(BaseGenerator):
    format_key = "pdf"
    format_name = "PDF"
    extension = ".pdf"
    writer = "latex"

    @property
    def engine(self):
        return self.settings.get("engine") or "xelatex"

    def primary_args(self):
        pdf = self.settings
        template = self.resolve("template", "template")

        cmd = self.base_command([template])
        cmd.append(f"--pdf-engine={self.engine}")

        if pdf.get("paperSize"):
            cmd.append(f"--variable=papersize:{pdf['paperSize']}")
        for side in ["top", "right", "bottom", "left"]:
            margin = pdf.get(f"margin{side.capitalize()}")
            if margin:
                cmd.append(f"--variable=geometry:{side}={margin}")
        if pdf.get("fontSize"):
            cmd.append(f"--variable=fontsize:{pdf['fontSize']}")
        if pdf.get("lineHeight"):
            cmd.append(f"--variable=linestretch:{pdf['lineHeight']}")

        if template:
            cmd.append(f"--template={template}")

        cmd.extend(self.toc_args(pdf))
        return cmd

    def fallback_args(self):
        cmd = super().fallback_args()
        cmd.append(f"--pdf-engine={self.engine}")
        return cmd
