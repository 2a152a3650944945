"""
DOCX generator.

Primary: pandoc → docx using a reference document for styling.
Fallback: plain docx with metadata and a short TOC.
"""

from bookpress.builders.base import BaseGenerator


class DocxGenerator(BaseGenerator):
    format_key = "docx"
    format_name = "DOCX"
    extension = ".docx"
    writer = "docx"

    def primary_args(self):
        docx = self.settings

        # Reference document controls fonts, margins, headers
        ref_path = self.resolve("reference", "referenceDoc")

        cmd = self.base_command([ref_path])
        cmd.extend(self.toc_args(docx))
        if ref_path:
            cmd.append(f"--reference-doc={ref_path}")

        return cmd
