from bookpress.builders.pdf import PdfGenerator
from bookpress.builders.epub import EpubGenerator
from bookpress.builders.html import HtmlGenerator
from bookpress.builders.docx import DocxGenerator
from bookpress.builders.mobi import MobiGenerator

GENERATORS = {
    "pdf": PdfGenerator,
    "epub": EpubGenerator,
    "html": HtmlGenerator,
    "docx": DocxGenerator,
    "mobi": MobiGenerator,
}
