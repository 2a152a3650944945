#!/usr/bin/env python3
"""
Build script for a multi-language markdown book project.

Assembles book/<lang>/ fragments into build/<lang>/book.md and converts
it to PDF, EPUB, HTML, DOCX and MOBI through pandoc (kindlegen or calibre
for MOBI), falling back to simpler invocations when a conversion fails.

Usage:
    python build.py                          Build the first configured language
    python build.py build --all-languages    Build every configured language
    python build.py --lang es --skip pdf     Spanish, everything but PDF
    python build.py info                     Show config and built files
    python build.py clean                    Remove generated files
    python build.py validate                 Check config, tools, and layout

Requires: pandoc, PyYAML
Optional: xelatex (PDF), kindlegen or calibre (MOBI)
"""

import os
import sys

# Ensure bookpress is importable from the scripts/ directory
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from bookpress.cli import run


if __name__ == "__main__":
    run()
