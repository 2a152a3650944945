"""
Content assembly: gather a language's markdown fragments in a stable
order, strip per-fragment front matter, and write one document with a
single metadata header to build/<lang>/book.md.

Structure detection, first match wins:
    marker       book/<lang>/order.txt lists fragments explicitly
    chapters     chapter-01/, 02-arrival/ ... subdirectories
    flat         top-level *.md files
    placeholder  nothing found; a title page is synthesized in memory
"""

import glob
import os
import re
from dataclasses import dataclass, field

import yaml

from bookpress.resolve import find_cover, natural_sort_key


ORDER_FILE = "order.txt"
APPENDICES_DIR = "appendices"
GLOSSARY_NAMES = ["glossary.md", "glossary.markdown"]
PAGE_BREAK = '<div style="page-break-after: always;"></div>'

CHAPTER_DIR_RE = re.compile(r"^(chapter-\d+.*|\d+-.+)$", re.IGNORECASE)
INTRO_RE = re.compile(r"^(\d+[-_])?intro(duction)?$", re.IGNORECASE)
FRONT_MATTER_RE = re.compile(
    r"\A\ufeff?\s*---[ \t]*\n(?:.*?\n)??(?:---|\.\.\.)[ \t]*(?:\n|\Z)", re.DOTALL
)

FRONT = "front"
CHAPTER = "chapter"
APPENDIX = "appendix"
GLOSSARY = "glossary"


@dataclass(frozen=True)
class Section:
    source: str
    body: str
    kind: str = CHAPTER
    # Page break emitted after this section (end of a chapter directory)
    break_after: bool = False


@dataclass
class AssembledBook:
    language: str
    strategy: str
    sections: list
    path: str = None
    cover: str = None
    fragment_dirs: list = field(default_factory=list)

    @property
    def placeholder(self):
        return self.strategy == "placeholder"


# ── Fragment helpers ──────────────────────────────────────────────────


def strip_front_matter(text):
    """Remove a leading `---` ... `---` metadata block and blank lines."""
    text = FRONT_MATTER_RE.sub("", text, count=1)
    return text.lstrip("\n")


def read_fragment(path):
    with open(path, encoding="utf-8") as f:
        return strip_front_matter(f.read())


def _markdown_files(directory, exclude=()):
    files = [
        path for path in glob.glob(os.path.join(directory, "*.md"))
        if os.path.isfile(path) and os.path.basename(path).lower() not in exclude
    ]
    files.sort(key=lambda p: natural_sort_key(os.path.basename(p)))
    return files


def _is_intro(path):
    stem = os.path.splitext(os.path.basename(path))[0]
    return bool(INTRO_RE.match(stem))


def chapter_dirs(lang_dir):
    if not os.path.isdir(lang_dir):
        return []
    dirs = [
        os.path.join(lang_dir, entry)
        for entry in os.listdir(lang_dir)
        if CHAPTER_DIR_RE.match(entry) and os.path.isdir(os.path.join(lang_dir, entry))
    ]
    dirs.sort(key=lambda p: natural_sort_key(os.path.basename(p)))
    return dirs


def chapter_files(chapter_dir):
    """Fragments of a chapter, introduction first, then natural order."""
    files = _markdown_files(chapter_dir)
    intros = [f for f in files if _is_intro(f)]
    return intros + [f for f in files if f not in intros]


def read_order_file(lang_dir):
    """Parse order.txt into absolute fragment paths. Missing ones are skipped."""
    order_path = os.path.join(lang_dir, ORDER_FILE)
    paths = []
    with open(order_path, encoding="utf-8") as f:
        for line in f:
            entry = line.strip()
            if not entry or entry.startswith("#"):
                continue
            path = os.path.normpath(os.path.join(lang_dir, entry))
            if not os.path.isfile(path):
                print(f"  Warning: {ORDER_FILE} lists missing fragment '{entry}'")
                continue
            paths.append(path)
    return paths


def detect_structure(lang_dir):
    """Return the structure-detection strategy name for a language directory."""
    if os.path.isfile(os.path.join(lang_dir, ORDER_FILE)):
        return "marker"
    if chapter_dirs(lang_dir):
        return "chapters"
    if _markdown_files(lang_dir, exclude=GLOSSARY_NAMES):
        return "flat"
    return "placeholder"


def _relative(path, lang_dir):
    return os.path.relpath(path, lang_dir).replace(os.sep, "/")


# ── Manifest ──────────────────────────────────────────────────────────


def placeholder_section(config):
    lines = [f"# {config.title}", ""]
    if config.subtitle:
        lines.extend([f"## {config.subtitle}", ""])
    lines.extend([f"By {config.author}", ""])
    return Section(source="<placeholder>", body="\n".join(lines), kind=FRONT)


def main_sections(lang_dir, strategy):
    """Ordered sections for the main body under a detected strategy."""
    sections = []

    if strategy == "marker":
        for path in read_order_file(lang_dir):
            sections.append(Section(_relative(path, lang_dir), read_fragment(path)))

    elif strategy == "chapters":
        for path in _markdown_files(lang_dir, exclude=GLOSSARY_NAMES):
            sections.append(Section(_relative(path, lang_dir), read_fragment(path), FRONT))
        for directory in chapter_dirs(lang_dir):
            files = chapter_files(directory)
            for i, path in enumerate(files):
                sections.append(Section(
                    _relative(path, lang_dir),
                    read_fragment(path),
                    CHAPTER,
                    break_after=(i == len(files) - 1),
                ))

    elif strategy == "flat":
        for path in _markdown_files(lang_dir, exclude=GLOSSARY_NAMES):
            sections.append(Section(_relative(path, lang_dir), read_fragment(path)))

    return sections


def back_matter_sections(lang_dir):
    """Appendices (in natural order) and the glossary, if present."""
    sections = []

    appendix_files = _markdown_files(os.path.join(lang_dir, APPENDICES_DIR))
    for path in appendix_files:
        sections.append(Section(_relative(path, lang_dir), read_fragment(path), APPENDIX))

    for name in GLOSSARY_NAMES:
        path = os.path.join(lang_dir, name)
        if os.path.isfile(path):
            sections.append(Section(_relative(path, lang_dir), read_fragment(path), GLOSSARY))
            break

    return sections


def build_manifest(config, lang_dir):
    """Return (strategy, sections) for a language directory."""
    strategy = detect_structure(lang_dir) if os.path.isdir(lang_dir) else "placeholder"
    sections = main_sections(lang_dir, strategy) if strategy != "placeholder" else []

    if not sections:
        if strategy != "placeholder":
            print(f"  Warning: no usable fragments found via '{strategy}' structure")
        strategy = "placeholder"
        sections = [placeholder_section(config)]

    if os.path.isdir(lang_dir):
        sections.extend(back_matter_sections(lang_dir))
    return strategy, sections


# ── Rendering ─────────────────────────────────────────────────────────


def metadata_header(config, language, cover=None):
    meta = {
        "title": config.title,
        "subtitle": config.subtitle,
        "author": config.author,
        "publisher": config.publisher,
        "lang": language,
        "toc": True,
    }
    if cover:
        meta["cover-image"] = cover
    dumped = yaml.safe_dump(meta, sort_keys=False, allow_unicode=True, default_flow_style=False)
    return f"---\n{dumped}---\n"


def parse_metadata_header(text):
    """Read back the YAML metadata block at the top of an assembled document."""
    match = re.match(r"\A---\n(.*?\n)---\n", text, re.DOTALL)
    if not match:
        return {}
    return yaml.safe_load(match.group(1)) or {}


def _ends_with_page_break(body):
    return body.rstrip().endswith(PAGE_BREAK)


def render_sections(sections):
    parts = []
    heading_done = set()

    for section in sections:
        if section.kind == APPENDIX and APPENDIX not in heading_done:
            parts.append("# Appendices\n")
            heading_done.add(APPENDIX)
        if section.kind == GLOSSARY and GLOSSARY not in heading_done:
            parts.append("# Glossary\n")
            heading_done.add(GLOSSARY)

        parts.append(f"<!-- Start of section: {section.source} -->\n")
        parts.append(section.body.rstrip("\n") + "\n")

        appended = section.kind in (APPENDIX, GLOSSARY)
        if (appended or section.break_after) and not _ends_with_page_break(section.body):
            parts.append(PAGE_BREAK + "\n")

    return "\n".join(parts)


def render_document(config, language, sections, cover=None):
    return metadata_header(config, language, cover) + "\n" + render_sections(sections)


# ── Entry point ───────────────────────────────────────────────────────


def assemble_book(config, project_root, language, output_dir, verbose=False):
    """
    Assemble book/<language>/ into <output_dir>/book.md.

    Returns an AssembledBook describing what was written.
    """
    lang_dir = os.path.join(project_root, "book", language)
    strategy, sections = build_manifest(config, lang_dir)

    if strategy == "placeholder":
        print(f"  Warning: no fragments for '{language}', using placeholder content")
    elif verbose:
        print(f"  Structure: {strategy} ({len(sections)} sections)")

    cover = find_cover(config, project_root, language)
    if verbose:
        print(f"  Cover: {cover or '(none)'}")

    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, "book.md")
    document = render_document(config, language, sections, cover)
    with open(path, "w", encoding="utf-8") as f:
        f.write(document)

    fragment_dirs = sorted(
        {os.path.dirname(os.path.join(lang_dir, s.source)) for s in sections if s.source != "<placeholder>"},
        key=natural_sort_key,
    )

    words = len(document.split())
    print(f"  ✓ {path} ({words} words, {len(document)} characters)")

    return AssembledBook(
        language=language,
        strategy=strategy,
        sections=sections,
        path=path,
        cover=cover,
        fragment_dirs=fragment_dirs,
    )
