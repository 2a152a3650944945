"""
Book configuration: load book.yaml, translate the legacy schema, and
fill in defaults so every downstream component sees one canonical shape.
"""

import copy
import datetime
import os
import re
import sys

try:
    import yaml
except ImportError:
    print("Error: PyYAML is required. Install with: pip install pyyaml")
    sys.exit(1)


# Build order; mobi last because it consumes the epub
FORMATS = ["pdf", "epub", "html", "docx", "mobi"]

# Keys whose presence marks the old book-template schema
LEGACY_KEYS = ["file_prefix", "outputs"]

# Sections that must be YAML mappings when present
MAPPING_KEYS = ["formats", "formatSettings", "outputs", "metadata"]

DEFAULTS = {
    "title": "Untitled Book",
    "subtitle": "",
    "author": "Unknown Author",
    "publisher": "",
    "filePrefix": "book",
    "languages": ["en"],
}

PDF_DEFAULTS = {
    "paperSize": "letter",
    "marginTop": "1in",
    "marginRight": "1in",
    "marginBottom": "1in",
    "marginLeft": "1in",
    "fontSize": "11pt",
    "lineHeight": "1.5",
    "template": "templates/pdf/default.latex",
    "engine": "xelatex",
    "toc": True,
    "fallback": True,
}

EPUB_DEFAULTS = {
    "coverImage": "book/images/cover.png",
    "css": "templates/epub/style.css",
    "toc": True,
    "tocDepth": 3,
    "fallback": True,
}

HTML_DEFAULTS = {
    "template": "templates/html/default.html",
    "css": "templates/html/style.css",
    "toc": True,
    "tocDepth": 3,
    "sectionDivs": True,
    "selfContained": True,
    "fallback": True,
}

DOCX_DEFAULTS = {
    "referenceDoc": "templates/docx/reference.docx",
    "toc": True,
    "tocDepth": 3,
    "fallback": True,
}

MOBI_DEFAULTS = {
    "fallback": True,
}

FORMAT_DEFAULTS = {
    "pdf": PDF_DEFAULTS,
    "epub": EPUB_DEFAULTS,
    "html": HTML_DEFAULTS,
    "docx": DOCX_DEFAULTS,
    "mobi": MOBI_DEFAULTS,
}

FALSE_STRINGS = {"false", "no", "off", "0", "n"}


class ConfigError(Exception):
    """Raised when a configuration cannot be used."""
    pass


class ConfigParseError(ConfigError):
    """Raised when book.yaml is not a readable YAML mapping."""
    pass


# ── Helpers ────────────────────────────────────────────────────────────


def camel_case(key):
    """paper_size -> paperSize. Keys already in camelCase pass through."""
    head, *rest = key.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def as_bool(value, default=True):
    """Coerce a YAML-ish flag. None means unset."""
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() not in FALSE_STRINGS
    return bool(value)


def _camel_section(section):
    if not isinstance(section, dict):
        return {}
    return {camel_case(str(key)): value for key, value in section.items()}


def _as_language_list(raw):
    languages = raw.get("languages")
    if isinstance(languages, str):
        languages = re.split(r"[,\s]+", languages)
    if isinstance(languages, (list, tuple)):
        cleaned = [str(lang).strip() for lang in languages if str(lang).strip()]
        if cleaned:
            return cleaned
    language = raw.get("language")
    if language:
        return [str(language).strip()]
    return list(DEFAULTS["languages"])


# ── Legacy translation ────────────────────────────────────────────────


def is_legacy(raw):
    return any(key in raw for key in LEGACY_KEYS)


def convert_legacy(raw):
    """
    Translate the book-template schema (snake_case, `outputs:` map,
    per-format sections at the top level) into the current schema.

    Only translates; defaults are applied by normalize_config().
    """
    outputs = raw.get("outputs") or {}
    legacy_meta = raw.get("metadata") or {}
    year = raw.get("year") or str(datetime.date.today().year)

    converted = {
        "title": raw.get("title"),
        "subtitle": raw.get("subtitle"),
        "author": raw.get("author"),
        "publisher": raw.get("publisher"),
        "filePrefix": raw.get("file_prefix"),
        "languages": _as_language_list(raw),
        "formats": {fmt: outputs.get(fmt) for fmt in FORMATS},
        "formatSettings": {
            fmt: _camel_section(raw.get(fmt)) for fmt in FORMATS
        },
        "metadata": {
            "publisher": raw.get("publisher") or "",
            "year": str(year),
            "rights": legacy_meta.get("rights") or f"Copyright © {year}",
            "description": legacy_meta.get("description") or "",
            "subject": legacy_meta.get("subject") or "",
            "keywords": legacy_meta.get("keywords") or "",
        },
    }
    return converted


# ── Normalization ─────────────────────────────────────────────────────


def check_shape(raw):
    """Reject mapping-valued sections given as lists or scalars."""
    for key in MAPPING_KEYS:
        value = raw.get(key)
        if value is not None and not isinstance(value, dict):
            raise ConfigParseError(
                f"'{key}' must be a mapping, got {type(value).__name__}"
            )


def normalize_config(raw):
    """
    Return the canonical configuration dict for `raw` (legacy or current).

    Every format key in `formats` maps to a bool and every format has a
    populated `formatSettings` block. The input is not modified, and
    normalizing an already-normalized config returns an equal dict.

    Raises ConfigParseError when a section that must be a mapping is not.
    """
    raw = copy.deepcopy(raw or {})
    check_shape(raw)
    if is_legacy(raw):
        raw = convert_legacy(raw)

    data = dict(raw)

    for key, default in DEFAULTS.items():
        if data.get(key) is None:
            data[key] = copy.deepcopy(default)

    if not data["publisher"] and isinstance(data.get("metadata"), dict):
        data["publisher"] = data["metadata"].get("publisher") or ""

    data["languages"] = _as_language_list(data)

    formats = data.get("formats") or {}
    data["formats"] = {fmt: as_bool(formats.get(fmt)) for fmt in FORMATS}
    for fmt, enabled in formats.items():
        if fmt not in data["formats"]:
            data["formats"][fmt] = as_bool(enabled)

    settings = data.get("formatSettings") or {}
    normalized_settings = {}
    for fmt in FORMATS:
        block = _camel_section(settings.get(fmt))
        # Current-schema files may still carry snake_case format sections
        for key, value in _camel_section(data.get(fmt)).items():
            block.setdefault(key, value)
        for key, default in FORMAT_DEFAULTS[fmt].items():
            if block.get(key) is None:
                block[key] = default
        block["fallback"] = as_bool(block.get("fallback"))
        normalized_settings[fmt] = block
    data["formatSettings"] = normalized_settings

    if not isinstance(data.get("metadata"), dict):
        data["metadata"] = {}

    return data


def default_config():
    return normalize_config({})


# ── Loading ───────────────────────────────────────────────────────────


def parse_config_file(path):
    """Read and parse a YAML config file. Raises ConfigParseError."""
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigParseError(f"Could not read {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigParseError(
            f"{os.path.basename(path)} must be a YAML mapping, got {type(data).__name__}"
        )
    return data


def load_config(path, project_root=None):
    """
    Load a BookConfig from `path`.

    A missing file or one that fails to parse yields the built-in default
    configuration instead of raising.
    """
    project_root = project_root or os.path.dirname(os.path.abspath(path))

    if not os.path.exists(path):
        return BookConfig(default_config(), project_root, source=None)

    try:
        data = normalize_config(parse_config_file(path))
    except ConfigParseError as e:
        print(f"  Warning: {e}")
        print("  Using default configuration.")
        return BookConfig(default_config(), project_root, source=None)

    return BookConfig(data, project_root, source=path)


class BookConfig:
    """
    Normalized, read-only book configuration.

    Usage:
        config = load_config("book.yaml")
        config.title                       # "The Trench Mage"
        config.enabled("pdf")              # True
        config.settings("epub")["css"]     # "templates/epub/style.css"
    """

    def __init__(self, data, project_root, source=None):
        self._data = data
        self.project_root = project_root
        self.source = source

    # ── Attribute access ───────────────────────────────────

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(f"BookConfig has no field '{name}'")

    def get(self, key, default=None):
        return self._data.get(key, default)

    # ── Convenience ────────────────────────────────────────

    @property
    def prefix(self):
        return self._data["filePrefix"]

    def enabled(self, fmt):
        return self._data["formats"].get(fmt, True)

    def settings(self, fmt):
        return self._data["formatSettings"].get(fmt, {})

    def metadata_args(self, language):
        """Build pandoc --metadata arguments list."""
        args = []
        values = [
            ("title", self.title),
            ("subtitle", self.subtitle),
            ("author", self.author),
            ("publisher", self.publisher),
            ("lang", language),
        ]
        for key, value in values:
            if value:
                args.extend(["--metadata", f"{key}={value}"])
        return args

    def summary(self):
        """Print a short config summary."""
        print(f"\n  Book:      {self.title}")
        if self.subtitle:
            print(f"  Subtitle:  {self.subtitle}")
        print(f"  Author:    {self.author}")
        print(f"  Languages: {', '.join(self.languages)}")
        print(f"  Source:    {self.source or '(defaults)'}")
