"""
Project validation: configuration, external tools, directory layout.

Each check returns a list of (severity, message) tuples where severity is
"error" or "warning". Errors make `validate` exit non-zero; warnings only
point at customizations that will silently fall back to pandoc defaults.
"""

import os
import shutil

from bookpress.config import ConfigParseError, normalize_config, parse_config_file
from bookpress.resolve import find_cover, resolve_template


# (command, required, message)
DEPENDENCIES = [
    ("pandoc", True, "pandoc is required for all format conversions"),
    ("kindlegen", False, "kindlegen converts EPUB to MOBI (optional)"),
    ("ebook-convert", False, "calibre's ebook-convert is the MOBI alternative (optional)"),
]

# (path, required, message)
STRUCTURE = [
    ("book", True, "Main content directory not found"),
    ("templates", False, "Templates directory not found (recommended)"),
    ("book/images", False, "Images directory not found (recommended)"),
]

# (format, kind, setting)
CONFIGURED_RESOURCES = [
    ("pdf", "template", "template"),
    ("epub", "stylesheet", "css"),
    ("html", "template", "template"),
    ("html", "stylesheet", "css"),
    ("docx", "reference", "referenceDoc"),
]

SYMBOLS = {"error": "✗", "warning": "!"}


def find_tool(name):
    """Locate an executable on PATH. Returns its path or None."""
    return shutil.which(name)


def check_config(config_path):
    """Parse-level and content checks on the raw book.yaml."""
    issues = []
    if not os.path.exists(config_path):
        return [("error", f"Configuration file not found: {config_path}")]

    try:
        raw = parse_config_file(config_path)
        data = normalize_config(raw)
    except ConfigParseError as e:
        return [("error", str(e))]

    if not raw.get("title"):
        issues.append(("warning", "Missing title in configuration"))
    if not raw.get("author"):
        issues.append(("warning", "Missing author in configuration"))
    if not (raw.get("languages") or raw.get("language")):
        issues.append(("warning", "No languages specified, defaulting to 'en'"))
    if not (raw.get("formats") or raw.get("outputs")):
        issues.append(("warning", "No formats specified, all formats enabled"))

    for fmt in data["formats"]:
        if fmt not in data["formatSettings"]:
            issues.append(("warning", f"Unknown format in configuration: {fmt}"))
    return issues


def check_dependencies(config):
    issues = []
    for command, required, message in DEPENDENCIES:
        if find_tool(command):
            continue
        issues.append(("error" if required else "warning", message))

    if config.enabled("pdf"):
        engine = config.settings("pdf").get("engine") or "xelatex"
        if not find_tool(engine):
            issues.append(("error", f"PDF engine '{engine}' not found on PATH"))
    return issues


def check_structure(config, project_root):
    issues = []
    for rel, required, message in STRUCTURE:
        if not os.path.isdir(os.path.join(project_root, rel)):
            issues.append(("error" if required else "warning", message))

    for lang in config.languages:
        lang_dir = os.path.join(project_root, "book", lang)
        if not os.path.isdir(lang_dir):
            issues.append(("warning", f"Language directory not found: book/{lang} (placeholder content will be used)"))

    for fmt, kind, setting in CONFIGURED_RESOURCES:
        if not config.enabled(fmt):
            continue
        explicit = config.settings(fmt).get(setting)
        if explicit and not resolve_template(project_root, fmt, kind, explicit):
            issues.append(("warning", f"{fmt.upper()} {kind} not found: {explicit}"))

    if config.enabled("epub") or config.enabled("mobi"):
        for lang in config.languages:
            if not find_cover(config, project_root, lang):
                issues.append(("warning", f"No cover image found for '{lang}'"))
    return issues


def validate_project(config, config_path, project_root):
    """Run every check. Returns the combined issue list."""
    return (
        check_config(config_path)
        + check_dependencies(config)
        + check_structure(config, project_root)
    )


def print_issues(issues):
    errors = [i for i in issues if i[0] == "error"]
    warnings = [i for i in issues if i[0] == "warning"]

    for severity, message in errors + warnings:
        print(f"  {SYMBOLS[severity]} {message}")

    print(f"{'─' * 50}")
    if not issues:
        print("  ✓ Project looks good.")
    else:
        print(f"  {len(errors)} error(s), {len(warnings)} warning(s)")
    return not errors
