"""
Resource resolution: project discovery, natural ordering, and lookup of
templates, stylesheets, cover images and reference documents.

Every lookup builds an ordered candidate list and returns the first entry
that exists as a regular file. A miss is not an error; callers go ahead
without the customization and let pandoc use its built-in defaults.
"""

import os
import re


PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
BUNDLED_DIR = os.path.join(PACKAGE_DIR, "resources")

CONFIG_NAME = "book.yaml"

# Default file names tried under templates/<fmt>/ when the configured
# file is not found, per resource kind and format.
DEFAULT_NAMES = {
    "template": {
        "pdf": ["default.latex", "default.tex", "default.template"],
        "html": ["default.html", "default.html5", "default.template"],
        "epub": ["default.epub", "default.template"],
        "docx": [],
        "mobi": [],
    },
    "stylesheet": ["style.css", "default.css"],
    "reference": ["reference.docx", "default.docx"],
}


def natural_sort_key(s):
    """Sort strings with embedded numbers naturally (2.md before 10.md)."""
    return [
        int(text) if text.isdigit() else text.lower()
        for text in re.split(r"(\d+)", s)
    ]


def find_project_root(start=None):
    """
    Walk up from `start` (default: cwd) to the first directory holding
    book.yaml. Returns `start` itself when none is found.
    """
    start = os.path.abspath(start or os.getcwd())
    current = start
    while True:
        if os.path.exists(os.path.join(current, CONFIG_NAME)):
            return current
        parent = os.path.dirname(current)
        if parent == current:
            return start
        current = parent


def is_file(path):
    return bool(path) and os.path.isfile(path)


def resolve_first(candidates):
    """Return the first candidate that is an existing regular file."""
    for path in candidates:
        if is_file(path):
            return os.path.abspath(path)
    return None


def _explicit(project_root, explicit):
    if not explicit:
        return []
    if os.path.isabs(explicit):
        return [explicit]
    return [os.path.join(project_root, explicit)]


def _unique(paths):
    seen = set()
    ordered = []
    for path in paths:
        if path and path not in seen:
            seen.add(path)
            ordered.append(path)
    return ordered


# ── Images ────────────────────────────────────────────────────────────


def image_candidates(project_root, language, name, explicit=None):
    """
    Search order for an image (first match wins):
        1. explicit path from settings
        2. book/images/
        3. book/<lang>/images/
        4. build/images/
        5. build/<lang>/images/
        6. resources/images/
        7. bundled package resources
    """
    candidates = _explicit(project_root, explicit)
    if name:
        candidates.extend([
            os.path.join(project_root, "book", "images", name),
            os.path.join(project_root, "book", language, "images", name),
            os.path.join(project_root, "build", "images", name),
            os.path.join(project_root, "build", language, "images", name),
            os.path.join(project_root, "resources", "images", name),
            os.path.join(BUNDLED_DIR, "images", name),
        ])
    return _unique(candidates)


def resolve_image(project_root, language, name, explicit=None):
    return resolve_first(image_candidates(project_root, language, name, explicit))


def find_cover(config, project_root, language):
    """Resolve the cover image for a language, or None."""
    explicit = config.settings("epub").get("coverImage")
    names = [os.path.basename(explicit)] if explicit else []
    names.extend(["cover.png", "cover.jpg"])

    for name in _unique(names):
        path = resolve_image(project_root, language, name, explicit)
        if path:
            return path
        explicit = None
    return None


# ── Templates, stylesheets, reference documents ───────────────────────


def _default_names(kind, fmt):
    names = DEFAULT_NAMES.get(kind, [])
    if isinstance(names, dict):
        names = names.get(fmt, [])
    return list(names)


def template_candidates(project_root, fmt, kind, explicit=None):
    """
    Search order for a template/stylesheet/reference document:
        1. explicit configured path
        2. templates/<fmt>/<configured file name>
        3. templates/<fmt>/<kind default names>
        4. bundled package resources/<fmt>/
    """
    configured_name = os.path.basename(explicit) if explicit else None
    names = _unique([configured_name] + _default_names(kind, fmt))

    candidates = _explicit(project_root, explicit)
    templates_dir = os.path.join(project_root, "templates", fmt)
    candidates.extend(os.path.join(templates_dir, name) for name in names)
    candidates.extend(os.path.join(BUNDLED_DIR, fmt, name) for name in names)
    return _unique(candidates)


def resolve_template(project_root, fmt, kind, explicit=None):
    return resolve_first(template_candidates(project_root, fmt, kind, explicit))


# ── Search path ───────────────────────────────────────────────────────


def resource_search_path(project_root, language, extra_dirs=None):
    """
    Ordered directories pandoc searches for relative images and assets.
    Only existing directories are returned.
    """
    base = [
        project_root,
        os.path.join(project_root, "book"),
        os.path.join(project_root, "book", language),
        os.path.join(project_root, "build"),
        os.path.join(project_root, "book", language, "images"),
        os.path.join(project_root, "book", "images"),
        os.path.join(project_root, "build", "images"),
        os.path.join(project_root, "build", language, "images"),
    ]
    dirs = base + list(extra_dirs or [])
    return [d for d in _unique(dirs) if os.path.isdir(d)]


def resource_path_arg(dirs):
    return "--resource-path=" + os.pathsep.join(dirs)
