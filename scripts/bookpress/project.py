"""
Project queries outside the build itself: what has been built, and
removing it again.
"""

import os
import shutil

from bookpress.orchestrator import build_dir


INTERMEDIATE_NAMES = {"book.md"}
INTERMEDIATE_SUFFIXES = (".tmp",)


def built_files(project_root, languages):
    """Generated artifacts under build/<lang>/ (intermediates excluded)."""
    found = []
    for language in languages:
        directory = build_dir(project_root, language)
        if not os.path.isdir(directory):
            continue
        for entry in sorted(os.listdir(directory)):
            path = os.path.join(directory, entry)
            if not os.path.isfile(path):
                continue
            if entry in INTERMEDIATE_NAMES or entry.endswith(INTERMEDIATE_SUFFIXES):
                continue
            found.append(path)
    return found


def book_info(config, project_root):
    """Print the configuration summary and any artifacts already built."""
    config.summary()
    enabled = [fmt for fmt, on in config.formats.items() if on]
    print(f"  Formats:   {', '.join(enabled) or '(none)'}")

    files = built_files(project_root, config.languages)
    if not files:
        print("  Built:     (nothing yet)")
        return files

    print("  Built:")
    for path in files:
        size_kb = os.path.getsize(path) / 1024
        print(f"    {os.path.relpath(path, project_root)}  ({size_kb:.1f} KB)")
    return files


def clean_build(project_root, languages, verbose=False):
    """Remove everything under build/<lang>/ for each language. Returns file count."""
    removed = 0
    for language in languages:
        directory = build_dir(project_root, language)
        if not os.path.isdir(directory):
            continue
        for root, dirs, files in os.walk(directory):
            removed += len(files)
        shutil.rmtree(directory)
        if verbose:
            print(f"  Removed {directory}")
    print(f"  ✓ Removed {removed} file(s)")
    return removed
