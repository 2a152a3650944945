"""
Image preparation: copy shared and per-language images into
build/<lang>/images/ before any format is generated, so relative image
references resolve the same way for every output.
"""

import os
import shutil


def image_sources(project_root, language):
    """Image directories copied for a language, lowest priority first."""
    return [
        os.path.join(project_root, "book", "images"),
        os.path.join(project_root, "book", language, "images"),
    ]


def prepare_images(project_root, language, output_dir, verbose=False):
    """
    Copy book/images/ then book/<lang>/images/ into <output_dir>/images/.
    Language-specific files overwrite shared ones with the same name.

    Returns the number of files copied.
    """
    target = os.path.join(output_dir, "images")
    copied = 0

    for source in image_sources(project_root, language):
        if not os.path.isdir(source):
            continue
        for root, dirs, files in os.walk(source):
            dirs.sort()
            rel = os.path.relpath(root, source)
            dest_dir = os.path.normpath(os.path.join(target, rel))
            os.makedirs(dest_dir, exist_ok=True)
            for fname in sorted(files):
                shutil.copy2(os.path.join(root, fname), os.path.join(dest_dir, fname))
                copied += 1
        if verbose:
            print(f"  Images: {source} -> {target}")

    if copied:
        print(f"  ✓ Copied {copied} image(s) to {target}")
    return copied
