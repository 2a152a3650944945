"""
Command-line entry point.

Usage:
    bookpress build                        Build the first configured language
    bookpress build --all-languages        Build every configured language
    bookpress build --lang es --skip pdf   Spanish only, no PDF
    bookpress build -j 4 --json-report     Parallel build, write build-report.json
    bookpress info                         Show config and built artifacts
    bookpress clean                        Remove build/<lang>/ outputs
    bookpress validate                     Check config, tools, and layout

`build` is the default command: `bookpress --lang es` builds Spanish.
"""

import argparse
import sys
import traceback

from bookpress.builders.base import DEFAULT_TIMEOUT
from bookpress.config import FORMATS, load_config
from bookpress.orchestrator import BuildOptions, build_book
from bookpress.project import book_info, clean_build
from bookpress.validate import print_issues, validate_project


COMMANDS = {"build", "info", "clean", "validate"}


def split_values(values):
    """Flatten repeatable, comma-separated option values."""
    parts = []
    for value in values or []:
        parts.extend(part.strip() for part in value.split(",") if part.strip())
    return parts


def options_from_args(args):
    skip = set(split_values(args.skip))
    for fmt in FORMATS:
        if getattr(args, f"skip_{fmt}", False):
            skip.add(fmt)

    languages = split_values(args.lang)

    return BuildOptions(
        project_root=args.project,
        config_path=args.config,
        languages=languages,
        all_languages=args.all_languages,
        skip_formats=skip,
        verbose=args.verbose,
        jobs=max(1, args.jobs),
        timeout=args.timeout,
        json_report=args.json_report,
    )


def _load(args):
    options = BuildOptions(project_root=args.project, config_path=args.config)
    root = options.resolved_root()
    config_path = options.resolved_config_path()
    return root, config_path, load_config(config_path, root)


# ── Commands ───────────────────────────────────────────────────────────


def cmd_build(args):
    """Build every enabled format for the selected languages."""
    report = build_book(options_from_args(args))
    return report.exit_code


def cmd_info(args):
    root, _, config = _load(args)
    book_info(config, root)
    return 0


def cmd_clean(args):
    root, _, config = _load(args)
    languages = split_values(args.lang) or config.languages
    clean_build(root, languages, verbose=args.verbose)
    return 0


def cmd_validate(args):
    root, config_path, config = _load(args)
    print(f"\n  Validating: {root}")
    print(f"{'─' * 50}")
    ok = print_issues(validate_project(config, config_path, root))
    return 0 if ok else 1


# ── Argument Parser ────────────────────────────────────────────────────


def build_parser():
    parser = argparse.ArgumentParser(
        prog="bookpress",
        description="Build PDF, EPUB, HTML, DOCX and MOBI books from markdown fragments",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  %(prog)s build                       First configured language, all formats
  %(prog)s build --all-languages       Every configured language
  %(prog)s build --lang es --skip pdf  Spanish, everything but PDF
  %(prog)s validate                    Check config, tools and layout
        """,
    )

    sub = parser.add_subparsers(dest="command")

    build_p = sub.add_parser("build", help="Build output formats (default)")
    _add_project_args(build_p)
    _add_build_args(build_p)

    info_p = sub.add_parser("info", help="Show configuration and built files")
    _add_project_args(info_p)

    clean_p = sub.add_parser("clean", help="Remove generated files")
    _add_project_args(clean_p)
    clean_p.add_argument("--lang", action="append", help="Only clean this language")
    clean_p.add_argument("--verbose", "-v", action="store_true")

    val_p = sub.add_parser("validate", help="Check configuration, tools and layout")
    _add_project_args(val_p)

    return parser


def _add_project_args(parser):
    parser.add_argument("--project", help="Project root (default: nearest dir with book.yaml)")
    parser.add_argument("--config", help="Config file (default: <project>/book.yaml)")


def _add_build_args(parser):
    langs = parser.add_argument_group("languages")
    langs.add_argument(
        "--lang", action="append", help="Language to build (repeatable or comma-separated)"
    )
    langs.add_argument(
        "--all-languages", action="store_true", help="Build every configured language"
    )

    fmt = parser.add_argument_group("formats")
    fmt.add_argument("--skip", action="append", help="Formats to skip, e.g. pdf,mobi")
    for name in FORMATS:
        fmt.add_argument(f"--skip-{name}", action="store_true", help=f"Skip {name.upper()}")

    opts = parser.add_argument_group("options")
    opts.add_argument("--jobs", "-j", type=int, default=1, help="Parallel format builds")
    opts.add_argument(
        "--timeout", type=int, default=DEFAULT_TIMEOUT,
        help="Seconds before an external converter is abandoned",
    )
    opts.add_argument(
        "--json-report", action="store_true", help="Write build/build-report.json"
    )
    opts.add_argument("--verbose", "-v", action="store_true")


# ── Main ───────────────────────────────────────────────────────────────


def main(argv=None):
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = build_parser()

    # "bookpress --lang es" is shorthand for "bookpress build --lang es"
    if not argv or (argv[0] not in COMMANDS and argv[0] not in ("-h", "--help")):
        argv = ["build"] + argv

    args = parser.parse_args(argv)

    dispatch = {
        "build": cmd_build,
        "info": cmd_info,
        "clean": cmd_clean,
        "validate": cmd_validate,
    }
    return dispatch[args.command](args)


def run():
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nCancelled.")
        sys.exit(1)
    except Exception as e:
        log_path = "build_error.log"
        with open(log_path, "w") as f:
            traceback.print_exc(file=f)
        print(f"\nUnexpected error: {e}")
        print(f"Full traceback written to {log_path}")
        sys.exit(1)
