"""
Base generator class for all output formats.

Subclasses set `format_key` / `format_name` / `extension` / `writer`
and implement `primary_args()`. Each generator exposes an ordered
strategy table; `first_success` walks it until one invocation succeeds.
Shared logic (pandoc invocation, logging, resource resolution) lives here.
"""

import os
import shlex
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

from bookpress.resolve import (
    resolve_template,
    resource_path_arg,
    resource_search_path,
)
from bookpress.results import BuildResult, FAILED, SUCCESS


DEFAULT_TIMEOUT = 600


class ConversionFailure(Exception):
    """An external converter exited non-zero, was missing, or timed out."""

    def __init__(self, message, details=None):
        super().__init__(message)
        self.details = list(details or [])


@dataclass(frozen=True)
class Strategy:
    """One tier: an argument builder and the invoker that runs it."""

    name: str
    build_args: Callable[[], list]
    invoke: Optional[Callable[[list], None]] = None
    fallback: bool = False


def first_success(strategies, invoke, warn=print):
    """
    Try each strategy in order; the first that does not raise
    ConversionFailure wins.

    Returns (strategy, command, earlier_failures). Raises ConversionFailure
    carrying every tier's diagnostic when all of them fail.
    """
    failures = []
    for strategy in strategies:
        try:
            cmd = strategy.build_args()
            (strategy.invoke or invoke)(cmd)
            return strategy, cmd, failures
        except ConversionFailure as e:
            failures.append(f"{strategy.name}: {e}")
            warn(f"  Warning: {strategy.name} failed: {e}")
    raise ConversionFailure("all strategies failed", details=failures)


def describe(cmd):
    return shlex.join(str(part) for part in cmd)


class BaseGenerator(ABC):
    """
    Abstract base for format generators.

    Subclasses must define:
        format_key     config key ("pdf", "epub", ...)
        format_name    human-readable name ("PDF", "EPUB", ...)
        extension      output file extension (".pdf", ...)
        writer         pandoc writer used by the fallback tier
        primary_args() full-featured pandoc command
    """

    format_key = None
    format_name = None
    extension = None
    writer = None

    def __init__(self, config, project_root, book, output_dir, verbose=False,
                 timeout=DEFAULT_TIMEOUT):
        self.config = config
        self.project_root = project_root
        self.book = book
        self.output_dir = output_dir
        self.verbose = verbose
        self.timeout = timeout

    # ── Paths and settings ─────────────────────────────────

    @property
    def language(self):
        return self.book.language

    @property
    def input_file(self):
        return self.book.path

    @property
    def output_file(self):
        return os.path.join(self.output_dir, f"{self.config.prefix}{self.extension}")

    @property
    def settings(self):
        return self.config.settings(self.format_key)

    @property
    def fallback_enabled(self):
        return self.settings.get("fallback", True) is not False

    # ── Logging ────────────────────────────────────────────

    def log(self, msg):
        if self.verbose:
            print(msg)

    def header(self):
        print(f"\n{'─' * 60}")
        print(f"  Building {self.format_name} [{self.language}]: {self.config.title}")
        print(f"{'─' * 60}")

    # ── Resource resolution (delegates to shared module) ───

    def resolve(self, kind, setting):
        """Resolve a configured template/stylesheet/reference for this format."""
        explicit = self.settings.get(setting)
        path = resolve_template(self.project_root, self.format_key, kind, explicit)
        if path:
            self.log(f"  {kind.capitalize()}: {path}")
        elif explicit:
            print(f"  Warning: {kind} '{explicit}' not found, using pandoc defaults")
        return path

    def search_dirs(self, resolved=()):
        extra = list(self.book.fragment_dirs)
        extra.extend(os.path.dirname(p) for p in resolved if p)
        return resource_search_path(self.project_root, self.language, extra)

    # ── Command building ───────────────────────────────────

    def base_command(self, resolved=()):
        """pandoc with input, output, metadata and resource path."""
        cmd = [
            "pandoc",
            self.input_file,
            "-o", self.output_file,
            "--standalone",
            "--from", "markdown",
        ]
        cmd.extend(self.config.metadata_args(self.language))
        cmd.append(resource_path_arg(self.search_dirs(resolved)))
        return cmd

    def fallback_args(self):
        """Minimal, template-free command: metadata plus a basic TOC."""
        return [
            "pandoc",
            self.input_file,
            "-o", self.output_file,
            "-t", self.writer,
            "--standalone",
            "--metadata", f"title={self.config.title}",
            "--metadata", f"author={self.config.author}",
            "--metadata", f"lang={self.language}",
            "--toc",
            "--toc-depth=2",
        ]

    @staticmethod
    def toc_args(settings, default_depth=3):
        if settings.get("toc", True) is False:
            return []
        return ["--toc", f"--toc-depth={settings.get('tocDepth', default_depth)}"]

    # ── Execution ──────────────────────────────────────────

    def exec_cmd(self, cmd, label=None):
        """Execute a command. Raises ConversionFailure on any failure."""
        label = label or cmd[0]
        self.log(f"  $ {describe(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            raise ConversionFailure(f"{cmd[0]} not found")
        except subprocess.TimeoutExpired:
            raise ConversionFailure(f"{label} timed out after {self.timeout}s")

        if result.returncode != 0:
            lines = (result.stderr or "").strip().splitlines()[:20]
            message = f"{label} exited {result.returncode}"
            if lines:
                message += ": " + " | ".join(lines)
            raise ConversionFailure(message)

        if self.verbose and result.stderr:
            for line in result.stderr.strip().splitlines()[:20]:
                print(f"    {line}")

    # ── Strategy table ─────────────────────────────────────

    @abstractmethod
    def primary_args(self):
        """Full-featured pandoc command for this format."""
        ...

    def strategies(self):
        table = [Strategy("pandoc", self.primary_args)]
        if self.fallback_enabled:
            table.append(Strategy("pandoc-minimal", self.fallback_args, fallback=True))
        return table

    def result(self, status, strategy=None, cmd=None, diagnostic=""):
        return BuildResult(
            language=self.language,
            format=self.format_key,
            status=status,
            output_path=self.output_file if status == SUCCESS else None,
            command=describe(cmd) if cmd else "",
            strategy=strategy.name if strategy else "",
            fallback=bool(strategy and strategy.fallback),
            diagnostic=diagnostic,
        )

    def build(self):
        """Run the strategy table. Always returns a BuildResult."""
        self.header()
        os.makedirs(self.output_dir, exist_ok=True)
        # Outputs from an earlier run must not survive a failed build
        if os.path.isfile(self.output_file):
            os.remove(self.output_file)

        try:
            strategy, cmd, failures = first_success(self.strategies(), self.exec_cmd)
        except ConversionFailure as e:
            print(f"  ✗ {self.format_name} generation failed")
            return self.result(FAILED, diagnostic="\n".join(e.details) or str(e))

        if strategy.fallback:
            print(f"  Warning: {self.format_name} built with reduced settings ({strategy.name})")
        print(f"  ✓ {self.output_file}")
        notes = failures + [self.success_note(strategy)]
        return self.result(SUCCESS, strategy, cmd, diagnostic="\n".join(filter(None, notes)))

    def success_note(self, strategy):
        """Extra diagnostic recorded with a successful result."""
        return ""
