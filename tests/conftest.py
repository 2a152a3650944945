from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Callable

import pytest
import yaml

from bookpress.assemble import assemble_book
from bookpress.config import BookConfig, normalize_config


class FakeRunner:
    """Stand-in for subprocess.run that records commands and fakes outputs."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.failures: list[Callable[[list[str]], bool]] = []
        self.missing: set[str] = set()
        self.timeouts: set[str] = set()

    def fail_when(self, predicate: Callable[[list[str]], bool]) -> None:
        self.failures.append(predicate)

    def __call__(self, cmd, **kwargs):
        cmd = [str(part) for part in cmd]
        self.calls.append(cmd)
        if cmd[0] in self.missing:
            raise FileNotFoundError(cmd[0])
        if cmd[0] in self.timeouts:
            raise subprocess.TimeoutExpired(cmd, kwargs.get("timeout"))
        if any(predicate(cmd) for predicate in self.failures):
            return subprocess.CompletedProcess(cmd, 2, "", "conversion exploded")
        output = output_of(cmd)
        if output:
            os.makedirs(os.path.dirname(output), exist_ok=True)
            Path(output).write_text(f"fake output of {cmd[0]}", encoding="utf-8")
        return subprocess.CompletedProcess(cmd, 0, "", "")

    def outputs(self) -> list[str]:
        return [output_of(cmd) for cmd in self.calls]


def output_of(cmd: list[str]) -> str | None:
    if cmd[0] == "kindlegen":
        return os.path.join(os.path.dirname(cmd[1]), cmd[cmd.index("-o") + 1])
    if cmd[0] == "ebook-convert":
        return cmd[2]
    if "-o" in cmd:
        return cmd[cmd.index("-o") + 1]
    return None


def is_primary(cmd: list[str]) -> bool:
    return cmd[0] == "pandoc" and any(a.startswith("--resource-path=") for a in cmd)


def writes(ext: str) -> Callable[[list[str]], bool]:
    return lambda cmd: (output_of(cmd) or "").endswith(ext)


@pytest.fixture
def fake_run(monkeypatch: pytest.MonkeyPatch) -> FakeRunner:
    runner = FakeRunner()
    monkeypatch.setattr(subprocess, "run", runner)
    return runner


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A two-language project with chapter directories."""
    root = tmp_path / "project"
    write(root / "book.yaml", yaml.safe_dump({
        "title": "Field Notes",
        "subtitle": "A Test Book",
        "author": "Ada Writer",
        "publisher": "Small Press",
        "filePrefix": "field-notes",
        "languages": ["en", "es"],
    }))
    for lang in ["en", "es"]:
        write(root / "book" / lang / "chapter-01" / "00-introduction.md", f"# One ({lang})\n\nIntro.\n")
        write(root / "book" / lang / "chapter-01" / "01-section.md", "## Section\n\nBody.\n")
        write(root / "book" / lang / "chapter-02" / "00-introduction.md", "# Two\n\nMore.\n")
    return root


def make_config(data: dict | None = None, root: Path | str = ".") -> BookConfig:
    return BookConfig(normalize_config(data or {}), str(root))


@pytest.fixture
def book(project: Path):
    """Config plus an assembled English book for generator tests."""
    config = make_config(yaml.safe_load((project / "book.yaml").read_text()), project)
    assembled = assemble_book(config, str(project), "en", str(project / "build" / "en"))
    return config, assembled
