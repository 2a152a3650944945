from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from bookpress.builders import GENERATORS
from bookpress.orchestrator import BuildOptions, build_book

from conftest import write, writes


def pairs(report):
    return [(r.language, r.format) for r in report.results]


def configure(project: Path, **changes) -> None:
    path = project / "book.yaml"
    data = yaml.safe_load(path.read_text())
    data.update(changes)
    path.write_text(yaml.safe_dump(data))


def test_default_build_covers_first_language(project, fake_run) -> None:
    report = build_book(BuildOptions(project_root=str(project)))

    assert pairs(report) == [("en", f) for f in ["pdf", "epub", "html", "docx", "mobi"]]
    assert report.exit_code == 0
    assert (project / "build" / "en" / "book.md").is_file()
    assert not (project / "build" / "es").exists()


def test_disabled_format_is_never_invoked(project, fake_run) -> None:
    configure(project, formats={"pdf": False})

    report = build_book(BuildOptions(project_root=str(project)))

    assert "pdf" not in [r.format for r in report.results]
    assert not any(out and out.endswith(".pdf") for out in fake_run.outputs())


def test_one_failing_format_does_not_stop_others(project, fake_run) -> None:
    fake_run.fail_when(writes(".docx"))

    report = build_book(BuildOptions(project_root=str(project), all_languages=True))

    failed = [(r.language, r.format) for r in report.failed]
    assert failed == [("en", "docx"), ("es", "docx")]
    assert len(report.succeeded) == 8
    assert report.exit_code == 0


def test_nothing_built_is_a_failure_exit(project, fake_run) -> None:
    fake_run.missing.update({"pandoc", "kindlegen", "ebook-convert"})

    report = build_book(BuildOptions(project_root=str(project)))

    assert report.succeeded == []
    assert report.exit_code == 1


def test_language_and_format_selection(project, fake_run) -> None:
    report = build_book(BuildOptions(
        project_root=str(project),
        languages=["es"],
        skip_formats={"pdf", "MOBI"},
    ))

    assert pairs(report) == [("es", "epub"), ("es", "html"), ("es", "docx")]


def test_unconfigured_language_gets_placeholder(project, fake_run, capsys) -> None:
    report = build_book(BuildOptions(project_root=str(project), languages=["fr"], skip_formats={"mobi"}))

    assert report.exit_code == 0
    assert "not in the configured languages" in capsys.readouterr().out
    text = (project / "build" / "fr" / "book.md").read_text(encoding="utf-8")
    assert "By Ada Writer" in text


@pytest.mark.parametrize("jobs", [1, 4])
def test_mobi_runs_after_epub(project, fake_run, jobs) -> None:
    report = build_book(BuildOptions(project_root=str(project), all_languages=True, jobs=jobs))

    assert pairs(report) == [
        (lang, fmt)
        for lang in ["en", "es"]
        for fmt in ["pdf", "epub", "html", "docx", "mobi"]
    ]
    assert all(r.ok for r in report.results)
    outputs = fake_run.outputs()
    for lang in ["en", "es"]:
        epub = outputs.index(str(project / "build" / lang / "field-notes.epub"))
        mobi = outputs.index(str(project / "build" / lang / "field-notes.mobi"))
        assert epub < mobi
    # The epub from the first wave is reused, not rebuilt
    assert len([o for o in outputs if o.endswith(".epub")]) == 2


def test_json_report(project, fake_run) -> None:
    fake_run.fail_when(writes(".html"))

    build_book(BuildOptions(project_root=str(project), json_report=True, skip_formats={"mobi"}))

    data = json.loads((project / "build" / "build-report.json").read_text())
    assert data["succeeded"] == 3
    assert data["failed"] == 1
    html = next(r for r in data["results"] if r["format"] == "html")
    assert html["status"] == "failed"
    assert html["output_path"] is None


def test_images_are_copied_before_generation(project, fake_run) -> None:
    write(project / "book" / "images" / "map.png", "shared")
    write(project / "book" / "en" / "images" / "map.png", "english")
    write(project / "book" / "en" / "images" / "figs" / "fig-1.png", "fig")

    build_book(BuildOptions(project_root=str(project), skip_formats={"pdf", "mobi"}))

    images = project / "build" / "en" / "images"
    assert (images / "map.png").read_text() == "english"
    assert (images / "figs" / "fig-1.png").is_file()


def test_generator_crash_becomes_failed_result(project, fake_run, monkeypatch) -> None:
    class Broken:
        def __init__(self, *args, **kwargs):
            raise RuntimeError("bad generator")

    monkeypatch.setitem(GENERATORS, "html", Broken)

    report = build_book(BuildOptions(project_root=str(project), skip_formats={"mobi"}))

    html = next(r for r in report.results if r.format == "html")
    assert not html.ok
    assert "bad generator" in html.diagnostic
    assert len(report.succeeded) == 3


def test_unreadable_fragment_only_fails_its_language(project, fake_run) -> None:
    (project / "book" / "es" / "chapter-01" / "01-section.md").write_bytes(b"caf\xe9\n")

    report = build_book(BuildOptions(project_root=str(project), all_languages=True))

    assert [r.language for r in report.failed] == ["es"] * 5
    assert all("UnicodeDecodeError" in r.diagnostic for r in report.failed)
    assert [r.format for r in report.succeeded] == ["pdf", "epub", "html", "docx", "mobi"]
    assert all(r.language == "en" for r in report.succeeded)
    assert report.exit_code == 0


def test_failed_epub_is_not_converted_to_mobi(project, fake_run) -> None:
    write(project / "build" / "en" / "field-notes.epub", "from an earlier build")
    fake_run.fail_when(writes(".epub"))

    report = build_book(BuildOptions(project_root=str(project), skip_formats={"pdf", "html", "docx"}))

    assert {r.format: r.ok for r in report.results} == {"epub": False, "mobi": False}
    assert not (project / "build" / "en" / "field-notes.epub").exists()
    assert not any(cmd[0] == "kindlegen" for cmd in fake_run.calls)


def test_config_path_sets_project_root(project, fake_run) -> None:
    options = BuildOptions(config_path=str(project / "book.yaml"))

    assert options.resolved_root() == str(project)
    report = build_book(options)
    assert report.exit_code == 0
    assert (project / "build" / "en" / "field-notes.pdf").is_file()
