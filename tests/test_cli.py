from __future__ import annotations

import json
from pathlib import Path

from bookpress import validate
from bookpress.cli import build_parser, main, options_from_args


def test_build_is_the_default_command(project, fake_run) -> None:
    code = main(["--project", str(project), "--lang", "es", "--skip", "pdf,mobi"])

    assert code == 0
    built = sorted(p.name for p in (project / "build" / "es").iterdir() if p.is_file())
    assert built == ["book.md", "field-notes.docx", "field-notes.epub", "field-notes.html"]


def test_build_options_are_parsed() -> None:
    args = build_parser().parse_args([
        "build", "--skip", "pdf, epub", "--skip-mobi",
        "--lang", "en,es", "--lang", "fr", "-j", "0", "--timeout", "30",
    ])
    options = options_from_args(args)

    assert options.skip_formats == {"pdf", "epub", "mobi"}
    assert options.languages == ["en", "es", "fr"]
    assert options.jobs == 1
    assert options.timeout == 30


def test_failed_build_exit_code(project, fake_run) -> None:
    fake_run.fail_when(lambda cmd: True)
    fake_run.missing.update({"kindlegen", "ebook-convert"})

    assert main(["build", "--project", str(project)]) == 1


def test_json_report_flag(project, fake_run) -> None:
    main(["build", "--project", str(project), "--skip-mobi", "--json-report"])

    data = json.loads((project / "build" / "build-report.json").read_text())
    assert [r["format"] for r in data["results"]] == ["pdf", "epub", "html", "docx"]


def test_info_lists_built_files(project, fake_run, capsys) -> None:
    main(["--project", str(project), "--skip", "pdf,epub,html,mobi"])
    capsys.readouterr()

    assert main(["info", "--project", str(project)]) == 0

    out = capsys.readouterr().out
    assert "Field Notes" in out
    assert "field-notes.docx" in out
    assert "book.md" not in out


def test_clean_removes_language_builds(project, fake_run) -> None:
    main(["--project", str(project), "--all-languages", "--skip", "pdf,mobi"])
    assert (project / "build" / "es").is_dir()

    assert main(["clean", "--project", str(project), "--lang", "es"]) == 0

    assert not (project / "build" / "es").exists()
    assert (project / "build" / "en").is_dir()


def test_validate_passes_with_tools(project, monkeypatch) -> None:
    monkeypatch.setattr(validate, "find_tool", lambda name: f"/usr/bin/{name}")
    assert main(["validate", "--project", str(project)]) == 0


def test_validate_fails_without_pandoc(project, monkeypatch, capsys) -> None:
    monkeypatch.setattr(validate, "find_tool", lambda name: None if name == "pandoc" else name)

    assert main(["validate", "--project", str(project)]) == 1
    assert "pandoc is required" in capsys.readouterr().out


def test_validate_reports_bad_yaml(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(validate, "find_tool", lambda name: name)
    (tmp_path / "book").mkdir()
    (tmp_path / "book.yaml").write_text("title: [broken\n")

    assert main(["validate", "--project", str(tmp_path)]) == 1


def test_clean_accepts_comma_separated_languages(project, fake_run) -> None:
    main(["--project", str(project), "--all-languages", "--skip", "pdf,mobi"])

    assert main(["clean", "--project", str(project), "--lang", "en,es"]) == 0

    assert not (project / "build" / "en").exists()
    assert not (project / "build" / "es").exists()
