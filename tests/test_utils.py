import io

import pytest
from rich.console import Console
from rich.text import Text

from sfgen.codegen.core.errors import OutputError
from sfgen.codegen.core.generator import GenerationResult
from sfgen.utils import print_dry_run, write_generated_file, write_outputs

CONTENT = "// Code generated by sfgen; DO NOT EDIT.\n\npackage models\n"


def result_for(path, dry_run=False):
    return GenerationResult(path=str(path), package="models", fragments=(), dry_run=dry_run)


def test_write_creates_missing_directories(tmp_path):
    path = tmp_path / "nested" / "dir" / "a.go"

    assert write_generated_file(path, CONTENT) == path
    assert path.read_text(encoding="utf-8") == CONTENT


def test_write_replaces_existing_file(tmp_path):
    path = tmp_path / "a.go"
    path.write_text("old content that is longer than the new one\n", encoding="utf-8")

    write_generated_file(path, CONTENT)
    assert path.read_text(encoding="utf-8") == CONTENT


def test_write_failure_raises_output_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")

    with pytest.raises(OutputError, match="failed to write to out file"):
        write_generated_file(blocker / "a.go", CONTENT)


def test_dry_run_without_terminal_prints_raw_content(capsys):
    print_dry_run(CONTENT, "/out/a.go", Console(file=io.StringIO()))
    assert capsys.readouterr().out == CONTENT


def test_dry_run_on_terminal_highlights(capsys):
    buffer = io.StringIO()
    print_dry_run(CONTENT, "/out/a.go", Console(file=buffer, force_terminal=True, color_system="truecolor", width=120))

    assert capsys.readouterr().out == ""
    raw = buffer.getvalue()
    assert "\x1b[" in raw

    rendered = Text.from_ansi(raw).plain
    assert "/out/a.go" in rendered
    assert "package models" in rendered


def test_write_outputs_skips_dry_runs(tmp_path, capsys):
    written_path = str(tmp_path / "written.go")
    printed_path = str(tmp_path / "printed.go")
    rendered = {written_path: CONTENT, printed_path: CONTENT.replace("models", "printed")}
    results = {written_path: result_for(written_path), printed_path: result_for(printed_path, dry_run=True)}

    written = write_outputs(rendered, results, Console(file=io.StringIO()))

    assert [str(path) for path in written] == [written_path]
    assert not (tmp_path / "printed.go").exists()
    assert "package printed" in capsys.readouterr().out
