import io
import json
import shlex

import pytest
from rich.console import Console

from sfgen import cli
from sfgen.codegen.core.errors import ConfigurationError


@pytest.fixture
def output(monkeypatch):
    """Capture the status console of the CLI."""
    buffer = io.StringIO()
    monkeypatch.setattr(cli, "console", Console(file=buffer, width=300, color_system=None))
    return buffer


@pytest.fixture
def out_dir(tmp_path):
    return tmp_path / "out"


def person_args(person_package, out_dir, *extra):
    return [
        "--struct", "Person",
        "--src-dir", str(person_package),
        "--out-dir", str(out_dir),
        "--out-pkg", "models",
        *extra,
    ]


def test_generates_file(person_package, out_dir, output):
    code = cli.main(person_args(person_package, out_dir, "--tag", "db", "--prefix", "DBCol", "--export"))

    path = out_dir / "person_dbcol_generated.go"
    assert code == 0
    assert path.is_file()
    content = path.read_text(encoding="utf-8")
    assert content.startswith("// Code generated by sfgen; DO NOT EDIT.\n")
    assert '\tDBColFullName = "full_name"\n' in content
    assert f"Generated {path}" in output.getvalue()


def test_go_style_flags(person_package, out_dir, output):
    code = cli.main(
        [
            "-struct=Person",
            f"-src-dir={person_package}",
            "-tag", "db",
            "-export",
            "-include-struct-name=false",
            "-style", "typed",
            "-iter",
            "-out-pkg", "models",
            f"-out-dir={out_dir}",
        ]
    )

    assert code == 0
    content = (out_dir / "person_dbfield_generated.go").read_text(encoding="utf-8")
    assert "type DBField string\n" in content
    assert "func (d DBField) All() [2]string {\n" in content


def test_environment_supplies_package_and_source(person_package, out_dir, output, monkeypatch):
    monkeypatch.setenv("GOPACKAGE", "models")
    monkeypatch.setenv("GOFILE", "person.go")
    monkeypatch.setenv("GOLINE", "3")

    code = cli.main(["--struct", "Person", "--src-dir", str(person_package), "--out-dir", str(out_dir)])

    content = (out_dir / "person_field_generated.go").read_text(encoding="utf-8")
    assert code == 0
    assert "// Source models.person.go:3\n\npackage models\n" in content


def test_dry_run_writes_to_stdout(person_package, out_dir, output, capsys):
    code = cli.main(person_args(person_package, out_dir, "--tag", "db", "--dry-run"))

    assert code == 0
    assert not out_dir.exists()
    stdout = capsys.readouterr().out
    assert stdout.startswith("// Code generated by sfgen; DO NOT EDIT.\n")
    assert '\tdbFieldFullName = "full_name"\n' in stdout


def test_validation_errors_are_reported(output):
    code = cli.main(["--tag-regex", "x"])

    assert code == 1
    message = output.getvalue()
    assert "✗" in message
    assert "--struct is required" in message
    assert "cannot use tag regex 'x' with an empty tag" in message


def test_load_errors_are_reported(tmp_path, output):
    code = cli.main(["--struct", "Person", "--src-dir", str(tmp_path / "missing"), "--out-pkg", "models"])

    assert code == 1
    assert "source directory not found" in output.getvalue()


def test_prefix_may_only_be_given_once(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--struct", "Person", "--prefix", "A", "--prefix", "B"])

    assert excinfo.value.code == 2
    assert "flag may only be specified once" in capsys.readouterr().err


def test_invalid_boolean(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--struct", "Person", "--export=maybe"])

    assert excinfo.value.code == 2
    assert "invalid boolean value 'maybe'" in capsys.readouterr().err


def test_version(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--version"])

    assert excinfo.value.code == 0
    assert "0.1.0" in capsys.readouterr().out


class TestGenFlags:
    def gen(self, person_package, out_dir, *extra):
        args = ["--struct", "Person", "--src-dir", str(person_package), "--out-dir", str(out_dir), "--out-pkg", "models"]
        return shlex.join(args + list(extra))

    def test_several_requests(self, person_package, out_dir, output):
        code = cli.main(
            [
                "--gen", self.gen(person_package, out_dir, "--tag", "db"),
                "--gen", self.gen(person_package, out_dir, "--tag", "json", "--export"),
            ]
        )

        assert code == 0
        assert (out_dir / "person_dbfield_generated.go").is_file()
        assert (out_dir / "person_jsonfield_generated.go").is_file()

    def test_same_file_requests_are_merged(self, person_package, out_dir, output):
        code = cli.main(
            [
                "--gen", self.gen(person_package, out_dir, "--prefix", "dbCol", "--tag", "db", "--out-file", "c.go"),
                "--gen", self.gen(person_package, out_dir, "--prefix", "nameCol", "--out-file", "c.go"),
            ]
        )

        content = (out_dir / "c.go").read_text(encoding="utf-8")
        assert code == 0
        assert '\tdbColFullName = "full_name"\n' in content
        assert '\tnameColFullName = "FullName"\n' in content
        assert content.count("// Code generated by sfgen") == 1

    def test_conflicting_packages(self, person_package, out_dir, output):
        code = cli.main(
            [
                "--gen", self.gen(person_package, out_dir, "--out-file", "c.go"),
                "--gen", self.gen(person_package, out_dir, "--out-file", "c.go", "--out-pkg", "other"),
            ]
        )

        assert code == 1
        assert "invalid package values provided" in output.getvalue()
        assert not out_dir.exists()

    def test_gen_cannot_be_mixed_with_request_flags(self, person_package, out_dir, output):
        code = cli.main(["--gen", self.gen(person_package, out_dir), "--tag", "db"])

        assert code == 1
        assert "if --gen flags are used, only --gen flags may be provided" in output.getvalue()

    def test_invalid_gen_string(self, output):
        code = cli.main(["--gen", "--struct Person --bogus"])

        assert code == 1
        assert "--gen #1" in output.getvalue()
        assert "unrecognized arguments: --bogus" in output.getvalue()


class TestConfigFile:
    def test_requests_from_config(self, person_package, tmp_path, output):
        config = tmp_path / "sfgen.json"
        config.write_text(
            json.dumps(
                {
                    "defaults": {"src_dir": str(person_package), "out_pkg": "models", "out_dir": "out"},
                    "generate": [{"struct": "Person", "tag": "db"}, {"struct": "Person", "style": "alias"}],
                }
            ),
            encoding="utf-8",
        )

        code = cli.main(["--config", str(config)])

        assert code == 0
        assert (tmp_path / "out" / "person_dbfield_generated.go").is_file()
        assert (tmp_path / "out" / "person_field_generated.go").is_file()

    def test_config_cannot_be_mixed_with_request_flags(self, tmp_path, output):
        code = cli.main(["--config", str(tmp_path / "sfgen.json"), "--struct", "Person"])

        assert code == 1
        assert "if --config is used" in output.getvalue()

    def test_missing_config(self, tmp_path, output):
        assert cli.main(["--config", str(tmp_path / "missing.json")]) == 1
        assert "Configuration file not found" in output.getvalue()


def test_log_file(person_package, out_dir, tmp_path, output):
    log_file = tmp_path / "sfgen.log"
    code = cli.main(person_args(person_package, out_dir, "-v", "--log-file", str(log_file)))

    assert code == 0
    assert "Loaded package models" in log_file.read_text(encoding="utf-8")


@pytest.mark.parametrize("value, expected", [("1", True), ("True", True), ("t", True), ("0", False), ("FALSE", False)])
def test_parse_bool(value, expected):
    assert cli.parse_bool(value) is expected


def test_parse_gen_string_uses_shell_quoting():
    options = cli.parse_gen_string("--struct Person --tag-regex 'column:(\\w+)' -export")
    assert options == {"struct": "Person", "tag_regex": "column:(\\w+)", "export": True}


def test_parse_gen_string_with_unbalanced_quote():
    with pytest.raises(ConfigurationError, match="failed to parse flag string"):
        cli.parse_gen_string("--struct 'Person")
