import pytest

from sfgen.codegen.core.templates import TemplateError, create_template_engine, go_quote


@pytest.mark.parametrize(
    "value, quoted",
    [
        ("full_name", '"full_name"'),
        ('say "hi"', '"say \\"hi\\""'),
        ("back\\slash", '"back\\\\slash"'),
        ("tab\tnew\n", '"tab\\tnew\\n"'),
        ("\x01", '"\\x01"'),
        ("\x7f", '"\\x7f"'),
        ("été", '"été"'),
        ("\u200b", '"\\u200b"'),
        ("", '""'),
    ],
)
def test_go_quote(value, quoted):
    assert go_quote(value) == quoted


def test_in_memory_templates():
    engine = create_template_engine()
    engine.add_template("const.go.j2", "const {{ name }} = {{ value|go_quote }}\n")

    assert engine.render_template("const.go.j2", {"name": "A", "value": "a"}) == 'const A = "a"\n'


def test_comment_filter():
    engine = create_template_engine()
    engine.add_template("doc.go.j2", "{{ text|comment }}")

    assert engine.render_template("doc.go.j2", {"text": "one\n\ntwo"}) == "// one\n//\n// two"


def test_missing_template_raises():
    with pytest.raises(TemplateError, match="missing.go.j2"):
        create_template_engine().render_template("missing.go.j2", {})


def test_syntax_error_raises():
    engine = create_template_engine()
    engine.add_template("bad.go.j2", "{% if %}")

    with pytest.raises(TemplateError, match="bad.go.j2"):
        engine.render_template("bad.go.j2", {})


def test_directory_templates(tmp_path):
    (tmp_path / "hello.go.j2").write_text("package {{ package }}\n", encoding="utf-8")
    engine = create_template_engine(tmp_path)

    assert engine.render_template("hello.go.j2", {"package": "models"}) == "package models\n"


def test_added_templates_keep_directory_templates(tmp_path):
    (tmp_path / "hello.go.j2").write_text("package {{ package }}\n", encoding="utf-8")
    (tmp_path / "file.go.j2").write_text("{% include 'hello.go.j2' %}", encoding="utf-8")
    engine = create_template_engine(tmp_path)
    assert engine.render_template("file.go.j2", {"package": "models"}) == "package models\n"

    engine.add_template("extra.go.j2", "// extra\n")
    engine.add_template("hello.go.j2", "package {{ package }} // replaced\n")

    assert engine.render_template("extra.go.j2", {}) == "// extra\n"
    assert engine.render_template("file.go.j2", {"package": "models"}) == "package models // replaced\n"
