from functools import partial

import pytest

from sfgen.codegen import generate, render_files
from sfgen.codegen.core.config import GenerateEnvironment
from sfgen.codegen.core.generator import GenerationResult
from sfgen.codegen.core.schema import ResolvedField, ResolvedStruct
from sfgen.codegen.languages.go.generator import GoGenerator
from sfgen.codegen.languages.go.loader import load_package

TYPED_PERSON = """\
// Code generated by sfgen; DO NOT EDIT.

package models

// DBCol is a strong type generated from Person. Its type is used for all of its related generated constants.
type DBCol string

// String implements the [fmt.Stringer] interface.
func (d DBCol) String() string { return string(d) }

// All was generated from the [Person] struct. It returns an array of all [DBCol]'s associated constant values.
func (d DBCol) All() [2]string {
\treturn [2]string{
\t\t"full_name",
\t\t"age",
\t}
}

// Constants generated from [Person] struct fields.
const (
\tDBColFullName DBCol = "full_name"
\tDBColAge      DBCol = "age"
)
"""


@pytest.fixture
def generator():
    return GoGenerator()


@pytest.fixture
def render(person_package, config_manager, build_context):
    """Generate and render the Person struct with request options."""

    def run(environment=None, **options):
        request = config_manager(person_package).build_request({"struct": "Person", **options})
        results = generate([request], loader=partial(load_package, build_context=build_context))
        return render_files(results, environment or GenerateEnvironment())[request.output.path]

    return run


def resolved_person(type_text="string", references=()):
    return ResolvedStruct(
        struct_name="Person",
        package_path="example.com/app/models",
        base_name="personField",
        fields=(
            ResolvedField("ID", "personFieldID", "id", type_text, references),
            ResolvedField("Name", "personFieldName", "name", "string"),
        ),
    )


def test_typed_style_with_all(render):
    content = render(tag="db", prefix="DBCol", export=True, style="typed", iter=True)
    assert content == TYPED_PERSON


def test_without_style(render):
    content = render(tag="db", prefix="DBCol", export=True)

    assert "type DBCol" not in content
    assert "func (d DBCol) All()" not in content
    assert '\tDBColFullName = "full_name"\n\tDBColAge      = "age"\n' in content


def test_alias_style(render):
    content = render(tag="db", style="alias")

    assert "type dbField = string\n" in content
    assert "String()" not in content
    assert '\tdbFieldFullName dbField = "full_name"\n' in content


def test_generic_style(render):
    content = render(tag="db", style="generic", iter=True)

    assert "type dbField[T any] string\n" in content
    assert "func (d dbField[T]) String() string { return string(d) }\n" in content
    assert "func (d dbField[T]) All() [2]string {\n" in content
    assert '\tdbFieldFullName dbField[string] = "full_name"\n' in content
    assert '\tdbFieldAge      dbField[int]    = "age"\n' in content


def test_source_line_from_environment(render):
    environment = GenerateEnvironment(package="models", file="person.go", line="12")
    content = render(environment, tag="db")

    assert content.startswith(
        "// Code generated by sfgen; DO NOT EDIT.\n\n// Source models.person.go:12\n\npackage models\n"
    )


def test_out_package(render):
    assert "\npackage consts\n" in render(out_pkg="consts")


def test_generic_fragment_references(generator, config_manager, tmp_path):
    request = config_manager(tmp_path).build_request({"struct": "Person", "style": "generic"})
    fragment = generator.render_fragment(
        request, resolved_person("uuid.UUID", ("github.com/google/uuid",))
    )

    assert fragment.references == ("github.com/google/uuid",)
    assert 'personFieldID   personField[uuid.UUID] = "id"' in fragment.text


def test_typed_fragment_has_no_references(generator, config_manager, tmp_path):
    request = config_manager(tmp_path).build_request({"struct": "Person", "style": "typed"})
    fragment = generator.render_fragment(request, resolved_person("uuid.UUID", ("github.com/google/uuid",)))

    assert fragment.references == ()


def test_struct_without_fields(generator, config_manager, tmp_path):
    request = config_manager(tmp_path).build_request({"struct": "Empty", "style": "typed", "iter": True})
    fragment = generator.render_fragment(request, ResolvedStruct("Empty", "p", "field"))

    assert "const (" not in fragment.text
    assert "return [0]string{}" in fragment.text


def test_file_imports_are_sorted(generator):
    result = GenerationResult(
        path="/out/a.go",
        package="models",
        fragments=(),
        references=("time", "github.com/google/uuid", "example.com/app/base"),
    )
    content = generator.render_file(result, GenerateEnvironment())

    assert content == (
        "// Code generated by sfgen; DO NOT EDIT.\n"
        "\n"
        "package models\n"
        "\n"
        "import (\n"
        '\t"example.com/app/base"\n'
        '\t"github.com/google/uuid"\n'
        '\t"time"\n'
        ")\n"
    )


def test_tool_name_is_configurable():
    generator = GoGenerator({"tool_name": "go-sfgen"})
    result = GenerationResult(path="/out/a.go", package="models", fragments=())

    assert generator.render_file(result, GenerateEnvironment()).startswith(
        "// Code generated by go-sfgen; DO NOT EDIT.\n"
    )


def test_configured_templates_replace_directory_templates():
    generator = GoGenerator({"templates": {"file.go.j2": "package {{ package }} // {{ tool_name }}\n"}})
    result = GenerationResult(path="/out/a.go", package="models", fragments=())

    assert generator.render_file(result, GenerateEnvironment()) == "package models // sfgen\n"
    assert "String()" in generator.render_template(
        "strong_type.go.j2", {"style": "typed", "base_name": "Col", "receiver": "c", "description": "Col."}
    )
