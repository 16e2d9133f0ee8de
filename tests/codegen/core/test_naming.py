import pytest

from sfgen.codegen.core.config import NamingOptions
from sfgen.codegen.core.naming import (
    calculate_base_name,
    constant_name,
    default_output_file,
    force_first_char_case,
    receiver_name,
    unqualified,
)


@pytest.mark.parametrize(
    "naming, struct_name, tag, expected",
    [
        (NamingOptions(), "Person", "db", "dbField"),
        (NamingOptions(), "Person", "", "field"),
        (NamingOptions(export=True), "Person", "db", "DBField"),
        (NamingOptions(export=True), "Person", "", "Field"),
        (NamingOptions(include_struct_name=True), "Person", "db", "personDBField"),
        (NamingOptions(include_struct_name=True, export=True), "Person", "json", "PersonJSONField"),
        (NamingOptions(include_struct_name=True, export=True), "models.Person", "", "PersonField"),
        (NamingOptions(prefix="DBCol", export=True), "Person", "db", "DBCol"),
        (NamingOptions(prefix="DBCol"), "Person", "db", "dBCol"),
        (NamingOptions(prefix="col", export=True, include_struct_name=True), "Person", "db", "Col"),
    ],
)
def test_calculate_base_name(naming, struct_name, tag, expected):
    assert calculate_base_name(naming, struct_name, tag) == expected


def test_force_first_char_case():
    assert force_first_char_case("person", True) == "Person"
    assert force_first_char_case("Person", False) == "person"
    assert force_first_char_case("ÉTÉ", False) == "éTÉ"
    assert force_first_char_case("", True) == ""


def test_constant_name():
    assert constant_name("DBCol", "FullName") == "DBColFullName"
    assert constant_name("dbField", "age") == "dbFieldage"


def test_unqualified():
    assert unqualified("models.Person") == "Person"
    assert unqualified("Person") == "Person"


def test_receiver_name():
    assert receiver_name("DBCol") == "d"
    assert receiver_name("personField") == "p"


def test_default_output_file():
    assert default_output_file("Person", "DBCol") == "person_dbcol_generated.go"
    assert default_output_file("models.Person", "dbField") == "person_dbfield_generated.go"
