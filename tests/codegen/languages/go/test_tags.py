import pytest

from sfgen.codegen.languages.go.tags import StructTags, TagSyntaxError, parse_override


class TestStructTags:
    def test_parse_pairs(self):
        tags = StructTags.parse('json:"name,omitempty" db:"full_name"')

        assert tags.keys() == ("json", "db")
        assert len(tags) == 2

        entry = tags.get("json")
        assert entry.name == "name"
        assert entry.options == ("omitempty",)
        assert entry.value == "name,omitempty"
        assert tags.get("db").value == "full_name"

    def test_missing_key(self):
        assert StructTags.parse('db:"x"').get("json") is None

    def test_empty_tag(self):
        assert len(StructTags.parse("")) == 0

    def test_first_entry_wins(self):
        assert StructTags.parse('db:"first" db:"second"').get("db").name == "first"

    def test_escaped_quote_in_value(self):
        assert StructTags.parse('a:"x\\"y"').get("a").name == 'x"y'

    def test_extra_spaces(self):
        tags = StructTags.parse('  a:"1"   b:"2"  ')
        assert tags.keys() == ("a", "b")

    @pytest.mark.parametrize(
        "tag, message",
        [
            (':"x"', "key"),
            ("json", "pair"),
            ("json:name", "value"),
            ('json:"unterminated', "value"),
        ],
    )
    def test_malformed(self, tag, message):
        with pytest.raises(TagSyntaxError, match=message):
            StructTags.parse(tag)


class TestParseOverride:
    def test_plain_override_applies_to_every_key(self):
        tags = StructTags.parse('db:"age" sfgen:"years"')
        assert parse_override(tags, "db") == "years"
        assert parse_override(tags, "") == "years"

    def test_key_specific_override(self):
        tags = StructTags.parse('sfgen:"base,db:col json:field"')

        assert parse_override(tags, "db") == "col"
        assert parse_override(tags, "json") == "field"
        assert parse_override(tags, "xml") == "base"

    def test_empty_override_is_absent(self):
        assert parse_override(StructTags.parse('sfgen:""'), "db") is None
        assert parse_override(StructTags.parse('db:"x"'), "db") is None

    def test_key_specific_only(self):
        tags = StructTags.parse('sfgen:",db:col"')

        assert parse_override(tags, "db") == "col"
        assert parse_override(tags, "json") is None

    def test_empty_key_specific_value_is_ignored(self):
        tags = StructTags.parse('sfgen:"base,db:"')
        assert parse_override(tags, "db") == "base"
