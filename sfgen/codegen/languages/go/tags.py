"""
Struct tag parsing.

Follows the ``reflect.StructTag`` convention of space separated
``key:"value"`` pairs, where a value is a name optionally followed by
comma separated options (``json:"name,omitempty"``).
"""

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from .parser import unquote

OVERRIDE_KEY = "sfgen"


class TagSyntaxError(ValueError):
    """Raised when a raw struct tag does not follow the key:"value" grammar."""

    pass


@dataclass(frozen=True)
class TagEntry:
    """One ``key:"name,opt1,opt2"`` pair of a struct tag."""

    key: str
    name: str
    options: Tuple[str, ...] = ()

    @property
    def value(self) -> str:
        """The name and options joined back together."""
        options = ",".join(self.options)
        if options:
            return f"{self.name},{options}"
        return self.name


class StructTags:
    """Parsed struct tag; lookups return the first entry for a key."""

    def __init__(self, entries: Tuple[TagEntry, ...] = ()):
        self.entries = tuple(entries)

    def __iter__(self) -> Iterator[TagEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, key: str) -> Optional[TagEntry]:
        for entry in self.entries:
            if entry.key == key:
                return entry
        return None

    def keys(self) -> Tuple[str, ...]:
        return tuple(entry.key for entry in self.entries)

    @classmethod
    def parse(cls, tag: str) -> "StructTags":
        """
        Parse a raw (already unquoted) struct tag.

        Raises:
            TagSyntaxError: If a key, pair or quoted value is malformed
        """
        entries = []
        rest = tag
        while rest:
            rest = rest.lstrip(" ")
            if not rest:
                break

            i = 0
            while i < len(rest) and rest[i] > " " and rest[i] not in ':"\x7f':
                i += 1
            if i == 0:
                raise TagSyntaxError("bad syntax for struct tag key")
            if i + 1 >= len(rest) or rest[i] != ":":
                raise TagSyntaxError("bad syntax for struct tag pair")
            if rest[i + 1] != '"':
                raise TagSyntaxError("bad syntax for struct tag value")

            key = rest[:i]
            rest = rest[i + 1 :]

            # Scan the quoted value, honouring backslash escapes
            i = 1
            while i < len(rest) and rest[i] != '"':
                if rest[i] == "\\":
                    i += 1
                i += 1
            if i >= len(rest):
                raise TagSyntaxError("bad syntax for struct tag value")

            quoted = rest[: i + 1]
            rest = rest[i + 1 :]
            try:
                value = unquote(quoted)
            except ValueError as e:
                raise TagSyntaxError("bad syntax for struct tag value") from e

            name, *options = value.split(",")
            entries.append(TagEntry(key, name, tuple(options)))

        return cls(tuple(entries))


def parse_override(tags: StructTags, target_key: str) -> Optional[str]:
    """
    Read the ``sfgen`` override of a field.

    ``sfgen:"name"`` sets the constant value for every tag key, while
    ``sfgen:"name,db:col json:field"`` replaces it for the listed keys.
    Pairs for other keys and pairs with an empty value are ignored.

    Returns:
        The override value, or None when absent or empty
    """
    entry = tags.get(OVERRIDE_KEY)
    if entry is None or not entry.value:
        return None

    name, _, specifics = entry.value.strip().partition(",")
    for pair in specifics.split(" "):
        pair = pair.strip()
        if not pair:
            continue
        key, separator, value = pair.partition(":")
        if not separator or key != target_key:
            continue
        if value:
            name = value
            break

    return name or None
