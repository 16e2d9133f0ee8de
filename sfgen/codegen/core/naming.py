"""
Naming engine for generated identifiers.

Derives the base name shared by a request's constants and generated
type, the per-field constant names, and the default output file name.
All functions are pure.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import NamingOptions


FIELD_SUFFIX = "Field"


def force_first_char_case(value: str, upper: bool) -> str:
    """Return ``value`` with its first character upper- or lower-cased."""
    if not value:
        return value
    first = value[0].upper() if upper else value[0].lower()
    return first + value[1:]


def unqualified(struct_name: str) -> str:
    """Strip a leading package qualifier: ``models.Person`` -> ``Person``."""
    return struct_name.rsplit(".", 1)[-1]


def calculate_base_name(naming: "NamingOptions", struct_name: str, tag: str = "") -> str:
    """
    Compute the base name for a request.

    The explicit prefix wins. Otherwise the name is the tag key followed
    by ``Field``, preceded by the struct name when requested. The tag key
    is upper-cased when exporting or including the struct name, and
    lower-cased otherwise. The first character finally follows the export
    flag, which is the only exported/unexported signal in Go.

    Args:
        naming: Naming options of the request
        struct_name: Source struct name, optionally package-qualified
        tag: Struct tag key the constants are read from

    Returns:
        Base name, e.g. ``DBField`` or ``personDBField``
    """
    if naming.export or naming.include_struct_name:
        cased_tag = tag.upper()
    else:
        cased_tag = tag.lower()

    if naming.prefix is not None:
        prefix = naming.prefix
    elif naming.include_struct_name:
        prefix = unqualified(struct_name) + cased_tag + FIELD_SUFFIX
    else:
        prefix = cased_tag + FIELD_SUFFIX

    return force_first_char_case(prefix, naming.export)


def constant_name(base_name: str, identifier: str) -> str:
    """Name of the constant generated for a field."""
    return base_name + identifier


def receiver_name(base_name: str) -> str:
    """Receiver identifier used by methods on the generated type."""
    return base_name[:1].lower()


def default_output_file(struct_name: str, base_name: str) -> str:
    """Default file name: ``<struct>_<base>_generated.go``, lower-cased."""
    return f"{unqualified(struct_name).lower()}_{base_name.lower()}_generated.go"
