"""
Go front end and code generator.

The tree-sitter parser and the loader read Go packages into the core type model;
the encoder renders types back as Go source. ``GoGenerator`` lives in
``.generator`` and is imported from there.
"""

from .loader import BuildContext, GoPaths, PackageLoader, load_package
from .parser import parse_source
from .tags import StructTags, TagEntry, parse_override
from .types import EncodedType, GoTypeEncoder

__all__ = [
    "BuildContext",
    "GoPaths",
    "PackageLoader",
    "load_package",
    "parse_source",
    "StructTags",
    "TagEntry",
    "parse_override",
    "EncodedType",
    "GoTypeEncoder",
]
