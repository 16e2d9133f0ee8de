"""
Core data structures shared by the loader, resolver and generators.

Go types are modelled as a closed set of immutable variants. A loaded
package is a read-only symbol table of type declarations that can
resolve named types, including those declared in the packages its
embedded fields were loaded from.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple, Union


@dataclass(frozen=True)
class SourceLocation:
    """Identity of one package load: two equal locations share one load."""

    directory: str
    package: str = ""
    include_tests: bool = False

    def __str__(self) -> str:
        label = self.directory
        if self.package:
            label = f"{label}#{self.package}"
        if self.include_tests:
            label = f"{label} (with tests)"
        return label


class ChanDirection(Enum):
    """Direction of a channel type."""

    BOTH = "both"
    SEND = "send"
    RECV = "recv"


@dataclass(frozen=True)
class BasicType:
    """Predeclared type such as ``int``, ``string``, ``error`` or ``any``."""

    name: str


@dataclass(frozen=True)
class PointerType:
    elem: "GoType"


@dataclass(frozen=True)
class SliceType:
    elem: "GoType"


@dataclass(frozen=True)
class ArrayType:
    length: str
    elem: "GoType"


@dataclass(frozen=True)
class MapType:
    key: "GoType"
    elem: "GoType"


@dataclass(frozen=True)
class ChanType:
    direction: ChanDirection
    elem: "GoType"


@dataclass(frozen=True)
class SignatureType:
    """Function type. When ``variadic`` is set the last param is a slice."""

    params: Tuple["GoType", ...] = ()
    results: Tuple["GoType", ...] = ()
    variadic: bool = False


@dataclass(frozen=True)
class TypeParamType:
    name: str


@dataclass(frozen=True)
class NamedType:
    """
    Reference to a declared type.

    ``package_path`` is the import path of the declaring package and
    ``package_name`` the identifier used to qualify it from elsewhere.
    """

    package_path: str
    package_name: str
    name: str
    type_args: Tuple["GoType", ...] = ()


@dataclass(frozen=True)
class RecordField:
    """A single struct field, in declaration order."""

    identifier: str
    type: "GoType"
    tag: str = ""
    embedded: bool = False
    exported: bool = True


@dataclass(frozen=True)
class StructType:
    fields: Tuple[RecordField, ...] = ()


@dataclass(frozen=True)
class InterfaceType:
    """Non-empty interface literal, kept as source text."""

    text: str


@dataclass(frozen=True)
class UnsupportedType:
    description: str


GoType = Union[
    BasicType,
    PointerType,
    SliceType,
    ArrayType,
    MapType,
    ChanType,
    SignatureType,
    TypeParamType,
    NamedType,
    StructType,
    InterfaceType,
    UnsupportedType,
]


def substitute(go_type: GoType, mapping: Mapping[str, GoType]) -> GoType:
    """Replace type parameters by the types they are instantiated with."""
    if not mapping:
        return go_type
    if isinstance(go_type, TypeParamType):
        return mapping.get(go_type.name, go_type)
    if isinstance(go_type, (PointerType, SliceType, ArrayType, ChanType)):
        return replace(go_type, elem=substitute(go_type.elem, mapping))
    if isinstance(go_type, MapType):
        return MapType(substitute(go_type.key, mapping), substitute(go_type.elem, mapping))
    if isinstance(go_type, SignatureType):
        return replace(
            go_type,
            params=tuple(substitute(param, mapping) for param in go_type.params),
            results=tuple(substitute(result, mapping) for result in go_type.results),
        )
    if isinstance(go_type, NamedType) and go_type.type_args:
        return replace(go_type, type_args=tuple(substitute(arg, mapping) for arg in go_type.type_args))
    if isinstance(go_type, StructType):
        return StructType(
            tuple(replace(record_field, type=substitute(record_field.type, mapping)) for record_field in go_type.fields)
        )
    return go_type


@dataclass(frozen=True)
class TypeDeclaration:
    """One ``type`` spec of a package."""

    name: str
    package_path: str
    type: GoType
    type_params: Tuple[str, ...] = ()
    is_alias: bool = False


@dataclass(frozen=True)
class RecordType:
    """A named struct type resolved from a package."""

    name: str
    package_path: str
    fields: Tuple[RecordField, ...]


@dataclass(frozen=True, eq=False)
class GoPackage:
    """
    Read-only symbol table of a loaded Go package.

    ``dependencies`` maps import paths to the packages that were loaded
    alongside this one, so that embedded structs declared elsewhere can be
    flattened.
    """

    name: str
    path: str
    directory: str
    files: Tuple[str, ...] = ()
    declarations: Mapping[str, TypeDeclaration] = field(
        default_factory=lambda: MappingProxyType({})
    )
    dependencies: Mapping[str, "GoPackage"] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def lookup(self, name: str) -> Optional[TypeDeclaration]:
        """Look up a declaration of this package by name."""
        return self.declarations.get(name)

    def declaration_for(self, named: NamedType) -> Optional[TypeDeclaration]:
        """Find the declaration a named type refers to, if it was loaded."""
        if named.package_path == self.path:
            return self.declarations.get(named.name)
        dependency = self.dependencies.get(named.package_path)
        if dependency is None:
            return None
        return dependency.declarations.get(named.name)

    def underlying(self, go_type: GoType, through_pointer: bool = False) -> Optional[GoType]:
        """
        Follow named and alias types down to their underlying type.

        Returns None when the chain leaves the loaded packages or loops.
        Type arguments of a generic named type are substituted into its
        declaration.
        With ``through_pointer`` a single leading pointer is dereferenced,
        as allowed for embedded fields.
        """
        if through_pointer and isinstance(go_type, PointerType):
            go_type = go_type.elem

        seen = set()
        while isinstance(go_type, NamedType):
            key = (go_type.package_path, go_type.name)
            if key in seen:
                return None
            seen.add(key)

            declaration = self.declaration_for(go_type)
            if declaration is None:
                return None
            if declaration.type_params and go_type.type_args:
                go_type = substitute(declaration.type, dict(zip(declaration.type_params, go_type.type_args)))
            else:
                go_type = declaration.type

        return go_type

    def underlying_struct(self, go_type: GoType, through_pointer: bool = False) -> Optional[StructType]:
        underlying = self.underlying(go_type, through_pointer)
        if isinstance(underlying, StructType):
            return underlying
        return None


@dataclass(frozen=True)
class ResolvedField:
    """Naming and encoding output for one emitted struct field."""

    identifier: str
    constant_name: str
    constant_value: str
    type_text: str
    references: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ResolvedStruct:
    """A struct flattened into the ordered list of constants to generate."""

    struct_name: str
    package_path: str
    base_name: str
    fields: Tuple[ResolvedField, ...] = ()

    @property
    def values(self) -> Tuple[str, ...]:
        return tuple(f.constant_value for f in self.fields)
