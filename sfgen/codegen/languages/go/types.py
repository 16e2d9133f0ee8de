"""
Go type expression encoding.

Renders the type model of ``core.schema`` as gofmt-style Go source text
and collects the import paths the text depends on.
"""

from dataclasses import dataclass
from typing import List, Tuple

from ...core.errors import EncodingError
from ...core.schema import (
    ArrayType,
    BasicType,
    ChanDirection,
    ChanType,
    GoType,
    InterfaceType,
    MapType,
    NamedType,
    PointerType,
    SignatureType,
    SliceType,
    StructType,
    TypeParamType,
    UnsupportedType,
)

# Type parameters are rendered as the universal constraint
TYPE_PARAM_PLACEHOLDER = "any"


@dataclass(frozen=True)
class EncodedType:
    """
    Rendered type text and its required imports.

    ``references`` holds import paths, deduplicated, in first-seen order.
    """

    text: str
    references: Tuple[str, ...] = ()

    def __str__(self) -> str:
        return self.text


class GoTypeEncoder:
    """Encodes Go types relative to the package the text will live in."""

    def encode(self, go_type: GoType, home_path: str) -> EncodedType:
        """
        Encode a type.

        Named types declared in ``home_path`` are written unqualified; all
        others are qualified with their package name and reference their
        import path.

        Args:
            go_type: Type to render
            home_path: Import path of the package the text is relative to

        Returns:
            EncodedType with gofmt-normalized text and its references

        Raises:
            EncodingError: For struct literals, non-empty interfaces and
                unsupported type shapes
        """
        references: List[str] = []
        text = self._encode(go_type, home_path, references)
        return EncodedType(text, tuple(references))

    def _encode(self, go_type: GoType, home_path: str, references: List[str]) -> str:
        if isinstance(go_type, BasicType):
            return go_type.name

        if isinstance(go_type, PointerType):
            return "*" + self._encode(go_type.elem, home_path, references)

        if isinstance(go_type, SliceType):
            return "[]" + self._encode(go_type.elem, home_path, references)

        if isinstance(go_type, ArrayType):
            return f"[{go_type.length}]" + self._encode(go_type.elem, home_path, references)

        if isinstance(go_type, MapType):
            key = self._encode(go_type.key, home_path, references)
            elem = self._encode(go_type.elem, home_path, references)
            return f"map[{key}]{elem}"

        if isinstance(go_type, ChanType):
            return self._encode_chan(go_type, home_path, references)

        if isinstance(go_type, SignatureType):
            return "func" + self._encode_signature(go_type, home_path, references)

        if isinstance(go_type, TypeParamType):
            return TYPE_PARAM_PLACEHOLDER

        if isinstance(go_type, NamedType):
            return self._encode_named(go_type, home_path, references)

        if isinstance(go_type, StructType):
            raise EncodingError("unsupported type: anonymous struct types cannot be encoded")

        if isinstance(go_type, InterfaceType):
            raise EncodingError(f"unsupported type: {go_type.text}")

        if isinstance(go_type, UnsupportedType):
            raise EncodingError(f"unsupported type: {go_type.description}")

        raise EncodingError(f"unsupported type: {go_type!r}")

    def _encode_chan(self, go_type: ChanType, home_path: str, references: List[str]) -> str:
        elem = self._encode(go_type.elem, home_path, references)

        if go_type.direction is ChanDirection.SEND:
            return f"chan<- {elem}"
        if go_type.direction is ChanDirection.RECV:
            return f"<-chan {elem}"

        # "chan <-chan T" would parse as a send-only channel of "chan T"
        if isinstance(go_type.elem, ChanType) and go_type.elem.direction is ChanDirection.RECV:
            return f"chan ({elem})"
        return f"chan {elem}"

    def _encode_signature(self, go_type: SignatureType, home_path: str, references: List[str]) -> str:
        params = []
        for index, param in enumerate(go_type.params):
            is_last = index == len(go_type.params) - 1
            if go_type.variadic and is_last and isinstance(param, SliceType):
                params.append("..." + self._encode(param.elem, home_path, references))
            else:
                params.append(self._encode(param, home_path, references))

        results = [self._encode(result, home_path, references) for result in go_type.results]

        text = f"({', '.join(params)})"
        if len(results) == 1:
            text += f" {results[0]}"
        elif results:
            text += f" ({', '.join(results)})"
        return text

    def _encode_named(self, go_type: NamedType, home_path: str, references: List[str]) -> str:
        name = go_type.name
        if go_type.package_path and go_type.package_path != home_path:
            name = f"{go_type.package_name}.{name}"
            if go_type.package_path not in references:
                references.append(go_type.package_path)

        if go_type.type_args:
            args = [self._encode(arg, home_path, references) for arg in go_type.type_args]
            name += f"[{', '.join(args)}]"
        return name
