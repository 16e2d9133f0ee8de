"""
Struct resolver.

Flattens a named struct, embedded structs included, into the ordered list
of constants a request generates. Constant values come from the field's
``sfgen`` override, the configured struct tag, or the field identifier.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Set, Tuple

from ...logging_config import get_logger
from ..languages.go.tags import StructTags, TagSyntaxError, parse_override
from ..languages.go.types import GoTypeEncoder
from .catalog import PackageCatalog
from .config import GenerationRequest
from .errors import EncodingError, ResolutionError
from .naming import calculate_base_name, constant_name
from .schema import (
    GoPackage,
    NamedType,
    PointerType,
    RecordField,
    RecordType,
    ResolvedField,
    ResolvedStruct,
    StructType,
    UnsupportedType,
)

logger = get_logger(__name__)

# Tag value that excludes a field from generation
IGNORED_VALUE = "-"


@dataclass(frozen=True)
class _Candidate:
    """A field that produced a constant, before type encoding."""

    field: RecordField
    constant_name: str
    constant_value: str


class StructResolver:
    """Resolves generation requests against a loaded package catalog."""

    def __init__(self, catalog: PackageCatalog, encoder: Optional[GoTypeEncoder] = None):
        """
        Initialize resolver.

        Args:
            catalog: Frozen catalog holding every requested package
            encoder: Type encoder used for the emitted fields
        """
        self.catalog = catalog
        self.encoder = encoder or GoTypeEncoder()

    def resolve(self, request: GenerationRequest) -> ResolvedStruct:
        """
        Resolve one request into its ordered constants.

        Raises:
            ResolutionError: If the package or struct cannot be found, or a
                field's tag or the capture expression is malformed
            EncodingError: If an emitted field has an unsupported type
        """
        package = self.catalog.get(request.source)
        if package is None:
            raise ResolutionError(f"package {request.source} was not loaded")

        record = self.find_record(package, request.struct_name)
        base_name = calculate_base_name(request.naming, request.struct_name, request.tag)
        pattern = self._compile_pattern(request)

        try:
            candidates = self._collect(
                package,
                record.fields,
                request,
                base_name,
                pattern,
                path=((record.package_path, record.name),),
            )
        except ResolutionError as e:
            raise ResolutionError(f"failed to parse struct {request.struct_name}: {e}") from e

        fields = []
        for candidate in candidates:
            try:
                encoded = self.encoder.encode(candidate.field.type, record.package_path)
            except EncodingError as e:
                raise EncodingError(
                    f"field {candidate.field.identifier} of struct {request.struct_name}: {e}"
                ) from e
            fields.append(
                ResolvedField(
                    identifier=candidate.field.identifier,
                    constant_name=candidate.constant_name,
                    constant_value=candidate.constant_value,
                    type_text=encoded.text,
                    references=encoded.references,
                )
            )

        logger.debug("Resolved %s into %d constant(s)", request.struct_name, len(fields))
        return ResolvedStruct(
            struct_name=request.struct_name,
            package_path=record.package_path,
            base_name=base_name,
            fields=tuple(fields),
        )

    def find_record(self, package: GoPackage, struct_name: str) -> RecordType:
        """
        Look up a named struct type.

        A qualified name such as ``models.Person`` is retried without its
        qualifier. Alias and named type chains are followed.
        """
        declaration = package.lookup(struct_name)
        if declaration is None and "." in struct_name:
            declaration = package.lookup(struct_name.split(".", 1)[1])
        if declaration is None:
            raise ResolutionError(f"type {struct_name} not found in package {package.directory}#{package.name}")

        named = NamedType(declaration.package_path, package.name, declaration.name)
        struct_type = package.underlying_struct(named)
        if struct_type is None:
            raise ResolutionError(f"cannot use type {struct_name}, only named struct types are supported")

        return RecordType(declaration.name, declaration.package_path, struct_type.fields)

    def _compile_pattern(self, request: GenerationRequest) -> Optional[Pattern]:
        if not request.tag_regex:
            return None
        try:
            return re.compile(request.tag_regex)
        except re.error as e:
            raise ResolutionError(f"failed to compile regex expression {request.tag_regex!r}: {e}") from e

    def _collect(
        self,
        package: GoPackage,
        fields: Tuple[RecordField, ...],
        request: GenerationRequest,
        base_name: str,
        pattern: Optional[Pattern],
        path: Tuple[Tuple[str, str], ...],
    ) -> List[_Candidate]:
        """
        Walk one struct level.

        Direct fields come first in declaration order, followed by the
        fields promoted from embedded structs that no direct field shadows.
        Among embedded structs the first declared one wins a name.
        """
        direct: List[_Candidate] = []
        promoted: List[_Candidate] = []

        for record_field in fields:
            if not record_field.exported and not request.include_unexported_fields:
                logger.debug("Skipping unexported field %s", record_field.identifier)
                continue

            value = self.constant_value(record_field, request, pattern)
            if value == IGNORED_VALUE:
                logger.debug("Skipping ignored field %s", record_field.identifier)
                continue

            embedded = self._embedded_struct(package, record_field)
            if embedded is not None:
                key, struct_type = embedded
                if key in path:
                    logger.debug("Not entering %s again through %s", key[1], record_field.identifier)
                    continue
                promoted.extend(
                    self._collect(package, struct_type.fields, request, base_name, pattern, path + (key,))
                )
                continue

            direct.append(_Candidate(record_field, constant_name(base_name, record_field.identifier), value))

        taken: Set[str] = {candidate.constant_name for candidate in direct}
        for candidate in promoted:
            if candidate.constant_name in taken:
                logger.debug("Field %s is shadowed", candidate.field.identifier)
                continue
            taken.add(candidate.constant_name)
            direct.append(candidate)

        return direct

    def _embedded_struct(
        self, package: GoPackage, record_field: RecordField
    ) -> Optional[Tuple[Tuple[str, str], StructType]]:
        """Return the identity and struct type of an embedded struct field."""
        if not record_field.embedded:
            return None

        field_type = record_field.type
        if isinstance(field_type, PointerType):
            field_type = field_type.elem
        if not isinstance(field_type, NamedType):
            return None

        underlying = package.underlying(field_type)
        if underlying is None:
            raise ResolutionError(
                f"cannot flatten embedded field {record_field.identifier}: declaration of "
                f"{field_type.package_name}.{field_type.name} was not loaded"
            )
        if isinstance(underlying, UnsupportedType):
            raise ResolutionError(
                f"cannot flatten embedded field {record_field.identifier}: {underlying.description}"
            )
        if not isinstance(underlying, StructType):
            return None
        return (field_type.package_path, field_type.name), underlying

    def constant_value(
        self,
        record_field: RecordField,
        request: GenerationRequest,
        pattern: Optional[Pattern] = None,
    ) -> str:
        """
        Compute the constant value of a field.

        Precedence: a non-empty ``sfgen`` override, then the configured
        tag (its first capture group when a pattern is set, else its name),
        then the field identifier.
        """
        try:
            tags = StructTags.parse(record_field.tag)
        except TagSyntaxError as e:
            raise ResolutionError(
                f"failed to parse struct tags for field {record_field.identifier}: {e}"
            ) from e

        override = parse_override(tags, request.tag)
        if override is not None:
            return override

        value = record_field.identifier
        if not request.tag:
            return value

        entry = tags.get(request.tag)
        if entry is None:
            return value

        if pattern is not None:
            if entry.value:
                match = pattern.search(entry.value)
                if match is not None and pattern.groups >= 1:
                    value = match.group(1) or ""
            return value

        return entry.name or value
