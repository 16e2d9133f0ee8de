"""
Declaration-level view of Go source files.

Go sources are parsed with tree-sitter. This module checks the syntax,
reads the package clause and imports, and collects every type spec with
its syntax node; the loader turns those nodes into the type model.
Function, variable and constant declarations are not inspected.
"""

import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

import tree_sitter_go
from tree_sitter import Language, Node, Parser

from ...core.errors import LoadError

GO_LANGUAGE = Language(tree_sitter_go.language())

_DECLARATIONS = {
    "function_declaration",
    "method_declaration",
    "type_declaration",
    "var_declaration",
    "const_declaration",
}

_SIMPLE_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    "'": "'",
    '"': '"',
}

_ESCAPE_RE = re.compile(
    r"\\(?:(?P<simple>[abfnrtv\\'\"])|x(?P<hex>[0-9a-fA-F]{2})|(?P<octal>[0-7]{3})"
    r"|u(?P<u16>[0-9a-fA-F]{4})|U(?P<u32>[0-9a-fA-F]{8})|(?P<bad>.?))",
    re.DOTALL,
)


@dataclass(frozen=True)
class ImportDecl:
    path: str
    name: Optional[str] = None
    line: int = 0


@dataclass(frozen=True)
class TypeParam:
    name: str
    constraint: str


@dataclass(frozen=True, eq=False)
class TypeSpec:
    """A ``type`` spec; ``type`` is the tree-sitter node of its type expression."""

    name: str
    type: Node
    type_params: Tuple[TypeParam, ...] = ()
    is_alias: bool = False
    line: int = 0


@dataclass(frozen=True, eq=False)
class ParsedFile:
    path: str
    package: str
    source: bytes
    imports: Tuple[ImportDecl, ...] = ()
    types: Tuple[TypeSpec, ...] = ()

    def text(self, node: Node) -> str:
        return self.source[node.start_byte : node.end_byte].decode("utf-8")


def line_of(node: Node) -> int:
    return node.start_point[0] + 1


def named_children(node: Node) -> List[Node]:
    """Named children of a node, comments left out."""
    return [child for child in node.named_children if child.type != "comment"]


def unquote(literal: str) -> str:
    """
    Decode a Go string literal, interpreted or raw.

    Raises:
        ValueError: If the literal is not a valid Go string literal
    """
    if len(literal) < 2 or literal[0] != literal[-1] or literal[0] not in "`\"":
        raise ValueError(f"invalid string literal {literal!r}")

    body = literal[1:-1]
    if literal[0] == "`":
        # Carriage returns are discarded from raw string literals
        return body.replace("\r", "")

    if "\n" in body:
        raise ValueError(f"newline in string literal {literal!r}")

    def replace(match: "re.Match[str]") -> str:
        if match.group("simple"):
            return _SIMPLE_ESCAPES[match.group("simple")]
        if match.group("hex"):
            return chr(int(match.group("hex"), 16))
        if match.group("octal"):
            return chr(int(match.group("octal"), 8))
        code = match.group("u16") or match.group("u32")
        if code and int(code, 16) <= 0x10FFFF:
            return chr(int(code, 16))
        raise ValueError(f"invalid escape sequence in {literal!r}")

    # Unescaped quotes are invalid inside an interpreted literal
    if re.search(r'(?<!\\)(?:\\\\)*"', body):
        raise ValueError(f"unescaped quote in {literal!r}")

    return _ESCAPE_RE.sub(replace, body)


def embedded_name(node: Node, source: bytes) -> Optional[str]:
    """Identifier an embedded field takes from its type node."""
    if node.type == "generic_type":
        node = node.child_by_field_name("type")
    if node is not None and node.type == "qualified_type":
        node = node.child_by_field_name("name")
    if node is None or node.type != "type_identifier":
        return None
    return source[node.start_byte : node.end_byte].decode("utf-8")


class GoFileParser:
    """Reads the declarations of one file from its tree-sitter syntax tree."""

    def __init__(self, source: bytes, filename: str = "<source>"):
        self.source = source
        self.filename = filename

    def error(self, node: Node, message: str) -> LoadError:
        row, column = node.start_point
        return LoadError(f"{self.filename}:{row + 1}:{column + 1}: {message}")

    def text(self, node: Node) -> str:
        return self.source[node.start_byte : node.end_byte].decode("utf-8")

    def string_value(self, node: Node) -> str:
        try:
            return unquote(self.text(node))
        except ValueError as e:
            raise self.error(node, str(e)) from e

    def parse(self) -> ParsedFile:
        # Parsers are cheap and not safe to share between loader threads
        tree = Parser(GO_LANGUAGE).parse(self.source)
        root = tree.root_node
        if root.has_error:
            raise self.syntax_error(root)

        top_level = named_children(root)
        if not top_level or top_level[0].type != "package_clause":
            node = top_level[0] if top_level else root
            raise self.error(node, "expected 'package' clause")

        package = self.text(named_children(top_level[0])[0])
        imports: List[ImportDecl] = []
        types: List[TypeSpec] = []
        seen_declaration = False

        for node in top_level[1:]:
            if node.type == "import_declaration":
                if seen_declaration:
                    raise self.error(node, "imports must appear before other declarations")
                imports.extend(self.import_specs(node))
            elif node.type in _DECLARATIONS:
                seen_declaration = True
                if node.type == "type_declaration":
                    types.extend(self.type_specs(node))
            else:
                raise self.error(node, "non-declaration statement outside function body")

        return ParsedFile(self.filename, package, self.source, tuple(imports), tuple(types))

    def syntax_error(self, root: Node) -> LoadError:
        node = _first_error(root)
        if node.is_missing:
            return self.error(node, f"syntax error: missing {node.type!r}")
        snippet = self.text(node).strip().splitlines()
        found = repr(snippet[0][:20]) if snippet else "end of file"
        return self.error(node, f"syntax error: unexpected {found}")

    def import_specs(self, declaration: Node) -> Iterator[ImportDecl]:
        for node in named_children(declaration):
            specs = named_children(node) if node.type == "import_spec_list" else [node]
            for spec in specs:
                path_node = spec.child_by_field_name("path")
                path = self.string_value(path_node)
                if not path:
                    raise self.error(path_node, "invalid import path: empty")
                name_node = spec.child_by_field_name("name")
                name = self.text(name_node) if name_node is not None else None
                yield ImportDecl(path, name, line_of(spec))

    def type_specs(self, declaration: Node) -> Iterator[TypeSpec]:
        for spec in named_children(declaration):
            if spec.type not in ("type_spec", "type_alias"):
                continue
            params_node = spec.child_by_field_name("type_parameters")
            yield TypeSpec(
                name=self.text(spec.child_by_field_name("name")),
                type=spec.child_by_field_name("type"),
                type_params=self.type_params(params_node) if params_node is not None else (),
                is_alias=spec.type == "type_alias",
                line=line_of(spec),
            )

    def type_params(self, node: Node) -> Tuple[TypeParam, ...]:
        params = []
        for declaration in named_children(node):
            constraint = self.text(declaration.child_by_field_name("type"))
            for name in declaration.children_by_field_name("name"):
                params.append(TypeParam(self.text(name), constraint))
        return tuple(params)


def _first_error(node: Node) -> Node:
    """Depth-first search for the first ERROR or MISSING node."""
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error or child.is_missing:
            return _first_error(child)
    return node


def parse_source(source, filename: str = "<source>") -> ParsedFile:
    """
    Parse the declarations of one Go file.

    Args:
        source: File content as text or UTF-8 bytes
        filename: Path used in error messages

    Raises:
        LoadError: On syntax errors, with file:line:column context
    """
    if isinstance(source, str):
        source = source.encode("utf-8")
    return GoFileParser(source, filename).parse()
