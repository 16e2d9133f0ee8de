"""
Go package loader.

Reads the Go files of one directory, applies build constraints, parses
their type declarations and resolves every identifier into the type
model of ``core.schema``. Packages that embedded fields refer to are
loaded alongside, so their structs can be flattened: packages of the
same module strictly, packages of required modules (vendored, replaced
or in the module cache) and of the standard library leniently.
"""

import os
import platform
import re
import shutil
import sys
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterator, List, Mapping, Optional, Tuple

from tree_sitter import Node

from ....logging_config import get_logger
from ...core.errors import LoadError
from ...core.schema import (
    ArrayType,
    BasicType,
    ChanDirection,
    ChanType,
    GoPackage,
    GoType,
    InterfaceType,
    MapType,
    NamedType,
    PointerType,
    RecordField,
    SignatureType,
    SliceType,
    SourceLocation,
    StructType,
    TypeDeclaration,
    TypeParamType,
    UnsupportedType,
)
from .naming import GO_BUILTIN_TYPES, is_exported
from .parser import ParsedFile, embedded_name, line_of, named_children, parse_source, unquote

logger = get_logger(__name__)


KNOWN_OS = {
    "aix", "android", "darwin", "dragonfly", "freebsd", "hurd", "illumos",
    "ios", "js", "linux", "nacl", "netbsd", "openbsd", "plan9", "solaris",
    "wasip1", "windows", "zos",
}

KNOWN_ARCH = {
    "386", "amd64", "amd64p32", "arm", "armbe", "arm64", "arm64be",
    "loong64", "mips", "mipsle", "mips64", "mips64le", "mips64p32",
    "mips64p32le", "ppc", "ppc64", "ppc64le", "riscv", "riscv64", "s390",
    "s390x", "sparc", "sparc64", "wasm",
}

UNIX_OS = {
    "aix", "android", "darwin", "dragonfly", "freebsd", "hurd", "illumos",
    "ios", "linux", "netbsd", "openbsd", "solaris",
}

# OS values that also satisfy the tag of the OS they derive from
_IMPLIED_OS = {"android": "linux", "illumos": "solaris", "ios": "darwin"}

_PLATFORM_OS = {"win32": "windows", "cygwin": "windows", "darwin": "darwin"}
_PLATFORM_ARCH = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "armv7l": "arm",
    "armv6l": "arm",
    "ppc64le": "ppc64le",
    "s390x": "s390x",
    "riscv64": "riscv64",
}

_RELEASE_TAG_RE = re.compile(r"go1\.\d+\Z")
_BUILD_LINE_RE = re.compile(r"//go:build(?:\s+(.*))?\Z")
_CONSTRAINT_TOKEN_RE = re.compile(r"\s*(\(|\)|!|&&|\|\||[\w.]+)")
_MAJOR_VERSION_RE = re.compile(r"v\d+\Z")
_INT_LITERAL_RE = re.compile(r"(?:0[xX][0-9a-fA-F_]+|0[bB][01_]+|0[oO]?[0-7_]+|[1-9][0-9_]*|0)\Z")


@dataclass(frozen=True)
class BuildContext:
    """Target platform that build constraints are evaluated against."""

    goos: str
    goarch: str
    cgo: bool = False
    tags: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> "BuildContext":
        """Read GOOS, GOARCH and CGO_ENABLED, defaulting to the host platform."""
        environ = os.environ if environ is None else environ

        goos = environ.get("GOOS") or _PLATFORM_OS.get(sys.platform)
        if not goos:
            goos = re.sub(r"\d+$", "", sys.platform) or "linux"

        goarch = environ.get("GOARCH") or _PLATFORM_ARCH.get(platform.machine().lower(), "amd64")

        return cls(goos=goos, goarch=goarch, cgo=environ.get("CGO_ENABLED") == "1")

    def matches_tag(self, tag: str) -> bool:
        """Whether a single build tag holds in this context."""
        if tag == "ignore":
            return False
        if tag in self.tags:
            return True
        if tag in (self.goos, self.goarch, "gc"):
            return True
        if tag == "cgo":
            return self.cgo
        if tag == "unix":
            return self.goos in UNIX_OS
        if _IMPLIED_OS.get(self.goos) == tag:
            return True
        # Sources are assumed to target a current toolchain
        return bool(_RELEASE_TAG_RE.match(tag))

    def matches_file_name(self, file_name: str) -> bool:
        """Apply the ``_GOOS``, ``_GOARCH`` and ``_GOOS_GOARCH`` suffix rules."""
        name = file_name[: -len(".go")] if file_name.endswith(".go") else file_name
        index = name.find("_")
        if index < 0:
            return True

        parts = name[index:].split("_")
        if parts and parts[-1] == "test":
            parts = parts[:-1]

        if len(parts) >= 2 and parts[-2] in KNOWN_OS and parts[-1] in KNOWN_ARCH:
            return self.matches_tag(parts[-2]) and self.matches_tag(parts[-1])
        if parts and (parts[-1] in KNOWN_OS or parts[-1] in KNOWN_ARCH):
            return self.matches_tag(parts[-1])
        return True


def evaluate_constraint(expression: str, context: BuildContext) -> bool:
    """
    Evaluate a ``//go:build`` expression.

    Raises:
        ValueError: If the expression is malformed
    """
    tokens = []
    position = 0
    expression = expression.strip()
    while position < len(expression):
        match = _CONSTRAINT_TOKEN_RE.match(expression, position)
        if match is None:
            raise ValueError(f"invalid build constraint {expression!r}")
        tokens.append(match.group(1))
        position = match.end()

    index = 0

    def peek() -> Optional[str]:
        return tokens[index] if index < len(tokens) else None

    def take() -> str:
        nonlocal index
        token = peek()
        if token is None:
            raise ValueError(f"unexpected end of build constraint {expression!r}")
        index += 1
        return token

    def parse_or() -> bool:
        result = parse_and()
        while peek() == "||":
            take()
            result = parse_and() or result
        return result

    def parse_and() -> bool:
        result = parse_not()
        while peek() == "&&":
            take()
            result = parse_not() and result
        return result

    def parse_not() -> bool:
        token = take()
        if token == "!":
            return not parse_not()
        if token == "(":
            result = parse_or()
            if take() != ")":
                raise ValueError(f"missing ')' in build constraint {expression!r}")
            return result
        if token in (")", "&&", "||"):
            raise ValueError(f"unexpected {token!r} in build constraint {expression!r}")
        return context.matches_tag(token)

    result = parse_or()
    if peek() is not None:
        raise ValueError(f"unexpected {peek()!r} in build constraint {expression!r}")
    return result


def build_constraint(source: str) -> Optional[str]:
    """Return the ``//go:build`` expression in a file header, if any."""
    for line in source.splitlines():
        line = line.strip()
        if not line:
            continue
        if not line.startswith("//"):
            break
        match = _BUILD_LINE_RE.match(line)
        if match:
            return match.group(1) or ""
    return None


@dataclass(frozen=True)
class GoModule:
    """The module declared by a ``go.mod`` file, with its requirements."""

    path: str
    root: Path
    requires: Tuple[Tuple[str, str], ...] = ()
    replaces: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()

    def import_path(self, directory: Path) -> str:
        relative = directory.relative_to(self.root).as_posix()
        if relative == ".":
            return self.path
        return f"{self.path}/{relative}"

    def directory_for(self, import_path: str) -> Optional[Path]:
        """Directory of an import path inside this module, None when foreign."""
        if import_path == self.path:
            return self.root
        if import_path.startswith(self.path + "/"):
            return self.root / import_path[len(self.path) + 1 :]
        return None

    def requirement_for(self, import_path: str) -> Optional[Tuple[str, str]]:
        """The (module path, version) requirement that provides an import path."""
        best = None
        for module_path, version in self.requires:
            if import_path == module_path or import_path.startswith(module_path + "/"):
                if best is None or len(module_path) > len(best[0]):
                    best = (module_path, version)
        return best

    def replacement_for(self, module_path: str) -> Optional[Tuple[str, ...]]:
        for replaced, target in self.replaces:
            if replaced == module_path:
                return target
        return None


def _go_mod_directives(content: str) -> Iterator[Tuple[str, List[str]]]:
    """Yield ``(verb, arguments)`` for every go.mod directive, unfolding blocks."""
    block = None
    for raw_line in content.splitlines():
        line = raw_line.split("//", 1)[0].strip()
        if not line:
            continue
        if block is not None:
            if line == ")":
                block = None
            else:
                yield block, line.split()
            continue

        verb, _, rest = line.partition(" ")
        rest = rest.strip()
        if rest == "(":
            block = verb
        else:
            yield verb, rest.split()


def parse_go_mod(content: str, root: Path, filename: str = "go.mod") -> GoModule:
    """
    Read the module path, ``require`` and ``replace`` directives of a go.mod file.

    Raises:
        LoadError: If the file has no module directive
    """
    module_path = None
    requires = []
    replaces = []
    for verb, arguments in _go_mod_directives(content.replace("\t", " ")):
        arguments = [argument.strip("\"`") for argument in arguments]
        if verb == "module" and arguments and module_path is None:
            module_path = arguments[0]
        elif verb == "require" and len(arguments) >= 2:
            requires.append((arguments[0], arguments[1]))
        elif verb == "replace" and "=>" in arguments:
            arrow = arguments.index("=>")
            target = tuple(arguments[arrow + 1 :])
            if arrow >= 1 and target:
                replaces.append((arguments[0], target))

    if module_path is None:
        raise LoadError(f"{filename}: no module directive found")
    return GoModule(module_path, root, tuple(requires), tuple(replaces))


def find_module(directory: Path) -> Optional[GoModule]:
    """Find the module of the nearest ``go.mod`` at or above ``directory``."""
    for candidate in (directory, *directory.parents):
        go_mod = candidate / "go.mod"
        if not go_mod.is_file():
            continue

        try:
            content = go_mod.read_text(encoding="utf-8")
        except OSError as e:
            raise LoadError(f"failed to read {go_mod}: {e}") from e
        return parse_go_mod(content, candidate, str(go_mod))
    return None


def escape_module_path(path: str) -> str:
    """Case-encode a module path or version the way the module cache stores it."""
    return re.sub(r"[A-Z]", lambda match: "!" + match.group(0).lower(), path)


@dataclass(frozen=True)
class GoPaths:
    """Where the standard library sources and downloaded modules live."""

    goroot: Optional[Path] = None
    module_cache: Optional[Path] = None

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> "GoPaths":
        """Read GOROOT, GOMODCACHE and GOPATH, falling back to the ``go`` binary and ~/go."""
        environ = os.environ if environ is None else environ

        goroot = environ.get("GOROOT")
        if not goroot:
            go_binary = shutil.which("go")
            if go_binary:
                goroot = str(Path(os.path.realpath(go_binary)).parent.parent)

        module_cache = environ.get("GOMODCACHE")
        if not module_cache:
            gopath = environ.get("GOPATH", "").split(os.pathsep)[0]
            module_cache = str(Path(gopath or Path.home() / "go") / "pkg" / "mod")

        return cls(Path(goroot) if goroot else None, Path(module_cache))


def is_standard_import(import_path: str) -> bool:
    """Standard library import paths have no dot in their first element."""
    return "." not in import_path.split("/")[0]


def assumed_package_name(import_path: str) -> str:
    """Package name conventionally used for an import path."""
    elements = import_path.split("/")
    base = elements[-1]
    if _MAJOR_VERSION_RE.match(base) and len(elements) > 1:
        base = elements[-2]
    if base.startswith("go-"):
        base = base[3:]
    match = re.match(r"\w*", base)
    return match.group(0) if match else base


def normalize_array_length(length: str) -> str:
    """Render integer literal lengths in decimal and keep expressions as written."""
    if not _INT_LITERAL_RE.match(length):
        return length
    digits = length.replace("_", "")
    if len(digits) > 1 and digits[0] == "0" and digits[1] in "01234567":
        return str(int(digits, 8))
    return str(int(digits, 0))



class PackageLoader:
    """
    Loads packages for one ``SourceLocation`` and the packages its embedded
    fields refer to.

    Dependencies are memoized by import path for the lifetime of the loader.
    Packages of the main module must type-check; packages located outside it
    are read leniently, so an unsupported declaration only makes that one
    declaration opaque.
    """

    def __init__(self, context: Optional[BuildContext] = None, paths: Optional[GoPaths] = None):
        self.context = context or BuildContext.from_environ()
        self.paths = paths or GoPaths.from_environ()
        self.main_module: Optional[GoModule] = None
        self.dependencies: Dict[str, GoPackage] = {}
        self._loading: set = set()
        self._unavailable: set = set()
        self._package_names: Dict[str, str] = {}

    # Files

    def source_files(self, directory: Path, include_tests: bool) -> List[Path]:
        """List the buildable Go files of a directory."""
        if not directory.is_dir():
            raise LoadError(f"source directory not found: {directory}")

        files = []
        for path in sorted(directory.iterdir()):
            name = path.name
            if not name.endswith(".go") or name.startswith(("_", ".")) or not path.is_file():
                continue
            if name.endswith("_test.go") and not include_tests:
                logger.debug("Skipping test file %s", path)
                continue
            if not self.context.matches_file_name(name):
                logger.debug("Skipping %s: file name constraint", path)
                continue
            files.append(path)
        return files

    def read_source(self, path: Path) -> Optional[str]:
        """Read a file, or return None when its build constraint excludes it."""
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise LoadError(f"failed to read {path}: {e}") from e

        expression = build_constraint(source)
        if expression is not None:
            try:
                satisfied = evaluate_constraint(expression, self.context)
            except ValueError as e:
                raise LoadError(f"{path}: {e}") from e
            if not satisfied:
                logger.debug("Skipping %s: //go:build %s", path, expression)
                return None
        return source

    def read_file(self, path: Path) -> Optional[ParsedFile]:
        source = self.read_source(path)
        if source is None:
            return None
        return parse_source(source, str(path))

    def package_name(self, directory: Path) -> str:
        """Read the package clause of a directory without loading it."""
        key = str(directory)
        if key in self._package_names:
            return self._package_names[key]

        names = set()
        for path in self.source_files(directory, include_tests=False):
            parsed = self.read_file(path)
            if parsed is not None:
                names.add(parsed.package)

        if len(names) != 1:
            found = ", ".join(sorted(names)) or "none"
            raise LoadError(f"expected one package in {directory}, found: {found}")

        self._package_names[key] = names.pop()
        return self._package_names[key]

    # Locating imports

    def locate(self, import_path: str, module: Optional[GoModule]) -> Optional[Path]:
        """
        Find the directory of an imported package.

        Looks in the importing module, the main module, its vendor directory,
        the ``replace`` and ``require`` directives of its go.mod (local
        replacements and the module cache) and finally GOROOT. Returns None
        when the package is not available on this machine.
        """
        for owner in (module, self.main_module):
            if owner is not None:
                directory = owner.directory_for(import_path)
                if directory is not None:
                    return directory if directory.is_dir() else None

        main = self.main_module
        if main is not None:
            vendored = main.root / "vendor" / import_path
            if (main.root / "vendor" / "modules.txt").is_file() and vendored.is_dir():
                return vendored

            requirement = main.requirement_for(import_path)
            if requirement is not None:
                return self.module_directory(main, import_path, *requirement)

        if is_standard_import(import_path) and self.paths.goroot is not None:
            directory = self.paths.goroot / "src" / import_path
            if directory.is_dir():
                return directory
        return None

    def module_directory(self, main: GoModule, import_path: str, module_path: str, version: str) -> Optional[Path]:
        """Directory of a package inside a required module."""
        subpath = import_path[len(module_path) :].lstrip("/")
        root = None

        replacement = main.replacement_for(module_path)
        if replacement is not None:
            if replacement[0].startswith((".", "/")):
                root = main.root / replacement[0]
            else:
                module_path = replacement[0]
                version = replacement[1] if len(replacement) > 1 else version

        if root is None:
            if self.paths.module_cache is None:
                return None
            root = self.paths.module_cache / f"{escape_module_path(module_path)}@{escape_module_path(version)}"

        directory = root / subpath if subpath else root
        return directory if directory.is_dir() else None

    # Packages

    def load(self, location: SourceLocation) -> GoPackage:
        """
        Load the package at a source location.

        Raises:
            LoadError: If the package cannot be read, parsed or type-checked,
                or the directory does not hold exactly one matching package
        """
        directory = Path(location.directory)
        files = self.source_files(directory, location.include_tests)

        packages: Dict[str, List[ParsedFile]] = {}
        for path in files:
            parsed = self.read_file(path)
            if parsed is not None:
                packages.setdefault(parsed.package, []).append(parsed)

        if len(packages) > 1 and location.package:
            packages = {name: parsed for name, parsed in packages.items() if name == location.package}

        if len(packages) != 1:
            for name in sorted(packages):
                logger.warning("Found package %s#%s", directory, name)
            raise LoadError(
                f"failed to load package {location}: expected to find 1 package, found {len(packages)}"
            )

        (name, parsed_files), = packages.items()
        module = find_module(directory)
        self.main_module = module
        path = module.import_path(directory) if module else directory.as_posix()
        package = self.build_package(name, path, directory, parsed_files, module)

        logger.info(
            "Loaded package %s (%s) with %d type declaration(s)",
            package.name,
            package.path,
            len(package.declarations),
        )
        return package

    def load_dependency(self, import_path: str, module: Optional[GoModule]) -> None:
        """Locate and load a referenced package once, recursively."""
        if import_path in self.dependencies or import_path in self._loading or import_path in self._unavailable:
            return

        directory = self.locate(import_path, module)
        if directory is None:
            logger.debug("Package %s is not available, its types stay opaque", import_path)
            self._unavailable.add(import_path)
            return

        strict = self.main_module is not None and self.main_module.directory_for(import_path) is not None
        self._loading.add(import_path)
        try:
            if strict:
                package = self.read_dependency(import_path, directory, self.main_module, strict=True)
            else:
                try:
                    package = self.read_dependency(import_path, directory, find_module(directory), strict=False)
                except LoadError as e:
                    logger.warning("Skipping package %s: %s", import_path, e)
                    self._unavailable.add(import_path)
                    return
            self.dependencies[import_path] = package
            logger.debug("Loaded dependency %s from %s", import_path, directory)
        finally:
            self._loading.discard(import_path)

    def read_dependency(
        self, import_path: str, directory: Path, module: Optional[GoModule], strict: bool
    ) -> GoPackage:
        parsed_files = []
        for path in self.source_files(directory, include_tests=False):
            try:
                parsed = self.read_file(path)
            except LoadError as e:
                if strict:
                    raise
                logger.debug("Skipping %s: %s", path, e)
                continue
            if parsed is not None:
                parsed_files.append(parsed)

        names = sorted({parsed.package for parsed in parsed_files})
        if len(names) != 1:
            raise LoadError(
                f"failed to load dependency {import_path}: expected to find 1 package in {directory}, "
                f"found {len(names)}"
            )
        return self.build_package(names[0], import_path, directory, parsed_files, module, strict)

    def build_package(
        self,
        name: str,
        path: str,
        directory: Path,
        parsed_files: List[ParsedFile],
        module: Optional[GoModule],
        strict: bool = True,
    ) -> GoPackage:
        """Type-check the declarations of parsed files into a package."""
        declared: Dict[str, str] = {}
        for parsed in parsed_files:
            for spec in parsed.types:
                if spec.name == "_":
                    continue
                if spec.name in declared and strict:
                    raise LoadError(
                        f"{parsed.path}:{spec.line}: {spec.name} redeclared in this block "
                        f"(previous declaration in {declared[spec.name]})"
                    )
                declared.setdefault(spec.name, parsed.path)

        declarations: Dict[str, TypeDeclaration] = {}
        wanted: Dict[str, None] = {}
        for parsed in parsed_files:
            scope = FileScope(self, parsed, name, path, set(declared), module)
            for spec in parsed.types:
                if spec.name == "_" or spec.name in declarations:
                    continue
                type_params = tuple(param.name for param in spec.type_params)
                try:
                    go_type = scope.resolve(spec.type, set(type_params))
                except LoadError as e:
                    if strict:
                        raise
                    logger.debug("Declaration %s.%s stays opaque: %s", path, spec.name, e)
                    go_type = UnsupportedType(str(e))

                declarations[spec.name] = TypeDeclaration(
                    name=spec.name,
                    package_path=path,
                    type=go_type,
                    type_params=type_params,
                    is_alias=spec.is_alias,
                )
                for dependency in _structural_references(go_type):
                    if dependency.package_path != path:
                        wanted.setdefault(dependency.package_path, None)

        for import_path in wanted:
            self.load_dependency(import_path, module)

        return GoPackage(
            name=name,
            path=path,
            directory=str(directory),
            files=tuple(parsed.path for parsed in parsed_files),
            declarations=MappingProxyType(declarations),
            dependencies=MappingProxyType(self.dependencies),
        )


def _structural_references(go_type: GoType) -> List[NamedType]:
    """Named types a declaration may need to flatten: embedded fields and named chains."""
    if isinstance(go_type, PointerType):
        go_type = go_type.elem
    if isinstance(go_type, NamedType):
        return [go_type]
    if not isinstance(go_type, StructType):
        return []

    references = []
    for record_field in go_type.fields:
        if not record_field.embedded:
            continue
        field_type = record_field.type
        if isinstance(field_type, PointerType):
            field_type = field_type.elem
        if isinstance(field_type, NamedType):
            references.append(field_type)
    return references


def channel_direction(node: Node) -> ChanDirection:
    """Read the direction of a ``channel_type`` node from its arrow token."""
    tokens = [child.type for child in node.children if not child.is_named]
    if tokens[:1] == ["<-"]:
        return ChanDirection.RECV
    if tokens[:2] == ["chan", "<-"]:
        return ChanDirection.SEND
    return ChanDirection.BOTH


class FileScope:
    """Identifier resolution for the declarations of one file."""

    def __init__(
        self,
        loader: PackageLoader,
        parsed: ParsedFile,
        package_name: str,
        package_path: str,
        declared: set,
        module: Optional[GoModule],
    ):
        self.loader = loader
        self.parsed = parsed
        self.package_name = package_name
        self.package_path = package_path
        self.declared = declared
        self.module = module

    def error(self, node: Node, message: str) -> LoadError:
        return LoadError(f"{self.parsed.path}:{line_of(node)}: {message}")

    def imported_package_name(self, import_path: str) -> str:
        """Real name of a same-module package, conventional name otherwise."""
        if self.module is not None:
            directory = self.module.directory_for(import_path)
            if directory is not None and directory.is_dir():
                return self.loader.package_name(directory)
        return assumed_package_name(import_path)

    def lookup_import(self, qualifier: str) -> Optional[Tuple[str, str]]:
        """Find the (import path, package name) a qualifier refers to."""
        for spec in self.parsed.imports:
            if spec.name == qualifier:
                return spec.path, self.imported_package_name(spec.path)
        for spec in self.parsed.imports:
            if spec.name is None and self.imported_package_name(spec.path) == qualifier:
                return spec.path, qualifier
        return None

    def resolve(self, node: Node, type_params: set) -> GoType:
        """Resolve a type expression node into the type model."""
        kind = node.type
        field_of = node.child_by_field_name

        if kind == "parenthesized_type":
            return self.resolve(named_children(node)[0], type_params)

        if kind == "type_identifier":
            return self.resolve_ident(node, type_params)

        if kind == "qualified_type":
            return self.resolve_qualified(node)

        if kind == "generic_type":
            base_node = field_of("type")
            base = self.resolve(base_node, type_params)
            if not isinstance(base, NamedType):
                raise self.error(node, f"{self.parsed.text(base_node)} is not a generic type")
            args = tuple(self.resolve(arg, type_params) for arg in self.type_arguments(node))
            return NamedType(base.package_path, base.package_name, base.name, args)

        if kind == "pointer_type":
            return PointerType(self.resolve(named_children(node)[0], type_params))

        if kind == "slice_type":
            return SliceType(self.resolve(field_of("element"), type_params))

        if kind == "array_type":
            length = normalize_array_length(self.parsed.text(field_of("length")))
            return ArrayType(length, self.resolve(field_of("element"), type_params))

        if kind == "map_type":
            return MapType(self.resolve(field_of("key"), type_params), self.resolve(field_of("value"), type_params))

        if kind == "channel_type":
            return ChanType(channel_direction(node), self.resolve(field_of("value"), type_params))

        if kind == "function_type":
            return self.resolve_signature(node, type_params)

        if kind == "struct_type":
            return self.resolve_struct(node, type_params)

        if kind == "interface_type":
            elements = named_children(node)
            if not elements:
                return BasicType("any")
            return InterfaceType("interface{ " + "; ".join(self.parsed.text(e) for e in elements) + " }")

        raise self.error(node, f"unsupported type expression {self.parsed.text(node)!r}")

    def type_arguments(self, node: Node) -> List[Node]:
        arguments = []
        for argument in named_children(node.child_by_field_name("type_arguments")):
            if argument.type == "type_elem":
                terms = named_children(argument)
                if len(terms) != 1:
                    raise self.error(argument, f"cannot use {self.parsed.text(argument)} as a type argument")
                argument = terms[0]
            arguments.append(argument)
        return arguments

    def resolve_ident(self, node: Node, type_params: set) -> GoType:
        name = self.parsed.text(node)
        if name in type_params:
            return TypeParamType(name)
        if name in self.declared:
            return NamedType(self.package_path, self.package_name, name)
        if name in GO_BUILTIN_TYPES:
            return BasicType(name)

        dot_imports = [spec.path for spec in self.parsed.imports if spec.name == "."]
        if len(dot_imports) == 1:
            return NamedType(dot_imports[0], self.imported_package_name(dot_imports[0]), name)
        raise self.error(node, f"undefined: {name}")

    def resolve_qualified(self, node: Node) -> GoType:
        qualifier = self.parsed.text(node.child_by_field_name("package"))
        name = self.parsed.text(node.child_by_field_name("name"))
        imported = self.lookup_import(qualifier)
        if imported is None:
            raise self.error(node, f"undefined: {qualifier}")
        if not is_exported(name):
            raise self.error(node, f"name {name} not exported by package {qualifier}")
        import_path, package_name = imported
        return NamedType(import_path, package_name, name)

    def resolve_signature(self, node: Node, type_params: set) -> SignatureType:
        params, variadic = self.resolve_parameters(node.child_by_field_name("parameters"), type_params)
        result = node.child_by_field_name("result")
        if result is None:
            results: Tuple[GoType, ...] = ()
        elif result.type == "parameter_list":
            results, _ = self.resolve_parameters(result, type_params)
        else:
            results = (self.resolve(result, type_params),)
        return SignatureType(params, results, variadic)

    def resolve_parameters(self, node: Node, type_params: set) -> Tuple[Tuple[GoType, ...], bool]:
        """Resolve a parameter list, one entry per declared name."""
        declarations = named_children(node)
        if len({bool(declaration.children_by_field_name("name")) for declaration in declarations}) > 1:
            raise self.error(node, "syntax error: mixed named and unnamed parameters")

        types: List[GoType] = []
        variadic = False
        for index, declaration in enumerate(declarations):
            go_type = self.resolve(declaration.child_by_field_name("type"), type_params)
            if declaration.type == "variadic_parameter_declaration":
                if index != len(declarations) - 1:
                    raise self.error(declaration, "can only use ... with final parameter in list")
                variadic = True
                go_type = SliceType(go_type)
            types.extend([go_type] * max(1, len(declaration.children_by_field_name("name"))))
        return tuple(types), variadic

    def resolve_struct(self, node: Node, type_params: set) -> StructType:
        fields = []
        seen: Dict[str, int] = {}
        body = named_children(node)
        for declaration in named_children(body[0]) if body else []:
            type_node = declaration.child_by_field_name("type")
            field_type = self.resolve(type_node, type_params)
            names = [self.parsed.text(name) for name in declaration.children_by_field_name("name")]
            embedded = not names
            if embedded:
                if any(child.type == "*" for child in declaration.children):
                    field_type = PointerType(field_type)
                name = embedded_name(type_node, self.parsed.source)
                if name is None:
                    raise self.error(declaration, f"invalid embedded field type {self.parsed.text(type_node)}")
                names = [name]

            tag_node = declaration.child_by_field_name("tag")
            tag = ""
            if tag_node is not None:
                try:
                    tag = unquote(self.parsed.text(tag_node))
                except ValueError as e:
                    raise self.error(tag_node, str(e)) from e

            line = line_of(declaration)
            for name in names:
                if name != "_" and name in seen:
                    raise self.error(declaration, f"{name} redeclared (previous declaration at line {seen[name]})")
                seen[name] = line
                fields.append(
                    RecordField(
                        identifier=name,
                        type=field_type,
                        tag=tag,
                        embedded=embedded,
                        exported=is_exported(name),
                    )
                )
        return StructType(tuple(fields))


def load_package(
    location: SourceLocation,
    build_context: Optional[BuildContext] = None,
    go_paths: Optional[GoPaths] = None,
) -> GoPackage:
    """
    Load the Go package a source location points at.

    Packages referenced by embedded fields are loaded as dependencies of
    the returned package when their sources can be located.

    Raises:
        LoadError: If the package cannot be loaded
    """
    return PackageLoader(build_context, go_paths).load(location)
