"""
Configuration management for generation requests.

Turns option dictionaries coming from the command line, ``--gen`` strings
or a JSON batch file into validated, immutable generation requests.
Options are merged in order: built-in defaults, file defaults, then
per-request overrides.
"""

import json
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from ...logging_config import get_logger
from .errors import ConfigurationError
from .naming import calculate_base_name, default_output_file
from .schema import SourceLocation

logger = get_logger(__name__)


class Style(Enum):
    """Shape of the strong type wrapping the generated constants."""

    NONE = ""
    ALIAS = "alias"
    TYPED = "typed"
    GENERIC = "generic"


@dataclass(frozen=True)
class NamingOptions:
    """Options driving the generated identifiers."""

    prefix: Optional[str] = None
    include_struct_name: bool = False
    export: bool = False
    iter: bool = False


@dataclass(frozen=True)
class StyleOptions:
    style: Style = Style.NONE


@dataclass(frozen=True)
class OutputTarget:
    """Destination file and package of generated code."""

    directory: str
    file_name: str
    package: str
    dry_run: bool = False

    @property
    def path(self) -> str:
        return str(Path(self.directory) / self.file_name)


@dataclass(frozen=True)
class GenerationRequest:
    """One struct to generate constants for; yields one code fragment."""

    source: SourceLocation
    struct_name: str
    output: OutputTarget
    tag: str = ""
    tag_regex: str = ""
    naming: NamingOptions = field(default_factory=NamingOptions)
    style: StyleOptions = field(default_factory=StyleOptions)
    include_unexported_fields: bool = False


@dataclass(frozen=True)
class GenerateEnvironment:
    """Values ``go generate`` exposes to the commands it runs."""

    package: str = ""
    file: str = ""
    line: str = ""

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> "GenerateEnvironment":
        environ = os.environ if environ is None else environ
        return cls(
            package=environ.get("GOPACKAGE", ""),
            file=environ.get("GOFILE", ""),
            line=environ.get("GOLINE", ""),
        )


# Option names match the command line flags with dashes turned to underscores
DEFAULT_OPTIONS: Dict[str, Any] = {
    "struct": "",
    "src_dir": ".",
    "package": "",
    "tests": False,
    "tag": "",
    "tag_regex": "",
    "prefix": None,
    "style": "",
    "export": False,
    "include_struct_name": False,
    "include_unexported_fields": False,
    "iter": False,
    "out_dir": ".",
    "out_file": "",
    "out_pkg": None,
    "dry_run": False,
}

BOOLEAN_OPTIONS = {
    "tests",
    "export",
    "include_struct_name",
    "include_unexported_fields",
    "iter",
    "dry_run",
}

VALID_STYLES = [style.value for style in Style if style is not Style.NONE]


class ConfigManager:
    """Builds generation requests from layered option dictionaries."""

    def __init__(
        self,
        environment: Optional[GenerateEnvironment] = None,
        base_dir: Optional[Union[str, Path]] = None,
    ):
        """
        Initialize configuration manager.

        Args:
            environment: ``go generate`` environment, read from os.environ if omitted
            base_dir: Directory that relative paths are resolved against
        """
        self.environment = environment or GenerateEnvironment.from_environ()
        self.base_dir = Path(base_dir) if base_dir is not None else Path.cwd()

    def get_options(
        self,
        custom_options: Optional[Mapping[str, Any]] = None,
        defaults: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Merge built-in defaults, shared defaults and per-request options."""
        options = dict(DEFAULT_OPTIONS)
        options["out_pkg"] = self.environment.package

        for layer in (defaults, custom_options):
            if not layer:
                continue
            unknown = sorted(set(layer) - set(DEFAULT_OPTIONS))
            if unknown:
                raise ConfigurationError(f"unknown option(s): {', '.join(unknown)}")
            options.update(layer)

        return options

    def validate_options(self, options: Mapping[str, Any]) -> List[str]:
        """
        Validate merged options.

        Returns:
            List of problems, empty when the options are valid
        """
        problems = []

        for name in sorted(BOOLEAN_OPTIONS):
            if not isinstance(options[name], bool):
                problems.append(f"--{_flag(name)} must be a boolean")

        for name in ("struct", "src_dir", "package", "tag", "tag_regex", "style", "out_dir", "out_file", "out_pkg"):
            if options[name] is not None and not isinstance(options[name], str):
                problems.append(f"--{_flag(name)} must be a string")

        if problems:
            return problems

        if not options["tag"] and options["tag_regex"]:
            problems.append(f"cannot use tag regex {options['tag_regex']!r} with an empty tag")

        if options["style"] not in ("", *VALID_STYLES):
            problems.append(f"--style must be one of {VALID_STYLES}")

        if not options["struct"]:
            problems.append("--struct is required")

        if not options["src_dir"]:
            problems.append("--src-dir must not be empty")

        if not options["out_pkg"]:
            problems.append("--out-pkg must not be empty")

        prefix = options["prefix"]
        if prefix is not None and (not isinstance(prefix, str) or not prefix):
            problems.append("--prefix must be a non-empty string")

        return problems

    def build_request(
        self,
        custom_options: Optional[Mapping[str, Any]] = None,
        defaults: Optional[Mapping[str, Any]] = None,
    ) -> GenerationRequest:
        """
        Build one validated generation request.

        Raises:
            ConfigurationError: If the options are invalid, listing every problem
        """
        options = self.get_options(custom_options, defaults)
        problems = self.validate_options(options)
        if problems:
            raise ConfigurationError("; ".join(problems))

        naming = NamingOptions(
            prefix=options["prefix"],
            include_struct_name=options["include_struct_name"],
            export=options["export"],
            iter=options["iter"],
        )

        out_file = options["out_file"]
        if not out_file:
            base_name = calculate_base_name(naming, options["struct"], options["tag"])
            out_file = default_output_file(options["struct"], base_name)

        request = GenerationRequest(
            source=SourceLocation(
                directory=str(self._absolute(options["src_dir"])),
                package=options["package"],
                include_tests=options["tests"],
            ),
            struct_name=options["struct"],
            output=OutputTarget(
                directory=str(self._absolute(options["out_dir"])),
                file_name=out_file,
                package=options["out_pkg"],
                dry_run=options["dry_run"],
            ),
            tag=options["tag"],
            tag_regex=options["tag_regex"],
            naming=naming,
            style=StyleOptions(Style(options["style"])),
            include_unexported_fields=options["include_unexported_fields"],
        )
        logger.debug("Built request for %s -> %s", request.struct_name, request.output.path)
        return request

    def load_config_file(self, config_path: Union[str, Path]) -> Dict[str, Any]:
        """Load a JSON batch configuration file."""
        path = Path(config_path)

        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in configuration file {path}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Failed to load configuration file {path}: {e}") from e

        if not isinstance(config, dict):
            raise ConfigurationError(f"Configuration file must contain a JSON object: {path}")

        return config

    def requests_from_file(self, config_path: Union[str, Path]) -> List[GenerationRequest]:
        """
        Build every request of a batch file.

        The file holds ``{"defaults": {...}, "generate": [{...}, ...]}``.
        Relative directories are resolved against the file's directory.
        """
        path = Path(config_path).resolve()
        config = self.load_config_file(path)

        unknown = sorted(set(config) - {"defaults", "generate"})
        if unknown:
            raise ConfigurationError(f"Unknown key(s) in configuration file {path}: {', '.join(unknown)}")

        defaults = config.get("defaults", {})
        entries = config.get("generate", [])
        if not isinstance(defaults, dict):
            raise ConfigurationError(f"'defaults' must be an object in {path}")
        if not isinstance(entries, list) or not entries:
            raise ConfigurationError(f"'generate' must be a non-empty list in {path}")

        manager = ConfigManager(self.environment, base_dir=path.parent)
        requests = []
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise ConfigurationError(f"generate[{index}] must be an object in {path}")
            try:
                requests.append(manager.build_request(entry, defaults))
            except ConfigurationError as e:
                raise ConfigurationError(f"generate[{index}] in {path}: {e}") from e

        logger.info("Loaded %d request(s) from %s", len(requests), path)
        return requests

    def _absolute(self, directory: str) -> Path:
        path = Path(directory).expanduser()
        if not path.is_absolute():
            path = self.base_dir / path
        return Path(os.path.normpath(path))


def _flag(option: str) -> str:
    return option.replace("_", "-")
