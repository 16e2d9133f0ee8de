"""
Command line interface for sfgen.

Accepts Go-style (``-struct``) and GNU-style (``--struct``) flags, so it
can be called from ``//go:generate`` directives written for the Go tool.
"""

from __future__ import annotations

import argparse
import shlex
from pathlib import Path
from typing import Any, Sequence

from rich.console import Console
from rich.markup import escape

from . import __version__
from .codegen import generate, render_files
from .codegen.core.config import (
    DEFAULT_OPTIONS,
    VALID_STYLES,
    ConfigManager,
    GenerateEnvironment,
    GenerationRequest,
)
from .codegen.core.errors import ConfigurationError, SfgenError
from .logging_config import configure_logging, get_logger
from .utils import write_outputs

logger = get_logger(__name__)

# Status output goes to stderr so dry runs can be piped
console = Console(stderr=True)

_TRUE_VALUES = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_VALUES = {"0", "f", "F", "FALSE", "false", "False"}


class RequestArgumentParser(argparse.ArgumentParser):
    """Parser for ``--gen`` strings; reports errors instead of exiting."""

    def error(self, message: str):
        raise ConfigurationError(message)


def parse_bool(value: str) -> bool:
    """Parse a boolean flag value the way Go's flag package does."""
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise argparse.ArgumentTypeError(f"invalid boolean value {value!r}")


class SetOnceAction(argparse.Action):
    """Store a value, rejecting a second occurrence of the flag."""

    def __call__(self, parser, namespace, values, option_string=None):
        if getattr(namespace, self.dest, None) is not None:
            parser.error(f"invalid {option_string} usage, flag may only be specified once")
        setattr(namespace, self.dest, values)


def _flag_names(name: str) -> list[str]:
    return [f"-{name}", f"--{name}"]


def add_request_args(parser: argparse.ArgumentParser):
    """Add the flags describing one generation request."""

    # Flags left out of the namespace were not given on the command line
    source_group = parser.add_argument_group("source")
    source_group.add_argument(
        *_flag_names("struct"),
        dest="struct",
        metavar="NAME",
        default=argparse.SUPPRESS,
        help="The struct to use as the source for code generation. REQUIRED",
    )
    source_group.add_argument(
        *_flag_names("src-dir"),
        dest="src_dir",
        metavar="DIR",
        default=argparse.SUPPRESS,
        help="The directory containing the --struct (default: current directory)",
    )
    source_group.add_argument(
        *_flag_names("package"),
        dest="package",
        metavar="NAME",
        default=argparse.SUPPRESS,
        help="The name of the package in which the source struct resides",
    )
    source_group.add_argument(
        *_flag_names("tests"),
        dest="tests",
        nargs="?",
        const=True,
        type=parse_bool,
        default=argparse.SUPPRESS,
        help="Include source code in tests; often used along with --package",
    )

    naming_group = parser.add_argument_group("naming")
    naming_group.add_argument(
        *_flag_names("tag"),
        dest="tag",
        metavar="KEY",
        default=argparse.SUPPRESS,
        help="Struct tag whose name is used as the constant value; the field name is used when it is missing",
    )
    naming_group.add_argument(
        *_flag_names("tag-regex"),
        dest="tag_regex",
        metavar="REGEX",
        default=argparse.SUPPRESS,
        help="Regex applied to the --tag contents; its first capture group is used as the value",
    )
    naming_group.add_argument(
        *_flag_names("prefix"),
        dest="prefix",
        metavar="PREFIX",
        action=SetOnceAction,
        default=argparse.SUPPRESS,
        help="A value to prepend to the generated const names (default: [tag]Field)",
    )
    naming_group.add_argument(
        *_flag_names("style"),
        dest="style",
        metavar="STYLE",
        default=argparse.SUPPRESS,
        help=f"Style of constants desired, one of: {', '.join(VALID_STYLES)}",
    )
    for name, help_text in (
        ("export", "Export the generated constants"),
        ("include-struct-name", "Prefix the generated constants with the source struct name"),
        ("include-unexported-fields", "Include fields that are not exported on the struct"),
        ("iter", "Generate an All() method returning an array of every generated value"),
    ):
        naming_group.add_argument(
            *_flag_names(name),
            dest=name.replace("-", "_"),
            nargs="?",
            const=True,
            type=parse_bool,
            default=argparse.SUPPRESS,
            help=help_text,
        )

    output_group = parser.add_argument_group("output")
    output_group.add_argument(
        *_flag_names("out-dir"),
        dest="out_dir",
        metavar="DIR",
        default=argparse.SUPPRESS,
        help="The directory in which to place the generated file (default: current directory)",
    )
    output_group.add_argument(
        *_flag_names("out-file"),
        dest="out_file",
        metavar="FILE",
        default=argparse.SUPPRESS,
        help="The file to write generated output to (default: [struct]_[prefix]_generated.go)",
    )
    output_group.add_argument(
        *_flag_names("out-pkg"),
        dest="out_pkg",
        metavar="NAME",
        default=argparse.SUPPRESS,
        help="The package the generated code belongs to (default: $GOPACKAGE)",
    )
    output_group.add_argument(
        *_flag_names("dry-run"),
        dest="dry_run",
        nargs="?",
        const=True,
        type=parse_bool,
        default=argparse.SUPPRESS,
        help="Write results to stdout instead of the output file",
    )


def create_request_parser() -> RequestArgumentParser:
    """Create the parser applied to each ``--gen`` string."""
    parser = RequestArgumentParser(prog="sfgen --gen", allow_abbrev=False, add_help=False)
    add_request_args(parser)
    return parser


def create_parser() -> argparse.ArgumentParser:
    """Create the top level argument parser."""
    parser = argparse.ArgumentParser(
        prog="sfgen",
        description="Generate Go constants from struct fields.",
        allow_abbrev=False,
    )
    add_request_args(parser)

    batch_group = parser.add_argument_group("batch")
    batch_group.add_argument(
        *_flag_names("gen"),
        dest="gen",
        action="append",
        metavar="FLAGS",
        default=[],
        help="All request flags in one string; repeat to generate several files",
    )
    batch_group.add_argument(
        *_flag_names("config"),
        dest="config",
        metavar="FILE",
        type=Path,
        help='JSON file holding {"defaults": {...}, "generate": [{...}, ...]}',
    )

    logging_group = parser.add_argument_group("logging")
    logging_group.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )
    logging_group.add_argument(
        "--log-file",
        metavar="FILE",
        type=Path,
        help="Also write logs to this file",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def request_options(args: argparse.Namespace) -> dict[str, Any]:
    """Collect the request flags that were given on the command line."""
    return {name: getattr(args, name) for name in DEFAULT_OPTIONS if hasattr(args, name)}


def parse_gen_string(value: str, parser: RequestArgumentParser | None = None) -> dict[str, Any]:
    """Split a ``--gen`` string like a shell and parse its flags."""
    try:
        argv = shlex.split(value.strip())
    except ValueError as e:
        raise ConfigurationError(f"failed to parse flag string {value!r}: {e}") from e

    parser = parser or create_request_parser()
    return request_options(parser.parse_args(argv))


def build_requests(args: argparse.Namespace, manager: ConfigManager) -> list[GenerationRequest]:
    """
    Turn parsed arguments into validated generation requests.

    Raises:
        ConfigurationError: If flags are mixed or a request is invalid
    """
    options = request_options(args)

    if args.gen and args.config:
        raise ConfigurationError("--gen and --config cannot be used together")

    if args.gen:
        if options:
            raise ConfigurationError("if --gen flags are used, only --gen flags may be provided")
        parser = create_request_parser()
        requests = []
        for index, value in enumerate(args.gen, start=1):
            try:
                requests.append(manager.build_request(parse_gen_string(value, parser)))
            except ConfigurationError as e:
                raise ConfigurationError(f"--gen #{index} {value!r}: {e}") from e
        return requests

    if args.config:
        if options:
            raise ConfigurationError("if --config is used, no other request flags may be provided")
        return manager.requests_from_file(args.config)

    return [manager.build_request(options)]


def run(args: argparse.Namespace) -> int:
    """
    Generate every requested file.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    configure_logging(args.verbose, args.log_file)

    try:
        environment = GenerateEnvironment.from_environ()
        manager = ConfigManager(environment)
        requests = build_requests(args, manager)

        results = generate(requests)
        rendered = render_files(results, environment)
        written = write_outputs(rendered, results)
    except SfgenError as e:
        logger.debug("Generation failed", exc_info=True)
        console.print(f"[red]✗[/red] {escape(str(e))}")
        return 1

    for path in written:
        console.print(f"[green]✓[/green] Generated [cyan]{escape(str(path))}[/cyan]")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point of the ``sfgen`` console script."""
    parser = create_parser()
    args = parser.parse_args(argv)
    return run(args)


if __name__ == "__main__":
    raise SystemExit(main())
