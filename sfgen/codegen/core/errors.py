"""
Exceptions raised while generating constants from struct fields.

Every failure is fatal to a run, so all of them share one base class
that the CLI catches and reports once.
"""


class SfgenError(Exception):
    """Base exception for all sfgen errors."""

    pass


class ConfigurationError(SfgenError):
    """Raised for invalid or contradictory generation options."""

    pass


class LoadError(SfgenError):
    """Raised when a Go package cannot be read, parsed or type-checked."""

    pass


class ResolutionError(SfgenError):
    """Raised when a struct or one of its fields cannot be resolved."""

    pass


class EncodingError(SfgenError):
    """Raised when a field's type has a shape that cannot be rendered."""

    pass


class AssemblyError(SfgenError):
    """Raised when requests sharing an output file cannot be combined."""

    pass


class OutputError(SfgenError):
    """Raised when a generated file cannot be written."""

    pass
