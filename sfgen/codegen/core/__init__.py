"""
Core code generation components.

Provides the type model, configuration, catalog, resolver and output
assembly shared by language generators.
"""

from .catalog import PackageCatalog, load_catalog
from .config import (
    ConfigManager,
    GenerateEnvironment,
    GenerationRequest,
    NamingOptions,
    OutputTarget,
    Style,
    StyleOptions,
)
from .errors import (
    AssemblyError,
    ConfigurationError,
    EncodingError,
    LoadError,
    OutputError,
    ResolutionError,
    SfgenError,
)
from .generator import (
    CodeGenerator,
    Fragment,
    GenerationResult,
    OutputAssembler,
    group_requests,
)
from .naming import calculate_base_name, constant_name, force_first_char_case
from .resolver import StructResolver
from .schema import GoPackage, ResolvedField, ResolvedStruct, SourceLocation
from .templates import TemplateEngine, TemplateError, create_template_engine

__all__ = [
    # Catalog
    "PackageCatalog",
    "load_catalog",
    # Configuration system
    "ConfigManager",
    "GenerateEnvironment",
    "GenerationRequest",
    "NamingOptions",
    "OutputTarget",
    "Style",
    "StyleOptions",
    # Errors
    "SfgenError",
    "ConfigurationError",
    "LoadError",
    "ResolutionError",
    "EncodingError",
    "AssemblyError",
    "OutputError",
    # Generation
    "CodeGenerator",
    "Fragment",
    "GenerationResult",
    "OutputAssembler",
    "StructResolver",
    "group_requests",
    # Naming
    "calculate_base_name",
    "constant_name",
    "force_first_char_case",
    # Data model
    "GoPackage",
    "ResolvedField",
    "ResolvedStruct",
    "SourceLocation",
    # Template system
    "TemplateEngine",
    "TemplateError",
    "create_template_engine",
]
