"""
sfgen Code Generation Module

Generates Go constants from struct fields: loads every requested package
once, resolves each struct, and assembles one file per output target.
"""

from typing import Callable, Dict, Optional, Sequence

from ..logging_config import get_logger
from .core.catalog import PackageCatalog, load_catalog
from .core.config import ConfigManager, GenerateEnvironment, GenerationRequest
from .core.errors import ConfigurationError, SfgenError
from .core.generator import CodeGenerator, GenerationResult, OutputAssembler, group_requests
from .core.resolver import StructResolver
from .core.schema import GoPackage, SourceLocation
from .languages.go.generator import GoGenerator
from .languages.go.loader import load_package
from .languages.go.types import GoTypeEncoder

logger = get_logger(__name__)


def generate(
    requests: Sequence[GenerationRequest],
    loader: Optional[Callable[[SourceLocation], GoPackage]] = None,
    generator: Optional[CodeGenerator] = None,
    max_workers: Optional[int] = None,
) -> Dict[str, GenerationResult]:
    """
    Run the generation pipeline for validated requests.

    Requests are grouped and checked first, then every distinct source
    location is loaded once, and finally each output group is generated.

    Args:
        requests: Non-empty list of generation requests
        loader: Package loader, the Go loader by default
        generator: Language generator, a GoGenerator by default
        max_workers: Thread pool size for both concurrent phases

    Returns:
        Results keyed by output path, in order of first appearance

    Raises:
        SfgenError: On the first failure of any phase
    """
    if not requests:
        raise ConfigurationError("no generation requests given")

    group_requests(requests)

    catalog = load_catalog(
        (request.source for request in requests),
        loader=loader or load_package,
        max_workers=max_workers,
    )

    assembler = OutputAssembler(
        catalog,
        generator or GoGenerator(),
        resolver=StructResolver(catalog, GoTypeEncoder()),
        max_workers=max_workers,
    )
    return assembler.assemble(requests)


def render_files(
    results: Dict[str, GenerationResult],
    environment: Optional[GenerateEnvironment] = None,
    generator: Optional[CodeGenerator] = None,
) -> Dict[str, str]:
    """
    Render complete file contents for generation results.

    Returns:
        File contents keyed by output path
    """
    environment = environment or GenerateEnvironment.from_environ()
    generator = generator or GoGenerator()
    return {path: generator.render_file(result, environment) for path, result in results.items()}


# Export main interfaces
__all__ = [
    "ConfigManager",
    "GenerateEnvironment",
    "GenerationRequest",
    "GenerationResult",
    "GoGenerator",
    "PackageCatalog",
    "SfgenError",
    "generate",
    "render_files",
]
