"""
Base generator interface and output assembly.

Defines the contract language generators implement, and the assembler
that groups requests by output file, renders each group concurrently and
merges fragments and imports into one result per file.
"""

from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ...logging_config import get_logger
from .catalog import PackageCatalog
from .config import GenerateEnvironment, GenerationRequest, Style
from .errors import AssemblyError
from .resolver import StructResolver
from .schema import ResolvedStruct
from .templates import TemplateEngine, create_template_engine

logger = get_logger(__name__)

# Styles that declare a nominal type an All() method can be attached to
ITERABLE_STYLES = (Style.TYPED, Style.GENERIC)


@dataclass(frozen=True)
class Fragment:
    """Code generated for one request and the imports it needs."""

    text: str
    references: Tuple[str, ...] = ()


@dataclass(frozen=True)
class GenerationResult:
    """Merged output of every request targeting one file."""

    path: str
    package: str
    fragments: Tuple[Fragment, ...]
    references: Tuple[str, ...] = ()
    dry_run: bool = False

    @property
    def fragment(self) -> str:
        """All fragments in request order, separated by blank lines."""
        return "\n\n".join(f.text for f in self.fragments)


class CodeGenerator(ABC):
    """Abstract base class for all code generators."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize generator with optional configuration."""
        self.config = config or {}
        self._template_engine = None
        self._setup_templates()

    def _setup_templates(self):
        """
        Setup template engine for this generator.

        Templates given under the ``templates`` config key replace the
        directory templates of the same name.
        """
        self._template_engine = create_template_engine(self.get_template_directory())
        for name, content in self.config.get("templates", {}).items():
            self._template_engine.add_template(name, content)

    def get_template_directory(self) -> Optional[Path]:
        """
        Return the directory containing templates for this generator.

        Returns:
            Path to template directory or None for in-memory templates
        """
        return None

    @property
    def template_engine(self) -> TemplateEngine:
        """Get the template engine for this generator."""
        if self._template_engine is None:
            self._setup_templates()
        return self._template_engine

    @abstractmethod
    def render_fragment(self, request: GenerationRequest, resolved: ResolvedStruct) -> Fragment:
        """
        Generate the code for one resolved request.

        Args:
            request: Request the struct was resolved for
            resolved: Ordered constants of the struct

        Returns:
            Fragment text and the imports the text needs
        """
        pass

    @abstractmethod
    def render_file(self, result: GenerationResult, environment: GenerateEnvironment) -> str:
        """
        Render a complete output file.

        Args:
            result: Merged fragments and references of one output file
            environment: ``go generate`` environment for the file header

        Returns:
            Complete, formatted file content
        """
        pass

    def format_code(self, code: str) -> str:
        """
        Apply language-specific formatting to generated code.

        Args:
            code: Raw generated code

        Returns:
            Formatted code ending in a single newline
        """
        # Basic cleanup - remove trailing spaces and excessive blank lines
        lines = code.split("\n")
        formatted_lines = []
        blank_count = 0

        for line in lines:
            stripped = line.rstrip()
            if not stripped:
                blank_count += 1
                if blank_count <= 1:
                    formatted_lines.append("")
            else:
                blank_count = 0
                formatted_lines.append(stripped)

        return "\n".join(formatted_lines).strip("\n") + "\n"

    # Template helper methods

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """Render a template with context."""
        return self.template_engine.render_template(template_name, context)


def merge_references(groups: Iterable[Sequence[str]]) -> Tuple[str, ...]:
    """Union reference lists, deduplicated, in first-seen order."""
    seen: Dict[str, None] = {}
    for references in groups:
        for reference in references:
            seen.setdefault(reference, None)
    return tuple(seen)


def group_requests(requests: Sequence[GenerationRequest]) -> Dict[str, List[GenerationRequest]]:
    """
    Group requests by output path, in order of first appearance.

    Runs before anything is loaded or generated.

    Raises:
        AssemblyError: If a request combines All() generation with a
            style that declares no nominal type, or requests for one
            file disagree on its package
    """
    groups: Dict[str, List[GenerationRequest]] = {}

    for request in requests:
        if request.naming.iter and request.style.style not in ITERABLE_STYLES:
            style = request.style.style.value or "none"
            raise AssemblyError(
                f"invalid style {style} for {request.struct_name}: only "
                f"{Style.GENERIC.value} and {Style.TYPED.value} styles may be used with the --iter flag"
            )

        path = request.output.path
        members = groups.setdefault(path, [])
        if members and members[0].output.package != request.output.package:
            raise AssemblyError(
                f"invalid package values provided: cannot use both {members[0].output.package!r} "
                f"and {request.output.package!r} package values within output file {path}"
            )
        members.append(request)

    return groups


class OutputAssembler:
    """Groups requests by output file and generates one result per file."""

    def __init__(
        self,
        catalog: PackageCatalog,
        generator: CodeGenerator,
        resolver: Optional[StructResolver] = None,
        max_workers: Optional[int] = None,
    ):
        """
        Initialize assembler.

        Args:
            catalog: Frozen catalog holding every requested package
            generator: Language generator rendering fragments
            resolver: Struct resolver, built over ``catalog`` if omitted
            max_workers: Thread pool size, the executor default if omitted
        """
        self.catalog = catalog
        self.generator = generator
        self.resolver = resolver or StructResolver(catalog)
        self.max_workers = max_workers

    def group(self, requests: Sequence[GenerationRequest]) -> Dict[str, List[GenerationRequest]]:
        return group_requests(requests)

    def assemble(self, requests: Sequence[GenerationRequest]) -> Dict[str, GenerationResult]:
        """
        Generate every output file.

        Groups are generated concurrently. The first failure cancels the
        groups that have not started and is re-raised; no result is
        returned for any group in that case.

        Returns:
            Results keyed by output path, in order of first appearance
        """
        groups = self.group(requests)
        if not groups:
            return {}

        logger.info("Generating %d file(s) from %d request(s)", len(groups), len(requests))

        done: Dict[str, GenerationResult] = {}
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="sfgen-gen") as executor:
            futures: Dict[Future, str] = {
                executor.submit(self.assemble_group, path, members): path
                for path, members in groups.items()
            }
            try:
                for future in as_completed(futures):
                    done[futures[future]] = future.result()
            except BaseException:
                for pending in futures:
                    pending.cancel()
                raise

        return {path: done[path] for path in groups}

    def assemble_group(self, path: str, requests: Sequence[GenerationRequest]) -> GenerationResult:
        """Resolve and render the requests of one output file, in order."""
        fragments = []
        for request in requests:
            resolved = self.resolver.resolve(request)
            fragments.append(self.generator.render_fragment(request, resolved))

        result = GenerationResult(
            path=path,
            package=requests[0].output.package,
            fragments=tuple(fragments),
            references=merge_references(fragment.references for fragment in fragments),
            dry_run=any(request.output.dry_run for request in requests),
        )
        logger.debug("Generated %s with %d fragment(s)", path, len(fragments))
        return result
