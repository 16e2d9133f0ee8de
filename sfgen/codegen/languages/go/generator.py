"""
Go code generator implementation.

Renders the constants of resolved structs, their optional strong type
and All() helper, and the complete ``*_generated.go`` file.
"""

import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from ....logging_config import get_logger
from ...core.config import GenerateEnvironment, GenerationRequest, Style
from ...core.generator import CodeGenerator, Fragment, GenerationResult, merge_references
from ...core.naming import receiver_name
from ...core.schema import ResolvedStruct

logger = get_logger(__name__)

_INDENT_RE = re.compile(r"^((?:    )+)", re.MULTILINE)


class GoGenerator(CodeGenerator):
    """Code generator for Go constants derived from struct fields."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize Go generator with configuration."""
        super().__init__(config)
        self.tool_name = self.config.get("tool_name", "sfgen")

    def get_template_directory(self) -> Optional[Path]:
        """Return the Go templates directory."""
        template_dir = Path(__file__).parent / "templates"
        return template_dir if template_dir.exists() else None

    def render_fragment(self, request: GenerationRequest, resolved: ResolvedStruct) -> Fragment:
        """Render the type declaration, All() helper and constants of one request."""
        style = request.style.style
        base_name = resolved.base_name
        receiver = receiver_name(base_name)

        parts = []
        if style is not Style.NONE:
            parts.append(
                self.render_template(
                    "strong_type.go.j2",
                    {
                        "style": style.value,
                        "base_name": base_name,
                        "receiver": receiver,
                        "description": (
                            f"{base_name} is a strong type generated from {request.struct_name}. "
                            "Its type is used for all of its related generated constants."
                        ),
                    },
                )
            )

        if request.naming.iter:
            receiver_type = f"{base_name}[T]" if style is Style.GENERIC else base_name
            parts.append(
                self.render_template(
                    "enumerate.go.j2",
                    {
                        "receiver": receiver,
                        "receiver_type": receiver_type,
                        "values": list(resolved.values),
                        "description": (
                            f"All was generated from the [{request.struct_name}] struct. "
                            f"It returns an array of all [{base_name}]'s associated constant values."
                        ),
                    },
                )
            )

        rows = self._constant_rows(style, resolved)
        if rows:
            parts.append(
                self.render_template(
                    "constants.go.j2",
                    {
                        "struct_name": request.struct_name,
                        "rows": rows,
                        "name_width": max(len(row["name"]) for row in rows),
                        "type_width": max(len(row["type"]) for row in rows),
                    },
                )
            )
        else:
            logger.warning("Struct %s produced no constants", request.struct_name)

        # Field types are only written out by the generic style
        references = ()
        if style is Style.GENERIC:
            references = merge_references(resolved_field.references for resolved_field in resolved.fields)

        text = "\n".join(part.strip("\n") + "\n" for part in parts)
        return Fragment(text.strip("\n"), references)

    def _constant_rows(self, style: Style, resolved: ResolvedStruct) -> List[Dict[str, str]]:
        rows = []
        for resolved_field in resolved.fields:
            if style is Style.GENERIC:
                type_text = f"{resolved.base_name}[{resolved_field.type_text}]"
            elif style is Style.NONE:
                type_text = ""
            else:
                type_text = resolved.base_name
            rows.append(
                {
                    "name": resolved_field.constant_name,
                    "type": type_text,
                    "value": resolved_field.constant_value,
                }
            )
        return rows

    def render_file(self, result: GenerationResult, environment: GenerateEnvironment) -> str:
        """Render a complete Go file with header, package clause and imports."""
        source = None
        if environment.file:
            source = f"{environment.package}.{environment.file}:{environment.line}"

        code = self.render_template(
            "file.go.j2",
            {
                "tool_name": self.tool_name,
                "source": source,
                "package": result.package,
                "imports": sorted(result.references),
                "fragments": [fragment.text for fragment in result.fragments],
            },
        )
        return self.format_code(code)

    def format_code(self, code: str) -> str:
        """Indent with tabs, as gofmt does, then apply the basic cleanup."""
        code = _INDENT_RE.sub(lambda match: "\t" * (len(match.group(1)) // 4), code)
        return super().format_code(code)
