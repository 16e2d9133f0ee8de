"""
Template engine wrapper for code generation.

Provides a simple interface for Jinja2 template rendering
with the filters generated Go code needs.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import ChoiceLoader, DictLoader, Environment, FileSystemLoader
from jinja2 import TemplateError as JinjaTemplateError

from .errors import SfgenError

_GO_ESCAPES = {
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
    "\\": "\\\\",
    '"': '\\"',
}


class TemplateError(SfgenError):
    """Exception raised for template-related errors."""

    pass


def go_quote(value: Any) -> str:
    """
    Quote a string as a Go interpreted string literal.

    Printable characters are kept as is; others use the shortest of the
    ``\\x``, ``\\u`` and ``\\U`` escapes, as ``strconv.Quote`` does.
    """
    parts = ['"']
    for char in str(value):
        if char in _GO_ESCAPES:
            parts.append(_GO_ESCAPES[char])
        elif char.isprintable():
            parts.append(char)
        elif ord(char) < 0x80:
            parts.append(f"\\x{ord(char):02x}")
        elif ord(char) < 0x10000:
            parts.append(f"\\u{ord(char):04x}")
        else:
            parts.append(f"\\U{ord(char):08x}")
    parts.append('"')
    return "".join(parts)


class TemplateEngine:
    """Wrapper for Jinja2 template engine with code generation utilities."""

    def __init__(self, template_dir: Optional[Path] = None):
        """
        Initialize template engine.

        Args:
            template_dir: Directory containing template files
        """
        self.template_dir = template_dir
        self._templates: Dict[str, str] = {}
        self._env = None
        self._setup_environment()

    def _setup_environment(self):
        """Setup Jinja2 environment with code generation utilities."""
        # In-memory templates take precedence over files of the same name
        loaders = [DictLoader(self._templates)]
        if self.template_dir and self.template_dir.exists():
            loaders.append(FileSystemLoader(str(self.template_dir)))

        self._env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

        # Add custom filters for code generation
        self._env.filters["go_quote"] = go_quote
        self._env.filters["comment"] = self._comment_filter

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """
        Render a template with the given context.

        Args:
            template_name: Name of template file
            context: Variables to pass to template

        Returns:
            Rendered template content
        """
        try:
            template = self._env.get_template(template_name)
            return template.render(**context)
        except JinjaTemplateError as e:
            raise TemplateError(f"Failed to render template {template_name}: {e}") from e

    def add_template(self, name: str, content: str):
        """
        Add an in-memory template, replacing a directory template of the same name.

        Args:
            name: Template name
            content: Template content
        """
        self._templates[name] = content
        if self._env.cache is not None:
            self._env.cache.clear()

    # Template filters for code generation

    def _comment_filter(self, value: str, style: str = "//") -> str:
        """Add comment markers to each line."""
        lines = str(value).split("\n")
        return "\n".join(f"{style} {line}" if line.strip() else style for line in lines)


def create_template_engine(template_dir: Optional[Path] = None) -> TemplateEngine:
    """Create a template engine, backed by ``template_dir`` when it exists."""
    return TemplateEngine(template_dir)
