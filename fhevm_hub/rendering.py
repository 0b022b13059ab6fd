"""Shared Jinja environment for the markdown, TypeScript, and JSON outputs."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

DEFAULT_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def fence_for(code: str) -> str:
    """Return a backtick fence longer than any backtick run inside ``code``.

    Examples
    --------
    >>> fence_for("plain")
    '```'
    >>> fence_for("has ```` inside")
    '`````'
    """
    longest = run = 0
    for char in code:
        run = run + 1 if char == "`" else 0
        longest = max(longest, run)
    return "`" * max(3, longest + 1)


class TemplateRenderer:
    """Render the packaged Jinja templates with consistent whitespace rules."""

    def __init__(self, templates_dir: Path | None = None) -> None:
        """Initialize the renderer.

        Parameters
        ----------
        templates_dir : Path, optional
            Directory containing the Jinja templates. Defaults to the
            ``fhevm_hub/templates`` directory when ``None``.
        """
        self.templates_dir = templates_dir or DEFAULT_TEMPLATES_DIR
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.env.filters["fence"] = fence_for

    def render(self, name: str, **context: typ.Any) -> str:
        """Render template ``name`` with ``context``."""
        return self.env.get_template(name).render(**context)


__all__ = ["DEFAULT_TEMPLATES_DIR", "TemplateRenderer", "fence_for"]
