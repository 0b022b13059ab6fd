r"""Parse Solidity sources into declarations, NatSpec tag blocks, and imports.

This module powers the registry scanner by locating ``contract``,
``interface``, and ``library`` declarations outside comments and string
literals, attaching the NatSpec block (``/** ... */`` or a run of ``///``
lines) that directly precedes each one, and splitting that block into ordered
tag entries.

Example
-------
>>> from fhevm_hub.registry.solidity import parse_declarations
>>> source = "/// @title Counter\n/// @custom:category basic\ncontract Counter {}\n"
>>> decl = parse_declarations(source)[0]
>>> decl.name, decl.doc.first("custom:category")
('Counter', 'basic')
"""

from __future__ import annotations

import dataclasses as dc
import re

COMMENT_OR_STRING_PATTERN = re.compile(
    r"/\*.*?\*/|//[^\n]*|\"(?:\\.|[^\"\\\n])*\"|'(?:\\.|[^'\\\n])*'", re.DOTALL
)
DECLARATION_PATTERN = re.compile(
    r"\b(?:abstract\s+)?(contract|interface|library)\s+([A-Za-z_]\w*)"
)
TAG_PATTERN = re.compile(r"^@([A-Za-z][\w:-]*)\s*(.*)$")
IMPORT_PATTERN = re.compile(
    r"\bimport\s+(?:[^;\"']*?\bfrom\s+)?[\"']([^\"']+)[\"'][^;]*;"
)


@dc.dataclass(slots=True)
class TagEntry:
    """A single ``@tag value`` entry from a NatSpec block.

    Attributes
    ----------
    name : str
        Tag name without the leading ``@`` (for example ``custom:category``).
    value : str
        Tag text with continuation lines joined by single spaces.
    """

    name: str
    value: str


@dc.dataclass(slots=True)
class TagBlock:
    """Ordered tag entries parsed from one NatSpec comment block."""

    entries: list[TagEntry]

    def first(self, name: str) -> str | None:
        """Return the value of the first ``name`` entry, or None."""
        for entry in self.entries:
            if entry.name == name:
                return entry.value
        return None

    def names(self) -> list[str]:
        return [entry.name for entry in self.entries]

    @property
    def has_custom_tags(self) -> bool:
        """Return True when the block carries at least one ``@custom:`` tag."""
        return any(entry.name.startswith("custom:") for entry in self.entries)


@dc.dataclass(slots=True)
class Declaration:
    """A top-level Solidity declaration and its attached documentation.

    Attributes
    ----------
    kind : str
        ``"contract"``, ``"interface"``, or ``"library"``.
    name : str
        Declared identifier.
    offset : int
        Character offset of the declaration within the source.
    doc : TagBlock or None
        Parsed NatSpec block directly preceding the declaration, if any.
    """

    kind: str
    name: str
    offset: int
    doc: TagBlock | None


def mask_comments(source: str) -> str:
    """Blank out comments and string literals while preserving offsets."""

    def _blank(match: re.Match[str]) -> str:
        return re.sub(r"[^\n]", " ", match.group(0))

    return COMMENT_OR_STRING_PATTERN.sub(_blank, source)


def _preceding_comment(source: str, offset: int) -> list[str] | None:
    """Return the raw lines of the doc comment that ends right before ``offset``."""
    head = source[:offset].rstrip()
    if head.endswith("*/"):
        start = head.rfind("/*")
        if start == -1 or not head.startswith("/**", start):
            return None
        body = head[start + 3 : -2]
        lines = []
        for raw in body.splitlines():
            line = raw.strip()
            if line.startswith("*"):
                line = line[1:]
            lines.append(line.strip())
        return lines

    collected: list[str] = []
    for raw in reversed(head.splitlines()):
        line = raw.strip()
        if not line.startswith("///"):
            break
        collected.append(line[3:].strip())
    if not collected:
        return None
    collected.reverse()
    return collected


def parse_tag_block(lines: list[str]) -> TagBlock:
    """Split comment lines into ordered tag entries.

    Text before the first tag is treated as an implicit ``@notice``, matching
    the NatSpec convention. Lines that do not start a new tag continue the
    previous entry.
    """
    entries: list[TagEntry] = []
    leading: list[str] = []
    for line in lines:
        if not line:
            continue
        match = TAG_PATTERN.match(line)
        if match:
            entries.append(TagEntry(name=match.group(1), value=match.group(2).strip()))
        elif entries:
            current = entries[-1]
            current.value = f"{current.value} {line}".strip()
        else:
            leading.append(line)
    if leading and not any(entry.name == "notice" for entry in entries):
        entries.insert(0, TagEntry(name="notice", value=" ".join(leading)))
    return TagBlock(entries=entries)


def parse_declarations(source: str) -> list[Declaration]:
    """Return every declaration in ``source`` with its preceding NatSpec block.

    Parameters
    ----------
    source : str
        Full Solidity source text.

    Returns
    -------
    list[Declaration]
        Declarations in source order. ``doc`` is ``None`` when no doc comment
        directly precedes the declaration.
    """
    masked = mask_comments(source)
    declarations: list[Declaration] = []
    for match in DECLARATION_PATTERN.finditer(masked):
        lines = _preceding_comment(source, match.start())
        doc = parse_tag_block(lines) if lines is not None else None
        declarations.append(
            Declaration(
                kind=match.group(1),
                name=match.group(2),
                offset=match.start(),
                doc=doc,
            )
        )
    return declarations


def extract_imports(source: str) -> list[str]:
    """Return import paths in source order, ignoring commented-out imports."""
    masked = mask_comments(source)
    paths: list[str] = []
    for match in IMPORT_PATTERN.finditer(source):
        # The statement must survive masking; otherwise it sits inside a comment.
        if not masked[match.start() : match.start() + 6] == "import":
            continue
        paths.append(match.group(1))
    return paths


def package_name(import_path: str) -> str | None:
    """Return the npm package an import path belongs to, or None for relative paths."""
    if import_path.startswith(".") or ":" in import_path:
        return None
    if import_path.startswith("@"):
        parts = import_path.split("/")
        if len(parts) < 2 or not parts[1]:
            return None
        return f"{parts[0]}/{parts[1]}"
    head = import_path.split("/", 1)[0]
    return head or None


__all__ = [
    "Declaration",
    "TagBlock",
    "TagEntry",
    "extract_imports",
    "mask_comments",
    "package_name",
    "parse_declarations",
    "parse_tag_block",
]
