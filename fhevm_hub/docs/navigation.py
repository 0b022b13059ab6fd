"""Ordering, grouping, and linking helpers shared by the docs pages."""

from __future__ import annotations

import collections
import dataclasses as dc
import re
import typing as typ
from pathlib import Path

from fhevm_hub.registry.models import Difficulty, ExampleRecord

if typ.TYPE_CHECKING:
    import collections.abc as cabc

H1_PATTERN = re.compile(r"^#\s+(.+?)\s*#*\s*$", re.MULTILINE)
WORD_SPLIT_PATTERN = re.compile(r"[-_\s]+")


def title_case(value: str) -> str:
    """Return ``value`` with each dash, underscore, or space separated word capitalised.

    Examples
    --------
    >>> title_case("access-control")
    'Access Control'
    """
    words = [word for word in WORD_SPLIT_PATTERN.split(value) if word]
    return " ".join(word[0].upper() + word[1:] for word in words)


def ordered(examples: cabc.Iterable[ExampleRecord]) -> list[ExampleRecord]:
    """Sort examples by category, then difficulty, then slug."""
    return sorted(examples, key=lambda example: example.sort_key)


def by_difficulty(
    examples: cabc.Iterable[ExampleRecord],
) -> list[tuple[Difficulty, list[ExampleRecord]]]:
    """Group examples by difficulty, in difficulty order, omitting empty groups."""
    groups: dict[Difficulty, list[ExampleRecord]] = {level: [] for level in Difficulty}
    for example in ordered(examples):
        groups[example.difficulty].append(example)
    return [(level, items) for level, items in groups.items() if items]


def chapter_map(examples: cabc.Iterable[ExampleRecord]) -> dict[str, list[ExampleRecord]]:
    """Map each chapter label to its examples, chapters sorted alphabetically."""
    chapters: dict[str, list[ExampleRecord]] = collections.defaultdict(list)
    for example in ordered(examples):
        for chapter in example.chapters:
            chapters[chapter].append(example)
    return {chapter: chapters[chapter] for chapter in sorted(chapters)}


def format_chapters(chapters: cabc.Sequence[str]) -> str:
    if not chapters:
        return "Uncategorized"
    return ", ".join(title_case(chapter) for chapter in chapters)


def link_between(source: ExampleRecord, target: ExampleRecord) -> str:
    """Return the relative link from ``source``'s page to ``target``'s page."""
    if source.category is target.category:
        return f"{target.doc_name}.md"
    return f"../{target.doc_path}"


@dc.dataclass(frozen=True, slots=True)
class StaticPage:
    """A curated markdown page copied verbatim into the docs root.

    Attributes
    ----------
    slug : str
        File name without the ``.md`` suffix.
    title : str
        Text of the first H1 heading, or the title-cased slug.
    source : Path
        Location of the curated file.
    """

    slug: str
    title: str
    source: Path

    @property
    def filename(self) -> str:
        return f"{self.slug}.md"


def extract_h1(markdown_text: str) -> str | None:
    """Return the text of the first level-one heading, if any."""
    match = H1_PATTERN.search(markdown_text)
    return match.group(1).strip() if match else None


def static_pages(directory: Path) -> list[StaticPage]:
    """Return the curated pages under ``directory`` sorted by title then slug."""
    if not directory.is_dir():
        return []
    pages = []
    for path in sorted(directory.glob("*.md")):
        if not path.is_file():
            continue
        slug = path.stem
        title = extract_h1(path.read_text(encoding="utf-8")) or title_case(slug)
        pages.append(StaticPage(slug=slug, title=title, source=path))
    return sorted(pages, key=lambda page: (page.title.lower(), page.slug))


__all__ = [
    "StaticPage",
    "by_difficulty",
    "chapter_map",
    "extract_h1",
    "format_chapters",
    "link_between",
    "ordered",
    "static_pages",
    "title_case",
]
