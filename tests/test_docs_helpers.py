"""Unit tests for pitfall extraction and docs navigation helpers."""

from __future__ import annotations

from pathlib import Path
from textwrap import dedent

import pytest

from fhevm_hub.docs import extract_pitfalls, static_pages, title_case
from fhevm_hub.docs.navigation import extract_h1, format_chapters, link_between
from fhevm_hub.registry import Registry


def test_pitfalls_require_marker() -> None:
    source = dedent(
        """\
        describe("suite", () => {
          it("works normally", async () => {});
          it("forgets allowThis (pitfall)", async () => {});
          test.only(`decrypts without permission (PITFALL)`, () => {});
          it("forgets allowThis (pitfall)", async () => {});
        });
        """
    )
    assert extract_pitfalls(source) == [
        "forgets allowThis",
        "decrypts without permission",
    ]


@pytest.mark.parametrize("source", [None, "", "it('nothing marked', () => {});"])
def test_pitfalls_empty(source: str | None) -> None:
    assert extract_pitfalls(source) == []


def test_pitfall_with_escaped_quote() -> None:
    source = "it('doesn\\'t reuse handles (pitfall)', () => {});"
    assert extract_pitfalls(source) == ["doesn\\'t reuse handles"]


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("access-control", "Access Control"),
        ("input_proofs", "Input Proofs"),
        ("FHE ops", "FHE Ops"),
    ],
)
def test_title_case(value: str, expected: str) -> None:
    assert title_case(value) == expected


def test_format_chapters() -> None:
    assert format_chapters([]) == "Uncategorized"
    assert format_chapters(["encryption", "access-control"]) == "Encryption, Access Control"


def test_link_between_categories(registry: Registry) -> None:
    counter = registry.get("fhe-counter")
    vault = registry.get("encrypted-vault")
    auction = registry.get("blind-auction")
    assert link_between(vault, counter) == "FHECounter.md"
    assert link_between(auction, counter) == "../basic/FHECounter.md"


def test_extract_h1() -> None:
    assert extract_h1("intro\n# Getting Started #\n## Sub\n") == "Getting Started"
    assert extract_h1("## only h2\n") is None


def test_static_pages_sorted_by_title(tmp_path: Path) -> None:
    (tmp_path / "zeta.md").write_text("# Alpha Guide\n", encoding="utf-8")
    (tmp_path / "alpha.md").write_text("# Zulu Notes\n", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("ignored\n", encoding="utf-8")
    pages = static_pages(tmp_path)
    assert [(page.slug, page.title) for page in pages] == [
        ("zeta", "Alpha Guide"),
        ("alpha", "Zulu Notes"),
    ]
    assert pages[0].filename == "zeta.md"
    assert static_pages(tmp_path / "missing") == []
