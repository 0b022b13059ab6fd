r"""Extract pitfall descriptions from TypeScript test suites.

A test case counts as a pitfall when its ``it(...)`` or ``test(...)``
description carries the explicit ``(pitfall)`` marker. The marker is stripped
from the returned text and duplicates are dropped.

Example
-------
>>> from fhevm_hub.docs.pitfalls import extract_pitfalls
>>> extract_pitfalls('it("reverts without allowThis (pitfall)", async () => {});')
['reverts without allowThis']
"""

from __future__ import annotations

import re

from fhevm_hub._constants import PITFALL_MARKER

TEST_CASE_PATTERN = re.compile(
    r"\b(?:it|test)(?:\.only|\.skip)?\s*\(\s*([\"'`])((?:\\.|(?!\1).)*?)\1",
    re.DOTALL,
)
MARKER_PATTERN = re.compile(rf"\s*{re.escape(PITFALL_MARKER)}\s*", re.IGNORECASE)


def extract_pitfalls(test_source: str | None) -> list[str]:
    """Return the marked pitfall descriptions of a test suite in source order."""
    if not test_source:
        return []
    found: dict[str, None] = {}
    for match in TEST_CASE_PATTERN.finditer(test_source):
        description = match.group(2)
        if not MARKER_PATTERN.search(description):
            continue
        cleaned = " ".join(MARKER_PATTERN.sub(" ", description).split())
        found.setdefault(cleaned or description.strip(), None)
    return list(found)


__all__ = ["extract_pitfalls"]
