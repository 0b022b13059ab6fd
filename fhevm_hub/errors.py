"""Exception hierarchy shared by the scanner, resolver, and generators.

Every failure the tool can report derives from :class:`HubError`, so the CLI
can translate any of them into a single ``error: ...`` line and a non-zero
exit status.
"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc


class HubError(Exception):
    """Base class for all fhevm_hub failures."""


class ScanError(HubError):
    """Raised when contract sources cannot be turned into a valid registry.

    Attributes
    ----------
    problems : list[str]
        One human-readable line per offending file and tag.
    """

    def __init__(self, problems: cabc.Sequence[str]) -> None:
        self.problems = list(problems)
        if len(self.problems) == 1:
            message = self.problems[0]
        else:
            lines = "\n".join(f"  - {problem}" for problem in self.problems)
            message = f"{len(self.problems)} problems found while scanning:\n{lines}"
        super().__init__(message)


class ResolutionError(HubError):
    """Raised when a dependency or deploy-plan reference cannot be resolved."""


class GenerationError(HubError):
    """Raised when a project or docs tree cannot be written."""


__all__ = ["GenerationError", "HubError", "ResolutionError", "ScanError"]
