"""Typed dataclasses describing discovered examples and their deploy plans."""

from __future__ import annotations

import dataclasses as dc
import enum
import json
import typing as typ
from pathlib import Path


class Category(enum.StrEnum):
    """Browsable example categories, declared in navigation order."""

    BASIC = "basic"
    IDENTITY = "identity"
    AUCTIONS = "auctions"
    GAMES = "games"

    @property
    def rank(self) -> int:
        """Return the position of the category in navigation order."""
        return list(Category).index(self)

    @property
    def label(self) -> str:
        return self.value.title()


class Difficulty(enum.StrEnum):
    """Ordinal difficulty levels used for sorting and learning paths."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

    @property
    def rank(self) -> int:
        """Return the ordinal position of the difficulty."""
        return list(Difficulty).index(self)

    @property
    def label(self) -> str:
        return self.value.title()


@dc.dataclass(frozen=True, slots=True)
class LiteralArg:
    """A constructor argument passed through as a JSON literal."""

    value: str | int | float | bool

    def token(self) -> str:
        return json.dumps(self.value)


@dc.dataclass(frozen=True, slots=True)
class ReferenceArg:
    """A back-reference (``@name``) to an earlier step's ``save_as``."""

    name: str

    def token(self) -> str:
        return f"@{self.name}"


@dc.dataclass(frozen=True, slots=True)
class DeployerArg:
    """The active deployer address (``$deployer``)."""

    def token(self) -> str:
        return "$deployer"


@dc.dataclass(frozen=True, slots=True)
class ExpressionArg:
    """Target-runtime code (``#expr``) inlined verbatim into the script."""

    code: str

    def token(self) -> str:
        return f"#{self.code}"


DeployArg = LiteralArg | ReferenceArg | DeployerArg | ExpressionArg


@dc.dataclass(frozen=True, slots=True)
class DeployStep:
    """One deployment action within a plan.

    Attributes
    ----------
    contract : str
        Name of the contract to deploy.
    save_as : str
        Symbolic name (and generated local variable) for the deployed instance.
    args : tuple[DeployArg, ...]
        Constructor arguments in order.
    after_deploy : tuple[str, ...]
        Statements emitted verbatim after the deployment, where ``@name``
        tokens are replaced with the referenced variable.
    """

    contract: str
    save_as: str
    args: tuple[DeployArg, ...] = ()
    after_deploy: tuple[str, ...] = ()


@dc.dataclass(frozen=True, slots=True)
class ExampleRecord:
    """One documented, self-contained example discovered by the scanner."""

    slug: str
    title: str
    notice: str | None
    concept: str
    category: Category
    chapters: tuple[str, ...]
    difficulty: Difficulty
    depends_on: tuple[str, ...]
    deploy_plan: tuple[DeployStep, ...] | None
    source_path: Path
    test_path: Path | None
    contract_name: str
    doc_name: str
    package_imports: tuple[str, ...] = ()
    test_package_imports: tuple[str, ...] = ()

    @property
    def sort_key(self) -> tuple[int, int, str]:
        """Navigation order: category, then difficulty, then slug."""
        return (self.category.rank, self.difficulty.rank, self.slug)

    @property
    def doc_path(self) -> str:
        """Tutorial page location relative to the docs root."""
        return f"{self.category.value}/{self.doc_name}.md"


@dc.dataclass(slots=True)
class Registry:
    """All examples found in a scan plus a name index of every declaration.

    Attributes
    ----------
    root : Path
        Repository root the scan was run against.
    contracts_dir : Path
        Directory that was enumerated for ``.sol`` sources.
    tests_dir : Path
        Directory searched for paired tests.
    examples : list[ExampleRecord]
        Tagged examples sorted by slug.
    contract_index : dict[str, Path]
        Every declared contract, interface, and library name mapped to the
        file that declares it, helpers and same-file collaborators included.
    """

    root: Path
    contracts_dir: Path
    tests_dir: Path
    examples: list[ExampleRecord]
    contract_index: dict[str, Path]
    by_slug: dict[str, ExampleRecord] = dc.field(init=False)
    by_contract: dict[str, ExampleRecord] = dc.field(init=False)

    def __post_init__(self) -> None:
        self.by_slug = {example.slug: example for example in self.examples}
        self.by_contract = {example.contract_name: example for example in self.examples}

    def get(self, slug: str) -> ExampleRecord:
        """Return the example registered under ``slug``."""
        try:
            return self.by_slug[slug]
        except KeyError as exc:
            available = ", ".join(sorted(self.by_slug))
            msg = f"Unknown example '{slug}'. Known examples: {available}"
            raise KeyError(msg) from exc

    def categories(self) -> list[Category]:
        """Return the categories present in the registry, in navigation order."""
        present = {example.category for example in self.examples}
        return [category for category in Category if category in present]

    def in_category(self, category: Category | str) -> list[ExampleRecord]:
        """Return the examples of ``category`` in navigation order."""
        value = Category(category)
        return sorted(
            (example for example in self.examples if example.category is value),
            key=lambda example: example.sort_key,
        )

    def ordered(self) -> list[ExampleRecord]:
        """Return every example in navigation order."""
        return sorted(self.examples, key=lambda example: example.sort_key)

    def locate(self, contract: str) -> Path | None:
        """Return the source file declaring ``contract``, if any."""
        return self.contract_index.get(contract)

    def relative(self, path: Path) -> str:
        """Return ``path`` as a POSIX string relative to the registry root."""
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()


def lower_camel(name: str) -> str:
    """Return ``name`` with its first character lower-cased (``FHECounter`` -> ``fHECounter``)."""
    base = name.removesuffix(".sol")
    if not base:
        return base
    return base[0].lower() + base[1:]


__all__ = [
    "Category",
    "DeployArg",
    "DeployStep",
    "DeployerArg",
    "Difficulty",
    "ExampleRecord",
    "ExpressionArg",
    "LiteralArg",
    "ReferenceArg",
    "Registry",
    "lower_camel",
]
