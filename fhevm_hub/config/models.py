"""Typed dataclasses describing fhevm-hub configuration structures."""

from __future__ import annotations

import dataclasses as dc
from pathlib import Path

from fhevm_hub.errors import HubError

BASE_DEV_DEPENDENCIES: tuple[str, ...] = (
    "@biomejs/biome",
    "@commitlint/cli",
    "@commitlint/config-conventional",
    "@fhevm/hardhat-plugin",
    "@nomicfoundation/hardhat-chai-matchers",
    "@nomicfoundation/hardhat-ethers",
    "@nomicfoundation/hardhat-network-helpers",
    "@openzeppelin/contracts",
    "@types/node",
    "chai",
    "dotenv",
    "ethers",
    "hardhat",
    "husky",
    "lint-staged",
    "solhint",
    "typescript",
)

TRACKED_DEPENDENCIES: tuple[str, ...] = (
    "@fhevm/solidity",
    "@openzeppelin/confidential-contracts",
    "@openzeppelin/contracts",
    "@fhevm/hardhat-plugin",
)


class HubConfigError(HubError, ValueError):
    """Raised when the hub configuration is invalid or incomplete."""


@dc.dataclass(slots=True)
class PathsConfig:
    """Directory layout of the hub repository, relative to its root."""

    contracts: Path = Path("contracts")
    tests: Path = Path("test")
    docs: Path = Path("docs")
    static_docs: Path = Path("static-docs")
    output: Path = Path("output")
    template: Path | None = None


@dc.dataclass(slots=True)
class ProjectConfig:
    """Settings applied to every generated standalone project."""

    package_prefix: str = "fhevm-example-"
    base_dev_dependencies: tuple[str, ...] = BASE_DEV_DEPENDENCIES
    tracked_dependencies: tuple[str, ...] = TRACKED_DEPENDENCIES
    versions: dict[str, str] = dc.field(default_factory=dict)
    template_git_url: str | None = None


@dc.dataclass(slots=True)
class DocsConfig:
    """Presentation settings for the generated documentation tree."""

    site_title: str = "fhEVM Examples"
    intro: str = (
        "Self-contained, runnable examples of confidential smart contracts "
        "built with fhEVM."
    )


@dc.dataclass(slots=True)
class HubConfig:
    """Top-level configuration for a hub repository."""

    root: Path
    paths: PathsConfig = dc.field(default_factory=PathsConfig)
    project: ProjectConfig = dc.field(default_factory=ProjectConfig)
    docs: DocsConfig = dc.field(default_factory=DocsConfig)

    def resolve(self, path: Path) -> Path:
        """Return ``path`` anchored at the hub root unless already absolute."""
        return path if path.is_absolute() else self.root / path

    @property
    def contracts_dir(self) -> Path:
        return self.resolve(self.paths.contracts)

    @property
    def tests_dir(self) -> Path:
        return self.resolve(self.paths.tests)

    @property
    def docs_dir(self) -> Path:
        return self.resolve(self.paths.docs)

    @property
    def static_docs_dir(self) -> Path:
        return self.resolve(self.paths.static_docs)

    @property
    def output_dir(self) -> Path:
        return self.resolve(self.paths.output)
