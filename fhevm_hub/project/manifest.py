"""Build the ``package.json`` of a generated project.

The template's manifest is the base. Name, description, scripts, and keywords
are replaced for the example, contract package imports become
``dependencies``, and the fixed base set plus test package imports become
``devDependencies``. Versions resolve from the hub's own ``package.json``,
then the configured ``versions`` table, then caller overrides; anything still
unknown is ``"*"``.
"""

from __future__ import annotations

import collections.abc as cabc
import json
import typing as typ
from pathlib import Path

from fhevm_hub.errors import GenerationError

if typ.TYPE_CHECKING:
    from fhevm_hub.config import ProjectConfig
    from fhevm_hub.registry.models import ExampleRecord

PROJECT_SCRIPTS: dict[str, str] = {
    "compile": "hardhat compile",
    "test": "hardhat test",
    "test:mocked": "HARDHAT_NETWORK=hardhat hardhat test",
    "deploy": "hardhat run scripts/deploy.ts",
    "lint": "biome check .",
    "lint:fix": "biome check . --write",
    "lint:sol": "solhint 'contracts/**/*.sol'",
    "lint:sol:fix": "solhint 'contracts/**/*.sol' --fix",
    "format": "biome format . --write",
    "typecheck": "tsc --noEmit",
    "verify": "npm run lint && npm run lint:sol && npm run typecheck && npm run test:mocked",
}
DEFAULT_ENGINES = {"node": ">=22.0.0 <25.0.0"}


def read_json_object(path: Path) -> dict[str, typ.Any]:
    """Return the JSON object stored at ``path`` or an empty dict when missing."""
    if not path.is_file():
        return {}
    try:
        loaded = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        msg = f"{path} is not valid JSON: {exc}"
        raise GenerationError(msg) from exc
    if not isinstance(loaded, dict):
        msg = f"{path} must contain a JSON object"
        raise GenerationError(msg)
    return loaded


def root_versions(root: Path) -> dict[str, str]:
    """Return the dependency ranges declared by the hub's own ``package.json``."""
    manifest = read_json_object(root / "package.json")
    versions: dict[str, str] = {}
    for section in ("devDependencies", "dependencies"):
        entries = manifest.get(section) or {}
        versions.update({str(name): str(version) for name, version in entries.items()})
    return versions


def parse_version_overrides(values: cabc.Iterable[str]) -> dict[str, str]:
    """Parse ``name=range`` pairs given on the command line.

    Examples
    --------
    >>> parse_version_overrides(["@fhevm/solidity=^0.9.0"])
    {'@fhevm/solidity': '^0.9.0'}
    """
    overrides: dict[str, str] = {}
    for value in values:
        name, sep, version = value.partition("=")
        if not sep or not name.strip() or not version.strip():
            msg = f"Invalid version override '{value}'; expected name=range"
            raise GenerationError(msg)
        overrides[name.strip()] = version.strip()
    return overrides


def _sorted(entries: dict[str, str]) -> dict[str, str]:
    return {name: entries[name] for name in sorted(entries)}


def build_package_manifest(
    example: ExampleRecord,
    *,
    base: cabc.Mapping[str, typ.Any],
    project: ProjectConfig,
    versions: cabc.Mapping[str, str],
) -> dict[str, typ.Any]:
    """Return the ``package.json`` mapping for ``example``.

    Parameters
    ----------
    example : ExampleRecord
        Example being packaged.
    base : Mapping
        The template's manifest; unrelated keys are preserved.
    project : ProjectConfig
        Package prefix and base dev dependency set.
    versions : Mapping[str, str]
        Resolved version ranges by package name.
    """

    def version(name: str) -> str:
        return versions.get(name, "*")

    dependencies = {name: version(name) for name in example.package_imports}
    dev_names = [*project.base_dev_dependencies, *example.test_package_imports]
    dev_dependencies = {
        name: version(name) for name in dev_names if name not in dependencies
    }

    description = example.title
    if example.concept:
        description = f"{example.title}: {example.concept}"

    manifest = dict(base)
    scripts = dict(manifest.get("scripts") or {})
    scripts.update(PROJECT_SCRIPTS)
    manifest.update(
        {
            "name": f"{project.package_prefix}{example.slug}",
            "version": manifest.get("version", "1.0.0"),
            "description": description,
            "scripts": scripts,
            "keywords": ["fhevm", "fhe", "zama", "example", example.category.value],
            "license": manifest.get("license", "MIT"),
            "dependencies": _sorted(dependencies),
            "devDependencies": _sorted(dev_dependencies),
            "engines": manifest.get("engines", DEFAULT_ENGINES),
        }
    )
    manifest.pop("private", None)
    return manifest


def dump_json(payload: cabc.Mapping[str, typ.Any]) -> str:
    """Serialize ``payload`` the way npm writes manifests."""
    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"


__all__ = [
    "PROJECT_SCRIPTS",
    "build_package_manifest",
    "dump_json",
    "parse_version_overrides",
    "read_json_object",
    "root_versions",
]
