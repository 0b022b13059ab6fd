"""Maintenance helpers behind ``deps``, ``clean``, and ``quickstart``.

* ``deps`` compares the tracked dependency ranges of every generated project
  under the output directory against the hub's own ranges and can rewrite
  them in place.
* ``clean`` removes generated project trees.
* ``quickstart`` generates one project, then runs ``npm install`` and the
  mocked test suite inside it.
"""

from __future__ import annotations

import dataclasses as dc
import os
import shutil
import subprocess
import typing as typ
from pathlib import Path

from fhevm_hub.errors import GenerationError, HubError
from fhevm_hub.project.manifest import dump_json, read_json_object, root_versions

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from fhevm_hub.config import HubConfig

DEPENDENCY_SECTIONS = ("dependencies", "devDependencies")
SCRATCH_DIRS = ("test-output",)


@dc.dataclass(frozen=True, slots=True)
class DependencyDrift:
    """A tracked package whose range in a generated project differs from the hub.

    Attributes
    ----------
    project : Path
        Generated project directory.
    package : str
        npm package name.
    current : str
        Range currently declared by the project.
    expected : str
        Range declared by the hub.
    """

    project: Path
    package: str
    current: str
    expected: str


def hub_versions(config: HubConfig) -> dict[str, str]:
    """Return the hub's ranges: its ``package.json`` overlaid with configured versions."""
    return {**root_versions(config.root), **config.project.versions}


def generated_projects(output_dir: Path) -> list[Path]:
    """Return the directories directly under ``output_dir`` holding a ``package.json``."""
    if not output_dir.is_dir():
        return []
    return sorted(
        entry
        for entry in output_dir.iterdir()
        if entry.is_dir() and (entry / "package.json").is_file()
    )


def _declared(manifest: cabc.Mapping[str, typ.Any], package: str) -> str | None:
    for section in DEPENDENCY_SECTIONS:
        entries = manifest.get(section) or {}
        if package in entries:
            return str(entries[package])
    return None


def check_dependencies(config: HubConfig) -> list[DependencyDrift]:
    """Return every tracked dependency drift across generated projects."""
    expected = hub_versions(config)
    drifts: list[DependencyDrift] = []
    for project in generated_projects(config.output_dir):
        manifest = read_json_object(project / "package.json")
        for package in config.project.tracked_dependencies:
            hub_range = expected.get(package)
            current = _declared(manifest, package)
            if hub_range and current and current != hub_range:
                drifts.append(
                    DependencyDrift(
                        project=project,
                        package=package,
                        current=current,
                        expected=hub_range,
                    )
                )
    return drifts


def apply_dependency_updates(config: HubConfig) -> list[Path]:
    """Rewrite drifting tracked ranges in generated projects; return changed manifests."""
    changed: dict[Path, None] = {}
    drifts = check_dependencies(config)
    for project in dict.fromkeys(drift.project for drift in drifts):
        path = project / "package.json"
        manifest = read_json_object(path)
        for drift in drifts:
            if drift.project != project:
                continue
            for section in DEPENDENCY_SECTIONS:
                entries = manifest.get(section) or {}
                if drift.package in entries:
                    entries[drift.package] = drift.expected
        path.write_text(dump_json(manifest), encoding="utf-8")
        changed[path] = None
    return list(changed)


def clean_outputs(config: HubConfig) -> list[Path]:
    """Remove the generated projects directory and scratch output directories."""
    removed: list[Path] = []
    for directory in (config.output_dir, *(config.root / name for name in SCRATCH_DIRS)):
        if directory.exists():
            shutil.rmtree(directory)
            removed.append(directory)
    return removed


def run_npm(args: cabc.Sequence[str], *, cwd: Path) -> None:
    """Run ``npm`` with ``args`` in ``cwd``, raising HubError on failure."""
    env = {**os.environ, "HUSKY": "0"}
    try:
        subprocess.run(["npm", *args], cwd=cwd, env=env, check=True)  # noqa: S603,S607
    except FileNotFoundError as exc:
        msg = "npm is not available on PATH."
        raise HubError(msg) from exc
    except subprocess.CalledProcessError as exc:
        msg = f"npm {' '.join(args)} failed with exit code {exc.returncode}"
        raise HubError(msg) from exc


def default_quickstart_dir(config: HubConfig, slug: str) -> Path:
    return config.root / SCRATCH_DIRS[0] / "quickstart" / slug


def quickstart(
    project_dir: Path,
    *,
    runner: cabc.Callable[..., None] = run_npm,
) -> None:
    """Install dependencies and run the mocked tests of a generated project."""
    if not (project_dir / "package.json").is_file():
        msg = f"'{project_dir}' is not a generated project (no package.json)."
        raise GenerationError(msg)
    runner(["install"], cwd=project_dir)
    runner(["run", "test:mocked"], cwd=project_dir)


__all__ = [
    "DependencyDrift",
    "apply_dependency_updates",
    "check_dependencies",
    "clean_outputs",
    "default_quickstart_dir",
    "generated_projects",
    "hub_versions",
    "quickstart",
    "run_npm",
]
