"""Cyclopts CLI entrypoint for the fhEVM example registry and generators.

The ``fhevm-hub`` console script defined here lists the examples discovered
in a hub checkout, generates standalone Hardhat projects for one example or a
whole category, renders the GitBook documentation tree and JSON catalog, and
runs the maintenance chores (template fetch, dependency drift, cleanup).
Typical usage is ``fhevm-hub create fhe-counter`` to scaffold a project and
``fhevm-hub docs`` to rebuild the docs.

Examples
--------
List the available examples:

>>> from fhevm_hub.cli import main
>>> main()  # doctest: +SKIP

Generate one example into a custom directory:

>>> from fhevm_hub.cli import app
>>> app(["create", "fhe-counter", "out/fhe-counter"])  # doctest: +SKIP
"""

from __future__ import annotations

import json
import sys
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .config import HubConfig, load_hub_config
from .docs import DocsGenerator, clean_docs
from .errors import HubError
from .project import ProjectGenerator, ensure_template, parse_version_overrides
from .registry import Registry, scan
from .resolver import resolve_all
from .tooling import (
    apply_dependency_updates,
    check_dependencies,
    clean_outputs,
    default_quickstart_dir,
    hub_versions,
    quickstart as run_quickstart,
)

app = App(name="fhevm-hub", config=cyclopts.config.Env("INPUT_", command=False))  # type: ignore[unknown-argument]

RootOption = typ.Annotated[
    Path, Parameter(help="Hub repository root", env_var="INPUT_ROOT")
]
ConfigOption = typ.Annotated[
    Path | None,
    Parameter(
        help="Path to hub config (defaults to config/hub.yaml when present)",
        env_var="INPUT_CONFIG",
    ),
]
OverwriteOption = typ.Annotated[
    bool, Parameter(help="Replace a non-empty output directory")
]
DepVersionOption = typ.Annotated[
    list[str] | None,
    Parameter(help="Pin a package range as name=range (repeatable)"),
]


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:
            return str(path)
    return str(path)


def _load(root: Path, config: Path | None) -> tuple[HubConfig, Registry]:
    hub_config = load_hub_config(root, config)
    return hub_config, scan(hub_config.root, hub_config)


def _report(paths: typ.Iterable[Path], verb: str = "wrote") -> None:
    for path in paths:
        print(f"{verb} {_format_path(path)}")


@app.command(help="List the discovered examples.")
def examples(
    *,
    json_output: typ.Annotated[
        bool, Parameter(name="--json", help="Print a JSON array of slugs")
    ] = False,
    root: RootOption = Path(),
    config: ConfigOption = None,
) -> None:
    """Print ``slug - title (Difficulty)`` lines, or a JSON array of slugs."""
    _, registry = _load(root, config)
    if json_output:
        print(json.dumps([example.slug for example in registry.examples], indent=2))
        return
    for example in registry.examples:
        print(f"{example.slug} - {example.title} ({example.difficulty.label})")


@app.command(help="List the categories that have examples.")
def categories(*, root: RootOption = Path(), config: ConfigOption = None) -> None:
    _, registry = _load(root, config)
    for category in registry.categories():
        print(category.value)


@app.command(help="Generate a standalone project for one example.")
def create(
    target: typ.Annotated[str, Parameter(help="Example slug (or category name)")],
    output: typ.Annotated[
        Path | None, Parameter(help="Output directory (default: output/<target>)")
    ] = None,
    *,
    overwrite: OverwriteOption = False,
    dep_version: DepVersionOption = None,
    root: RootOption = Path(),
    config: ConfigOption = None,
) -> None:
    """Generate the project for ``target`` into ``output``.

    Parameters
    ----------
    target : str
        Example slug. A category name generates the whole category bundle;
        a slug wins when both match.
    output : Path or None, optional
        Destination directory; defaults to ``<output dir>/<target>``.
    overwrite : bool, optional
        Replace an existing non-empty destination.
    dep_version : list[str] or None, optional
        ``name=range`` pins that override every other version source.
    root : Path, optional
        Hub repository root (``INPUT_ROOT``).
    config : Path or None, optional
        Hub configuration file (``INPUT_CONFIG``).
    """
    hub_config, registry = _load(root, config)
    generator = ProjectGenerator(
        registry,
        hub_config,
        version_overrides=parse_version_overrides(dep_version or []),
        overwrite=overwrite,
    )
    destination = output or hub_config.output_dir / target
    _report(generator.generate(target, destination))


@app.command(name="create:category", help="Generate projects for every example of a category.")
def create_category(
    category: typ.Annotated[str, Parameter(help="Category name")],
    output: typ.Annotated[
        Path | None, Parameter(help="Output directory (default: output/<category>)")
    ] = None,
    *,
    overwrite: OverwriteOption = False,
    dep_version: DepVersionOption = None,
    root: RootOption = Path(),
    config: ConfigOption = None,
) -> None:
    hub_config, registry = _load(root, config)
    generator = ProjectGenerator(
        registry,
        hub_config,
        version_overrides=parse_version_overrides(dep_version or []),
        overwrite=overwrite,
    )
    destination = output or hub_config.output_dir / category
    _report(generator.create_category(category, destination))


@app.command(help="Generate the full documentation tree.")
def docs(*, root: RootOption = Path(), config: ConfigOption = None) -> None:
    hub_config, registry = _load(root, config)
    _report(DocsGenerator(registry, hub_config).run())


@app.command(name="docs:one", help="Regenerate docs for a single example.")
def docs_one(
    slug: typ.Annotated[str, Parameter(help="Example slug")],
    *,
    root: RootOption = Path(),
    config: ConfigOption = None,
) -> None:
    hub_config, registry = _load(root, config)
    _report(DocsGenerator(registry, hub_config).run(slug))


@app.command(help="Write the JSON catalog of examples.")
def catalog(*, root: RootOption = Path(), config: ConfigOption = None) -> None:
    hub_config, registry = _load(root, config)
    _report([DocsGenerator(registry, hub_config).write_catalog()])


@app.command(help="Scan every contract and resolve every deploy plan.")
def validate(*, root: RootOption = Path(), config: ConfigOption = None) -> None:
    """Fail on any metadata or deploy-plan problem; otherwise print a summary."""
    _, registry = _load(root, config)
    plans = resolve_all(registry)
    for slug, plan in plans.items():
        if plan.fallback:
            print(f"{slug}: deploy order derived from @custom:depends-on")
    count = len(registry.examples)
    print(
        f"ok: {count} examples across {len(registry.categories())} categories; "
        "every deploy plan resolves"
    )


@app.command(name="ensure-template", help="Fetch the Hardhat template if it is missing.")
def ensure_template_command(*, root: RootOption = Path(), config: ConfigOption = None) -> None:
    hub_config = load_hub_config(root, config)
    template = ensure_template(hub_config)
    print(f"template ready: {_format_path(template)}")


@app.command(help="Remove generated docs and project output.")
def clean(*, root: RootOption = Path(), config: ConfigOption = None) -> None:
    """Delete manifest-listed docs and the generated project directories.

    Curated docs are never removed; only files recorded in the docs manifest
    are deleted. Scanning is skipped so cleanup works on a broken tree.
    """
    hub_config = load_hub_config(root, config)
    removed = clean_docs(hub_config.docs_dir)
    removed.extend(clean_outputs(hub_config))
    _report(removed, verb="removed")


@app.command(help="Compare or update tracked dependency ranges in generated projects.")
def deps(
    *,
    apply: typ.Annotated[
        bool, Parameter(help="Rewrite outdated ranges instead of reporting them")
    ] = False,
    root: RootOption = Path(),
    config: ConfigOption = None,
) -> None:
    hub_config = load_hub_config(root, config)
    if apply:
        changed = apply_dependency_updates(hub_config)
        _report(changed, verb="updated")
        if not changed:
            print("all generated projects are up to date")
        return

    versions = hub_versions(hub_config)
    for package in hub_config.project.tracked_dependencies:
        if package in versions:
            print(f"hub {package}: {versions[package]}")
    drifts = check_dependencies(hub_config)
    for drift in drifts:
        print(
            f"{_format_path(drift.project)}: {drift.package} "
            f"{drift.current} -> {drift.expected}"
        )
    if not drifts:
        print("all generated projects are up to date")


@app.command(help="Generate an example, install it, and run its mocked tests.")
def quickstart(
    slug: typ.Annotated[str, Parameter(help="Example slug")] = "fhe-counter",
    output: typ.Annotated[Path | None, Parameter(help="Output directory")] = None,
    *,
    root: RootOption = Path(),
    config: ConfigOption = None,
) -> None:
    hub_config, registry = _load(root, config)
    ensure_template(hub_config)
    destination = output or default_quickstart_dir(hub_config, slug)
    _report(ProjectGenerator(registry, hub_config).create_example(slug, destination))
    run_quickstart(destination)
    print(f"quickstart complete: {_format_path(destination)}")


def main() -> None:
    """Invoke the Cyclopts application that powers the ``fhevm-hub`` command.

    Any :class:`~fhevm_hub.errors.HubError` (or missing configuration file)
    is reported as a single ``error: ...`` line on stderr with exit status 1.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    try:
        app()
    except (HubError, FileNotFoundError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
