"""Render the GitBook-flavoured documentation tree for the example registry.

This module powers ``fhevm-hub docs`` and ``fhevm-hub docs:one``. It turns a
:class:`~fhevm_hub.registry.Registry` into per-example tutorial pages,
category indexes, chapter pages, learning paths, a pitfalls index, the intro
page, ``SUMMARY.md``, and ``catalog.json``. Curated pages from the static docs
directory are copied in verbatim.

Every written path is recorded in a manifest in the docs root so
:meth:`DocsGenerator.clean` can remove generated files without touching
anything curated by hand. Generation refuses to overwrite an existing file the
manifest does not list, and a full run drops pages it no longer renders, so
the tree depends only on the registry.

Example
-------
>>> from pathlib import Path
>>> from fhevm_hub.config import load_hub_config
>>> from fhevm_hub.docs import DocsGenerator
>>> from fhevm_hub.registry import scan
>>> config = load_hub_config(Path("."))  # doctest: +SKIP
>>> DocsGenerator(scan(config.root, config), config).run()  # doctest: +SKIP
[PosixPath('docs/basic/FHECounter.md'), ...]
"""

from __future__ import annotations

import json
import typing as typ
from pathlib import Path

from fhevm_hub._constants import CATALOG_FILENAME, DOCS_MANIFEST
from fhevm_hub.errors import GenerationError
from fhevm_hub.registry.models import Category, Difficulty, ExampleRecord, Registry
from fhevm_hub.rendering import TemplateRenderer

from .catalog import build_catalog, encode_catalog
from .navigation import (
    by_difficulty,
    chapter_map,
    format_chapters,
    link_between,
    ordered,
    static_pages,
    title_case,
)
from .pitfalls import extract_pitfalls

if typ.TYPE_CHECKING:
    from fhevm_hub.config import HubConfig
    from fhevm_hub.registry.models import DeployStep

    from .navigation import StaticPage


class DocsGenerator:
    """Write tutorial pages, indexes, and the catalog into the docs directory."""

    def __init__(
        self,
        registry: Registry,
        config: HubConfig,
        *,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        """Initialize the docs generator.

        Parameters
        ----------
        registry : Registry
            Scanned examples to document.
        config : HubConfig
            Hub configuration providing the docs and static docs directories.
        renderer : TemplateRenderer, optional
            Template renderer; defaults to the packaged templates.
        """
        self.registry = registry
        self.config = config
        self.docs_dir = config.docs_dir
        self.renderer = renderer or TemplateRenderer()
        self.renderer.env.filters["title_case"] = title_case

    @property
    def manifest_path(self) -> Path:
        return self.docs_dir / DOCS_MANIFEST

    def run(self, slug: str | None = None) -> list[Path]:
        """Generate the docs tree and return every written path.

        Parameters
        ----------
        slug : str, optional
            Restrict example pages to this example and its category index;
            aggregate pages are always regenerated.

        Raises
        ------
        GenerationError
            If ``slug`` is not a known example.
        """
        if slug is None:
            targets = ordered(self.registry.examples)
            categories = self.registry.categories()
        else:
            try:
                example = self.registry.get(slug)
            except KeyError as exc:
                raise GenerationError(exc.args[0]) from exc
            targets = [example]
            categories = [example.category]

        pending: dict[str, str] = {}
        pages = static_pages(self.config.static_docs_dir)
        for page in pages:
            pending[page.filename] = page.source.read_text(encoding="utf-8")
        for example in targets:
            pending[example.doc_path] = self.render_example(example)
        for category in categories:
            pending[f"{category.value}/README.md"] = self.render_category(category)
        pending.update(self._render_aggregates(pages))
        pending[CATALOG_FILENAME] = encode_catalog(build_catalog(self.registry))

        return self._commit(pending, replace=slug is None)

    def write_catalog(self) -> Path:
        """Write only ``catalog.json`` and record it in the manifest."""
        (path,) = self._commit({CATALOG_FILENAME: encode_catalog(build_catalog(self.registry))})
        return path

    def clean(self) -> list[Path]:
        """Remove the generated files recorded in the docs manifest."""
        return clean_docs(self.docs_dir)

    def render_example(self, example: ExampleRecord) -> str:
        """Return the tutorial page markdown for ``example``."""
        contract_code = example.source_path.read_text(encoding="utf-8").rstrip()
        test_code = None
        test_rel = None
        if example.test_path is not None:
            test_code = example.test_path.read_text(encoding="utf-8").rstrip()
            test_rel = self.registry.relative(example.test_path)
        quick_start = "npm run test:mocked"
        if test_rel:
            quick_start = f"{quick_start} -- {test_rel}"

        return self.renderer.render(
            "example_page.md.jinja",
            example=example,
            chapters=format_chapters(example.chapters),
            quick_start=quick_start,
            dependencies=self._dependencies(example),
            plan_rows=_plan_rows(example.deploy_plan),
            contract_file=example.source_path.name,
            contract_code=contract_code,
            test_file=example.test_path.name if example.test_path else None,
            test_code=test_code,
            pitfalls=extract_pitfalls(test_code),
        )

    def render_category(self, category: Category) -> str:
        examples = self.registry.in_category(category)
        return self.renderer.render(
            "category_index.md.jinja",
            category=category,
            groups=by_difficulty(examples),
        )

    def _dependencies(self, example: ExampleRecord) -> list[dict[str, str | None]]:
        entries: list[dict[str, str | None]] = []
        for name in example.depends_on:
            target = self.registry.by_contract.get(name)
            link = link_between(example, target) if target is not None else None
            entries.append({"name": name, "link": link})
        return entries

    def _render_aggregates(self, pages: list[StaticPage]) -> dict[str, str]:
        examples = ordered(self.registry.examples)
        categories = [
            (category, self.registry.in_category(category))
            for category in self.registry.categories()
        ]
        chapters = chapter_map(examples)
        levels = [
            (level, [example for example in examples if example.difficulty is level])
            for level in Difficulty
        ]
        pitfall_entries = []
        for example in examples:
            if example.test_path is None:
                continue
            items = extract_pitfalls(example.test_path.read_text(encoding="utf-8"))
            if items:
                pitfall_entries.append((example, items))

        site = self.config.docs
        rendered = {
            "README.md": self.renderer.render(
                "intro.md.jinja",
                site_title=site.site_title,
                intro=site.intro,
                static_pages=pages,
                categories=categories,
            ),
            "learning-paths.md": self.renderer.render("learning_paths.md.jinja", levels=levels),
            "chapters/README.md": self.renderer.render(
                "chapters_index.md.jinja", chapters=list(chapters)
            ),
        }
        for chapter, members in chapters.items():
            rendered[f"chapters/{chapter}.md"] = self.renderer.render(
                "chapter_page.md.jinja", chapter=chapter, examples=members
            )
        rendered["pitfalls.md"] = self.renderer.render(
            "pitfalls.md.jinja", entries=pitfall_entries
        )
        rendered["SUMMARY.md"] = self.renderer.render(
            "summary.md.jinja",
            static_pages=pages,
            chapters=list(chapters),
            categories=categories,
        )
        return rendered

    def _commit(self, pending: dict[str, str], *, replace: bool = False) -> list[Path]:
        """Write ``pending`` pages and update the manifest.

        Parameters
        ----------
        pending : dict[str, str]
            Page content keyed by docs-relative path.
        replace : bool, default False
            When true the manifest is rewritten to exactly this run's pages and
            previously generated pages that were not rendered again are removed.
            Otherwise the manifest is extended.

        Raises
        ------
        GenerationError
            If a target path already exists but is not a generated page. Nothing
            is written in that case.
        """
        recorded = set(read_manifest(self.docs_dir))
        collisions = sorted(
            relative
            for relative in pending
            if relative not in recorded and (self.docs_dir / relative).exists()
        )
        if collisions:
            listed = ", ".join(collisions)
            msg = (
                f"Refusing to overwrite hand-written docs in '{self.docs_dir}': {listed}. "
                "Move or rename them before generating."
            )
            raise GenerationError(msg)

        written: list[Path] = []
        for relative, content in pending.items():
            path = self.docs_dir / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(f"{content.rstrip()}\n", encoding="utf-8")
            written.append(path)

        if replace:
            for relative in sorted(recorded - pending.keys()):
                _remove_generated(self.docs_dir, self.docs_dir / relative)
            entries = set(pending)
        else:
            entries = recorded | pending.keys()
        self.docs_dir.mkdir(parents=True, exist_ok=True)
        payload = {"files": sorted(entries)}
        self.manifest_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        return written


def read_manifest(docs_dir: Path) -> list[str]:
    """Return the docs-relative paths recorded in the manifest of ``docs_dir``."""
    manifest = docs_dir / DOCS_MANIFEST
    if not manifest.is_file():
        return []
    try:
        payload = json.loads(manifest.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        msg = f"Docs manifest '{manifest}' is not valid JSON: {exc}"
        raise GenerationError(msg) from exc
    files = payload.get("files", []) if isinstance(payload, dict) else []
    return [str(entry) for entry in files]


def clean_docs(docs_dir: Path) -> list[Path]:
    """Remove every file listed in the manifest, then the manifest itself.

    Files not listed (curated pages, hand-written notes) are never touched.
    Directories left empty by the removal are pruned.
    """
    removed: list[Path] = []
    for relative in read_manifest(docs_dir):
        path = docs_dir / relative
        if _remove_generated(docs_dir, path):
            removed.append(path)
    manifest = docs_dir / DOCS_MANIFEST
    if manifest.is_file():
        manifest.unlink()
        removed.append(manifest)
    return removed


def _remove_generated(docs_dir: Path, path: Path) -> bool:
    if not path.is_file():
        return False
    path.unlink()
    _prune_empty_parents(docs_dir, path.parent)
    return True


def _prune_empty_parents(docs_dir: Path, directory: Path) -> None:
    docs_root = docs_dir.resolve()
    current = directory.resolve()
    while current != docs_root and docs_root in current.parents:
        if any(current.iterdir()):
            return
        current.rmdir()
        current = current.parent


def _plan_rows(plan: tuple[DeployStep, ...] | None) -> list[dict[str, str | int]]:
    """Return the deployment plan table rows, or an empty list without a plan."""
    if not plan:
        return []
    return [
        {
            "index": index,
            "contract": step.contract,
            "args": ", ".join(arg.token() for arg in step.args).replace("|", "\\|") or "-",
            "save_as": step.save_as,
        }
        for index, step in enumerate(plan, start=1)
    ]


__all__ = ["DocsGenerator", "clean_docs", "read_manifest"]
