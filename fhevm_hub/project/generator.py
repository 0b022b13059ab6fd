"""Generate standalone, runnable Hardhat projects from registry examples.

This module powers ``fhevm-hub create`` and ``fhevm-hub create:category``. It
resolves every deploy plan and collects every source file before touching the
output directory, so a failure never leaves a partial project behind. Each
project is the Hardhat template with its ``contracts/`` and ``test/``
replaced by the example's sources, a rewritten ``package.json``, a rendered
``scripts/deploy.ts``, and a README.

Example
-------
>>> from pathlib import Path
>>> from fhevm_hub.config import load_hub_config
>>> from fhevm_hub.project import ProjectGenerator
>>> from fhevm_hub.registry import scan
>>> config = load_hub_config(Path("."))  # doctest: +SKIP
>>> generator = ProjectGenerator(scan(config.root, config), config)  # doctest: +SKIP
>>> generator.generate("fhe-counter", Path("output/fhe-counter"))  # doctest: +SKIP
[PosixPath('output/fhe-counter/contracts/basic/FHECounter.sol'), ...]
"""

from __future__ import annotations

import dataclasses as dc
import shutil
import typing as typ
from pathlib import Path

from fhevm_hub.errors import GenerationError
from fhevm_hub.registry.models import Category, ExampleRecord, Registry
from fhevm_hub.registry.scanner import import_closure
from fhevm_hub.rendering import TemplateRenderer
from fhevm_hub.resolver import ResolvedPlan, resolve_deploy_order

from .deploy_script import render_deploy_script
from .manifest import build_package_manifest, dump_json, read_json_object, root_versions
from .template import copy_template, find_template

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from fhevm_hub.config import HubConfig


@dc.dataclass(slots=True)
class _ProjectSources:
    """Everything needed to write one project, gathered before any write."""

    plan: ResolvedPlan
    contracts: list[tuple[Path, Path]]
    test: tuple[Path, Path] | None

    @property
    def example(self) -> ExampleRecord:
        return self.plan.example


class ProjectGenerator:
    """Write example projects (or category bundles) to an output directory."""

    def __init__(
        self,
        registry: Registry,
        config: HubConfig,
        *,
        version_overrides: cabc.Mapping[str, str] | None = None,
        overwrite: bool = False,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        """Initialize the generator.

        Parameters
        ----------
        registry : Registry
            Scanned examples and declaration index.
        config : HubConfig
            Hub configuration (template lookup, package prefix, versions).
        version_overrides : Mapping[str, str], optional
            Package ranges that win over every other version source.
        overwrite : bool, optional
            Replace an existing non-empty output directory wholesale.
        renderer : TemplateRenderer, optional
            Template renderer; defaults to the packaged templates.
        """
        self.registry = registry
        self.config = config
        self.overwrite = overwrite
        self.renderer = renderer or TemplateRenderer()
        self.versions = {
            **root_versions(config.root),
            **config.project.versions,
            **(version_overrides or {}),
        }

    def generate(self, target: str, output_dir: Path) -> list[Path]:
        """Generate a project for a slug, or a bundle for a category name.

        A slug wins when ``target`` matches both an example and a category.

        Raises
        ------
        GenerationError
            If ``target`` is neither a known slug nor a category with
            examples, or when any file cannot be written.
        ResolutionError
            If a deploy plan fails to resolve.
        """
        if target in self.registry.by_slug:
            return self.create_example(target, output_dir)
        try:
            category = Category(target.strip().lower())
        except ValueError:
            known = ", ".join(example.slug for example in self.registry.examples)
            msg = f"Unknown example or category '{target}'. Known examples: {known}"
            raise GenerationError(msg) from None
        return self.create_category(category, output_dir)

    def create_example(self, slug: str, output_dir: Path) -> list[Path]:
        """Write the standalone project for ``slug`` into ``output_dir``."""
        try:
            example = self.registry.get(slug)
        except KeyError as exc:
            raise GenerationError(exc.args[0]) from exc
        sources = self._collect(example)
        template_dir = find_template(self.config)
        self._prepare(output_dir)
        return self._write_project(sources, output_dir, template_dir)

    def create_category(self, category: Category | str, output_dir: Path) -> list[Path]:
        """Write one project per example of ``category`` plus bundle indexes."""
        try:
            category = Category(str(category).strip().lower())
        except ValueError:
            known = ", ".join(member.value for member in Category)
            msg = f"Unknown category '{category}'. Known categories: {known}"
            raise GenerationError(msg) from None
        examples = self.registry.in_category(category)
        if not examples:
            msg = f"Category '{category.value}' has no examples."
            raise GenerationError(msg)
        bundle = [self._collect(example) for example in examples]
        template_dir = find_template(self.config)
        self._prepare(output_dir)

        written: list[Path] = []
        for sources in bundle:
            destination = output_dir / sources.example.slug
            written.extend(self._write_project(sources, destination, template_dir))

        context = {
            "category": category,
            "examples": examples,
            "site_title": self.config.docs.site_title,
        }
        for name, template in (
            ("README.md", "category_bundle_readme.md.jinja"),
            ("SUMMARY.md", "category_bundle_summary.md.jinja"),
        ):
            path = output_dir / name
            path.write_text(self.renderer.render(template, **context), encoding="utf-8")
            written.append(path)
        return written

    def _collect(self, example: ExampleRecord) -> _ProjectSources:
        plan = resolve_deploy_order(example, self.registry)
        roots = [example.source_path]
        for name in [*plan.contracts, *example.depends_on]:
            located = self.registry.locate(name)
            if located is None:
                msg = f"{example.slug}: no source file declares '{name}'"
                raise GenerationError(msg)
            roots.append(located)

        contracts: list[tuple[Path, Path]] = []
        for path in import_closure(dict.fromkeys(roots)):
            if not path.is_file():
                msg = f"{example.slug}: source file '{self.registry.relative(path)}' is missing"
                raise GenerationError(msg)
            contracts.append((path, self._relative_to(path, self.registry.contracts_dir)))

        test = None
        if example.test_path is not None:
            test = (example.test_path, self._relative_to(example.test_path, self.registry.tests_dir))
        return _ProjectSources(plan=plan, contracts=contracts, test=test)

    def _relative_to(self, path: Path, base: Path) -> Path:
        try:
            return path.relative_to(base)
        except ValueError as exc:
            msg = (
                f"'{self.registry.relative(path)}' lies outside "
                f"'{self.registry.relative(base)}' and cannot be copied"
            )
            raise GenerationError(msg) from exc

    def _prepare(self, output_dir: Path) -> None:
        """Ensure ``output_dir`` is empty, replacing it when overwriting."""
        if output_dir.exists():
            if not output_dir.is_dir():
                msg = f"Output path '{output_dir}' exists and is not a directory."
                raise GenerationError(msg)
            if any(output_dir.iterdir()):
                if not self.overwrite:
                    msg = (
                        f"Output directory '{output_dir}' is not empty; "
                        "pass --overwrite to replace it."
                    )
                    raise GenerationError(msg)
                shutil.rmtree(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

    def _write_project(
        self, sources: _ProjectSources, destination: Path, template_dir: Path
    ) -> list[Path]:
        example = sources.example
        destination.mkdir(parents=True, exist_ok=True)
        copy_template(template_dir, destination)
        written: list[Path] = []

        for source, relative in sources.contracts:
            target = destination / "contracts" / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)
            written.append(target)

        test_rel: str | None = None
        if sources.test is not None:
            source, relative = sources.test
            target = destination / "test" / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)
            written.append(target)
            test_rel = f"test/{relative.as_posix()}"

        manifest = build_package_manifest(
            example,
            base=read_json_object(template_dir / "package.json"),
            project=self.config.project,
            versions=self.versions,
        )
        package_json = destination / "package.json"
        package_json.write_text(dump_json(manifest), encoding="utf-8")
        written.append(package_json)

        deploy_script = destination / "scripts" / "deploy.ts"
        deploy_script.parent.mkdir(parents=True, exist_ok=True)
        deploy_script.write_text(
            render_deploy_script(sources.plan, self.renderer), encoding="utf-8"
        )
        written.append(deploy_script)

        readme = destination / "README.md"
        readme.write_text(
            self.renderer.render(
                "project_readme.md.jinja",
                example=example,
                plan=sources.plan,
                contract_files=[
                    f"contracts/{relative.as_posix()}" for _, relative in sources.contracts
                ],
                test_path=test_rel,
            ),
            encoding="utf-8",
        )
        written.append(readme)
        return written


__all__ = ["ProjectGenerator"]
