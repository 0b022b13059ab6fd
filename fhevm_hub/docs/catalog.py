"""Machine-readable catalog of every example, grouped by category.

Each entry carries every example record field, including the deploy plan with
its arguments written back in ``@custom:deploy-plan`` notation. The catalog
carries no timestamp so regenerating it from unchanged sources is
byte-identical.
"""

from __future__ import annotations

import typing as typ

import msgspec

from fhevm_hub.registry.models import LiteralArg, Registry

if typ.TYPE_CHECKING:
    from fhevm_hub.registry.models import DeployArg, DeployStep


class CatalogStep(msgspec.Struct, kw_only=True):
    """One deploy step, in the same shape as ``@custom:deploy-plan``."""

    contract: str
    save_as: str = msgspec.field(name="saveAs")
    args: list[typ.Any] = msgspec.field(default_factory=list)
    after_deploy: list[str] = msgspec.field(default_factory=list, name="afterDeploy")


class CatalogExample(msgspec.Struct, kw_only=True):
    """One example entry in ``catalog.json``."""

    slug: str
    title: str
    notice: str | None = None
    concept: str
    category: str
    difficulty: str
    chapters: list[str]
    contract_name: str = msgspec.field(name="contractName")
    doc_path: str = msgspec.field(name="docPath")
    source_path: str = msgspec.field(name="sourcePath")
    test_path: str | None = msgspec.field(default=None, name="testPath")
    depends_on: list[str] = msgspec.field(default_factory=list, name="dependsOn")
    deploy_plan: list[CatalogStep] | None = msgspec.field(default=None, name="deployPlan")


class CatalogCategory(msgspec.Struct):
    """Examples of one category, in navigation order."""

    name: str
    examples: list[CatalogExample]


class Catalog(msgspec.Struct):
    """Top-level ``catalog.json`` document."""

    categories: list[CatalogCategory]


def _plan_arg(arg: DeployArg) -> typ.Any:
    # Literals keep their JSON type; the other variants use their token string.
    if isinstance(arg, LiteralArg):
        return arg.value
    return arg.token()


def _catalog_plan(plan: tuple[DeployStep, ...] | None) -> list[CatalogStep] | None:
    if plan is None:
        return None
    return [
        CatalogStep(
            contract=step.contract,
            save_as=step.save_as,
            args=[_plan_arg(arg) for arg in step.args],
            after_deploy=list(step.after_deploy),
        )
        for step in plan
    ]


def build_catalog(registry: Registry) -> Catalog:
    """Return the catalog for ``registry`` in category, difficulty, slug order."""
    categories = []
    for category in registry.categories():
        entries = [
            CatalogExample(
                slug=example.slug,
                title=example.title,
                notice=example.notice,
                concept=example.concept,
                category=example.category.value,
                difficulty=example.difficulty.label,
                chapters=list(example.chapters),
                contract_name=example.contract_name,
                doc_path=example.doc_path,
                source_path=registry.relative(example.source_path),
                test_path=registry.relative(example.test_path) if example.test_path else None,
                depends_on=list(example.depends_on),
                deploy_plan=_catalog_plan(example.deploy_plan),
            )
            for example in registry.in_category(category)
        ]
        categories.append(CatalogCategory(name=category.value, examples=entries))
    return Catalog(categories=categories)


def encode_catalog(catalog: Catalog) -> str:
    """Serialize ``catalog`` as indented JSON with a trailing newline."""
    raw = msgspec.json.format(msgspec.json.encode(catalog), indent=2)
    return raw.decode("utf-8") + "\n"


def decode_catalog(text: str | bytes) -> Catalog:
    """Parse ``catalog.json`` content back into typed structures."""
    payload = text.encode("utf-8") if isinstance(text, str) else text
    return msgspec.json.decode(payload, type=Catalog)


__all__ = [
    "Catalog",
    "CatalogCategory",
    "CatalogExample",
    "CatalogStep",
    "build_catalog",
    "decode_catalog",
    "encode_catalog",
]
