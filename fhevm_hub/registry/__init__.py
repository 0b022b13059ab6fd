"""Discover documented example contracts and expose them as typed records.

The scanner reads NatSpec ``@custom:`` tag blocks from the contracts tree and
builds a :class:`Registry` of :class:`ExampleRecord` objects, indexed by slug
and by contract name, that the resolver and generators consume.

Examples
--------
>>> from pathlib import Path
>>> from fhevm_hub.registry import scan
>>> registry = scan(Path("."))  # doctest: +SKIP
>>> registry.get("fhe-counter").category  # doctest: +SKIP
<Category.BASIC: 'basic'>
"""

from .models import (
    Category,
    DeployArg,
    DeployerArg,
    DeployStep,
    Difficulty,
    ExampleRecord,
    ExpressionArg,
    LiteralArg,
    ReferenceArg,
    Registry,
    lower_camel,
)
from .scanner import (
    example_base_name,
    import_closure,
    package_imports,
    parse_deploy_plan,
    scan,
    slug_for,
    to_kebab_case,
)

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
    "example_base_name",
    "import_closure",
    "lower_camel",
    "package_imports",
    "parse_deploy_plan",
    "scan",
    "slug_for",
    "to_kebab_case",
]
