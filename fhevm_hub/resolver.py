"""Turn an example's deploy metadata into a validated, ordered deploy plan.

An explicit ``@custom:deploy-plan`` is checked as a graph over ``saveAs``
positions: every ``@ref`` in a step's arguments or ``afterDeploy`` statements
must name a strictly earlier step. Examples without a plan but with
``@custom:depends-on`` get a synthesised plan that is flagged as a fallback so
generated output can say so.
"""

from __future__ import annotations

import dataclasses as dc
import re

from fhevm_hub.errors import ResolutionError
from fhevm_hub.registry.models import (
    DeployStep,
    ExampleRecord,
    ReferenceArg,
    Registry,
    lower_camel,
)

REFERENCE_TOKEN_PATTERN = re.compile(r"(?<![\w$@\"'/])@([A-Za-z_$][\w$]*)")


@dc.dataclass(frozen=True, slots=True)
class ResolvedPlan:
    """A validated deploy sequence for one example.

    Attributes
    ----------
    example : ExampleRecord
        The example the plan deploys.
    steps : tuple[DeployStep, ...]
        Steps in execution order.
    fallback : bool
        True when the plan was synthesised from ``depends_on`` because the
        example declares no explicit plan.
    """

    example: ExampleRecord
    steps: tuple[DeployStep, ...]
    fallback: bool = False

    @property
    def contracts(self) -> list[str]:
        """Return the distinct contract names deployed, in first-use order."""
        return list(dict.fromkeys(step.contract for step in self.steps))


def after_deploy_references(statement: str) -> list[str]:
    """Return the ``@name`` tokens referenced by an ``afterDeploy`` statement."""
    return REFERENCE_TOKEN_PATTERN.findall(statement)


def _check_plan(example: ExampleRecord, steps: tuple[DeployStep, ...], registry: Registry) -> None:
    positions: dict[str, int] = {}
    for index, step in enumerate(steps, start=1):
        if step.save_as in positions:
            msg = (
                f"{example.slug}: step {index} reuses saveAs '{step.save_as}' "
                f"(already used by step {positions[step.save_as]})"
            )
            raise ResolutionError(msg)
        positions[step.save_as] = index

    for index, step in enumerate(steps, start=1):
        if registry.locate(step.contract) is None:
            msg = f"{example.slug}: step {index} deploys unknown contract '{step.contract}'"
            raise ResolutionError(msg)
        for arg in step.args:
            if isinstance(arg, ReferenceArg):
                _check_reference(example, index, arg.name, positions)
        for statement in step.after_deploy:
            for name in after_deploy_references(statement):
                _check_reference(example, index, name, positions)


def _check_reference(
    example: ExampleRecord, index: int, name: str, positions: dict[str, int]
) -> None:
    target = positions.get(name)
    if target is None:
        msg = f"{example.slug}: step {index} references unknown '@{name}'"
        raise ResolutionError(msg)
    if target == index:
        msg = f"{example.slug}: step {index} references itself via '@{name}'"
        raise ResolutionError(msg)
    if target > index:
        msg = (
            f"{example.slug}: step {index} references '@{name}' "
            f"before it is deployed (step {target})"
        )
        raise ResolutionError(msg)


def resolve_deploy_order(example: ExampleRecord, registry: Registry) -> ResolvedPlan:
    """Return the validated deploy sequence for ``example``.

    Parameters
    ----------
    example : ExampleRecord
        Example whose plan should be resolved.
    registry : Registry
        Registry used to look up contract and helper declarations.

    Returns
    -------
    ResolvedPlan
        The explicit plan when one is declared, otherwise a synthesised plan
        deploying each dependency (in listed order, no arguments) followed by
        the example, otherwise a single step deploying the example.

    Raises
    ------
    ResolutionError
        If a dependency or step contract cannot be found, a ``saveAs`` is
        reused, or a reference points at an unknown, later, or the same step.
    """
    for name in example.depends_on:
        if registry.locate(name) is None:
            msg = f"{example.slug}: dependency '{name}' does not resolve to a known contract"
            raise ResolutionError(msg)

    if example.deploy_plan:
        _check_plan(example, example.deploy_plan, registry)
        return ResolvedPlan(example=example, steps=example.deploy_plan)

    if example.depends_on:
        names = [name for name in example.depends_on if name != example.contract_name]
        names.append(example.contract_name)
        steps = tuple(
            DeployStep(contract=name, save_as=lower_camel(name))
            for name in dict.fromkeys(names)
        )
        _check_plan(example, steps, registry)
        return ResolvedPlan(example=example, steps=steps, fallback=True)

    step = DeployStep(contract=example.contract_name, save_as=lower_camel(example.contract_name))
    return ResolvedPlan(example=example, steps=(step,))


def resolve_all(registry: Registry) -> dict[str, ResolvedPlan]:
    """Resolve every example in ``registry``, reporting all failures at once.

    Raises
    ------
    ResolutionError
        If one or more examples fail to resolve; the message lists each.
    """
    plans: dict[str, ResolvedPlan] = {}
    failures: list[str] = []
    for example in registry.examples:
        try:
            plans[example.slug] = resolve_deploy_order(example, registry)
        except ResolutionError as exc:
            failures.append(str(exc))
    if failures:
        if len(failures) == 1:
            raise ResolutionError(failures[0])
        lines = "\n".join(f"  - {failure}" for failure in failures)
        msg = f"{len(failures)} deploy plans failed to resolve:\n{lines}"
        raise ResolutionError(msg)
    return plans


__all__ = [
    "REFERENCE_TOKEN_PATTERN",
    "ResolvedPlan",
    "after_deploy_references",
    "resolve_all",
    "resolve_deploy_order",
]
