"""Render ``scripts/deploy.ts`` for a generated project from a resolved plan."""

from __future__ import annotations

import json
import typing as typ

from fhevm_hub.registry.models import (
    DeployArg,
    DeployerArg,
    ExpressionArg,
    LiteralArg,
    ReferenceArg,
)
from fhevm_hub.resolver import REFERENCE_TOKEN_PATTERN

if typ.TYPE_CHECKING:
    from fhevm_hub.rendering import TemplateRenderer
    from fhevm_hub.resolver import ResolvedPlan

DEPLOY_TEMPLATE = "deploy.ts.jinja"


def render_arg(arg: DeployArg) -> str:
    """Return the TypeScript expression for one constructor argument.

    Examples
    --------
    >>> render_arg(ReferenceArg("token"))
    'await token.getAddress()'
    >>> render_arg(LiteralArg("Confidential Token"))
    '"Confidential Token"'
    """
    match arg:
        case ReferenceArg(name=name):
            return f"await {name}.getAddress()"
        case DeployerArg():
            return "deployer.address"
        case ExpressionArg(code=code):
            return code
        case LiteralArg(value=value):
            return json.dumps(value)
    msg = f"Unsupported deploy argument: {arg!r}"
    raise TypeError(msg)


def render_statement(statement: str) -> str:
    """Replace ``@name`` tokens in an ``afterDeploy`` statement with ``name``."""
    return REFERENCE_TOKEN_PATTERN.sub(lambda match: match.group(1), statement)


def render_deploy_script(plan: ResolvedPlan, renderer: TemplateRenderer) -> str:
    """Render the deploy script for ``plan``.

    Fallback plans carry a ``NOTE`` comment explaining that the order was
    derived from ``@custom:depends-on``.
    """
    steps = [
        {
            "contract": step.contract,
            "var": step.save_as,
            "factory": f"{step.save_as}Factory",
            "args": ", ".join(render_arg(arg) for arg in step.args),
            "after_deploy": [render_statement(line) for line in step.after_deploy],
        }
        for step in plan.steps
    ]
    return renderer.render(
        DEPLOY_TEMPLATE,
        contract=plan.example.contract_name,
        depends_on=plan.example.depends_on,
        fallback=plan.fallback,
        steps=steps,
    )


__all__ = ["render_arg", "render_deploy_script", "render_statement"]
