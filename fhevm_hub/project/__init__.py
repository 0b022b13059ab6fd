"""Generate standalone Hardhat projects from registry examples.

The :class:`ProjectGenerator` copies the Hardhat template, the example's
contracts and paired test, rewrites ``package.json``, and renders a deploy
script from the resolved plan. Template lookup and the explicit fetch used by
``ensure-template`` live in :mod:`fhevm_hub.project.template`.
"""

from .deploy_script import render_arg, render_deploy_script, render_statement
from .generator import ProjectGenerator
from .manifest import build_package_manifest, parse_version_overrides, root_versions
from .template import copy_template, ensure_template, find_template, parse_gitmodules

__all__ = [
    "ProjectGenerator",
    "build_package_manifest",
    "copy_template",
    "ensure_template",
    "find_template",
    "parse_gitmodules",
    "parse_version_overrides",
    "render_arg",
    "render_deploy_script",
    "render_statement",
    "root_versions",
]
