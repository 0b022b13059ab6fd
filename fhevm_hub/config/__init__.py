"""Load and validate the optional hub configuration YAML.

This subpackage parses ``config/hub.yaml`` (when present), merges it with
built-in defaults, and produces strongly typed dataclasses
(:class:`HubConfig`, :class:`PathsConfig`, etc.) that the scanner and
generators consume. The primary entry point is :func:`load_hub_config`.

Examples
--------
>>> from pathlib import Path
>>> from fhevm_hub.config import load_hub_config
>>> hub = load_hub_config(Path("."))  # doctest: +SKIP
>>> hub.project.package_prefix  # doctest: +SKIP
'fhevm-example-'
"""

from .loader import DEFAULT_CONFIG_PATH, load_hub_config
from .models import (
    BASE_DEV_DEPENDENCIES,
    TRACKED_DEPENDENCIES,
    DocsConfig,
    HubConfig,
    HubConfigError,
    PathsConfig,
    ProjectConfig,
)

__all__ = [
    "BASE_DEV_DEPENDENCIES",
    "DEFAULT_CONFIG_PATH",
    "TRACKED_DEPENDENCIES",
    "DocsConfig",
    "HubConfig",
    "HubConfigError",
    "PathsConfig",
    "ProjectConfig",
    "load_hub_config",
]
