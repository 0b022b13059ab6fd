"""Load hub configuration YAML into typed dataclasses."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .models import (
    DocsConfig,
    HubConfig,
    HubConfigError,
    PathsConfig,
    ProjectConfig,
)

DEFAULT_CONFIG_PATH = Path("config/hub.yaml")


def load_hub_config(root: Path, path: Path | None = None) -> HubConfig:
    """Load the optional YAML configuration for the hub rooted at ``root``.

    Parameters
    ----------
    root : Path
        Repository root. Relative paths in the configuration are resolved
        against it.
    path : Path, optional
        Explicit configuration file. When omitted, ``config/hub.yaml`` under
        ``root`` is used if present and built-in defaults otherwise.

    Returns
    -------
    HubConfig
        Parsed configuration with defaults applied to every missing field.

    Raises
    ------
    FileNotFoundError
        If an explicit ``path`` does not exist.
    HubConfigError
        If the file is not valid UTF-8 YAML, or its structure or one of its
        fields is invalid.

    Examples
    --------
    >>> from pathlib import Path
    >>> from fhevm_hub.config import load_hub_config
    >>> config = load_hub_config(Path("."))  # doctest: +SKIP
    >>> config.paths.contracts  # doctest: +SKIP
    PosixPath('contracts')
    """
    root = root.resolve()
    if path is None:
        candidate = root / DEFAULT_CONFIG_PATH
        if not candidate.exists():
            return HubConfig(root=root)
    else:
        candidate = path if path.is_absolute() else root / path
        if not candidate.exists():
            msg = f"Configuration file '{candidate}' not found."
            raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        with candidate.open("r", encoding="utf-8") as handle:
            loaded = loader.load(handle) or {}
    except (YAMLError, UnicodeDecodeError) as exc:
        msg = f"Could not parse '{candidate}': {exc}"
        raise HubConfigError(msg) from exc
    if not isinstance(loaded, dict):
        msg = f"Top-level YAML structure in '{candidate}' must be a mapping."
        raise HubConfigError(msg)
    raw: dict[str, typ.Any] = dict(loaded)

    return HubConfig(
        root=root,
        paths=_build_paths_config(_section(raw, "paths")),
        project=_build_project_config(_section(raw, "project")),
        docs=_build_docs_config(_section(raw, "docs")),
    )


def _section(raw: typ.Mapping[str, typ.Any], key: str) -> dict[str, typ.Any]:
    """Return the mapping stored under ``key`` or an empty one."""
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        msg = f"Configuration section '{key}' must be a mapping."
        raise HubConfigError(msg)
    return dict(value)


def _optional_path(value: object | None) -> Path | None:
    if value is None:
        return None
    text = str(value).strip()
    return Path(text) if text else None


def _string_list(value: object, *, field: str) -> tuple[str, ...]:
    """Normalize a YAML list of names into a tuple of non-empty strings."""
    if not isinstance(value, list):
        msg = f"'{field}' must be a list of strings."
        raise HubConfigError(msg)
    items = [str(item).strip() for item in value]
    return tuple(item for item in items if item)


def _build_paths_config(payload: typ.Mapping[str, typ.Any]) -> PathsConfig:
    defaults = PathsConfig()
    return PathsConfig(
        contracts=_optional_path(payload.get("contracts")) or defaults.contracts,
        tests=_optional_path(payload.get("tests")) or defaults.tests,
        docs=_optional_path(payload.get("docs")) or defaults.docs,
        static_docs=_optional_path(payload.get("static_docs")) or defaults.static_docs,
        output=_optional_path(payload.get("output")) or defaults.output,
        template=_optional_path(payload.get("template")),
    )


def _build_project_config(payload: typ.Mapping[str, typ.Any]) -> ProjectConfig:
    defaults = ProjectConfig()
    versions_raw = payload.get("versions") or {}
    if not isinstance(versions_raw, dict):
        msg = "'project.versions' must map package names to version ranges."
        raise HubConfigError(msg)
    versions = {str(name): str(version) for name, version in versions_raw.items()}

    base = defaults.base_dev_dependencies
    if "base_dev_dependencies" in payload:
        base = _string_list(
            payload["base_dev_dependencies"], field="project.base_dev_dependencies"
        )
    tracked = defaults.tracked_dependencies
    if "tracked_dependencies" in payload:
        tracked = _string_list(
            payload["tracked_dependencies"], field="project.tracked_dependencies"
        )

    return ProjectConfig(
        package_prefix=str(payload.get("package_prefix", defaults.package_prefix)),
        base_dev_dependencies=base,
        tracked_dependencies=tracked,
        versions=versions,
        template_git_url=payload.get("template_git_url") or None,
    )


def _build_docs_config(payload: typ.Mapping[str, typ.Any]) -> DocsConfig:
    defaults = DocsConfig()
    return DocsConfig(
        site_title=str(payload.get("site_title", defaults.site_title)),
        intro=str(payload.get("intro", defaults.intro)).strip(),
    )
