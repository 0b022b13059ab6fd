"""Locate, fetch, and copy the Hardhat template that generated projects start from.

Resolution order is ``FHEVM_TEMPLATE_DIR`` (absolute or relative to the hub
root), the configured template path, ``base-template/``,
``fhevm-hardhat-template/``, then every submodule path listed in
``.gitmodules``. A directory qualifies when it holds both ``package.json`` and
``hardhat.config.ts``. When ``FHEVM_TEMPLATE_DIR`` is set, it is the only
candidate: an invalid value is an error rather than a reason to fall back.

Fetching is explicit. :func:`ensure_template` runs
``git submodule update --init --recursive`` or ``git clone --depth 1`` and is
only reached through the ``ensure-template`` and ``quickstart`` commands.
"""

from __future__ import annotations

import dataclasses as dc
import os
import re
import shutil
import subprocess
import typing as typ
from pathlib import Path

from fhevm_hub._constants import (
    DEFAULT_TEMPLATE_DIRS,
    DEFAULT_TEMPLATE_GIT_URL,
    TEMPLATE_ENV_VAR,
    TEMPLATE_MARKERS,
    TEMPLATE_SKIP,
)
from fhevm_hub.errors import GenerationError

if typ.TYPE_CHECKING:
    from fhevm_hub.config import HubConfig

SUBMODULE_HEADER = re.compile(r"^\[submodule\s")
SUBMODULE_FIELD = re.compile(r"^(path|url)\s*=\s*(.+)$")
REPLACED_TEMPLATE_DIRS = ("contracts", "test")


@dc.dataclass(slots=True)
class Submodule:
    """A ``[submodule]`` entry from ``.gitmodules``."""

    path: str
    url: str | None = None


def parse_gitmodules(text: str) -> list[Submodule]:
    """Parse ``.gitmodules`` content into submodule entries with a path.

    Examples
    --------
    >>> text = '[submodule "tpl"]\\n  path = base-template\\n  url = https://x/t.git\\n'
    >>> parse_gitmodules(text)
    [Submodule(path='base-template', url='https://x/t.git')]
    """
    modules: list[Submodule] = []
    current: Submodule | None = None
    for raw in text.splitlines():
        line = raw.strip()
        if SUBMODULE_HEADER.match(line):
            if current is not None and current.path:
                modules.append(current)
            current = Submodule(path="")
            continue
        if current is None:
            continue
        match = SUBMODULE_FIELD.match(line)
        if not match:
            continue
        key, value = match.group(1), match.group(2).strip()
        if key == "path":
            current.path = value
        else:
            current.url = value
    if current is not None and current.path:
        modules.append(current)
    return modules


def looks_like_template(path: Path) -> bool:
    """Return True when ``path`` contains every template marker file."""
    return all((path / marker).is_file() for marker in TEMPLATE_MARKERS)


def _read_submodules(root: Path) -> list[Submodule]:
    gitmodules = root / ".gitmodules"
    if not gitmodules.is_file():
        return []
    return parse_gitmodules(gitmodules.read_text(encoding="utf-8"))


def _env_template(root: Path) -> Path | None:
    raw = os.environ.get(TEMPLATE_ENV_VAR, "").strip()
    if not raw:
        return None
    path = Path(raw)
    return path if path.is_absolute() else root / path


def template_candidates(config: HubConfig) -> list[Path]:
    """Return candidate template directories in lookup order, without duplicates."""
    root = config.root
    override = _env_template(root)
    if override is not None:
        return [override]
    candidates: list[Path] = []
    if config.paths.template is not None:
        candidates.append(config.resolve(config.paths.template))
    candidates.extend(root / name for name in DEFAULT_TEMPLATE_DIRS)
    candidates.extend(root / module.path for module in _read_submodules(root))
    return list(dict.fromkeys(candidates))


def _first_template(config: HubConfig) -> Path | None:
    return next(
        (candidate for candidate in template_candidates(config) if looks_like_template(candidate)),
        None,
    )


def find_template(config: HubConfig) -> Path:
    """Return the first valid template directory.

    Raises
    ------
    GenerationError
        If ``FHEVM_TEMPLATE_DIR`` points at an invalid directory, or when no
        candidate qualifies.
    """
    override = _env_template(config.root)
    if override is not None:
        if looks_like_template(override):
            return override
        markers = ", ".join(TEMPLATE_MARKERS)
        msg = (
            f"{TEMPLATE_ENV_VAR} points at '{override}', which is not a Hardhat "
            f"template (expected {markers})"
        )
        raise GenerationError(msg)

    found = _first_template(config)
    if found is not None:
        return found
    msg = (
        "No Hardhat template found. Add base-template/, run "
        "'fhevm-hub ensure-template', or set "
        f"{TEMPLATE_ENV_VAR}."
    )
    raise GenerationError(msg)


def copy_template(template_dir: Path, destination: Path) -> None:
    """Copy the template into ``destination`` minus VCS, build, and example dirs."""
    ignored = shutil.ignore_patterns(*TEMPLATE_SKIP)
    shutil.copytree(template_dir, destination, ignore=ignored, dirs_exist_ok=True)
    for name in REPLACED_TEMPLATE_DIRS:
        shutil.rmtree(destination / name, ignore_errors=True)


def _run_git(args: list[str], *, cwd: Path) -> None:
    """Run ``git`` with ``args``, translating failures into GenerationError."""
    try:
        subprocess.run(["git", *args], cwd=cwd, check=True)  # noqa: S603,S607
    except FileNotFoundError as exc:
        msg = "git is not available; install it or set FHEVM_TEMPLATE_DIR."
        raise GenerationError(msg) from exc
    except subprocess.CalledProcessError as exc:
        msg = f"git {' '.join(args)} failed with exit code {exc.returncode}"
        raise GenerationError(msg) from exc


def _safe_to_replace(path: Path) -> bool:
    """Return True for a missing, empty, or bare uninitialised-submodule directory."""
    if not path.exists():
        return True
    entries = [entry.name for entry in path.iterdir()]
    return not entries or entries == [".git"]


def _clone_target(config: HubConfig) -> tuple[Path, str]:
    default_url = config.project.template_git_url or DEFAULT_TEMPLATE_GIT_URL
    override = _env_template(config.root)
    if override is not None:
        return override, default_url
    if config.paths.template is not None:
        return config.resolve(config.paths.template), default_url
    for module in _read_submodules(config.root):
        if module.url and "fhevm-hardhat-template" in module.url:
            return config.root / module.path, module.url
    return config.root / DEFAULT_TEMPLATE_DIRS[0], default_url


def ensure_template(config: HubConfig) -> Path:
    """Make a usable template available locally and return its path.

    Tries the existing candidates, then ``git submodule update --init
    --recursive`` when the root is a git checkout with ``.gitmodules``, then a
    shallow clone of the template repository.

    Raises
    ------
    GenerationError
        If git is missing or fails, or if the clone target exists with
        unrelated content.
    """
    existing = _first_template(config)
    if existing is not None:
        return existing

    root = config.root
    if (root / ".git").exists() and (root / ".gitmodules").is_file():
        _run_git(["submodule", "update", "--init", "--recursive"], cwd=root)
        existing = _first_template(config)
        if existing is not None:
            return existing

    target, url = _clone_target(config)
    if not _safe_to_replace(target):
        msg = (
            f"Template directory '{target}' exists but is not a Hardhat template; "
            f"move it aside or set {TEMPLATE_ENV_VAR}."
        )
        raise GenerationError(msg)
    if target.exists():
        shutil.rmtree(target)
    _run_git(["clone", "--depth", "1", url, str(target)], cwd=root)
    if looks_like_template(target):
        return target
    msg = f"Cloned {url} into '{target}' but it does not look like a Hardhat template."
    raise GenerationError(msg)


__all__ = [
    "Submodule",
    "copy_template",
    "ensure_template",
    "find_template",
    "looks_like_template",
    "parse_gitmodules",
    "template_candidates",
]
