"""Discover tagged example contracts and build the in-memory registry.

The scanner walks the contracts tree in sorted order, indexes every declared
contract, interface, and library, and turns each file whose primary contract
carries a ``@custom:`` NatSpec block into an :class:`ExampleRecord`. Every
problem found along the way is collected so a single :class:`ScanError`
reports all of them; no partial registry is ever returned.
"""

from __future__ import annotations

import collections
import os
import re
import typing as typ
from pathlib import Path

import msgspec

from fhevm_hub._constants import SHARED_FLOW_TEST, SOLIDITY_SUFFIX, TEST_SUFFIX
from fhevm_hub.config import HubConfig, load_hub_config
from fhevm_hub.errors import ScanError

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
from .solidity import (
    Declaration,
    TagBlock,
    extract_imports,
    package_name,
    parse_declarations,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

KNOWN_TAGS = frozenset(
    {
        "title",
        "author",
        "notice",
        "dev",
        "custom:category",
        "custom:chapter",
        "custom:concept",
        "custom:difficulty",
        "custom:depends-on",
        "custom:deploy-plan",
        "custom:test",
    }
)
REPEATABLE_TAGS = frozenset({"dev"})
REQUIRED_TAGS = ("custom:category", "custom:concept", "custom:difficulty")
EXAMPLE_SUFFIXES = ("ExampleFactory", "Example")

_LOWER_UPPER = re.compile(r"([a-z0-9])([A-Z])")
_ACRONYM_WORD = re.compile(r"([A-Z])([A-Z][a-z])")
IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_$][\w$]*")

_E = typ.TypeVar("_E", Category, Difficulty)


class _DeployStepSchema(msgspec.Struct, forbid_unknown_fields=True):
    """Wire shape of one ``@custom:deploy-plan`` entry."""

    contract: str
    save_as: str | None = msgspec.field(default=None, name="saveAs")
    args: list[typ.Any] = msgspec.field(default_factory=list)
    after_deploy: list[str] = msgspec.field(default_factory=list, name="afterDeploy")


def to_kebab_case(value: str) -> str:
    """Convert a CamelCase or snake_case identifier into kebab-case.

    Examples
    --------
    >>> to_kebab_case("FHECounter")
    'fhe-counter'
    >>> to_kebab_case("ERC7984ERC20Wrapper")
    'erc7984-erc20-wrapper'
    """
    value = _LOWER_UPPER.sub(r"\1-\2", value)
    value = _ACRONYM_WORD.sub(r"\1-\2", value)
    return value.replace("_", "-").lower()


def example_base_name(file_base: str) -> str:
    """Strip a trailing ``ExampleFactory`` or ``Example`` from a file base name."""
    for suffix in EXAMPLE_SUFFIXES:
        if file_base.endswith(suffix) and file_base != suffix:
            return file_base.removesuffix(suffix)
    return file_base


def slug_for(path: Path) -> str:
    """Return the example slug derived from a contract file name."""
    return to_kebab_case(example_base_name(path.name.removesuffix(SOLIDITY_SUFFIX)))


def parse_deploy_arg(raw: object) -> DeployArg:
    """Turn one JSON deploy-plan argument into a typed variant.

    Raises
    ------
    ValueError
        If the argument is a ``$`` token other than ``$deployer`` or a value
        that is neither a string, number, nor boolean.
    """
    match raw:
        case bool() | int() | float():
            return LiteralArg(raw)
        case str() if raw == "$deployer":
            return DeployerArg()
        case str() if raw.startswith("$"):
            msg = f"unsupported signer token '{raw}' (only '$deployer' is allowed)"
            raise ValueError(msg)
        case str() if raw.startswith("@"):
            name = raw[1:]
            if not name:
                msg = "empty '@' reference"
                raise ValueError(msg)
            return ReferenceArg(name)
        case str() if raw.startswith("#"):
            return ExpressionArg(raw[1:])
        case str():
            return LiteralArg(raw)
        case _:
            msg = f"unsupported argument {raw!r}"
            raise ValueError(msg)


def parse_deploy_plan(raw: str) -> tuple[DeployStep, ...]:
    """Decode a ``@custom:deploy-plan`` JSON array into deploy steps.

    Raises
    ------
    ValueError
        If the JSON is malformed, carries unknown keys, names a ``saveAs``
        that is not a valid script identifier, or holds an argument
        :func:`parse_deploy_arg` rejects.
    """
    try:
        entries = msgspec.json.decode(raw.encode("utf-8"), type=list[_DeployStepSchema])
    except msgspec.DecodeError as exc:
        raise ValueError(str(exc)) from exc

    steps: list[DeployStep] = []
    for index, entry in enumerate(entries, start=1):
        try:
            args = tuple(parse_deploy_arg(arg) for arg in entry.args)
        except ValueError as exc:
            msg = f"step {index}: {exc}"
            raise ValueError(msg) from exc
        save_as = entry.save_as or lower_camel(entry.contract)
        if not IDENTIFIER_PATTERN.fullmatch(save_as):
            msg = f"step {index}: saveAs '{save_as}' is not a valid identifier"
            raise ValueError(msg)
        steps.append(
            DeployStep(
                contract=entry.contract,
                save_as=save_as,
                args=args,
                after_deploy=tuple(entry.after_deploy),
            )
        )
    return tuple(steps)


def resolve_relative_import(base_file: Path, import_path: str) -> Path | None:
    """Return the file a relative import points at, or None for package imports."""
    if not import_path.startswith("."):
        return None
    target = base_file.parent / import_path
    if target.suffix != SOLIDITY_SUFFIX:
        target = target.with_name(f"{target.name}{SOLIDITY_SUFFIX}")
    return Path(os.path.normpath(target))


def read_source(path: Path) -> str:
    """Return the text of a contract or test file.

    Raises
    ------
    ScanError
        If the file is not valid UTF-8.
    """
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        msg = f"{path}: not valid UTF-8 ({exc.reason} at byte {exc.start})"
        raise ScanError([msg]) from exc


def import_closure(paths: cabc.Iterable[Path]) -> list[Path]:
    """Return ``paths`` plus every file reachable through relative imports.

    Order follows discovery. Targets that do not exist on disk are kept in the
    result so callers can decide whether a missing import is fatal.
    """
    ordered: list[Path] = []
    seen: set[Path] = set()
    queue = collections.deque(paths)
    while queue:
        current = queue.popleft()
        if current in seen:
            continue
        seen.add(current)
        ordered.append(current)
        if not current.is_file():
            continue
        for import_path in extract_imports(read_source(current)):
            target = resolve_relative_import(current, import_path)
            if target is not None and target not in seen:
                queue.append(target)
    return ordered


def package_imports(paths: cabc.Iterable[Path]) -> tuple[str, ...]:
    """Return the distinct npm packages imported by the existing ``paths``."""
    found: dict[str, None] = {}
    for path in paths:
        if not path.is_file():
            continue
        for import_path in extract_imports(read_source(path)):
            name = package_name(import_path)
            if name:
                found.setdefault(name, None)
    return tuple(found)


def _split_list(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


class _Scan:
    """Mutable state of one scan: the name index and collected problems."""

    def __init__(self, config: HubConfig) -> None:
        self.config = config
        self.root = config.root
        self.contracts_dir = config.contracts_dir
        self.tests_dir = config.tests_dir
        self.problems: list[str] = []
        self.contract_index: dict[str, Path] = {}
        self.declarations: dict[Path, list[Declaration]] = {}

    def rel(self, path: Path) -> str:
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()

    def index(self, files: list[Path]) -> None:
        for path in files:
            try:
                source = path.read_text(encoding="utf-8")
            except UnicodeDecodeError as exc:
                self.problems.append(
                    f"{self.rel(path)}: not valid UTF-8 ({exc.reason} at byte {exc.start})"
                )
                continue
            declarations = parse_declarations(source)
            self.declarations[path] = declarations
            for declaration in declarations:
                self.contract_index.setdefault(declaration.name, path)

    def examples(self) -> list[ExampleRecord]:
        records: list[ExampleRecord] = []
        for path, declarations in self.declarations.items():
            tagged = [
                declaration
                for declaration in declarations
                if declaration.kind == "contract"
                and declaration.doc is not None
                and declaration.doc.has_custom_tags
            ]
            if not tagged:
                continue
            if len(tagged) > 1:
                names = ", ".join(declaration.name for declaration in tagged)
                self.problems.append(
                    f"{self.rel(path)}: multiple tagged contracts ({names}); "
                    "only one example per file is allowed"
                )
                continue
            record = self.build_record(path, tagged[0], tagged[0].doc)
            if record is not None:
                records.append(record)
        return records

    def check_tags(self, where: str, doc: TagBlock) -> bool:
        ok = True
        counts = collections.Counter(doc.names())
        for name in counts:
            if name not in KNOWN_TAGS:
                self.problems.append(f"{where}: unknown tag '@{name}'")
                ok = False
        for name, count in counts.items():
            if count > 1 and name in KNOWN_TAGS and name not in REPEATABLE_TAGS:
                self.problems.append(f"{where}: duplicate tag '@{name}'")
                ok = False
        for name in REQUIRED_TAGS:
            if not doc.first(name):
                self.problems.append(f"{where}: missing required tag '@{name}'")
                ok = False
        return ok

    def build_record(
        self, path: Path, declaration: Declaration, doc: TagBlock
    ) -> ExampleRecord | None:
        where = self.rel(path)
        if not self.check_tags(where, doc):
            return None

        category = self.parse_enum(where, "custom:category", doc, Category)
        difficulty = self.parse_enum(where, "custom:difficulty", doc, Difficulty)

        deploy_plan: tuple[DeployStep, ...] | None = None
        raw_plan = doc.first("custom:deploy-plan")
        if raw_plan is not None:
            try:
                deploy_plan = parse_deploy_plan(raw_plan)
            except ValueError as exc:
                self.problems.append(f"{where}: invalid @custom:deploy-plan: {exc}")
                return None

        depends_on = _split_list(doc.first("custom:depends-on"))
        for name in depends_on:
            if name not in self.contract_index:
                self.problems.append(
                    f"{where}: @custom:depends-on names unknown contract '{name}'"
                )

        if category is None or difficulty is None:
            return None

        doc_name = path.name.removesuffix(SOLIDITY_SUFFIX)
        test_path = self.pair_test(
            where,
            path,
            category=category,
            doc_name=doc_name,
            explicit=doc.first("custom:test"),
            has_dependencies=bool(depends_on),
        )

        related = [path]
        related.extend(
            self.contract_index[name] for name in depends_on if name in self.contract_index
        )
        for step in deploy_plan or ():
            located = self.contract_index.get(step.contract)
            if located is not None:
                related.append(located)
        contract_packages = package_imports(import_closure(related))
        test_packages: tuple[str, ...] = ()
        if test_path is not None:
            test_packages = tuple(
                name
                for name in package_imports([test_path])
                if name not in contract_packages
            )

        return ExampleRecord(
            slug=slug_for(path),
            title=doc.first("title") or example_base_name(doc_name),
            notice=doc.first("notice") or None,
            concept=doc.first("custom:concept") or "",
            category=category,
            chapters=tuple(to_kebab_case(item) for item in _split_list(doc.first("custom:chapter"))),
            difficulty=difficulty,
            depends_on=tuple(depends_on),
            deploy_plan=deploy_plan,
            source_path=path,
            test_path=test_path,
            contract_name=declaration.name,
            doc_name=doc_name,
            package_imports=contract_packages,
            test_package_imports=test_packages,
        )

    def parse_enum(
        self, where: str, tag: str, doc: TagBlock, kind: type[_E]
    ) -> _E | None:
        raw = (doc.first(tag) or "").strip().lower()
        try:
            return kind(raw)
        except ValueError:
            allowed = ", ".join(member.value for member in kind)
            self.problems.append(
                f"{where}: invalid @{tag} '{raw}' (expected one of: {allowed})"
            )
            return None

    def pair_test(
        self,
        where: str,
        path: Path,
        *,
        category: Category,
        doc_name: str,
        explicit: str | None,
        has_dependencies: bool,
    ) -> Path | None:
        folder = path.parent.name
        categories = [category.value]
        if folder != category.value:
            categories.append(folder)

        if explicit:
            candidates = [self.tests_dir / name / explicit for name in categories]
            found = next((candidate for candidate in candidates if candidate.is_file()), None)
            if found is None:
                self.problems.append(
                    f"{where}: @custom:test file '{explicit}' not found under "
                    f"{self.rel(self.tests_dir / category.value)}"
                )
            return found

        candidates = [self.tests_dir / name / f"{doc_name}{TEST_SUFFIX}" for name in categories]
        if has_dependencies:
            candidates.extend(self.tests_dir / name / SHARED_FLOW_TEST for name in categories)
        return next((candidate for candidate in candidates if candidate.is_file()), None)

    def check_slugs(self, records: list[ExampleRecord]) -> None:
        owners: dict[str, list[ExampleRecord]] = collections.defaultdict(list)
        for record in records:
            owners[record.slug].append(record)
        for slug, group in sorted(owners.items()):
            if len(group) > 1:
                files = ", ".join(self.rel(record.source_path) for record in group)
                self.problems.append(f"duplicate slug '{slug}' derived from: {files}")


def scan(root: Path, config: HubConfig | None = None) -> Registry:
    """Scan the contracts tree under ``root`` and return the example registry.

    Parameters
    ----------
    root : Path
        Hub repository root.
    config : HubConfig, optional
        Pre-loaded configuration. When omitted, :func:`load_hub_config`
        supplies it (defaults when no ``config/hub.yaml`` exists).

    Returns
    -------
    Registry
        Examples sorted by slug plus the name index of every declaration.

    Raises
    ------
    ScanError
        If any file carries invalid metadata. The error lists every problem.
    """
    config = config or load_hub_config(root)
    state = _Scan(config)
    if not state.contracts_dir.is_dir():
        msg = f"contracts directory '{state.rel(state.contracts_dir)}' not found"
        raise ScanError([msg])

    files = sorted(
        path for path in state.contracts_dir.rglob(f"*{SOLIDITY_SUFFIX}") if path.is_file()
    )
    state.index(files)
    if state.problems:
        raise ScanError(state.problems)
    records = state.examples()
    state.check_slugs(records)
    if state.problems:
        raise ScanError(state.problems)

    records.sort(key=lambda record: record.slug)
    return Registry(
        root=state.root,
        contracts_dir=state.contracts_dir,
        tests_dir=state.tests_dir,
        examples=records,
        contract_index=dict(state.contract_index),
    )


__all__ = [
    "example_base_name",
    "import_closure",
    "package_imports",
    "parse_deploy_arg",
    "parse_deploy_plan",
    "read_source",
    "resolve_relative_import",
    "scan",
    "slug_for",
    "to_kebab_case",
]
