"""Unit tests for the registry scanner.

The happy-path tests run against the miniature hub from ``conftest.py``; the
failure tests build small bespoke trees with ``write_file`` and assert that a
single :class:`~fhevm_hub.errors.ScanError` lists every problem.

Usage
-----
Run ``pytest tests/test_scanner.py -v``.
"""

from __future__ import annotations

import json
import re
import typing as typ
from pathlib import Path
from textwrap import dedent

import pytest

from fhevm_hub.errors import ScanError
from fhevm_hub.registry import (
    Category,
    DeployerArg,
    Difficulty,
    ExpressionArg,
    LiteralArg,
    ReferenceArg,
    example_base_name,
    import_closure,
    parse_deploy_plan,
    scan,
    slug_for,
    to_kebab_case,
)
from fhevm_hub.registry.scanner import parse_deploy_arg, resolve_relative_import

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from fhevm_hub.registry import Registry

    WriteFile = cabc.Callable[[Path, str, str], Path]


def _tagged(name: str, tags: str) -> str:
    lines = "\n".join(f"/// {line}" for line in dedent(tags).strip().splitlines())
    return f"pragma solidity ^0.8.24;\n\n{lines}\ncontract {name} {{}}\n"


def _scan_errors(root: Path) -> list[str]:
    with pytest.raises(ScanError) as excinfo:
        scan(root)
    return excinfo.value.problems


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("FHECounter", "fhe-counter"),
        ("ERC7984ERC20Wrapper", "erc7984-erc20-wrapper"),
        ("BlindAuction", "blind-auction"),
        ("public_decrypt_single", "public-decrypt-single"),
    ],
)
def test_to_kebab_case(value: str, expected: str) -> None:
    assert to_kebab_case(value) == expected


def test_slug_strips_example_suffixes() -> None:
    assert example_base_name("EncryptedVaultExample") == "EncryptedVault"
    assert example_base_name("TokenExampleFactory") == "Token"
    assert example_base_name("Example") == "Example", "a bare suffix is kept"
    assert slug_for(Path("contracts/basic/EncryptedVaultExample.sol")) == "encrypted-vault"


def test_parse_deploy_arg_variants() -> None:
    assert parse_deploy_arg("@token") == ReferenceArg("token")
    assert parse_deploy_arg("$deployer") == DeployerArg()
    assert parse_deploy_arg("#ethers.parseEther('1')") == ExpressionArg("ethers.parseEther('1')")
    assert parse_deploy_arg(3600) == LiteralArg(3600)
    assert parse_deploy_arg(True) == LiteralArg(True)
    assert parse_deploy_arg("plain") == LiteralArg("plain")


@pytest.mark.parametrize("raw", ["$alice", "@", None, ["nested"]])
def test_parse_deploy_arg_rejects(raw: object) -> None:
    with pytest.raises(ValueError, match="unsupported|empty"):
        parse_deploy_arg(raw)


def test_parse_deploy_plan_defaults_save_as() -> None:
    (step,) = parse_deploy_plan('[{"contract": "FHECounter"}]')
    assert step.save_as == "fHECounter", "saveAs defaults to lowerCamel(contract)"
    assert step.args == ()
    assert step.after_deploy == ()


def test_parse_deploy_plan_rejects_unknown_keys() -> None:
    with pytest.raises(ValueError, match="saveas"):
        parse_deploy_plan('[{"contract": "A", "saveas": "a"}]')


@pytest.mark.parametrize("save_as", ["my-token", "2nd", "token name", "token.x"])
def test_parse_deploy_plan_rejects_non_identifier_save_as(save_as: str) -> None:
    raw = json.dumps([{"contract": "A"}, {"contract": "B", "saveAs": save_as}])
    message = f"step 2: saveAs '{save_as}' is not a valid identifier"
    with pytest.raises(ValueError, match=re.escape(message)):
        parse_deploy_plan(raw)


def test_parse_deploy_plan_accepts_identifier_save_as() -> None:
    (step,) = parse_deploy_plan('[{"contract": "A", "saveAs": "$token_2"}]')
    assert step.save_as == "$token_2"


def test_parse_deploy_plan_names_failing_step() -> None:
    with pytest.raises(ValueError, match="step 2"):
        parse_deploy_plan('[{"contract": "A"}, {"contract": "B", "args": ["$bob"]}]')


def test_scan_builds_sorted_registry(registry: Registry) -> None:
    slugs = [example.slug for example in registry.examples]
    assert slugs == ["blind-auction", "encrypted-vault", "fhe-counter"], (
        f"expected slug-sorted records, got {slugs!r}"
    )
    assert registry.categories() == [Category.BASIC, Category.AUCTIONS]


def test_scan_reads_tags(registry: Registry) -> None:
    counter = registry.get("fhe-counter")
    assert counter.title == "FHE Counter"
    assert counter.notice == "A confidential counter that can be incremented and decremented."
    assert counter.concept == "Encrypted arithmetic on euint32"
    assert counter.difficulty is Difficulty.BEGINNER, "difficulty is case-insensitive"
    assert counter.chapters == ("encryption", "access-control")
    assert counter.contract_name == "FHECounter"
    assert counter.doc_path == "basic/FHECounter.md"
    assert counter.deploy_plan is None
    assert counter.package_imports == ("@fhevm/solidity",)
    assert counter.test_package_imports == ("chai", "hardhat", "@fhevm/mock-utils")


def test_scan_parses_deploy_plan(registry: Registry) -> None:
    auction = registry.get("blind-auction")
    assert auction.deploy_plan is not None
    token, main = auction.deploy_plan
    assert token.save_as == "token"
    assert token.args == (LiteralArg("Bid Token"), LiteralArg("BID"))
    assert main.args == (ReferenceArg("token"), DeployerArg(), LiteralArg(3600))
    assert main.after_deploy == ("await @token.mint(deployer.address, 1000);",)
    assert auction.package_imports == (
        "@fhevm/solidity",
        "@openzeppelin/confidential-contracts",
    ), "helper package imports are followed transitively"


def test_scan_pairs_tests(registry: Registry, hub_root: Path) -> None:
    root = hub_root.resolve()
    assert registry.get("fhe-counter").test_path == root / "test/basic/FHECounter.test.ts"
    assert registry.get("encrypted-vault").test_path == root / "test/basic/FullFlow.test.ts", (
        "examples with dependencies fall back to the shared flow test"
    )
    assert registry.get("blind-auction").test_path == root / "test/auctions/BlindAuction.test.ts"


def test_scan_indexes_helpers(registry: Registry, hub_root: Path) -> None:
    root = hub_root.resolve()
    assert registry.locate("TokenBase") == root / "contracts/tokens/TokenBase.sol"
    assert registry.locate("ITokenHooks") == root / "contracts/tokens/TokenBase.sol"
    assert registry.locate("MockOracle") == root / "contracts/mocks/MockOracle.sol"
    assert "ConfidentialToken" not in registry.by_contract, "helpers are not examples"


def test_import_closure_is_transitive(registry: Registry, hub_root: Path) -> None:
    root = hub_root.resolve()
    closure = import_closure([root / "contracts/auctions/BlindAuction.sol"])
    assert closure == [
        root / "contracts/auctions/BlindAuction.sol",
        root / "contracts/tokens/ConfidentialToken.sol",
        root / "contracts/tokens/TokenBase.sol",
    ], "commented-out imports must not be followed"


def test_resolve_relative_import_appends_suffix(tmp_path: Path) -> None:
    base = tmp_path / "contracts" / "basic" / "A.sol"
    assert resolve_relative_import(base, "../lib/B") == tmp_path / "contracts" / "lib" / "B.sol"
    assert resolve_relative_import(base, "@pkg/x/B.sol") is None


def test_scan_rejects_unknown_and_missing_tags(tmp_path: Path, write_file: WriteFile) -> None:
    write_file(
        tmp_path,
        "contracts/basic/Bad.sol",
        _tagged(
            "Bad",
            """
            @custom:category basic
            @custom:concept Broken metadata
            @custom:colour blue
            """,
        ),
    )
    problems = _scan_errors(tmp_path)
    assert "contracts/basic/Bad.sol: unknown tag '@custom:colour'" in problems
    assert "contracts/basic/Bad.sol: missing required tag '@custom:difficulty'" in problems


def test_scan_rejects_duplicate_tags(tmp_path: Path, write_file: WriteFile) -> None:
    write_file(
        tmp_path,
        "contracts/basic/Twice.sol",
        _tagged(
            "Twice",
            """
            @custom:category basic
            @custom:category games
            @custom:concept Twice
            @custom:difficulty beginner
            """,
        ),
    )
    assert _scan_errors(tmp_path) == [
        "contracts/basic/Twice.sol: duplicate tag '@custom:category'"
    ]


def test_scan_rejects_bad_category(tmp_path: Path, write_file: WriteFile) -> None:
    write_file(
        tmp_path,
        "contracts/misc/Odd.sol",
        _tagged(
            "Odd",
            """
            @custom:category misc
            @custom:concept Unknown category
            @custom:difficulty expert
            """,
        ),
    )
    problems = _scan_errors(tmp_path)
    assert len(problems) == 2, f"expected category and difficulty problems, got {problems!r}"
    assert problems[0].startswith("contracts/misc/Odd.sol: invalid @custom:category 'misc'")
    assert "expected one of: beginner, intermediate, advanced" in problems[1]


def test_scan_rejects_malformed_plan(tmp_path: Path, write_file: WriteFile) -> None:
    write_file(
        tmp_path,
        "contracts/basic/Planned.sol",
        _tagged(
            "Planned",
            """
            @custom:category basic
            @custom:concept Plans
            @custom:difficulty beginner
            @custom:deploy-plan [{"contract": "Planned",
            """,
        ),
    )
    (problem,) = _scan_errors(tmp_path)
    assert problem.startswith("contracts/basic/Planned.sol: invalid @custom:deploy-plan:")


def test_scan_rejects_unknown_dependency_and_missing_test(
    tmp_path: Path, write_file: WriteFile
) -> None:
    write_file(
        tmp_path,
        "contracts/games/Dice.sol",
        _tagged(
            "Dice",
            """
            @custom:category games
            @custom:concept Random rolls
            @custom:difficulty beginner
            @custom:depends-on Ghost
            @custom:test Missing.test.ts
            """,
        ),
    )
    problems = _scan_errors(tmp_path)
    assert problems == [
        "contracts/games/Dice.sol: @custom:depends-on names unknown contract 'Ghost'",
        "contracts/games/Dice.sol: @custom:test file 'Missing.test.ts' not found under test/games",
    ]


def test_scan_rejects_duplicate_slugs(tmp_path: Path, write_file: WriteFile) -> None:
    tags = """
        @custom:category basic
        @custom:concept Same slug
        @custom:difficulty beginner
        """
    write_file(tmp_path, "contracts/basic/Vault.sol", _tagged("Vault", tags))
    write_file(tmp_path, "contracts/games/VaultExample.sol", _tagged("VaultExample", tags))
    (problem,) = _scan_errors(tmp_path)
    assert problem == (
        "duplicate slug 'vault' derived from: "
        "contracts/basic/Vault.sol, contracts/games/VaultExample.sol"
    )


def test_scan_rejects_multiple_tagged_contracts(tmp_path: Path, write_file: WriteFile) -> None:
    tags = """
        @custom:category basic
        @custom:concept Two in one
        @custom:difficulty beginner
        """
    write_file(
        tmp_path,
        "contracts/basic/Pair.sol",
        _tagged("First", tags) + _tagged("Second", tags).split("\n", 2)[2],
    )
    (problem,) = _scan_errors(tmp_path)
    assert "multiple tagged contracts (First, Second)" in problem


def test_scan_reports_problems_across_files(tmp_path: Path, write_file: WriteFile) -> None:
    write_file(tmp_path, "contracts/basic/A.sol", _tagged("A", "@custom:category basic"))
    write_file(tmp_path, "contracts/basic/B.sol", _tagged("B", "@custom:category basic"))
    with pytest.raises(ScanError) as excinfo:
        scan(tmp_path)
    assert len(excinfo.value.problems) == 4, "both files report both missing tags"
    assert str(excinfo.value).startswith("4 problems found while scanning:")


def test_scan_requires_contracts_dir(tmp_path: Path) -> None:
    assert _scan_errors(tmp_path) == ["contracts directory 'contracts' not found"]


def test_scan_reports_non_utf8_sources(tmp_path: Path, write_file: WriteFile) -> None:
    broken = tmp_path / "contracts" / "basic" / "Latin1.sol"
    broken.parent.mkdir(parents=True)
    broken.write_bytes(b"// caf\xe9\ncontract Latin1 {}\n")
    write_file(tmp_path, "contracts/basic/Fine.sol", "contract Fine {}\n")
    (problem,) = _scan_errors(tmp_path)
    assert problem.startswith("contracts/basic/Latin1.sol: not valid UTF-8"), problem


def test_untagged_contract_is_a_helper(tmp_path: Path, write_file: WriteFile) -> None:
    write_file(
        tmp_path,
        "contracts/basic/Helper.sol",
        "/// @title Just a helper\ncontract Helper {}\n",
    )
    registry = scan(tmp_path)
    assert registry.examples == []
    assert registry.locate("Helper") is not None
