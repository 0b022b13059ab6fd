"""Behaviour tests for metadata validation during a scan.

Each scenario in ``features/scan_validation.feature`` starts from the
miniature hub, optionally corrupts one contract's NatSpec block, and checks
that :func:`fhevm_hub.registry.scan` either returns the full registry or
raises a single :class:`~fhevm_hub.errors.ScanError` naming the problem.

Usage
-----
Run ``pytest tests/bdd/test_scan_validation.py -v``.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from fhevm_hub.errors import ScanError
from fhevm_hub.registry import scan

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "scan_validation.feature"
scenarios(FEATURE_FILE)

ScenarioState = dict[str, typ.Any]


@pytest.fixture
def scenario_state() -> ScenarioState:
    """Share mutable scenario data across pytest-bdd steps."""
    return {}


def _contract(root: Path, name: str) -> Path:
    (path,) = (root / "contracts").rglob(name)
    return path


@given("the example hub")
def given_hub(hub_root: Path, scenario_state: ScenarioState) -> None:
    scenario_state["root"] = hub_root


@given(parsers.parse('"{name}" also carries the tag "{tag}"'))
def given_extra_tag(name: str, tag: str, scenario_state: ScenarioState) -> None:
    path = _contract(scenario_state["root"], name)
    source = path.read_text(encoding="utf-8")
    path.write_text(source.replace(" */\ncontract", f" * {tag}\n */\ncontract", 1), encoding="utf-8")


@given(parsers.parse('"{name}" deploys with the argument "{token}"'))
def given_bad_argument(name: str, token: str, scenario_state: ScenarioState) -> None:
    path = _contract(scenario_state["root"], name)
    source = path.read_text(encoding="utf-8")
    path.write_text(source.replace('"$deployer"', f'"{token}"'), encoding="utf-8")


@when("I scan the hub")
def when_scan(scenario_state: ScenarioState) -> None:
    try:
        scenario_state["registry"] = scan(scenario_state["root"])
    except ScanError as exc:
        scenario_state["error"] = exc


@then(parsers.parse('the registry lists "{slugs}"'))
def then_registry_lists(slugs: str, scenario_state: ScenarioState) -> None:
    assert "error" not in scenario_state, f"unexpected scan failure: {scenario_state.get('error')}"
    expected = [slug.strip() for slug in slugs.split(",")]
    actual = [example.slug for example in scenario_state["registry"].examples]
    assert actual == expected, f"expected {expected!r}, got {actual!r}"


@then(parsers.parse('the scan fails mentioning "{text}"'))
def then_scan_fails(text: str, scenario_state: ScenarioState) -> None:
    error = scenario_state.get("error")
    assert error is not None, "expected the scan to fail"
    assert any(text in problem for problem in error.problems), (
        f"expected {text!r} among {error.problems!r}"
    )
