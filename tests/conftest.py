"""Shared fixtures that build a miniature example hub on disk.

The hub mirrors the layout the CLI expects: tagged example contracts under
``contracts/<category>/``, helpers that are only indexed, paired TypeScript
tests under ``test/<category>/``, a Hardhat ``base-template/``, curated pages
under ``static-docs/``, and a root ``package.json`` that supplies dependency
ranges.

Examples
--------
- ``hub_root`` returns the populated repository root.
- ``hub_config`` loads the default configuration for that root.
- ``registry`` scans it, yielding ``blind-auction``, ``encrypted-vault`` and
  ``fhe-counter``.
- ``write_file`` writes an arbitrary file relative to a root, creating parent
  directories, for tests that need a broken or bespoke tree.
"""

from __future__ import annotations

import json
import typing as typ
from pathlib import Path
from textwrap import dedent

import pytest

from fhevm_hub._constants import TEMPLATE_ENV_VAR
from fhevm_hub.config import HubConfig, load_hub_config
from fhevm_hub.registry import Registry, scan

if typ.TYPE_CHECKING:
    import collections.abc as cabc

FHE_COUNTER = dedent(
    """\
    // SPDX-License-Identifier: BSD-3-Clause-Clear
    pragma solidity ^0.8.24;

    import {FHE, euint32, externalEuint32} from "@fhevm/solidity/lib/FHE.sol";
    import {SepoliaConfig} from "@fhevm/solidity/config/ZamaConfig.sol";

    /**
     * @title FHE Counter
     * @notice A confidential counter that can be incremented
     * and decremented.
     * @custom:category basic
     * @custom:chapter encryption, access-control
     * @custom:concept Encrypted arithmetic on euint32
     * @custom:difficulty Beginner
     */
    contract FHECounter is SepoliaConfig {
        euint32 private _count;
    }
    """
)

ENCRYPTED_VAULT = dedent(
    """\
    // SPDX-License-Identifier: BSD-3-Clause-Clear
    pragma solidity ^0.8.24;

    import {FHECounter} from "./FHECounter.sol";

    /// @title Encrypted Vault
    /// @custom:category basic
    /// @custom:concept Composing encrypted state across contracts
    /// @custom:difficulty intermediate
    /// @custom:depends-on FHECounter
    contract EncryptedVault {
        FHECounter public counter;
    }
    """
)

BLIND_AUCTION = dedent(
    """\
    // SPDX-License-Identifier: BSD-3-Clause-Clear
    pragma solidity ^0.8.24;

    import {FHE, ebool} from "@fhevm/solidity/lib/FHE.sol";
    import {ConfidentialToken} from "../tokens/ConfidentialToken.sol";
    // import {Unused} from "../tokens/Unused.sol";

    /// @title Blind Auction
    /// @notice Bids stay encrypted until the auction closes.
    /// @custom:category auctions
    /// @custom:chapter auctions
    /// @custom:concept Sealed bids compared under encryption
    /// @custom:difficulty advanced
    /// @custom:depends-on ConfidentialToken
    /// @custom:deploy-plan [{"contract":"ConfidentialToken","saveAs":"token","args":["Bid Token","BID"]},
    ///   {"contract":"BlindAuction","saveAs":"auction","args":["@token","$deployer",3600],
    ///   "afterDeploy":["await @token.mint(deployer.address, 1000);"]}]
    contract BlindAuction {
        ConfidentialToken public token;
    }
    """
)

CONFIDENTIAL_TOKEN = dedent(
    """\
    // SPDX-License-Identifier: BSD-3-Clause-Clear
    pragma solidity ^0.8.24;

    import {ERC7984} from "@openzeppelin/confidential-contracts/token/ERC7984/ERC7984.sol";
    import {TokenBase} from "./TokenBase.sol";

    /// @notice Helper token used by the auction examples.
    contract ConfidentialToken is TokenBase {}
    """
)

TOKEN_BASE = dedent(
    """\
    // SPDX-License-Identifier: BSD-3-Clause-Clear
    pragma solidity ^0.8.24;

    interface ITokenHooks {}

    abstract contract TokenBase {}
    """
)

FHE_COUNTER_TEST = dedent(
    """\
    import { expect } from "chai";
    import { ethers } from "hardhat";
    import { createInstance } from "@fhevm/mock-utils";

    describe("FHECounter", function () {
      it("increments the counter", async function () {});
      it("reverts when the caller lacks ACL access (pitfall)", async function () {});
      it('forgets FHE.allowThis after an update (pitfall)', async function () {});
    });
    """
)

FULL_FLOW_TEST = dedent(
    """\
    import { ethers } from "hardhat";

    describe("EncryptedVault full flow", function () {
      it("deploys the counter before the vault", async function () {});
    });
    """
)

BLIND_AUCTION_TEST = dedent(
    """\
    import { expect } from "chai";

    describe("BlindAuction", function () {
      it.skip("compares bids with FHE.gt, never plaintext (pitfall)", async () => {});
    });
    """
)

ROOT_PACKAGE_JSON = {
    "name": "fhevm-examples-hub",
    "private": True,
    "dependencies": {"@fhevm/solidity": "^0.8.0"},
    "devDependencies": {
        "@fhevm/hardhat-plugin": "^0.1.0",
        "chai": "^4.5.0",
        "hardhat": "^2.26.0",
    },
}

TEMPLATE_PACKAGE_JSON = {
    "name": "fhevm-hardhat-template",
    "version": "0.1.0",
    "private": True,
    "license": "BSD-3-Clause-Clear",
    "scripts": {"clean": "hardhat clean", "test": "hardhat test --network hardhat"},
}


def _write(root: Path, relative: str, content: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _no_template_override(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's ``FHEVM_TEMPLATE_DIR`` from leaking into tests."""
    monkeypatch.delenv(TEMPLATE_ENV_VAR, raising=False)


@pytest.fixture
def write_file() -> cabc.Callable[[Path, str, str], Path]:
    """Return a helper writing ``content`` to ``root / relative``."""
    return _write


@pytest.fixture
def hub_root(tmp_path: Path) -> Path:
    """Build a complete miniature hub and return its root."""
    root = tmp_path / "hub"
    files = {
        "contracts/basic/FHECounter.sol": FHE_COUNTER,
        "contracts/basic/EncryptedVaultExample.sol": ENCRYPTED_VAULT,
        "contracts/auctions/BlindAuction.sol": BLIND_AUCTION,
        "contracts/tokens/ConfidentialToken.sol": CONFIDENTIAL_TOKEN,
        "contracts/tokens/TokenBase.sol": TOKEN_BASE,
        "contracts/mocks/MockOracle.sol": "pragma solidity ^0.8.24;\n\nlibrary MockOracle {}\n",
        "test/basic/FHECounter.test.ts": FHE_COUNTER_TEST,
        "test/basic/FullFlow.test.ts": FULL_FLOW_TEST,
        "test/auctions/BlindAuction.test.ts": BLIND_AUCTION_TEST,
        "package.json": json.dumps(ROOT_PACKAGE_JSON, indent=2) + "\n",
        "base-template/package.json": json.dumps(TEMPLATE_PACKAGE_JSON, indent=2) + "\n",
        "base-template/hardhat.config.ts": 'import "@fhevm/hardhat-plugin";\n',
        "base-template/tasks/accounts.ts": "export {};\n",
        "base-template/contracts/FHECounter.sol": "// template copy\n",
        "base-template/test/FHECounter.ts": "// template test\n",
        "base-template/node_modules/left-pad/index.js": "module.exports = 1;\n",
        "static-docs/getting-started.md": "# Getting Started\n\nInstall Node 22.\n",
        "static-docs/faq.md": "Answers without a heading.\n",
    }
    for relative, content in files.items():
        _write(root, relative, content)
    return root


@pytest.fixture
def hub_config(hub_root: Path) -> HubConfig:
    """Return the default configuration for the miniature hub."""
    return load_hub_config(hub_root)


@pytest.fixture
def registry(hub_config: HubConfig) -> Registry:
    """Return the scanned registry of the miniature hub."""
    return scan(hub_config.root, hub_config)
