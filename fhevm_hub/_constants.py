"""Common literal values used across fhevm_hub.

These constants keep directory names, tag names, and metadata filenames
centralized so the scanner, generators, and tests import the same values
without drifting. Intended for internal use within the fhevm_hub package.

Examples
--------
>>> from fhevm_hub import _constants
>>> _constants.TEMPLATE_ENV_VAR
'FHEVM_TEMPLATE_DIR'
>>> _constants.TEST_SUFFIX
'.test.ts'
"""

TEMPLATE_ENV_VAR = "FHEVM_TEMPLATE_DIR"
DEFAULT_TEMPLATE_DIRS = ("base-template", "fhevm-hardhat-template")
DEFAULT_TEMPLATE_GIT_URL = "https://github.com/zama-ai/fhevm-hardhat-template.git"
TEMPLATE_MARKERS = ("package.json", "hardhat.config.ts")
TEMPLATE_SKIP = (".git", "node_modules", "artifacts", "cache")

SOLIDITY_SUFFIX = ".sol"
TEST_SUFFIX = ".test.ts"
SHARED_FLOW_TEST = "FullFlow.test.ts"

PITFALL_MARKER = "(pitfall)"
DOCS_MANIFEST = ".fhevm-hub-docs.json"
CATALOG_FILENAME = "catalog.json"
