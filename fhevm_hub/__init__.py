"""Registry, project generator, and docs generator for fhEVM examples.

This package exposes the CLI entry points used by ``fhevm-hub`` to scan the
annotated example contracts, scaffold standalone Hardhat projects, and render
the GitBook documentation tree.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from fhevm_hub import main
>>> main()  # doctest: +SKIP
>>> from fhevm_hub import app
>>> app.name[0]
'fhevm-hub'
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
