"""Neura token-mining reward game backend.

A small FastAPI service backed by a single-file JSON ledger store. Clients
accrue a virtual balance, boost their mining speed through offer-wall tasks,
and request withdrawals that wait on third-party verification.

Version Management
------------------
``__version__`` is read from the installed package metadata at import time.
The single source of truth is the ``version`` field in ``pyproject.toml``.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__: str = version("neura_server")
except PackageNotFoundError:
    __version__ = "0.2.0"
