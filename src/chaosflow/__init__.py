"""
chaosflow — chaos workflow submission client

File: src/chaosflow/__init__.py
Last updated: 2026-10-19

Purpose
- Package root. Prepares user-authored chaos workflow manifests and submits them
  to an orchestration backend once the caller is authorized for the target project.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).

Key interfaces / contracts
- ``chaosflow.main.cli_entrypoint`` for process entry.
- ``chaosflow.submission`` for programmatic use with already-resolved identifiers.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
