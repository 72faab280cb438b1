"""Module entrypoint for ``python -m chaosflow``."""

from __future__ import annotations

from chaosflow.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
