"""Entry point for ``python -m strands_dbg``."""

from __future__ import annotations

from strands_dbg import main

if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
