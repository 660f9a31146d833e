"""
strands-dbg - interactive debugger for strands processes.

Use ``python -m strands_dbg`` or the ``strands-dbg`` console script.
"""

from __future__ import annotations

from .cli import main

__all__ = ["main"]
__version__ = "0.1.0"
