"""
Opt-in internal trace.

Set ARBORLOG_DEBUG=1 (or call enable()) to have the registry and the
pipeline processor describe what they are doing on stderr. Off by default;
trace() returns after a single flag check.
"""

import os
import sys
from typing import Any

ENV_VAR = "ARBORLOG_DEBUG"
_TRUTHY = {"1", "true", "yes", "on"}

_enabled = os.environ.get(ENV_VAR, "").strip().lower() in _TRUTHY


def enable() -> None:
    global _enabled
    _enabled = True


def disable() -> None:
    global _enabled
    _enabled = False


def is_enabled() -> bool:
    return _enabled


def trace(fmt: str, *args: Any) -> None:
    if not _enabled:
        return
    try:
        text = fmt % args if args else fmt
    except (TypeError, ValueError):
        text = f"{fmt} {args!r}"
    print(f"[arborlog] {text}", file=sys.stderr, flush=True)
