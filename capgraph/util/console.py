# capgraph/util/console.py
from __future__ import annotations

import os
import sys
from typing import Any


def eprint(*args: Any) -> None:
    print(*args, file=sys.stderr)


def obs_enabled() -> bool:
    v = (os.getenv("CAPGRAPH_OBS_LOG", "") or "").strip().lower()
    return v in {"1", "true", "yes", "on"}


def obs(scope: str, event: str, **fields: Any) -> None:
    """Emit a `[capgraph.<scope>] event k=v ...` line when CAPGRAPH_OBS_LOG is on."""
    if not obs_enabled():
        return
    tail = " ".join(f"{k}={v}" for k, v in fields.items())
    eprint(f"[capgraph.{scope}] {event}" + (f" {tail}" if tail else ""))


def warn(msg: str) -> None:
    eprint(f"[capgraph] WARN: {msg}")
