#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys
from typing import List, Optional

from capgraph.cli import add_common_args, load_graph_or_exit, open_tracker, resolve_today
from capgraph.routine import hash_message
from capgraph.session import AppState, run_validation


def _die(msg: str, rc: int = 2) -> int:
    print(f"[capgraph-validate] ERROR: {msg}", file=sys.stderr)
    return rc


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(
        prog="capgraph-validate",
        description="Run the graph rules (link types, status schema, category misuse, risky combinations).",
    )
    add_common_args(ap)
    ap.add_argument("--json", action="store_true", help="Print findings as JSON")
    ap.add_argument("--ack", type=int, default=None, metavar="N", help="Acknowledge error number N (1-based) for this week")
    ap.add_argument("--reason", default="", help="Reason stored with --ack (max 120 chars)")
    ap.add_argument("--strict", action="store_true", help="Fail on acknowledged errors too")
    ns = ap.parse_args(argv)

    today = resolve_today(ns)
    state = AppState(graph=load_graph_or_exit(ns.data))
    tracker = open_tracker(ns)
    result = run_validation(state, tracker, today)

    if ns.ack is not None:
        if not 1 <= ns.ack <= len(result.errors):
            return _die(f"--ack must be between 1 and {len(result.errors)}")
        msg = result.errors[ns.ack - 1]
        tracker.acknowledge(msg, ns.reason, today)
        print(f"[capgraph-validate] acknowledged #{ns.ack} ({hash_message(msg)})")

    open_errors, acked = tracker.split_acknowledged(list(result.errors), today)

    if ns.json:
        print(
            json.dumps(
                {
                    "errors": list(result.errors),
                    "warnings": list(result.warnings),
                    "acknowledged": [{"message": m, "reason": r.get("reason", "")} for m, r in acked],
                },
                ensure_ascii=False,
                indent=2,
            )
        )
    else:
        acked_set = {m for m, _ in acked}
        for i, m in enumerate(result.errors, start=1):
            tag = "ACK" if m in acked_set else "ERROR"
            print(f"[{tag}] {i}. {m}")
        for m in result.warnings:
            print(f"[WARN] {m}")

    failing = result.errors if ns.strict else tuple(open_errors)
    if failing:
        if not ns.json:
            print(f"[FAIL] {len(failing)} error(s), {len(result.warnings)} warning(s)")
        return 1
    if not ns.json:
        print(f"[OK] no open errors ({len(result.warnings)} warning(s), {len(acked)} acknowledged)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
