#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from capgraph.cli import add_common_args, load_graph_or_exit, open_tracker, resolve_today
from capgraph.routine import WEEKLY_TASK_IDS, WEEKLY_TASKS
from capgraph.scheduler import DEFAULT_DAILY_LIMIT
from capgraph.session import AppState, due_tasks, pick_for_review


def _die(msg: str, rc: int = 2) -> int:
    print(f"[capgraph-today] ERROR: {msg}", file=sys.stderr)
    return rc


def _age_label(age: float) -> str:
    return "never" if age == float("inf") else f"{int(age)}d"


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="capgraph-today", description="Daily status review and weekly checklist.")
    add_common_args(ap)
    ap.add_argument("--limit", type=int, default=DEFAULT_DAILY_LIMIT, help="Tasks to show (default: 12)")
    ap.add_argument("--done", nargs=2, metavar=("NODE_ID", "FIELD"), help="Mark a field review done today")
    ap.add_argument("--toggle", metavar="TASK_ID", help="Toggle a daily task checkbox")
    ap.add_argument("--weekly", metavar="W#", help="Toggle a weekly checklist item (W1..W5)")
    ap.add_argument("--reset-today", action="store_true", help="Clear today's daily checkboxes")
    ap.add_argument("--reset-week", action="store_true", help="Clear this week's checklist")
    ap.add_argument("--pick", action="store_true", help="Suggest one CPD to review")
    ns = ap.parse_args(argv)

    today = resolve_today(ns)
    state = AppState(graph=load_graph_or_exit(ns.data))
    tracker = open_tracker(ns)
    roll = tracker.check_rollover(today)
    if roll.new_day:
        print("[capgraph-today] new day: daily checklist starts empty")

    if ns.done:
        node_id, field_key = ns.done
        if state.graph.get(node_id) is None:
            return _die(f"unknown node id: {node_id}")
        tracker.mark_field_task_complete(node_id, field_key, today)
    if ns.toggle:
        tracker.toggle_daily(ns.toggle, today)
    if ns.weekly:
        if ns.weekly not in WEEKLY_TASK_IDS:
            return _die(f"--weekly must be one of {', '.join(WEEKLY_TASK_IDS)}")
        tracker.toggle_weekly(ns.weekly, today)
    if ns.reset_today:
        tracker.reset_today(today)
    if ns.reset_week:
        tracker.reset_week(today)

    if ns.pick:
        p = pick_for_review(state)
        if p is None:
            print("No CPD nodes found.")
        else:
            why = f" (selected because: {', '.join(p.reasons)})" if p.reasons else ""
            print(f"Review: {p.node.name} [{p.node.id}] score={p.score}{why}")

    due = due_tasks(state, tracker, ns.limit, today)
    day_state = tracker.day_state(today)
    done = sum(1 for d in due if day_state.get(d.task.id))
    print(f"Daily status review {today.isoformat()}: {done}/{len(due)}")
    for d in due:
        mark = "x" if day_state.get(d.task.id) else " "
        print(f"  [{mark}] {d.task.text}  ({_age_label(d.age)})  {d.task.id}")

    week_state = tracker.week_state(today)
    print("Weekly:")
    for tid, text in WEEKLY_TASKS:
        mark = "x" if week_state.get(tid) else " "
        print(f"  [{mark}] {tid} {text}")

    streaks = tracker.streaks(state.graph, today)
    print(f"Streak: {streaks.daily} day(s), {streaks.weekly} week(s)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
