from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional

from .model import Graph, get_status
from .routine import WEEKLY_TASKS, RoutineTracker, hash_message, is_within_days_before
from .scheduler import DEFAULT_DAILY_LIMIT, derive_tasks, pick_cpd_for_me, select_due
from .schema import CCD_STATUS_FIELDS, CPD_STATUS_FIELDS, classify_status
from .store import graph_to_dict
from .util.tz import day_key, normalize_tz_name, week_key
from .validate import validate

SCHEMA_VERSION = 1


def _findings(messages: List[str], acks: Dict[str, Any]) -> List[Dict[str, Any]]:
    out = []
    for m in messages:
        h = hash_message(m)
        rec = acks.get(h)
        out.append({"message": m, "hash": h, "ack": rec if isinstance(rec, dict) else None})
    return out


def _age_json(age: float) -> Optional[int]:
    # JSON has no infinity; null means "never reviewed".
    return None if age == float("inf") else int(age)


def build_payload(
    graph: Graph,
    tracker: RoutineTracker,
    *,
    today: Optional[dt.date] = None,
    daily_limit: int = DEFAULT_DAILY_LIMIT,
    vacation: Optional[dt.date] = None,
    now: Optional[dt.datetime] = None,
) -> Dict[str, Any]:
    """Everything the HTML view shows, computed up front."""
    d = today if today is not None else tracker.today()
    ts = now or dt.datetime.now(tz=dt.timezone.utc)

    result = validate(graph)
    acks = tracker.acknowledgements(d)

    tasks = derive_tasks(graph)
    history = tracker.completion_history()
    due = select_due(tasks, history, daily_limit, d)
    day_state = tracker.day_state(d)
    week_state = tracker.week_state(d)
    streaks = tracker.streaks(graph, d)
    pick = pick_cpd_for_me(graph)

    daily = []
    for item in due:
        row = item.task.to_dict()
        row["age"] = _age_json(item.age)
        row["done"] = bool(day_state.get(item.task.id))
        daily.append(row)

    status_kinds: Dict[str, Dict[str, str]] = {}
    for n in graph.nodes:
        st = get_status(n) or {}
        status_kinds[n.id] = {k: classify_status(v).lower() for k, v in st.items()}

    return {
        "schema_version": SCHEMA_VERSION,
        "meta": {
            "generated_at": ts.isoformat(),
            "today": day_key(d),
            "week": week_key(d),
            "tz": normalize_tz_name(tracker.tz_name),
        },
        "fields": {
            "CPD": [{"key": k, "label": lbl} for k, lbl in CPD_STATUS_FIELDS],
            "CCD": [{"key": k, "label": lbl} for k, lbl in CCD_STATUS_FIELDS],
        },
        "graph": graph_to_dict(graph),
        "status_kinds": status_kinds,
        "validation": {
            "errors": _findings(list(result.errors), acks),
            "warnings": _findings(list(result.warnings), acks),
        },
        "daily": {
            "tasks": daily,
            "completed": sum(1 for r in daily if r["done"]),
            "total": len(daily),
            "all": len(tasks),
        },
        "weekly": [{"id": tid, "text": text, "done": bool(week_state.get(tid))} for tid, text in WEEKLY_TASKS],
        "streaks": {"daily": streaks.daily, "weekly": streaks.weekly},
        "pick": (
            {"id": pick.node.id, "name": pick.node.name, "score": pick.score, "reasons": list(pick.reasons)}
            if pick is not None
            else None
        ),
        "vacation": {
            "date": vacation.isoformat() if vacation else None,
            "soon": is_within_days_before(vacation, d),
        },
    }


__all__ = ["SCHEMA_VERSION", "build_payload"]
