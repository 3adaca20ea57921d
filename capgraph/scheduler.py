"""Review-task derivation and freshness-based selection.

Tasks are not stored: one per (node, required status field), regenerated
from the graph each time. Selection is a plain top-k by age of the last
completion; nothing about the schedule itself is persisted.
"""

from __future__ import annotations

import datetime as dt
import math
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .model import DueTask, Graph, Pick, Task, get_status
from .schema import CPD, status_fields
from .util.tz import parse_day_key

DEFAULT_DAILY_LIMIT = 12
MAX_PICK_REASONS = 3

_PICK_WEIGHTS = {"TBD": 3, "NONE": 2}
_PICK_LIFECYCLE_MARKERS = ("Growth", "Incubation")


def _name_order(s: str) -> Tuple[str, str]:
    # Case-insensitive first, so "alpha" sorts before "Zeta"; exact text breaks the rest.
    return (s.casefold(), s)


def task_id(node_id: str, field_key: str) -> str:
    return f"review_{node_id}_{field_key}"


def derive_tasks(graph: Graph) -> List[Task]:
    out: List[Task] = []
    for node in graph.nodes:
        for key, label in status_fields(node.type):
            out.append(
                Task(
                    id=task_id(node.id, key),
                    node_id=node.id,
                    node_name=node.name,
                    node_type=node.type,
                    field_key=key,
                    label=label,
                )
            )
    return out


def task_age(tid: str, history: Mapping[str, str], today: dt.date) -> float:
    """Whole days since `tid` was last completed; inf if never (or unreadable)."""
    last = parse_day_key(history.get(tid))
    if last is None:
        return math.inf
    return float((today - last).days)


def select_due(
    tasks: Sequence[Task],
    history: Mapping[str, str],
    limit: int = DEFAULT_DAILY_LIMIT,
    today: Optional[dt.date] = None,
) -> List[DueTask]:
    """Oldest-completed first, ties by node display name; at most `limit`."""
    if limit <= 0:
        return []
    if today is None:
        today = dt.date.today()
    aged = [DueTask(task=t, age=task_age(t.id, history, today)) for t in tasks]
    aged.sort(key=lambda d: (-d.age, _name_order(d.task.node_name)))
    return aged[:limit]


def pick_cpd_for_me(graph: Graph) -> Optional[Pick]:
    """Pick the CPD most in need of attention.

    +3 per TBD status value, +2 per NONE, +1 for a Growth/Incubation
    lifecycle. Ties go to the lowest node id.
    """
    scored: List[Pick] = []
    for node in graph.nodes:
        if node.type != CPD:
            continue
        score = 0
        reasons: List[str] = []
        status: Dict[str, object] = get_status(node) or {}
        for key, value in status.items():
            if value is None:
                continue
            val = str(value).upper()
            w = _PICK_WEIGHTS.get(val)
            if w:
                score += w
                reasons.append(f"{key}={val}")

        lifecycle = (node.cpd or {}).get("lifecycle") or ""
        if isinstance(lifecycle, str) and any(m in lifecycle for m in _PICK_LIFECYCLE_MARKERS):
            score += 1

        scored.append(Pick(node=node, score=score, reasons=tuple(reasons[:MAX_PICK_REASONS])))

    if not scored:
        return None
    scored.sort(key=lambda p: (-p.score, _name_order(p.node.id)))
    return scored[0]


def completed_count(tasks: Sequence[Task], state: Mapping[str, object]) -> int:
    return sum(1 for t in tasks if state.get(t.id))


def daily_threshold(task_count: int) -> int:
    return max(3, math.floor(task_count * 0.2))


__all__ = [
    "DEFAULT_DAILY_LIMIT",
    "MAX_PICK_REASONS",
    "completed_count",
    "daily_threshold",
    "derive_tasks",
    "pick_cpd_for_me",
    "select_due",
    "task_age",
    "task_id",
]
