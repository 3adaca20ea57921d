"""Daily/weekly review routine: completion state, streaks, acknowledgements.

All state goes through a KeyValueStore. Day state lives under the local
calendar date, week state under the Monday of the local week, so a new
day or week simply starts from an empty key; nothing has to be reset.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .kvstore import KeyValueStore
from .model import Graph, Streaks, Task
from .scheduler import completed_count, daily_threshold, derive_tasks, task_id
from .util.console import obs
from .util.tz import day_key, epoch_ms, resolve_tz, today_date, week_key, week_start

WEEKLY_TASKS: Tuple[Tuple[str, str], ...] = (
    ("W1", "Run Validate and review all Errors/Warnings."),
    ("W2", "Resolve all ERRORS this week (or mark as acknowledged with a reason)."),
    ("W3", "Pick 1 CPD and answer: 'What decision did this product enable this week?' (write 1 sentence in CPD)."),
    ("W4", "Review CCDs for misuse: no product language, no implied commitments."),
    (
        "W5",
        "Pre-vacation hardening check (if within 14 days before a configured vacation date): "
        "ensure every CPD has OperationalOwnership ≠ NONE.",
    ),
)
WEEKLY_TASK_IDS: Tuple[str, ...] = tuple(t for t, _ in WEEKLY_TASKS)
WEEKLY_THRESHOLD = 3
VALIDATION_WEEKLY_TASK = "W1"

DAILY_STREAK_CAP = 365
WEEKLY_STREAK_CAP = 52
ACK_REASON_MAX = 120
VACATION_WINDOW_DAYS = 14

KEY_HISTORY = "taskCompletionHistory"
KEY_LAST_DAY = "lastDailyKey"
KEY_LAST_WEEK = "lastWeekKey"

_B36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def day_state_key(d: dt.date) -> str:
    return f"routine_day_{day_key(d)}"


def week_state_key(d: dt.date) -> str:
    return f"routine_week_{week_key(d)}"


def ack_key(d: dt.date) -> str:
    return f"ack_{week_key(d)}"


def _to_base36(n: int) -> str:
    if n == 0:
        return "0"
    sign = "-" if n < 0 else ""
    n = abs(n)
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(_B36[r])
    return sign + "".join(reversed(out))


def hash_message(text: str) -> str:
    """32-bit string hash (h*31 + code unit, signed wrap) in base 36.

    Acknowledgements are keyed by this, so it must stay stable across
    releases. Not collision resistant.
    """
    data = str(text).encode("utf-16-le", errors="surrogatepass")
    h = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = ((h << 5) - h + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return _to_base36(h)


def is_within_days_before(target: Optional[dt.date], today: dt.date, days: int = VACATION_WINDOW_DAYS) -> bool:
    if target is None:
        return False
    diff = (target - today).days
    return 0 <= diff <= days


@dataclass(frozen=True)
class Rollover:
    new_day: bool
    new_week: bool


class RoutineTracker:
    def __init__(self, store: KeyValueStore, tz: Optional[str] = "local") -> None:
        self.store = store
        self.tz_name = tz

    def today(self) -> dt.date:
        return today_date(resolve_tz(self.tz_name))

    def _day(self, today: Optional[dt.date]) -> dt.date:
        return today if today is not None else self.today()

    # --- raw state -------------------------------------------------------

    def day_state(self, d: Optional[dt.date] = None) -> Dict[str, Any]:
        obj = self.store.get_json(day_state_key(self._day(d)), {})
        return obj if isinstance(obj, dict) else {}

    def week_state(self, d: Optional[dt.date] = None) -> Dict[str, Any]:
        obj = self.store.get_json(week_state_key(self._day(d)), {})
        return obj if isinstance(obj, dict) else {}

    def completion_history(self) -> Dict[str, str]:
        obj = self.store.get_json(KEY_HISTORY, {})
        if not isinstance(obj, dict):
            return {}
        return {str(k): v for k, v in obj.items() if isinstance(v, str)}

    # --- daily -----------------------------------------------------------

    def toggle_daily(self, tid: str, today: Optional[dt.date] = None) -> bool:
        d = self._day(today)
        state = self.day_state(d)
        state[tid] = not bool(state.get(tid))
        self.store.set_json(day_state_key(d), state)
        return state[tid]

    def mark_field_task_complete(self, node_id: str, field_key: str, today: Optional[dt.date] = None) -> str:
        """Mark the (node, field) review done today and record it in the history."""
        d = self._day(today)
        tid = task_id(node_id, field_key)
        state = self.day_state(d)
        state[tid] = True
        self.store.set_json(day_state_key(d), state)

        history = self.completion_history()
        history[tid] = day_key(d)
        self.store.set_json(KEY_HISTORY, history)
        obs("routine", "task.complete", id=tid, day=day_key(d))
        return tid

    def reset_today(self, today: Optional[dt.date] = None) -> None:
        self.store.remove_item(day_state_key(self._day(today)))

    # --- weekly ----------------------------------------------------------

    def toggle_weekly(self, tid: str, today: Optional[dt.date] = None) -> bool:
        d = self._day(today)
        state = self.week_state(d)
        state[tid] = not bool(state.get(tid))
        self.store.set_json(week_state_key(d), state)
        return state[tid]

    def mark_weekly(self, tid: str, today: Optional[dt.date] = None) -> None:
        d = self._day(today)
        state = self.week_state(d)
        state[tid] = True
        self.store.set_json(week_state_key(d), state)

    def reset_week(self, today: Optional[dt.date] = None) -> None:
        self.store.remove_item(week_state_key(self._day(today)))

    # --- rollover --------------------------------------------------------

    def check_rollover(self, today: Optional[dt.date] = None) -> Rollover:
        d = self._day(today)
        dk = day_key(d)
        wk = week_key(d)
        last_day = self.store.get_item(KEY_LAST_DAY)
        last_week = self.store.get_item(KEY_LAST_WEEK)
        if last_day != dk:
            self.store.set_item(KEY_LAST_DAY, dk)
        if last_week != wk:
            self.store.set_item(KEY_LAST_WEEK, wk)
        r = Rollover(new_day=bool(last_day) and last_day != dk, new_week=bool(last_week) and last_week != wk)
        if r.new_day or r.new_week:
            obs("routine", "rollover", day=r.new_day, week=r.new_week)
        return r

    # --- streaks ---------------------------------------------------------

    def daily_streak(self, tasks: Sequence[Task], today: Optional[dt.date] = None) -> int:
        # Every past day is judged against today's task set.
        d = self._day(today)
        threshold = daily_threshold(len(tasks))
        streak = 0
        for i in range(DAILY_STREAK_CAP):
            state = self.day_state(d - dt.timedelta(days=i))
            if completed_count(tasks, state) < threshold:
                break
            streak += 1
        return streak

    def weekly_streak(self, today: Optional[dt.date] = None) -> int:
        monday = week_start(self._day(today))
        streak = 0
        for w in range(WEEKLY_STREAK_CAP):
            state = self.week_state(monday - dt.timedelta(weeks=w))
            done = sum(1 for t in WEEKLY_TASK_IDS if state.get(t))
            if done < WEEKLY_THRESHOLD:
                break
            streak += 1
        return streak

    def streaks(self, graph: Graph, today: Optional[dt.date] = None) -> Streaks:
        d = self._day(today)
        return Streaks(daily=self.daily_streak(derive_tasks(graph), d), weekly=self.weekly_streak(d))

    # --- acknowledgements ------------------------------------------------

    def acknowledgements(self, today: Optional[dt.date] = None) -> Dict[str, Dict[str, Any]]:
        obj = self.store.get_json(ack_key(self._day(today)), {})
        return obj if isinstance(obj, dict) else {}

    def acknowledge(
        self,
        message: str,
        reason: str = "",
        today: Optional[dt.date] = None,
        now_ms: Optional[int] = None,
    ) -> Dict[str, Any]:
        d = self._day(today)
        acks = self.acknowledgements(d)
        rec = {
            "message": message,
            "reason": (reason or "").strip()[:ACK_REASON_MAX],
            "timestamp": epoch_ms() if now_ms is None else int(now_ms),
        }
        acks[hash_message(message)] = rec
        self.store.set_json(ack_key(d), acks)
        return rec

    def find_ack(self, message: str, today: Optional[dt.date] = None) -> Optional[Dict[str, Any]]:
        rec = self.acknowledgements(today).get(hash_message(message))
        return rec if isinstance(rec, dict) else None

    def split_acknowledged(
        self, messages: Sequence[str], today: Optional[dt.date] = None
    ) -> Tuple[List[str], List[Tuple[str, Mapping[str, Any]]]]:
        """(open messages, [(message, ack record)]) for this week."""
        acks = self.acknowledgements(today)
        open_: List[str] = []
        acked: List[Tuple[str, Mapping[str, Any]]] = []
        for m in messages:
            rec = acks.get(hash_message(m))
            if isinstance(rec, dict):
                acked.append((m, rec))
            else:
                open_.append(m)
        return open_, acked


__all__ = [
    "ACK_REASON_MAX",
    "Rollover",
    "RoutineTracker",
    "WEEKLY_TASKS",
    "WEEKLY_TASK_IDS",
    "ack_key",
    "day_state_key",
    "hash_message",
    "is_within_days_before",
    "week_state_key",
]
