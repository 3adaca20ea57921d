from __future__ import annotations

import argparse
import os
import webbrowser
from pathlib import Path

from .kvstore import JsonFileStore, default_state_path
from .payload import build_payload
from .render.inline import build_html
from .routine import RoutineTracker
from .store import GraphLoadError, load_graph
from .util.console import warn
from .util.timeparse import parse_date_yyyy_mm_dd
from .util.tz import normalize_tz_name, resolve_tz, today_date


def add_common_args(ap: argparse.ArgumentParser) -> None:
    ap.add_argument(
        "--data",
        default=os.getenv("CAPGRAPH_DATA", "data.json"),
        help="Graph document (default: env CAPGRAPH_DATA or ./data.json)",
    )
    ap.add_argument(
        "--state",
        default=None,
        help="Routine state file (default: env CAPGRAPH_STATE or ~/.capgraph/state.json)",
    )
    ap.add_argument(
        "--tz",
        default=os.getenv("CAPGRAPH_TZ", "local"),
        help="Timezone for day/week boundaries (default: env CAPGRAPH_TZ or 'local')",
    )
    ap.add_argument("--today", default=None, help="Override today's date YYYY-MM-DD")


def resolve_today(args: argparse.Namespace):
    tz_name = normalize_tz_name(args.tz)
    if args.today:
        try:
            return parse_date_yyyy_mm_dd(args.today)
        except ValueError as e:
            raise SystemExit(f"Invalid --today value: {e}")
    try:
        return today_date(resolve_tz(tz_name))
    except ValueError as e:
        raise SystemExit(f"Invalid --tz value: {e}")


def open_tracker(args: argparse.Namespace) -> RoutineTracker:
    path = Path(args.state).expanduser() if args.state else default_state_path()
    return RoutineTracker(JsonFileStore(path), tz=normalize_tz_name(args.tz))


def load_graph_or_exit(path: str):
    try:
        return load_graph(path)
    except GraphLoadError as e:
        raise SystemExit(str(e))


def main(argv: list[str] | None = None) -> None:
    default_out = os.path.join("build", "capgraph.html")
    ap = argparse.ArgumentParser(description="Render the CPD/CCD capability graph as a self-contained HTML view.")
    add_common_args(ap)
    ap.add_argument("--out", default=default_out, help="Output HTML path (default: ./build/capgraph.html)")
    ap.add_argument("--limit", type=int, default=12, help="Daily review tasks to show (default: 12)")
    ap.add_argument(
        "--vacation",
        default=os.getenv("CAPGRAPH_VACATION", ""),
        help="Vacation start date YYYY-MM-DD for the pre-vacation check (default: env CAPGRAPH_VACATION)",
    )
    ap.add_argument("--no-open", action="store_true", help="Do not open the generated HTML in a browser")
    args = ap.parse_args(argv)

    today = resolve_today(args)
    vacation = None
    if args.vacation:
        try:
            vacation = parse_date_yyyy_mm_dd(args.vacation)
        except ValueError as e:
            raise SystemExit(f"Invalid --vacation value: {e}")

    graph = load_graph_or_exit(args.data)
    tracker = open_tracker(args)
    tracker.check_rollover(today)

    data = build_payload(graph, tracker, today=today, daily_limit=int(args.limit), vacation=vacation)
    html = build_html(data)

    out_path = os.path.abspath(args.out)
    try:
        Path(out_path).parent.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        # Default relative path from an unwritable CWD: fall back to a user-writable location.
        if args.out == default_out:
            fallback = Path.home() / ".capgraph" / "build" / "capgraph.html"
            fallback.parent.mkdir(parents=True, exist_ok=True)
            out_path = str(fallback)
            warn(f"default output directory is not writable; using {out_path}")
        else:
            raise SystemExit(f"Cannot create output directory '{Path(out_path).parent}': {e}")
    with open(out_path, "w", encoding="utf-8") as f:
        f.write(html)

    print(out_path)

    if not args.no_open:
        try:
            webbrowser.open("file://" + out_path)
        except webbrowser.Error as e:
            warn(f"could not open browser: {e}")


if __name__ == "__main__":
    main()
