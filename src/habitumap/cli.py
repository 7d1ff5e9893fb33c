from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from habitumap.core.clock import local_now
from habitumap.core.habits import HabitService
from habitumap.core.models import GeoPoint, Route
from habitumap.core.reset import DailyResetScheduler
from habitumap.core.session import TrackingSession
from habitumap.core.stats import habit_summary, history_summary
from habitumap.errors import HabitumapError
from habitumap.providers.replay import ReplayLocationProvider
from habitumap.storage.repository import LocalRepository, get_repository


def _read_track(path: Path, step_s: float) -> List[GeoPoint]:
    """Track file: JSON list of {lat, lon, [time], [note], [photo]}."""
    data = json.loads(path.read_text(encoding="utf-8"))
    t0 = local_now()
    out: List[GeoPoint] = []
    for i, row in enumerate(data):
        ts = datetime.fromisoformat(row["time"]) if row.get("time") else t0 + timedelta(seconds=i * step_s)
        if ts.tzinfo is None:
            ts = ts.astimezone()
        out.append(
            GeoPoint.capture(
                row["lat"],
                row["lon"],
                note=row.get("note"),
                photo_reference=row.get("photo"),
                at=ts,
            )
        )
    return out


def replay_track(points: List[GeoPoint], repo: Optional[LocalRepository] = None) -> Route:
    """Drive a tracking session through a recorded track, in file order.

    With *repo* the route is added to history and the recovery snapshot
    dropped afterwards.
    """
    samples = [p for p in points if not p.is_annotation]
    provider = ReplayLocationProvider(samples)
    now = [points[0].timestamp if points else local_now()]
    session = TrackingSession(provider, repository=repo, clock=lambda: now[0])

    session.start()
    for p in points:
        now[0] = p.timestamp
        if p.is_annotation:
            session.append_annotation(p)
        else:
            provider.replay(1)
    route = session.stop()
    if repo is not None:
        repo.add_route(route)
        session.discard_snapshot()
    return route


def _routes_table(routes: List[Route]) -> Table:
    table = Table(title="Route history")
    table.add_column("Date")
    table.add_column("Duration")
    table.add_column("Distance")
    table.add_column("Points")
    table.add_column("Samples")
    table.add_column("Id")
    for r in routes:
        table.add_row(
            r.date_label,
            r.duration_label,
            r.distance_label,
            str(r.point_count),
            str(r.sample_count),
            r.id[:12],
        )
    return table


def _cmd_history(args: argparse.Namespace, console: Console) -> None:
    repo = get_repository()
    if args.delete:
        repo.delete_route(args.delete)
        console.print(f"Deleted route {args.delete}")
    routes = repo.get_routes()
    console.print(_routes_table(routes[: args.limit]))
    s = history_summary(routes)
    console.print(f"Total routes: {s.total_routes}   Total distance: {s.total_distance_km:.1f} km")


def _cmd_habits(args: argparse.Namespace, console: Console) -> None:
    service = HabitService(get_repository())
    if args.add:
        h = service.add(args.add)
        console.print(f"Added habit #{h.id}: {h.name}")
    if args.toggle is not None:
        h = service.toggle(args.toggle)
        console.print(f"{h.name}: {'done' if h.completed else 'not done'} (streak {h.streak})")
    if args.delete is not None:
        service.delete(args.delete)
        console.print(f"Deleted habit #{args.delete}")

    habits = service.list_habits()
    table = Table(title="Habits")
    table.add_column("Id")
    table.add_column("Name")
    table.add_column("Done")
    table.add_column("Streak")
    for h in habits:
        table.add_row(str(h.id), h.name, "✓" if h.completed else "", str(h.streak))
    console.print(table)

    s = habit_summary(habits)
    console.print(
        f"{s.completed} of {s.total} done ({s.percentage:.0f}%), longest streak {s.longest_streak}"
    )


def _cmd_reset(args: argparse.Namespace, console: Console) -> None:
    repo = get_repository()
    scheduler = DailyResetScheduler(repo, HabitService(repo))
    if args.force:
        done = scheduler.force_reset()
    else:
        done = scheduler.check_and_reset()
    console.print("Habits reset" if done else "No reset needed")
    console.print(f"Last reset: {scheduler.last_reset_date() or 'never'}")
    console.print(f"Next reset in {scheduler.next_reset_string()}")


def _cmd_storage(args: argparse.Namespace, console: Console) -> None:
    repo = get_repository()
    if args.clear:
        repo.clear_all()
        console.print("All local data cleared")
    info = repo.storage_info()
    table = Table(title="Local storage")
    table.add_column("Habits")
    table.add_column("Routes")
    table.add_column("Recording in progress")
    table.add_row(str(info.habits_count), str(info.routes_count), "yes" if info.has_tracking else "no")
    console.print(table)


def _cmd_replay(args: argparse.Namespace, console: Console) -> None:
    points = _read_track(Path(args.track), args.step_seconds)
    repo = None if args.dry_run else get_repository()
    route = replay_track(points, repo)
    console.print(_routes_table([route]))
    if args.dry_run:
        console.print("Dry run: route not saved")


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="habitumap")
    ap.add_argument("--debug", action="store_true")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("history", help="List recorded routes")
    p.add_argument("--limit", type=int, default=20)
    p.add_argument("--delete", metavar="ROUTE_ID")

    p = sub.add_parser("habits", help="List and edit habits")
    p.add_argument("--add", metavar="NAME")
    p.add_argument("--toggle", type=int, metavar="ID")
    p.add_argument("--delete", type=int, metavar="ID")

    p = sub.add_parser("reset", help="Run the daily habit reset check")
    p.add_argument("--force", action="store_true")

    p = sub.add_parser("storage", help="Show or clear local data")
    p.add_argument("--clear", action="store_true", help="delete habits, routes, snapshot and reset cursor")

    p = sub.add_parser("replay", help="Record a route from a JSON track file")
    p.add_argument("track")
    p.add_argument("--step-seconds", type=float, default=5.0, help="spacing for points without a time")
    p.add_argument("--dry-run", action="store_true")

    args = ap.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.WARNING)

    console = Console()
    handlers = {
        "history": _cmd_history,
        "habits": _cmd_habits,
        "reset": _cmd_reset,
        "replay": _cmd_replay,
        "storage": _cmd_storage,
    }
    try:
        handlers[args.command](args, console)
    except HabitumapError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
