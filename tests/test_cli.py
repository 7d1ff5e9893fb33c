"""Command-line entry points, run against an in-memory store."""

import json

import pytest

from habitumap.cli import _read_track, main, replay_track
from habitumap.storage.kv import MemoryStore, set_store
from habitumap.storage.repository import LocalRepository

from conftest import make_point


@pytest.fixture
def cli_store():
    store = MemoryStore()
    set_store(store)
    yield store
    set_store(None)


@pytest.fixture
def track_file(tmp_path):
    rows = [
        {"lat": 0.0, "lon": 0.0, "time": "2024-03-05T07:00:00+07:00"},
        {"lat": 0.0, "lon": 0.01, "time": "2024-03-05T07:05:00+07:00"},
        {"lat": 0.0, "lon": 0.01, "time": "2024-03-05T07:06:00+07:00", "note": "Sunrise"},
        {"lat": 0.0, "lon": 0.02, "time": "2024-03-05T07:45:30+07:00"},
    ]
    path = tmp_path / "track.json"
    path.write_text(json.dumps(rows), encoding="utf-8")
    return path


def test_read_track_spaces_untimed_points(tmp_path):
    path = tmp_path / "t.json"
    path.write_text(json.dumps([{"lat": 1, "lon": 2}, {"lat": 1, "lon": 3}]), encoding="utf-8")
    points = _read_track(path, step_s=10)
    assert (points[1].timestamp - points[0].timestamp).total_seconds() == 10
    assert points[0].timestamp.tzinfo is not None


def test_replay_track_builds_route(track_file):
    route = replay_track(_read_track(track_file, 5.0))
    assert route.sample_count == 3
    assert route.point_count == 1
    assert route.note_points[0].note == "Sunrise"
    assert route.distance_km == pytest.approx(2.224, abs=0.001)
    assert route.duration_label == "0h 45m"
    assert route.date_label == "2024-03-05"


def test_replay_track_stores_route_then_drops_snapshot():
    repo = LocalRepository(MemoryStore())
    route = replay_track([make_point(0.0, 0.0), make_point(0.0, 0.001)], repo)
    assert [r.id for r in repo.get_routes()] == [route.id]
    assert repo.get_current_tracking() is None


def test_replay_command(track_file, cli_store):
    assert main(["replay", str(track_file)]) == 0
    routes = LocalRepository(cli_store).get_routes()
    assert len(routes) == 1
    assert routes[0].sample_count == 3


def test_replay_dry_run(track_file, cli_store):
    assert main(["replay", str(track_file), "--dry-run"]) == 0
    assert LocalRepository(cli_store).get_routes() == []


def test_habits_and_reset_commands(cli_store):
    assert main(["habits", "--add", "Stretch"]) == 0
    assert main(["habits", "--toggle", "1"]) == 0
    repo = LocalRepository(cli_store)
    assert repo.get_habits()[0].completed is True

    assert main(["reset"]) == 0
    assert repo.get_habits()[0].completed is False
    assert repo.get_habits()[0].streak == 1
    assert repo.get_last_reset_date() is not None


def test_domain_error_exits_nonzero(cli_store, capsys):
    assert main(["habits", "--toggle", "99"]) == 1
    assert "Error" in capsys.readouterr().out


def test_history_command(track_file, cli_store, capsys):
    main(["replay", str(track_file)])
    route_id = LocalRepository(cli_store).get_routes()[0].id
    assert main(["history"]) == 0
    assert "Total routes: 1" in capsys.readouterr().out
    assert main(["history", "--delete", route_id]) == 0
    assert LocalRepository(cli_store).get_routes() == []


def test_blank_habit_name_is_reported(cli_store, capsys):
    assert main(["habits", "--add", "   "]) == 1
    assert "Invalid habit name" in capsys.readouterr().out
    assert LocalRepository(cli_store).get_habits() == []


def test_storage_command(track_file, cli_store, capsys):
    main(["habits", "--add", "Stretch"])
    main(["replay", str(track_file)])
    capsys.readouterr()

    assert main(["storage"]) == 0
    assert "Local storage" in capsys.readouterr().out

    assert main(["storage", "--clear"]) == 0
    assert "All local data cleared" in capsys.readouterr().out
    repo = LocalRepository(cli_store)
    assert repo.get_routes() == []
    assert repo.get_habits() == []
