from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from habitumap.core.models import GeoPoint, Habit, ResetCountdown, Route


def test_capture_assigns_unique_ids():
    a = GeoPoint.capture(1.0, 2.0)
    b = GeoPoint.capture(1.0, 2.0)
    assert a.id != b.id
    assert a.timestamp.tzinfo is not None


def test_naive_timestamp_gets_local_zone():
    naive = datetime(2024, 1, 1, 8, 0, 1)
    p = GeoPoint.capture(1.0, 2.0, at=naive)
    assert p.timestamp.tzinfo is not None
    assert p.timestamp.replace(tzinfo=None) == naive
    # comparable with an aware capture time
    (p.timestamp - GeoPoint.capture(1.0, 2.0).timestamp).total_seconds()


@pytest.mark.parametrize("lat,lon", [(90.1, 0.0), (-90.1, 0.0), (0.0, 180.5), (0.0, -181.0)])
def test_out_of_range_coordinates_rejected(lat, lon):
    with pytest.raises(ValidationError):
        GeoPoint.capture(lat, lon)


def test_bounds_are_inclusive():
    GeoPoint.capture(90.0, 180.0)
    GeoPoint.capture(-90.0, -180.0)


def test_geopoint_is_immutable():
    p = GeoPoint.capture(1.0, 2.0)
    with pytest.raises(ValidationError):
        p.latitude = 3.0


def test_is_annotation():
    assert not GeoPoint.capture(1.0, 2.0).is_annotation
    assert GeoPoint.capture(1.0, 2.0, note="view").is_annotation
    assert GeoPoint.capture(1.0, 2.0, photo_reference="photos/1.jpg").is_annotation


def test_route_splits_path_and_notes():
    samples = [GeoPoint.capture(0.0, 0.0), GeoPoint.capture(0.001, 0.0)]
    note = GeoPoint.capture(0.0005, 0.0, note="bridge")
    route = Route(
        id="r1",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        date_label="2024-01-01",
        duration_label="0h 5m",
        distance_km=0.1112,
        point_count=1,
        sample_count=2,
        coordinates=samples + [note],
    )
    assert route.path_points == samples
    assert route.note_points == [note]
    assert route.distance_label == "0.11 km"


def test_habit_name_is_stripped_and_required():
    assert Habit(id=1, name="  Read  ").name == "Read"
    with pytest.raises(ValidationError):
        Habit(id=1, name="   ")


def test_countdown_label():
    assert ResetCountdown(hours=3, minutes=4, seconds=5).label == "3h 4m 5s"
