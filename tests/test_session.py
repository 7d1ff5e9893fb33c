"""
Tracking Session Tests
======================
"""

import pytest

from habitumap.core.distance import haversine_km, route_distance_km
from habitumap.core.session import SessionState, TrackingSession, format_duration
from habitumap.errors import (
    AlreadyTracking,
    CapabilityDenied,
    LocationUnavailable,
    NotTracking,
    PreconditionViolation,
)
from habitumap.providers.push import PushLocationProvider
from habitumap.providers.replay import ReplayLocationProvider
from conftest import make_point


@pytest.fixture
def provider():
    return PushLocationProvider()


@pytest.fixture
def session(provider, clock):
    return TrackingSession(provider, clock=clock)


class TestLifecycle:
    def test_starts_idle(self, session):
        assert session.state is SessionState.IDLE
        assert not session.is_active
        assert session.cumulative_distance_km == 0.0

    def test_start_activates_and_subscribes(self, session, provider, clock):
        session.start()
        assert session.is_active
        assert session.started_at == clock.now
        assert provider.subscriber_count == 1

    def test_start_denied_stays_idle(self, provider, clock):
        provider.granted = False
        session = TrackingSession(provider, clock=clock)
        with pytest.raises(CapabilityDenied):
            session.start()
        assert session.state is SessionState.IDLE
        assert provider.subscriber_count == 0

    def test_second_start_rejected(self, session, provider):
        session.start()
        with pytest.raises(AlreadyTracking):
            session.start()
        assert provider.subscriber_count == 1

    def test_stop_releases_subscription(self, session, provider):
        session.start()
        session.stop()
        assert provider.subscriber_count == 0
        assert session.state is SessionState.IDLE

    def test_stop_twice_rejected(self, session):
        session.start()
        session.stop()
        with pytest.raises(NotTracking):
            session.stop()


class TestSamples:
    def test_two_samples_distance(self, session):
        p1, p2 = make_point(0.0, 0.0), make_point(0.01, 0.0)
        session.start()
        session.append_sample(p1)
        session.append_sample(p2)
        assert session.cumulative_distance_km == haversine_km(p1, p2)

    def test_running_total_matches_full_recompute(self, session):
        pts = [make_point(-7.79 + i * 0.0013, 110.36 + (i % 3) * 0.0007) for i in range(25)]
        session.start()
        for p in pts:
            session.append_sample(p)
            assert session.cumulative_distance_km == route_distance_km(session.samples)

    def test_distance_never_decreases(self, session):
        session.start()
        last = 0.0
        for p in [make_point(0, 0), make_point(0.01, 0), make_point(0, 0), make_point(0, 0)]:
            session.append_sample(p)
            assert session.cumulative_distance_km >= last
            last = session.cumulative_distance_km

    def test_append_before_start_rejected_without_residue(self, session):
        with pytest.raises(NotTracking):
            session.append_sample(make_point(1.0, 1.0))
        assert session.samples == []
        assert session.cumulative_distance_km == 0.0
        assert not session.is_active

    def test_not_tracking_is_precondition_violation(self, session):
        with pytest.raises(PreconditionViolation):
            session.append_annotation(make_point(1.0, 1.0, note="x"))

    def test_provider_delivery_reaches_session(self, session, provider):
        session.start()
        provider.deliver(make_point(0.0, 0.0))
        provider.deliver(make_point(0.0, 0.01))
        assert len(session.samples) == 2
        assert session.cumulative_distance_km > 1.0

    def test_delivery_after_stop_is_ignored(self, session, provider):
        session.start()
        session.stop()
        provider.deliver(make_point(0.0, 0.0))
        assert session.samples == []

    def test_start_clears_previous_recording(self, session):
        session.start()
        session.append_sample(make_point(0.0, 0.0))
        session.append_sample(make_point(0.01, 0.0))
        session.stop()
        session.start()
        assert session.samples == []
        assert session.annotations == []
        assert session.cumulative_distance_km == 0.0


class TestAnnotations:
    def test_annotation_does_not_change_distance(self, session):
        session.start()
        session.append_sample(make_point(0.0, 0.0))
        session.append_annotation(make_point(5.0, 5.0, note="far away"))
        assert session.cumulative_distance_km == 0.0
        assert session.point_count == 1

    def test_annotate_current_uses_last_fix(self, session, provider):
        session.start()
        provider.deliver(make_point(-7.7956, 110.3695))
        point = session.annotate_current(note="warung", photo_reference="p/1.jpg")
        assert (point.latitude, point.longitude) == (-7.7956, 110.3695)
        assert session.annotations == [point]

    def test_annotate_current_without_fix(self, session):
        session.start()
        with pytest.raises(LocationUnavailable):
            session.annotate_current(note="nothing yet")


class TestStop:
    def test_route_snapshot(self, session, clock):
        p1, p2 = make_point(0.0, 0.0), make_point(0.01, 0.0)
        note = make_point(0.005, 0.0, note="bench")
        session.start()
        session.append_sample(p1)
        session.append_annotation(note)
        session.append_sample(p2)
        clock.advance(hours=1, minutes=2, seconds=59)
        route = session.stop()

        assert route.coordinates == [p1, p2, note]
        assert route.distance_km == haversine_km(p1, p2)
        assert route.duration_label == "1h 2m"
        assert route.duration_seconds == 3779
        assert route.point_count == 1
        assert route.sample_count == 2
        assert route.date_label == "2024-01-01"

    def test_stop_without_samples(self, session):
        session.start()
        session.append_annotation(make_point(1.0, 1.0, note="a"))
        session.append_annotation(make_point(1.0, 1.0, note="b"))
        route = session.stop()
        assert route.distance_km == 0
        assert route.point_count == 2

    def test_state_cleared_after_stop(self, session):
        session.start()
        session.append_sample(make_point(0.0, 0.0))
        session.stop()
        assert session.samples == []
        assert session.started_at is None
        assert session.duration_label() == "0h 0m"


class TestSnapshot:
    def test_snapshot_written_and_cleared(self, provider, clock, repo):
        session = TrackingSession(provider, repository=repo, clock=clock)
        session.start()
        session.append_sample(make_point(0.0, 0.0))
        snap = repo.get_current_tracking()
        assert snap is not None
        assert len(snap.samples) == 1
        session.stop()
        # kept until the stopped route is stored
        assert repo.get_current_tracking() is not None
        session.discard_snapshot()
        assert repo.get_current_tracking() is None

    def test_discard_snapshot_refused_while_recording(self, provider, clock, repo):
        session = TrackingSession(provider, repository=repo, clock=clock)
        session.start()
        with pytest.raises(AlreadyTracking):
            session.discard_snapshot()
        assert repo.get_current_tracking() is not None

    def test_resume_recomputes_distance(self, clock, repo):
        pts = [make_point(0.0, 0.0), make_point(0.01, 0.0), make_point(0.01, 0.01)]
        first = TrackingSession(PushLocationProvider(), repository=repo, clock=clock)
        first.start()
        for p in pts:
            first.append_sample(p)
        snapshot = repo.get_current_tracking()

        restarted = TrackingSession(PushLocationProvider(), repository=repo, clock=clock)
        restarted.resume(snapshot)
        assert restarted.is_active
        assert restarted.started_at == first.started_at
        assert restarted.cumulative_distance_km == route_distance_km(pts)

    def test_snapshot_failure_does_not_break_tracking(self, provider, clock, flaky_store):
        from habitumap.storage.repository import LocalRepository

        flaky_store.fail_writes = True
        session = TrackingSession(provider, repository=LocalRepository(flaky_store), clock=clock)
        session.start()
        session.append_sample(make_point(0.0, 0.0))
        assert len(session.samples) == 1


def test_replay_provider_drives_session(clock):
    pts = [make_point(0.0, 0.0), make_point(0.01, 0.0), make_point(0.02, 0.0)]
    provider = ReplayLocationProvider(pts)
    session = TrackingSession(provider, clock=clock)
    session.start()
    assert provider.replay() == 3
    assert session.cumulative_distance_km == route_distance_km(pts)


@pytest.mark.parametrize(
    "seconds,label",
    [(0, "0h 0m"), (59, "0h 0m"), (60, "0h 1m"), (3599, "0h 59m"), (3600, "1h 0m"), (7325.9, "2h 2m"), (-5, "0h 0m")],
)
def test_format_duration_truncates(seconds, label):
    assert format_duration(seconds) == label
