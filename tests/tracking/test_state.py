import pytest

from pacer.models import RunConfig
from pacer.tracking.state import RunSession, RunSnapshot, RunState


def test_elapsed_excludes_pauses():
    session = RunSession(config=RunConfig.free(), started_at_millis=0)

    assert session.elapsed_seconds(3_000) == 3
    session.current_pause_started_at_millis = 3_000
    assert session.elapsed_seconds(8_000) == 3
    session.current_pause_started_at_millis = None
    session.paused_accumulated_millis = 5_000
    assert session.elapsed_seconds(10_000) == 5
    assert session.elapsed_millis(10_999) == 5_999


def test_elapsed_never_negative():
    session = RunSession(config=RunConfig.free(), started_at_millis=10_000)
    assert session.elapsed_millis(5_000) == 0


def test_distance_recomputed_on_append(sample_factory):
    session = RunSession(config=RunConfig.free(), started_at_millis=0)
    assert session.cumulative_distance_miles == 0

    session.append(sample_factory.track(0, 0.5))
    session.append([sample_factory.north(0.25)])

    # Out half a mile and a quarter back.
    assert session.cumulative_distance_miles == pytest.approx(0.75)
    assert len(session.samples) == 3


def test_sessions_get_unique_ids():
    a = RunSession(config=RunConfig.free(), started_at_millis=0)
    b = RunSession(config=RunConfig.free(), started_at_millis=0)
    assert a.id != b.id


def test_snapshot_is_paused():
    assert RunSnapshot(state=RunState.PAUSED).is_paused
    assert not RunSnapshot(state=RunState.ACTIVE).is_paused
