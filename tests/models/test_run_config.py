import pytest
from pydantic import ValidationError

from pacer.models import RunConfig, LocationSample, StoredRun
from pacer.models.run import RunKindFromCode


def test_constructors():
    assert RunConfig.timed(600).target_seconds == 600
    assert RunConfig.distance(3.1).target_miles == 3.1
    free = RunConfig.free()
    assert free.target_seconds is None and free.target_miles is None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"kind": "timed"},
        {"kind": "timed", "target_seconds": 600, "target_miles": 1.0},
        {"kind": "distance"},
        {"kind": "distance", "target_miles": 1.0, "target_seconds": 600},
        {"kind": "free", "target_seconds": 600},
        {"kind": "free", "target_miles": 1.0},
        {"kind": "timed", "target_seconds": 0},
        {"kind": "distance", "target_miles": -1.0},
        {"kind": "sprint"},
    ],
)
def test_invalid_configs_are_rejected(kwargs):
    with pytest.raises(ValidationError):
        RunConfig(**kwargs)


def test_config_is_immutable():
    config = RunConfig.timed(600)
    with pytest.raises(ValidationError):
        config.target_seconds = 1200


@pytest.mark.parametrize(
    "config, code, label",
    [
        (RunConfig.timed(600), "T", "Timed Run"),
        (RunConfig.distance(2.0), "D", "Distance Run"),
        (RunConfig.free(), "F", "Free Run"),
    ],
)
def test_codes_and_labels(config, code, label):
    assert config.code == code
    assert config.label == label
    assert RunKindFromCode[code] == config.kind


@pytest.mark.parametrize(
    "latitude, longitude", [(91, 0), (-91, 0), (0, 181), (0, -181)]
)
def test_sample_coordinates_are_bounded(latitude, longitude):
    with pytest.raises(ValidationError):
        LocationSample(latitude=latitude, longitude=longitude, timestamp_millis=0)


def test_completed_run_last_sample(completed_run_factory, sample_factory):
    assert completed_run_factory.make().last_sample is None
    samples = tuple(sample_factory.track(0, 0.5))
    run = completed_run_factory.make(update={"samples": samples})
    assert run.last_sample == samples[-1]


def test_stored_run_elapsed_includes_pauses(stored_run_factory):
    run: StoredRun = stored_run_factory.make(update={"duration_seconds": 1500})
    # 30 minutes on the clock, 25 of them moving.
    assert run.elapsed_seconds == 1800
    assert run.duration_seconds == 1500
