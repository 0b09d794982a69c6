"""Unit tests for Job and JobOptions."""

from datetime import timedelta

import pytest

from infrastructure.queue import Job, JobOptions, JobState
from tests.factories.notifications import START


def _job(**kwargs):
    kwargs.setdefault("available_at", START)
    kwargs.setdefault("created_at", START)
    return Job(id="j1", queue_name="notifications", data={}, **kwargs)


@pytest.mark.unit
class TestJobOptions:
    @pytest.mark.parametrize(
        "kwargs",
        [{"attempts": 0}, {"delay_ms": -1}, {"backoff_delay_ms": -5}],
    )
    def test_invalid_options(self, kwargs):
        with pytest.raises(ValueError):
            JobOptions(**kwargs)


@pytest.mark.unit
class TestJob:
    def test_is_final_attempt(self):
        assert not _job(max_attempts=3, attempts_made=1).is_final_attempt
        assert _job(max_attempts=3, attempts_made=2).is_final_attempt
        assert _job(max_attempts=1).is_final_attempt

    def test_backoff_doubles(self):
        job = _job(backoff_delay_ms=1000)

        assert job.backoff_for_attempt(0) == timedelta(0)
        assert job.backoff_for_attempt(1) == timedelta(seconds=1)
        assert job.backoff_for_attempt(2) == timedelta(seconds=2)
        assert job.backoff_for_attempt(3) == timedelta(seconds=4)

    def test_no_backoff_configured(self):
        assert _job().backoff_for_attempt(3) == timedelta(0)

    def test_ordering_key_lifo(self):
        assert _job(priority=5, seq=7).ordering_key == (5, 7)
        assert _job(priority=1, seq=7, lifo=True).ordering_key == (1, -7)

    def test_claimable_states(self):
        waiting = _job(available_at=START + timedelta(seconds=10))
        assert not waiting.is_claimable(START)
        assert waiting.is_delayed(START)
        assert waiting.is_claimable(START + timedelta(seconds=10))

        active = _job(state=JobState.ACTIVE, claim_expires_at=START + timedelta(seconds=30))
        assert not active.is_claimable(START)
        assert active.is_claimable(START + timedelta(seconds=30))

        assert not _job(state=JobState.COMPLETED).is_claimable(START)
