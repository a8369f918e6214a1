from __future__ import annotations

from threading import Event

import pytest

from quiz_taker.core.services.countdown_timer import CountdownTimer, ThreadTickScheduler


def _recording_timer(schedulers):
    ticks: list[int] = []
    expirations: list[bool] = []
    timer = CountdownTimer(
        on_tick=ticks.append,
        on_expired=lambda: expirations.append(True),
        scheduler_factory=schedulers,
    )
    return timer, ticks, expirations


def test_runs_n_ticks_then_expires_once(schedulers):
    timer, ticks, expirations = _recording_timer(schedulers)

    timer.start(5)
    schedulers.latest.advance(10)

    assert ticks == [4, 3, 2, 1, 0]
    assert expirations == [True]
    assert timer.is_running() is False
    assert schedulers.latest.stopped


def test_cancel_suppresses_further_events(schedulers):
    timer, ticks, expirations = _recording_timer(schedulers)

    timer.start(5)
    schedulers.latest.advance(2)
    timer.cancel()
    fired_after_cancel = schedulers.latest.callback()

    assert fired_after_cancel is False
    assert ticks == [4, 3]
    assert expirations == []
    assert timer.remaining_seconds == 3


def test_cancel_is_idempotent(schedulers):
    timer, _, _ = _recording_timer(schedulers)

    timer.cancel()
    timer.start(3)
    timer.cancel()
    timer.cancel()

    assert timer.is_running() is False


def test_restart_discards_previous_run(schedulers):
    timer, ticks, expirations = _recording_timer(schedulers)

    timer.start(3)
    first = schedulers.latest
    first.advance(1)
    timer.start(2)

    assert first.stopped
    assert first.callback() is False
    schedulers.latest.advance(5)
    assert ticks == [2, 1, 0]
    assert expirations == [True]


@pytest.mark.parametrize("duration", [0, -5, 1.5])
def test_rejects_non_positive_or_fractional_durations(schedulers, duration):
    timer, _, _ = _recording_timer(schedulers)

    with pytest.raises(ValueError):
        timer.start(duration)


def test_thread_scheduler_drives_timer_to_expiry():
    expired = Event()
    ticks: list[int] = []
    timer = CountdownTimer(
        on_tick=ticks.append,
        on_expired=expired.set,
        scheduler_factory=lambda callback: ThreadTickScheduler(callback, interval_seconds=0.01),
    )

    timer.start(3)

    assert expired.wait(timeout=2.0)
    assert ticks == [2, 1, 0]
    timer.cancel()
