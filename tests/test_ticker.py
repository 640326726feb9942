import threading
from datetime import datetime, timedelta, timezone

from app.services.ticker import IntervalTicker, ManualTicker

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def test_interval_ticker_calls_back_until_stopped():
    calls = []
    ticked = threading.Event()

    def callback(now, cancel):
        calls.append((now, cancel.is_set()))
        ticked.set()

    ticker = IntervalTicker(timedelta(milliseconds=10), callback, clock=lambda: T0)
    ticker.start()
    assert ticked.wait(timeout=2)
    ticker.stop(timeout=2)

    assert not ticker.running
    assert calls
    assert calls[0] == (T0, False)

    count = len(calls)
    ticked.clear()
    assert not ticked.wait(timeout=0.05)
    assert len(calls) == count


def test_interval_ticker_survives_failing_tick():
    calls = []
    second = threading.Event()

    def callback(now, cancel):
        calls.append(now)
        if len(calls) == 1:
            raise RuntimeError("boom")
        second.set()

    ticker = IntervalTicker(timedelta(milliseconds=10), callback, clock=lambda: T0)
    ticker.start()
    try:
        assert second.wait(timeout=2)
    finally:
        ticker.stop(timeout=2)


def test_interval_ticker_fire_runs_immediately():
    ticker = IntervalTicker(timedelta(hours=1), lambda now, cancel: ("ran", now), clock=lambda: T0)

    assert ticker.fire() == ("ran", T0)
    assert not ticker.running


def test_stop_sets_cancel_event_seen_by_callback():
    seen = {}
    entered = threading.Event()

    def callback(now, cancel):
        entered.set()
        seen["cancelled"] = cancel.wait(timeout=2)

    ticker = IntervalTicker(timedelta(milliseconds=10), callback, clock=lambda: T0)
    ticker.start()
    assert entered.wait(timeout=2)
    ticker.stop(timeout=3)

    assert seen["cancelled"] is True


def test_manual_ticker_advances_clock():
    seen = []
    ticker = ManualTicker(lambda now, cancel: seen.append(now) or len(seen), now=T0)

    ticker.start()
    ticker.fire()
    ticker.advance(timedelta(hours=1))
    ticker.advance(timedelta(minutes=5))

    assert seen == [T0, T0 + timedelta(hours=1), T0 + timedelta(hours=1, minutes=5)]
    assert ticker.results == [1, 2, 3]


def test_manual_ticker_stop_signals_cancel():
    flags = []
    ticker = ManualTicker(lambda now, cancel: flags.append(cancel.is_set()), now=T0)

    ticker.fire()
    ticker.stop()
    ticker.fire()

    assert flags == [False, True]
