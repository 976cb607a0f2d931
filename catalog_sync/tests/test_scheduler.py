"""Tests for the periodic scheduler."""

import signal
import threading

import pytest

from catalog_sync.errors import UpstreamFailure
from catalog_sync.scheduler import SyncScheduler


class TestSingleFlight:

    def test_overlapping_trigger_is_skipped(self):
        started = threading.Event()
        release = threading.Event()
        calls = []

        def slow_job():
            calls.append(1)
            started.set()
            release.wait(5)

        scheduler = SyncScheduler(slow_job, interval_minutes=1)
        worker = threading.Thread(target=scheduler.run_once)
        worker.start()
        assert started.wait(5)

        assert scheduler.running
        assert scheduler.run_once() is False
        assert scheduler.skipped == 1

        release.set()
        worker.join(5)
        assert calls == [1]
        assert not scheduler.running
        assert scheduler.run_once() is True

    def test_failed_run_does_not_stop_schedule(self):
        def failing_job():
            raise UpstreamFailure("Dropbox unavailable")

        scheduler = SyncScheduler(failing_job, interval_minutes=1)

        assert scheduler.run_once() is True
        assert scheduler.failures == 1
        assert not scheduler.running

    def test_unexpected_errors_propagate(self):
        def broken_job():
            raise KeyError("bug")

        scheduler = SyncScheduler(broken_job, interval_minutes=1)
        with pytest.raises(KeyError):
            scheduler.run_once()
        assert not scheduler.running


class TestRunForever:

    def test_max_runs(self):
        calls = []
        scheduler = SyncScheduler(lambda: calls.append(1), interval_minutes=0.0001)
        scheduler.run_forever(max_runs=3)
        assert len(calls) == 3

    def test_stop_from_job(self):
        calls = []
        scheduler = SyncScheduler(lambda: (calls.append(1), scheduler.stop()), interval_minutes=60)
        scheduler.run_forever()
        assert calls == [1]
        assert scheduler.stop_requested

    def test_signal_handlers_restored(self):
        original = signal.getsignal(signal.SIGTERM)
        scheduler = SyncScheduler(lambda: None, interval_minutes=60)
        scheduler.run_forever(max_runs=1)
        assert signal.getsignal(signal.SIGTERM) == original

    def test_signal_requests_stop(self):
        scheduler = SyncScheduler(lambda: None, interval_minutes=60).install()
        try:
            scheduler._handle_signal(signal.SIGTERM, None)
            assert scheduler.stop_requested
        finally:
            scheduler.uninstall()

    def test_invalid_interval(self):
        with pytest.raises(ValueError):
            SyncScheduler(lambda: None, interval_minutes=0)
