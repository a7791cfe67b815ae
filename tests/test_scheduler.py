"""Test the scheduler loop with a fake clock"""

from dataclasses import replace
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from conftest import SOURCE_URL, make_playlist

from playlist_archiver.core.exceptions import TransportError
from playlist_archiver.core.index import ArchiveIndex
from playlist_archiver.core.retry import RetryOptions, RetryPolicy
from playlist_archiver.core.schedule import build_trigger
from playlist_archiver.sync.scheduler import Scheduler, SchedulerState

UTC = ZoneInfo("UTC")


class FakeClock:
    """Clock that advances only when the scheduler sleeps"""

    def __init__(self, start):
        self.now = start
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += timedelta(seconds=seconds)


class FailingFetch:
    """fetch_playlist side effect that fails a number of times"""

    def __init__(self, fetcher, failures):
        self.fetcher = fetcher
        self.failures = failures
        self.original = fetcher.fetch_playlist

    def __call__(self, url):
        if self.failures > 0:
            self.failures -= 1
            raise TransportError("temporary failure")
        return self.original(url)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 3, 1, 12, 0, tzinfo=UTC))


class TestScheduler:
    """Test cycle scheduling and retries"""

    def test_run_on_start_then_waits_for_cron(self, context, fake_fetcher, clock):
        """Test the first cycle runs at once and the next at the cron time"""
        fake_fetcher.manifests = [make_playlist("a")]
        scheduler = Scheduler(
            context,
            ArchiveIndex(),
            trigger=build_trigger("0 4 * * *", "UTC"),
            clock=clock,
            sleep=clock.sleep,
        )

        scheduler.run(max_cycles=2)

        assert scheduler.cycles == 2
        assert clock.sleeps == [16 * 3600]
        assert clock.now == datetime(2024, 3, 2, 4, 0, tzinfo=UTC)
        assert scheduler.state is SchedulerState.IDLE

    def test_without_cron_waits_a_day(self, context, fake_fetcher, clock):
        """Test the default schedule is every 24 hours"""
        fake_fetcher.manifests = [make_playlist("a")]
        scheduler = Scheduler(context, ArchiveIndex(), clock=clock, sleep=clock.sleep)

        scheduler.run(max_cycles=3)

        assert clock.sleeps == [86400, 86400]

    def test_without_run_on_start_waits_first(self, context, fake_fetcher, clock, config):
        """Test run_on_start false sleeps before the first cycle"""
        fake_fetcher.manifests = [make_playlist("a")]
        context.config = replace(config, schedule=replace(config.schedule, run_on_start=False))
        scheduler = Scheduler(context, ArchiveIndex(), clock=clock, sleep=clock.sleep)

        scheduler.run(max_cycles=1)

        assert clock.sleeps == [86400]
        assert scheduler.cycles == 1

    def test_zero_cycles_does_nothing(self, context, fake_fetcher, clock):
        """Test max_cycles=0 returns without refreshing"""
        scheduler = Scheduler(context, ArchiveIndex(), clock=clock, sleep=clock.sleep)

        scheduler.run(max_cycles=0)

        assert scheduler.cycles == 0
        assert fake_fetcher.downloads == []

    def test_cycle_is_retried(self, context, fake_fetcher, clock):
        """Test a failing cycle is retried with the configured policy"""
        fake_fetcher.manifests = [make_playlist("a")]
        fake_fetcher.fetch_playlist = FailingFetch(fake_fetcher, failures=2)
        index = ArchiveIndex()
        scheduler = Scheduler(
            context,
            index,
            retry=RetryOptions(max_retries=3, policy=RetryPolicy.delay(30.0)),
            clock=clock,
            sleep=clock.sleep,
        )

        scheduler.run_cycle()

        assert clock.sleeps == [30.0, 30.0]
        assert [t.id for t in index.playlists[SOURCE_URL].entries] == ["a"]

    def test_retries_exhausted_propagates(self, context, fake_fetcher, clock):
        """Test the loop ends with the last error once retries are spent"""
        fake_fetcher.fail_fetch = TransportError("down for good")
        scheduler = Scheduler(
            context,
            ArchiveIndex(),
            retry=RetryOptions(max_retries=1, policy=RetryPolicy.immediate()),
            clock=clock,
            sleep=clock.sleep,
        )

        with pytest.raises(TransportError, match="down for good"):
            scheduler.run(max_cycles=5)

        assert scheduler.cycles == 0
        assert scheduler.state is SchedulerState.IDLE

    def test_hot_loop_warning(self, context, clock, caplog):
        """Test unlimited immediate retries are warned about"""
        with caplog.at_level("WARNING"):
            Scheduler(
                context,
                ArchiveIndex(),
                retry=RetryOptions(max_retries=None),
                clock=clock,
                sleep=clock.sleep,
            )

        assert any("tight loop" in record.getMessage() for record in caplog.records)

    def test_from_context_builds_trigger(self, context, clock):
        """Test the trigger comes from the schedule config"""
        scheduler = Scheduler.from_context(context, ArchiveIndex(), clock=clock)

        assert scheduler.trigger is None
        assert scheduler.next_wake() == clock.now + timedelta(hours=24)
