"""Tests for the cron-based sync scheduler."""

from datetime import UTC, datetime

import pytest

from pronohub.consumers import scheduler as scheduler_module
from pronohub.consumers.scheduler import (
    ScheduledJob,
    SyncScheduler,
    daily_cron_expression,
    realtime_cron_expression,
)


class TestCronExpressions:
    def test_daily(self):
        assert daily_cron_expression("06:00") == "0 6 * * *"
        assert daily_cron_expression("23:45") == "45 23 * * *"
        assert daily_cron_expression("7") == "0 7 * * *"

    def test_realtime(self):
        assert realtime_cron_expression(2) == "*/2 * * * *"
        assert realtime_cron_expression(0) == "*/1 * * * *"

    def test_next_run(self):
        job = ScheduledJob("daily_sync", "30 6 * * *", dict)
        next_run = job.schedule_next(datetime(2025, 3, 15, 7, 0, tzinfo=UTC))
        assert next_run == datetime(2025, 3, 16, 6, 30, tzinfo=UTC)
        assert job.to_dict()["next_run"] == "2025-03-16T06:30:00+00:00"


class TestSyncScheduler:
    def test_nothing_enabled(self, db_factory):
        scheduler = SyncScheduler(db_factory, daily_cron=None, realtime_cron=None)
        assert scheduler.start() is False
        assert scheduler.is_running is False

    def test_invalid_cron_rejected(self, db_factory):
        scheduler = SyncScheduler(db_factory, daily_cron="not a cron")
        assert scheduler.start() is False

    def test_start_and_stop(self, db_factory):
        scheduler = SyncScheduler(db_factory, daily_cron="0 6 * * *", realtime_cron="*/2 * * * *")
        assert [j.name for j in scheduler.jobs] == ["daily_sync", "realtime"]
        try:
            assert scheduler.start() is True
            assert scheduler.is_running is True
            assert scheduler.start() is False
        finally:
            assert scheduler.stop(timeout=5) is True
        assert scheduler.is_running is False

    def test_run_once_survives_task_failure(self, db_factory, monkeypatch):
        scheduler = SyncScheduler(db_factory)

        def boom():
            raise RuntimeError("provider exploded")

        monkeypatch.setattr(scheduler.jobs[0], "task", boom)

        outcome = scheduler.run_once("daily_sync")

        assert outcome == {"success": False, "error": "provider exploded"}
        assert scheduler.jobs[0].last_run is not None

    def test_run_once_unknown_job(self, db_factory):
        with pytest.raises(ValueError):
            SyncScheduler(db_factory).run_once("weekly")


class TestModuleScheduler:
    def test_disabled_in_settings(self, db_factory):
        from pronohub.database.settings import update_daily_sync_settings

        with db_factory() as conn:
            update_daily_sync_settings(conn, enabled=False)

        assert scheduler_module.start_scheduler(db_factory) is False
        assert scheduler_module.get_scheduler_status() == {"running": False, "jobs": []}
        assert scheduler_module.stop_scheduler() is True
