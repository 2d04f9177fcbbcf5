from datetime import timedelta

import pytest
from conftest import make_listing, seed
from sqlalchemy import select

from propertyhub.core.config import DatabaseConfig, config
from propertyhub.core.models import Location
from propertyhub.services import scheduler as scheduler_module
from propertyhub.services.scheduler import RefreshJob, create_scheduler, run_refresh_job


def test_refresh_job_is_registered_once(logger):
    scheduler = create_scheduler(logger)

    jobs = scheduler.get_jobs()

    assert [job.id for job in jobs] == ["refresh_listing_aggregates"]
    assert jobs[0].max_instances == 1
    assert jobs[0].trigger.interval == timedelta(minutes=config.scheduler.interval_minutes)


async def test_refresh_job_uses_configured_database(db_client, logger, monkeypatch):
    await seed(db_client, make_listing(), Location(id="31", name="DKI Jakarta", type="provinsi"))
    monkeypatch.setattr(config, "database", DatabaseConfig(url=db_client.url))

    await run_refresh_job(logger)

    async with db_client.session() as session:
        assert await session.scalar(select(Location.property_count).where(Location.id == "31")) == 1


async def test_refresh_job_logs_failures(tmp_path, logger, monkeypatch, caplog):
    monkeypatch.setattr(config, "database", DatabaseConfig(url=f"sqlite+aiosqlite:///{tmp_path / 'none.sqlite'}"))

    await run_refresh_job(logger)

    assert "Scheduled refresh failed" in caplog.text


async def test_refresh_job_waits_out_cooldown(logger, monkeypatch):
    now = [1000.0]
    sleeps = []
    runs = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)
        now[0] += seconds

    async def fake_refresh(job_logger):
        runs.append(now[0])
        return {"promoted": 0}

    monkeypatch.setattr(scheduler_module, "run_refresh_job", fake_refresh)
    job = RefreshJob(logger, cooldown=60, clock=lambda: now[0], sleep=fake_sleep)

    assert await job.run() == {"promoted": 0}
    now[0] += 15
    await job.run()
    now[0] += 120
    await job.run()

    assert sleeps == [45]
    assert runs == [1000.0, 1060.0, 1180.0]


async def test_refresh_job_cooldown_starts_after_failure(logger, monkeypatch):
    async def failing_refresh(job_logger):
        raise RuntimeError("boom")

    monkeypatch.setattr(scheduler_module, "run_refresh_job", failing_refresh)
    job = RefreshJob(logger, cooldown=60, clock=lambda: 500.0)

    with pytest.raises(RuntimeError):
        await job.run()

    assert job.finished_at == 500.0
    assert job.remaining_cooldown() == 60


def test_scheduler_runs_the_given_job(logger):
    job = RefreshJob(logger)

    scheduled = create_scheduler(logger, job=job).get_job("refresh_listing_aggregates")

    assert scheduled.func == job.run
