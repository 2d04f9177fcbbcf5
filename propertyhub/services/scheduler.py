import asyncio
import time
from logging import Logger
from typing import Awaitable, Callable, Optional

import pytz
from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, EVENT_JOB_MAX_INSTANCES, JobExecutionEvent
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from propertyhub.core.config import config
from propertyhub.core.database import DatabaseClient
from propertyhub.services.maintenance import refresh_listing_aggregates

JOB_ID = "refresh_listing_aggregates"
COOLDOWN_SECONDS = 60


async def run_refresh_job(logger: Logger, database_url: Optional[str] = None) -> Optional[dict]:
    """One maintenance pass on its own engine. Failures are logged, never raised."""
    started = time.time()
    db_client = DatabaseClient(url=database_url or config.database.url, logger=logger)

    try:
        summary = await refresh_listing_aggregates(db_client, logger)
    except Exception as e:
        logger.error(f"Scheduled refresh failed: {e}", exc_info=True)
        return None
    finally:
        await db_client.cleanup()

    logger.info(f"Refresh completed in {time.time() - started:.2f} seconds")
    return summary


class RefreshJob:
    """Scheduled entry point that keeps a minimum gap between consecutive refreshes."""

    def __init__(
            self,
            logger: Logger,
            cooldown: float = COOLDOWN_SECONDS,
            clock: Callable[[], float] = time.monotonic,
            sleep: Callable[[float], Awaitable] = asyncio.sleep,
    ):
        self.logger = logger
        self.cooldown = cooldown
        self.clock = clock
        self.sleep = sleep
        self.finished_at: Optional[float] = None

    def remaining_cooldown(self) -> float:
        if self.finished_at is None:
            return 0.0
        return max(0.0, self.cooldown - (self.clock() - self.finished_at))

    async def run(self) -> Optional[dict]:
        wait = self.remaining_cooldown()
        if wait > 0:
            self.logger.info(f"Cooldown active, waiting {wait:.1f}s before refreshing")
            await self.sleep(wait)

        try:
            return await run_refresh_job(self.logger)
        finally:
            self.finished_at = self.clock()


def create_scheduler(logger: Logger, job: Optional[RefreshJob] = None) -> AsyncIOScheduler:
    s_logger = logger.getChild("scheduler")
    scheduler = AsyncIOScheduler()

    def on_job_event(event: JobExecutionEvent):
        if event.code == EVENT_JOB_ERROR:
            s_logger.error(f"Scheduled job failed: {event.exception}", exc_info=True)
        elif event.code == EVENT_JOB_MAX_INSTANCES:
            s_logger.warning("Refresh still running, interval skipped")
        else:
            scheduled = scheduler.get_job(event.job_id)
            if scheduled and scheduled.next_run_time:
                s_logger.info(f"Next refresh at: {scheduled.next_run_time:%Y-%m-%d %H:%M:%S %Z}")

    scheduler.add_listener(on_job_event, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR | EVENT_JOB_MAX_INSTANCES)

    scheduler.add_job(
        (job or RefreshJob(s_logger)).run,
        "interval",
        minutes=config.scheduler.interval_minutes,
        timezone=pytz.timezone(config.scheduler.timezone),
        max_instances=1,
        id=JOB_ID,
    )

    return scheduler


async def start_scheduler(logger: Logger) -> None:
    s_logger = logger.getChild("scheduler")
    scheduler = create_scheduler(logger)
    scheduler.start()

    s_logger.info(f"Scheduler started, first refresh at: {scheduler.get_job(JOB_ID).next_run_time:%Y-%m-%d %H:%M:%S %Z}")

    try:
        await asyncio.Event().wait()
    except (KeyboardInterrupt, SystemExit, asyncio.CancelledError):
        s_logger.info("Scheduler shutting down")
        scheduler.shutdown()
        raise
