import asyncio
from pathlib import Path

from sqlalchemy.engine import make_url

from propertyhub.core.config import config
from propertyhub.core.database import DatabaseClient
from propertyhub.core.logger import AppLogger
from propertyhub.services.maintenance import refresh_listing_aggregates
from propertyhub.services.scheduler import start_scheduler


async def main():

    logger = AppLogger(name="app").get_logger()
    logger.info("Starting application")

    try:
        # Ensure the SQLite directory exists
        database = make_url(config.database.url).database
        if config.database.url.startswith("sqlite") and database:
            db_path = Path(database)
            db_path.parent.mkdir(parents=True, exist_ok=True)
            logger.info(f"Database directory ready: {db_path.parent}")

        db_client = DatabaseClient(url=config.database.url, logger=logger)

        # Create tables if they don't exist
        await db_client.create_models()
        logger.info("Database initialized successfully")

        logger.info("Refreshing listing aggregates ...")
        await refresh_listing_aggregates(db_client, logger)

        # Close the connection
        await db_client.cleanup()

        if config.scheduler.enabled:
            logger.info("Starting scheduler ...")
            await start_scheduler(logger)
        else:
            logger.info("Scheduler disabled, exiting after initial refresh")

    except Exception as e:
        logger.error(f"Application failure: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    asyncio.run(main())
