"""Entry point — runs one on-chain discovery cycle.

Scheduling (how often this runs) belongs to the external job scheduler.
"""

import asyncio

from loguru import logger

from config.settings import settings
from src.db.database import async_session_factory, close_db, init_db
from src.parsers.worker import create_worker
from src.utils.logger import setup_logger


async def main() -> None:
    setup_logger(level="INFO")
    logger.info("Starting pair discovery cycle...")

    await init_db()
    worker = create_worker(settings, async_session_factory)
    try:
        reports = await worker.monitor_new_launches()
    finally:
        await worker.close()
        await close_db()

    for report in reports:
        if report.ok:
            logger.info(
                f"[{report.network.value.upper()}] scanned={report.scanned} "
                f"admitted={report.admitted} inserted={report.inserted}"
            )
        else:
            logger.warning(f"[{report.network.value.upper()}] failed: {report.error}")
    logger.info("Discovery cycle complete")


if __name__ == "__main__":
    asyncio.run(main())
