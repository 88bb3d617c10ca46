import logging
import os
import sys

from loguru import logger

# Third-party libraries that log through stdlib logging at DEBUG/INFO per request
NOISY_LOGGERS = ("web3", "httpx", "httpcore", "urllib3", "asyncio")


def setup_logger(
    *,
    json_logs: bool = False,
    level: str = "INFO",
    log_dir: str = "logs",
) -> None:
    """Configure loguru for the pair scanner.

    Console level comes from LOG_LEVEL (default: ``level``). The file sink
    always keeps DEBUG, which is where dropped logs and events are reported.
    """
    console_level = os.getenv("LOG_LEVEL", level).upper()
    logger.remove()

    if json_logs:
        logger.add(sys.stdout, serialize=True, level=console_level)
    else:
        logger.add(
            sys.stdout,
            format=(
                "<green>{time:HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan> - "
                "<level>{message}</level>"
            ),
            level=console_level,
            colorize=True,
        )

    logger.add(
        os.path.join(log_dir, "scanner_{time:YYYY-MM-DD}.log"),
        rotation="00:00",
        retention="7 days",
        compression="gz",
        level="DEBUG",
        serialize=json_logs,
        enqueue=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
