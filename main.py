"""Logging demo: exercises every level, structured arguments and level filtering."""

import argparse
import asyncio
import logging
import sys

from studio_observability import ServerLogger, load_config

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [studio-observability] %(levelname)s %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


async def run_demo(server_logger: ServerLogger, level: str) -> None:
    server_logger.set_level(level)
    await server_logger.info("Logger configuration:", server_logger.get_stats())

    await server_logger.debug("Routine operational detail")
    await server_logger.info("Significant event")
    await server_logger.warn("Warning condition")
    await server_logger.error("Error condition")

    await server_logger.debug("Debug with object:", {"user_id": 123, "action": "login"})
    await server_logger.info("Info with array:", ["item1", "item2", "item3"])
    await server_logger.warn("Warning with nested data:", {
        "component": "FileStore",
        "issue": "Cache size approaching limit",
        "current_size": "45MB",
        "max_size": "50MB",
    })
    await server_logger.error("Error with exception:", RuntimeError("Test error message"))

    server_logger.set_level("WARN")
    await server_logger.debug("This DEBUG should not appear")
    await server_logger.info("This INFO should not appear")
    await server_logger.warn("This WARN should appear")
    await server_logger.error("This ERROR should appear")

    await server_logger.flush()


def main():
    parser = argparse.ArgumentParser(description="Exercise the rotating file logger")
    parser.add_argument("level", nargs="?", default="DEBUG",
                        choices=["DEBUG", "INFO", "WARN", "ERROR"],
                        help="Initial log level (default: DEBUG)")
    args = parser.parse_args()

    config = load_config()
    logger.info("Writing logs to %s (max_size=%d bytes, retention=%dd)",
                config.folder, config.max_size, config.retention_days)

    server_logger = ServerLogger(config)
    asyncio.run(run_demo(server_logger, args.level))

    stats = server_logger.get_stats()
    if stats["folder_error"]:
        logger.error("File output disabled: %s", stats["folder_error"])
        sys.exit(1)
    logger.info("Done. Log files: %s/%s-YYYY-MM-DD.log", config.folder, config.app_name)


if __name__ == "__main__":
    main()
