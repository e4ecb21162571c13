"""Logging configuration for carbon-offsetter."""

import logging
import os
import sys

# Below DEBUG; used for per-nonce RPC reads and third-party HTTP chatter.
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# Silenced at DEBUG, let through at TRACE.
NOISY_LOGGERS = ("web3", "urllib3")


class ColoredFormatter(logging.Formatter):
    """Prefixes the level name with an ANSI color."""

    COLORS = {
        "TRACE": "\033[90m",
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        color = self.COLORS.get(levelname)
        if color is None:
            return super().format(record)

        record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def setup_logging(log_level: str | None = None) -> None:
    """Install a colored stdout handler on the root logger.

    ``log_level`` wins over the LOG_LEVEL environment variable; unknown
    names fall back to INFO.
    """
    level_name = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    level = TRACE if level_name == "TRACE" else getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        ColoredFormatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logging.basicConfig(level=level, handlers=[handler], force=True)

    if level_name in ("DEBUG", "TRACE"):
        noisy_level = logging.WARNING if level_name == "DEBUG" else TRACE
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(noisy_level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
