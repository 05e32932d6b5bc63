import logging
import os
import sys

from dotenv import load_dotenv


load_dotenv()

LOG_LEVEL = os.getenv("LIFEFLOW_LOG_LEVEL", "INFO").upper()

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
if LOG_LEVEL not in VALID_LOG_LEVELS:
    LOG_LEVEL = "INFO"


class ANSIColors:
    DEBUG = "\033[36m"
    INFO = "\033[32m"
    WARNING = "\033[33m"
    ERROR = "\033[31m"
    CRITICAL = "\033[1;31m"
    RESET = "\033[0m"


class ColorFormatter(logging.Formatter):
    """Colour the whole line by level when writing to a terminal."""

    def __init__(self, fmt: str, use_color: bool = True):
        super().__init__(fmt)
        self.use_color = use_color

    def format(self, record):
        message = super().format(record)
        if not self.use_color:
            return message
        color = {
            logging.DEBUG: ANSIColors.DEBUG,
            logging.INFO: ANSIColors.INFO,
            logging.WARNING: ANSIColors.WARNING,
            logging.ERROR: ANSIColors.ERROR,
            logging.CRITICAL: ANSIColors.CRITICAL,
        }.get(record.levelno, ANSIColors.RESET)
        return f"{color}{message}{ANSIColors.RESET}"


_ROOT_NAME = "lifeflow"


def _configure_root() -> logging.Logger:
    root = logging.getLogger(_ROOT_NAME)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            ColorFormatter(
                "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
                use_color=sys.stdout.isatty(),
            )
        )
        root.addHandler(handler)
    root.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    return root


_configure_root()


def get_logger(name: str) -> logging.Logger:
    """Return a child of the package logger for the given module."""
    short = name.split(".")[-1]
    return logging.getLogger(f"{_ROOT_NAME}.{short}")
