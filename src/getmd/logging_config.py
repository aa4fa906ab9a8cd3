import logging
import sys
from typing import Optional

CONSOLE_FORMAT = "%(levelname)s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Libraries that log every parse at INFO
NOISY_LOGGERS = ("readability.readability", "charset_normalizer")


def cli_log_level(verbose: bool = False, quiet: bool = False) -> str:
    """Map the CLI's -v/-q flags to a level name."""
    if verbose:
        return "DEBUG"
    if quiet:
        return "ERROR"
    return "WARNING"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    force: bool = False,
) -> logging.Logger:
    """
    Configure the getmd logger.

    Console output goes to stderr, since stdout carries the converted
    markdown. An optional log file gets timestamps.

    Args:
        level: Logging level name; unknown names mean INFO
        log_file: Optional file path for logging output
        format_string: Format for both handlers (default: short on the
            console, timestamped in the file)
        force: Replace handlers from an earlier call

    Returns:
        The "getmd" logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger = logging.getLogger("getmd")
    logger.setLevel(numeric_level)

    if force or not logger.handlers:
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            if isinstance(handler, logging.FileHandler):
                handler.close()

        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(logging.Formatter(format_string or CONSOLE_FORMAT))
        logger.addHandler(stderr_handler)

        if log_file:
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setFormatter(logging.Formatter(format_string or FILE_FORMAT))
            logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    logger.propagate = False
    return logger
