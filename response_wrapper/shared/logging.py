"""
Logging configuration for wrapped applications.

Sets up one stdout handler with a pipe-separated format.
Logging must not change program behavior.
Envelope code logs request ids, error codes and exception types;
it never logs request bodies, secrets or raw payloads.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NOISY_LOGGERS = ("uvicorn.access", "uvicorn.error", "slowapi")
# Expected client errors (404s, validation failures) are logged at INFO here.
EXPECTED_ERRORS_LOGGER = "response_wrapper.application.envelope"


def resolve_level(level: str) -> int:
    """Map a level name to its numeric value, defaulting to INFO."""
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: str = "INFO", *, log_expected_errors: bool = True) -> None:
    """Configure logging for the application.

    Args:
        level: The log level string (DEBUG, INFO, WARNING, ERROR).
        log_expected_errors: When False, expected client errors are
            no longer logged; unexpected errors still are.
    """
    logging.basicConfig(
        level=resolve_level(level),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(EXPECTED_ERRORS_LOGGER).setLevel(
        logging.NOTSET if log_expected_errors else logging.WARNING
    )
