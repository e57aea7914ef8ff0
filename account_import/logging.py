"""Logging setup for the importer and the mock API."""

import json
import logging
import sys
from datetime import datetime, timezone

STANDARD_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries whose chatter would bury the import progress lines
QUIET_LOGGERS = ("werkzeug", "psycopg", "urllib3", "faker")


def setup_logging(level: str = "INFO", format_type: str = "standard") -> None:
    """Send all log output to stdout, replacing any earlier configuration.

    Parameters
    ----------
    level : str
        ``LOG_LEVEL`` name; unknown names fall back to INFO.
    format_type : str
        ``LOG_FORMAT``: "json" for one object per line, anything else for
        the pipe-separated text format.
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    if format_type == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(fmt=STANDARD_FORMAT, datefmt=DATE_FORMAT))

    logging.basicConfig(level=log_level, handlers=[handler], force=True)
    logging.getLogger("account_import").setLevel(log_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def format_duration(seconds: float) -> str:
    """Format seconds as HH:MM:SS, keeping sub-minute runs readable."""
    if seconds < 60:
        return f"{seconds:.2f}s"
    h, remainder = divmod(int(seconds), 3600)
    m, s = divmod(remainder, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"
