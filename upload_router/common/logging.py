import json
import logging
from datetime import datetime, timezone
from logging.config import dictConfig

# SDK loggers that are chatty at INFO/DEBUG (request signing, retries, pools)
QUIET_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3")


def setup_logging(level: str = "INFO", *, json_output: bool = True) -> None:
    """Route every log record to stderr, as JSON lines by default.

    ``level`` applies to the root and the upload loggers; the AWS SDK loggers
    stay at WARNING unless ``level`` is stricter. Startup lines are always
    plain text.
    """
    level = str(level or "INFO").upper()
    numeric = logging.getLevelName(level)
    sdk_level = "WARNING"
    if isinstance(numeric, int) and numeric > logging.WARNING:
        sdk_level = level
    loggers = {
        "app.startup": {
            "handlers": ["startup_console"],
            "level": "INFO",
            "propagate": False,
        },
        "app.uploads": {"level": level},
        "app.handler": {"level": level},
        "http": {"level": level},
    }
    loggers.update({name: {"level": sdk_level} for name in QUIET_LOGGERS})

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {"()": JsonFormatter},
                "plain": {"format": "%(levelname)s %(name)s: %(message)s"},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json" if json_output else "plain",
                },
                "startup_console": {
                    "class": "logging.StreamHandler",
                    "formatter": "plain",
                },
            },
            "root": {"level": level, "handlers": ["console"]},
            "loggers": loggers,
        }
    )


class JsonFormatter(logging.Formatter):
    """One JSON object per record; ``extra={"extra": {...}}`` is merged in."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)
        # boto responses and exceptions can land in extras
        return json.dumps(payload, ensure_ascii=False, default=str)
