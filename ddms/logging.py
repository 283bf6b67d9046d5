import logging
import sys

from ddms.settings import settings

TEXT_FORMAT = "%(levelname)s %(name)s: %(message)s"

# Loggers of the HTTP stack under the API client.
HTTP_LOGGERS = ("httpx", "httpcore")


def _level(name: str, default: int) -> int:
    level = getattr(logging, name.upper(), None)
    return level if isinstance(level, int) else default


def configure_logging() -> None:
    """Set up the root logger for the terminal client.

    Call once at startup, before the API client is built. Text output by
    default; ``DDMS_LOG_JSON=true`` switches to one JSON object per line.
    Requests are logged by ``ddms.api.client``, so the HTTP stack is held to
    ``DDMS_HTTP_LOG_LEVEL``.
    """
    handler = logging.StreamHandler(sys.stderr)

    if settings.log_json:
        from pythonjsonlogger.json import JsonFormatter

        handler.setFormatter(
            JsonFormatter(
                fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
                rename_fields={"asctime": "timestamp", "levelname": "level"},
            )
        )
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    root.setLevel(_level(settings.log_level, logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)

    http_level = _level(settings.http_log_level, logging.WARNING)
    for name in HTTP_LOGGERS:
        logging.getLogger(name).setLevel(http_level)
