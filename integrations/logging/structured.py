import json
import logging
from datetime import UTC, datetime

# Context fields the clients attach through ``extra=``
CONTEXT_FIELDS = (
    "service",
    "endpoint",
    "method",
    "attempt",
    "max_retries",
    "status_code",
    "option_id",
    "option_ids",
    "prefecture",
    "city",
    "postal_code",
)


class JSONFormatter(logging.Formatter):
    """
    Formatter that outputs JSON strings for structured logging systems (ELK, Datadog, etc.)
    """

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        for name in CONTEXT_FIELDS:
            if hasattr(record, name):
                log_obj[name] = getattr(record, name)

        return json.dumps(log_obj, ensure_ascii=False, default=str)


def setup_structured_logging(service_name: str, level: str = "INFO", fmt: str = "json") -> logging.Logger:
    """
    Configure the root logger for JSON (or plain text) output.

    Returns the logger named ``service_name`` for the caller's own records.
    """
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("[%(asctime)s] [%(levelname)s] [%(name)s] - %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())

    # Replace handlers installed by uvicorn or a previous call
    if root_logger.handlers:
        root_logger.handlers = []

    root_logger.addHandler(handler)

    # httpx logs every request at INFO; the clients already log attempts
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return logging.getLogger(service_name)
