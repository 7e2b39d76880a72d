"""
JSON log formatter (wired through settings.LOGGING).
"""
import json
import logging
from datetime import datetime, timezone

# Structured extras copied onto the JSON record when a call passes them
EXTRA_FIELDS = (
    "request_id",
    "order_id",
    "staff_id",
    "operation",
    "status",
    "idempotency_key",
    "error",
    "customer",
    "gateway_order_id",
    "event",
)


class JsonFormatter(logging.Formatter):
    """One JSON object per log record."""

    def format(self, record):
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for field in EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)
