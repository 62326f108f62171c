"""Configure application logging using the Python standard library.

Log records are formatted as JSON lines carrying a timestamp, level,
module and message, plus the shop context fields ``order_id`` and
``customer_id`` and any ``extra`` dict passed by the caller.  The console
handler writes to stderr so the driver's stdout output stays untouched.
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from typing import Optional

CONTEXT_FIELDS = ("order_id", "customer_id", "payment_id")


class JsonFormatter(logging.Formatter):
    """Format log records as JSON strings."""

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.module,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            if hasattr(record, name):
                log_record[name] = getattr(record, name)
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            # Merge into top level rather than nesting under "extra"
            log_record.update(extra)
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record, default=str, ensure_ascii=False)


def configure_logging(log_dir: Optional[str] = None, level: int = logging.WARNING) -> None:
    """Configure the root logger with JSON formatting.

    Args:
        log_dir: Directory for ``shop.log``.  When None only the console
            handler is installed.  The directory is created if missing.
        level: Logging level for the root logger and its handlers.
    """
    logger = logging.getLogger()
    logger.setLevel(level)
    # Drop handlers left over from basicConfig or an earlier call
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    formatter = JsonFormatter()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=os.path.join(log_dir, "shop.log"),
            maxBytes=5 * 1024 * 1024,  # 5 MB per log file
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        logger.addHandler(file_handler)
