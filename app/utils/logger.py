"""
Logging Utility for the Checklist Scheduler.

Every record is a single JSON document carrying the subsystem name, the
level, the message and any keyword fields. Fields bound with `bind()` are
repeated on every record of the derived logger.
"""

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import json

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class StructuredLogger:
    """JSON logger for one subsystem."""

    def __init__(self, name: str, level: Optional[int] = None, context: Optional[Dict[str, Any]] = None):
        """
        Args:
            name: Subsystem name, also the stdlib logger name
            level: Logging level, defaults to LOG_LEVEL from the environment
            context: Fields added to every record
        """
        self.logger = logging.getLogger(name)
        self.context = dict(context or {})
        if level is not None or not self.logger.level:
            self.logger.setLevel(level if level is not None else logging.getLevelName(LOG_LEVEL))

        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            self.logger.addHandler(handler)

    def bind(self, **context) -> "StructuredLogger":
        """Logger for the same subsystem with extra fields on every record."""
        merged = dict(self.context)
        merged.update(context)
        return StructuredLogger(self.logger.name, context=merged)

    def _render(self, level: int, message: str, fields: Dict[str, Any]) -> str:
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": logging.getLevelName(level),
            "service": self.logger.name,
            "message": message,
        }
        record.update(self.context)
        record.update(fields)
        # dates and enums are not JSON-native
        return json.dumps(record, default=str)

    def log(self, level: int, message: str, **fields):
        if self.logger.isEnabledFor(level):
            self.logger.log(level, self._render(level, message, fields))

    def debug(self, message: str, **fields):
        self.log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields):
        self.log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields):
        self.log(logging.WARNING, message, **fields)

    def error(self, message: str, **fields):
        self.log(logging.ERROR, message, **fields)

    def exception(self, message: str, **fields):
        """Error record with the active traceback appended."""
        if self.logger.isEnabledFor(logging.ERROR):
            self.logger.exception(self._render(logging.ERROR, message, dict(fields, exception=True)))


scheduler_logger = StructuredLogger("checklist-scheduler")
checklist_logger = StructuredLogger("checklist-service")
tenant_logger = StructuredLogger("tenant-service")
api_logger = StructuredLogger("checklist-api")
delegation_logger = StructuredLogger("delegation-service")
ticket_logger = StructuredLogger("ticket-service")


def get_logger(service_name: str) -> StructuredLogger:
    return StructuredLogger(service_name)
