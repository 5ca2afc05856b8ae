"""
Thinkify - Logging

One "thinkify" logger for the whole API. Production writes JSON lines,
every other environment writes readable text tagged with the request id and
the signed-in user id.
"""

import json
import logging
import sys
import traceback
import uuid
from contextvars import ContextVar
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Optional

from thinkify.core.config import settings

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
SLOW_REQUEST_MS = 1000

# Per-request tracing context
request_id_var: ContextVar[str] = ContextVar('request_id', default='')
user_id_var: ContextVar[str] = ContextVar('user_id', default='')


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def set_user_id(user_id: str) -> None:
    """Tag subsequent log lines of this request with the authenticated user"""
    user_id_var.set(user_id)


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRS = set(vars(logging.makeLogRecord({}))) | {'message', 'asctime', 'request_id', 'user_id'}


def _context() -> Dict[str, str]:
    return {'request_id': request_id_var.get(), 'user_id': user_id_var.get()}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, including ``extra`` fields and the tracing context"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        entry.update({key: value for key, value in _context().items() if value})

        if record.exc_info and record.exc_info[0]:
            exc_type, exc, tb = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "traceback": traceback.format_exception(exc_type, exc, tb),
            }

        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS and not key.startswith('_'):
                entry[key] = value

        return json.dumps(entry, default=str)


class ContextFormatter(logging.Formatter):
    """Plain text with ``%(request_id)s`` and ``%(user_id)s`` available to the format"""

    def format(self, record: logging.LogRecord) -> str:
        for key, value in _context().items():
            setattr(record, key, value or '-')
        return super().format(record)


class ThinkifyLogger(logging.Logger):
    """Logger with helpers for the events the API records"""

    def log_request(self, method: str, path: str, status_code: int, duration_ms: float) -> None:
        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400 or duration_ms > SLOW_REQUEST_MS:
            level = logging.WARNING
        else:
            level = logging.INFO
        self.log(
            level,
            f"{method} {path} -> {status_code} ({duration_ms:.1f}ms)",
            extra={
                "event_type": "http_request",
                "http_method": method,
                "http_path": path,
                "http_status": status_code,
                "duration_ms": round(duration_ms, 2),
                "slow": duration_ms > SLOW_REQUEST_MS,
            },
        )

    def log_auth_event(self, event: str, success: bool, user_email: Optional[str] = None,
                       reason: Optional[str] = None, **fields: Any) -> None:
        """Registration, login and logout outcomes"""
        parts = [f"Auth {event} {'ok' if success else 'failed'}"]
        if user_email:
            parts.append(user_email)
        if reason:
            parts.append(reason)
        self.log(
            logging.INFO if success else logging.WARNING,
            " - ".join(parts),
            extra={
                "event_type": "auth",
                "auth_event": event,
                "auth_success": success,
                "user_email": user_email,
                "failure_reason": reason,
                **fields,
            },
        )

    def log_error_with_context(self, error: Exception, context: Optional[str] = None) -> None:
        self.error(
            f"{context or 'unhandled'}: {type(error).__name__}: {error}",
            exc_info=error,
            extra={
                "event_type": "error",
                "error_type": type(error).__name__,
                "error_context": context,
            },
        )


def _handlers(json_output: bool) -> List[logging.Handler]:
    if json_output:
        console_formatter = file_formatter = JSONFormatter()
    else:
        console_formatter = ContextFormatter("%(levelname)-8s | %(message)s")
        file_formatter = ContextFormatter(
            "%(asctime)s | %(levelname)-8s | [%(request_id)s] [%(user_id)s] | "
            "%(module)s:%(lineno)d | %(message)s"
        )

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.INFO)
    console.setFormatter(console_formatter)
    handlers: List[logging.Handler] = [console]

    if settings.LOG_FILE:
        path = Path(settings.LOG_FILE)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(path, maxBytes=LOG_FILE_MAX_BYTES,
                                           backupCount=10 if json_output else 5)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(file_formatter)
        handlers.append(file_handler)

    return handlers


def setup_logging() -> ThinkifyLogger:
    """Configure the "thinkify" logger for the current environment"""
    logging.setLoggerClass(ThinkifyLogger)
    app_logger = logging.getLogger("thinkify")
    app_logger.__class__ = ThinkifyLogger
    app_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    app_logger.propagate = False

    app_logger.handlers.clear()
    for handler in _handlers(json_output=settings.is_production()):
        app_logger.addHandler(handler)

    for noisy in ("httpx", "httpcore", "uvicorn.access", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return app_logger


logger: ThinkifyLogger = setup_logging()
