"""
Structured JSON logging for the travel expense packages.

Every record under the ``travel_kernel`` logger is written as one JSON
line.  Claim-scoped fields (correlation id, traveler, document name) are
held in a context variable by :class:`LogContext` and merged into each
line, so the claim service binds them once per calculation and the
engine, rate lookup and exporter never pass them around.

Usage::

    from travel_kernel.logging_config import LogContext, configure_logging, get_logger

    configure_logging()
    logger = get_logger("modules.expense.service")
    with LogContext.bind(traveler="Erika Mustermann"):
        logger.info("expense_calculated", extra={"day_count": 3})
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any

_LOGGER_PREFIX = "travel_kernel"

# ---------------------------------------------------------------------------
# Claim context
# ---------------------------------------------------------------------------

_context: ContextVar[dict[str, str] | None] = ContextVar("travel_log_context", default=None)


class LogContext:
    """Claim-scoped log fields, safe across threads and tasks."""

    FIELDS = ("correlation_id", "document_name", "traveler")

    @classmethod
    def _merged(cls, fields: dict[str, str | None]) -> dict[str, str]:
        unknown = set(fields) - set(cls.FIELDS)
        if unknown:
            raise TypeError(f"Unknown log context field(s): {', '.join(sorted(unknown))}")
        merged = cls.get_all()
        merged.update({k: v for k, v in fields.items() if v is not None})
        return merged

    @classmethod
    def set(cls, **fields: str | None) -> None:
        """Set fields for the rest of the current context; None leaves a field as is."""
        _context.set(cls._merged(fields))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_context.get() or {})

    @classmethod
    def clear(cls) -> None:
        _context.set(None)

    @classmethod
    @contextmanager
    def bind(cls, **fields: str | None) -> Iterator[type["LogContext"]]:
        """Set fields for the duration of a ``with`` block, then restore."""
        token = _context.set(cls._merged(fields))
        try:
            yield cls
        finally:
            _context.reset(token)


# ---------------------------------------------------------------------------
# JSON formatter
# ---------------------------------------------------------------------------

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    return str(obj)


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }

        # Fields passed through ``extra=``
        for key, val in vars(record).items():
            if key not in _STDLIB_KEYS and key not in payload:
                payload[key] = val

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(self._exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)

    @staticmethod
    def _exception_fields(exc: BaseException) -> dict[str, Any]:
        # TravelKernelError subclasses keep their context as public attributes
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
        }
        code = getattr(exc, "code", None)
        if code is not None:
            fields["exc_code"] = code
        for key, val in vars(exc).items():
            if not key.startswith("_"):
                fields[f"exc_{key}"] = val
        return fields


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the travel_kernel namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_installed: logging.Handler | None = None


def configure_logging(*, level: int = logging.INFO, handler: logging.Handler | None = None) -> None:
    """
    Attach one JSON handler (stderr unless given) to the travel_kernel logger.

    Later calls are no-ops until :func:`reset_logging` removes the handler.
    """
    global _installed
    if _installed is not None:
        return
    _installed = handler or logging.StreamHandler(sys.stderr)
    _installed.setFormatter(StructuredFormatter())

    logger = logging.getLogger(_LOGGER_PREFIX)
    logger.addHandler(_installed)
    logger.setLevel(level)


def reset_logging() -> None:
    """Remove the handler installed by :func:`configure_logging`."""
    global _installed
    logger = logging.getLogger(_LOGGER_PREFIX)
    if _installed is not None:
        logger.removeHandler(_installed)
        _installed = None
    logger.setLevel(logging.NOTSET)
