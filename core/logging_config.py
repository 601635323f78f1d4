"""Stdout logging for the upload gateway.

Per-request fields (request id, tenant, block) travel on a ``LoggerAdapter``
that handlers pass explicitly into the service layer; there is no
process-wide mutable logging context.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, MutableMapping

_CONTEXT_ATTR = "context"


class ContextLoggerAdapter(logging.LoggerAdapter):
    """Attach bound key/value pairs to every record as ``record.context``."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        context = dict(self.extra or {})
        context.update(extra.pop(_CONTEXT_ATTR, {}) or {})
        extra[_CONTEXT_ATTR] = context
        kwargs["extra"] = extra
        return msg, kwargs

    def bind(self, **fields: Any) -> "ContextLoggerAdapter":
        context = dict(self.extra or {})
        context.update({key: value for key, value in fields.items() if value is not None})
        return ContextLoggerAdapter(self.logger, context)


class JsonFormatter(logging.Formatter):
    """Emit newline-delimited JSON with the bound context merged in."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = getattr(record, _CONTEXT_ATTR, None)
        if isinstance(context, dict):
            payload.update(context)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, separators=(",", ":"))


class PlainFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = getattr(record, _CONTEXT_ATTR, None)
        if not isinstance(context, dict) or not context:
            return message
        suffix = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
        return f"{message} {suffix}"


def configure_logging(*, level: str = "INFO", json_output: bool = True) -> None:
    """Install a single stdout handler on the root logger.

    Existing root handlers are replaced so repeated calls do not duplicate output.
    """
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setLevel(level.upper())
    handler.setFormatter(JsonFormatter() if json_output else PlainFormatter())
    root.addHandler(handler)


def get_logger(name: str, **fields: Any) -> ContextLoggerAdapter:
    return ContextLoggerAdapter(logging.getLogger(name), {k: v for k, v in fields.items() if v is not None})
