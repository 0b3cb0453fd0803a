"""
Logging setup for the DistriApp backend.

Loggers accept keyword fields next to the message:

    logger.info("Order created", order_id=41, company_id=3, user_id=12)

`company_id` and `user_id` are lifted out of the fields so every line can be
filtered by tenant. Production writes one JSON object per line; any other
environment gets a compact colored line for the terminal.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from shared.config.settings import settings


TENANT_FIELDS = ("company_id", "user_id")

NOISY_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
}


def _split_fields(record: logging.LogRecord) -> tuple[dict[str, Any], dict[str, Any]]:
    """Return (tenant, rest) from the keyword fields attached to a record."""
    fields = dict(getattr(record, "fields", None) or {})
    tenant = {key: fields.pop(key) for key in TENANT_FIELDS if fields.get(key) is not None}
    return tenant, {k: v for k, v in fields.items() if v is not None}


def _request_id(record: logging.LogRecord) -> str | None:
    value = getattr(record, "request_id", None)
    return value if value and value != "-" else None


class JsonFormatter(logging.Formatter):
    """One JSON document per record."""

    def format(self, record: logging.LogRecord) -> str:
        tenant, fields = _split_fields(record)
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            **tenant,
        }
        request_id = _request_id(record)
        if request_id:
            payload["request_id"] = request_id
        if fields:
            payload["fields"] = fields
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        if settings.debug:
            payload["at"] = f"{record.pathname}:{record.lineno}"
        return json.dumps(payload, default=str, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """`12:01:33 INFO  [c3/u12] rest_api.orders: Order created order_id=41`"""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        tenant, fields = _split_fields(record)
        color = self.LEVEL_COLORS.get(record.levelno, "")
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        parts = [f"{clock} {color}{record.levelname:<5}{self.RESET}"]
        request_id = _request_id(record)
        if request_id:
            parts.append(request_id[:8])
        if tenant:
            parts.append(
                "[" + "/".join(f"{key[0]}{value}" for key, value in tenant.items()) + "]"
            )
        parts.append(f"{record.name}: {record.getMessage()}")
        parts.extend(f"{key}={value}" for key, value in fields.items())

        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class StructuredLogger(logging.Logger):
    """Logger whose methods take arbitrary keyword fields."""

    def _log(
        self,
        level: int,
        msg: object,
        args: Any,
        exc_info: Any = None,
        extra: dict | None = None,
        stack_info: bool = False,
        stacklevel: int = 1,
        **fields: Any,
    ) -> None:
        extra = dict(extra or {})
        extra["fields"] = fields
        super()._log(
            level,
            msg,
            args,
            exc_info=exc_info,
            extra=extra,
            stack_info=stack_info,
            stacklevel=stacklevel + 1,
        )


logging.setLoggerClass(StructuredLogger)


def setup_logging() -> None:
    """Install the stdout handler on the root logger. Safe to call twice."""
    from shared.infrastructure.correlation import CorrelationIdFilter

    level = logging.DEBUG if settings.debug else logging.INFO
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationIdFilter())
    handler.setFormatter(
        JsonFormatter() if settings.environment == "production" else ConsoleFormatter()
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    for name, noisy_level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(noisy_level)


def get_logger(name: str) -> StructuredLogger:
    return logging.getLogger(name)  # type: ignore[return-value]


def mask_email(email: str | None) -> str:
    """"vendedor@empresa.co" -> "ve***@empresa.co"."""
    if not email or "@" not in email:
        return "<sin-email>" if not email else "***"
    local, domain = email.split("@", 1)
    return f"{local[:2] or '*'}***@{domain}"


def mask_token(token: str | None) -> str:
    """Keep the recognisable prefix of an Expo push token."""
    if not token:
        return "<sin-token>"
    return token if len(token) <= 12 else f"{token[:12]}..."


rest_api_logger = get_logger("rest_api")
auth_logger = get_logger("rest_api.auth")
push_logger = get_logger("rest_api.push")
audit_logger = get_logger("distriapp.audit")


# -----------------------------------------------------------------------------
# Audit trail
# -----------------------------------------------------------------------------


def audit_auth_event(
    event_type: str,
    user_id: int | None = None,
    email: str | None = None,
    success: bool = True,
    reason: str | None = None,
    ip_address: str | None = None,
    **fields: Any,
) -> None:
    """LOGIN, WEB_LOGIN, REGISTER... Failures go out as warnings."""
    audit_logger.log(
        logging.INFO if success else logging.WARNING,
        "auth %s %s",
        event_type,
        "ok" if success else "rejected",
        event=event_type,
        user_id=user_id,
        email=mask_email(email) if email else None,
        reason=reason,
        ip=ip_address,
        **fields,
    )


def audit_access_denied(
    reason: str,
    company_id: int | None = None,
    user_id: int | None = None,
    **fields: Any,
) -> None:
    """A write blocked by the subscription state or a plan limit."""
    audit_logger.warning(
        "write blocked: %s",
        reason,
        reason=reason,
        company_id=company_id,
        user_id=user_id,
        **fields,
    )
