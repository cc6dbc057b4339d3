"""Audit logging and security events for RLS decisions."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Protocol

__all__ = [
    "LoggingSecuritySink",
    "SecurityEvent",
    "SecuritySink",
    "emit_security_event",
    "get_default_sink",
    "log_filter_decision",
    "set_default_sink",
]

logger = logging.getLogger("sqla_rls")


@dataclass(frozen=True, slots=True)
class SecurityEvent:
    """A structured security event.

    Attributes:
        name: Event name, e.g. ``"RLS_VALIDATION_FAILED"``.
        level: A ``logging`` level number.
        fields: Event payload. Never contains bound identifier values
            beyond what the request context already exposes.
    """

    name: str
    level: int
    fields: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    @property
    def severity(self) -> str:
        return logging.getLevelName(self.level)

    def to_dict(self) -> dict[str, Any]:
        return {"event": self.name, "severity": self.severity, **self.fields}


class SecuritySink(Protocol):
    """Receives security events emitted by the engine.

    Example::

        class PagerSink:
            def emit(self, event: SecurityEvent) -> None:
                if event.level >= logging.CRITICAL:
                    page_oncall(event.to_dict())
    """

    def emit(self, event: SecurityEvent) -> None: ...


class LoggingSecuritySink:
    """Default sink: one log record per event on ``sqla_rls.security``.

    The full payload is attached as ``record.rls_event`` so structured
    log handlers can ship it unchanged.
    """

    def __init__(self, logger_name: str = "sqla_rls.security") -> None:
        self._logger = logging.getLogger(logger_name)

    def emit(self, event: SecurityEvent) -> None:
        if not self._logger.isEnabledFor(event.level):
            return
        details = " ".join(f"{key}={value}" for key, value in event.fields.items())
        self._logger.log(
            event.level,
            "%s %s",
            event.name,
            details,
            extra={"rls_event": event.to_dict()},
        )


_default_sink: SecuritySink = LoggingSecuritySink()


def get_default_sink() -> SecuritySink:
    """Return the process-wide security sink."""
    return _default_sink


def set_default_sink(sink: SecuritySink | None) -> SecuritySink:
    """Replace the process-wide security sink, returning the previous one.

    Passing ``None`` restores the logging sink.
    """
    global _default_sink
    previous = _default_sink
    _default_sink = sink if sink is not None else LoggingSecuritySink()
    return previous


def emit_security_event(
    name: str,
    level: int,
    *,
    sink: SecuritySink | None = None,
    **fields: Any,
) -> SecurityEvent:
    """Build a ``SecurityEvent`` and hand it to *sink* (or the default sink).

    Example::

        emit_security_event(
            "RLS_NO_ROLE",
            logging.WARNING,
            resource="work_orders",
            user_id=7,
        )
    """
    event = SecurityEvent(name=name, level=level, fields=fields)
    (sink if sink is not None else _default_sink).emit(event)
    return event


def log_filter_decision(
    *,
    kind: str,
    entity: str,
    description: str,
    clause: str = "",
) -> None:
    """Log an interpreter decision at DEBUG.

    Only called when ``log_policy_decisions`` is enabled.
    """
    logger.debug(
        "RLS decision for %s: %s (%s) clause=%r",
        entity or "<unprefixed>",
        kind,
        description,
        clause,
    )
