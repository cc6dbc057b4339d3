"""Enforcement auditor — fail loudly when a handler skipped RLS."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from sqla_rls._audit import SecuritySink, emit_security_event
from sqla_rls.context._context import RLSContext
from sqla_rls.exceptions import EnforcementViolation

__all__ = ["assert_rls_applied", "rls_was_applied"]


def rls_was_applied(result: object) -> bool:
    """Return ``True`` if *result* carries an ``applied=True`` marker.

    The marker is read from an ``applied`` attribute, or an ``"applied"``
    key for mapping results. Anything else, including ``None`` and truthy
    non-boolean markers, counts as not applied.
    """
    if result is None:
        return False
    if isinstance(result, Mapping):
        marker = result.get("applied")
    else:
        marker = getattr(result, "applied", None)
    return marker is True


def assert_rls_applied(
    context: RLSContext | None,
    result: object,
    *,
    sink: SecuritySink | None = None,
) -> None:
    """Assert that a query result honored the request's RLS context.

    Call after data access and before the rows leave the handler. Passes
    when the route has no context or the policy grants all records.
    Otherwise *result* must carry ``applied=True``.

    Args:
        context: The request's RLS context, or ``None``.
        result: The query result (e.g. ``RLSQueryResult``).
        sink: Security event sink. Defaults to the process sink.

    Raises:
        EnforcementViolation: After emitting a CRITICAL
            ``RLS_VALIDATION_FAILED`` event.

    Example::

        ctx = build_rls_context(user.role, user.id, "customers", user)
        customers = fetch_page(conn, table="customers", context=ctx, ...)
        assert_rls_applied(ctx, customers)
    """
    if context is None:
        return
    if not context.requires_filtering:
        return
    if rls_was_applied(result):
        return

    emit_security_event(
        "RLS_VALIDATION_FAILED",
        logging.CRITICAL,
        sink=sink,
        user_id=context.user_id,
        role=context.role,
        resource=context.resource,
        filter_config=context.description,
    )
    raise EnforcementViolation(
        resource=context.resource,
        role=context.role,
        filter_description=context.description,
    )
