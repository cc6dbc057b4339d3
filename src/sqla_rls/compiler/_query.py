"""Model-layer entry points — build RLS filters for list, get, and select queries."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import Select

from sqla_rls._audit import SecuritySink
from sqla_rls._types import PolicyLookup
from sqla_rls.compiler._expression import filter_expression
from sqla_rls.compiler._interpret import interpret_filter_config
from sqla_rls.compiler._predicate import PredicateResult
from sqla_rls.compiler._relationship import build_parent_scoped_filter
from sqla_rls.config._config import RLSConfig
from sqla_rls.policy._filter import ParentDelegated
from sqla_rls.policy._parent import ParentLinkRegistry

if TYPE_CHECKING:
    from sqla_rls.context._context import RLSContext

__all__ = ["authorize_select", "build_rls_filter", "build_rls_filter_for_find_by_id"]

logger = logging.getLogger("sqla_rls")


def build_rls_filter(
    context: RLSContext | None,
    table_name: str = "",
    parameter_offset: int = 0,
    *,
    parent_links: ParentLinkRegistry | None = None,
    policy_lookup: PolicyLookup | None = None,
    sink: SecuritySink | None = None,
    config: RLSConfig | None = None,
) -> PredicateResult:
    """Build the RLS predicate for a model-layer query.

    Without a context the route opted out of RLS and the result is
    unapplied; the caller decides whether that is acceptable (the
    enforcement auditor passes it only when no context exists). A
    ``$parent`` policy is routed to ``build_parent_scoped_filter`` when
    *parent_links* are given; otherwise it reaches the interpreter and is
    denied.

    Example::

        rls = build_rls_filter(ctx, "work_orders", parameter_offset=len(base_params))
        composed = compose_predicate(base_where, base_params, rls)
    """
    if context is None:
        logger.debug("build_rls_filter: no RLS context for %s", table_name or "<unprefixed>")
        return PredicateResult.unapplied()

    if parent_links is not None and isinstance(context.filter_config, ParentDelegated):
        return build_parent_scoped_filter(
            context,
            parent_links,
            table_name=table_name or None,
            parameter_offset=parameter_offset,
            policy_lookup=policy_lookup,
            sink=sink,
            config=config,
        )

    return interpret_filter_config(
        context.filter_config,
        context.identifiers,
        table_name,
        parameter_offset,
        sink=sink,
        config=config,
    )


def build_rls_filter_for_find_by_id(
    context: RLSContext | None,
    table_name: str = "",
    parameter_offset: int = 1,
    **kwargs: Any,
) -> PredicateResult:
    """Build the RLS predicate to AND with a primary-key lookup.

    The offset defaults to 1 because ``$1`` is the id; pass the real
    parameter count when the lookup binds more.

    Example::

        rls = build_rls_filter_for_find_by_id(ctx, "customers")
        compose_predicate("customers.id = $1", [requested_id], rls)
        # WHERE customers.id = $1 AND customers.id = $2
    """
    return build_rls_filter(context, table_name, parameter_offset, **kwargs)


def authorize_select(
    stmt: Select[Any],
    *,
    context: RLSContext | None,
    target: Any,
    sink: SecuritySink | None = None,
    config: RLSConfig | None = None,
) -> Select[Any]:
    """Apply the context's RLS filter to a SQLAlchemy SELECT statement.

    Returns *stmt* unchanged when *context* is ``None``.

    Example::

        stmt = select(WorkOrder).where(WorkOrder.status == "open")
        stmt = authorize_select(stmt, context=ctx, target=WorkOrder)
        # SQL: ... WHERE status = :status_1 AND assigned_technician_id = :param_1
    """
    if context is None:
        return stmt
    return stmt.where(
        filter_expression(
            context.filter_config,
            context.identifiers,
            target,
            sink=sink,
            config=config,
        )
    )
