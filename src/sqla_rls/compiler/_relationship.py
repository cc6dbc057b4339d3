"""Parent delegation — scope ``$parent`` sub-entities through their parent's policy."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqla_rls._audit import SecuritySink, emit_security_event
from sqla_rls._types import Identifiers, PolicyLookup
from sqla_rls.compiler._interpret import (
    coerce_filter_config,
    interpret_filter_config,
    is_field_prefix,
)
from sqla_rls.compiler._predicate import PredicateResult
from sqla_rls.config._config import RLSConfig, get_global_config
from sqla_rls.policy._filter import ParentDelegated
from sqla_rls.policy._parent import ParentLinkRegistry
from sqla_rls.policy._table import get_default_table

if TYPE_CHECKING:
    from sqla_rls.context._context import RLSContext

__all__ = ["build_parent_scoped_filter"]


def build_parent_scoped_filter(
    context: RLSContext,
    links: ParentLinkRegistry,
    *,
    table_name: str | None = None,
    parameter_offset: int = 0,
    policy_lookup: PolicyLookup | None = None,
    sink: SecuritySink | None = None,
    config: RLSConfig | None = None,
) -> PredicateResult:
    """Build the RLS predicate for a sub-entity whose policy is ``$parent``.

    The caller's policy on the parent resource is interpreted against the
    parent table and wrapped in an ``IN (SELECT ...)`` over the child's
    foreign key. A parent that is itself ``$parent`` is followed up to
    ``max_parent_depth`` hops. Contexts whose policy is not
    ``ParentDelegated`` go straight to the interpreter.

    Args:
        context: The request's RLS context for the child resource.
        links: Registered parent links.
        table_name: Child table or alias. Defaults to the link's
            ``child_table``.
        parameter_offset: Parameters already bound by the caller.
        policy_lookup: Lookup for the parent policy. Defaults to the
            default ``PolicyTable``.
        sink: Security event sink.
        config: Configuration. Defaults to the global config.

    Returns:
        An applied ``PredicateResult``. Missing links and exceeded depth
        deny.

    Example::

        # technician on work_order_files ($parent -> work_orders)
        result = build_parent_scoped_filter(ctx, links)
        result.clause
        # 'work_order_files.work_order_id IN (SELECT work_orders.id FROM '
        # 'work_orders WHERE work_orders.assigned_technician_id = $1)'
    """
    cfg = config if config is not None else get_global_config()
    lookup = policy_lookup if policy_lookup is not None else get_default_table()
    return _scope(
        resource=context.resource,
        filter_config=context.filter_config,
        table_name=table_name,
        role=context.role,
        identifiers=context.identifiers,
        links=links,
        lookup=lookup,
        parameter_offset=parameter_offset,
        sink=sink,
        config=cfg,
        depth=0,
    )


def _scope(
    *,
    resource: str,
    filter_config: object,
    table_name: str | None,
    role: str,
    identifiers: Identifiers,
    links: ParentLinkRegistry,
    lookup: PolicyLookup,
    parameter_offset: int,
    sink: SecuritySink | None,
    config: RLSConfig,
    depth: int,
) -> PredicateResult:
    normalized = coerce_filter_config(filter_config, default_value_key=config.default_value_key)
    if not isinstance(normalized, ParentDelegated):
        return interpret_filter_config(
            filter_config,
            identifiers,
            table_name or "",
            parameter_offset,
            sink=sink,
            config=config,
        )

    link = links.lookup(resource)
    if link is None:
        emit_security_event(
            "RLS_INVALID_FILTER_CONFIG",
            logging.ERROR,
            sink=sink,
            entity=resource,
            detail="$parent policy without a registered parent link; denying",
        )
        return PredicateResult.deny(parameter_offset)
    if depth >= config.max_parent_depth:
        emit_security_event(
            "RLS_INVALID_FILTER_CONFIG",
            logging.ERROR,
            sink=sink,
            entity=resource,
            detail=f"$parent chain deeper than {config.max_parent_depth}; denying",
        )
        return PredicateResult.deny(parameter_offset)

    parent = _scope(
        resource=link.parent_resource,
        filter_config=lookup(role, link.parent_resource),
        table_name=link.parent_table,
        role=role,
        identifiers=identifiers,
        links=links,
        lookup=lookup,
        parameter_offset=parameter_offset,
        sink=sink,
        config=config,
        depth=depth + 1,
    )
    if parent.deny_all:
        return PredicateResult.deny(parameter_offset)
    if parent.no_filter:
        return PredicateResult.unrestricted(parameter_offset)

    child_table = table_name or link.child_table
    if not is_field_prefix(child_table):
        emit_security_event(
            "RLS_INVALID_FILTER_CONFIG",
            logging.ERROR,
            sink=sink,
            entity=child_table,
            detail="field prefix is not a SQL identifier; denying",
        )
        return PredicateResult.deny(parameter_offset)
    clause = (
        f"{child_table}.{link.foreign_key} IN "
        f"(SELECT {link.parent_table}.{link.parent_key} FROM {link.parent_table} "
        f"WHERE {parent.clause})"
    )
    return PredicateResult(
        clause=clause,
        bound_values=parent.bound_values,
        parameter_offset=parameter_offset,
    )
