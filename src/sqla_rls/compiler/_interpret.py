"""FilterConfig interpreter — turn a policy value into a parameterized predicate.

The interpreter is total: every input either grants explicitly
(``AllRecords``), restricts on a bound identifier, or denies. There is no
implicit fall-through to "allow".
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping

from sqla_rls._audit import SecuritySink, emit_security_event, log_filter_decision
from sqla_rls._types import Identifiers
from sqla_rls.compiler._predicate import FilterDecision, PredicateResult
from sqla_rls.config._config import RLSConfig, get_global_config
from sqla_rls.exceptions import PolicyConfigError
from sqla_rls.policy._filter import (
    PARENT_DELEGATED,
    PARENT_MARKER,
    AllRecords,
    DenyAll,
    FieldEquals,
    FilterConfig,
    ParentDelegated,
    describe_filter_config,
    parse_filter_config,
)

__all__ = [
    "coerce_filter_config",
    "interpret_filter_config",
    "is_field_prefix",
    "resolve_filter_config",
]

_FIELD_PREFIX = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


def is_field_prefix(prefix: str) -> bool:
    """Return ``True`` if *prefix* is a table name or ``schema.table``."""
    return _FIELD_PREFIX.match(prefix) is not None


def coerce_filter_config(
    filter_config: object,
    *,
    default_value_key: str = "userId",
) -> FilterConfig | None:
    """Normalize what the interpreter accepts, or return ``None``.

    Accepted: ``FilterConfig`` instances, the ``"$parent"`` marker,
    shorthand column names and ``{"field": ..., "value": ...}`` mappings.
    Raw ``None``/``False`` are *not* accepted here: they must be
    normalized when the policy table is loaded, so seeing them at request
    time means a caller skipped that step.
    """
    if isinstance(filter_config, (AllRecords, DenyAll, ParentDelegated, FieldEquals)):
        candidate: object = filter_config
    elif isinstance(filter_config, str) and filter_config == PARENT_MARKER:
        return PARENT_DELEGATED
    elif isinstance(filter_config, (str, Mapping)):
        candidate = filter_config
    else:
        return None
    try:
        return parse_filter_config(candidate, default_value_key=default_value_key)
    except PolicyConfigError:
        return None


def resolve_filter_config(
    filter_config: object,
    identifiers: Identifiers | None,
    *,
    entity: str = "",
    sink: SecuritySink | None = None,
    config: RLSConfig | None = None,
) -> FilterDecision:
    """Decide what *filter_config* means for the given identifiers.

    Rules, first match wins: all records, deny all, parent-delegated
    (denied, misconfiguration), shorthand/structured field filter
    (denied when the identifier is missing or null), anything else
    (denied, configuration error).
    """
    cfg = config if config is not None else get_global_config()
    normalized = coerce_filter_config(filter_config, default_value_key=cfg.default_value_key)

    if isinstance(normalized, AllRecords):
        return FilterDecision("all", reason="all_records")

    if isinstance(normalized, DenyAll):
        return FilterDecision("deny", reason="deny_all")

    if isinstance(normalized, ParentDelegated):
        emit_security_event(
            "RLS_PARENT_DELEGATED_UNHANDLED",
            logging.WARNING,
            sink=sink,
            entity=entity,
            detail="$parent policy reached the generic filter; denying (misconfiguration)",
        )
        return FilterDecision("deny", reason="parent_entity_access")

    if isinstance(normalized, FieldEquals):
        values = identifiers if identifiers is not None else {}
        value = values.get(normalized.value_key)
        if value is None:
            emit_security_event(
                "RLS_MISSING_IDENTIFIER",
                logging.INFO,
                sink=sink,
                entity=entity,
                field=normalized.field,
                value_key=normalized.value_key,
                available_keys=sorted(k for k, v in values.items() if v is not None),
            )
            return FilterDecision("deny", reason=f"missing_{normalized.value_key}")
        return FilterDecision(
            "restrict",
            field=normalized.field,
            value=value,
            reason=describe_filter_config(normalized),
        )

    emit_security_event(
        "RLS_INVALID_FILTER_CONFIG",
        logging.ERROR,
        sink=sink,
        entity=entity,
        filter_config=type(filter_config).__name__,
        detail="unrecognized filter configuration; denying",
    )
    return FilterDecision("deny", reason="invalid_filter_config")


def interpret_filter_config(
    filter_config: object,
    identifiers: Identifiers | None,
    field_prefix: str = "",
    parameter_offset: int = 0,
    *,
    sink: SecuritySink | None = None,
    config: RLSConfig | None = None,
) -> PredicateResult:
    """Render a filter configuration as a parameterized SQL predicate.

    Args:
        filter_config: The policy value for the caller's role on the
            resource.
        identifiers: Named values a ``FieldEquals`` policy may reference.
        field_prefix: Table name or alias prefixed to the column, or ``""``.
        parameter_offset: Parameters already bound by the caller; the
            generated placeholder is ``$(parameter_offset + 1)``.
        sink: Security event sink. Defaults to the process sink.
        config: Configuration. Defaults to the global config.

    Returns:
        An applied ``PredicateResult``. Never raises for any policy value.

    Raises:
        ValueError: If *parameter_offset* is negative (a call-site bug).

    Example::

        interpret_filter_config("user_id", {"userId": 7}, "t", 0)
        # PredicateResult(clause='t.user_id = $1', bound_values=(7,), ...)
    """
    if parameter_offset < 0:
        raise ValueError(f"parameter_offset must be >= 0, got {parameter_offset!r}")
    cfg = config if config is not None else get_global_config()

    if field_prefix and not is_field_prefix(field_prefix):
        emit_security_event(
            "RLS_INVALID_FILTER_CONFIG",
            logging.ERROR,
            sink=sink,
            entity=field_prefix,
            detail="field prefix is not a SQL identifier; denying",
        )
        return PredicateResult.deny(parameter_offset)

    decision = resolve_filter_config(
        filter_config, identifiers, entity=field_prefix, sink=sink, config=cfg
    )

    if decision.kind == "all":
        result = PredicateResult.unrestricted(parameter_offset)
    elif decision.kind == "restrict":
        column = f"{field_prefix}.{decision.field}" if field_prefix else str(decision.field)
        result = PredicateResult(
            clause=f"{column} = ${parameter_offset + 1}",
            bound_values=(decision.value,),
            parameter_offset=parameter_offset,
        )
    else:
        result = PredicateResult.deny(parameter_offset)

    if cfg.log_policy_decisions:
        log_filter_decision(
            kind=decision.kind,
            entity=field_prefix,
            description=decision.reason,
            clause=result.clause,
        )
    return result
