"""Render filter configurations as SQLAlchemy filter expressions."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import ColumnElement, false, true
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import InstrumentedAttribute

from sqla_rls._audit import SecuritySink, emit_security_event
from sqla_rls._types import Identifiers
from sqla_rls.compiler._interpret import resolve_filter_config
from sqla_rls.config._config import RLSConfig

__all__ = ["filter_expression", "target_name"]


def target_name(target: Any) -> str:
    """Return the table name of a ``Table``, alias, or mapped class."""
    name = getattr(target, "name", None)
    if isinstance(name, str):
        return name
    mapper = sa_inspect(target, raiseerr=False)
    local_table = getattr(mapper, "local_table", None)
    return getattr(local_table, "name", "") or ""


def _column(target: Any, field: str) -> Any:
    columns = getattr(target, "c", None)
    if columns is not None:
        return columns.get(field)
    attr = getattr(target, field, None)
    if isinstance(attr, InstrumentedAttribute):
        return attr
    return None


def filter_expression(
    filter_config: object,
    identifiers: Identifiers | None,
    target: Any,
    *,
    sink: SecuritySink | None = None,
    config: RLSConfig | None = None,
) -> ColumnElement[bool]:
    """Build a ``ColumnElement[bool]`` for *filter_config* on *target*.

    Follows the same rules as ``interpret_filter_config``: all records
    yields ``true()``, every deny path yields ``false()``, and a field
    filter compares the column with a bound identifier. A field that is
    not a column of *target* denies.

    Args:
        filter_config: The policy value.
        identifiers: Named values a field filter may reference.
        target: A ``Table``, alias, or ORM mapped class.
        sink: Security event sink.
        config: Configuration. Defaults to the global config.

    Returns:
        A ``ColumnElement[bool]`` suitable for ``Select.where()``.

    Example::

        expr = filter_expression(FieldEquals("customer_id", "customerProfileId"),
                                 {"customerProfileId": 45}, work_orders)
        stmt = select(work_orders).where(expr)
    """
    entity = target_name(target)
    decision = resolve_filter_config(
        filter_config, identifiers, entity=entity, sink=sink, config=config
    )
    if decision.kind == "all":
        return true()
    if decision.kind == "deny":
        return false()

    column = _column(target, decision.field or "")
    if column is None:
        emit_security_event(
            "RLS_INVALID_FILTER_CONFIG",
            logging.ERROR,
            sink=sink,
            entity=entity,
            field=decision.field,
            detail="policy field is not a column of the filtered table; denying",
        )
        return false()
    return column == decision.value
