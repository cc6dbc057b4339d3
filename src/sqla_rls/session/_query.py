"""RLS-filtered reads through a SQLAlchemy connection or session."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from sqlalchemy import Connection, Select, TextClause, text
from sqlalchemy.orm import Session

from sqla_rls.compiler._compose import ComposedWhere, compose_predicate, substitute_placeholders
from sqla_rls.compiler._interpret import is_field_prefix
from sqla_rls.compiler._query import (
    authorize_select,
    build_rls_filter,
    build_rls_filter_for_find_by_id,
)
from sqla_rls.policy._filter import is_sql_identifier

if TYPE_CHECKING:
    from sqla_rls.context._context import RLSContext

__all__ = [
    "RLSQueryResult",
    "execute_authorized",
    "fetch_by_id",
    "fetch_page",
    "to_text_clause",
]

_ORDER_BY = re.compile(
    r"^[A-Za-z_][A-Za-z0-9_.]*(\s+(ASC|DESC))?(\s*,\s*[A-Za-z_][A-Za-z0-9_.]*(\s+(ASC|DESC))?)*$",
    re.IGNORECASE,
)


@dataclass(frozen=True, slots=True)
class RLSQueryResult:
    """Rows from an RLS-filtered read plus the ``applied`` marker.

    Attributes:
        data: Row mappings (or ORM instances for ``execute_authorized``).
        applied: Whether RLS participated in the query. Checked by
            ``assert_rls_applied``.
        total: Total matching rows before pagination, when counted.
    """

    data: list[Any] = field(default_factory=list)
    applied: bool = False
    total: int | None = None

    @property
    def first(self) -> Any:
        return self.data[0] if self.data else None


def to_text_clause(sql: str, params: Sequence[Any]) -> TextClause:
    """Convert ``$N`` placeholders into a SQLAlchemy ``text()`` construct.

    ``$N`` becomes the bind parameter ``:p_N`` bound to ``params[N - 1]``.
    A ``$N`` inside a quoted literal is left alone.

    Raises:
        ValueError: If a placeholder has no matching parameter.

    Example::

        to_text_clause("SELECT * FROM work_orders WHERE status = $1", ["open"])
    """
    used: set[int] = set()

    def _named(number: int) -> str:
        if not 1 <= number <= len(params):
            raise ValueError(f"placeholder ${number} has no bound value ({len(params)} given)")
        used.add(number)
        return f":p_{number}"

    clause = text(substitute_placeholders(sql, _named))
    if used:
        clause = clause.bindparams(**{f"p_{n}": params[n - 1] for n in sorted(used)})
    return clause


def _require_identifier(value: str, what: str) -> None:
    if not is_field_prefix(value):
        raise ValueError(f"{what} must be a SQL identifier, got {value!r}")


def _execute(conn: Connection | Session, sql: str, params: Sequence[Any]) -> list[dict[str, Any]]:
    rows = conn.execute(to_text_clause(sql, params)).mappings().all()
    return [dict(row) for row in rows]


def fetch_by_id(
    conn: Connection | Session,
    *,
    table: str,
    pk: Any,
    context: RLSContext | None,
    pk_column: str = "id",
    **filter_kwargs: Any,
) -> RLSQueryResult:
    """Fetch one row by primary key, restricted by the RLS context.

    The primary-key predicate binds ``$1`` and the RLS predicate follows
    it, so a row outside the caller's scope is indistinguishable from a
    missing row.

    Example::

        result = fetch_by_id(conn, table="customers", pk=45, context=ctx)
        assert_rls_applied(ctx, result)
        customer = result.first
    """
    _require_identifier(table, "table")
    if not is_sql_identifier(pk_column):
        raise ValueError(f"pk_column must be a SQL identifier, got {pk_column!r}")

    rls = build_rls_filter_for_find_by_id(context, table, 1, **filter_kwargs)
    composed = compose_predicate(f"{table}.{pk_column} = $1", [pk], rls)
    data = _execute(conn, f"SELECT {table}.* FROM {table} {composed.where_clause}", composed.params)
    return RLSQueryResult(data=data[:1], applied=composed.applied, total=len(data[:1]))


def fetch_page(
    conn: Connection | Session,
    *,
    table: str,
    context: RLSContext | None,
    base_where: str = "",
    base_params: Sequence[Any] = (),
    order_by: str | None = None,
    limit: int = 50,
    offset: int = 0,
    **filter_kwargs: Any,
) -> RLSQueryResult:
    """Fetch one page of rows plus the total count, restricted by RLS.

    *base_where* and *base_params* come from the search/filter builder;
    the RLS predicate is numbered after them and ``LIMIT``/``OFFSET`` after
    that.

    Example::

        result = fetch_page(conn, table="work_orders", context=ctx,
                            base_where="status = $1", base_params=["open"],
                            order_by="created_at DESC", limit=20)
    """
    _require_identifier(table, "table")
    if order_by is not None and not _ORDER_BY.match(order_by.strip()):
        raise ValueError(f"order_by must be a column list, got {order_by!r}")
    if limit < 0 or offset < 0:
        raise ValueError("limit and offset must be >= 0")

    rls = build_rls_filter(context, table, len(base_params), **filter_kwargs)
    composed: ComposedWhere = compose_predicate(base_where, base_params, rls)

    count_rows = _execute(
        conn,
        f"SELECT COUNT(*) AS total FROM {table} {composed.where_clause}",
        composed.params,
    )
    total = int(count_rows[0]["total"]) if count_rows else 0

    page_clause, page_params = composed.paginate(limit, offset)
    order_clause = f"ORDER BY {order_by.strip()} " if order_by else ""
    data = _execute(
        conn,
        f"SELECT {table}.* FROM {table} {composed.where_clause} {order_clause}{page_clause}",
        page_params,
    )
    return RLSQueryResult(data=data, applied=composed.applied, total=total)


def execute_authorized(
    conn: Connection | Session,
    stmt: Select[Any],
    *,
    context: RLSContext | None,
    target: Any,
    **filter_kwargs: Any,
) -> RLSQueryResult:
    """Run a SQLAlchemy SELECT with the context's RLS filter applied.

    ORM mapped classes return instances; tables return row mappings.

    Example::

        result = execute_authorized(session, select(WorkOrder),
                                    context=ctx, target=WorkOrder)
    """
    authorized = authorize_select(stmt, context=context, target=target, **filter_kwargs)
    executed = conn.execute(authorized)
    if isinstance(target, type):
        data: list[Any] = list(executed.scalars().all())
    else:
        data = [dict(row) for row in executed.mappings().all()]
    return RLSQueryResult(data=data, applied=context is not None, total=len(data))
