"""Session module for sqla-rls — RLS-filtered reads on SQLAlchemy connections."""

from __future__ import annotations

from sqla_rls.session._query import (
    RLSQueryResult,
    execute_authorized,
    fetch_by_id,
    fetch_page,
    to_text_clause,
)

__all__ = [
    "RLSQueryResult",
    "execute_authorized",
    "fetch_by_id",
    "fetch_page",
    "to_text_clause",
]
