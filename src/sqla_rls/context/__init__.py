"""Request-scoped RLS context and its builder."""

from __future__ import annotations

from sqla_rls.context._builder import (
    build_rls_context,
    collect_identifiers,
    context_for_principal,
)
from sqla_rls.context._context import RLSContext

__all__ = [
    "RLSContext",
    "build_rls_context",
    "collect_identifiers",
    "context_for_principal",
]
