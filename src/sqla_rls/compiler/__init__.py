"""Compiler — turns filter configurations into SQL predicates and composes them."""

from sqla_rls.compiler._compose import ComposedWhere, compose_predicate, renumber_placeholders
from sqla_rls.compiler._expression import filter_expression
from sqla_rls.compiler._interpret import interpret_filter_config, resolve_filter_config
from sqla_rls.compiler._predicate import DENY_CLAUSE, FilterDecision, PredicateResult
from sqla_rls.compiler._query import (
    authorize_select,
    build_rls_filter,
    build_rls_filter_for_find_by_id,
)
from sqla_rls.compiler._relationship import build_parent_scoped_filter

__all__ = [
    "ComposedWhere",
    "DENY_CLAUSE",
    "FilterDecision",
    "PredicateResult",
    "authorize_select",
    "build_parent_scoped_filter",
    "build_rls_filter",
    "build_rls_filter_for_find_by_id",
    "compose_predicate",
    "filter_expression",
    "interpret_filter_config",
    "renumber_placeholders",
    "resolve_filter_config",
]
