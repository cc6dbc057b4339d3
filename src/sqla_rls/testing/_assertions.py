"""Assertion helpers for testing sqla-rls predicates."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqla_rls.compiler._compose import placeholder_numbers
from sqla_rls.compiler._predicate import DENY_CLAUSE, PredicateResult

__all__ = [
    "assert_denies",
    "assert_params_consistent",
    "assert_restricts",
    "assert_unrestricted",
]



def assert_denies(result: PredicateResult) -> None:
    """Assert that *result* is the deny-all predicate.

    Example::

        assert_denies(interpret_filter_config(DENY_ALL, {}))
    """
    if not (result.deny_all and result.clause == DENY_CLAUSE and not result.bound_values):
        raise AssertionError(f"expected a deny-all predicate, got {result!r}")


def assert_unrestricted(result: PredicateResult) -> None:
    """Assert that *result* was applied and leaves every row visible."""
    if not result.no_filter or result.bound_values or result.deny_all:
        raise AssertionError(f"expected an unrestricted predicate, got {result!r}")


def assert_restricts(
    result: PredicateResult,
    *,
    clause: str | None = None,
    values: Sequence[Any] | None = None,
) -> None:
    """Assert that *result* restricts rows, optionally to an exact clause.

    Example::

        assert_restricts(rls, clause="work_orders.customer_id = $1", values=[45])
    """
    if result.deny_all or not result.clause:
        raise AssertionError(f"expected a restricting predicate, got {result!r}")
    if clause is not None and result.clause != clause:
        raise AssertionError(f"expected clause {clause!r}, got {result.clause!r}")
    if values is not None and tuple(result.bound_values) != tuple(values):
        raise AssertionError(
            f"expected bound values {tuple(values)!r}, got {tuple(result.bound_values)!r}"
        )


def assert_params_consistent(sql: str, params: Sequence[Any]) -> None:
    """Assert that *sql* uses exactly ``$1..$len(params)``.

    Example::

        composed = compose_predicate("status = $1", ["open"], rls)
        assert_params_consistent(composed.where_clause, composed.params)
    """
    used = placeholder_numbers(sql)
    expected = set(range(1, len(params) + 1))
    if used != expected:
        raise AssertionError(
            f"placeholders {sorted(used)} do not match {len(params)} parameter(s) in {sql!r}"
        )
