"""Predicate composition — merge the RLS predicate into a base WHERE clause."""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from sqla_rls.compiler._predicate import PredicateResult

__all__ = [
    "ComposedWhere",
    "compose_predicate",
    "placeholder_numbers",
    "renumber_placeholders",
    "substitute_placeholders",
]

# Quoted literals are matched so they can be skipped; group 1 is a $N.
_PLACEHOLDER = re.compile(r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"|\$(\d+)")
_WHERE_KEYWORD = re.compile(r"^WHERE\b", re.IGNORECASE)
_OR_KEYWORD = re.compile(r"\bOR\b", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class ComposedWhere:
    """A WHERE clause and its bound parameters, numbered 1:1.

    Attributes:
        where_clause: Empty, or a condition starting with one ``WHERE``.
        params: Bound values; ``params[i]`` binds ``$(i + 1)``.
        applied: Whether RLS participated (copied from the predicate).

    Example::

        composed = compose_predicate("status = $1", ["open"], rls_result)
        sql = f"SELECT wo.* FROM work_orders wo {composed.where_clause}"
        page_sql, page_params = composed.paginate(limit=20, offset=40)
    """

    where_clause: str
    params: tuple[Any, ...]
    applied: bool

    @property
    def next_placeholder(self) -> int:
        """Number the next appended placeholder must use."""
        return len(self.params) + 1

    def paginate(self, limit: int, offset: int) -> tuple[str, tuple[Any, ...]]:
        """Return a ``LIMIT/OFFSET`` suffix numbered after the WHERE params."""
        n = self.next_placeholder
        return f"LIMIT ${n} OFFSET ${n + 1}", (*self.params, limit, offset)


def substitute_placeholders(clause: str, replace: Callable[[int], str]) -> str:
    """Replace every ``$N`` outside quoted literals with ``replace(N)``.

    Example::

        substitute_placeholders("note = 'costs $5' AND a = $1", lambda n: f":p_{n}")
        # "note = 'costs $5' AND a = :p_1"
    """

    def _sub(match: re.Match[str]) -> str:
        if match.group(1) is None:
            return match.group(0)
        return replace(int(match.group(1)))

    return _PLACEHOLDER.sub(_sub, clause)


def placeholder_numbers(clause: str) -> set[int]:
    """Return the ``$N`` numbers used in *clause*, ignoring quoted literals."""
    return {int(n) for n in _PLACEHOLDER.findall(clause) if n}


def renumber_placeholders(clause: str, shift: int) -> str:
    """Add *shift* to every ``$N`` placeholder in *clause*.

    Raises:
        ValueError: If a placeholder would drop below ``$1``.

    Example::

        renumber_placeholders("a = $1 AND b = $2", 3)
        # 'a = $4 AND b = $5'
    """
    if shift == 0:
        return clause

    def _shift(number: int) -> str:
        if number + shift < 1:
            raise ValueError(f"placeholder ${number} shifted by {shift} is out of range")
        return f"${number + shift}"

    return substitute_placeholders(clause, _shift)


def _strip_where(where: str) -> str:
    condition = where.strip()
    match = _WHERE_KEYWORD.match(condition)
    if match:
        condition = condition[match.end() :].strip()
    return condition


def _has_top_level_or(condition: str) -> bool:
    # Blank out quoted literals and parenthesized groups, then look for OR.
    masked: list[str] = []
    depth = 0
    quote: str | None = None
    for char in condition:
        if quote is not None:
            if char == quote:
                quote = None
            masked.append(" ")
        elif char in ("'", '"'):
            quote = char
            masked.append(" ")
        elif char == "(":
            depth += 1
            masked.append(" ")
        elif char == ")":
            depth = max(depth - 1, 0)
            masked.append(" ")
        else:
            masked.append(char if depth == 0 else " ")
    return _OR_KEYWORD.search("".join(masked)) is not None


def _guard(condition: str) -> str:
    return f"({condition})" if _has_top_level_or(condition) else condition


def _check_base_placeholders(condition: str, params: tuple[Any, ...]) -> None:
    used = placeholder_numbers(condition)
    if used != set(range(1, len(params) + 1)):
        raise ValueError(
            f"base clause placeholders {sorted(used)} do not match its "
            f"{len(params)} bound value(s)"
        )


def _check_placeholders(rls_result: PredicateResult) -> None:
    used = placeholder_numbers(rls_result.clause)
    first = rls_result.parameter_offset + 1
    expected = set(range(first, first + len(rls_result.bound_values)))
    if used != expected:
        raise ValueError(
            f"RLS clause placeholders {sorted(used)} do not match its "
            f"{len(rls_result.bound_values)} bound value(s) at offset "
            f"{rls_result.parameter_offset}"
        )


def compose_predicate(
    base_where: str | None,
    base_params: Sequence[Any],
    rls_result: PredicateResult,
) -> ComposedWhere:
    """AND the RLS predicate onto a base WHERE clause.

    The RLS placeholders are renumbered to follow *base_params*, whatever
    offset the predicate was built at, so the final parameter list is
    always ``base_params + rls_result.bound_values``. The ``WHERE`` keyword
    appears at most once. A base condition containing a top-level ``OR``
    is parenthesized, so a permissive base can never widen the RLS
    restriction.

    Args:
        base_where: Search/filter condition, with or without ``WHERE``.
        base_params: Values bound by *base_where*.
        rls_result: Output of the interpreter.

    Returns:
        The combined ``ComposedWhere``.

    Raises:
        ValueError: If the base placeholders are not exactly
            ``$1..$len(base_params)``, or the predicate's placeholders do
            not match its bound values and offset.

    Example::

        rls = interpret_filter_config(
            FieldEquals("assigned_technician_id", "technicianProfileId"),
            {"userId": 3, "technicianProfileId": 10},
            "work_orders",
        )
        compose_predicate("status = $1", ["open"], rls)
        # ComposedWhere(where_clause='WHERE status = $1 AND '
        #               'work_orders.assigned_technician_id = $2',
        #               params=('open', 10), applied=True)
    """
    params = tuple(base_params)
    condition = _strip_where(base_where or "")
    _check_base_placeholders(condition, params)

    if not rls_result.clause:
        where_clause = f"WHERE {condition}" if condition else ""
        return ComposedWhere(where_clause, params, rls_result.applied)

    _check_placeholders(rls_result)
    shift = len(params) - rls_result.parameter_offset
    rls_clause = _guard(renumber_placeholders(rls_result.clause, shift))

    if condition:
        where_clause = f"WHERE {_guard(condition)} AND {rls_clause}"
    else:
        where_clause = f"WHERE {rls_clause}"

    return ComposedWhere(
        where_clause,
        params + rls_result.bound_values,
        rls_result.applied,
    )
