"""PredicateResult and FilterDecision — interpreter outputs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

__all__ = ["DENY_CLAUSE", "DecisionKind", "FilterDecision", "PredicateResult"]

# Clause that matches no row on every SQL backend.
DENY_CLAUSE = "1=0"

DecisionKind = Literal["all", "deny", "restrict"]


@dataclass(frozen=True, slots=True)
class FilterDecision:
    """What a filter configuration resolves to for one request.

    Rendered either as parameterized SQL text (``interpret_filter_config``)
    or as a SQLAlchemy expression (``filter_expression``).

    Attributes:
        kind: ``"all"`` (no restriction), ``"deny"`` or ``"restrict"``.
        field: Column to restrict on (``"restrict"`` only).
        value: Identifier value to bind (``"restrict"`` only).
        reason: Log-safe description of why this decision was reached.
    """

    kind: DecisionKind
    field: str | None = None
    value: Any = None
    reason: str = ""


@dataclass(frozen=True, slots=True)
class PredicateResult:
    """A parameterized RLS predicate ready to be composed into a query.

    Attributes:
        clause: SQL condition without the ``WHERE`` keyword. Empty when
            the policy does not restrict rows.
        bound_values: Values for the clause's ``$N`` placeholders, in order.
        deny_all: ``True`` when the clause matches no row.
        applied: ``False`` only when no RLS context existed at all.
        parameter_offset: Number of parameters already bound before this
            clause; its placeholders start at ``parameter_offset + 1``.

    Example::

        result = interpret_filter_config(FieldEquals("customer_id",
                                                     "customerProfileId"),
                                         {"customerProfileId": 45},
                                         "work_orders", 2)
        result.clause        # 'work_orders.customer_id = $3'
        result.bound_values  # (45,)
    """

    clause: str = ""
    bound_values: tuple[Any, ...] = ()
    deny_all: bool = False
    applied: bool = True
    parameter_offset: int = 0

    @property
    def no_filter(self) -> bool:
        """``True`` when RLS was applied and leaves every row visible."""
        return self.applied and not self.clause

    @classmethod
    def unapplied(cls) -> PredicateResult:
        """Result for routes that carry no RLS context."""
        return cls(applied=False)

    @classmethod
    def unrestricted(cls, parameter_offset: int = 0) -> PredicateResult:
        return cls(parameter_offset=parameter_offset)

    @classmethod
    def deny(cls, parameter_offset: int = 0) -> PredicateResult:
        return cls(clause=DENY_CLAUSE, deny_all=True, parameter_offset=parameter_offset)
