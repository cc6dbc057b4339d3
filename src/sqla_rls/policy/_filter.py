"""Filter configuration variants — the policy value for one (role, resource)."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Union

from sqla_rls.exceptions import PolicyConfigError

__all__ = [
    "ALL_RECORDS",
    "AllRecords",
    "DENY_ALL",
    "DenyAll",
    "FieldEquals",
    "FilterConfig",
    "PARENT_DELEGATED",
    "PARENT_MARKER",
    "ParentDelegated",
    "describe_filter_config",
    "filter_config_allows_access",
    "is_sql_identifier",
    "parse_filter_config",
]

# Raw permissions-file marker for parent-entity access.
PARENT_MARKER = "$parent"

_SQL_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def is_sql_identifier(name: object) -> bool:
    """Return ``True`` if *name* is safe to interpolate as a column name."""
    return isinstance(name, str) and _SQL_IDENTIFIER.match(name) is not None


@dataclass(frozen=True, slots=True)
class AllRecords:
    """No restriction: the role sees every row."""

    def __repr__(self) -> str:
        return "AllRecords()"


@dataclass(frozen=True, slots=True)
class DenyAll:
    """The role sees zero rows."""

    def __repr__(self) -> str:
        return "DenyAll()"


@dataclass(frozen=True, slots=True)
class ParentDelegated:
    """Access is controlled through a parent entity (sub-entity pattern).

    Must be intercepted by ``build_parent_scoped_filter`` before the
    generic interpreter sees it; the interpreter denies it.
    """

    def __repr__(self) -> str:
        return "ParentDelegated()"


@dataclass(frozen=True, slots=True)
class FieldEquals:
    """Restrict to rows where ``field = identifiers[value_key]``.

    Attributes:
        field: Column name on the filtered table.
        value_key: Identifier looked up in the request context,
            ``"userId"`` by default.

    Example::

        FieldEquals("customer_id", "customerProfileId")
        FieldEquals("user_id")  # same as the shorthand "user_id"
    """

    field: str
    value_key: str = "userId"


FilterConfig = Union[AllRecords, DenyAll, ParentDelegated, FieldEquals]

ALL_RECORDS = AllRecords()
DENY_ALL = DenyAll()
PARENT_DELEGATED = ParentDelegated()

_VARIANTS = (AllRecords, DenyAll, ParentDelegated, FieldEquals)


def parse_filter_config(raw: object, *, default_value_key: str = "userId") -> FilterConfig:
    """Normalize a raw permissions-file value into a ``FilterConfig``.

    ``None`` means all records, ``False`` denies, ``"$parent"`` delegates
    to the parent entity, a column name is shorthand for filtering by
    *default_value_key*, and ``{"field": ..., "value": ...}`` is the
    structured form.

    Raises:
        PolicyConfigError: If *raw* matches none of these shapes.

    Example::

        parse_filter_config("user_id")
        # FieldEquals(field='user_id', value_key='userId')
        parse_filter_config({"field": "customer_id", "value": "customerProfileId"})
        # FieldEquals(field='customer_id', value_key='customerProfileId')
    """
    if isinstance(raw, _VARIANTS):
        if isinstance(raw, FieldEquals) and not (
            is_sql_identifier(raw.field) and is_sql_identifier(raw.value_key)
        ):
            raise PolicyConfigError(raw)
        return raw
    if raw is None:
        return ALL_RECORDS
    if raw is False:
        return DENY_ALL
    if isinstance(raw, str) and raw == PARENT_MARKER:
        return PARENT_DELEGATED
    if isinstance(raw, str):
        if not is_sql_identifier(raw):
            raise PolicyConfigError(raw)
        return FieldEquals(raw, default_value_key)
    if isinstance(raw, Mapping):
        field = raw.get("field")
        value_key = raw.get("value") or default_value_key
        if not is_sql_identifier(field) or not is_sql_identifier(value_key):
            raise PolicyConfigError(raw)
        return FieldEquals(field, value_key)  # type: ignore[arg-type]
    raise PolicyConfigError(raw)


def describe_filter_config(filter_config: object) -> str:
    """Return a log-safe description of a filter configuration.

    Accepts raw permissions-file values as well as ``FilterConfig``
    instances. Never includes bound values.

    Example::

        describe_filter_config(FieldEquals("customer_id", "customerProfileId"))
        # 'filter_by_customer_id_via_customerProfileId'
    """
    try:
        config = parse_filter_config(filter_config)
    except PolicyConfigError:
        return "unknown"
    if isinstance(config, AllRecords):
        return "all_records"
    if isinstance(config, DenyAll):
        return "deny_all"
    if isinstance(config, ParentDelegated):
        return "parent_entity_access"
    return f"filter_by_{config.field}_via_{config.value_key}"


def filter_config_allows_access(filter_config: object) -> bool:
    """Return ``False`` when *filter_config* denies every row up front.

    Field filters may still deny at request time when the caller lacks
    the referenced identifier; this check only rules out ``DenyAll``.
    """
    try:
        return not isinstance(parse_filter_config(filter_config), DenyAll)
    except PolicyConfigError:
        return False
