"""RLSContext — carries role, resource, policy and identifiers through one request."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from sqla_rls._types import IdentifierValue
from sqla_rls.config._config import USER_ID_KEY
from sqla_rls.policy._filter import AllRecords, FilterConfig, describe_filter_config

__all__ = ["RLSContext"]


@dataclass(frozen=True, slots=True)
class RLSContext:
    """Immutable, request-scoped RLS context.

    Built once per request after authentication and resource resolution,
    then passed explicitly to the filter builders and the enforcement
    auditor. Never stored on a shared request object.

    Attributes:
        resource: RLS resource name (e.g. ``"work_orders"``).
        role: The caller's role.
        filter_config: Policy for ``(role, resource)``.
        identifiers: Read-only ``{key: value}`` of ``userId`` and every
            configured profile id. Absent profile ids map to ``None``.

    Example::

        ctx = RLSContext(
            resource="work_orders",
            role="technician",
            filter_config=FieldEquals("assigned_technician_id", "technicianProfileId"),
            identifiers={"userId": 3, "technicianProfileId": 10},
        )
    """

    resource: str
    role: str
    filter_config: FilterConfig
    identifiers: Mapping[str, IdentifierValue]

    def __post_init__(self) -> None:
        object.__setattr__(self, "identifiers", MappingProxyType(dict(self.identifiers)))

    @property
    def user_id(self) -> IdentifierValue:
        return self.identifiers.get(USER_ID_KEY)

    @property
    def requires_filtering(self) -> bool:
        """``False`` only when the policy grants all records."""
        return not isinstance(self.filter_config, AllRecords)

    @property
    def description(self) -> str:
        return describe_filter_config(self.filter_config)

