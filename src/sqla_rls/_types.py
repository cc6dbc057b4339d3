"""Shared protocols and type aliases for sqla-rls."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Literal, Protocol, runtime_checkable

if TYPE_CHECKING:
    from sqla_rls.policy._filter import FilterConfig

__all__ = [
    "AppliedResult",
    "IdentifierValue",
    "Identifiers",
    "OnMissingIdentifier",
    "OnMissingPolicy",
    "PolicyLookup",
    "PrincipalLike",
]

# Valid values for RLSConfig.on_missing_policy.
OnMissingPolicy = Literal["deny", "raise"]

# Valid values for RLSConfig.on_missing_identifier.
OnMissingIdentifier = Literal["deny", "raise"]

# A named value a FieldEquals policy may bind (user id, profile ids).
IdentifierValue = int | str | None

Identifiers = Mapping[str, IdentifierValue]


class PolicyLookup(Protocol):
    """Resolves the filter configuration for a ``(role, resource)`` pair.

    ``PolicyTable`` satisfies this protocol, and so does any plain
    function with the same signature.

    Example::

        def lookup(role: str, resource: str) -> FilterConfig:
            return ALL_RECORDS if role == "admin" else DENY_ALL
    """

    def __call__(self, role: str, resource: str) -> FilterConfig | object: ...


@runtime_checkable
class PrincipalLike(Protocol):
    """Structural type for the authenticated caller.

    Any object with ``id`` and ``role`` attributes satisfies this
    protocol. Profile-scoped ids (``customer_profile_id``,
    ``technician_profile_id``) are read with ``getattr`` and may be absent.

    Example::

        @dataclass
        class DbUser:
            id: int
            role: str | None
            technician_profile_id: int | None = None

        assert isinstance(DbUser(id=3, role="technician"), PrincipalLike)
    """

    @property
    def id(self) -> int | str: ...

    @property
    def role(self) -> str | None: ...


@runtime_checkable
class AppliedResult(Protocol):
    """Result shape of any read that participated in RLS filtering."""

    @property
    def applied(self) -> bool: ...
