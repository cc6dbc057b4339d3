"""Exception hierarchy for sqla-rls.

Three kinds never conflated:

- ``ConfigurationError``: a wiring or policy bug (HTTP 500).
- ``AuthorizationError``: the caller cannot be authorized (HTTP 403).
- ``EnforcementViolation``: a handler fetched data without honoring the
  RLS context (HTTP 500, operators alerted).
"""

from __future__ import annotations

__all__ = [
    "AuthorizationError",
    "ConfigurationError",
    "EnforcementViolation",
    "NoPolicyError",
    "PolicyConfigError",
    "RLSError",
]


class RLSError(Exception):
    """Base exception for all sqla-rls errors."""


class ConfigurationError(RLSError):
    """The route or policy table is misconfigured.

    Indicates a developer bug rather than a hostile caller, for example a
    route that never attached resource metadata before building the RLS
    context.

    Attributes:
        resource: The resource involved, if known.
        route: The route or URL being served, if known.
    """

    def __init__(
        self,
        message: str,
        *,
        resource: str | None = None,
        route: str | None = None,
    ) -> None:
        self.resource = resource
        self.route = route
        super().__init__(message)


class NoPolicyError(ConfigurationError):
    """No filter configuration registered for ``(role, resource)``.

    Raised only when configured with ``on_missing_policy="raise"``;
    the default is to deny (zero rows).

    Example::

        configure(on_missing_policy="raise")
        table.lookup("auditor", "invoices")  # raises NoPolicyError
    """

    def __init__(self, *, role: str, resource: str) -> None:
        self.role = role
        super().__init__(
            f"No RLS policy registered for role {role!r} on {resource!r}",
            resource=resource,
        )


class PolicyConfigError(ConfigurationError):
    """A raw policy value does not match any filter configuration shape."""

    def __init__(self, raw: object, *, resource: str | None = None) -> None:
        self.raw = raw
        super().__init__(f"Invalid RLS filter configuration: {raw!r}", resource=resource)


class AuthorizationError(RLSError):
    """The authenticated caller cannot be authorized for the resource.

    Attributes:
        resource: The resource the caller tried to access.
        role: The caller's role, ``None`` when no role is assigned.
        code: Machine-readable error code for API responses.

    Example::

        try:
            ctx = build_rls_context(None, 7, "work_orders")
        except AuthorizationError as exc:
            print(exc.code)  # AUTH_INSUFFICIENT_PERMISSIONS
    """

    code = "AUTH_INSUFFICIENT_PERMISSIONS"

    def __init__(
        self,
        message: str = "User has no assigned role",
        *,
        resource: str | None = None,
        role: str | None = None,
    ) -> None:
        self.resource = resource
        self.role = role
        super().__init__(message)


class EnforcementViolation(RLSError):  # noqa: N818
    """A query result skipped RLS although the context required it.

    Attributes:
        resource: The resource that was read.
        role: The caller's role.
        filter_description: Human-readable description of the filter
            configuration (never the bound values).
    """

    def __init__(self, *, resource: str, role: str, filter_description: str) -> None:
        self.resource = resource
        self.role = role
        self.filter_description = filter_description
        super().__init__(
            f"RLS validation failed for {resource}: model did not apply RLS filtering "
            f"(role={role}, filter={filter_description})"
        )
