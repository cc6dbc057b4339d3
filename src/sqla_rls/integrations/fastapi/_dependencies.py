"""FastAPI dependencies for building the per-request RLS context."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from fastapi import Depends, Request

from sqla_rls._audit import SecuritySink
from sqla_rls._types import PolicyLookup, PrincipalLike
from sqla_rls.config._config import RLSConfig
from sqla_rls.context._builder import context_for_principal
from sqla_rls.context._context import RLSContext

__all__ = ["RLSContextDep", "get_principal"]


def get_principal(request: Request) -> PrincipalLike:
    """Sentinel dependency. Override via ``app.dependency_overrides[get_principal]``.

    Raises ``NotImplementedError`` if not overridden, ensuring users
    configure their authentication provider before using ``RLSContextDep``.

    Example::

        from sqla_rls.integrations.fastapi import get_principal

        app.dependency_overrides[get_principal] = my_get_current_user
    """
    raise NotImplementedError(
        "Override get_principal via app.dependency_overrides[get_principal]. "
        "See sqla-rls docs for configuration guide."
    )


def _make_dependency(
    resource: str | None,
    *,
    policy_lookup: PolicyLookup | None = None,
    config: RLSConfig | None = None,
    sink: SecuritySink | None = None,
) -> Callable[..., Any]:
    async def _resolve(
        request: Request,
        principal: PrincipalLike = Depends(get_principal),
    ) -> RLSContext:
        return context_for_principal(
            principal,
            resource,
            policy_lookup=policy_lookup,
            config=config,
            sink=sink,
            route=request.url.path,
        )

    return _resolve


def RLSContextDep(
    resource: str | None,
    *,
    policy_lookup: PolicyLookup | None = None,
    config: RLSConfig | None = None,
    sink: SecuritySink | None = None,
) -> Any:
    """FastAPI dependency resolving the request's ``RLSContext``.

    The route declares its resource here, which is the entity metadata
    the context builder needs. The caller comes from the ``get_principal``
    dependency. Errors propagate as ``AuthorizationError`` (403) or
    ``ConfigurationError`` (500) once ``install_error_handlers`` is in
    place.

    Args:
        resource: RLS resource name, e.g. ``"work_orders"``.
        policy_lookup: Optional per-route policy lookup override.
        config: Optional per-route configuration override.
        sink: Optional security event sink.

    Returns:
        A FastAPI ``Depends`` instance.

    Example::

        @app.get("/work-orders")
        def list_work_orders(
            ctx: RLSContext = RLSContextDep("work_orders"),
            conn: Connection = Depends(get_conn),
        ) -> list[dict]:
            result = fetch_page(conn, table="work_orders", context=ctx)
            assert_rls_applied(ctx, result)
            return result.data
    """
    return Depends(
        _make_dependency(resource, policy_lookup=policy_lookup, config=config, sink=sink)
    )
