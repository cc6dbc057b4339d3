"""RLS context builder — resolve role, resource, policy and identifiers per request."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqla_rls._audit import SecuritySink, emit_security_event
from sqla_rls._types import IdentifierValue, PolicyLookup, PrincipalLike
from sqla_rls.config._config import USER_ID_KEY, RLSConfig, get_global_config
from sqla_rls.context._context import RLSContext
from sqla_rls.exceptions import AuthorizationError, ConfigurationError, PolicyConfigError
from sqla_rls.policy._filter import (
    DENY_ALL,
    FieldEquals,
    FilterConfig,
    describe_filter_config,
    parse_filter_config,
)
from sqla_rls.policy._table import get_default_table

__all__ = ["build_rls_context", "collect_identifiers", "context_for_principal"]


def _read_identifier(source: object, key: str, attribute: str) -> IdentifierValue:
    if source is None:
        return None
    if isinstance(source, Mapping):
        value = source.get(key)
        return value if value is not None else source.get(attribute)
    value = getattr(source, attribute, None)
    return value if value is not None else getattr(source, key, None)


def collect_identifiers(
    user_id: IdentifierValue,
    identifier_source: object = None,
    *,
    config: RLSConfig | None = None,
) -> dict[str, IdentifierValue]:
    """Collect ``userId`` and every configured profile id.

    *identifier_source* is a mapping (camelCase or snake_case keys) or a
    principal object (snake_case attributes). Profile ids the source does
    not provide are present with value ``None``, so a policy that needs
    them denies instead of silently ignoring the filter.

    Example::

        collect_identifiers(3, {"technician_profile_id": 10})
        # {'userId': 3, 'customerProfileId': None, 'technicianProfileId': 10}
    """
    cfg = config if config is not None else get_global_config()
    identifiers: dict[str, IdentifierValue] = {USER_ID_KEY: user_id}
    for key, attribute in cfg.profile_identifiers:
        identifiers[key] = _read_identifier(identifier_source, key, attribute)
    return identifiers


def _resolve_filter_config(
    lookup: PolicyLookup,
    role: str,
    resource: str,
    *,
    config: RLSConfig,
    sink: SecuritySink | None,
) -> FilterConfig:
    raw = lookup(role, resource)
    # Raw None/False only mean something inside a permissions file, where
    # PolicyTable normalizes them. From a lookup they mean "no policy".
    if raw is not None and not isinstance(raw, bool):
        try:
            return parse_filter_config(raw, default_value_key=config.default_value_key)
        except PolicyConfigError:
            pass
    emit_security_event(
        "RLS_INVALID_FILTER_CONFIG",
        logging.ERROR,
        sink=sink,
        entity=resource,
        role=role,
        detail="policy lookup returned no usable policy; denying",
    )
    return DENY_ALL


def build_rls_context(
    role: str | None,
    user_id: IdentifierValue,
    resource: str | None,
    identifier_source: object = None,
    *,
    policy_lookup: PolicyLookup | None = None,
    config: RLSConfig | None = None,
    sink: SecuritySink | None = None,
    route: str | None = None,
) -> RLSContext:
    """Build the immutable RLS context for one request.

    Args:
        role: The authenticated caller's role.
        user_id: The caller's user id.
        resource: RLS resource name from the route's entity metadata.
        identifier_source: Mapping or principal providing profile ids.
        policy_lookup: ``(role, resource) -> FilterConfig``. Defaults to
            the default ``PolicyTable``. A lookup returning ``None``, a
            bool, or anything unparseable yields ``DENY_ALL``.
        config: Configuration. Defaults to the global config.
        sink: Security event sink. Defaults to the process sink.
        route: Route or URL being served, for diagnostics.

    Returns:
        A frozen ``RLSContext``.

    Raises:
        ConfigurationError: If *resource* is missing (route wiring bug).
        AuthorizationError: If *role* is missing, or the policy needs an
            identifier the caller lacks and ``on_missing_identifier`` is
            ``"raise"``.
        NoPolicyError: If the pair is unregistered and the policy table
            is configured with ``on_missing_policy="raise"``.

    Example::

        ctx = build_rls_context("technician", 3, "work_orders",
                                {"technician_profile_id": 10})
        ctx.identifiers["technicianProfileId"]  # 10
    """
    cfg = config if config is not None else get_global_config()

    if not resource:
        emit_security_event(
            "RLS_NO_ENTITY_METADATA",
            logging.ERROR,
            sink=sink,
            route=route,
            user_id=user_id,
        )
        raise ConfigurationError(
            "Route misconfiguration: entity metadata not attached",
            route=route,
        )

    if not role:
        emit_security_event(
            "RLS_NO_ROLE",
            logging.WARNING,
            sink=sink,
            route=route,
            user_id=user_id,
            resource=resource,
        )
        raise AuthorizationError("User has no assigned role", resource=resource)

    lookup = policy_lookup if policy_lookup is not None else get_default_table()
    filter_config = _resolve_filter_config(lookup, role, resource, config=cfg, sink=sink)
    identifiers = collect_identifiers(user_id, identifier_source, config=cfg)

    if (
        cfg.on_missing_identifier == "raise"
        and isinstance(filter_config, FieldEquals)
        and identifiers.get(filter_config.value_key) is None
    ):
        emit_security_event(
            "RLS_MISSING_IDENTIFIER",
            logging.WARNING,
            sink=sink,
            route=route,
            user_id=user_id,
            role=role,
            resource=resource,
            value_key=filter_config.value_key,
        )
        raise AuthorizationError(
            f"User has no {filter_config.value_key} required to access {resource}",
            resource=resource,
            role=role,
        )

    context = RLSContext(
        resource=resource,
        role=role,
        filter_config=filter_config,
        identifiers=identifiers,
    )
    emit_security_event(
        "RLS_CONTEXT_BUILT",
        logging.DEBUG,
        sink=sink,
        route=route,
        user_id=user_id,
        role=role,
        resource=resource,
        filter_config=describe_filter_config(filter_config),
    )
    return context


def context_for_principal(
    principal: PrincipalLike,
    resource: str | None,
    **kwargs: Any,
) -> RLSContext:
    """Build the RLS context for an authenticated principal object.

    Reads ``role`` and ``id`` from *principal* and its profile ids from
    the configured attributes.

    Example::

        ctx = context_for_principal(current_user, "invoices", route="/invoices")
    """
    return build_rls_context(
        getattr(principal, "role", None),
        getattr(principal, "id", None),
        resource,
        principal,
        **kwargs,
    )
