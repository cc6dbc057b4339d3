"""sqla-rls: row-level security filtering for SQLAlchemy-backed APIs.

Turns per-role, per-resource filter configurations into parameterized
WHERE predicates, composes them with search/filter clauses, and audits
that every handler actually applied them.

Example::

    from sqla_rls import PolicyTable, build_rls_context, build_rls_filter, compose_predicate

    table = PolicyTable.from_mapping({
        "work_orders": {
            "admin": None,
            "technician": {"field": "assigned_technician_id",
                           "value": "technicianProfileId"},
        },
    })
    ctx = build_rls_context("technician", 3, "work_orders",
                            {"technician_profile_id": 10}, policy_lookup=table)
    rls = build_rls_filter(ctx, "work_orders", parameter_offset=1)
    composed = compose_predicate("status = $1", ["open"], rls)
    # WHERE status = $1 AND work_orders.assigned_technician_id = $2
"""

from importlib.metadata import PackageNotFoundError, version

from sqla_rls._audit import (
    LoggingSecuritySink,
    SecurityEvent,
    SecuritySink,
    emit_security_event,
    set_default_sink,
)
from sqla_rls._enforcement import assert_rls_applied, rls_was_applied
from sqla_rls._types import PolicyLookup, PrincipalLike
from sqla_rls.compiler._compose import ComposedWhere, compose_predicate
from sqla_rls.compiler._interpret import interpret_filter_config
from sqla_rls.compiler._predicate import PredicateResult
from sqla_rls.compiler._query import (
    authorize_select,
    build_rls_filter,
    build_rls_filter_for_find_by_id,
)
from sqla_rls.config._config import RLSConfig, configure
from sqla_rls.context._builder import build_rls_context, context_for_principal
from sqla_rls.context._context import RLSContext
from sqla_rls.exceptions import (
    AuthorizationError,
    ConfigurationError,
    EnforcementViolation,
    NoPolicyError,
    PolicyConfigError,
    RLSError,
)
from sqla_rls.policy._filter import (
    ALL_RECORDS,
    DENY_ALL,
    PARENT_DELEGATED,
    AllRecords,
    DenyAll,
    FieldEquals,
    FilterConfig,
    ParentDelegated,
)
from sqla_rls.policy._parent import ParentLink, ParentLinkRegistry
from sqla_rls.policy._table import PolicyTable

try:
    __version__ = version("sqla-rls")
except PackageNotFoundError:
    __version__ = "dev"

__all__ = [
    "__version__",
    "ALL_RECORDS",
    "AllRecords",
    "AuthorizationError",
    "ComposedWhere",
    "ConfigurationError",
    "DENY_ALL",
    "DenyAll",
    "EnforcementViolation",
    "FieldEquals",
    "FilterConfig",
    "LoggingSecuritySink",
    "NoPolicyError",
    "PARENT_DELEGATED",
    "ParentDelegated",
    "ParentLink",
    "ParentLinkRegistry",
    "PolicyConfigError",
    "PolicyLookup",
    "PolicyTable",
    "PredicateResult",
    "PrincipalLike",
    "RLSConfig",
    "RLSContext",
    "RLSError",
    "SecurityEvent",
    "SecuritySink",
    "assert_rls_applied",
    "authorize_select",
    "build_rls_context",
    "build_rls_filter",
    "build_rls_filter_for_find_by_id",
    "compose_predicate",
    "configure",
    "context_for_principal",
    "emit_security_event",
    "interpret_filter_config",
    "rls_was_applied",
    "set_default_sink",
]
