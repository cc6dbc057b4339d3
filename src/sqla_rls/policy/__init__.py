"""Policy values — filter configurations, the policy table, parent links."""

from sqla_rls.policy._filter import (
    ALL_RECORDS,
    DENY_ALL,
    PARENT_DELEGATED,
    AllRecords,
    DenyAll,
    FieldEquals,
    FilterConfig,
    ParentDelegated,
    describe_filter_config,
    filter_config_allows_access,
    parse_filter_config,
)
from sqla_rls.policy._parent import ParentLink, ParentLinkRegistry
from sqla_rls.policy._table import PolicyTable, get_default_table

__all__ = [
    "ALL_RECORDS",
    "AllRecords",
    "DENY_ALL",
    "DenyAll",
    "FieldEquals",
    "FilterConfig",
    "PARENT_DELEGATED",
    "ParentDelegated",
    "ParentLink",
    "ParentLinkRegistry",
    "PolicyTable",
    "describe_filter_config",
    "filter_config_allows_access",
    "get_default_table",
    "parse_filter_config",
]
