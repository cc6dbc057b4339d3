"""sqla-rls testing utilities: principals, sinks, assertions and fixtures.

Provides test helpers for verifying RLS policies:

- **MockPrincipal / factories**: lightweight callers for tests.
- **RecordingSink**: captures security events in memory.
- **Assertion helpers**: ``assert_denies``, ``assert_restricts``,
  ``assert_unrestricted``, ``assert_params_consistent``.
- **Fixtures**: ``rls_policy_table``, ``rls_config``, ``recording_sink``,
  ``isolated_rls_state``.

Example::

    from sqla_rls.testing import assert_denies, make_customer

    def test_customer_without_profile_is_denied():
        ctx = context_for_principal(make_customer(customer_profile_id=None),
                                    "work_orders", policy_lookup=table)
        assert_denies(build_rls_filter(ctx, "work_orders"))
"""

from sqla_rls.testing._assertions import (
    assert_denies,
    assert_params_consistent,
    assert_restricts,
    assert_unrestricted,
)
from sqla_rls.testing._fixtures import (
    isolated_rls_state,
    recording_sink,
    rls_config,
    rls_policy_table,
)
from sqla_rls.testing._isolation import isolated_rls
from sqla_rls.testing._principals import (
    MockPrincipal,
    make_admin,
    make_customer,
    make_technician,
    make_unassigned,
)
from sqla_rls.testing._sinks import RecordingSink

__all__ = [
    "MockPrincipal",
    "RecordingSink",
    "assert_denies",
    "assert_params_consistent",
    "assert_restricts",
    "assert_unrestricted",
    "isolated_rls",
    "isolated_rls_state",
    "make_admin",
    "make_customer",
    "make_technician",
    "make_unassigned",
    "recording_sink",
    "rls_config",
    "rls_policy_table",
]
