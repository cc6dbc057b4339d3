"""Import fixtures from sqla_rls.testing for test discovery."""

from sqla_rls.testing._fixtures import (
    isolated_rls_state,
    recording_sink,
    rls_config,
    rls_policy_table,
)

__all__ = ["isolated_rls_state", "recording_sink", "rls_config", "rls_policy_table"]
