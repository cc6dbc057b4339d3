"""PolicyTable — stores and retrieves filter configurations per (role, resource)."""

from __future__ import annotations

import json
from collections.abc import Mapping

from sqla_rls.config._config import RLSConfig, get_global_config
from sqla_rls.exceptions import NoPolicyError, PolicyConfigError
from sqla_rls.policy._filter import DENY_ALL, FilterConfig, parse_filter_config

__all__ = ["PolicyTable", "get_default_table"]


class PolicyTable:
    """Table that maps ``(role, resource)`` pairs to filter configurations.

    Loaded once at process start and read-only afterwards. Instances are
    callable, so a table can be passed anywhere a ``PolicyLookup`` is
    expected.

    Example::

        table = PolicyTable()
        table.register("work_orders", "customer", {"field": "customer_id",
                                                   "value": "customerProfileId"})
        table.register("work_orders", "admin", None)
        table("customer", "work_orders")
        # FieldEquals(field='customer_id', value_key='customerProfileId')
    """

    def __init__(self, *, config: RLSConfig | None = None) -> None:
        self._policies: dict[tuple[str, str], FilterConfig] = {}
        self._config = config

    @property
    def config(self) -> RLSConfig:
        return self._config if self._config is not None else get_global_config()

    def register(self, resource: str, role: str, filter_config: object) -> FilterConfig:
        """Register the filter configuration for a ``(role, resource)`` pair.

        Raw permissions-file values are normalized with
        ``parse_filter_config``. Registering the same pair twice replaces
        the earlier value, keeping exactly one variant per pair.

        Raises:
            PolicyConfigError: If *filter_config* is malformed. Bad policy
                files fail at load time, not at request time.
        """
        try:
            config = parse_filter_config(
                filter_config, default_value_key=self.config.default_value_key
            )
        except PolicyConfigError as exc:
            raise PolicyConfigError(filter_config, resource=resource) from exc
        self._policies[(role, resource)] = config
        return config

    def lookup(self, role: str, resource: str) -> FilterConfig:
        """Return the filter configuration for ``(role, resource)``.

        Unregistered pairs resolve to ``DENY_ALL``, or raise
        ``NoPolicyError`` when ``on_missing_policy="raise"``.
        """
        config = self._policies.get((role, resource))
        if config is not None:
            return config
        if self.config.on_missing_policy == "raise":
            raise NoPolicyError(role=role, resource=resource)
        return DENY_ALL

    __call__ = lookup

    def has_policy(self, role: str, resource: str) -> bool:
        return (role, resource) in self._policies

    def roles_for(self, resource: str) -> set[str]:
        """Return every role with a registered policy for *resource*."""
        return {role for role, res in self._policies if res == resource}

    def resources(self) -> set[str]:
        return {res for _, res in self._policies}

    def clear(self) -> None:
        """Remove all registered policies. Primarily for test teardown."""
        self._policies.clear()

    def load_mapping(self, policies: Mapping[str, Mapping[str, object]]) -> None:
        """Register every ``{resource: {role: raw_value}}`` entry."""
        for resource, by_role in policies.items():
            if not isinstance(by_role, Mapping):
                raise PolicyConfigError(by_role, resource=resource)
            for role, raw in by_role.items():
                self.register(resource, role, raw)

    @classmethod
    def from_mapping(
        cls,
        policies: Mapping[str, Mapping[str, object]],
        *,
        config: RLSConfig | None = None,
    ) -> PolicyTable:
        """Build a table from ``{resource: {role: raw_value}}``.

        Example::

            table = PolicyTable.from_mapping({
                "invoices": {"customer": {"field": "customer_id",
                                          "value": "customerProfileId"},
                             "admin": None,
                             "technician": False},
            })
        """
        table = cls(config=config)
        table.load_mapping(policies)
        return table

    @classmethod
    def from_json(cls, document: str, *, config: RLSConfig | None = None) -> PolicyTable:
        """Build a table from a permissions JSON document.

        Accepts either a bare ``{resource: {role: value}}`` mapping or the
        permissions-file layout ``{"resources": {resource: {"rlsPolicy":
        {role: value}}}}``.
        """
        data = json.loads(document)
        if not isinstance(data, Mapping):
            raise PolicyConfigError(data)
        resources = data.get("resources")
        if isinstance(resources, Mapping):
            data = {
                name: entry.get("rlsPolicy", {})
                for name, entry in resources.items()
                if isinstance(entry, Mapping)
            }
        return cls.from_mapping(data, config=config)


# Module-level default table (singleton).
_default_table = PolicyTable()


def get_default_table() -> PolicyTable:
    """Return the process-wide default policy table.

    Used by ``build_rls_context`` when no explicit lookup is provided.
    """
    return _default_table
