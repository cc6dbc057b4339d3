"""Layered configuration for sqla-rls."""

from __future__ import annotations

import re
from dataclasses import dataclass

from sqla_rls._types import OnMissingIdentifier, OnMissingPolicy

__all__ = [
    "DEFAULT_PROFILE_IDENTIFIERS",
    "USER_ID_KEY",
    "RLSConfig",
    "configure",
    "get_global_config",
    "_reset_global_config",
    "_set_global_config",
]

_VALID_MISSING_POLICY: set[str] = {"deny", "raise"}
_VALID_MISSING_IDENTIFIER: set[str] = {"deny", "raise"}
_IDENTIFIER_KEY = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Context key holding the authenticated user's id.
USER_ID_KEY = "userId"

# (context key, principal attribute) pairs resolved for every request.
DEFAULT_PROFILE_IDENTIFIERS: tuple[tuple[str, str], ...] = (
    ("customerProfileId", "customer_profile_id"),
    ("technicianProfileId", "technician_profile_id"),
)


@dataclass(frozen=True, slots=True)
class RLSConfig:
    """Layered configuration with merge semantics (global -> request).

    Attributes:
        on_missing_policy: Behavior when no filter configuration is
            registered for ``(role, resource)``. ``"deny"`` returns zero
            rows, ``"raise"`` raises ``NoPolicyError``.
        on_missing_identifier: Behavior when a ``FieldEquals`` policy
            references an identifier the caller does not have.
            ``"deny"`` returns zero rows, ``"raise"`` makes the context
            builder raise ``AuthorizationError``.
        default_value_key: Identifier bound by shorthand string policies.
        profile_identifiers: ``(context key, principal attribute)`` pairs
            always present in the context identifiers.
        log_policy_decisions: Log every interpreter decision at DEBUG.
        max_parent_depth: How many ``$parent`` hops are followed before
            denying.

    Example::

        config = RLSConfig(on_missing_policy="raise")
        merged = config.merge(log_policy_decisions=True)
    """

    on_missing_policy: OnMissingPolicy = "deny"
    on_missing_identifier: OnMissingIdentifier = "deny"
    default_value_key: str = "userId"
    profile_identifiers: tuple[tuple[str, str], ...] = DEFAULT_PROFILE_IDENTIFIERS
    log_policy_decisions: bool = False
    max_parent_depth: int = 3

    def __post_init__(self) -> None:
        if self.on_missing_policy not in _VALID_MISSING_POLICY:
            raise ValueError(
                f"on_missing_policy must be one of {_VALID_MISSING_POLICY!r}, "
                f"got {self.on_missing_policy!r}"
            )
        if self.on_missing_identifier not in _VALID_MISSING_IDENTIFIER:
            raise ValueError(
                f"on_missing_identifier must be one of {_VALID_MISSING_IDENTIFIER!r}, "
                f"got {self.on_missing_identifier!r}"
            )
        if not _IDENTIFIER_KEY.match(self.default_value_key):
            raise ValueError(
                f"default_value_key must be a plain identifier, got {self.default_value_key!r}"
            )
        for pair in self.profile_identifiers:
            if len(pair) != 2 or not all(_IDENTIFIER_KEY.match(part) for part in pair):
                raise ValueError(
                    f"profile_identifiers entries must be (key, attribute) pairs, got {pair!r}"
                )
        if self.max_parent_depth < 1:
            raise ValueError(f"max_parent_depth must be >= 1, got {self.max_parent_depth!r}")

    @property
    def identifier_keys(self) -> tuple[str, ...]:
        """All identifier keys a context carries, ``userId`` first."""
        return (USER_ID_KEY, *(key for key, _ in self.profile_identifiers))

    def merge(
        self,
        *,
        on_missing_policy: OnMissingPolicy | None = None,
        on_missing_identifier: OnMissingIdentifier | None = None,
        default_value_key: str | None = None,
        profile_identifiers: tuple[tuple[str, str], ...] | None = None,
        log_policy_decisions: bool | None = None,
        max_parent_depth: int | None = None,
    ) -> RLSConfig:
        """Return a new config with non-None overrides applied.

        Example::

            base = RLSConfig()
            strict = base.merge(on_missing_identifier="raise")
        """
        return RLSConfig(
            on_missing_policy=(
                on_missing_policy if on_missing_policy is not None else self.on_missing_policy
            ),
            on_missing_identifier=(
                on_missing_identifier
                if on_missing_identifier is not None
                else self.on_missing_identifier
            ),
            default_value_key=(
                default_value_key if default_value_key is not None else self.default_value_key
            ),
            profile_identifiers=(
                profile_identifiers
                if profile_identifiers is not None
                else self.profile_identifiers
            ),
            log_policy_decisions=(
                log_policy_decisions
                if log_policy_decisions is not None
                else self.log_policy_decisions
            ),
            max_parent_depth=(
                max_parent_depth if max_parent_depth is not None else self.max_parent_depth
            ),
        )


# ---------------------------------------------------------------------------
# Global configuration singleton
# ---------------------------------------------------------------------------

_global_config = RLSConfig()


def get_global_config() -> RLSConfig:
    """Return the current global configuration."""
    return _global_config


def configure(
    *,
    on_missing_policy: OnMissingPolicy | None = None,
    on_missing_identifier: OnMissingIdentifier | None = None,
    default_value_key: str | None = None,
    profile_identifiers: tuple[tuple[str, str], ...] | None = None,
    log_policy_decisions: bool | None = None,
    max_parent_depth: int | None = None,
) -> RLSConfig:
    """Update the global configuration by merging overrides.

    Only non-None values are applied. Returns the new global config.

    Example::

        configure(on_missing_policy="raise")
        # Unregistered (role, resource) pairs now raise NoPolicyError
    """
    global _global_config
    _global_config = _global_config.merge(
        on_missing_policy=on_missing_policy,
        on_missing_identifier=on_missing_identifier,
        default_value_key=default_value_key,
        profile_identifiers=profile_identifiers,
        log_policy_decisions=log_policy_decisions,
        max_parent_depth=max_parent_depth,
    )
    return _global_config


def _set_global_config(cfg: RLSConfig) -> None:
    """Replace global config with an exact snapshot. For testing only."""
    global _global_config
    _global_config = cfg


def _reset_global_config() -> None:
    """Reset global config to defaults. For testing only."""
    global _global_config
    _global_config = RLSConfig()
