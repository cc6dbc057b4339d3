"""Parent links — how a sub-entity reaches the entity that owns its access."""

from __future__ import annotations

from dataclasses import dataclass

from sqla_rls.policy._filter import is_sql_identifier

__all__ = ["ParentLink", "ParentLinkRegistry"]


@dataclass(frozen=True, slots=True)
class ParentLink:
    """Join path from a ``$parent`` sub-entity to its parent entity.

    Attributes:
        child_resource: RLS resource name of the sub-entity.
        child_table: Table (or alias) of the sub-entity.
        foreign_key: Column on the child referencing the parent.
        parent_resource: RLS resource whose policy governs access.
        parent_table: Table of the parent entity.
        parent_key: Referenced column on the parent, ``"id"`` by default.

    Example::

        ParentLink(
            child_resource="work_order_files",
            child_table="work_order_files",
            foreign_key="work_order_id",
            parent_resource="work_orders",
            parent_table="work_orders",
        )
    """

    child_resource: str
    child_table: str
    foreign_key: str
    parent_resource: str
    parent_table: str
    parent_key: str = "id"

    def __post_init__(self) -> None:
        for name in ("child_table", "foreign_key", "parent_table", "parent_key"):
            value = getattr(self, name)
            if not is_sql_identifier(value):
                raise ValueError(f"ParentLink.{name} must be a plain SQL identifier, got {value!r}")


class ParentLinkRegistry:
    """Registry of parent links keyed by child resource.

    Example::

        links = ParentLinkRegistry()
        links.register(ParentLink("work_order_files", "work_order_files",
                                  "work_order_id", "work_orders", "work_orders"))
        links.lookup("work_order_files").parent_resource  # 'work_orders'
    """

    def __init__(self) -> None:
        self._links: dict[str, ParentLink] = {}

    def register(self, link: ParentLink) -> None:
        self._links[link.child_resource] = link

    def lookup(self, child_resource: str) -> ParentLink | None:
        return self._links.get(child_resource)

    def __contains__(self, child_resource: object) -> bool:
        return child_resource in self._links

    def clear(self) -> None:
        self._links.clear()
