"""Shared test fixtures for sqla-rls tests."""

from __future__ import annotations

import pytest
from sqlalchemy import ForeignKey, Integer, String, create_engine
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    Session,
    mapped_column,
    sessionmaker,
)

from sqla_rls.policy._parent import ParentLink, ParentLinkRegistry
from sqla_rls.policy._table import PolicyTable

# ---------------------------------------------------------------------------
# Test models
# ---------------------------------------------------------------------------


class Base(DeclarativeBase):
    pass


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    user_id: Mapped[int] = mapped_column(Integer)


class WorkOrder(Base):
    __tablename__ = "work_orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(200))
    status: Mapped[str] = mapped_column(String(20), default="open")
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id"))
    assigned_technician_id: Mapped[int | None] = mapped_column(Integer, nullable=True)


class WorkOrderFile(Base):
    __tablename__ = "work_order_files"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    filename: Mapped[str] = mapped_column(String(200))
    work_order_id: Mapped[int] = mapped_column(ForeignKey("work_orders.id"))


# Permissions-file shaped policies used across the suite.
POLICIES: dict[str, dict[str, object]] = {
    "work_orders": {
        "admin": None,
        "dispatcher": None,
        "customer": {"field": "customer_id", "value": "customerProfileId"},
        "technician": {"field": "assigned_technician_id", "value": "technicianProfileId"},
        "auditor": False,
    },
    "customers": {
        "admin": None,
        "customer": {"field": "id", "value": "customerProfileId"},
        "technician": False,
    },
    "work_order_files": {
        "admin": None,
        "customer": "$parent",
        "technician": "$parent",
    },
    "notifications": {
        "admin": None,
        "customer": "user_id",
    },
}

FILES_LINK = ParentLink(
    child_resource="work_order_files",
    child_table="work_order_files",
    foreign_key="work_order_id",
    parent_resource="work_orders",
    parent_table="work_orders",
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def policy_table() -> PolicyTable:
    """A policy table loaded from ``POLICIES``."""
    return PolicyTable.from_mapping(POLICIES)


@pytest.fixture()
def parent_links() -> ParentLinkRegistry:
    links = ParentLinkRegistry()
    links.register(FILES_LINK)
    return links


@pytest.fixture()
def engine():
    """Create an in-memory SQLite engine with all tables."""
    eng = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(eng)
    return eng


@pytest.fixture()
def session(engine):
    """Provide a transactional session that rolls back after each test."""
    factory = sessionmaker(bind=engine)
    sess = factory()
    try:
        yield sess
    finally:
        sess.rollback()
        sess.close()


@pytest.fixture()
def sample_data(session: Session) -> dict[str, list]:
    """Seed the database with customers, work orders and files."""
    acme = Customer(id=45, name="Acme", user_id=2)
    globex = Customer(id=46, name="Globex", user_id=5)
    session.add_all([acme, globex])

    orders = [
        WorkOrder(id=1, title="Fix boiler", status="open", customer_id=45,
                  assigned_technician_id=10),
        WorkOrder(id=2, title="Replace filter", status="closed", customer_id=45,
                  assigned_technician_id=10),
        WorkOrder(id=3, title="Inspect roof", status="open", customer_id=46,
                  assigned_technician_id=11),
        WorkOrder(id=4, title="Paint fence", status="open", customer_id=46,
                  assigned_technician_id=10),
    ]
    session.add_all(orders)

    files = [
        WorkOrderFile(id=1, filename="boiler.jpg", work_order_id=1),
        WorkOrderFile(id=2, filename="roof.pdf", work_order_id=3),
        WorkOrderFile(id=3, filename="fence.png", work_order_id=4),
    ]
    session.add_all(files)

    session.flush()
    return {
        "customers": [acme, globex],
        "work_orders": orders,
        "work_order_files": files,
    }
