"""Tests for testing/_principals.py — MockPrincipal and factories."""

from __future__ import annotations

import pytest

from sqla_rls._types import PrincipalLike
from sqla_rls.testing import (
    MockPrincipal,
    make_admin,
    make_customer,
    make_technician,
    make_unassigned,
)


class TestMockPrincipal:
    def test_satisfies_protocol(self):
        assert isinstance(MockPrincipal(id=1), PrincipalLike)

    def test_frozen(self):
        with pytest.raises(AttributeError):
            MockPrincipal(id=1).role = "admin"  # type: ignore[misc]


class TestFactories:
    def test_admin(self):
        assert make_admin().role == "admin"

    def test_customer(self):
        customer = make_customer(customer_profile_id=46)
        assert customer.role == "customer"
        assert customer.customer_profile_id == 46

    def test_technician(self):
        tech = make_technician()
        assert tech.technician_profile_id == 10
        assert tech.customer_profile_id is None

    def test_unassigned(self):
        assert make_unassigned().role is None
