"""Tests for FastAPI error handlers."""

from __future__ import annotations

import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from sqla_rls.exceptions import (
    AuthorizationError,
    ConfigurationError,
    EnforcementViolation,
    NoPolicyError,
)
from sqla_rls.integrations.fastapi._errors import install_error_handlers


@pytest.fixture()
def app() -> FastAPI:
    """Create a minimal FastAPI app with error handlers installed."""
    app = FastAPI()
    install_error_handlers(app)

    @app.get("/no-role")
    async def trigger_no_role() -> None:
        raise AuthorizationError(resource="work_orders")

    @app.get("/misconfigured")
    async def trigger_misconfigured() -> None:
        raise ConfigurationError(
            "Route misconfiguration: entity metadata not attached", route="/misconfigured"
        )

    @app.get("/no-policy")
    async def trigger_no_policy() -> None:
        raise NoPolicyError(role="auditor", resource="invoices")

    @app.get("/violation")
    async def trigger_violation() -> None:
        raise EnforcementViolation(
            resource="customers",
            role="customer",
            filter_description="filter_by_id_via_customerProfileId",
        )

    return app


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


class TestAuthorizationErrorHandler:
    def test_returns_403(self, client: TestClient) -> None:
        assert client.get("/no-role").status_code == 403

    def test_body(self, client: TestClient) -> None:
        body = client.get("/no-role").json()
        assert body == {
            "detail": "User has no assigned role",
            "code": "AUTH_INSUFFICIENT_PERMISSIONS",
        }


class TestConfigurationErrorHandler:
    def test_returns_500(self, client: TestClient) -> None:
        assert client.get("/misconfigured").status_code == 500

    def test_does_not_leak_details(self, client: TestClient) -> None:
        body = client.get("/misconfigured").json()
        assert body["detail"] == "Internal server error"
        assert "entity metadata" not in body["detail"]

    def test_subclasses_handled(self, client: TestClient) -> None:
        response = client.get("/no-policy")
        assert response.status_code == 500
        assert "auditor" not in response.text

    def test_logged(self, client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR, logger="sqla_rls"):
            client.get("/misconfigured")
        assert any("entity metadata" in r.getMessage() for r in caplog.records)


class TestEnforcementViolationHandler:
    def test_returns_500(self, client: TestClient) -> None:
        response = client.get("/violation")
        assert response.status_code == 500
        assert response.json()["code"] == "RLS_VALIDATION_FAILED"

    def test_does_not_leak_filter(self, client: TestClient) -> None:
        assert "customerProfileId" not in client.get("/violation").text
