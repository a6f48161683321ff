"""Tests for app factory and role-based routing."""

import os
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

from campspot.api.factory import create_app
from campspot.infra.store import PostgresReservationStore
from campspot.observability.correlation import CORRELATION_ID_HEADER
from campspot.services.reservation_service import ReservationService


def _service():
    return MagicMock(spec=ReservationService)


class TestPublicRole:
    def test_health_available(self):
        client = TestClient(create_app(role="public", service=_service()))
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_tasks_not_mounted(self):
        client = TestClient(create_app(role="public", service=_service()))
        assert client.get("/tasks/health").status_code == 404
        assert client.post("/tasks/reservations/complete-due").status_code == 404


class TestWorkerRole:
    def test_health_available(self):
        client = TestClient(create_app(role="worker", service=_service()))
        assert client.get("/health").status_code == 200

    def test_tasks_mounted(self):
        client = TestClient(create_app(role="worker", service=_service()))
        response = client.get("/tasks/health")
        assert response.status_code == 200
        assert response.json()["subsystem"] == "tasks"


class TestRoleFromEnv:
    def test_app_role_env(self):
        with patch.dict(os.environ, {"APP_ROLE": "worker"}):
            client = TestClient(create_app(service=_service()))
        assert client.get("/tasks/health").status_code == 200

    def test_defaults_to_public(self):
        with patch.dict(os.environ, {}, clear=True):
            client = TestClient(create_app(service=_service()))
        assert client.get("/tasks/health").status_code == 404


class TestServiceWiring:
    def test_default_service_uses_postgres_store(self):
        with patch.dict(os.environ, {}, clear=True):
            app = create_app(role="public")
        service = app.state.reservation_service
        assert isinstance(service, ReservationService)
        assert isinstance(service.store, PostgresReservationStore)


class TestCorrelationId:
    def test_echoes_incoming_header(self):
        client = TestClient(create_app(role="public", service=_service()))
        response = client.get("/health", headers={CORRELATION_ID_HEADER: "cid-123"})
        assert response.headers[CORRELATION_ID_HEADER] == "cid-123"

    def test_generates_when_missing(self):
        client = TestClient(create_app(role="public", service=_service()))
        response = client.get("/health")
        assert response.headers[CORRELATION_ID_HEADER]
