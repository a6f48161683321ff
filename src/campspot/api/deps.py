"""FastAPI dependencies shared by the route modules."""

from __future__ import annotations

from fastapi import Request

from campspot.services.reservation_service import ReservationService


def get_reservation_service(request: Request) -> ReservationService:
    """Service instance built by the app factory (overridable in tests)."""
    return request.app.state.reservation_service
