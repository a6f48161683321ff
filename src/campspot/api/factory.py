"""FastAPI application factory with role-based route mounting."""

import os
from typing import Literal

from fastapi import FastAPI, Request, Response

from campspot.infra.notifier import OutboxNotifier
from campspot.infra.store import PostgresReservationStore
from campspot.observability.correlation import (
    CORRELATION_ID_HEADER,
    generate_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)
from campspot.observability.logging import configure_logging
from campspot.services.reservation_service import ReservationService

from .routers import public, worker

AppRole = Literal["public", "worker"]


def create_app(
    role: AppRole | None = None,
    service: ReservationService | None = None,
) -> FastAPI:
    """Create FastAPI app with routes based on APP_ROLE.

    Args:
        role: Explicit role override. If None, reads from APP_ROLE env var.
              Defaults to "public" if env var is not set.
        service: Reservation service to serve. If None, one is built over
              the PostgreSQL store and the outbox notifier.

    Returns:
        Configured FastAPI application.
    """
    if role is None:
        role = os.environ.get("APP_ROLE", "public")  # type: ignore[assignment]

    configure_logging(os.environ.get("LOG_LEVEL", "INFO"))

    app = FastAPI(
        title="Campspot Reservations",
        docs_url=None,
        redoc_url=None,
    )

    if service is None:
        service = ReservationService(PostgresReservationStore(), OutboxNotifier())
    app.state.reservation_service = service

    # Correlation ID middleware
    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        cid = request.headers.get(CORRELATION_ID_HEADER) or generate_correlation_id()
        token = set_correlation_id(cid)
        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = cid
            return response
        finally:
            reset_correlation_id(token)

    # Mount public routes (always)
    app.include_router(public.router)

    # Mount worker routes only for worker role
    if role == "worker":
        app.include_router(worker.router)

    return app
