"""Public-facing routes (APP_ROLE=public)."""

from fastapi import APIRouter

from campspot.api.routes import owners, reservations

router = APIRouter()
router.include_router(reservations.router)
router.include_router(owners.router)


@router.get("/health")
def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}
