"""Worker/internal routes (APP_ROLE=worker)."""

from fastapi import APIRouter

from campspot.api.routes import tasks_reservations

router = APIRouter()
router.include_router(tasks_reservations.router)


@router.get("/tasks/health")
def tasks_health() -> dict:
    """Tasks subsystem health check."""
    return {"status": "ok", "subsystem": "tasks"}
