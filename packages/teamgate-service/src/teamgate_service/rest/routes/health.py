"""Health check endpoints. Public: never behind authentication."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from teamgate_service.db.engine import check_db

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
async def ready() -> JSONResponse:
    if await check_db():
        return JSONResponse({"status": "ready", "database": "ok"})
    return JSONResponse({"status": "not_ready", "database": "unreachable"}, status_code=503)
