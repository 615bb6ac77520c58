from fastapi import APIRouter
from planzy.core.db import check_db_health
from planzy.utils.responses import success_response

router = APIRouter()


@router.get("/healthz")
def read_healthz() -> dict:
    """Basic liveness probe endpoint."""

    return success_response({"status": "ok"})


@router.get("/healthz/db")
async def read_db_health() -> dict:
    return success_response(await check_db_health())
