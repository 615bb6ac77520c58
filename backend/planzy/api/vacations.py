from __future__ import annotations

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from planzy.services.vacation_service import VacationNotFoundError, VacationService
from planzy.utils.responses import error_response, success_response

router = APIRouter(prefix="/api", tags=["vacations"])


def _service() -> VacationService:
    return VacationService()


@router.get(
    "/vacations",
    summary="List vacations",
    description="Vacations of a user, newest first, with their place counts.",
)
def list_vacations(
    user_id: str = Query(..., min_length=1, description="Owner id"),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> dict:
    items = _service().list_user_vacations(user_id, limit=limit, offset=offset)
    return success_response([item.model_dump(mode="json") for item in items])


@router.get(
    "/vacations/{vacation_id}",
    summary="Vacation detail",
    description="A vacation with its places in itinerary order.",
)
def get_vacation(vacation_id: str):
    try:
        vacation = _service().get_vacation(vacation_id)
    except VacationNotFoundError as exc:
        return JSONResponse(
            status_code=404, content=error_response(exc.message, code=exc.code)
        )
    return success_response(vacation.model_dump(mode="json"))
