from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from planzy.models.schemas import PlanVacationPayload
from planzy.services.planner_metrics import get_planner_metrics
from planzy.services.vacation_planner_service import (
    VacationPlannerError,
    VacationPlannerService,
    get_vacation_planner_service,
)
from planzy.utils.responses import error_response, success_response

router = APIRouter(prefix="/api/planner", tags=["planner"])


def _service() -> VacationPlannerService:
    return get_vacation_planner_service()


@router.post(
    "/vacations",
    summary="Create a vacation from text",
    description=(
        "Parses the request, searches hotels, restaurants and attractions around "
        "the destination and stores the result as a new vacation."
    ),
)
async def create_vacation_from_text(payload: PlanVacationPayload):
    service = _service()
    try:
        result = await service.create_vacation_from_text(payload.user_id, payload.text)
    except VacationPlannerError as exc:
        return JSONResponse(
            status_code=400, content=error_response(exc.message, code=exc.code)
        )
    return success_response(result.model_dump(mode="json"), msg=result.message)


@router.get(
    "/metrics",
    summary="Planner metrics",
    description="Counters and recent history of vacation synthesis runs.",
)
def read_planner_metrics() -> dict:
    return success_response(get_planner_metrics().snapshot())
