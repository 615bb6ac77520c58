from __future__ import annotations

import pytest
from planzy.core.db import session_scope
from planzy.models.orm import Vacation, VacationPlace
from planzy.repositories import VacationRepository
from planzy.services.itinerary_assembler import ItineraryAssembler
from planzy.services.planner_metrics import get_planner_metrics
from planzy.services.vacation_planner_service import (
    MSG_CITY_NOT_FOUND,
    MSG_CREATE_FAILED,
    MSG_DESCRIBE_VACATION,
    MSG_DESTINATION_UNAVAILABLE,
    MSG_NOT_UNDERSTOOD,
    VacationPlannerError,
    VacationPlannerService,
)
from sqlalchemy.exc import SQLAlchemyError

from backend.tests.utils.providers import rome_provider


def _service(provider=None) -> VacationPlannerService:
    return VacationPlannerService(
        assembler=ItineraryAssembler(provider=provider or rome_provider())
    )


@pytest.mark.asyncio
async def test_creates_vacation_from_text():
    service = _service()
    result = await service.create_vacation_from_text(
        "user-7", "Weekend trip to Rome for 1 day"
    )
    assert result.vacation.title == "Trip to Rome"
    assert result.vacation.user_id == "user-7"
    # 1 hotel, 2 restaurants, 1 attraction available from the scripted provider
    assert result.places_added == 4
    with session_scope() as session:
        assert session.get(Vacation, result.vacation.id) is not None
        assert session.query(VacationPlace).count() == 4
    snapshot = get_planner_metrics().snapshot()
    assert snapshot["calls"] == 1
    assert snapshot["failures"] == 0


@pytest.mark.asyncio
async def test_blank_text_is_rejected_before_any_lookup():
    provider = rome_provider()
    with pytest.raises(VacationPlannerError) as excinfo:
        await _service(provider).create_vacation_from_text("user-7", "   ")
    assert excinfo.value.message == MSG_DESCRIBE_VACATION
    assert provider.calls == []


@pytest.mark.asyncio
async def test_unparseable_text_makes_no_network_calls():
    provider = rome_provider()
    with pytest.raises(VacationPlannerError) as excinfo:
        await _service(provider).create_vacation_from_text("user-7", "hello there")
    assert excinfo.value.message == MSG_NOT_UNDERSTOOD
    assert provider.calls == []


@pytest.mark.asyncio
async def test_unknown_destination_is_reported():
    with pytest.raises(VacationPlannerError) as excinfo:
        await _service().create_vacation_from_text("user-7", "Take me to Atlantis")
    assert excinfo.value.message == MSG_CITY_NOT_FOUND
    with session_scope() as session:
        assert session.query(Vacation).count() == 0
    assert get_planner_metrics().snapshot()["errors"] == {"DestinationNotFound": 1}


@pytest.mark.asyncio
async def test_destination_details_failure_is_reported():
    provider = rome_provider(failing=[("get_details", "geo-rome")])
    with pytest.raises(VacationPlannerError) as excinfo:
        await _service(provider).create_vacation_from_text("user-7", "Trip to Rome")
    assert excinfo.value.message == MSG_DESTINATION_UNAVAILABLE


@pytest.mark.asyncio
async def test_persist_failure_is_reported(monkeypatch):
    def _boom(self, vacation):
        raise SQLAlchemyError("insert failed")

    monkeypatch.setattr(VacationRepository, "add", _boom)
    with pytest.raises(VacationPlannerError) as excinfo:
        await _service().create_vacation_from_text("user-7", "Trip to Rome")
    assert excinfo.value.message == MSG_CREATE_FAILED
