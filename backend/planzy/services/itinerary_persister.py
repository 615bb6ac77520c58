from __future__ import annotations

from typing import Any, Callable

from anyio import to_thread
from planzy.core.db import session_scope
from planzy.core.logging import get_logger
from planzy.models.orm import Vacation, VacationPlace
from planzy.models.schemas import CandidatePlace, Itinerary
from planzy.repositories import PlaceRepository, VacationRepository
from planzy.services.errors import PersistError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session


def place_row(place: CandidatePlace) -> dict[str, Any]:
    return {
        "location_id": place.id,
        "name": place.name,
        "address": place.location.address,
        "latitude": place.location.latitude,
        "longitude": place.location.longitude,
        "rating": place.rating,
        "description": place.description,
        "photo_url": place.photo_url,
        "category": place.category,
    }


class ItineraryPersister:
    """Write an itinerary as shared places, a vacation and ordered links.

    The three steps commit independently. A failure in a later step leaves the
    earlier writes in place and is reported as ``PersistError``.
    """

    def __init__(self) -> None:
        self._logger = get_logger(__name__)

    async def persist(self, itinerary: Itinerary) -> None:
        await to_thread.run_sync(self.persist_sync, itinerary)

    def persist_sync(self, itinerary: Itinerary) -> None:
        places = [place for place in itinerary.places if place.id]
        rows: dict[str, dict[str, Any]] = {}
        for place in places:
            rows.setdefault(place.id, place_row(place))

        self._run_step("upsert_places", lambda s: self._upsert_places(s, rows))
        self._run_step("insert_vacation", lambda s: self._insert_vacation(s, itinerary))
        self._run_step(
            "insert_vacation_places",
            lambda s: self._insert_links(s, itinerary.id, places),
        )
        self._logger.info(
            "persist.done",
            extra={"vacation_id": itinerary.id, "places": len(places)},
        )

    def _run_step(self, step: str, action: Callable[[Session], Any]) -> None:
        try:
            with session_scope() as session:
                action(session)
        except SQLAlchemyError as exc:
            self._logger.error(
                "persist.step.failed", extra={"step": step, "error": str(exc)}
            )
            raise PersistError(f"{step} failed", step=step) from exc

    @staticmethod
    def _upsert_places(session: Session, rows: dict[str, dict[str, Any]]) -> None:
        PlaceRepository(session).upsert_many(rows.values())

    @staticmethod
    def _insert_vacation(session: Session, itinerary: Itinerary) -> None:
        VacationRepository(session).add(
            Vacation(
                id=itinerary.id,
                user_id=itinerary.owner_id,
                title=itinerary.title,
                created_at=itinerary.created_at,
            )
        )

    @staticmethod
    def _insert_links(
        session: Session, vacation_id: str, places: list[CandidatePlace]
    ) -> None:
        VacationRepository(session).add_places(
            VacationPlace(vacation_id=vacation_id, place_id=place.id, order_index=index)
            for index, place in enumerate(places)
        )
