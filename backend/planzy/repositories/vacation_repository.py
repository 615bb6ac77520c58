from __future__ import annotations

from typing import Iterable

from planzy.models.orm import Vacation, VacationPlace
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from .base import BaseRepository


class VacationRepository(BaseRepository):
    """Vacation records and their ordered place links."""

    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def add(self, vacation: Vacation) -> Vacation:
        self.session.add(vacation)
        self.session.flush()
        return vacation

    def add_places(self, links: Iterable[VacationPlace]) -> list[VacationPlace]:
        items = list(links)
        self.session.add_all(items)
        self.session.flush()
        return items

    def get_with_places(self, vacation_id: str) -> Vacation | None:
        return (
            self.session.query(Vacation)
            .options(selectinload(Vacation.places).selectinload(VacationPlace.place))
            .filter(Vacation.id == vacation_id)
            .one_or_none()
        )

    def list_for_user(
        self, user_id: str, *, limit: int, offset: int
    ) -> list[tuple[Vacation, int]]:
        return (
            self.session.query(
                Vacation,
                func.count(VacationPlace.id).label("places_count"),
            )
            .outerjoin(VacationPlace, VacationPlace.vacation_id == Vacation.id)
            .filter(Vacation.user_id == user_id)
            .group_by(Vacation.id)
            .order_by(Vacation.created_at.desc(), Vacation.id)
            .offset(offset)
            .limit(limit)
            .all()
        )
