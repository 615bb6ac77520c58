from __future__ import annotations

from planzy.core.db import session_scope
from planzy.models.schemas import VacationDetailSchema, VacationSchema
from planzy.repositories import VacationRepository


class VacationNotFoundError(Exception):
    def __init__(self, vacation_id: str) -> None:
        super().__init__(f"vacation not found: {vacation_id}")
        self.message = "Vacation not found"
        self.code = 14140
        self.vacation_id = vacation_id


def _ensure_positive_limit(
    limit: int, *, default: int = 20, max_limit: int = 100
) -> int:
    if limit <= 0:
        return default
    return min(limit, max_limit)


class VacationService:
    """Read side of persisted vacations."""

    def list_user_vacations(
        self, user_id: str, *, limit: int = 20, offset: int = 0
    ) -> list[VacationSchema]:
        with session_scope() as session:
            rows = VacationRepository(session).list_for_user(
                user_id,
                limit=_ensure_positive_limit(limit),
                offset=max(offset, 0),
            )
            return [
                VacationSchema.model_validate(vacation).model_copy(
                    update={"places_count": int(count or 0)}
                )
                for vacation, count in rows
            ]

    def get_vacation(self, vacation_id: str) -> VacationDetailSchema:
        with session_scope() as session:
            vacation = VacationRepository(session).get_with_places(vacation_id)
            if vacation is None:
                raise VacationNotFoundError(vacation_id)
            detail = VacationDetailSchema.model_validate(vacation)
            ordered = sorted(detail.places, key=lambda link: link.order_index)
            return detail.model_copy(
                update={"places": ordered, "places_count": len(ordered)}
            )
