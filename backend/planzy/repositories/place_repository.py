from __future__ import annotations

from typing import Any, Iterable

from planzy.models.orm import Place
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from .base import BaseRepository

UPSERT_COLUMNS = (
    "name",
    "address",
    "latitude",
    "longitude",
    "rating",
    "description",
    "photo_url",
    "category",
)


class PlaceRepository(BaseRepository):
    """Shared place records keyed by provider location id."""

    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def get_by_location_id(self, location_id: str) -> Place | None:
        return self.session.execute(
            select(Place).where(Place.location_id == location_id)
        ).scalar_one_or_none()

    def upsert_many(self, rows: Iterable[dict[str, Any]]) -> int:
        """Insert rows, overwriting existing ones with the same location id."""

        payloads = list(rows)
        if not payloads:
            return 0
        dialect = self.session.bind.dialect.name if self.session.bind else ""
        if dialect == "postgresql":
            insert_fn = postgresql.insert
        elif dialect == "sqlite":
            insert_fn = sqlite.insert
        else:
            for row in payloads:
                self._merge(row)
            return len(payloads)

        for chunk in self._chunk(payloads, 100):
            stmt = insert_fn(Place.__table__).values(chunk)
            stmt = stmt.on_conflict_do_update(
                index_elements=["location_id"],
                set_={column: stmt.excluded[column] for column in UPSERT_COLUMNS},
            )
            self.session.execute(stmt)
        return len(payloads)

    def _merge(self, row: dict[str, Any]) -> None:
        existing = self.get_by_location_id(row["location_id"])
        if existing is None:
            self.session.add(Place(**row))
            self.session.flush()
            return
        for column in UPSERT_COLUMNS:
            setattr(existing, column, row.get(column))

    @staticmethod
    def _chunk(
        items: list[dict[str, Any]],
        size: int,
    ) -> Iterable[list[dict[str, Any]]]:
        for idx in range(0, len(items), size):
            yield items[idx : idx + size]
