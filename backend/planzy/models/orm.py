from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa
from planzy.models import Base
from sqlalchemy.orm import Mapped, mapped_column, relationship

BIGINT_TYPE = sa.BigInteger().with_variant(sa.Integer, "sqlite")


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
        onupdate=sa.func.now(),
    )


class Place(TimestampMixin, Base):
    """Shared place record, one row per provider location id."""

    __tablename__ = "places"
    __table_args__ = (
        sa.UniqueConstraint("location_id", name="uq_places_location_id"),
    )

    id: Mapped[int] = mapped_column(
        BIGINT_TYPE,
        primary_key=True,
        autoincrement=True,
    )
    location_id: Mapped[str] = mapped_column(sa.String(64), nullable=False)
    name: Mapped[str] = mapped_column(sa.String(255))
    address: Mapped[str | None] = mapped_column(sa.String(512), nullable=True)
    latitude: Mapped[float | None] = mapped_column(sa.Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(sa.Float, nullable=True)
    rating: Mapped[float | None] = mapped_column(sa.Float, nullable=True)
    description: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    photo_url: Mapped[str | None] = mapped_column(sa.String(1024), nullable=True)
    category: Mapped[str | None] = mapped_column(sa.String(128), nullable=True)

    vacation_links: Mapped[list["VacationPlace"]] = relationship(
        back_populates="place"
    )


class Vacation(Base):
    __tablename__ = "vacations"
    __table_args__ = (sa.Index("ix_vacations_user_id", "user_id"),)

    id: Mapped[str] = mapped_column(sa.String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(sa.String(64), nullable=False)
    title: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )

    places: Mapped[list["VacationPlace"]] = relationship(
        back_populates="vacation",
        cascade="all, delete-orphan",
        order_by="VacationPlace.order_index",
    )


class VacationPlace(Base):
    """Ordered link between a vacation and a shared place."""

    __tablename__ = "vacation_places"
    __table_args__ = (
        sa.UniqueConstraint(
            "vacation_id", "order_index", name="uq_vacation_places_order"
        ),
    )

    id: Mapped[int] = mapped_column(
        BIGINT_TYPE,
        primary_key=True,
        autoincrement=True,
    )
    vacation_id: Mapped[str] = mapped_column(
        sa.String(64),
        sa.ForeignKey("vacations.id", ondelete="CASCADE"),
        nullable=False,
    )
    place_id: Mapped[str] = mapped_column(
        sa.String(64),
        sa.ForeignKey("places.location_id", ondelete="CASCADE"),
        nullable=False,
    )
    order_index: Mapped[int] = mapped_column(
        sa.Integer,
        nullable=False,
        server_default=sa.text("0"),
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )

    vacation: Mapped["Vacation"] = relationship(back_populates="places")
    place: Mapped["Place"] = relationship(back_populates="vacation_links")


__all__ = [
    "Place",
    "Vacation",
    "VacationPlace",
]
