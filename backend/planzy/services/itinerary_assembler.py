from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Iterable

import anyio
from planzy.core.logging import get_logger
from planzy.core.settings import settings
from planzy.models.schemas import (
    CandidatePlace,
    Itinerary,
    SearchResultStub,
    SearchTask,
    TravelIntent,
)
from planzy.services import fanout_planner
from planzy.services.errors import (
    DestinationCoordinatesMissing,
    DestinationDetailsUnavailable,
    DestinationNotFound,
    ProviderError,
)
from planzy.services.place_mapper import format_lat_long
from planzy.services.place_provider import PlaceProvider, get_place_provider


def dedupe_places(places: Iterable[CandidatePlace]) -> list[CandidatePlace]:
    """Drop repeated place ids, keeping the first occurrence in order."""

    seen: set[str | None] = set()
    unique: list[CandidatePlace] = []
    for place in places:
        if place.id in seen:
            continue
        seen.add(place.id)
        unique.append(place)
    return unique


def build_title(destination: str) -> str:
    return f"Trip to {destination}"


class ItineraryAssembler:
    """Resolve the destination, run the category fan-out and build an itinerary.

    Searches and per-candidate lookups run concurrently, bounded by a capacity
    limiter. Every task writes into its own buffer and every candidate into its
    own slot, so the result is always task order then discovery order no matter
    which call finishes first. Provider failures below the destination step only
    shrink the result.
    """

    def __init__(
        self,
        *,
        provider: PlaceProvider | None = None,
        max_concurrency: int | None = None,
    ) -> None:
        self._provider = provider or get_place_provider()
        self._max_concurrency = max(
            int(max_concurrency or settings.planner_max_concurrency), 1
        )
        self._logger = get_logger(__name__)

    async def assemble(self, intent: TravelIntent, owner_id: str) -> Itinerary:
        destination = await self._resolve_destination(intent.destination)
        lat = destination.location.latitude
        lng = destination.location.longitude
        if lat is None or lng is None:
            raise DestinationCoordinatesMissing(intent.destination)
        lat_long = format_lat_long(lat, lng)

        tasks = fanout_planner.plan(intent.preferences)
        buffers = await self._run_tasks(tasks, lat_long)
        resolved = [place for buffer in buffers for place in buffer]
        places = dedupe_places(resolved)

        self._logger.info(
            "planner.assemble.done",
            extra={
                "destination": intent.destination,
                "tasks": len(tasks),
                "resolved": len(resolved),
                "places": len(places),
            },
        )
        return Itinerary(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            title=build_title(intent.destination),
            created_at=datetime.now(timezone.utc),
            places=places,
        )

    async def _resolve_destination(self, destination: str) -> CandidatePlace:
        try:
            results = await self._provider.search_by_text(destination)
        except ProviderError as exc:
            self._logger.warning(
                "planner.destination.search_failed",
                extra={"destination": destination, "error": exc.message},
            )
            raise DestinationNotFound(destination) from exc
        if not results:
            raise DestinationNotFound(destination)

        try:
            details = await self._provider.get_details(results[0].location_id)
        except ProviderError as exc:
            self._logger.warning(
                "planner.destination.details_failed",
                extra={"destination": destination, "error": exc.message},
            )
            raise DestinationDetailsUnavailable(destination) from exc
        if details is None:
            raise DestinationDetailsUnavailable(destination)
        return details

    async def _run_tasks(
        self, tasks: list[SearchTask], lat_long: str
    ) -> list[list[CandidatePlace]]:
        slots: list[list[CandidatePlace | None]] = [[] for _ in tasks]
        limiter = anyio.CapacityLimiter(self._max_concurrency)
        async with anyio.create_task_group() as group:
            for index, task in enumerate(tasks):
                group.start_soon(self._run_task, task, lat_long, slots, index, limiter)
        return [[place for place in buffer if place is not None] for buffer in slots]

    async def _run_task(
        self,
        task: SearchTask,
        lat_long: str,
        slots: list[list[CandidatePlace | None]],
        index: int,
        limiter: anyio.CapacityLimiter,
    ) -> None:
        if task.quota <= 0:
            return
        try:
            async with limiter:
                stubs = await self._provider.search_nearby(
                    lat_long, task.category, task.sub_filter, task.quota
                )
        except ProviderError as exc:
            self._logger.warning(
                "planner.task.failed",
                extra={
                    "category": task.category.value,
                    "sub_filter": task.sub_filter,
                    "error": exc.message,
                },
            )
            return

        taken = list(stubs)[: task.quota]
        buffer: list[CandidatePlace | None] = [None] * len(taken)
        slots[index] = buffer
        async with anyio.create_task_group() as group:
            for position, stub in enumerate(taken):
                group.start_soon(self._resolve_candidate, stub, buffer, position, limiter)

    async def _resolve_candidate(
        self,
        stub: SearchResultStub,
        buffer: list[CandidatePlace | None],
        position: int,
        limiter: anyio.CapacityLimiter,
    ) -> None:
        try:
            async with limiter:
                place = await self._provider.get_details(stub.location_id)
        except ProviderError as exc:
            self._logger.info(
                "planner.candidate.dropped",
                extra={"location_id": stub.location_id, "error": exc.message},
            )
            return
        if place is None:
            return
        if place.id is None:
            place = place.model_copy(update={"id": stub.location_id})

        if not place.photo_url:
            try:
                async with limiter:
                    photos = await self._provider.get_photos(stub.location_id)
            except ProviderError as exc:
                self._logger.info(
                    "planner.candidate.photo_failed",
                    extra={"location_id": stub.location_id, "error": exc.message},
                )
                photos = []
            if photos:
                place = place.model_copy(update={"photo_url": photos[0]})
        buffer[position] = place
