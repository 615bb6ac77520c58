from __future__ import annotations

import uuid
from time import perf_counter

import anyio
from planzy.core.logging import get_logger
from planzy.models.schemas import Itinerary, PlanVacationResult, VacationSchema
from planzy.services.errors import (
    DestinationDetailsUnavailable,
    DestinationNotFound,
    IntentError,
    PersistError,
    PlannerError,
)
from planzy.services.intent_resolver import IntentResolver, KeywordIntentResolver
from planzy.services.itinerary_assembler import ItineraryAssembler
from planzy.services.itinerary_persister import ItineraryPersister
from planzy.services.planner_metrics import PlannerMetrics, get_planner_metrics

MSG_DESCRIBE_VACATION = "Describe your dream vacation to get started."
MSG_NOT_LOGGED_IN = "You need to be signed in to create a vacation."
MSG_NOT_UNDERSTOOD = "Sorry, we could not understand your request."
MSG_CITY_NOT_FOUND = "We could not find that destination."
MSG_DESTINATION_UNAVAILABLE = "Where is your dream vacation? Try a more specific place."
MSG_CREATE_FAILED = "Something went wrong while creating your vacation."
MSG_CREATED = "Your vacation is ready!"


class VacationPlannerError(Exception):
    """Single user facing failure of a vacation planning request."""

    def __init__(self, message: str, *, code: int = 14100) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


def _user_message(exc: PlannerError) -> str:
    if isinstance(exc, IntentError):
        return MSG_NOT_UNDERSTOOD
    if isinstance(exc, DestinationNotFound):
        return MSG_CITY_NOT_FOUND
    if isinstance(exc, DestinationDetailsUnavailable):
        return MSG_DESTINATION_UNAVAILABLE
    return MSG_CREATE_FAILED


class VacationPlannerService:
    """Turn a free-text request into a persisted vacation."""

    def __init__(
        self,
        *,
        intent_resolver: IntentResolver | None = None,
        assembler: ItineraryAssembler | None = None,
        persister: ItineraryPersister | None = None,
        metrics: PlannerMetrics | None = None,
    ) -> None:
        self._intent_resolver = intent_resolver or KeywordIntentResolver()
        self._assembler = assembler or ItineraryAssembler()
        self._persister = persister or ItineraryPersister()
        self._metrics = metrics or get_planner_metrics()
        self._logger = get_logger(__name__)

    async def create_vacation_from_text(
        self, user_id: str, text: str
    ) -> PlanVacationResult:
        message = (text or "").strip()
        if not message:
            raise VacationPlannerError(MSG_DESCRIBE_VACATION, code=14102)
        if not (user_id or "").strip():
            raise VacationPlannerError(MSG_NOT_LOGGED_IN, code=14103)

        trace_id = f"vac-{uuid.uuid4().hex[:12]}"
        started = perf_counter()
        destination: str | None = None
        try:
            intent = self._intent_resolver.parse(message)
            destination = intent.destination
            itinerary = await self._assembler.assemble(intent, user_id)
            await self._persister.persist(itinerary)
        except PlannerError as exc:
            self._record(trace_id, destination, 0, started, error=type(exc).__name__)
            log = (
                self._logger.error
                if isinstance(exc, PersistError)
                else self._logger.warning
            )
            log(
                "planner.request.failed",
                extra={
                    "trace_id": trace_id,
                    "error_type": type(exc).__name__,
                    "error": exc.message,
                },
            )
            raise VacationPlannerError(_user_message(exc), code=exc.code) from exc
        except anyio.get_cancelled_exc_class():
            self._logger.info("planner.request.cancelled", extra={"trace_id": trace_id})
            raise

        self._record(trace_id, destination, len(itinerary.places), started)
        return self._build_result(itinerary)

    def _record(
        self,
        trace_id: str,
        destination: str | None,
        places: int,
        started: float,
        *,
        error: str | None = None,
    ) -> None:
        self._metrics.record(
            trace_id=trace_id,
            destination=destination,
            places=places,
            latency_ms=(perf_counter() - started) * 1000,
            success=error is None,
            error=error,
        )

    @staticmethod
    def _build_result(itinerary: Itinerary) -> PlanVacationResult:
        count = len(itinerary.places)
        return PlanVacationResult(
            vacation=VacationSchema(
                id=itinerary.id,
                user_id=itinerary.owner_id,
                title=itinerary.title,
                created_at=itinerary.created_at,
                places_count=count,
            ),
            places_added=count,
            message=MSG_CREATED,
        )


_vacation_planner_service: VacationPlannerService | None = None


def get_vacation_planner_service() -> VacationPlannerService:
    global _vacation_planner_service
    if _vacation_planner_service is None:
        _vacation_planner_service = VacationPlannerService()
    return _vacation_planner_service


def reset_vacation_planner_service() -> None:
    global _vacation_planner_service
    _vacation_planner_service = None
