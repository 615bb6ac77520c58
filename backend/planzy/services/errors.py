from __future__ import annotations


class PlannerError(Exception):
    """Base class for business friendly errors raised by the planning pipeline."""

    def __init__(self, message: str, code: int = 14100) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class IntentError(PlannerError):
    """The request text could not be turned into a travel intent."""

    def __init__(self, message: str = "could not understand request") -> None:
        super().__init__(message, code=14101)


class ProviderError(PlannerError):
    """A single places provider call failed (network, status, rate limit, payload)."""

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, code=14110)
        self.operation = operation
        self.status_code = status_code


class PlaceMappingError(ProviderError):
    """Provider payload is missing required fields or has the wrong shape."""


class SynthesisError(PlannerError):
    pass


class DestinationNotFound(SynthesisError):
    def __init__(self, destination: str) -> None:
        super().__init__(f"destination not found: {destination}", code=14120)
        self.destination = destination


class DestinationDetailsUnavailable(SynthesisError):
    def __init__(self, destination: str, message: str | None = None) -> None:
        super().__init__(
            message or f"destination details unavailable: {destination}",
            code=14121,
        )
        self.destination = destination


class DestinationCoordinatesMissing(DestinationDetailsUnavailable):
    def __init__(self, destination: str) -> None:
        super().__init__(
            destination, f"destination has no coordinates: {destination}"
        )
        self.code = 14122


class PersistError(PlannerError):
    def __init__(self, message: str, *, step: str) -> None:
        super().__init__(message, code=14130)
        self.step = step


__all__ = [
    "PlannerError",
    "IntentError",
    "ProviderError",
    "PlaceMappingError",
    "SynthesisError",
    "DestinationNotFound",
    "DestinationDetailsUnavailable",
    "DestinationCoordinatesMissing",
    "PersistError",
]
