from .place_repository import PlaceRepository
from .vacation_repository import VacationRepository

__all__ = [
    "PlaceRepository",
    "VacationRepository",
]
