from __future__ import annotations

from planzy.models.schemas import CategoryQuotas, PlaceCategory, SearchTask

BAR_SUB_FILTER = "bar, pub, cocktail lounge"
CLUB_SUB_FILTER = "night club, dance club, disco"


def plan(quotas: CategoryQuotas) -> list[SearchTask]:
    """Derive the ordered category searches for a set of quotas.

    Task order is the order places end up in the itinerary. Nightlife is split
    into two attraction searches of ``max(1, n // 2)`` each, so odd or small
    counts are not matched exactly.
    """

    tasks = [SearchTask(category=PlaceCategory.HOTEL, quota=quotas.hotel_count)]
    if quotas.nightlife_count > 0:
        half = max(1, quotas.nightlife_count // 2)
        tasks.append(
            SearchTask(
                category=PlaceCategory.ATTRACTION,
                sub_filter=BAR_SUB_FILTER,
                quota=half,
            )
        )
        tasks.append(
            SearchTask(
                category=PlaceCategory.ATTRACTION,
                sub_filter=CLUB_SUB_FILTER,
                quota=half,
            )
        )
    tasks.append(
        SearchTask(category=PlaceCategory.RESTAURANT, quota=quotas.restaurant_count)
    )
    tasks.append(
        SearchTask(category=PlaceCategory.ATTRACTION, quota=quotas.attraction_count)
    )
    return tasks
