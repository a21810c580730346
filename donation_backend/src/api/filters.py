from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from .models import DonationEntity, DonationStatus, FoodType

DEFAULT_MAX_DISTANCE_KM = 10.0


@dataclass(frozen=True)
class DonationFilter:
    """
    Filter configuration for browsing listings.

    - query: case-insensitive substring matched against title, description and address
    - food_type: restrict to one food type (None means all)
    - veg_only: restrict to vegetarian listings
    - available_only: restrict to pending listings
    - max_distance_km: accepted for clients but not applied; listings carry no geocoded distance
    """

    query: Optional[str] = None
    food_type: Optional[FoodType] = None
    veg_only: bool = False
    available_only: bool = False
    max_distance_km: float = DEFAULT_MAX_DISTANCE_KM


def _matches_query(donation: DonationEntity, needle: str) -> bool:
    haystacks = (
        donation["title"],
        donation["description"],
        donation["location"]["address"],
    )
    return any(needle in (h or "").lower() for h in haystacks)


# PUBLIC_INTERFACE
def apply_filter(donations: Iterable[DonationEntity], flt: Optional[DonationFilter] = None) -> List[DonationEntity]:
    """
    Return the listings matching `flt`, sorted by expiry (soonest first).

    The sort is stable, so listings sharing an expiry keep their input order.
    """
    f = flt or DonationFilter()
    items = list(donations)

    if f.query:
        needle = f.query.lower()
        items = [d for d in items if _matches_query(d, needle)]

    if f.food_type is not None:
        items = [d for d in items if d["food_type"] == f.food_type]

    if f.veg_only:
        items = [d for d in items if d["food_type"] == FoodType.VEG]

    if f.available_only:
        items = [d for d in items if d["status"] == DonationStatus.PENDING]

    return sorted(items, key=lambda d: d["expiry"])
