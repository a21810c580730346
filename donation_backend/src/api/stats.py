from __future__ import annotations

from datetime import datetime, timedelta
from typing import Dict, Iterable, List

from .models import DonationEntity, DonationStatus

PEOPLE_FED_PER_DONATION = 10
KG_SAVED_PER_DONATION = 5
NEARBY_CAP = 5

_COMPLETED = frozenset({DonationStatus.PICKED, DonationStatus.VERIFIED})


def _count(donations: List[DonationEntity], *statuses: DonationStatus) -> int:
    return sum(1 for d in donations if d["status"] in statuses)


def platform_summary(donations: Iterable[DonationEntity]) -> Dict[str, int]:
    """Totals for the admin overview; impact figures are flat per-donation estimates."""
    items = list(donations)
    completed = _count(items, *_COMPLETED)
    return {
        "total": len(items),
        "pending": _count(items, DonationStatus.PENDING),
        "accepted": _count(items, DonationStatus.ACCEPTED),
        "completed": completed,
        "estimated_people_fed": completed * PEOPLE_FED_PER_DONATION,
        "estimated_kg_saved": completed * KG_SAVED_PER_DONATION,
    }


def donor_summary(donations: Iterable[DonationEntity]) -> Dict[str, int]:
    items = list(donations)
    return {
        "pending": _count(items, DonationStatus.PENDING),
        "accepted": _count(items, DonationStatus.ACCEPTED),
        "completed": _count(items, *_COMPLETED),
    }


def receiver_summary(donations: Iterable[DonationEntity], receiver_id: str, now: datetime) -> Dict[str, int]:
    """
    Figures for a receiver's overview.

    `expiring_today` counts pending listings whose expiry falls within the
    calendar day of `now` (in now's timezone).
    """
    items = list(donations)
    available = [d for d in items if d["status"] == DonationStatus.PENDING]
    day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    day_end = day_start + timedelta(days=1)
    return {
        "available": len(available),
        "nearby": min(NEARBY_CAP, len(available)),
        "expiring_today": sum(1 for d in available if day_start <= d["expiry"] < day_end),
        "total_saved": sum(
            1
            for d in items
            if d["status"] != DonationStatus.PENDING
            and d["accepted_by"] is not None
            and d["accepted_by"]["id"] == receiver_id
        ),
    }
