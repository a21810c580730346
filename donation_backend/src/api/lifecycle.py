from __future__ import annotations

from datetime import datetime
from typing import Dict, FrozenSet, Optional

from .errors import InvalidTransitionError
from .models import DonationEntity, DonationStatus

ALLOWED_TRANSITIONS: Dict[DonationStatus, FrozenSet[DonationStatus]] = {
    DonationStatus.PENDING: frozenset({DonationStatus.ACCEPTED}),
    DonationStatus.ACCEPTED: frozenset({DonationStatus.PICKED}),
    DonationStatus.PICKED: frozenset({DonationStatus.VERIFIED}),
    DonationStatus.VERIFIED: frozenset(),
    # Never stored; listed so the table covers the whole enum.
    DonationStatus.EXPIRED: frozenset(),
}

# Statuses that still show as expired once the expiry has passed.
_EXPIRABLE = frozenset({DonationStatus.PENDING, DonationStatus.ACCEPTED})

URGENT_HOURS = 6


# PUBLIC_INTERFACE
def check_transition(current: DonationStatus, requested: DonationStatus) -> None:
    """
    Validate a (current, requested) status edge against the allow-list.

    Raises:
        InvalidTransitionError if the edge is not allowed.
    """
    if requested not in ALLOWED_TRANSITIONS.get(current, frozenset()):
        raise InvalidTransitionError(
            f"Cannot change status from '{current.value}' to '{requested.value}'"
        )


def is_expired(donation: DonationEntity, now: datetime) -> bool:
    return now > donation["expiry"]


# PUBLIC_INTERFACE
def display_status(donation: DonationEntity, now: datetime) -> DonationStatus:
    """
    Return the status to show for a listing at time `now`.

    Pending and accepted listings past their expiry are shown as expired; the
    stored status is left untouched.
    """
    status = donation["status"]
    if status in _EXPIRABLE and is_expired(donation, now):
        return DonationStatus.EXPIRED
    return status


def _remaining_seconds(donation: DonationEntity, now: datetime) -> float:
    return (donation["expiry"] - now).total_seconds()


def time_remaining_label(donation: DonationEntity, now: datetime) -> str:
    remaining = _remaining_seconds(donation, now)
    if remaining <= 0:
        return "Expired"
    hours = int(remaining // 3600)
    if hours < 1:
        return f"{int(remaining // 60)} minutes remaining"
    return f"{hours} hours remaining"


def is_urgent(donation: DonationEntity, now: datetime, threshold_hours: Optional[int] = None) -> bool:
    hours = int(_remaining_seconds(donation, now) // 3600)
    limit = URGENT_HOURS if threshold_hours is None else threshold_hours
    return 0 < hours <= limit
