from __future__ import annotations

import asyncio
import logging
from copy import deepcopy
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from threading import RLock
from typing import Callable, Iterable, List, Optional, Set

from .errors import DonationNotFoundError, InvalidTransitionError
from .lifecycle import check_transition
from .models import DonationEntity, DonationStatus, FoodType, PartyRef
from .schemas import DonationCreate

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TransitionOutcome(str, Enum):
    UPDATED = "updated"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a status transition; `donation` is the updated copy when UPDATED."""

    outcome: TransitionOutcome
    donation: Optional[DonationEntity] = None

    @property
    def updated(self) -> bool:
        return self.outcome is TransitionOutcome.UPDATED


def seed_donations(now: datetime) -> List[DonationEntity]:
    """Sample listings the ledger starts from on every process start."""

    def listing(
        donation_id: str,
        donor_id: str,
        donor: str,
        title: str,
        description: str,
        quantity: str,
        hours: int,
        image: str,
        lat: float,
        lng: float,
        address: str,
    ) -> DonationEntity:
        return {
            "id": donation_id,
            "donor_id": donor_id,
            "donor_name": donor,
            "donor_organization": donor,
            "title": title,
            "description": description,
            "quantity": quantity,
            "food_type": FoodType.VEG,
            "perishable": True,
            "expiry": now + timedelta(hours=hours),
            "images": [image],
            "location": {"lat": lat, "lng": lng, "address": address},
            "status": DonationStatus.PENDING,
            "created_at": now,
            "updated_at": now,
            "accepted_by": None,
        }

    return [
        listing(
            "1", "1", "Green Restaurant", "Fresh Vegetables",
            "Assorted fresh vegetables from our kitchen. Includes tomatoes, lettuce, and carrots.",
            "5 kg", 24,
            "https://images.unsplash.com/photo-1610832958506-aa56368176cf?q=80&w=500&auto=format&fit=crop",
            40.712776, -74.005974, "123 Main St, New York, NY 10001",
        ),
        listing(
            "2", "1", "Green Restaurant", "Leftover Pasta",
            "Unused pasta from today's service. Still fresh and packaged properly.",
            "3 kg", 12,
            "https://images.unsplash.com/photo-1551183053-bf91a1d81141?q=80&w=500&auto=format&fit=crop",
            40.732776, -74.015974, "456 Park Ave, New York, NY 10002",
        ),
        listing(
            "3", "4", "Family Cafe", "Bread and Pastries",
            "End-of-day bread and pastries. Still fresh.",
            "2 kg", 36,
            "https://images.unsplash.com/photo-1495195134817-aeb325a55b65?q=80&w=500&auto=format&fit=crop",
            40.752776, -74.025974, "789 Broadway, New York, NY 10003",
        ),
    ]


# PUBLIC_INTERFACE
class DonationLedger:
    """
    Thread-safe in-memory ledger of donation listings.

    Owns the listings and enforces the status lifecycle. Reads return deep
    copies; mutations wait for the simulated latency, then apply under the lock.
    """

    def __init__(
        self,
        seed: Optional[Iterable[DonationEntity]] = None,
        clock: Clock = utc_now,
        latency_seconds: float = 0.0,
    ) -> None:
        self._lock = RLock()
        self._clock = clock
        self._latency = latency_seconds
        initial = seed_donations(clock()) if seed is None else seed
        self._items: List[DonationEntity] = [deepcopy(d) for d in initial]

    def _now(self) -> datetime:
        return self._clock()

    async def _simulate_latency(self) -> None:
        if self._latency > 0:
            await asyncio.sleep(self._latency)

    def _find(self, donation_id: str) -> Optional[DonationEntity]:
        for item in self._items:
            if item["id"] == donation_id:
                return item
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    async def create(self, data: DonationCreate) -> DonationEntity:
        await self._simulate_latency()
        with self._lock:
            now = self._now()
            entity: DonationEntity = {
                "id": str(len(self._items) + 1),
                "donor_id": data.donor_id,
                "donor_name": data.donor_name,
                "donor_organization": data.donor_organization,
                "title": data.title,
                "description": data.description,
                "quantity": data.quantity,
                "food_type": data.food_type,
                "perishable": data.perishable,
                "expiry": data.expiry,
                "images": list(data.images),
                "location": {
                    "lat": data.location.lat,
                    "lng": data.location.lng,
                    "address": data.location.address,
                },
                "status": DonationStatus.PENDING,
                "created_at": now,
                "updated_at": now,
                "accepted_by": None,
            }
            self._items.append(entity)
            created = deepcopy(entity)
        logger.info("Donation %s posted by donor %s", created["id"], created["donor_id"])
        return created

    async def transition(
        self,
        donation_id: str,
        new_status: DonationStatus,
        acceptor: Optional[PartyRef] = None,
    ) -> TransitionResult:
        """
        Move a listing to `new_status`.

        Returns a NOT_FOUND result for unknown ids. The acceptor reference is
        recorded only when accepting, and accepting requires one.

        Raises:
            InvalidTransitionError if the edge is not allowed or an acceptance lacks an acceptor.
        """
        await self._simulate_latency()
        with self._lock:
            existing = self._find(donation_id)
            if existing is None:
                logger.warning("Status change to %s for unknown donation %s", new_status.value, donation_id)
                return TransitionResult(TransitionOutcome.NOT_FOUND)

            previous = existing["status"]
            try:
                check_transition(previous, new_status)
                if new_status is DonationStatus.ACCEPTED and acceptor is None:
                    raise InvalidTransitionError("Accepting a donation requires an acceptor")
            except InvalidTransitionError as exc:
                logger.warning("Donation %s: %s", donation_id, exc.message)
                raise

            existing["status"] = new_status
            existing["updated_at"] = max(self._now(), existing["updated_at"])
            if new_status is DonationStatus.ACCEPTED:
                existing["accepted_by"] = {
                    "id": acceptor["id"],
                    "name": acceptor["name"],
                    "organization": acceptor.get("organization"),
                }
            updated = deepcopy(existing)
        logger.info("Donation %s moved from %s to %s", donation_id, previous.value, new_status.value)
        return TransitionResult(TransitionOutcome.UPDATED, updated)

    async def accept(self, donation_id: str, acceptor: PartyRef) -> TransitionResult:
        return await self.transition(donation_id, DonationStatus.ACCEPTED, acceptor)

    async def pickup(self, donation_id: str) -> TransitionResult:
        return await self.transition(donation_id, DonationStatus.PICKED)

    async def verify(self, donation_id: str) -> TransitionResult:
        return await self.transition(donation_id, DonationStatus.VERIFIED)

    def get_by_id(self, donation_id: str) -> Optional[DonationEntity]:
        with self._lock:
            item = self._find(donation_id)
            return None if item is None else deepcopy(item)

    def require(self, donation_id: str) -> DonationEntity:
        """
        Like get_by_id, but raises DonationNotFoundError for unknown ids.
        """
        item = self.get_by_id(donation_id)
        if item is None:
            raise DonationNotFoundError(donation_id)
        return item

    def all(self) -> List[DonationEntity]:
        with self._lock:
            return deepcopy(self._items)

    def owned_by(self, actor_id: str) -> List[DonationEntity]:
        with self._lock:
            return [deepcopy(d) for d in self._items if d["donor_id"] == actor_id]

    def accepted_by(self, actor_id: str) -> List[DonationEntity]:
        with self._lock:
            return [
                deepcopy(d)
                for d in self._items
                if d["status"] is not DonationStatus.PENDING
                and d["accepted_by"] is not None
                and d["accepted_by"]["id"] == actor_id
            ]

    def party_ids(self) -> Set[str]:
        """Actor ids referenced by any listing, as donor or acceptor."""
        with self._lock:
            ids = {d["donor_id"] for d in self._items}
            ids.update(d["accepted_by"]["id"] for d in self._items if d["accepted_by"] is not None)
            return ids
