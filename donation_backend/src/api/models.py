from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional, TypedDict


class ActorRole(str, Enum):
    DONOR = "donor"
    RECEIVER = "receiver"
    ADMIN = "admin"


class FoodType(str, Enum):
    VEG = "veg"
    NON_VEG = "non-veg"


class DonationStatus(str, Enum):
    """Closed set of listing states. EXPIRED is only ever computed for display."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    PICKED = "picked"
    VERIFIED = "verified"
    EXPIRED = "expired"


# PUBLIC_INTERFACE
class ActorEntity(TypedDict):
    """
    A registered participant held by the identity store.

    Fields:
    - id: Opaque string identifier
    - name: Display name
    - email: Unique email address used for login
    - role: donor, receiver or admin
    - organization: Optional organization name
    """

    id: str
    name: str
    email: str
    role: ActorRole
    organization: Optional[str]


class PartyRef(TypedDict):
    """Reference to an actor captured on a listing (donor or acceptor)."""

    id: str
    name: str
    organization: Optional[str]


class LocationEntity(TypedDict):
    lat: float
    lng: float
    address: str


# PUBLIC_INTERFACE
class DonationEntity(TypedDict):
    """
    A single food donation listing for the in-memory ledger.

    Fields:
    - id: Sequential string identifier assigned at creation
    - donor_id / donor_name / donor_organization: Donor reference, immutable
    - title, description, quantity: Free text
    - food_type: veg or non-veg
    - perishable: Perishable flag
    - expiry: Absolute expiry timestamp (UTC)
    - images: Image references (at least one)
    - location: lat/lng plus free-text address
    - status: Stored lifecycle status
    - created_at / updated_at: Creation and last transition timestamps (UTC)
    - accepted_by: Acceptor reference, present iff status is not pending
    """

    id: str
    donor_id: str
    donor_name: str
    donor_organization: Optional[str]
    title: str
    description: str
    quantity: str
    food_type: FoodType
    perishable: bool
    expiry: datetime
    images: List[str]
    location: LocationEntity
    status: DonationStatus
    created_at: datetime
    updated_at: datetime
    accepted_by: Optional[PartyRef]
