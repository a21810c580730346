from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import ActorRole, DonationStatus, FoodType

# Incoming expiry can be a date, datetime, or ISO8601 string
ExpiryInput = Union[date, datetime, str]


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_expiry(value: ExpiryInput) -> datetime:
    """
    Normalize expiry input into a timezone-aware UTC datetime.
    - Strings are parsed with datetime.fromisoformat; date-only strings become 00:00.
    - Dates are promoted to midnight.
    - Naive datetimes are taken as UTC.
    """
    if isinstance(value, datetime):
        return _as_utc(value)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    if isinstance(value, str):
        s = value.strip()
        # Python < 3.11 does not accept a trailing 'Z'
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            return _as_utc(datetime.fromisoformat(s))
        except ValueError:
            try:
                d = date.fromisoformat(s)
            except ValueError as e:
                raise ValueError(
                    "Invalid expiry format. Use ISO8601 date or datetime string (e.g., '2025-01-31T13:45:00Z')."
                ) from e
            return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)

    raise ValueError("Invalid type for expiry; expected date, datetime, or ISO8601 string.")


# PUBLIC_INTERFACE
class ActorOut(BaseModel):
    """
    Schema returned by the API for an actor.
    """

    id: str = Field(..., description="Opaque actor identifier")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Unique email address")
    role: ActorRole = Field(..., description="donor, receiver or admin")
    organization: Optional[str] = Field(default=None, description="Optional organization name")


class LoginRequest(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={"example": {"email": "donor@example.com", "password": "secret"}}
    )

    email: str = Field(..., description="Email of a known actor")
    password: str = Field(..., description="Password (accepted but not verified)")


class RegisterRequest(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Corner Bakery",
                "email": "bakery@example.com",
                "password": "secret",
                "role": "donor",
                "organization": "Corner Bakery Ltd",
            }
        }
    )

    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address; must not already be registered")
    password: str = Field(..., description="Password (not stored)")
    role: ActorRole = Field(..., description="donor, receiver or admin")
    organization: Optional[str] = Field(default=None, description="Optional organization name")


# PUBLIC_INTERFACE
class SessionOut(BaseModel):
    """
    Current session state, optionally with the route the client should show next.
    """

    actor: Optional[ActorOut] = Field(default=None, description="Current actor, if any")
    is_authenticated: bool = Field(..., description="True when an actor is logged in")
    redirect_to: Optional[str] = Field(default=None, description="Landing route for the client")


class LocationIn(BaseModel):
    lat: float = Field(..., description="Latitude")
    lng: float = Field(..., description="Longitude")
    address: str = Field(..., description="Free-text address (not geocoded)")


class PartyRefOut(BaseModel):
    id: str
    name: str
    organization: Optional[str] = None


# PUBLIC_INTERFACE
class DonationCreate(BaseModel):
    """
    Schema for posting a new donation listing.

    Only structural validation is applied; empty strings are accepted.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "donor_id": "1",
                "donor_name": "Restaurant Owner",
                "donor_organization": "Green Restaurant",
                "title": "Vegetable Curry",
                "description": "Two trays from lunch service",
                "quantity": "4 kg",
                "food_type": "veg",
                "perishable": True,
                "expiry": "2025-02-01T18:00:00Z",
                "images": ["/placeholder.svg"],
                "location": {"lat": 40.7128, "lng": -74.006, "address": "123 Main St, New York, NY 10001"},
            }
        }
    )

    donor_id: str = Field(..., description="Identifier of the donating actor")
    donor_name: str = Field(..., description="Display name of the donor")
    donor_organization: Optional[str] = Field(default=None, description="Donor organization")
    title: str = Field(..., description="Short title")
    description: str = Field(..., description="Free-text description")
    quantity: str = Field(..., description="Free-text quantity, e.g. '5 kg'")
    food_type: FoodType = Field(..., description="veg or non-veg")
    perishable: bool = Field(..., description="Perishable flag")
    expiry: datetime = Field(..., description="Absolute expiry; ISO8601, naive values are UTC")
    images: List[str] = Field(..., min_length=1, description="Image references (at least one)")
    location: LocationIn

    @field_validator("expiry", mode="before")
    @classmethod
    def parse_expiry(cls, v: ExpiryInput) -> datetime:
        """
        Normalize expiry from str/date/datetime to an aware UTC datetime.
        """
        return _parse_expiry(v)


# PUBLIC_INTERFACE
class StatusUpdate(BaseModel):
    """
    Schema for a raw status transition. Acceptor fields are used only when accepting.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "accepted",
                "acceptor_id": "2",
                "acceptor_name": "NGO Representative",
                "acceptor_organization": "Food for All NGO",
            }
        }
    )

    status: DonationStatus = Field(..., description="Requested status")
    acceptor_id: Optional[str] = Field(default=None)
    acceptor_name: Optional[str] = Field(default=None)
    acceptor_organization: Optional[str] = Field(default=None)


# PUBLIC_INTERFACE
class DonationOut(BaseModel):
    """
    Schema returned by the API for a donation listing.

    `status` is the stored lifecycle status; `display_status` additionally
    reports pending/accepted listings past their expiry as expired.
    """

    id: str
    donor_id: str
    donor_name: str
    donor_organization: Optional[str] = None
    title: str
    description: str
    quantity: str
    food_type: FoodType
    perishable: bool
    expiry: datetime
    images: List[str]
    location: LocationIn
    status: DonationStatus
    display_status: DonationStatus
    time_remaining: str = Field(..., description="Human-readable time until expiry")
    urgent: bool = Field(..., description="True when six hours or less remain")
    created_at: datetime
    updated_at: datetime
    accepted_by: Optional[PartyRefOut] = None


class PlatformSummaryOut(BaseModel):
    total: int
    pending: int
    accepted: int
    completed: int
    estimated_people_fed: int
    estimated_kg_saved: int


class DonorSummaryOut(BaseModel):
    pending: int
    accepted: int
    completed: int


class ReceiverSummaryOut(BaseModel):
    available: int
    nearby: int
    expiring_today: int
    total_saved: int
