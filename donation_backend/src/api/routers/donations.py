from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from ..dependencies import ensure_role, get_ledger, get_now, require_actor
from ..errors import DonationNotFoundError, InvalidTransitionError
from ..filters import DEFAULT_MAX_DISTANCE_KM, DonationFilter, apply_filter
from ..ledger import DonationLedger, TransitionResult
from ..lifecycle import display_status, is_urgent, time_remaining_label
from ..models import ActorEntity, ActorRole, DonationEntity, DonationStatus, FoodType, PartyRef
from ..schemas import DonationCreate, DonationOut, StatusUpdate
from ..utils import paginate

router = APIRouter(
    prefix="/api/v1/donations",
    tags=["donations"],
)

NOT_FOUND_DETAIL = "Donation not found"


class PaginationEnvelope(BaseModel):
    """
    Envelope for paginated list responses.
    """
    items: List[DonationOut] = Field(..., description="List of donation listings")
    total: int = Field(..., description="Total number of listings matching the filters")
    limit: int = Field(..., description="Limit applied to the query")
    offset: int = Field(..., description="Offset applied to the query")


def _to_out(entity: DonationEntity, now: datetime) -> DonationOut:
    return DonationOut(
        **entity,
        display_status=display_status(entity, now),
        time_remaining=time_remaining_label(entity, now),
        urgent=is_urgent(entity, now),
    )


def _party(actor: ActorEntity) -> PartyRef:
    return {"id": actor["id"], "name": actor["name"], "organization": actor["organization"]}


async def _run_transition(
    ledger: DonationLedger,
    donation_id: str,
    new_status: DonationStatus,
    acceptor: Optional[PartyRef],
    now: datetime,
) -> DonationOut:
    try:
        result: TransitionResult = await ledger.transition(donation_id, new_status, acceptor)
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.message) from exc
    if not result.updated or result.donation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_DETAIL)
    return _to_out(result.donation, now)


def _get_or_404(ledger: DonationLedger, donation_id: str) -> DonationEntity:
    try:
        return ledger.require(donation_id)
    except DonationNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message) from exc


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=DonationOut,
    status_code=status.HTTP_201_CREATED,
    summary="Post Donation",
    description="Post a new donation listing. It starts in the pending status.",
    responses={
        201: {"description": "Donation posted"},
        422: {"description": "Validation error"},
    },
)
async def create_donation(
    payload: DonationCreate,
    ledger: DonationLedger = Depends(get_ledger),
    now: datetime = Depends(get_now),
) -> DonationOut:
    created = await ledger.create(payload)
    return _to_out(created, now)


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=PaginationEnvelope,
    summary="Browse Donations",
    description=(
        "List donations with optional filters and pagination, soonest expiry first.\n\n"
        "Query parameters:\n"
        "- q: search text matched against title, description and address\n"
        "- food_type: all (default), veg or non-veg\n"
        "- veg_only: only vegetarian listings\n"
        "- available_only: only listings still pending\n"
        "- max_distance: accepted for clients, not applied\n"
        "- limit / offset: pagination"
    ),
    responses={
        200: {"description": "List retrieved successfully"},
        400: {"description": "Invalid query parameters"},
    },
)
def list_donations(
    limit: int = Query(50, ge=0, le=1000, description="Maximum number of items to return"),
    offset: int = Query(0, ge=0, description="Number of items to skip"),
    q: Optional[str] = Query(None, description="Search text for title/description/address"),
    food_type: str = Query("all", description="all, veg or non-veg"),
    veg_only: bool = Query(False, description="Only vegetarian listings"),
    available_only: bool = Query(False, description="Only listings still pending"),
    max_distance: float = Query(DEFAULT_MAX_DISTANCE_KM, ge=0, description="Distance ceiling in km (not applied)"),
    ledger: DonationLedger = Depends(get_ledger),
    now: datetime = Depends(get_now),
) -> PaginationEnvelope:
    ft = food_type.strip().lower()
    if ft == "all":
        food_filter = None
    else:
        try:
            food_filter = FoodType(ft)
        except ValueError:
            raise HTTPException(status_code=400, detail="food_type must be 'all', 'veg' or 'non-veg'")

    flt = DonationFilter(
        query=q.strip() if q else None,
        food_type=food_filter,
        veg_only=veg_only,
        available_only=available_only,
        max_distance_km=max_distance,
    )
    matched = apply_filter(ledger.all(), flt)
    envelope = paginate(matched, limit, offset, lambda d: _to_out(d, now))
    return PaginationEnvelope(**envelope)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.get(
    "/mine",
    response_model=List[DonationOut],
    summary="My Donations",
    description="Listings posted by the current actor.",
    responses={401: {"description": "Not authenticated"}},
)
def my_donations(
    actor: ActorEntity = Depends(require_actor),
    ledger: DonationLedger = Depends(get_ledger),
    now: datetime = Depends(get_now),
) -> List[DonationOut]:
    return [_to_out(d, now) for d in ledger.owned_by(actor["id"])]


# PUBLIC_INTERFACE
@router.get(
    "/accepted",
    response_model=List[DonationOut],
    summary="Accepted Donations",
    description="Listings the current actor has accepted (any status past pending).",
    responses={401: {"description": "Not authenticated"}},
)
def accepted_donations(
    actor: ActorEntity = Depends(require_actor),
    ledger: DonationLedger = Depends(get_ledger),
    now: datetime = Depends(get_now),
) -> List[DonationOut]:
    return [_to_out(d, now) for d in ledger.accepted_by(actor["id"])]


# PUBLIC_INTERFACE
@router.get(
    "/{donation_id}",
    response_model=DonationOut,
    summary="Get Donation",
    description="Get a single donation listing by ID.",
    responses={
        200: {"description": "Donation found"},
        404: {"description": "Donation not found"},
    },
)
def get_donation(
    donation_id: str,
    ledger: DonationLedger = Depends(get_ledger),
    now: datetime = Depends(get_now),
) -> DonationOut:
    return _to_out(_get_or_404(ledger, donation_id), now)


# PUBLIC_INTERFACE
@router.post(
    "/{donation_id}/status",
    response_model=DonationOut,
    summary="Change Status",
    description=(
        "Move a listing along its lifecycle: pending -> accepted -> picked -> verified. "
        "Accepting requires acceptor_id and acceptor_name. Admin accounts only; other actors "
        "use the accept, pickup and verify actions."
    ),
    responses={
        200: {"description": "Status changed"},
        401: {"description": "Not authenticated"},
        403: {"description": "Current actor is not an admin"},
        404: {"description": "Donation not found"},
        409: {"description": "Transition not allowed"},
    },
)
async def change_status(
    donation_id: str,
    payload: StatusUpdate,
    actor: ActorEntity = Depends(require_actor),
    ledger: DonationLedger = Depends(get_ledger),
    now: datetime = Depends(get_now),
) -> DonationOut:
    ensure_role(actor, ActorRole.ADMIN)
    acceptor: Optional[PartyRef] = None
    if payload.acceptor_id and payload.acceptor_name:
        acceptor = {
            "id": payload.acceptor_id,
            "name": payload.acceptor_name,
            "organization": payload.acceptor_organization,
        }
    return await _run_transition(ledger, donation_id, payload.status, acceptor, now)


# PUBLIC_INTERFACE
@router.post(
    "/{donation_id}/accept",
    response_model=DonationOut,
    summary="Accept Donation",
    description="The current receiver claims a pending listing.",
    responses={
        401: {"description": "Not authenticated"},
        403: {"description": "Current actor is not a receiver"},
        404: {"description": "Donation not found"},
        409: {"description": "Donation is no longer pending"},
    },
)
async def accept_donation(
    donation_id: str,
    actor: ActorEntity = Depends(require_actor),
    ledger: DonationLedger = Depends(get_ledger),
    now: datetime = Depends(get_now),
) -> DonationOut:
    ensure_role(actor, ActorRole.RECEIVER)
    return await _run_transition(ledger, donation_id, DonationStatus.ACCEPTED, _party(actor), now)


# PUBLIC_INTERFACE
@router.post(
    "/{donation_id}/pickup",
    response_model=DonationOut,
    summary="Confirm Pickup",
    description="The receiver who accepted a listing confirms it was picked up.",
    responses={
        401: {"description": "Not authenticated"},
        403: {"description": "Current actor did not accept this donation"},
        404: {"description": "Donation not found"},
        409: {"description": "Donation is not accepted"},
    },
)
async def pickup_donation(
    donation_id: str,
    actor: ActorEntity = Depends(require_actor),
    ledger: DonationLedger = Depends(get_ledger),
    now: datetime = Depends(get_now),
) -> DonationOut:
    ensure_role(actor, ActorRole.RECEIVER)
    item = _get_or_404(ledger, donation_id)
    if item["accepted_by"] is None or item["accepted_by"]["id"] != actor["id"]:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the accepting receiver can confirm pickup")
    return await _run_transition(ledger, donation_id, DonationStatus.PICKED, None, now)


# PUBLIC_INTERFACE
@router.post(
    "/{donation_id}/verify",
    response_model=DonationOut,
    summary="Verify Donation",
    description="The donor confirms a picked-up listing as completed.",
    responses={
        401: {"description": "Not authenticated"},
        403: {"description": "Current actor does not own this donation"},
        404: {"description": "Donation not found"},
        409: {"description": "Donation has not been picked up"},
    },
)
async def verify_donation(
    donation_id: str,
    actor: ActorEntity = Depends(require_actor),
    ledger: DonationLedger = Depends(get_ledger),
    now: datetime = Depends(get_now),
) -> DonationOut:
    ensure_role(actor, ActorRole.DONOR)
    item = _get_or_404(ledger, donation_id)
    if item["donor_id"] != actor["id"]:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the donor can verify this donation")
    return await _run_transition(ledger, donation_id, DonationStatus.VERIFIED, None, now)
