from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends

from ..dependencies import ensure_role, get_ledger, get_now, require_actor
from ..ledger import DonationLedger
from ..models import ActorEntity, ActorRole
from ..schemas import DonorSummaryOut, PlatformSummaryOut, ReceiverSummaryOut
from ..stats import donor_summary, platform_summary, receiver_summary

router = APIRouter(
    prefix="/api/v1/stats",
    tags=["stats"],
)


# PUBLIC_INTERFACE
@router.get(
    "/platform",
    response_model=PlatformSummaryOut,
    summary="Platform Summary",
    description="Admin overview: listing counts by status plus estimated impact.",
    responses={401: {"description": "Not authenticated"}, 403: {"description": "Admins only"}},
)
def get_platform_summary(
    actor: ActorEntity = Depends(require_actor),
    ledger: DonationLedger = Depends(get_ledger),
) -> PlatformSummaryOut:
    ensure_role(actor, ActorRole.ADMIN)
    return PlatformSummaryOut(**platform_summary(ledger.all()))


# PUBLIC_INTERFACE
@router.get(
    "/donor",
    response_model=DonorSummaryOut,
    summary="Donor Summary",
    description="Counts of the current actor's own listings by status.",
    responses={401: {"description": "Not authenticated"}},
)
def get_donor_summary(
    actor: ActorEntity = Depends(require_actor),
    ledger: DonationLedger = Depends(get_ledger),
) -> DonorSummaryOut:
    return DonorSummaryOut(**donor_summary(ledger.owned_by(actor["id"])))


# PUBLIC_INTERFACE
@router.get(
    "/receiver",
    response_model=ReceiverSummaryOut,
    summary="Receiver Summary",
    description="Available listings, those expiring today, and how many the current actor has saved.",
    responses={401: {"description": "Not authenticated"}},
)
def get_receiver_summary(
    actor: ActorEntity = Depends(require_actor),
    ledger: DonationLedger = Depends(get_ledger),
    now: datetime = Depends(get_now),
) -> ReceiverSummaryOut:
    return ReceiverSummaryOut(**receiver_summary(ledger.all(), actor["id"], now))
