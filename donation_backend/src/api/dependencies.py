from __future__ import annotations

from datetime import datetime

from fastapi import Depends, HTTPException, Request, status

from .identity import IdentityStore
from .ledger import DonationLedger
from .models import ActorEntity, ActorRole


# PUBLIC_INTERFACE
def get_identity_store(request: Request) -> IdentityStore:
    """Return the identity store owned by the running app."""
    return request.app.state.identity


# PUBLIC_INTERFACE
def get_ledger(request: Request) -> DonationLedger:
    """Return the donation ledger owned by the running app."""
    return request.app.state.ledger


def get_now(request: Request) -> datetime:
    return request.app.state.clock()


# PUBLIC_INTERFACE
def require_actor(identity: IdentityStore = Depends(get_identity_store)) -> ActorEntity:
    """
    Return the current actor.

    Raises:
        HTTPException(401) when nobody is logged in.
    """
    actor = identity.current
    if actor is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return actor


def ensure_role(actor: ActorEntity, role: ActorRole) -> None:
    if actor["role"] is not role:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Only {role.value} accounts can do this",
        )
