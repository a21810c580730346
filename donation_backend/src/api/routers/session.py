from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from ..dependencies import get_identity_store
from ..errors import DuplicateEmailError, InvalidCredentialsError
from ..identity import AuthOutcome, IdentityStore
from ..schemas import ActorOut, LoginRequest, RegisterRequest, SessionOut

router = APIRouter(
    prefix="/api/v1/session",
    tags=["session"],
)


def _session_out(identity: IdentityStore, redirect_to: Optional[str] = None) -> SessionOut:
    actor = identity.current
    return SessionOut(
        actor=ActorOut(**actor) if actor else None,
        is_authenticated=actor is not None,
        redirect_to=redirect_to,
    )


def _outcome_out(outcome: AuthOutcome) -> SessionOut:
    return SessionOut(
        actor=ActorOut(**outcome.actor) if outcome.actor else None,
        is_authenticated=outcome.actor is not None,
        redirect_to=outcome.redirect_to,
    )


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=SessionOut,
    summary="Current Session",
    description="Return the current actor, if any. A session restored from storage is returned as-is.",
)
def get_session(identity: IdentityStore = Depends(get_identity_store)) -> SessionOut:
    return _session_out(identity)


# PUBLIC_INTERFACE
@router.post(
    "/login",
    response_model=SessionOut,
    summary="Login",
    description="Log in a known actor by email. The password is accepted but not verified.",
    responses={
        200: {"description": "Logged in; redirect_to holds the role landing route"},
        401: {"description": "Invalid credentials"},
    },
)
async def login(payload: LoginRequest, identity: IdentityStore = Depends(get_identity_store)) -> SessionOut:
    """
    Log in and return the actor with its landing route.
    """
    try:
        outcome = await identity.login(payload.email, payload.password)
    except InvalidCredentialsError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=exc.message) from exc
    return _outcome_out(outcome)


# PUBLIC_INTERFACE
@router.post(
    "/register",
    response_model=SessionOut,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Register a new actor and log it in.",
    responses={
        201: {"description": "Registered and logged in"},
        409: {"description": "Email already registered"},
    },
)
async def register(payload: RegisterRequest, identity: IdentityStore = Depends(get_identity_store)) -> SessionOut:
    try:
        outcome = await identity.register(
            payload.name,
            payload.email,
            payload.password,
            payload.role,
            payload.organization,
        )
    except DuplicateEmailError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.message) from exc
    return _outcome_out(outcome)


# PUBLIC_INTERFACE
@router.post(
    "/logout",
    response_model=SessionOut,
    summary="Logout",
    description="Clear the current actor and its stored session.",
)
def logout(identity: IdentityStore = Depends(get_identity_store)) -> SessionOut:
    return _outcome_out(identity.logout())
