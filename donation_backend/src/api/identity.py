from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from threading import RLock
from typing import Iterable, List, Optional

from .errors import DuplicateEmailError, InvalidCredentialsError
from .models import ActorEntity, ActorRole
from .session_storage import SESSION_USER_KEY, SessionStorage

logger = logging.getLogger(__name__)

HOME_ROUTE = "/"
DEFAULT_LANDING_ROUTE = "/dashboard"
LANDING_ROUTES = {
    ActorRole.DONOR: "/donor",
    ActorRole.RECEIVER: "/receiver",
    ActorRole.ADMIN: "/admin",
}
# Registration lands admins on the generic dashboard.
REGISTRATION_ROUTES = {
    ActorRole.DONOR: "/donor",
    ActorRole.RECEIVER: "/receiver",
}

SEED_ACTORS: List[ActorEntity] = [
    {
        "id": "1",
        "name": "Restaurant Owner",
        "email": "donor@example.com",
        "role": ActorRole.DONOR,
        "organization": "Green Restaurant",
    },
    {
        "id": "2",
        "name": "NGO Representative",
        "email": "receiver@example.com",
        "role": ActorRole.RECEIVER,
        "organization": "Food for All NGO",
    },
    {
        "id": "3",
        "name": "Admin User",
        "email": "admin@example.com",
        "role": ActorRole.ADMIN,
        "organization": None,
    },
]


@dataclass(frozen=True)
class AuthOutcome:
    """Result of a session operation: the resulting actor and where to send the caller next."""

    actor: Optional[ActorEntity]
    redirect_to: str


def landing_route(role: Optional[ActorRole]) -> str:
    if role is None:
        return DEFAULT_LANDING_ROUTE
    return LANDING_ROUTES.get(role, DEFAULT_LANDING_ROUTE)


def registration_route(role: ActorRole) -> str:
    return REGISTRATION_ROUTES.get(role, DEFAULT_LANDING_ROUTE)


def actor_to_json(actor: ActorEntity) -> str:
    return json.dumps({**actor, "role": actor["role"].value})


def actor_from_json(raw: str) -> ActorEntity:
    data = json.loads(raw)
    return {
        "id": str(data["id"]),
        "name": data["name"],
        "email": data["email"],
        "role": ActorRole(data["role"]),
        "organization": data.get("organization"),
    }


# PUBLIC_INTERFACE
class IdentityStore:
    """
    Holds the directory of known actors and the single current actor of the session.

    The current actor is mirrored into session storage under the 'user' key so a
    restarted process picks it up again (without re-validation). Mutating
    operations are coroutines that wait for the simulated latency first.

    reserved_ids names actor ids already referenced elsewhere (for example by
    seeded listings); registration never hands those out.
    """

    def __init__(
        self,
        storage: SessionStorage,
        directory: Optional[Iterable[ActorEntity]] = None,
        latency_seconds: float = 0.0,
        reserved_ids: Iterable[str] = (),
    ) -> None:
        self._lock = RLock()
        self._reserved = set(reserved_ids)
        self._storage = storage
        self._latency = latency_seconds
        seed = SEED_ACTORS if directory is None else directory
        self._directory: List[ActorEntity] = [a.copy() for a in seed]
        self._current: Optional[ActorEntity] = self._restore()

    def _restore(self) -> Optional[ActorEntity]:
        raw = self._storage.get_item(SESSION_USER_KEY)
        if raw is None:
            return None
        try:
            actor = actor_from_json(raw)
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Ignoring unreadable session record: %s", exc)
            return None
        logger.info("Restored session for actor %s (%s)", actor["id"], actor["role"].value)
        return actor

    async def _simulate_latency(self) -> None:
        if self._latency > 0:
            await asyncio.sleep(self._latency)

    @property
    def current(self) -> Optional[ActorEntity]:
        with self._lock:
            return None if self._current is None else self._current.copy()

    @property
    def is_authenticated(self) -> bool:
        with self._lock:
            return self._current is not None

    def find_by_email(self, email: str) -> Optional[ActorEntity]:
        with self._lock:
            for actor in self._directory:
                if actor["email"] == email:
                    return actor.copy()
            return None

    def _next_id(self) -> str:
        taken = {a["id"] for a in self._directory} | self._reserved
        if self._current is not None:
            taken.add(self._current["id"])
        numeric = [int(i) for i in taken if i.isdigit()]
        return str(max(numeric, default=0) + 1)

    def _set_current(self, actor: Optional[ActorEntity]) -> None:
        self._current = actor
        if actor is None:
            self._storage.remove_item(SESSION_USER_KEY)
        else:
            self._storage.set_item(SESSION_USER_KEY, actor_to_json(actor))

    async def login(self, email: str, password: str) -> AuthOutcome:
        """
        Authenticate against the directory by email.

        The password is accepted but not checked.

        Raises:
            InvalidCredentialsError if no actor has this email.
        """
        await self._simulate_latency()
        with self._lock:
            actor = self.find_by_email(email)
            if actor is None:
                logger.warning("Login rejected for unknown email %r", email)
                raise InvalidCredentialsError()
            self._set_current(actor)
        logger.info("Actor %s logged in as %s", actor["id"], actor["role"].value)
        return AuthOutcome(actor=actor.copy(), redirect_to=landing_route(actor["role"]))

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        role: ActorRole,
        organization: Optional[str] = None,
    ) -> AuthOutcome:
        """
        Create a new actor, add it to the directory and make it current.

        Raises:
            DuplicateEmailError if the email is already in the directory.
        """
        await self._simulate_latency()
        with self._lock:
            if self.find_by_email(email) is not None:
                logger.warning("Registration rejected for existing email %r", email)
                raise DuplicateEmailError()
            actor: ActorEntity = {
                "id": self._next_id(),
                "name": name,
                "email": email,
                "role": role,
                "organization": organization,
            }
            self._directory.append(actor)
            self._set_current(actor.copy())
        logger.info("Registered actor %s as %s", actor["id"], role.value)
        return AuthOutcome(actor=actor.copy(), redirect_to=registration_route(role))

    def logout(self) -> AuthOutcome:
        with self._lock:
            previous = self._current
            self._set_current(None)
        if previous is not None:
            logger.info("Actor %s logged out", previous["id"])
        return AuthOutcome(actor=None, redirect_to=HOME_ROUTE)
