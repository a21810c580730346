from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .identity import IdentityStore
from .ledger import Clock, DonationLedger, utc_now
from .routers import donations as donations_router
from .routers import session as session_router
from .routers import stats as stats_router
from .session_storage import build_session_storage
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "session", "description": "Login, registration and logout of the current actor."},
    {
        "name": "donations",
        "description": "Post, browse, filter and move food donation listings through their lifecycle.",
    },
    {"name": "stats", "description": "Dashboard summaries computed from the ledger."},
]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger("src.api").setLevel(level)


# PUBLIC_INTERFACE
def create_app(
    settings: Optional[Settings] = None,
    clock: Clock = utc_now,
    identity: Optional[IdentityStore] = None,
    ledger: Optional[DonationLedger] = None,
) -> FastAPI:
    """
    Build the FastAPI application and the stores it owns.

    Each call constructs a fresh identity store and ledger unless they are
    passed in, so separate apps never share state.
    """
    settings = settings or get_settings()
    _configure_logging(settings.log_level)

    app = FastAPI(
        title="Food Donation Backend",
        description="Backend API matching food donors with receivers and tracking donation lifecycles.",
        version="0.1.0",
        openapi_tags=openapi_tags,
    )

    app.state.settings = settings
    app.state.clock = clock
    app.state.ledger = ledger or DonationLedger(
        clock=clock,
        latency_seconds=settings.simulated_latency_seconds,
    )
    app.state.identity = identity or IdentityStore(
        build_session_storage(settings),
        latency_seconds=settings.simulated_latency_seconds,
        reserved_ids=app.state.ledger.party_ids(),
    )

    # Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return a consistent JSON structure for request validation errors.

        Response format:
            {
                "error": "ValidationError",
                "detail": [... pydantic/fastapi error details ...],
                "message": "Request validation failed"
            }
        """
        return JSONResponse(
            status_code=422,
            content={
                "error": "ValidationError",
                "message": "Request validation failed",
                # Errors raised inside validators carry the exception object in ctx
                "detail": jsonable_encoder(exc.errors(), custom_encoder={Exception: str}),
            },
        )

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health.
        """
        return {"message": "Healthy", "session_backend": settings.session_backend}

    app.include_router(session_router.router)
    app.include_router(donations_router.router)
    app.include_router(stats_router.router)

    logger.info(
        "App created (session backend=%s, simulated latency=%.2fs)",
        settings.session_backend,
        settings.simulated_latency_seconds,
    )
    return app


app = create_app()
