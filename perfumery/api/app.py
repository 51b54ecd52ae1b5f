"""
FastAPI application for the Perfumery storefront's identity layer.

Build it with create_app(); run it with
``uvicorn perfumery.api.app:create_app --factory`` or ``perfumery serve``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from perfumery import __version__
from perfumery.api import members, reviews
from perfumery.api.dependencies import AppState
from perfumery.api.responses import error_response
from perfumery.auth import routes as auth_routes
from perfumery.auth.guard import AuthorizationGuard
from perfumery.auth.tokens import TokenService
from perfumery.config import Settings, get_settings
from perfumery.core.errors import CorruptedPasswordHashError, PerfumeryError
from perfumery.identity import IdentityLinker, MemberRepository
from perfumery.integrations.oauth import OAuthRegistry
from perfumery.integrations.sentry import capture_exception, init_sentry
from perfumery.reviews import ReviewRepository, ReviewService
from perfumery.storage import StorageProvider, create_local_storage

logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup app resources."""
    services: AppState = app.state.services
    settings = services.settings

    if init_sentry(settings):
        logger.info("Sentry error tracking enabled")

    if settings.bootstrap_admin:
        await services.linker.ensure_admin(
            settings.admin_email, settings.admin_password, settings.admin_name
        )

    logger.info(f"Perfumery API starting in {settings.environment} mode")

    yield

    logger.info("Perfumery API shutting down")


# =============================================================================
# Error Handlers
# =============================================================================


async def _handle_domain_error(request: Request, exc: PerfumeryError):
    return error_response(exc.status_code, exc.message)


async def _handle_validation_error(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return error_response(400, "Validation failed", errors=errors)


async def _handle_http_error(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail))


async def _handle_corrupted_hash(request: Request, exc: CorruptedPasswordHashError):
    capture_exception(exc, path=request.url.path)
    return error_response(500, "Internal server error")


async def _handle_unexpected(request: Request, exc: Exception):
    capture_exception(exc, path=request.url.path)
    return error_response(500, "Internal server error")


# =============================================================================
# App Factory
# =============================================================================


def build_services(
    settings: Settings,
    storage: StorageProvider | None = None,
    oauth: OAuthRegistry | None = None,
    tokens: TokenService | None = None,
) -> AppState:
    """
    Wire up every service the API needs.

    Raises:
        ConfigurationError: no JWT signing secret is configured
    """
    tokens = tokens or TokenService.from_settings(settings)
    storage = storage or create_local_storage()

    member_repo = MemberRepository(storage.metadata)
    review_repo = ReviewRepository(storage.metadata)

    return AppState(
        settings=settings,
        storage=storage,
        tokens=tokens,
        members=member_repo,
        linker=IdentityLinker.from_settings(member_repo, settings),
        guard=AuthorizationGuard(tokens, member_repo),
        reviews=ReviewService(review_repo),
        oauth=oauth or OAuthRegistry.from_settings(settings),
    )


def create_app(
    settings: Settings | None = None,
    storage: StorageProvider | None = None,
    oauth: OAuthRegistry | None = None,
    tokens: TokenService | None = None,
) -> FastAPI:
    """Create the FastAPI application. Fails fast on unusable configuration."""
    settings = settings or get_settings()
    services = build_services(settings, storage=storage, oauth=oauth, tokens=tokens)

    app = FastAPI(
        title="Perfumery API",
        description="Member identity, authorization and perfume reviews",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PerfumeryError, _handle_domain_error)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_error)
    app.add_exception_handler(CorruptedPasswordHashError, _handle_corrupted_hash)
    app.add_exception_handler(Exception, _handle_unexpected)

    app.include_router(auth_routes.router)
    app.include_router(members.router)
    app.include_router(reviews.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "perfumery-api"}

    return app
