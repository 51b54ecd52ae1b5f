"""
Per-application state and the FastAPI dependencies that read it.

Everything a request needs is built once in create_app and hung off
``app.state``; nothing here is a module-level singleton, so every test
can build its own application.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from perfumery.auth.guard import AuthorizationGuard
from perfumery.auth.tokens import TokenService
from perfumery.config import Settings
from perfumery.identity import IdentityLinker, MemberRepository
from perfumery.integrations.oauth import OAuthRegistry
from perfumery.reviews import ReviewService
from perfumery.storage import StorageProvider


@dataclass
class AppState:
    """Application services - initialized by create_app."""

    settings: Settings
    storage: StorageProvider
    tokens: TokenService
    members: MemberRepository
    linker: IdentityLinker
    guard: AuthorizationGuard
    reviews: ReviewService
    oauth: OAuthRegistry


def get_state(request: Request) -> AppState:
    return request.app.state.services


def get_tokens(request: Request) -> TokenService:
    return get_state(request).tokens


def get_members(request: Request) -> MemberRepository:
    return get_state(request).members


def get_linker(request: Request) -> IdentityLinker:
    return get_state(request).linker


def get_review_service(request: Request) -> ReviewService:
    return get_state(request).reviews


def get_oauth(request: Request) -> OAuthRegistry:
    return get_state(request).oauth


def get_storage(request: Request) -> StorageProvider:
    return get_state(request).storage
