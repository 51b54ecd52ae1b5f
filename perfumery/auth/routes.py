# =============================================================================
# Auth API Routes
# =============================================================================
#
# Endpoints:
#   POST /register                  - Create account, returns member + token
#   POST /login                     - Email/password login
#
# OAuth:
#   GET  /auth/providers            - List configured OAuth providers
#   GET  /auth/{provider}           - Redirect to the provider's consent page
#   GET  /auth/{provider}/callback  - Complete the redirect flow
#   POST /auth/{provider}/token     - Exchange a provider-issued credential
#
# Every successful path ends the same way: one bearer token from the
# TokenService. No server-side session is kept.
#
# =============================================================================

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, EmailStr, Field

from perfumery.api.dependencies import (
    get_linker,
    get_oauth,
    get_storage,
    get_tokens,
)
from perfumery.api.responses import success
from perfumery.auth.tokens import TokenService
from perfumery.core.errors import UpstreamProviderError
from perfumery.core.models import Member, MemberCreate, MemberResponse
from perfumery.identity import IdentityLinker
from perfumery.integrations.oauth import OAuthRegistry
from perfumery.storage import StorageProvider

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


# =============================================================================
# Request Models
# =============================================================================

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class CredentialRequest(BaseModel):
    credential: str = Field(min_length=1)


def _session_payload(member: Member, tokens: TokenService) -> dict:
    return {
        "member": MemberResponse.from_member(member),
        "token": tokens.issue(member.id),
        "expiresIn": tokens.expires_in_seconds,
    }


# =============================================================================
# Local Accounts
# =============================================================================

@router.post("/register", status_code=201)
async def register(
    data: MemberCreate,
    linker: IdentityLinker = Depends(get_linker),
    tokens: TokenService = Depends(get_tokens),
):
    """Create a new account and sign it in."""
    member = await linker.register(data)
    return success("Member registered successfully", **_session_payload(member, tokens))


@router.post("/login")
async def login(
    data: LoginRequest,
    linker: IdentityLinker = Depends(get_linker),
    tokens: TokenService = Depends(get_tokens),
):
    """Authenticate with email and password."""
    member = await linker.authenticate(data.email, data.password)
    return success("Login successful", **_session_payload(member, tokens))


# =============================================================================
# OAuth Endpoints
# =============================================================================

@router.get("/auth/providers")
async def list_oauth_providers(oauth: OAuthRegistry = Depends(get_oauth)):
    """List OAuth providers that are properly configured."""
    return success(providers=oauth.get_available_providers())


@router.get("/auth/{provider}")
async def oauth_authorize(
    provider: str,
    oauth: OAuthRegistry = Depends(get_oauth),
    storage: StorageProvider = Depends(get_storage),
):
    """Start the redirect flow: send the browser to the provider."""
    url = await oauth.get_authorize_url(storage.cache, provider)
    return RedirectResponse(url, status_code=307)


@router.get("/auth/{provider}/callback")
async def oauth_callback(
    provider: str,
    request: Request,
    oauth: OAuthRegistry = Depends(get_oauth),
    storage: StorageProvider = Depends(get_storage),
    linker: IdentityLinker = Depends(get_linker),
    tokens: TokenService = Depends(get_tokens),
):
    """
    Complete the redirect flow.

    Exchanges the authorization code for the provider's profile, links or
    creates the member and returns a bearer token.
    """
    params = request.query_params
    oauth_provider = oauth.get(provider)

    if params.get("error"):
        raise UpstreamProviderError(f"{provider} sign-in failed: {params['error']}")

    await oauth.consume_state(storage.cache, params.get("state"), provider)

    code = params.get("code")
    if not code:
        raise UpstreamProviderError("Missing authorization code")

    identity = await oauth_provider.authenticate(code)
    result = await linker.link_external(identity)
    logger.info(f"{provider} sign-in for member {result.member.id} ({result.outcome.value})")
    return success("Login successful", **_session_payload(result.member, tokens))


@router.post("/auth/{provider}/token")
async def oauth_credential(
    provider: str,
    data: CredentialRequest,
    oauth: OAuthRegistry = Depends(get_oauth),
    linker: IdentityLinker = Depends(get_linker),
    tokens: TokenService = Depends(get_tokens),
):
    """Sign in with a credential the browser obtained from the provider."""
    identity = await oauth.get(provider).verify_credential(data.credential)
    result = await linker.link_external(identity)
    logger.info(f"{provider} sign-in for member {result.member.id} ({result.outcome.value})")
    return success("Login successful", **_session_payload(result.member, tokens))
