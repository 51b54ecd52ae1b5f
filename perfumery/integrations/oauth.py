# =============================================================================
# OAuth Integration (Google)
# =============================================================================
#
# Setup (Google):
#   1. Go to https://console.cloud.google.com/apis/credentials
#   2. Create OAuth 2.0 Client ID (Web application)
#   3. Add authorized redirect URI: https://yourdomain.com/auth/google/callback
#   4. Set env vars:
#      - GOOGLE_OAUTH_CLIENT_ID=...
#      - GOOGLE_OAUTH_CLIENT_SECRET=...
#      - GOOGLE_OAUTH_REDIRECT_URI=...
#
# Two ways in, both ending in an ExternalIdentity:
#   - redirect flow: authorize URL -> callback with ?code -> authenticate(code)
#   - credential flow: the browser already holds a Google ID token and posts
#     it -> verify_credential(credential)
#
# Providers are registered on an OAuthRegistry that is passed to create_app,
# so tests can register fakes without touching global state.
#
# =============================================================================

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel

from perfumery.config import Settings
from perfumery.core.errors import (
    InvalidOAuthStateError,
    UnknownProviderError,
    UpstreamProviderError,
)
from perfumery.core.utils import generate_id
from perfumery.storage import CacheStorage

logger = logging.getLogger(__name__)


# =============================================================================
# Models
# =============================================================================


class ExternalIdentity(BaseModel):
    """Identity assertion from a verified external provider."""
    provider: str  # "google"
    subject: str  # provider's stable user id
    email: str
    name: str
    avatar_url: str | None = None
    email_verified: bool = True


class OAuthProvider(ABC):
    """A single external identity provider."""

    name: str

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether credentials for this provider are present."""

    @abstractmethod
    def get_authorize_url(self, state: str) -> str:
        """URL to send the browser to for the consent screen."""

    @abstractmethod
    async def authenticate(self, code: str) -> ExternalIdentity:
        """Complete the redirect flow with an authorization code."""

    @abstractmethod
    async def verify_credential(self, credential: str) -> ExternalIdentity:
        """Verify a provider-issued credential (e.g. a Google ID token)."""


# =============================================================================
# Google OAuth
# =============================================================================


class GoogleOAuth(OAuthProvider):
    """Google OAuth 2.0 / OpenID Connect implementation."""

    name = "google"

    AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
    TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"
    ISSUERS = ("accounts.google.com", "https://accounts.google.com")

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self._transport = transport
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> GoogleOAuth:
        return cls(
            client_id=settings.google_oauth_client_id,
            client_secret=settings.google_oauth_client_secret,
            redirect_uri=settings.google_oauth_redirect_uri,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self._timeout)

    def get_authorize_url(self, state: str) -> str:
        """
        Get URL to redirect user to for Google sign-in.

        Args:
            state: CSRF token echoed back on the callback
        """
        if not self.is_configured:
            raise UpstreamProviderError("Google OAuth not configured")

        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": "openid email profile",
            "prompt": "select_account",
            "state": state,
        }
        return f"{self.AUTHORIZE_URL}?{urlencode(params)}"

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            async with self._client() as client:
                response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Google request to {url} failed: {e}")
            raise UpstreamProviderError("Google is unreachable") from e

        if response.status_code != 200:
            logger.error(f"Google {url} returned {response.status_code}: {response.text}")
            raise UpstreamProviderError(f"Google rejected the request: {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamProviderError("Google returned an unreadable response") from e

    async def exchange_code(self, code: str) -> dict[str, Any]:
        """Exchange authorization code for tokens."""
        if not self.is_configured:
            raise UpstreamProviderError("Google OAuth not configured")

        return await self._request(
            "POST",
            self.TOKEN_URL,
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "code": code,
                "redirect_uri": self.redirect_uri,
                "grant_type": "authorization_code",
            },
        )

    async def get_user_info(self, access_token: str) -> ExternalIdentity:
        """Get user info from Google with an OAuth access token."""
        data = await self._request(
            "GET",
            self.USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        return self._identity(
            subject=data.get("id"),
            email=data.get("email"),
            name=data.get("name"),
            picture=data.get("picture"),
            email_verified=data.get("verified_email", False),
        )

    async def authenticate(self, code: str) -> ExternalIdentity:
        tokens = await self.exchange_code(code)
        access_token = tokens.get("access_token")
        if not access_token:
            raise UpstreamProviderError("Google did not return an access token")
        return await self.get_user_info(access_token)

    async def verify_credential(self, credential: str) -> ExternalIdentity:
        """
        Verify a Google ID token with Google's tokeninfo endpoint.

        The audience must be our client id and the issuer must be Google.
        """
        if not self.is_configured:
            raise UpstreamProviderError("Google OAuth not configured")

        data = await self._request("GET", self.TOKENINFO_URL, params={"id_token": credential})

        if data.get("aud") != self.client_id:
            raise UpstreamProviderError("Credential was issued for another application")
        if data.get("iss") not in self.ISSUERS:
            raise UpstreamProviderError("Credential was not issued by Google")

        return self._identity(
            subject=data.get("sub"),
            email=data.get("email"),
            name=data.get("name"),
            picture=data.get("picture"),
            # tokeninfo encodes booleans as strings
            email_verified=str(data.get("email_verified", "")).lower() == "true",
        )

    def _identity(
        self,
        subject: Any,
        email: Any,
        name: Any,
        picture: Any,
        email_verified: bool,
    ) -> ExternalIdentity:
        if not subject or not email:
            raise UpstreamProviderError("Google profile is missing id or email")
        # Linking by email is only safe when Google vouches for the address
        if not email_verified:
            raise UpstreamProviderError("Google account email is not verified")

        return ExternalIdentity(
            provider=self.name,
            subject=str(subject),
            email=str(email),
            name=name or str(email).split("@")[0],
            avatar_url=picture,
            email_verified=True,
        )


# =============================================================================
# OAuth Registry
# =============================================================================


class OAuthRegistry:
    """Explicit map of provider name -> provider, plus CSRF state handling."""

    STATE_PREFIX = "oauth_state:"

    def __init__(self, providers: list[OAuthProvider] | None = None, state_ttl: int = 600):
        self._providers: dict[str, OAuthProvider] = {}
        self.state_ttl = state_ttl
        for provider in providers or []:
            self.register(provider)

    @classmethod
    def from_settings(cls, settings: Settings) -> OAuthRegistry:
        return cls(
            providers=[GoogleOAuth.from_settings(settings)],
            state_ttl=settings.oauth_state_ttl_seconds,
        )

    def register(self, provider: OAuthProvider) -> None:
        self._providers[provider.name] = provider

    def get(self, name: str) -> OAuthProvider:
        """Get a configured provider or raise UnknownProviderError."""
        provider = self._providers.get(name)
        if provider is None or not provider.is_configured:
            raise UnknownProviderError(f"Provider '{name}' not available")
        return provider

    def get_available_providers(self) -> list[str]:
        """Names of providers that are properly configured."""
        return [name for name, p in self._providers.items() if p.is_configured]

    async def create_state(self, cache: CacheStorage, provider: str) -> str:
        """Create a one-time state token for CSRF protection."""
        state = generate_id("oauth")
        await cache.set(self.STATE_PREFIX + state, provider, ttl=self.state_ttl)
        return state

    async def consume_state(self, cache: CacheStorage, state: str | None, provider: str) -> None:
        """Validate and consume a state token issued for ``provider``."""
        if not state or await cache.pop(self.STATE_PREFIX + state) != provider:
            raise InvalidOAuthStateError()

    async def get_authorize_url(self, cache: CacheStorage, provider: str) -> str:
        oauth = self.get(provider)
        state = await self.create_state(cache, provider)
        return oauth.get_authorize_url(state)
