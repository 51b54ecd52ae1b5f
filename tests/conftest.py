"""
Shared fixtures.

Every test builds its own storage, OAuth registry and application, so no
state leaks between tests.
"""

import pytest
from fastapi.testclient import TestClient

from perfumery.api.app import create_app
from perfumery.config import Settings
from perfumery.core.errors import UpstreamProviderError
from perfumery.identity import IdentityLinker, MemberRepository
from perfumery.integrations.oauth import ExternalIdentity, OAuthProvider, OAuthRegistry
from perfumery.storage import create_local_storage

TEST_SECRET = "test-secret-key-with-at-least-32-bytes"
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-password"


class FakeGoogle(OAuthProvider):
    """Stands in for Google: codes and credentials map to canned identities."""

    name = "google"

    def __init__(self):
        self.identities: dict[str, ExternalIdentity] = {}

    @property
    def is_configured(self) -> bool:
        return True

    def get_authorize_url(self, state: str) -> str:
        return f"https://accounts.example.com/consent?state={state}"

    def assert_identity(self, key: str, email: str, subject: str = "g-100", name: str = "Ana"):
        self.identities[key] = ExternalIdentity(
            provider="google",
            subject=subject,
            email=email,
            name=name,
            avatar_url=f"https://avatars.example.com/{subject}.png",
        )

    async def authenticate(self, code: str) -> ExternalIdentity:
        if code not in self.identities:
            raise UpstreamProviderError("Unknown authorization code")
        return self.identities[code]

    async def verify_credential(self, credential: str) -> ExternalIdentity:
        if credential not in self.identities:
            raise UpstreamProviderError("Credential rejected")
        return self.identities[credential]


# =============================================================================
# Service-level fixtures
# =============================================================================


@pytest.fixture
def settings():
    """Settings isolated from the environment's .env file."""
    return Settings(
        _env_file=None,
        jwt_secret_key=TEST_SECRET,
        bcrypt_rounds=4,
        admin_email=ADMIN_EMAIL,
        admin_password=ADMIN_PASSWORD,
        sentry_dsn="",
    )


@pytest.fixture
def storage():
    """Fresh in-memory storage with unique indexes declared."""
    return create_local_storage()


@pytest.fixture
def members(storage):
    return MemberRepository(storage.metadata)


@pytest.fixture
def linker(members):
    """Identity linker with a cheap bcrypt work factor."""
    return IdentityLinker(members, bcrypt_rounds=4)


# =============================================================================
# Application fixtures
# =============================================================================


@pytest.fixture
def google():
    return FakeGoogle()


@pytest.fixture
def app(settings, storage, google):
    return create_app(settings, storage=storage, oauth=OAuthRegistry([google]))


@pytest.fixture
def client(app):
    """Test client; entering it runs the lifespan (admin bootstrap)."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register(client):
    """Register a member over HTTP and return (member, token)."""

    def _register(email="ana@example.com", password="secret123", name="Ana", **extra):
        body = {
            "email": email,
            "password": password,
            "name": name,
            "YOB": 1990,
            "gender": False,
            **extra,
        }
        response = client.post("/register", json=body)
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return data["member"], data["token"]

    return _register


@pytest.fixture
def admin_token(client):
    """Bearer token for the bootstrapped administrator."""
    response = client.post("/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200, response.text
    return response.json()["data"]["token"]
