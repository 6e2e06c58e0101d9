"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database, recreated for each test
- A fake Graph API served through httpx.MockTransport
- An RSA key pair and published key set for identity tokens
- HTTPX AsyncClient (anonymous and logged-in)
"""
import base64
import json
import os
import time
from typing import AsyncGenerator, Callable, Generator

import httpx
import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from httpx import ASGITransport, AsyncClient
from itsdangerous import TimestampSigner
from sqlalchemy.orm import Session

os.environ["TESTING"] = "1"
os.environ["ENV"] = "dev"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-session-secret"
os.environ["APP_ID"] = "1234567890"
os.environ["APP_SECRET"] = "test-app-secret"
os.environ["BASE_URL"] = "https://console.test"
os.environ["APP_REDIRECT"] = "https://console.test/community_install"
os.environ["APP_USER_REDIRECT"] = "https://console.test/user_install"
os.environ["VERIFY_TOKEN"] = "test-verify-token"
os.environ["ACCESS_TOKEN"] = ""
os.environ["OIDC_KEYS_URL"] = "https://keys.test/.well-known/openid/"
os.environ["OIDC_ISSUER"] = "https://workplace.com"

from workplace_admin.main import app  # noqa: E402
from workplace_admin.core.config import settings  # noqa: E402
from workplace_admin.core.deps import (  # noqa: E402
    get_db,
    get_graph_client,
    get_identity_verifier,
)
from workplace_admin.core.security import hash_password  # noqa: E402
from workplace_admin.db.base import Base  # noqa: E402
from workplace_admin.db.models import User  # noqa: E402
from workplace_admin.db.session import SessionLocal, engine  # noqa: E402
from workplace_admin.services import user_service  # noqa: E402
from workplace_admin.services.graph_api import GraphClient  # noqa: E402
from workplace_admin.services.identity_token import IdentityTokenVerifier  # noqa: E402

TEST_PASSWORD = "correct horse battery staple"
TEST_KID = "test-kid"


# =============================================================================
# Database
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh schema per test; app code may commit freely."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def test_user(db: Session) -> User:
    return user_service.create_user(db, "admin", hash_password(TEST_PASSWORD))


# =============================================================================
# Fake Graph API
# =============================================================================

class FakeGraph:
    """
    Canned Graph API responses keyed by (method, path).

    A response body may be a callable taking the httpx.Request, for
    responses that depend on the access token or query. The callable may
    return a JSON body or a complete httpx.Response.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], tuple[int, object]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, body: object = None, status_code: int = 200) -> None:
        self.routes[(method, path)] = (status_code, body)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if (r.method, self._path(r)) == (method, path)]

    def _path(self, request: httpx.Request) -> str:
        prefix = f"/{settings.GRAPH_VERSION}/"
        return request.url.path[len(prefix):] if request.url.path.startswith(prefix) else request.url.path

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, self._path(request)))
        if route is None:
            return httpx.Response(404, json={"error": {"message": "unknown path"}})
        status_code, body = route
        if callable(body):
            body = body(request)
            if isinstance(body, httpx.Response):
                return body
        return httpx.Response(status_code, json=body)


@pytest.fixture
def graph() -> FakeGraph:
    return FakeGraph()


# =============================================================================
# Identity tokens
# =============================================================================

@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def public_keys(rsa_private_key) -> dict[str, str]:
    """Key set in the published ``{kid: pem}`` shape."""
    pem = rsa_private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return {TEST_KID: pem.decode()}


@pytest.fixture(scope="session")
def make_id_token(rsa_private_key) -> Callable[..., str]:
    def _make(kid: str = TEST_KID, **overrides) -> str:
        now = int(time.time())
        claims = {
            "iss": settings.OIDC_ISSUER,
            "aud": settings.APP_ID,
            "sub": "100042",
            "iat": now,
            "exp": now + 300,
        }
        claims.update(overrides)
        return jwt.encode(claims, rsa_private_key, algorithm="RS256", headers={"kid": kid})

    return _make


@pytest.fixture
def keys_transport(public_keys) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == settings.OIDC_KEYS_URL
        return httpx.Response(200, json={"keys": public_keys})

    return httpx.MockTransport(handler)


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(
    db: Session,
    graph: FakeGraph,
    keys_transport: httpx.MockTransport,
) -> AsyncGenerator[AsyncClient, None]:
    """Anonymous client with the database and outbound HTTP overridden."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_graph_client] = lambda: GraphClient(
        settings, transport=httpx.MockTransport(graph.handle)
    )
    app.dependency_overrides[get_identity_verifier] = lambda: IdentityTokenVerifier(
        settings, transport=keys_transport
    )

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


async def login(client: AsyncClient, username: str = "admin", password: str = TEST_PASSWORD):
    return await client.post(
        "/login",
        data={"username": username, "password": password},
        follow_redirects=False,
    )


@pytest.fixture(scope="function")
async def authed_client(client: AsyncClient, test_user: User) -> AsyncClient:
    """Client whose session cookie belongs to test_user."""
    response = await login(client)
    assert response.status_code == 302
    return client


def read_session(client: AsyncClient) -> dict:
    """Decode the signed session cookie the app set on the client."""
    cookie = client.cookies.get(settings.SESSION_COOKIE)
    if not cookie:
        return {}
    data = TimestampSigner(settings.SECRET_KEY).unsign(cookie.encode())
    return json.loads(base64.b64decode(data))
