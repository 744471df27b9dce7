"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It pins APP_ENV so no developer .env file leaks into the run, and gives the
gateway a strong signing secret and no Redis by default.
"""

import os
import time

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"

os.environ.setdefault("JWT_SECRET", "test-secret-0123456789abcdefghijklmnop")
os.environ.setdefault("ALLOW_DEV_TOKENS", "true")
os.environ.pop("REDIS_URL", None)
os.environ.setdefault("LOG_LEVEL", "warning")

from typing import Callable

import fakeredis.aioredis
import pytest

from app.adapters.documents import AbstractDocumentServiceClient
from app.core.config import Settings
from app.core.errors import DownstreamServiceError
from app.schemas.auth import AuthUser
from app.schemas.documents import (
    CreateDocumentRequest,
    DocumentRecord,
    ShareDocumentRequest,
    UpdateDocumentRequest,
)

TEST_SECRET = os.environ["JWT_SECRET"]


class FakeDocumentService(AbstractDocumentServiceClient):
    """In-memory stand-in for the document service.

    Knows a fixed set of users; documents are visible to their owner and to
    users they are shared with.
    """

    def __init__(self, users: dict[str, str] | None = None) -> None:
        self.users = dict(users or {"bob": "correct-horse"})
        self.documents: dict[str, DocumentRecord] = {}
        self.login_calls = 0
        self.closed = False

    def _user_id(self, username: str) -> str:
        return f"user-{username.lower()}"

    async def signup(self, username: str, password: str) -> AuthUser:
        if username.lower() in self.users:
            raise DownstreamServiceError(409, "Username already exists")
        self.users[username.lower()] = password
        return AuthUser(user_id=self._user_id(username))

    async def login(self, username: str, password: str) -> AuthUser:
        self.login_calls += 1
        if self.users.get(username.lower()) != password:
            raise DownstreamServiceError(401, "Invalid credentials")
        return AuthUser(user_id=self._user_id(username))

    def _visible(self, user_id: str, document_id: str) -> DocumentRecord:
        document = self.documents.get(document_id)
        if document is None:
            raise DownstreamServiceError(404, "Document not found")
        if document.owner_user_id != user_id and user_id not in document.shared_with:
            raise DownstreamServiceError(403, "Forbidden")
        return document

    async def list_documents(self, user_id: str) -> list[DocumentRecord]:
        return [
            doc
            for doc in self.documents.values()
            if doc.owner_user_id == user_id or user_id in doc.shared_with
        ]

    async def create_document(self, user_id: str, body: CreateDocumentRequest) -> DocumentRecord:
        document = DocumentRecord(
            id=str(len(self.documents) + 1),
            owner_user_id=user_id,
            title=body.title,
            content=body.content,
            created_at="2026-01-01T00:00:00Z",
            updated_at="2026-01-01T00:00:00Z",
        )
        self.documents[document.id] = document
        return document

    async def get_document(self, user_id: str, document_id: str) -> DocumentRecord:
        return self._visible(user_id, document_id)

    async def update_document(
        self, user_id: str, document_id: str, body: UpdateDocumentRequest
    ) -> DocumentRecord:
        document = self._visible(user_id, document_id)
        if document.owner_user_id != user_id and document.shared_with.get(user_id) != "EDITOR":
            raise DownstreamServiceError(403, "Forbidden")
        changes = body.model_dump(exclude_none=True)
        updated = document.model_copy(update=changes)
        self.documents[document_id] = updated
        return updated

    async def share_document(
        self, user_id: str, document_id: str, body: ShareDocumentRequest
    ) -> DocumentRecord:
        document = self._visible(user_id, document_id)
        if document.owner_user_id != user_id:
            raise DownstreamServiceError(403, "Only the owner can share")
        shared = {**document.shared_with, body.user_id: body.role.upper()}
        updated = document.model_copy(update={"shared_with": shared})
        self.documents[document_id] = updated
        return updated

    async def aclose(self) -> None:
        self.closed = True


class MutableClock:
    """Callable clock returning UNIX seconds that tests can move forward.

    Starts at the real current time because PyJWT checks ``exp`` against the
    wall clock.
    """

    def __init__(self, start: float | None = None) -> None:
        self.now = time.time() if start is None else start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def signing_secret() -> str:
    return TEST_SECRET


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock()


@pytest.fixture
def fake_documents() -> FakeDocumentService:
    return FakeDocumentService()


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Build Settings from explicit overrides instead of the environment."""

    def _make(
        *,
        app_env: str = "testing",
        jwt_secret: str | None = TEST_SECRET,
        allow_dev_tokens: bool = True,
        redis_url: str | None = None,
        **auth_overrides: int,
    ) -> Settings:
        cfg = Settings(app_env=app_env)
        cfg.security.jwt_secret = jwt_secret
        cfg.security.allow_dev_tokens = allow_dev_tokens
        cfg.security.redis_url = redis_url
        for name, value in auth_overrides.items():
            setattr(cfg.auth, name, value)
        return cfg

    return _make


@pytest.fixture
def fake_redis_factory():
    """Client factory handing out one shared FakeRedis per test."""
    server = fakeredis.FakeServer()

    def _factory(url: str):
        return fakeredis.aioredis.FakeRedis(server=server, decode_responses=True)

    return _factory
