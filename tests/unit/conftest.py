"""
Unit test configuration.

Patches dotenv so pydantic-settings never reads the project's real .env file
during unit tests. Tests control config exclusively through monkeypatch.setenv().

Also provides in-memory stand-ins for the users collection, the mail
transport, GeoIP and the clock so service tests run without MongoDB or the
network.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import mongomock
import pytest
from bson import ObjectId
from bson.errors import InvalidId
from pymongo.errors import DuplicateKeyError

from config import JWTSettings, VerificationSettings
from infrastructure.geoip import GeoLocation
from repositories.user_repository import UserRepository
from schemas.models.user import LoginEvent, UserDoc
from services.auth_service import AuthService
from services.session_context import SessionContextResolver
from services.token_service import TokenService


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all unit tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})


# ── Fakes ─────────────────────────────────────────────────────────────────────


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class InMemoryUserRepository:
    """Dict-backed UserRepository with the same conditional-write semantics."""

    def __init__(self) -> None:
        self.docs: dict[ObjectId, dict] = {}

    def _get(self, user_id: Any) -> Optional[dict]:
        try:
            oid = user_id if isinstance(user_id, ObjectId) else ObjectId(str(user_id))
        except (InvalidId, TypeError):
            return None
        return self.docs.get(oid)

    def raw_by_email(self, email: str) -> Optional[dict]:
        for doc in self.docs.values():
            if doc["email"] == email:
                return doc
        return None

    async def ensure_indexes(self) -> None:
        return None

    async def find_by_email(self, email: str) -> Optional[UserDoc]:
        return UserDoc.from_mongo(self.raw_by_email(email))

    async def find_by_id(self, user_id: Any) -> Optional[UserDoc]:
        return UserDoc.from_mongo(self._get(user_id))

    async def insert(self, user: UserDoc) -> ObjectId:
        if self.raw_by_email(user.email) is not None:
            raise DuplicateKeyError("E11000 duplicate key error: email")
        doc = user.to_mongo()
        doc["_id"] = ObjectId()
        self.docs[doc["_id"]] = doc
        return doc["_id"]

    async def update_fields(self, user_id: Any, fields: dict) -> Optional[UserDoc]:
        doc = self._get(user_id)
        if doc is None:
            return None
        doc.update(fields)
        return UserDoc.from_mongo(doc)

    async def clear_pending_code(self, user_id: Any) -> None:
        doc = self._get(user_id)
        if doc is not None:
            doc.update(verificationCode=None, verificationCodeExpire=None)

    async def delete_by_id(self, user_id: Any) -> bool:
        doc = self._get(user_id)
        if doc is None:
            return False
        del self.docs[doc["_id"]]
        return True

    async def consume_verification_code(
        self,
        email: str,
        code: str,
        now: datetime,
        event: LoginEvent,
        history_limit: int,
    ) -> Optional[UserDoc]:
        doc = self.raw_by_email(email)
        if doc is None or doc.get("verificationCode") != code:
            return None
        expire = doc.get("verificationCodeExpire")
        if expire is None or not expire > now:
            return None
        doc.update(
            verificationCode=None,
            verificationCodeExpire=None,
            unverifiedExpire=None,
            isVerified=True,
        )
        history = [event.model_dump()] + list(doc.get("loginHistory") or [])
        doc["loginHistory"] = history[:history_limit]
        return UserDoc.from_mongo(doc)

    async def delete_expired_unverified(self, now: datetime) -> int:
        expired = [
            oid
            for oid, doc in self.docs.items()
            if not doc.get("isVerified")
            and doc.get("unverifiedExpire") is not None
            and doc["unverifiedExpire"] < now
        ]
        for oid in expired:
            del self.docs[oid]
        return len(expired)


class FakeEmailProvider:
    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.succeed = True
        self.error: Optional[Exception] = None

    async def send_verification_email(
        self, email: str, user_name: Optional[str], otp_code: str, ttl_minutes: int
    ) -> bool:
        if self.error is not None:
            raise self.error
        self.sent.append(
            {
                "email": email,
                "user_name": user_name,
                "code": otp_code,
                "ttl_minutes": ttl_minutes,
            }
        )
        return self.succeed

    @property
    def last_code(self) -> str:
        return self.sent[-1]["code"]


class FakeGeoIP:
    def __init__(self, location: Optional[GeoLocation] = None) -> None:
        self.location = location
        self.looked_up: list[str] = []

    async def lookup(self, ip_address: str) -> Optional[GeoLocation]:
        self.looked_up.append(ip_address)
        return self.location


class AsyncCollectionAdapter:
    """Exposes a sync mongomock collection through awaitable methods."""

    def __init__(self, collection: mongomock.Collection) -> None:
        self.sync = collection

    def __getattr__(self, name: str):
        method = getattr(self.sync, name)

        async def call(*args, **kwargs):
            return method(*args, **kwargs)

        return call


# ── Fixtures ──────────────────────────────────────────────────────────────────


@pytest.fixture
def clock():
    # Real wall-clock start so issued JWTs are not already expired
    start = datetime.now(timezone.utc).replace(microsecond=0)
    return FakeClock(start)


@pytest.fixture
def naive_clock():
    # mongomock hands back naive datetimes; keep the clock naive UTC to match
    start = datetime.now(timezone.utc).replace(microsecond=0, tzinfo=None)
    return FakeClock(start)


@pytest.fixture
def user_repo():
    return InMemoryUserRepository()


@pytest.fixture
def email_provider():
    return FakeEmailProvider()


@pytest.fixture
def geoip():
    return FakeGeoIP(GeoLocation(city="Baku", country="AZ", timezone="Asia/Baku"))


@pytest.fixture
def token_service():
    return TokenService(JWTSettings(jwt_secret="unit-test-secret"))


@pytest.fixture
def auth_service(user_repo, email_provider, geoip, token_service, clock):
    return AuthService(
        user_repo,
        email_provider,
        SessionContextResolver(geoip, "82.194.16.0"),
        token_service,
        VerificationSettings(),
        clock=clock,
    )


@pytest.fixture
def mongo_users():
    """A real UserRepository over an in-memory mongomock collection."""
    collection = mongomock.MongoClient().db.users
    return UserRepository(AsyncCollectionAdapter(collection)), collection
