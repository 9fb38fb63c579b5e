"""
Centralized Test Configuration.
"""

import json
from datetime import datetime

import httpx
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from lastmile.app.main import app
from lastmile.app.db.session import get_db, Base
from lastmile.app.core.jwt import create_access_token
from lastmile.app.core.security import get_password_hash
from lastmile.app.models.driver import Driver
from lastmile.app.models.route import Route
from lastmile.app.models.delivery import Delivery
from lastmile.app.models.enums import DriverStatus, UserRole
from lastmile.app.models.route_enums import RouteStatus
from lastmile.app.services.photo_upload import PhotoUploader, decode_photo, get_photo_uploader
from lastmile.driver.api import DriverApi
import lastmile.app.core.redis_client as redis_client_module

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# 1x1 transparent PNG
TINY_PNG = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)).lower():
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        return not self._closed

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        return True

    async def setex(self, key, ttl, value):
        return await self.set(key, value, ex=ttl)

    async def delete(self, key):
        if self._closed:
            return 0
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        if self._closed:
            return 0
        return 1 if key in self.store else 0

    async def flushdb(self):
        if not self._closed:
            self.store = {}

    async def aclose(self):
        self._closed = True
        self.store = {}


class RecordingPhotoUploader(PhotoUploader):
    """Validates like the real uploaders and hands back predictable URLs."""

    def __init__(self):
        self.uploads = []

    async def upload(self, photo: str, folder: str) -> str:
        decode_photo(photo)
        self.uploads.append(folder)
        return f"https://photos.test/{folder}/{len(self.uploads)}.png"


@pytest.fixture(scope="session")
def mock_redis():
    return MockRedis()


@pytest.fixture(scope="session", autouse=True)
def patch_redis(mock_redis):
    """Patch the global redis client used by token revocation."""
    original_client = redis_client_module.redis_client
    redis_client_module.redis_client = mock_redis
    yield
    redis_client_module.redis_client = original_client


@pytest.fixture
async def test_engine(mock_redis):
    """Fresh in-memory database per test, bound to that test's event loop."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await mock_redis.flushdb()

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(autouse=True)
def override_db(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture(autouse=True)
def photo_uploader():
    uploader = RecordingPhotoUploader()
    app.dependency_overrides[get_photo_uploader] = lambda: uploader
    yield uploader
    app.dependency_overrides.pop(get_photo_uploader, None)


@pytest.fixture
async def client():
    """Async client for testing, rooted at the versioned API."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test/v1") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_for():
    """Build driver auth headers without going through /auth/login."""
    def _headers(driver: Driver) -> dict:
        return bearer(create_access_token(data={
            "sub": driver.username,
            "user_id": driver.id,
            "role": UserRole.DRIVER.value,
        }))

    return _headers


@pytest.fixture
def make_driver(db_session):
    async def _make(username="driver1", password="secret123", status=DriverStatus.ACTIVE, **fields):
        fields.setdefault("full_name", username.title())
        driver = Driver(
            username=username,
            hashed_password=get_password_hash(password),
            status=status,
            **fields,
        )
        db_session.add(driver)
        await db_session.commit()
        await db_session.refresh(driver)
        return driver

    return _make


@pytest.fixture
def make_route(db_session):
    """Create a route with stops; each stop is a dict of Delivery overrides."""
    async def _make(route_id="DXB-2025-001", driver_id=None, status=RouteStatus.PENDING,
                    route_date=None, deliveries=()):
        route = Route(
            id=route_id,
            date=route_date or datetime.utcnow().date(),
            zone="Dubai Marina",
            vehicle_info="Van 12",
            driver_id=driver_id,
            status=status,
        )
        db_session.add(route)
        await db_session.flush()

        created = []
        for index, overrides in enumerate(deliveries, start=1):
            values = {
                "customer_name": f"Customer {index}",
                "address": f"{index} Marina Walk",
            }
            values.update(overrides)
            delivery = Delivery(route_id=route_id, **values)
            db_session.add(delivery)
            created.append(delivery)

        await db_session.commit()
        await db_session.refresh(route)
        for delivery in created:
            await db_session.refresh(delivery)
        return route, created

    return _make


@pytest.fixture
async def driver(make_driver):
    return await make_driver()


@pytest.fixture
def driver_headers(driver, auth_for):
    return auth_for(driver)


@pytest.fixture
def admin_headers():
    token = create_access_token(data={"sub": "admin", "user_id": None, "role": UserRole.ADMIN.value})
    return bearer(token)


@pytest.fixture
def tiny_png():
    return TINY_PNG


class FakeApiServer:
    """Stands in for the HTTP API behind a DriverApi, recording each call."""

    def __init__(self):
        self.requests = []
        self.statuses = {}
        self.offline = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.offline:
            raise httpx.ConnectError("network unreachable", request=request)

        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, request.url.path, body))

        status_code = self.statuses.get(request.url.path, 200)
        if status_code >= 400:
            return httpx.Response(
                status_code,
                json={"error_code": "ERR_TEST", "message": f"HTTP {status_code}", "details": {}},
            )
        return httpx.Response(status_code, json={"path": request.url.path, "body": body})

    def paths(self):
        return [path for _, path, _ in self.requests]


@pytest.fixture
def fake_server():
    return FakeApiServer()


@pytest.fixture
async def driver_api(fake_server):
    api = DriverApi("http://api.test/v1", transport=httpx.MockTransport(fake_server.handler))
    yield api
    await api.aclose()
