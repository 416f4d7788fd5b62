import os
import tempfile
from typing import AsyncGenerator, Callable, Dict

# Settings are read at import time; point them at throwaway resources first.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="classroom-storage-")
os.environ["AUTO_CREATE_TABLES"] = "false"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import classroom_api.auth.models  # noqa: F401
import classroom_api.core.models  # noqa: F401
from classroom_api.db.session import Base, enable_sqlite_foreign_keys, get_db
from classroom_api.main import app
from classroom_api.storage.files import LocalFileStorage, get_file_storage


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_MAX_UPLOAD_BYTES = 1024 * 1024
PASSWORD = "StrongPass123"


@pytest.fixture()
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """One in-memory database per test, shared by every session through StaticPool."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
async def db_session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    """Session for direct assertions against the database."""
    async with session_factory() as session:
        yield session


@pytest.fixture()
def storage(tmp_path) -> LocalFileStorage:
    return LocalFileStorage(
        root=str(tmp_path / "storage"),
        url_prefix="/storage",
        max_bytes=TEST_MAX_UPLOAD_BYTES,
    )


@pytest.fixture()
async def client(session_factory: async_sessionmaker, storage: LocalFileStorage) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app; each request gets its own session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_file_storage] = lambda: storage
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def register(client: AsyncClient, name: str, email: str, role: str) -> Dict:
    response = await client.post(
        "/v1/auth/register",
        json={"name": name, "email": email, "password": PASSWORD, "role": role},
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def make_user(client: AsyncClient) -> Callable:
    """Register a user and return auth headers for it."""

    async def _make(name: str, email: str, role: str) -> Dict[str, str]:
        data = await register(client, name, email, role)
        return bearer(data["token"])

    return _make


@pytest.fixture()
async def teacher(make_user) -> Dict[str, str]:
    return await make_user("Grace Teacher", "grace@example.com", "Teacher")


@pytest.fixture()
async def other_teacher(make_user) -> Dict[str, str]:
    return await make_user("Alan Teacher", "alan@example.com", "Teacher")


@pytest.fixture()
async def student(make_user) -> Dict[str, str]:
    return await make_user("Ada Student", "ada@example.com", "Student")


@pytest.fixture()
async def other_student(make_user) -> Dict[str, str]:
    return await make_user("Linus Student", "linus@example.com", "Student")


@pytest.fixture()
async def classroom(client: AsyncClient, teacher: Dict[str, str]) -> Dict:
    response = await client.post(
        "/v1/classes",
        json={"name": "Algebra I", "description": "Linear equations"},
        headers=teacher,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture()
async def enrolled_student(client: AsyncClient, classroom: Dict, student: Dict[str, str]) -> Dict[str, str]:
    response = await client.post(
        "/v1/classes/join",
        json={"unique_code": classroom["unique_code"]},
        headers=student,
    )
    assert response.status_code == 200, response.text
    return student


def upload(name: str = "homework.pdf", content: bytes = b"%PDF-1.4 test", mime: str = "application/pdf") -> Dict:
    return {"file": (name, content, mime)}
