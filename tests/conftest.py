import os
import tempfile

# Point the app at throwaway locations before anything imports app.core.config
_TEST_ROOT = tempfile.mkdtemp(prefix="minitube-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TEST_ROOT}/app.db")
os.environ.setdefault("UPLOAD_DIR", os.path.join(_TEST_ROOT, "uploads"))
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.core.security import create_access_token
from app.db.base import Base
from app.db.session import build_engine, build_session_maker, get_db
from app.main import app
from app.models.user import User
from app.services.frame_extractor import get_frame_extractor
from app.services.storage_service import LocalStorage, get_storage
from tests.fakes import WorkingExtractor


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return build_session_maker(engine)


@pytest_asyncio.fixture
async def db_session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "uploads")


@pytest.fixture
def extractor():
    return WorkingExtractor()


@pytest_asyncio.fixture
async def client(session_maker, storage, extractor):
    async def _override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_frame_extractor] = lambda: extractor
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_maker):
    """Create a user row and return (user, auth headers)."""

    async def _make_user(username: str):
        async with session_maker() as session:
            user = User(username=username, password_hash="not-a-real-hash")
            session.add(user)
            await session.commit()
        token = create_access_token(user.id, user.username)
        return user, {"Authorization": f"Bearer {token}"}

    return _make_user


@pytest.fixture
def upload(client):
    """POST a video upload; fields left as None are omitted from the form."""

    async def _upload(headers, title="My clip", filename="clip.mp4", content=b"\x00\x00\x00\x18ftypmp42", description=None, thumbnail=None):
        data = {}
        if title is not None:
            data["title"] = title
        if description is not None:
            data["description"] = description
        if thumbnail is not None:
            data["thumbnail"] = thumbnail
        files = {"file": (filename, content, "video/mp4")} if filename is not None else None
        return await client.post("/api/v1/videos", data=data, files=files, headers=headers)

    return _upload
