import pytest
import httpx

from app.core import settings as settings_module
from app.db.base import Base
from app.db.session import get_engine, init_engine
from app.main import app
from app.storage.memory import reset_memory_storage


TOKENS = {"token-alice": "alice", "token-bob": "bob"}


@pytest.fixture(autouse=True)
def _use_test_db(tmp_path, monkeypatch):
    db_path = tmp_path / "test.db"
    database_url = f"sqlite+pysqlite:///{db_path}"

    monkeypatch.setattr(settings_module.settings, "database_url", database_url)
    monkeypatch.setattr(settings_module.settings, "db_auto_create", True)
    monkeypatch.setattr(settings_module.settings, "storage_backend", "database")
    monkeypatch.setattr(settings_module.settings, "auth_provider", "static")
    monkeypatch.setattr(settings_module.settings, "auth_static_tokens", dict(TOKENS))
    monkeypatch.setattr(settings_module.settings, "media_backend", "local")
    monkeypatch.setattr(settings_module.settings, "media_root", str(tmp_path / "media"))
    monkeypatch.setattr(settings_module.settings, "log_file", None)

    init_engine(database_url)
    Base.metadata.create_all(bind=get_engine())
    reset_memory_storage()

    yield

    reset_memory_storage()


@pytest.fixture()
def memory_backend(monkeypatch):
    """Serve requests from the seeded in-process world owned by alice."""
    monkeypatch.setattr(settings_module.settings, "storage_backend", "memory")
    monkeypatch.setattr(settings_module.settings, "memory_seed_demo", True)
    monkeypatch.setattr(settings_module.settings, "demo_owner_id", "alice")
    reset_memory_storage()


@pytest.fixture()
async def client():
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


@pytest.fixture()
def alice():
    return {"Authorization": "Bearer token-alice"}


@pytest.fixture()
def bob():
    return {"Authorization": "Bearer token-bob"}
