import os

# must be set before jobportal.core.config is imported anywhere
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

import jobportal.models.registry  # noqa: F401
from jobportal.api.deps import get_storage_root
from jobportal.backend.local import LocalBackend
from jobportal.client.cache import MemoryStore, ViewCache
from jobportal.client.session import SessionController
from jobportal.db.base import Base
from jobportal.db.session import get_db, make_engine, make_session_factory
from jobportal.main import create_app


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def session_factory():
    engine = make_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def storage_root(tmp_path):
    return tmp_path / "storage"


@pytest.fixture
def backend(session_factory, storage_root):
    return LocalBackend(session_factory, storage_root=storage_root, public_base_url="http://testserver")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return ViewCache(MemoryStore(), ttl_seconds=300, clock=clock)


@pytest.fixture
def controller(backend, cache):
    ctl = SessionController(backend, cache)
    ctl.start()
    yield ctl
    ctl.close()


@pytest.fixture
def app(session_factory, storage_root):
    app = create_app(create_tables=False)

    def _db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _db
    app.dependency_overrides[get_storage_root] = lambda: storage_root
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def sign_up(controller, email, role="job_seeker", password="secret123", **extra):
    data = {"full_name": extra.pop("full_name", email.split("@")[0].title()), "role": role, **extra}
    return controller.sign_up(email, password, data)
