import os

os.environ.setdefault("USE_MOCK_DB", "true")
os.environ.setdefault("PUSH_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from app.core.settings import settings
from app.main import app
from app.models.user import UserRole
from app.repositories import use_repositories
from app.repositories.registry import build_memory_repositories

from factories import add_user

settings.USE_MOCK_DB = True
settings.PUSH_ENABLED = False


@pytest.fixture
def repos():
    repositories = build_memory_repositories()
    use_repositories(repositories)
    yield repositories
    use_repositories(None)


@pytest.fixture
def client(repos):
    return TestClient(app)


@pytest.fixture
def citizen(repos):
    return add_user(repos, "citizen-1", name="Asha", city="Boisar")


@pytest.fixture
def admin(repos):
    return add_user(repos, "admin-1", UserRole.ADMIN, name="Ravi", department="Roads")


@pytest.fixture
def worker(repos):
    return add_user(repos, "worker-1", UserRole.FIELD_WORKER, name="Kiran")
