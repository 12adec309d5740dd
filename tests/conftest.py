"""
Shared test fixtures for workclock tests.
"""
import pytest

TEST_USER = "user-1"
OTHER_USER = "user-2"


@pytest.fixture
def storage(tmp_path):
    """Function-scoped: fresh sqlite database per test."""
    from workclock.db import Storage
    return Storage(str(tmp_path / "workclock.db"))


@pytest.fixture
def app(storage):
    from workclock.main import create_app
    return create_app(storage)


@pytest.fixture
def client(app):
    """TestClient with the identity dependency pinned to TEST_USER."""
    from fastapi.testclient import TestClient
    from workclock.dependencies import get_current_user_id
    app.dependency_overrides[get_current_user_id] = lambda: TEST_USER
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def anon_client(app):
    """TestClient without any auth override."""
    from fastapi.testclient import TestClient
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c
