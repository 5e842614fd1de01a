import pytest
from fastapi.testclient import TestClient

from equiptrack.main import app
from equiptrack.session import get_backend


@pytest.fixture(scope="function")
def client(backend_client, admin_headers):
    app.dependency_overrides[get_backend] = lambda: backend_client

    # Výchozí klient vystupuje jako admin; testy běžného uživatele posílají user_headers
    with TestClient(app, headers=admin_headers) as c:
        yield c

    app.dependency_overrides.clear()
