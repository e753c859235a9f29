"""API test fixtures — the real app wired around the test database.

Invariants:
    - Services are built by main.build_services (production wiring) on top of
      the in-memory SQLite manager and a temporary blob directory
    - httpx's ASGITransport does not run the lifespan, so services are attached
      to app.state here and closed on teardown

Design Decisions:
    - Settings built explicitly (no .env) so every test sees the same configuration
"""

import pytest
from httpx import ASGITransport, AsyncClient

from campus_print.config import Settings
from campus_print.main import build_services, create_app


ADMIN_PASSWORD = "s3cret"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite:///:memory:",
        blob_backend="local",
        blob_root=str(tmp_path / "blobs"),
        public_base_url="http://test",
        admin_username="admin",
        admin_password=ADMIN_PASSWORD,
        admin_token_secret="api-test-signing-key-0123456789abcdef",
        max_file_size_bytes=256 * 1024,
        upload_timeout_seconds=10.0,
    )


@pytest.fixture
async def app(settings, test_db_manager):
    app = create_app(settings)
    app.state.services = build_services(settings, db=test_db_manager)
    yield app
    await app.state.services.intake.aclose()
    app.state.services.page_counter.close()


@pytest.fixture
async def client(app):
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c


@pytest.fixture
async def admin_headers(client):
    res = await client.post(
        "/api/v1/auth/login",
        json={"username": "admin", "password": ADMIN_PASSWORD},
    )
    assert res.status_code == 200
    return {"Authorization": f"Bearer {res.json()['token']}"}
