"""Auth & Health Routes — verifies admin login and the liveness/readiness probes."""


async def test_login_returns_bearer_token(client):
    res = await client.post(
        "/api/v1/auth/login", json={"username": "admin", "password": "s3cret"},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["token_type"] == "bearer"
    assert "." in body["token"]


async def test_login_rejects_bad_password(client):
    res = await client.post(
        "/api/v1/auth/login", json={"username": "admin", "password": "nope"},
    )
    assert res.status_code == 401
    assert res.json()["error"]["message"] == "Invalid credentials"


async def test_login_requires_both_fields(client):
    res = await client.post("/api/v1/auth/login", json={"username": "admin"})
    assert res.status_code == 400


async def test_liveness(client):
    res = await client.get("/api/v1/health/")
    assert res.status_code == 200
    assert res.json()["status"] == "healthy"


async def test_readiness(client):
    res = await client.get("/api/v1/health/ready")
    assert res.status_code == 200
    assert res.json()["checks"]["database"] == "healthy"
    assert res.json()["blob_backend"] == "local"


async def test_readiness_reports_database_outage(client, app, monkeypatch):
    async def unhealthy():
        return False

    monkeypatch.setattr(app.state.services.db, "health_check", unhealthy)
    res = await client.get("/api/v1/health/ready")
    assert res.status_code == 503
    assert res.json()["reason"] == "database_unavailable"
