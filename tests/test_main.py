def test_home_endpoint(client):
    response = client.get("/")

    assert response.status_code == 200
    payload = response.json()
    assert payload["message"] == "Investor Portal API running"
    assert payload["status"] == "success"
    assert payload["data"]["service"] == "portal-backend"


def test_health_endpoint(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "success"
    assert payload["data"]["database"] == "ok"


def test_invalid_body_uses_error_envelope(client):
    response = client.post("/api/login", json={"password": "secret"})

    assert response.status_code == 400
    payload = response.json()
    assert payload["message"] == "Invalid data"
    assert payload["status"] == "error"
    assert isinstance(payload["data"], list)


def test_lead_capture_is_public(client):
    response = client.post(
        "/api/leads",
        json={
            "name": "Priya Shah",
            "email": "priya@example.com",
            "message": "Interested in the Velocity Fund.",
        },
    )

    assert response.status_code == 201
    assert response.json()["data"]["status"] == "new"


def test_protected_route_without_cookie_is_unauthorized(client):
    response = client.get("/api/auth/user")

    assert response.status_code == 401
    assert response.json()["message"] == "Authentication required"
