from main import app


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "Healthy"}


async def test_request_id_is_generated(client):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.headers["X-Request-ID"]


async def test_request_id_is_echoed(client):
    response = await client.get("/", headers={"X-Request-ID": "trace-123"})
    assert response.headers["X-Request-ID"] == "trace-123"


async def test_unsafe_request_id_is_replaced(client):
    response = await client.get("/", headers={"X-Request-ID": "bad id\twith spaces"})
    assert response.headers["X-Request-ID"] != "bad id\twith spaces"


async def test_unknown_route_uses_error_shape(client):
    response = await client.get("/does-not-exist")

    assert response.status_code == 404
    body = response.json()
    assert body["status"] == "fail"
    assert body["message"] == "Not Found"


async def test_unexpected_errors_are_500(client):
    @app.get("/_boom")
    async def boom():
        raise RuntimeError("kaboom")

    try:
        response = await client.get("/_boom")
    finally:
        app.router.routes = [r for r in app.router.routes if getattr(r, "path", None) != "/_boom"]

    assert response.status_code == 500
    body = response.json()
    assert body["status"] == "error"
    assert body["message"] == "Something went wrong!"
    # Not production, so the trace is included
    assert "kaboom" in body["stack"]
