import pytest
from services.auth_service import AuthService


@pytest.fixture
async def history(client, auth_headers):
    for lat, lon in [(40.7128, -74.0060), (51.5072, -0.1276), (40.7131, -74.0051)]:
        response = await client.get("/weather", params={"lat": lat, "lon": lon}, headers=auth_headers)
        assert response.status_code == 200


async def test_history_requires_auth(client):
    response = await client.get("/history")
    assert response.status_code == 401


async def test_history_lists_most_recent_first(client, auth_headers, history):
    response = await client.get("/history", headers=auth_headers)

    assert response.status_code == 200
    items = response.json()
    assert [(i["lat"], i["lon"]) for i in items] == [
        (40.7131, -74.0051),
        (51.5072, -0.1276),
        (40.7128, -74.006),
    ]
    assert set(items[0]) == {"lat", "lon", "requestedAt", "weather"}
    assert items[0]["weather"]["description"] == "clear sky"
    assert items[0]["weather"]["tempC"] == 21.5
    assert isinstance(items[0]["weather"]["humidity"], int)


async def test_history_count(client, auth_headers, history):
    response = await client.get("/history", params={"count": "true"}, headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"total": 3}


async def test_history_coordinate_filter(client, auth_headers, history):
    response = await client.get("/history", params={"lat": 40.71, "lon": -74.01, "count": "true"},
                                headers=auth_headers)

    assert response.json() == {"total": 2}


@pytest.mark.parametrize("params", [{"lat": 40.71}, {"lon": -74.01}])
async def test_history_coordinate_filter_needs_both(client, auth_headers, params):
    response = await client.get("/history", params=params, headers=auth_headers)

    assert response.status_code == 400
    assert "both lat and lon" in response.json()["message"].lower()


@pytest.mark.parametrize("params", [
    {"from": "yesterday"},
    {"sort": "-email"},
    {"limit": 0},
    {"skip": -1},
    {"lat": 120, "lon": 0},
])
async def test_history_malformed_filters(client, auth_headers, params):
    response = await client.get("/history", params=params, headers=auth_headers)
    assert response.status_code == 400


async def test_history_pagination(client, auth_headers, history):
    response = await client.get("/history", params={"sort": "requestedAt", "skip": 1, "limit": 1},
                                headers=auth_headers)

    assert [(i["lat"], i["lon"]) for i in response.json()] == [(51.5072, -0.1276)]


async def test_history_is_private(client, session, history, token_service):
    other = AuthService.create_user("other@example.com", "OtherPass123!", session)
    headers = {"Authorization": f"Bearer {token_service.create_token(other, 'access')}"}

    response = await client.get("/history", headers=headers)

    assert response.json() == []
