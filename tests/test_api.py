import pytest

from conftest import login


# ---------------------------------------------------------------------------
# Health and accounts
# ---------------------------------------------------------------------------
def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "OK"


def test_register_and_fetch_account(client, events):
    response = client.post(
        "/public/account",
        data={"name": "Eva", "email": "eva@wheely.com", "password": "Secret#123"},
    )
    assert response.status_code == 201, response.text
    assert "password" not in response.json()
    assert "password" not in events[-1]
    assert events[-1]["_app_id"] == 2

    headers = login(client, "eva@wheely.com", "Secret#123")
    response = client.get("/user/account", headers=headers)
    assert response.json()["email"] == "eva@wheely.com"


def test_register_weak_password(client):
    response = client.post(
        "/public/account",
        data={"name": "Eva", "email": "eva@wheely.com", "password": "abcdefg1"},
    )
    assert response.status_code == 422
    assert response.headers["X-Error"] == "InvalidPassword"
    assert "uppercase" in response.json()["detail"]


def test_register_duplicate_email(client, user):
    response = client.post(
        "/public/account",
        data={"name": "Ana", "email": user.email, "password": "Secret#123"},
    )
    assert response.status_code == 409


def test_token_lifecycle(client, user):
    response = client.post(
        "/user/account/token", data={"email": user.email, "password": "wrong"}
    )
    assert response.status_code == 401

    headers = login(client, user.email)
    tokens = client.get("/user/account/token", headers=headers).json()
    assert len(tokens) == 1
    assert "access_token" not in tokens[0]

    assert client.delete("/user/account/token", headers=headers).status_code == 204
    assert client.get("/user/account", headers=headers).status_code == 401


def test_token_rotation(client, user):
    for _ in range(7):
        headers = login(client, user.email)

    tokens = client.get("/user/account/token", headers=headers).json()
    assert len(tokens) == 5


def test_update_account(client, auth, events):
    response = client.patch(
        "/user/account", headers=auth, data={"name": "Ana María"}
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Ana María"
    assert "password" not in events[-1]


def test_delete_account(client, auth):
    assert client.delete("/user/account", headers=auth).status_code == 204
    assert client.get("/user/account", headers=auth).status_code == 401


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
def test_route_crud(client, auth, events):
    response = client.post(
        "/user/route",
        headers=auth,
        data={"name": "Ruta 9", "origin": "Centro", "destination": "Norte"},
    )
    assert response.status_code == 201, response.text
    route = response.json()
    assert events[-1]["_path"] == "/user/route"
    assert "_user_id" in events[-1]

    duplicate = client.post(
        "/user/route",
        headers=auth,
        data={"name": "Ruta 9", "origin": "A", "destination": "B"},
    )
    assert duplicate.status_code == 409
    assert duplicate.headers["X-Error"] == "Conflict"

    response = client.patch(
        "/user/route", headers=auth, data={"id": route["id"], "origin": "Zócalo"}
    )
    assert response.json()["origin"] == "Zócalo"
    assert response.json()["name"] == "Ruta 9"

    routes = client.get("/public/route", params={"name": "ruta 9"}).json()
    assert [r["id"] for r in routes] == [route["id"]]

    assert client.request("DELETE", "/user/route", headers=auth, data={"id": route["id"]}).status_code == 204
    assert client.request("DELETE", "/user/route", headers=auth, data={"id": route["id"]}).status_code == 204
    assert client.get("/public/route").json() == []


def test_route_blank_name(client, auth):
    response = client.post(
        "/user/route",
        headers=auth,
        data={"name": "  ", "origin": "Centro", "destination": "Norte"},
    )
    assert response.status_code == 422
    assert response.json()["detail"] == "The route name is required"


def test_write_requires_valid_token(client):
    response = client.post(
        "/user/route",
        headers={"Authorization": "Bearer nope"},
        data={"name": "Ruta 9", "origin": "Centro", "destination": "Norte"},
    )
    assert response.status_code == 401
    assert response.headers["X-Error"] == "InvalidToken"


# ---------------------------------------------------------------------------
# Periods
# ---------------------------------------------------------------------------
def test_period_overlap(client, auth, fakeRedis):
    response = client.post(
        "/user/period",
        headers=auth,
        data={"name": "Morning", "start_time": "06:00", "end_time": "12:00"},
    )
    assert response.status_code == 201, response.text
    assert fakeRedis.locks[-1].name == "lock:period"
    assert not fakeRedis.locks[-1].held

    response = client.post(
        "/user/period",
        headers=auth,
        data={"name": "Rush", "start_time": "11:00", "end_time": "13:00"},
    )
    assert response.status_code == 409
    assert response.headers["X-Error"] == "OverlappingPeriod"
    assert "Morning" in response.json()["detail"]

    response = client.post(
        "/user/period",
        headers=auth,
        data={"name": "Noon", "start_time": "12:00", "end_time": "14:00"},
    )
    assert response.status_code == 201


def test_current_period(client, dayPeriods):
    response = client.get("/public/period/current", params={"time_of_day": "07:00"})
    assert response.json()["name"] == "Morning"

    response = client.get("/public/period/current", params={"time_of_day": "02:30"})
    assert response.json()["name"] == "Night"

    periods = client.get("/public/period").json()
    assert [p["name"] for p in periods] == ["Morning", "Afternoon", "Night"]


def test_current_period_uncovered(client):
    response = client.get("/public/period/current", params={"time_of_day": "07:00"})
    assert response.status_code == 200
    assert response.json() is None


# ---------------------------------------------------------------------------
# Route times
# ---------------------------------------------------------------------------
def test_route_time_and_eta(client, auth, route, dayPeriods):
    for period in dayPeriods:
        response = client.put(
            "/user/route/time",
            headers=auth,
            data={"route_id": route.id, "period_id": period.id, "average_time": 30},
        )
        assert response.status_code == 200, response.text

    duplicate = client.post(
        "/user/route/time",
        headers=auth,
        data={"route_id": route.id, "period_id": dayPeriods[0].id, "average_time": 40},
    )
    assert duplicate.status_code == 409

    eta = client.get("/public/route/eta", params={"route_id": route.id}).json()
    assert eta == {"route_id": route.id, "average_time": 30}

    times = client.get("/public/route/time", params={"route_id": route.id}).json()
    assert len(times) == 3


def test_eta_without_records(client, route, dayPeriods):
    eta = client.get("/public/route/eta", params={"route_id": route.id}).json()
    assert eta["average_time"] is None


def test_route_time_unknown_route(client, auth, dayPeriods):
    response = client.post(
        "/user/route/time",
        headers=auth,
        data={"route_id": 77, "period_id": dayPeriods[0].id, "average_time": 40},
    )
    assert response.status_code == 404
    assert response.headers["X-Error"] == "UnknownValue"


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------
def test_report_author_only(client, auth, route, otherUser):
    response = client.post(
        "/user/report",
        headers=auth,
        data={"route_id": route.id, "type": 1, "title": "Late", "body": "Twenty minutes"},
    )
    assert response.status_code == 201, response.text
    report = response.json()

    otherAuth = login(client, otherUser.email)
    response = client.patch(
        "/user/report", headers=otherAuth, data={"id": report["id"], "title": "Mine"}
    )
    assert response.status_code == 403
    assert response.headers["X-Error"] == "NotAuthor"

    response = client.request("DELETE", "/user/report", headers=otherAuth, data={"id": report["id"]})
    assert response.status_code == 403

    response = client.patch(
        "/user/report", headers=auth, data={"id": report["id"], "title": "Very late"}
    )
    assert response.json()["title"] == "Very late"
    assert response.json()["created_on"] == report["created_on"]

    reports = client.get("/public/report", params={"route_id": route.id}).json()
    assert [r["title"] for r in reports] == ["Very late"]

    assert client.request("DELETE", "/user/report", headers=auth, data={"id": report["id"]}).status_code == 204
    assert client.get("/public/report").json() == []


def test_report_invalid_type(client, auth, route):
    response = client.post(
        "/user/report",
        headers=auth,
        data={"route_id": route.id, "type": 9, "title": "Late", "body": "Twenty minutes"},
    )
    assert response.status_code == 422


# ---------------------------------------------------------------------------
# Favorite routes
# ---------------------------------------------------------------------------
def test_favorite_routes(client, auth, route):
    response = client.post("/user/account/favorite", headers=auth, data={"route_id": route.id})
    assert response.status_code == 201

    duplicate = client.post("/user/account/favorite", headers=auth, data={"route_id": route.id})
    assert duplicate.status_code == 409

    favorites = client.get("/user/account/favorite", headers=auth).json()
    assert [f["route_id"] for f in favorites] == [route.id]

    response = client.request("DELETE", "/user/account/favorite", headers=auth, data={"route_id": route.id})
    assert response.status_code == 204
    assert client.get("/user/account/favorite", headers=auth).json() == []


def test_session_failure_is_not_masked(client, monkeypatch):
    from wheely import main

    def brokenSessionMaker():
        raise RuntimeError("database unreachable")

    monkeypatch.setattr(main, "sessionMaker", brokenSessionMaker)
    with pytest.raises(RuntimeError, match="database unreachable"):
        client.get("/health")
