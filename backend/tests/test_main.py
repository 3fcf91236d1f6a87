from dataclasses import replace

import pytest
from fastapi.testclient import TestClient
from starlette.requests import Request

import backend.main as main_module
from backend.app.errors import NotFoundError, ValidationError
from backend.main import app, get_client_ip, get_ratings_store, get_settings


def make_request(ip: str = "127.0.0.1", headers=None) -> Request:
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": "/",
            "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
            "client": (ip, 8000),
            "query_string": b"",
            "server": ("test", 80),
            "scheme": "http",
            "http_version": "1.1",
        }
    )


@pytest.fixture
def client(settings, store):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_ratings_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_get_client_ip_prefers_forwarded_header():
    assert get_client_ip(make_request("10.0.0.5")) == "10.0.0.5"
    request = make_request("10.0.0.5", {"X-Forwarded-For": "203.0.113.1, 10.0.0.1"})
    assert get_client_ip(request) == "203.0.113.1"


def test_health_reports_stage(settings):
    assert main_module.health(settings=settings) == {"ok": True, "stage": "test"}


def test_list_ratings_route(store, add_rating):
    add_rating("UC_A", "2024-01-01T00:00:00Z", 2)
    add_rating("UC_A", "2024-01-02T00:00:00Z", 3)

    payload = main_module.list_ratings(channelId="UC_A", store=store)

    assert payload["averageScore"] == 2.5
    assert payload["ratingCount"] == 2


def test_list_ratings_route_raises_api_errors(store):
    with pytest.raises(ValidationError):
        main_module.list_ratings(channelId=None, store=store)
    with pytest.raises(NotFoundError):
        main_module.list_ratings(channelId="UC_NONE", store=store)


def test_create_rating_route_uses_client_ip(store):
    body = main_module.create_rating(make_request("192.0.2.4"), {"channelId": "UC_A", "rating": 5}, store=store)
    assert body["channelId"] == "UC_A"
    assert store.query_all_by_creator("UC_A")[0].ip == "192.0.2.4"


def test_top_creators_route(store, add_rating):
    add_rating("A", "2024-01-01T00:00:00Z", 1)
    add_rating("B", "2024-01-01T00:00:00Z", 4)

    payload = main_module.top_creators(limit="1", cursor=None, minRatings=None, store=store)

    assert payload["count"] == 1
    assert payload["total"] == 2
    assert payload["creators"][0]["channelId"] == "B"


def test_api_errors_render_as_error_bodies(client):
    response = client.get("/ratings", params={"channelId": "UC_NONE"})
    assert response.status_code == 404
    assert response.json() == {"error": "No ratings found for this channel", "channelId": "UC_NONE"}

    response = client.get("/search")
    assert response.status_code == 400
    assert response.json() == {"error": "Search query (q) is required"}


def test_post_rating_over_http(client):
    payload = {"channelId": "UC_A", "rating": 4, "comment": "solid"}

    assert client.post("/ratings", json=payload).status_code == 201
    assert client.post("/ratings", json=payload).status_code == 201
    limited = client.post("/ratings", json=payload)
    assert limited.status_code == 429
    assert limited.json()["error"] == "Rating limit reached for this channel"

    listed = client.get("/ratings", params={"channelId": "UC_A"}).json()
    assert listed["ratingCount"] == 2
    assert listed["comments"][0]["comment"] == "solid"


def test_post_rating_rejects_invalid_json(client):
    response = client.post("/ratings", content=b"{oops", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request body"}


def test_post_rating_rejects_bad_score(client):
    response = client.post("/ratings", json={"channelId": "UC_A", "rating": 9})
    assert response.status_code == 400
    assert response.json() == {"error": "Rating must be an integer between 1 and 5"}


def test_cors_preflight(client):
    response = client.options(
        "/ratings",
        headers={"Origin": "https://yourate.example", "Access-Control-Request-Method": "POST"},
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"


def test_recent_ratings_over_http(client, add_rating):
    add_rating("A", "2024-01-01T00:00:00Z", 3)
    add_rating("B", "2024-01-02T00:00:00Z", 4)

    payload = client.get("/recent-ratings", params={"limit": "1"}).json()

    assert payload["count"] == 1
    assert payload["ratings"][0]["channelId"] == "B"


def test_profile_over_http_without_youtube_key(client, settings):
    app.dependency_overrides[get_settings] = lambda: replace(settings, youtube_api_key="")
    payload = client.get("/profile", params={"channelId": "UC_A"}).json()
    assert payload["channelInfo"]["status"] == "error"
    assert payload["ratings"]["comments"] == []


def test_bare_options_is_left_to_routing(client):
    assert client.options("/ratings").status_code == 405
