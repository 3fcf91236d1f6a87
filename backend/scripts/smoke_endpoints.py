from __future__ import annotations

import argparse
import os
import sys
import uuid
from typing import Any

import requests

DEFAULT_BASE_URL = "http://localhost:8000"
SMOKE_CHANNEL_ID = "UC_SMOKE_TEST_CHANNEL"


def assert_true(condition: bool, message: str) -> None:
    if not condition:
        raise AssertionError(message)


def get_json(base_url: str, path: str, params: dict[str, Any] | None = None) -> tuple[int, Any]:
    response = requests.get(f"{base_url}{path}", params=params, timeout=30)
    try:
        return response.status_code, response.json()
    except ValueError:
        return response.status_code, None


def check_preflight(base_url: str) -> None:
    response = requests.options(
        f"{base_url}/ratings",
        headers={"Origin": "https://example.org", "Access-Control-Request-Method": "POST"},
        timeout=30,
    )
    assert_true(response.status_code == 200, f"OPTIONS /ratings returned {response.status_code}")
    assert_true(
        response.headers.get("access-control-allow-origin") in {"*", "https://example.org"},
        "OPTIONS /ratings should allow any origin",
    )


def check_missing_params(base_url: str) -> None:
    for path in ("/search", "/ratings", "/profile"):
        status, payload = get_json(base_url, path)
        assert_true(status == 400, f"GET {path} without parameters should return 400, got {status}")
        assert_true(isinstance(payload, dict) and "error" in payload, f"GET {path} 400 should carry an error")


def check_submit_and_read(base_url: str) -> None:
    channel_id = f"{SMOKE_CHANNEL_ID}_{uuid.uuid4().hex[:8]}"
    response = requests.post(
        f"{base_url}/ratings",
        json={"channelId": channel_id, "rating": 4, "comment": "smoke check", "channelTitle": "Smoke Channel"},
        timeout=30,
    )
    assert_true(response.status_code == 201, f"POST /ratings returned {response.status_code}: {response.text}")
    created = response.json()
    assert_true(created.get("channelId") == channel_id, "POST /ratings should echo channelId")
    assert_true(bool(created.get("submittedAt")), "POST /ratings should return submittedAt")

    status, payload = get_json(base_url, "/ratings", {"channelId": channel_id})
    assert_true(status == 200, f"GET /ratings returned {status}")
    assert_true(payload.get("ratingCount") == 1, "GET /ratings should count the new rating")
    assert_true(payload.get("averageScore") == 4.0, "GET /ratings average should be 4.0")


def check_invalid_score(base_url: str) -> None:
    response = requests.post(
        f"{base_url}/ratings",
        json={"channelId": SMOKE_CHANNEL_ID, "rating": 9},
        timeout=30,
    )
    assert_true(response.status_code == 400, f"POST /ratings with rating=9 returned {response.status_code}")


def check_top_creators(base_url: str) -> None:
    status, payload = get_json(base_url, "/top-creators", {"limit": 5})
    assert_true(status == 200, f"GET /top-creators returned {status}")
    for key in ("creators", "total", "count", "minRatings"):
        assert_true(key in payload, f"GET /top-creators missing {key}")
    assert_true(payload["count"] <= 5, "GET /top-creators should honour limit")


def check_recent_ratings(base_url: str) -> None:
    status, payload = get_json(base_url, "/recent-ratings", {"limit": 2})
    assert_true(status in {200, 404}, f"GET /recent-ratings returned {status}")
    if status == 200:
        assert_true(payload["count"] <= 2, "GET /recent-ratings should honour limit")


def run() -> int:
    parser = argparse.ArgumentParser(description="Smoke-check a deployed or local ratings API.")
    parser.add_argument("--base-url", default=os.getenv("SMOKE_BASE_URL", DEFAULT_BASE_URL))
    parser.add_argument("--skip-writes", action="store_true", help="Do not submit ratings.")
    args = parser.parse_args()
    base_url = args.base_url.rstrip("/")

    checks = [
        ("preflight", check_preflight),
        ("missing parameters", check_missing_params),
        ("top creators", check_top_creators),
        ("recent ratings", check_recent_ratings),
    ]
    if not args.skip_writes:
        checks.insert(2, ("invalid score", check_invalid_score))
        checks.insert(3, ("submit + read", check_submit_and_read))
    failures = []

    for check_name, check_fn in checks:
        try:
            check_fn(base_url)
            print(f"[PASS] {check_name}")
        except (AssertionError, requests.RequestException, KeyError, TypeError) as exc:
            failures.append((check_name, str(exc)))
            print(f"[FAIL] {check_name}: {exc}")

    if failures:
        print(f"\nSmoke checks failed: {len(failures)}")
        for check_name, message in failures:
            print(f"- {check_name}: {message}")
        return 1

    print("\nAll smoke checks passed.")
    return 0


if __name__ == "__main__":
    sys.exit(run())
