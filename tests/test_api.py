"""HTTP tests through FastAPI's TestClient."""

import logging
import re

from fastapi.testclient import TestClient

from shortener.main import create_app

from tests.conftest import BASE_URL, wait_for_access_count


def assert_error(resp, status_code):
    assert resp.status_code == status_code
    assert resp.headers.get("content-type", "").startswith("application/json")
    body = resp.json()
    assert isinstance(body.get("error"), str)
    assert body["error"].strip() != ""


def shorten(client, long_url, custom_slug=None):
    payload = {"long_url": long_url}
    if custom_slug is not None:
        payload["custom_slug"] = custom_slug
    return client.post("/api/shorten", json=payload)


def code_of(short_url):
    return short_url.rsplit("/", 1)[-1]


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "base_url": BASE_URL}


def test_shorten_and_redirect(client):
    resp = shorten(client, "https://example.com")
    assert resp.status_code == 200
    body = resp.json()
    assert body["long_url"] == "https://example.com"
    assert body["short_url"].startswith(f"{BASE_URL}/")

    code = code_of(body["short_url"])
    assert re.fullmatch(r"[A-Za-z0-9]{6}", code)

    redirect = client.get(f"/{code}", follow_redirects=False)
    assert redirect.status_code == 301
    assert redirect.headers["location"] == "https://example.com"


def test_shorten_with_custom_slug(client):
    resp = shorten(client, "https://example.com/docs", "foo123")
    assert resp.status_code == 200
    assert resp.json() == {"short_url": f"{BASE_URL}/foo123", "long_url": "https://example.com/docs"}


def test_shorten_rejects_bad_url(client):
    assert_error(shorten(client, "ftp://example.com"), 400)
    assert_error(shorten(client, "example.com"), 400)


def test_shorten_rejects_bad_slug(client):
    assert_error(shorten(client, "https://example.com", "foo-bar"), 400)
    assert_error(shorten(client, "https://example.com", "admin"), 400)
    assert_error(shorten(client, "https://example.com", "evil\n"), 400)


def test_shorten_rejects_malformed_body(client):
    assert_error(client.post("/api/shorten", json={}), 400)
    assert_error(client.post("/api/shorten", json={"long_url": 42}), 400)


def test_shorten_conflict(client):
    assert shorten(client, "https://example.com/first", "dup1").status_code == 200

    resp = shorten(client, "https://example.com/second", "dup1")
    assert_error(resp, 409)

    redirect = client.get("/dup1", follow_redirects=False)
    assert redirect.headers["location"] == "https://example.com/first"


def test_redirect_unknown(client):
    resp = client.get("/nothere", follow_redirects=False)
    assert_error(resp, 404)
    assert resp.json() == {"error": "URL not found"}


def test_redirect_malformed_code(client):
    assert_error(client.get("/bad-code", follow_redirects=False), 404)


def test_redirect_rejects_trailing_newline(client):
    assert shorten(client, "https://example.com/nl", "nl1").status_code == 200
    assert_error(client.get("/nl1%0A", follow_redirects=False), 404)


def test_info(client):
    shorten(client, "https://example.com/info", "info1")

    resp = client.get("/api/info/info1")
    assert resp.status_code == 200
    body = resp.json()
    assert body["short_url"] == f"{BASE_URL}/info1"
    assert body["long_url"] == "https://example.com/info"
    assert body["access_count"] == 0
    assert body["created_at"]


def test_info_unknown(client):
    assert_error(client.get("/api/info/missing"), 404)


def test_access_count_follows_redirects(client):
    shorten(client, "https://example.com/count", "count1")

    for _ in range(4):
        assert client.get("/count1", follow_redirects=False).status_code == 301

    assert wait_for_access_count(client, "count1", 4) == 4


def test_stats(client):
    for code, visits in [("s1", 2), ("s2", 0), ("s3", 5), ("s4", 1), ("s5", 3), ("s6", 4)]:
        shorten(client, f"https://example.com/{code}", code)
        for _ in range(visits):
            client.get(f"/{code}", follow_redirects=False)
        wait_for_access_count(client, code, visits)

    resp = client.get("/admin/stats")
    assert resp.status_code == 200
    body = resp.json()
    assert body["total_urls"] == 6
    assert body["total_clicks"] == 15
    assert len(body["top_urls"]) == 5
    assert [entry["short_url"] for entry in body["top_urls"]] == [
        f"{BASE_URL}/{code}" for code in ["s3", "s6", "s5", "s1", "s4"]
    ]
    counts = [entry["access_count"] for entry in body["top_urls"]]
    assert counts == sorted(counts, reverse=True)


def test_request_logging_header(client):
    resp = client.get("/health")
    assert "x-process-time" in resp.headers


def test_redirect_is_logged_with_code_and_destination(client, caplog):
    shorten(client, "https://example.com/logged", "log1")

    with caplog.at_level(logging.INFO, logger="shortener.middleware.logging"):
        client.get("/log1", follow_redirects=False)

    lines = [r.getMessage() for r in caplog.records if r.name == "shortener.middleware.logging"]
    assert any(
        "GET /log1 301" in line and "code=log1 -> https://example.com/logged" in line
        for line in lines
    )


def test_data_survives_restart(app_settings):
    with TestClient(create_app(app_settings)) as first:
        assert shorten(first, "https://example.com/persist", "keep1").status_code == 200

    with TestClient(create_app(app_settings)) as second:
        redirect = second.get("/keep1", follow_redirects=False)
        assert redirect.status_code == 301
        assert redirect.headers["location"] == "https://example.com/persist"


def test_root_path_is_not_a_route(client):
    assert_error(client.get("/", follow_redirects=False), 404)
