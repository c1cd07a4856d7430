from fastapi.testclient import TestClient


def test_cache_headers_personalized(test_client: TestClient):
    """
    Test Cache-Control and ETag for personalized content.
    """
    response = test_client.get("/v1/feed", params={"user_id": "user_pasta", "limit": 5})
    assert response.status_code == 200

    headers = response.headers
    assert "private" in headers["Cache-Control"]
    assert "max-age=30" in headers["Cache-Control"]
    assert "ETag" in headers
    assert "X-User-Id" not in headers.get("Vary", "")
    assert headers["X-Personalized"] == "true"

    etag = headers["ETag"]

    # Conditional request with the same ranking
    resp_304 = test_client.get(
        "/v1/feed",
        params={"user_id": "user_pasta", "limit": 5},
        headers={"If-None-Match": etag},
    )
    assert resp_304.status_code == 304


def test_stale_etag_returns_full_feed(test_client: TestClient):
    response = test_client.get(
        "/v1/feed",
        params={"user_id": "user_pasta", "limit": 5},
        headers={"If-None-Match": 'W/"not-the-current-feed"'},
    )

    assert response.status_code == 200
    assert len(response.json()["items"]) == 5


def test_cache_headers_fallback(test_client: TestClient, feature_flags):
    """
    Test Cache-Control for fallback content.
    We force fallback via rollout.
    """
    feature_flags.set_rollout_percentage(0)

    response = test_client.get("/v1/feed", params={"user_id": "user_pasta"})
    assert response.status_code == 200

    headers = response.headers
    assert "public" in headers["Cache-Control"]
    assert "stale-while-revalidate" in headers["Cache-Control"]
    assert headers["Vary"] == "Accept-Encoding"
    assert headers["X-Personalized"] == "false"
