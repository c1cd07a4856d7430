"""
Integration tests for the interaction and retraining endpoints.
"""
from fastapi.testclient import TestClient


class TestInteractionsAPI:
    def test_track_view(self, test_client: TestClient, demo_log_store):
        before = demo_log_store.count()

        response = test_client.post("/v1/interactions", json={
            "user_id": "user_curry",
            "video_id": "vid_tacos",
            "type": "view",
            "value": {"watch_time_seconds": 35, "device_type": "android"},
        })

        assert response.status_code == 201
        data = response.json()
        assert data["creator_id"] == "creator_luis"
        assert data["tags"] == ["Mexican", "street-food"]
        assert data["device_type"] == "android"
        assert data["session_id"].startswith("session_")
        assert demo_log_store.count() == before + 1

    def test_track_without_value(self, test_client: TestClient):
        response = test_client.post("/v1/interactions", json={
            "user_id": "user_new",
            "video_id": "vid_ramen",
            "type": "like",
        })

        assert response.status_code == 201
        assert response.json()["watch_time_seconds"] is None

    def test_invalid_interaction_type(self, test_client: TestClient):
        response = test_client.post("/v1/interactions", json={
            "user_id": "user_curry",
            "video_id": "vid_tacos",
            "type": "bookmark",
        })
        assert response.status_code == 422

    def test_view_refreshes_cached_profile(self, test_client: TestClient, feed_service):
        # Warm the profile cache
        test_client.get("/v1/feed", params={"user_id": "user_pasta"})
        cache = feed_service._profile_builder.cache
        before = cache.get("user_pasta").behaviors.avg_watch_time

        test_client.post("/v1/interactions", json={
            "user_id": "user_pasta",
            "video_id": "vid_carbonara",
            "type": "view",
            "value": {"watch_time_seconds": 30},
        })

        assert cache.get("user_pasta").behaviors.avg_watch_time == (before + 30) / 2

    def test_new_likes_shape_the_next_profile(self, test_client: TestClient):
        for video_id in ("vid_ramen", "vid_ramen", "vid_ramen"):
            test_client.post("/v1/interactions", json={
                "user_id": "user_fresh",
                "video_id": video_id,
                "type": "like",
            })

        data = test_client.get("/v1/feed", params={"user_id": "user_fresh", "limit": 1}).json()
        assert data["candidate_ids"] == ["vid_ramen"]


class TestRetrainAPI:
    def test_retrain_report(self, test_client: TestClient):
        response = test_client.post("/v1/model/retrain")

        assert response.status_code == 200
        data = response.json()
        # Seeded log: 8 events, 2 likes and 1 order
        assert data["events_scanned"] == 8
        assert data["positive_events"] == 3
        assert data["skipped"] is False

    def test_retrain_is_repeatable(self, test_client: TestClient):
        first = test_client.post("/v1/model/retrain").json()
        second = test_client.post("/v1/model/retrain").json()

        assert first["events_scanned"] == second["events_scanned"]
