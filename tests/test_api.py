"""End-to-end tests for the generation API."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from reelgen.config import Settings, get_settings
from reelgen.domain.enums import JobStatus
from reelgen.errors import RateLimitedError
from reelgen.main import app


def submit(client: TestClient, headers: dict[str, str], prompt: str = "A serene waterfall") -> dict:
    response = client.post("/generate", json={"prompt": prompt}, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
def override_settings():
    def _override(**values) -> None:
        settings = Settings(**values)
        app.dependency_overrides[get_settings] = lambda: settings

    return _override


class TestGenerationFlow:
    def test_generate_poll_and_process(
        self, client: TestClient, auth_headers, video_gen_provider, fake_ffmpeg
    ) -> None:
        body = submit(client, auth_headers)
        assert body["success"] is True
        assert body["status"] == "starting"
        job_id, video_id = body["id"], body["videoId"]

        video_gen_provider.set_status(job_id, JobStatus.PROCESSING)
        response = client.get(f"/status/{job_id}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "status": "processing",
            "progress": 0.5,
            "videoId": video_id,
        }

        video_gen_provider.set_status(job_id, JobStatus.SUCCEEDED)
        done = client.get("/status", params={"id": job_id}, headers=auth_headers).json()
        assert done["status"] == "succeeded"
        assert done["progress"] == 1.0
        assert done["processing"] == "complete"
        assert done["videoUrl"] == f"https://cdn.test/media/videos/{video_id}.mp4"
        assert done["thumbnailUrl"] == f"https://cdn.test/media/thumbnails/{video_id}.jpg"
        assert done["previewUrl"] == f"https://cdn.test/media/previews/{video_id}.mp4"
        assert done["hlsUrl"] == f"https://cdn.test/media/videos/{video_id}/hls/playlist.m3u8"

        again = client.get("/api", params={"id": job_id}, headers=auth_headers).json()
        assert again == done
        assert len(fake_ffmpeg.calls) == 3

    def test_failed_generation(self, client: TestClient, auth_headers, video_gen_provider) -> None:
        job_id = submit(client, auth_headers)["id"]
        video_gen_provider.set_status(job_id, JobStatus.FAILED, error="Prediction canceled")

        body = client.get(f"/status/{job_id}", headers=auth_headers).json()

        assert body["status"] == "failed"
        assert body["error"] == "Prediction canceled"

    @pytest.mark.parametrize("path", ["/render", "/api"])
    def test_aliases(self, client: TestClient, auth_headers, path: str) -> None:
        response = client.post(path, json={"prompt": "A serene waterfall"}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "starting"

    def test_moderated_prompt(self, client: TestClient, auth_headers, video_gen_provider) -> None:
        response = client.post("/generate", json={"prompt": "nsfw clip"}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True, "isModeratedContent": True}
        assert video_gen_provider.submitted == []


class TestErrors:
    def test_missing_auth(self, client: TestClient) -> None:
        response = client.post("/generate", json={"prompt": "A serene waterfall"})

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Authentication required"}

    def test_wrong_token(self, client: TestClient) -> None:
        response = client.get("/status/abc", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid authentication token"

    def test_missing_secret_is_server_error(self, client: TestClient, override_settings) -> None:
        override_settings(api_secret_key=None)

        response = client.post(
            "/generate", json={"prompt": "x"}, headers={"Authorization": "Bearer test-secret"}
        )

        assert response.status_code == 500
        assert response.json()["error"] == "Server configuration error - API_SECRET_KEY not set"

    @pytest.mark.parametrize("payload", [{}, {"prompt": ""}, None])
    def test_missing_prompt(self, client: TestClient, auth_headers, payload) -> None:
        response = client.post("/generate", json=payload, headers=auth_headers)

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Prompt is required"}

    def test_missing_prediction_id(self, client: TestClient, auth_headers) -> None:
        response = client.get("/status", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Prediction ID is required"

    def test_unknown_prediction(self, client: TestClient, auth_headers) -> None:
        response = client.get("/status/not-a-job", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_method_not_allowed(self, client: TestClient, auth_headers) -> None:
        response = client.put("/generate", json={"prompt": "x"}, headers=auth_headers)

        assert response.status_code == 405
        assert response.json()["success"] is False

    def test_options_preflight(self, client: TestClient) -> None:
        response = client.options("/generate")

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert "Authorization" in response.headers["access-control-allow-headers"]

    def test_daily_cap_denial(self, client: TestClient, auth_headers, override_settings) -> None:
        override_settings(daily_cap_enabled=True, daily_generation_limit=1)

        submit(client, auth_headers)
        response = client.post("/generate", json={"prompt": "Another"}, headers=auth_headers)

        assert response.status_code == 412
        assert response.json()["error"] == (
            "Daily video generation limit reached. Please try again tomorrow."
        )

    def test_token_gate_requires_balance(
        self, client: TestClient, auth_headers, override_settings, video_gen_provider
    ) -> None:
        override_settings(token_gate_enabled=True)

        response = client.post("/generate", json={"prompt": "A lake"}, headers=auth_headers)

        assert response.status_code == 412
        assert "Insufficient token balance" in response.json()["error"]
        assert video_gen_provider.submitted == []

    def test_provider_rate_limit(self, client: TestClient, auth_headers, video_gen_provider) -> None:
        video_gen_provider.submit = AsyncMock(
            side_effect=RateLimitedError("Replicate rate limit exceeded", retry_after=12)
        )

        response = client.post("/generate", json={"prompt": "A lake"}, headers=auth_headers)

        assert response.status_code == 429
        assert response.headers["retry-after"] == "12"
        assert "stack" not in response.json()

    def test_stack_only_in_development(self, client: TestClient, auth_headers) -> None:
        with patch("reelgen.main.get_settings", return_value=Settings(environment="development")):
            response = client.get("/status/not-a-job", headers=auth_headers)

        assert "Traceback" in response.json()["stack"]


class TestMetadataEndpoint:
    def test_regenerates_metadata(self, client: TestClient, auth_headers, llm_provider) -> None:
        video_id = submit(client, auth_headers)["videoId"]

        response = client.post(
            "/metadata",
            json={"videoId": video_id, "title": "Morning falls", "isAiGenerated": False},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == video_id
        assert data["title"] == "Morning falls"
        assert data["tags"] == ["ai", "shorts", "viral"]
        assert data["isAiGenerated"] is False
        assert "Morning falls" in llm_provider.calls[0][1].content

    def test_requires_id_and_title(self, client: TestClient, auth_headers) -> None:
        response = client.post("/metadata", json={"videoId": "v1"}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Video ID and title are required"

    def test_unknown_video(self, client: TestClient, auth_headers) -> None:
        response = client.post(
            "/metadata", json={"videoId": "nope", "title": "x"}, headers=auth_headers
        )

        assert response.status_code == 404
        assert response.json()["error"] == "Video not found"
