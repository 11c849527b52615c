"""Application wiring: health, error envelopes, correlation ids and pages."""

from workeasy import __version__
from workeasy.core.config import settings


class TestHealth:
    def test_health(self, client):
        response = client.get(f"{settings.API_PREFIX}/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": "ok",
            "environment": settings.ENVIRONMENT,
            "version": __version__,
        }

    def test_correlation_id_echoed(self, client):
        response = client.get(
            f"{settings.API_PREFIX}/health", headers={"X-Correlation-ID": "abc-123"}
        )

        assert response.headers["X-Correlation-ID"] == "abc-123"

    def test_correlation_id_generated(self, client):
        response = client.get(f"{settings.API_PREFIX}/health")

        assert response.headers["X-Correlation-ID"]


class TestErrorEnvelope:
    def test_korean_is_default_locale(self, client):
        response = client.get(
            f"{settings.API_PREFIX}/auth/profile", headers={"Accept-Language": "de"}
        )

        assert response.json() == {"success": False, "error": "인증이 필요합니다."}

    def test_locale_query_parameter(self, client):
        response = client.get(
            f"{settings.API_PREFIX}/auth/profile", params={"locale": "ja"}
        )

        assert response.json()["error"] == "認証が必要です。"

    def test_malformed_json_is_400(self, client):
        response = client.post(
            f"{settings.API_PREFIX}/auth/signin",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["success"] is False


class TestPages:
    def test_locale_prefixed_page(self, client):
        response = client.get("/en/login")

        assert response.status_code == 200
        assert response.json() == {"locale": "en", "path": "/login"}
