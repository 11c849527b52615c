"""Locale prefix redirects and the cookie session gate for pages."""

import httpx

from workeasy.core.config import settings
from workeasy.middleware.locale import is_public_path, login_redirect, should_skip
from workeasy.tests.utils.fake_supabase import FakeAuth, make_access_token


class TestPathRules:
    def test_skipped_paths(self):
        assert should_skip("/_next/static/chunk.js")
        assert should_skip(f"{settings.API_PREFIX}/health")
        assert should_skip("/favicon.ico")
        assert not should_skip("/ko/schedule")

    def test_public_paths(self):
        assert is_public_path("/")
        assert is_public_path("/login")
        assert is_public_path("/auth/callback")
        assert is_public_path("/invites/error")
        assert not is_public_path("/schedule")

    def test_login_redirect_url(self):
        response = login_redirect("en", "/schedule", session_expired=True)
        assert response.status_code == 307
        assert response.headers["location"] == (
            "/en/login?redirectTo=%2Fschedule&sessionExpired=true"
        )


class TestLocaleRedirect:
    def test_cookie_wins(self, client):
        client.cookies.set(settings.LOCALE_COOKIE_NAME, "ja")

        response = client.get("/schedule", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/ja/schedule"

    def test_accept_language(self, client):
        response = client.get(
            "/schedule?week=2024-05-06",
            headers={"Accept-Language": "fr-FR,en;q=0.8"},
            follow_redirects=False,
        )

        assert response.headers["location"] == "/en/schedule?week=2024-05-06"

    def test_redirect_remembers_locale(self, client):
        response = client.get(
            "/schedule", headers={"Accept-Language": "ja"}, follow_redirects=False
        )

        assert response.headers["location"] == "/ja/schedule"
        assert response.cookies.get(settings.LOCALE_COOKIE_NAME) == "ja"

    def test_default_locale_for_root(self, client):
        response = client.get(
            "/", headers={"Accept-Language": "de"}, follow_redirects=False
        )

        assert response.headers["location"] == f"/{settings.DEFAULT_LOCALE}"


class TestSessionGate:
    def test_public_page_passes(self, client):
        response = client.get("/ko/signup", follow_redirects=False)

        assert response.status_code == 200

    def test_protected_page_without_session(self, client):
        response = client.get("/ko/schedule", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/ko/login?redirectTo=%2Fschedule"

    def test_valid_session_passes(self, client, backend):
        user = backend.add_user("kim@example.com")
        client.cookies.set(settings.ACCESS_TOKEN_COOKIE, backend.token_for(user))

        response = client.get("/ko/schedule", follow_redirects=False)

        assert response.status_code == 200
        assert response.json() == {"locale": "ko", "path": "/schedule"}

    def test_rejected_token(self, client):
        client.cookies.set(settings.ACCESS_TOKEN_COOKIE, make_access_token("ghost"))

        response = client.get("/en/schedule", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/en/login?redirectTo=%2Fschedule"

    def test_unreachable_auth_redirects_to_login(self, client, backend, monkeypatch):
        def unreachable(*args, **kwargs):
            raise httpx.ConnectError("connection refused")

        user = backend.add_user("kim@example.com")
        client.cookies.set(settings.ACCESS_TOKEN_COOKIE, backend.token_for(user))
        monkeypatch.setattr(backend.client.auth, "get_user", unreachable)

        response = client.get("/ko/schedule", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/ko/login?redirectTo=%2Fschedule"

    def test_unreachable_refresh_redirects_to_login(self, client, monkeypatch):
        def unreachable(*args, **kwargs):
            raise httpx.ConnectError("connection refused")

        monkeypatch.setattr(FakeAuth, "refresh_session", unreachable)
        client.cookies.set(settings.REFRESH_TOKEN_COOKIE, "stale")

        response = client.get("/en/schedule", follow_redirects=False)

        assert response.status_code == 307
        assert "sessionExpired=true" in response.headers["location"]

    def test_expired_token_refreshed(self, client, backend):
        user = backend.add_user("kim@example.com")
        session = backend.issue_session(user)
        client.cookies.set(
            settings.ACCESS_TOKEN_COOKIE, make_access_token(user.id, expires_in=-60)
        )
        client.cookies.set(settings.REFRESH_TOKEN_COOKIE, session.refresh_token)

        response = client.get("/en/schedule", follow_redirects=False)

        assert response.status_code == 200
        cookies = response.headers.get_list("set-cookie")
        assert any(c.startswith(settings.ACCESS_TOKEN_COOKIE) for c in cookies)
        assert any(c.startswith(settings.REFRESH_TOKEN_COOKIE) for c in cookies)

    def test_expired_token_without_refresh(self, client):
        client.cookies.set(
            settings.ACCESS_TOKEN_COOKIE, make_access_token("u1", expires_in=-60)
        )

        response = client.get("/en/schedule", follow_redirects=False)

        assert response.status_code == 307
        assert "sessionExpired=true" in response.headers["location"]

    def test_failed_refresh_redirects(self, client):
        client.cookies.set(settings.REFRESH_TOKEN_COOKIE, "stale")

        response = client.get("/en/schedule", follow_redirects=False)

        assert response.status_code == 307
        assert "sessionExpired=true" in response.headers["location"]

    def test_near_expiry_refreshed(self, client, backend):
        user = backend.add_user("kim@example.com")
        near = backend.issue_session(user, expires_in=60)
        client.cookies.set(settings.ACCESS_TOKEN_COOKIE, near.access_token)
        client.cookies.set(settings.REFRESH_TOKEN_COOKIE, near.refresh_token)

        response = client.get("/en/schedule", follow_redirects=False)

        assert response.status_code == 200
        assert response.headers.get_list("set-cookie")
        assert near.refresh_token not in backend.refresh_tokens
