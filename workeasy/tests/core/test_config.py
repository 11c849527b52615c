from workeasy.core.config import DEFAULT_SITE_URL, Settings, normalize_site_url, parse_cors


class TestSiteUrl:
    def test_adds_scheme_and_strips_slash(self):
        assert normalize_site_url(" app.workeasy.io/ ") == "https://app.workeasy.io"

    def test_blank_uses_default(self):
        assert normalize_site_url("  ") == DEFAULT_SITE_URL
        assert normalize_site_url(None) == DEFAULT_SITE_URL


class TestSettings:
    def test_new_key_names_fill_legacy_ones(self):
        settings = Settings(
            _env_file=None,
            SUPABASE_PUBLISHABLE_KEY="anon",
            SUPABASE_SECRET="service",
        )
        assert settings.SUPABASE_ANON_KEY == "anon"
        assert settings.SUPABASE_SERVICE_KEY == "service"

    def test_app_url_defaults_to_site_url(self):
        settings = Settings(_env_file=None, SITE_URL="example.com")
        assert settings.APP_URL == "https://example.com"
        assert (
            settings.email_verification_redirect_url
            == "https://example.com/auth/callback"
        )

    def test_cors_origins_include_site(self):
        settings = Settings(
            _env_file=None,
            SITE_URL="https://example.com",
            BACKEND_CORS_ORIGINS="http://localhost:5173/, http://localhost:3000",
        )
        assert settings.all_cors_origins == [
            "http://localhost:5173",
            "http://localhost:3000",
            "https://example.com",
        ]

    def test_parse_cors_list_passthrough(self):
        assert parse_cors(["http://a"]) == ["http://a"]
