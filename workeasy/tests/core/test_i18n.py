from starlette.requests import Request

from workeasy.core.i18n import (
    DEFAULT_LOCALE,
    detect_page_locale,
    get_translations,
    locale_cookie_kwargs,
    parse_accept_language,
    resolve_request_locale,
    split_page_path,
    t,
)


def make_request(
    headers: dict[str, str] | None = None, query: str = ""
) -> Request:
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": "/",
            "query_string": query.encode(),
            "headers": [
                (k.lower().encode(), v.encode()) for k, v in (headers or {}).items()
            ],
        }
    )


class TestTranslate:
    def test_known_key(self):
        assert t("errors.storeNotFound", "en") == "Store not found"
        assert t("errors.storeNotFound", "ko") == "매장을 찾을 수 없습니다."

    def test_unknown_locale_uses_default(self):
        assert t("errors.storeNotFound", "fr") == t("errors.storeNotFound", DEFAULT_LOCALE)

    def test_unknown_key_returns_key(self):
        assert t("Some upstream message", "en") == "Some upstream message"

    def test_interpolation(self):
        message = t("roleCoverage.count", "en", name="cashier", current=1, required=2)
        assert message == "cashier: 1/2 people"

    def test_bound_translator(self):
        locale, translate = get_translations("xx")
        assert locale == DEFAULT_LOCALE
        assert translate("errors.notFound") == t("errors.notFound", DEFAULT_LOCALE)


class TestRequestLocale:
    def test_explicit_value_wins(self):
        request = make_request({"Accept-Language": "ja"}, "locale=ko")
        assert resolve_request_locale(request, "en") == "en"

    def test_query_before_header(self):
        request = make_request({"Accept-Language": "ja"}, "locale=en")
        assert resolve_request_locale(request) == "en"

    def test_header_primary_subtag(self):
        request = make_request({"Accept-Language": "ja-JP,en;q=0.8"})
        assert resolve_request_locale(request) == "ja"

    def test_unsupported_header_falls_back(self):
        request = make_request({"Accept-Language": "fr-FR"})
        assert resolve_request_locale(request) == DEFAULT_LOCALE

    def test_parse_accept_language(self):
        assert parse_accept_language("en-US;q=0.9") == "en"
        assert parse_accept_language(None) is None


class TestPageLocale:
    def test_cookie_first(self):
        request = make_request({"Cookie": "locale=ja", "Accept-Language": "en"})
        assert detect_page_locale(request) == "ja"

    def test_first_supported_header_entry(self):
        request = make_request({"Accept-Language": "fr-FR,en;q=0.7,ko;q=0.5"})
        assert detect_page_locale(request) == "en"

    def test_invalid_cookie_ignored(self):
        request = make_request({"Cookie": "locale=de"})
        assert detect_page_locale(request) == DEFAULT_LOCALE

    def test_cookie_kwargs_normalize_locale(self):
        kwargs = locale_cookie_kwargs("zz")
        assert kwargs["value"] == DEFAULT_LOCALE
        assert kwargs["path"] == "/"


class TestSplitPagePath:
    def test_prefixed(self):
        assert split_page_path("/ko/schedule/week") == ("ko", "/schedule/week")

    def test_locale_root(self):
        assert split_page_path("/en") == ("en", "/")

    def test_unprefixed(self):
        assert split_page_path("/schedule") == (None, "/schedule")
