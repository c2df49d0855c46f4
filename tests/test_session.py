"""Tests for the sign-in handshake (sdi_catalogue_mcp.session)."""

from __future__ import annotations

import pytest
import requests

from conftest import login_ok, make_response
from sdi_catalogue_mcp.client import CatalogueClient
from sdi_catalogue_mcp.config import Credentials
from sdi_catalogue_mcp.errors import AuthError, AuthErrorKind
from sdi_catalogue_mcp.session import CatalogueSession, SessionManager

SIGNIN_URL = "https://catalogue.test/catalogue/signin"


@pytest.fixture
def manager(config, http):
    return SessionManager(CatalogueClient(config), SIGNIN_URL)


CREDENTIALS = Credentials("editor", "s3cret")


class TestMissingCredentials:
    @pytest.mark.parametrize("username,password", [("", "pw"), ("user", ""), ("", "")])
    def test_fails_before_network(self, manager, http, username, password):
        with pytest.raises(AuthError) as exc:
            manager.acquire(Credentials(username, password))

        assert exc.value.kind is AuthErrorKind.MISSING_CREDENTIALS
        http.post.assert_not_called()
        http.get.assert_not_called()


class TestPrimaryLogin:
    def test_posts_form_without_following_redirects(self, manager, http):
        http.post.return_value = login_ok()

        manager.acquire(CREDENTIALS)

        call = http.post.call_args
        assert call.args[0] == SIGNIN_URL
        assert call.kwargs["data"] == {"username": "editor", "password": "s3cret"}
        assert call.kwargs["allow_redirects"] is False
        assert call.kwargs["headers"]["Content-Type"] == "application/x-www-form-urlencoded"

    @pytest.mark.parametrize("status", [200, 204, 302, 303])
    def test_status_below_400_is_soft_success(self, manager, http, status):
        http.post.return_value = make_response(status, cookies={"JSESSIONID": "a", "XSRF-TOKEN": "b"})

        session = manager.acquire(CREDENTIALS)

        assert session.session_token == "JSESSIONID=a"

    @pytest.mark.parametrize("status", [400, 401, 403, 500])
    def test_error_status_is_rejected(self, manager, http, status):
        http.post.return_value = make_response(status, cookies={"JSESSIONID": "a"})

        with pytest.raises(AuthError) as exc:
            manager.acquire(CREDENTIALS)

        assert exc.value.kind is AuthErrorKind.LOGIN_REJECTED
        assert exc.value.http_code == status
        http.get.assert_not_called()

    def test_transport_failure_is_rejected(self, manager, http):
        http.post.side_effect = requests.ConnectionError("refused")

        with pytest.raises(AuthError) as exc:
            manager.acquire(CREDENTIALS)

        assert exc.value.kind is AuthErrorKind.LOGIN_REJECTED

    def test_both_tokens_in_login_response_skip_info_call(self, manager, http):
        http.post.return_value = login_ok("sess", "xsrf")

        session = manager.acquire(CREDENTIALS)

        assert session.cookie_header() == "JSESSIONID=sess; XSRF-TOKEN=xsrf"
        http.get.assert_not_called()

    def test_no_session_cookie_is_fatal(self, manager, http):
        http.post.return_value = make_response(302, cookies={})
        http.get.return_value = make_response(200, cookies={})

        with pytest.raises(AuthError) as exc:
            manager.acquire(CREDENTIALS)

        assert exc.value.kind is AuthErrorKind.TOKENS_UNAVAILABLE

    def test_cookie_jar_is_cleared_after_login(self, manager, http):
        http.post.return_value = login_ok()

        manager.acquire(CREDENTIALS)

        http.cookies.clear.assert_called_once()


class TestSecondaryToken:
    def test_fetched_from_info_endpoint_with_primary_cookie(self, manager, http):
        http.post.return_value = make_response(302, cookies={"JSESSIONID": "sess"})
        http.get.return_value = make_response(200, json_data={"username": "editor"}, cookies={"XSRF-TOKEN": "x1"})

        session = manager.acquire(CREDENTIALS)

        assert http.get.call_count == 1
        call = http.get.call_args
        assert call.args[0] == "https://catalogue.test/catalogue/srv/api/me"
        assert call.kwargs["headers"] == {"Cookie": "JSESSIONID=sess"}
        assert session.cookie_header() == "JSESSIONID=sess; XSRF-TOKEN=x1"

    def test_info_failure_is_not_fatal(self, manager, http):
        http.post.return_value = make_response(302, cookies={"JSESSIONID": "sess"})
        http.get.side_effect = requests.Timeout("slow")

        session = manager.acquire(CREDENTIALS)

        assert session.cookie_header() == "JSESSIONID=sess"
        assert session.app_session_token is None

    def test_info_error_status_is_not_fatal(self, manager, http):
        http.post.return_value = make_response(302, cookies={"JSESSIONID": "sess"})
        http.get.return_value = make_response(403)

        session = manager.acquire(CREDENTIALS)

        assert session.cookie_header() == "JSESSIONID=sess"


class TestCatalogueSession:
    def test_cookie_header_order_and_skipping(self):
        assert CatalogueSession("JSESSIONID=a", "XSRF-TOKEN=b").cookie_header() == "JSESSIONID=a; XSRF-TOKEN=b"
        assert CatalogueSession("JSESSIONID=a", None).cookie_header() == "JSESSIONID=a"
        assert CatalogueSession(None, "XSRF-TOKEN=b").cookie_header() == "XSRF-TOKEN=b"

    def test_headers_include_xsrf_header(self):
        headers = CatalogueSession("JSESSIONID=a", "XSRF-TOKEN=b").headers()
        assert headers == {"Cookie": "JSESSIONID=a; XSRF-TOKEN=b", "X-XSRF-TOKEN": "b"}

    def test_headers_without_secondary_token(self):
        assert CatalogueSession("JSESSIONID=a").headers() == {"Cookie": "JSESSIONID=a"}

    def test_repr_hides_tokens(self):
        text = repr(CatalogueSession("JSESSIONID=secret-value", "XSRF-TOKEN=other"))
        assert "secret-value" not in text
        assert "other" not in text
