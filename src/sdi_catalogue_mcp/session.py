"""Per-call session acquisition against the catalogue sign-in handshake."""

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

import requests

from .client import CatalogueClient, cookie_dict
from .config import Credentials
from .errors import AuthError, AuthErrorKind

logger = logging.getLogger(__name__)

SESSION_COOKIE = "JSESSIONID"
APP_SESSION_COOKIE = "XSRF-TOKEN"
XSRF_HEADER = "X-XSRF-TOKEN"

# Lightweight authenticated endpoint used to obtain the secondary token
INFO_PATH = "/me"


@dataclass
class CatalogueSession:
    """Credential material for exactly one privileged tool call."""

    session_token: Optional[str] = None
    app_session_token: Optional[str] = None
    acquired_at: float = field(default_factory=time.time)

    def cookie_header(self) -> str:
        """
        Compose the Cookie header, primary token first.

        Returns:
            Non-empty tokens joined with "; "
        """
        return "; ".join(t for t in (self.session_token, self.app_session_token) if t)

    def headers(self) -> Dict[str, str]:
        headers = {"Cookie": self.cookie_header()}
        if self.app_session_token:
            # GeoNetwork checks the XSRF cookie against this header on writes
            headers[XSRF_HEADER] = self.app_session_token.split("=", 1)[1]
        return headers

    def __repr__(self) -> str:
        return (
            f"CatalogueSession(session_token={'***' if self.session_token else None}, "
            f"app_session_token={'***' if self.app_session_token else None}, "
            f"acquired_at={self.acquired_at})"
        )


def extract_token(cookies: Mapping[str, str], name: str) -> Optional[str]:
    """Return ``NAME=value`` for a cookie, or None if it is absent or empty."""
    value = cookies.get(name)
    if not value:
        return None
    return f"{name}={value}"


class SessionManager:
    """Runs the two-step sign-in handshake for one tool call."""

    def __init__(self, client: CatalogueClient, signin_url: str):
        """
        Initialize session manager.

        Args:
            client: The calling tool's HTTP client
            signin_url: Absolute URL of the catalogue sign-in form
        """
        self.client = client
        self.signin_url = signin_url

    def acquire(self, credentials: Credentials) -> CatalogueSession:
        """
        Sign in and collect the session tokens.

        Args:
            credentials: Username/password pair

        Returns:
            CatalogueSession holding at least the primary token

        Raises:
            AuthError: credentials missing, login rejected, or no session token issued
        """
        if not credentials.is_complete():
            raise AuthError(
                AuthErrorKind.MISSING_CREDENTIALS,
                "Catalogue username and password are required for this operation.",
            )

        try:
            response = self.client.post_form(
                self.signin_url,
                {"username": credentials.username, "password": credentials.password},
            )
        except requests.RequestException as e:
            raise AuthError(AuthErrorKind.LOGIN_REJECTED, f"Sign-in request failed: {e}") from e

        status = response.status_code
        # Redirects are the normal success path
        if status >= 400:
            raise AuthError(
                AuthErrorKind.LOGIN_REJECTED,
                f"Catalogue rejected the sign-in (HTTP {status}).",
                http_code=status,
            )

        cookies = cookie_dict(response)
        session = CatalogueSession(
            session_token=extract_token(cookies, SESSION_COOKIE),
            app_session_token=extract_token(cookies, APP_SESSION_COOKIE),
        )
        logger.info(
            "Sign-in returned HTTP %s (session token: %s, app token: %s)",
            status,
            "yes" if session.session_token else "no",
            "yes" if session.app_session_token else "no",
        )

        if session.session_token and not session.app_session_token:
            session.app_session_token = self._fetch_app_token(session.session_token)

        # Only the explicit Cookie header decorates the privileged request
        self.client.session.cookies.clear()

        if not session.session_token:
            raise AuthError(
                AuthErrorKind.TOKENS_UNAVAILABLE,
                f"Sign-in did not issue a {SESSION_COOKIE} cookie; check the catalogue credentials.",
                http_code=status,
            )

        return session

    def _fetch_app_token(self, session_token: str) -> Optional[str]:
        try:
            response = self.client.get_with_cookie(INFO_PATH, session_token)
        except requests.RequestException as e:
            logger.warning("Could not fetch %s after sign-in: %s", APP_SESSION_COOKIE, e)
            return None

        if response.status_code >= 400:
            logger.warning("%s returned HTTP %s; continuing with session token only", INFO_PATH, response.status_code)

        return extract_token(cookie_dict(response), APP_SESSION_COOKIE)
