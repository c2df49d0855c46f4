"""Catalogue configuration loaded from environment variables."""

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_BASE_URL = "https://sdi.eea.europa.eu/catalogue/srv/api"
DEFAULT_MAX_SEARCH_RESULTS = 100
DEFAULT_TIMEOUT = 30  # seconds
DEFAULT_AUDIT_LOG = ".sdi-catalogue-audit.log"


@dataclass(frozen=True)
class Credentials:
    """Username/password pair used for the sign-in handshake."""

    username: str
    password: str

    def is_complete(self) -> bool:
        return bool(self.username) and bool(self.password)

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password='***')"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        # Invalid format, keep the default
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class CatalogueConfig:
    """Runtime settings for talking to the catalogue API."""

    base_url: str = DEFAULT_BASE_URL
    username: str = ""
    password: str = ""
    max_search_results: int = DEFAULT_MAX_SEARCH_RESULTS
    timeout: int = DEFAULT_TIMEOUT
    signin_url: Optional[str] = None
    audit_log: str = DEFAULT_AUDIT_LOG

    @classmethod
    def from_environment(cls) -> "CatalogueConfig":
        """
        Load configuration from environment variables.

        Returns:
            CatalogueConfig with defaults applied for anything unset
        """
        base_url = os.getenv("CATALOGUE_BASE_URL") or os.getenv("BASE_URL") or DEFAULT_BASE_URL

        return cls(
            base_url=base_url.rstrip("/"),
            username=os.getenv("CATALOGUE_USERNAME", ""),
            password=os.getenv("CATALOGUE_PASSWORD", ""),
            max_search_results=_int_env("MAX_SEARCH_RESULTS", DEFAULT_MAX_SEARCH_RESULTS),
            timeout=_int_env("CATALOGUE_TIMEOUT", DEFAULT_TIMEOUT),
            signin_url=os.getenv("CATALOGUE_SIGNIN_URL") or None,
            audit_log=os.getenv("CATALOGUE_AUDIT_LOG") or DEFAULT_AUDIT_LOG,
        )

    def has_credentials(self) -> bool:
        return self.credentials().is_complete()

    def credentials(self) -> Credentials:
        return Credentials(username=self.username, password=self.password)

    def resolved_signin_url(self) -> str:
        """
        URL of the catalogue sign-in form.

        GeoNetwork serves the API under ``<root>/srv/api`` and the sign-in
        form at ``<root>/signin``.
        """
        if self.signin_url:
            return self.signin_url
        base = self.base_url.rstrip("/")
        if base.endswith("/srv/api"):
            base = base[: -len("/srv/api")]
        return f"{base}/signin"

    def __repr__(self) -> str:
        return (
            f"CatalogueConfig(base_url={self.base_url!r}, username={self.username!r}, "
            f"password={'***' if self.password else ''!r}, "
            f"max_search_results={self.max_search_results}, timeout={self.timeout})"
        )
