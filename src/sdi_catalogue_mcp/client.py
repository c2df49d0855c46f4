"""HTTP client for the GeoNetwork catalogue API."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

import requests

from .config import CatalogueConfig

logger = logging.getLogger(__name__)


@dataclass
class OutboundRequest:
    """A fully shaped catalogue request, ready to send."""

    method: str
    path: str
    params: Optional[Union[Dict[str, Any], List[Tuple[str, Any]]]] = None
    json: Any = None
    data: Optional[Dict[str, Any]] = None
    files: Optional[Dict[str, Any]] = None
    headers: Dict[str, str] = field(default_factory=dict)
    raw: bool = False  # return the body as text instead of parsing JSON


@dataclass
class CatalogueResponse:
    """Structured response from the catalogue API."""

    success: bool
    data: Any = None
    error: Optional[str] = None
    http_code: Optional[int] = None
    body: Any = None


def _decode_body(response: requests.Response, raw: bool) -> Any:
    if raw:
        return response.text
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def cookie_dict(response: requests.Response) -> Dict[str, str]:
    try:
        return {name: value for name, value in response.cookies.items()}
    except AttributeError:
        return {}


class CatalogueClient:
    """Client for one tool call's worth of catalogue requests."""

    def __init__(self, config: CatalogueConfig):
        """
        Initialize catalogue client.

        Args:
            config: Catalogue settings (base URL, timeout)
        """
        self.base_url = config.base_url.rstrip("/")
        self.timeout = config.timeout
        self.session = requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "Content-Type": "application/json",
        })

    def __enter__(self) -> "CatalogueClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    def url_for(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def send(self, request: OutboundRequest, headers: Optional[Dict[str, str]] = None) -> CatalogueResponse:
        """
        Perform a shaped request.

        Args:
            request: Method, path, query, body of the call
            headers: Extra headers (session cookies) merged over the request's own

        Returns:
            CatalogueResponse; HTTP and transport failures are reported, not raised
        """
        url = self.url_for(request.path)
        merged_headers = dict(request.headers)
        if headers:
            merged_headers.update(headers)

        kwargs: Dict[str, Any] = {"timeout": self.timeout}
        if request.params:
            kwargs["params"] = request.params
        if request.json is not None:
            kwargs["json"] = request.json
        if request.data is not None:
            kwargs["data"] = request.data
        if request.files is not None:
            kwargs["files"] = request.files
            # Let requests set the multipart boundary
            merged_headers["Content-Type"] = None
        if request.raw and "Accept" not in merged_headers:
            merged_headers["Accept"] = "*/*"
        if merged_headers:
            kwargs["headers"] = merged_headers

        try:
            response = self.session.request(request.method, url, **kwargs)
        except requests.Timeout:
            logger.warning("%s %s timed out", request.method, request.path)
            return CatalogueResponse(
                success=False,
                error=f"Catalogue request timed out after {self.timeout}s. Server may be overloaded.",
            )
        except requests.ConnectionError:
            logger.warning("%s %s: connection failed", request.method, request.path)
            return CatalogueResponse(
                success=False,
                error=f"Cannot reach the catalogue at {self.base_url}. Check network connectivity.",
            )
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", request.method, request.path, e)
            return CatalogueResponse(success=False, error=f"Request failed: {e}")

        logger.info("%s %s -> %s", request.method, request.path, response.status_code)

        if 200 <= response.status_code < 300:
            return CatalogueResponse(
                success=True,
                data=_decode_body(response, request.raw),
                http_code=response.status_code,
            )

        return CatalogueResponse(
            success=False,
            error=f"Catalogue returned HTTP {response.status_code}",
            http_code=response.status_code,
            body=_decode_body(response, raw=False),
        )

    def post_form(self, url: str, form: Dict[str, str]) -> requests.Response:
        """POST a form without following redirects. Transport errors propagate."""
        return self.session.post(
            self.url_for(url),
            data=form,
            headers={
                "Content-Type": "application/x-www-form-urlencoded",
                "Accept": "text/html,application/json",
            },
            allow_redirects=False,
            timeout=self.timeout,
        )

    def get_with_cookie(self, path: str, cookie: str) -> requests.Response:
        """GET with an explicit Cookie header. Transport errors propagate."""
        return self.session.get(
            self.url_for(path),
            headers={"Cookie": cookie},
            allow_redirects=False,
            timeout=self.timeout,
        )
