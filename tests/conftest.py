"""Shared fixtures for the SDI catalogue MCP test suite."""

from __future__ import annotations

import json
import os
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from sdi_catalogue_mcp.config import CatalogueConfig

BASE_URL = "https://catalogue.test/catalogue/srv/api"

ISO19139_XML = """<?xml version="1.0" encoding="UTF-8"?>
<gmd:MD_Metadata xmlns:gmd="http://www.isotc211.org/2005/gmd"
                 xmlns:gco="http://www.isotc211.org/2005/gco">
  <gmd:fileIdentifier><gco:CharacterString>abc</gco:CharacterString></gmd:fileIdentifier>
</gmd:MD_Metadata>"""

ISO19115_3_XML = """<?xml version="1.0" encoding="UTF-8"?>
<mdb:MD_Metadata xmlns:mdb="http://standards.iso.org/iso/19115/-3/mdb/2.0"
                 xmlns:cit="http://standards.iso.org/iso/19115/-3/cit/2.0">
</mdb:MD_Metadata>"""


# ============================================================================
# Response helpers
# ============================================================================


def make_response(
    status: int = 200,
    json_data: Any = None,
    text: str | None = None,
    cookies: dict[str, str] | None = None,
) -> MagicMock:
    """Build a stand-in for requests.Response."""
    response = MagicMock()
    response.status_code = status
    response.cookies = dict(cookies or {})
    if json_data is not None:
        response.json.return_value = json_data
        response.text = json.dumps(json_data)
    else:
        response.json.side_effect = ValueError("No JSON object could be decoded")
        response.text = text or ""
    response.content = response.text.encode()
    return response


def search_response(total: int, uuids: list[str]) -> dict[str, Any]:
    return {
        "hits": {
            "total": {"value": total, "relation": "eq"},
            "hits": [
                {"_id": uuid, "_source": {"uuid": uuid, "id": str(i + 1)}}
                for i, uuid in enumerate(uuids)
            ],
        }
    }


def login_ok(session_id: str = "node01abc", xsrf: str | None = "xsrf-123") -> MagicMock:
    cookies = {"JSESSIONID": session_id}
    if xsrf:
        cookies["XSRF-TOKEN"] = xsrf
    return make_response(302, text="", cookies=cookies)


def sent_json(call) -> Any:
    """JSON body of a recorded session.request call."""
    return call.kwargs.get("json")


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture
def clean_env(monkeypatch):
    """Remove all catalogue environment variables."""
    for key in list(os.environ.keys()):
        if key.startswith("CATALOGUE_") or key in ("BASE_URL", "MAX_SEARCH_RESULTS", "LOG_LEVEL"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def config(tmp_path) -> CatalogueConfig:
    """Configuration with credentials."""
    return CatalogueConfig(
        base_url=BASE_URL,
        username="editor",
        password="s3cret",
        max_search_results=100,
        timeout=5,
        audit_log=str(tmp_path / "audit.log"),
    )


@pytest.fixture
def anon_config(tmp_path) -> CatalogueConfig:
    """Configuration without credentials."""
    return CatalogueConfig(
        base_url=BASE_URL,
        max_search_results=100,
        timeout=5,
        audit_log=str(tmp_path / "audit.log"),
    )


# ============================================================================
# HTTP Mocking Fixtures
# ============================================================================


@pytest.fixture
def mock_session_cls():
    """Patch requests.Session where the catalogue client creates it."""
    with patch("sdi_catalogue_mcp.client.requests.Session") as session_cls:
        session_cls.return_value = MagicMock(name="session")
        yield session_cls


@pytest.fixture
def http(mock_session_cls) -> MagicMock:
    """The mocked requests.Session instance used by the client."""
    return mock_session_cls.return_value
