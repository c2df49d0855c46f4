"""Tool registry and base classes for MCP tools."""

import keyword
import re
from dataclasses import dataclass, fields
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Type

from mcp.types import CallToolResult, Tool

from ..client import CatalogueClient
from ..config import CatalogueConfig
from ..security import AuditLogger, ValidationError
from ..session import CatalogueSession, SessionManager


class ToolName(str, Enum):
    SEARCH_RECORDS = "search_records"
    GET_RECORD = "get_record"
    GET_RECORD_FORMATTERS = "get_record_formatters"
    EXPORT_RECORD = "export_record"
    LIST_GROUPS = "list_groups"
    GET_SOURCES = "get_sources"
    GET_SITE_INFO = "get_site_info"
    GET_RELATED_RECORDS = "get_related_records"
    GET_TAGS = "get_tags"
    GET_REGIONS = "get_regions"
    SEARCH_BY_EXTENT = "search_by_extent"
    DUPLICATE_RECORD = "duplicate_record"
    UPDATE_RECORD = "update_record"
    GET_RECORD_BY_ID = "get_record_by_id"
    UPDATE_RECORD_TITLE = "update_record_title"
    ADD_RECORD_TAGS = "add_record_tags"
    DELETE_RECORD_TAGS = "delete_record_tags"
    GET_ATTACHMENTS = "get_attachments"
    DELETE_ATTACHMENT = "delete_attachment"
    UPLOAD_FILE_TO_RECORD = "upload_file_to_record"


def python_name(key: str) -> str:
    """camelCase argument name to the snake_case field name of its payload."""
    name = re.sub(r'(?<!^)(?=[A-Z])', '_', key).lower()
    return f"{name}_" if keyword.iskeyword(name) else name


_TRUE = {"true", "1", "yes"}
_FALSE = {"false", "0", "no"}


def _coerce(name: str, value: Any, spec: Mapping[str, Any]) -> Any:
    expected = spec.get("type")

    if expected == "string":
        if not isinstance(value, str):
            raise ValidationError(f"'{name}' must be a string")
    elif expected == "boolean":
        if isinstance(value, str) and value.lower() in _TRUE | _FALSE:
            value = value.lower() in _TRUE
        if not isinstance(value, bool):
            raise ValidationError(f"'{name}' must be a boolean")
    elif expected in ("number", "integer"):
        if isinstance(value, str):
            try:
                value = float(value) if "." in value else int(value)
            except ValueError:
                raise ValidationError(f"'{name}' must be a {expected}")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(f"'{name}' must be a {expected}")
        if expected == "integer":
            if isinstance(value, float) and not value.is_integer():
                raise ValidationError(f"'{name}' must be an integer")
            value = int(value)
    elif expected == "array":
        if not isinstance(value, list):
            raise ValidationError(f"'{name}' must be an array")
    elif expected == "object":
        if not isinstance(value, dict):
            raise ValidationError(f"'{name}' must be an object")

    allowed = spec.get("enum")
    if allowed and value not in allowed:
        raise ValidationError(f"'{name}' must be one of: {', '.join(map(str, allowed))}")

    return value


@dataclass(frozen=True)
class ToolDescriptor:
    """Static description of one tool: its name, argument schema and auth needs."""

    name: ToolName
    description: str
    input_schema: Mapping[str, Any]
    requires_auth: bool = False

    def __post_init__(self):
        object.__setattr__(self, "input_schema", MappingProxyType(dict(self.input_schema)))

    def to_tool(self) -> Tool:
        schema = {
            "type": "object",
            "properties": dict(self.input_schema.get("properties", {})),
            "required": list(self.input_schema.get("required", [])),
        }
        return Tool(name=self.name.value, description=self.description, inputSchema=schema)

    def bind(self, arguments: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """
        Validate arguments against the schema and fill in declared defaults.

        Args:
            arguments: Loosely typed arguments as received from the client

        Returns:
            Dict keyed by payload field name (snake_case)

        Raises:
            ValidationError if a required argument is missing or has the wrong type
        """
        arguments = arguments or {}
        properties = self.input_schema.get("properties", {})
        bound: Dict[str, Any] = {}

        for key in self.input_schema.get("required", []):
            if arguments.get(key) is None:
                raise ValidationError(f"Missing required argument '{key}'")

        for key, spec in properties.items():
            value = arguments.get(key)
            if value is None:
                if "default" in spec:
                    bound[python_name(key)] = spec["default"]
                continue
            bound[python_name(key)] = _coerce(key, value, spec)

        return bound


@dataclass(frozen=True)
class NoArgs:
    """Argument payload of tools that take no arguments."""


@dataclass
class ToolContext:
    """Everything one tool call may use; discarded when the call completes."""

    config: CatalogueConfig
    client: CatalogueClient
    audit: AuditLogger
    session: Optional[CatalogueSession] = None

    def authenticate(self) -> CatalogueSession:
        """
        Acquire a fresh session for this call.

        Raises:
            AuthError if the sign-in handshake fails
        """
        manager = SessionManager(self.client, self.config.resolved_signin_url())
        self.session = manager.acquire(self.config.credentials())
        return self.session

    def session_headers(self) -> Dict[str, str]:
        return self.session.headers() if self.session else {}

    def audit_log(self, action: str, record: Any, details: str) -> None:
        self.audit.log(action, str(record), details, user=self.config.username or "anonymous")


class ToolHandler:
    """Base class for MCP tool handlers."""

    args_type: Type[Any] = NoArgs

    def __init__(self, descriptor: ToolDescriptor):
        """Initialize tool handler with its descriptor."""
        self.descriptor = descriptor

    @property
    def name(self) -> str:
        return self.descriptor.name.value

    @property
    def requires_auth(self) -> bool:
        return self.descriptor.requires_auth

    def get_tool_description(self) -> Tool:
        return self.descriptor.to_tool()

    def parse_arguments(self, arguments: Optional[Mapping[str, Any]]) -> Any:
        """
        Validate raw arguments into this tool's payload dataclass.

        Raises:
            ValidationError if arguments do not match the schema
        """
        bound = self.descriptor.bind(arguments)
        accepted = {f.name for f in fields(self.args_type)}
        return self.args_type(**{k: v for k, v in bound.items() if k in accepted})

    def run_tool(self, args: Any, context: ToolContext) -> CallToolResult:
        """
        Execute the tool.

        Must be implemented by subclasses.

        Args:
            args: Validated argument payload (instance of args_type)
            context: Per-call client, config and session

        Returns:
            CallToolResult (errors are reported in-band)
        """
        raise NotImplementedError
