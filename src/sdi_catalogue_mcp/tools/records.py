"""Record read tools: get_record, get_record_formatters, export_record,
get_related_records, get_record_by_id."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from mcp.types import CallToolResult

from ..errors import AuthError
from ..formatters import error_result, success_result, upstream_error
from ..security import ArgumentValidator, ValidationError
from ..shaping import (
    first_hit,
    hit_uuid,
    shape_export,
    shape_id_lookup,
    shape_record_fetch,
    shape_record_formatters,
    shape_related,
)
from . import ToolContext, ToolDescriptor, ToolHandler, ToolName

logger = logging.getLogger(__name__)

UUID_PROPERTY = {
    "type": "string",
    "description": "The UUID of the metadata record",
}


@dataclass(frozen=True)
class RecordArgs:
    uuid: str
    approved: bool = True


class GetRecordTool(ToolHandler):
    """Tool for fetching one record."""

    args_type = RecordArgs

    def __init__(self):
        super().__init__(ToolDescriptor(
            name=ToolName.GET_RECORD,
            description="Get detailed metadata for a specific record by its UUID or ID",
            input_schema={
                "properties": {
                    "uuid": {
                        "type": "string",
                        "description": "The UUID or ID of the metadata record",
                    },
                    "approved": {
                        "type": "boolean",
                        "description": "Only return approved versions (default: true)",
                        "default": True,
                    },
                },
                "required": ["uuid"],
            },
        ))

    def run_tool(self, args: RecordArgs, context: ToolContext) -> CallToolResult:
        try:
            uuid = ArgumentValidator.validate_identifier(args.uuid)
        except ValidationError as e:
            return error_result(f"Invalid record identifier: {e}")

        response = context.client.send(shape_record_fetch(uuid, args.approved))
        if not response.success:
            return upstream_error(response, f"Could not fetch record {uuid}")
        return success_result(response.data)


@dataclass(frozen=True)
class UuidArgs:
    uuid: str


class GetRecordFormattersTool(ToolHandler):
    """Tool for listing a record's export formats."""

    args_type = UuidArgs

    def __init__(self):
        super().__init__(ToolDescriptor(
            name=ToolName.GET_RECORD_FORMATTERS,
            description="Get available formatters (export formats) for a metadata record",
            input_schema={"properties": {"uuid": UUID_PROPERTY}, "required": ["uuid"]},
        ))

    def run_tool(self, args: UuidArgs, context: ToolContext) -> CallToolResult:
        try:
            uuid = ArgumentValidator.validate_identifier(args.uuid)
        except ValidationError as e:
            return error_result(f"Invalid record identifier: {e}")

        response = context.client.send(shape_record_formatters(uuid))
        if not response.success:
            return upstream_error(response)
        return success_result(response.data)


@dataclass(frozen=True)
class ExportRecordArgs:
    uuid: str
    formatter: str


class ExportRecordTool(ToolHandler):
    """Tool for exporting a record through one of its formatters."""

    args_type = ExportRecordArgs

    def __init__(self):
        super().__init__(ToolDescriptor(
            name=ToolName.EXPORT_RECORD,
            description="Export a metadata record in a specific format (XML, PDF, etc.)",
            input_schema={
                "properties": {
                    "uuid": UUID_PROPERTY,
                    "formatter": {
                        "type": "string",
                        "description": "The formatter/format to use (e.g., 'xml', 'pdf', 'full_view')",
                    },
                },
                "required": ["uuid", "formatter"],
            },
        ))

    def run_tool(self, args: ExportRecordArgs, context: ToolContext) -> CallToolResult:
        try:
            uuid = ArgumentValidator.validate_identifier(args.uuid)
            formatter = ArgumentValidator.validate_formatter(args.formatter)
        except ValidationError as e:
            return error_result(str(e))

        response = context.client.send(shape_export(uuid, formatter))
        if not response.success:
            return upstream_error(response, f"Export as '{formatter}' failed")
        # Exports are passed through as-is, not re-parsed
        return success_result(response.data, raw=True)


@dataclass(frozen=True)
class RelatedArgs:
    uuid: str
    type: Optional[str] = None


class GetRelatedRecordsTool(ToolHandler):
    """Tool for listing records linked to a record."""

    args_type = RelatedArgs

    def __init__(self):
        super().__init__(ToolDescriptor(
            name=ToolName.GET_RELATED_RECORDS,
            description="Get records related to a specific record (parent, children, services, datasets, etc.)",
            input_schema={
                "properties": {
                    "uuid": UUID_PROPERTY,
                    "type": {
                        "type": "string",
                        "description": "Type of relationship (e.g., 'children', 'parent', 'services', "
                                       "'datasets', 'sources', 'associated')",
                    },
                },
                "required": ["uuid"],
            },
        ))

    def run_tool(self, args: RelatedArgs, context: ToolContext) -> CallToolResult:
        try:
            uuid = ArgumentValidator.validate_identifier(args.uuid)
        except ValidationError as e:
            return error_result(f"Invalid record identifier: {e}")

        response = context.client.send(shape_related(uuid, args.type))
        if not response.success:
            return upstream_error(response)
        return success_result(response.data)


@dataclass(frozen=True)
class RecordIdArgs:
    id: Any


def _not_found(record_id: int, note: Optional[str] = None) -> Dict[str, Any]:
    payload = {
        "found": False,
        "id": record_id,
        "uuid": None,
        "message": (
            f"No record with internal id {record_id} was found. Records created moments ago "
            "may not be indexed yet; retry shortly, or use get_record with the UUID if known."
        ),
    }
    if note:
        payload["note"] = note
    return payload


class GetRecordByIdTool(ToolHandler):
    """Tool for resolving an internal numeric id to its record and UUID."""

    args_type = RecordIdArgs

    def __init__(self):
        super().__init__(ToolDescriptor(
            name=ToolName.GET_RECORD_BY_ID,
            description="Get a metadata record by its internal numeric ID. Useful for retrieving "
                        "the UUID after a duplicate operation returns an ID.",
            input_schema={
                "properties": {
                    "id": {
                        "type": "integer",
                        "description": "The internal numeric ID of the metadata record",
                    },
                },
                "required": ["id"],
            },
        ))

    def run_tool(self, args: RecordIdArgs, context: ToolContext) -> CallToolResult:
        try:
            record_id = ArgumentValidator.validate_record_id(args.id)
        except ValidationError as e:
            return error_result(str(e))

        response = context.client.send(shape_id_lookup(record_id))
        if not response.success:
            return upstream_error(response, f"Lookup of id {record_id} failed")

        hit = first_hit(response.data)
        if hit:
            return success_result({
                "found": True,
                "id": record_id,
                "uuid": hit_uuid(hit),
                "record": hit.get("_source", {}),
            })

        if not context.config.has_credentials():
            return success_result(_not_found(record_id))

        # Not in the index (yet): ask the catalogue directly, as an authenticated user
        try:
            context.authenticate()
        except AuthError as e:
            logger.warning("Fallback fetch of id %s skipped: %s", record_id, e)
            return success_result(_not_found(record_id, note=f"Direct fetch skipped: {e}"))

        direct = context.client.send(shape_record_fetch(record_id), headers=context.session_headers())
        if direct.success:
            record = direct.data
            uuid = None
            if isinstance(record, dict):
                uuid = record.get("uuid") or record.get("metadataIdentifier")
            return success_result({
                "found": True,
                "id": record_id,
                "uuid": uuid,
                "source": "catalogue",
                "record": record,
            })

        if direct.http_code == 404:
            return success_result(_not_found(record_id))
        return upstream_error(direct, f"Direct fetch of id {record_id} failed")
