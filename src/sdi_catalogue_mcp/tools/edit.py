"""Write tools: duplicate_record, update_record, update_record_title,
add_record_tags, delete_record_tags.

All of them run with a session acquired for the call by the dispatcher.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from mcp.types import CallToolResult

from ..formatters import error_result, success_result, upstream_error
from ..security import ArgumentValidator, ValidationError
from ..shaping import (
    EditOperation,
    OperationKind,
    DEFAULT_SCHEMA,
    detect_schema,
    first_hit,
    hit_uuid,
    parse_duplicate_response,
    shape_duplicate,
    shape_field_update,
    shape_id_term_lookup,
    shape_schema_probe,
    shape_tags,
    shape_title_update,
)
from . import ToolContext, ToolDescriptor, ToolHandler, ToolName

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DuplicateRecordArgs:
    metadata_uuid: str
    group: Optional[str] = None
    is_child_of_source: bool = False
    target_uuid: Optional[str] = None
    has_category_of_source: bool = True


class DuplicateRecordTool(ToolHandler):
    """Tool for copying a record, then resolving the copy's UUID."""

    args_type = DuplicateRecordArgs

    def __init__(self):
        super().__init__(ToolDescriptor(
            name=ToolName.DUPLICATE_RECORD,
            description="""Duplicate a metadata record. Creates a copy of an existing record with a new UUID.

Returns the new record's internal id and, when it can be resolved, its UUID. Newly created
records may take a moment to appear in the search index; if the UUID is missing, call
get_record_by_id with the returned id a little later. Requires authentication.""",
            input_schema={
                "properties": {
                    "metadataUuid": {
                        "type": "string",
                        "description": "The UUID of the metadata record to duplicate",
                    },
                    "group": {
                        "type": "string",
                        "description": "Target group for the duplicated record (optional)",
                    },
                    "isChildOfSource": {
                        "type": "boolean",
                        "description": "Set the source record as parent of the new record (default: false)",
                        "default": False,
                    },
                    "targetUuid": {
                        "type": "string",
                        "description": "Specific UUID to use for the duplicated record "
                                       "(optional, will be auto-generated if not provided)",
                    },
                    "hasCategoryOfSource": {
                        "type": "boolean",
                        "description": "Copy categories from source record (default: true)",
                        "default": True,
                    },
                },
                "required": ["metadataUuid"],
            },
            requires_auth=True,
        ))

    def run_tool(self, args: DuplicateRecordArgs, context: ToolContext) -> CallToolResult:
        try:
            source_uuid = ArgumentValidator.validate_identifier(args.metadata_uuid, "metadataUuid")
            target_uuid = (
                ArgumentValidator.validate_identifier(args.target_uuid, "targetUuid")
                if args.target_uuid else None
            )
        except ValidationError as e:
            return error_result(str(e))

        request = shape_duplicate(
            metadata_uuid=source_uuid,
            group=args.group,
            is_child_of_source=args.is_child_of_source,
            target_uuid=target_uuid,
            has_category_of_source=args.has_category_of_source,
        )
        response = context.client.send(request, headers=context.session_headers())
        if not response.success:
            context.audit_log("DUPLICATE_FAILED", source_uuid, response.error or "")
            return upstream_error(response, f"Could not duplicate record {source_uuid}")

        created = parse_duplicate_response(response.data)
        new_id, new_uuid = created["id"], created["uuid"]
        result: Dict[str, Any] = {
            "sourceUuid": source_uuid,
            "newUuid": new_uuid,
            "newId": new_id,
        }

        if new_uuid:
            result["message"] = f"Record {source_uuid} duplicated as {new_uuid}."
        elif new_id is not None:
            result.update(self._resolve_uuid(new_id, context))
        else:
            result["message"] = "Record duplicated, but the catalogue response carried no identifier."
            result["response"] = response.data

        context.audit_log("DUPLICATE", source_uuid, f"newId={result['newId']} newUuid={result['newUuid']}")
        return success_result(result)

    def _resolve_uuid(self, new_id: Any, context: ToolContext) -> Dict[str, Any]:
        """Look up the UUID of a freshly created record by its internal id."""
        lookup = context.client.send(shape_id_term_lookup(new_id), headers=context.session_headers())

        if not lookup.success:
            logger.warning("UUID lookup for new record %s failed: %s", new_id, lookup.error)
            return {
                "newUuid": None,
                "message": f"Record duplicated with id {new_id}, but the UUID lookup failed "
                           f"({lookup.error}). Use get_record_by_id with id {new_id} to resolve it.",
            }

        hit = first_hit(lookup.data)
        if not hit:
            logger.info("New record %s not indexed yet", new_id)
            return {
                "newUuid": None,
                "message": f"Record duplicated with id {new_id}. It is not in the search index yet, "
                           f"so its UUID is not known; use get_record_by_id with id {new_id} shortly.",
            }

        uuid = hit_uuid(hit)
        return {"newUuid": uuid, "message": f"Record duplicated as {uuid} (id {new_id})."}


@dataclass(frozen=True)
class UpdateRecordArgs:
    uuid: str
    xpath: str
    value: str
    operation: str = "replace"
    update_date_stamp: bool = True


class UpdateRecordTool(ToolHandler):
    """Tool for editing one field of a record by XPath."""

    args_type = UpdateRecordArgs

    def __init__(self):
        super().__init__(ToolDescriptor(
            name=ToolName.UPDATE_RECORD,
            description="Update a metadata record field using XPath. Supports replacing, adding, or "
                        "deleting XML elements. Requires authentication.",
            input_schema={
                "properties": {
                    "uuid": {
                        "type": "string",
                        "description": "The UUID of the metadata record to update",
                    },
                    "xpath": {
                        "type": "string",
                        "description": "XPath to the element to update. Common paths: "
                                       "'gmd:identificationInfo/*/gmd:citation/gmd:CI_Citation/gmd:title/"
                                       "gco:CharacterString' for title, "
                                       "'gmd:identificationInfo/*/gmd:abstract/gco:CharacterString' for abstract",
                    },
                    "value": {
                        "type": "string",
                        "description": "The new value. For simple text replacement, just provide the text "
                                       "(e.g., 'New Title'). For XML replacement, provide the full XML element.",
                    },
                    "operation": {
                        "type": "string",
                        "enum": [kind.value for kind in OperationKind],
                        "description": "Operation type: 'replace' (default), 'add' new element, or 'delete' element",
                        "default": "replace",
                    },
                    "updateDateStamp": {
                        "type": "boolean",
                        "description": "Update the record's date stamp (default: true)",
                        "default": True,
                    },
                },
                "required": ["uuid", "xpath", "value"],
            },
            requires_auth=True,
        ))

    def run_tool(self, args: UpdateRecordArgs, context: ToolContext) -> CallToolResult:
        try:
            uuid = ArgumentValidator.validate_identifier(args.uuid)
            xpath = ArgumentValidator.validate_xpath(args.xpath)
        except ValidationError as e:
            return error_result(str(e))

        edit = EditOperation(xpath=xpath, value=args.value, operation=OperationKind(args.operation))
        response = context.client.send(
            shape_field_update(uuid, edit, args.update_date_stamp),
            headers=context.session_headers(),
        )
        if not response.success:
            context.audit_log("UPDATE_FAILED", uuid, f"{edit.operation.value} {xpath}: {response.error}")
            return upstream_error(response, f"Could not update record {uuid}")

        context.audit_log("UPDATE", uuid, f"{edit.operation.value} {xpath}")
        return success_result({
            "uuid": uuid,
            "xpath": xpath,
            "operation": edit.operation.value,
            "updateDateStamp": args.update_date_stamp,
            "response": response.data,
        })


@dataclass(frozen=True)
class UpdateTitleArgs:
    uuid: str
    title: str


class UpdateRecordTitleTool(ToolHandler):
    """Tool for retitling a record in whichever schema it is written in."""

    args_type = UpdateTitleArgs

    def __init__(self):
        super().__init__(ToolDescriptor(
            name=ToolName.UPDATE_RECORD_TITLE,
            description="Update the title of a metadata record. Automatically detects the schema "
                        "(ISO 19139 or ISO 19115-3) and uses the correct XPath. Requires authentication.",
            input_schema={
                "properties": {
                    "uuid": {
                        "type": "string",
                        "description": "The UUID of the metadata record to update",
                    },
                    "title": {
                        "type": "string",
                        "description": "The new title for the record",
                    },
                },
                "required": ["uuid", "title"],
            },
            requires_auth=True,
        ))

    def run_tool(self, args: UpdateTitleArgs, context: ToolContext) -> CallToolResult:
        try:
            uuid = ArgumentValidator.validate_identifier(args.uuid)
        except ValidationError as e:
            return error_result(str(e))

        probe = context.client.send(shape_schema_probe(uuid), headers=context.session_headers())
        if probe.success:
            schema = detect_schema(probe.data)
        else:
            logger.warning("Schema probe for %s failed (%s); assuming %s", uuid, probe.error, DEFAULT_SCHEMA.label)
            schema = DEFAULT_SCHEMA
        logger.info("Record %s uses schema %s", uuid, schema.label)

        response = context.client.send(
            shape_title_update(uuid, args.title, schema),
            headers=context.session_headers(),
        )
        if not response.success:
            context.audit_log("UPDATE_TITLE_FAILED", uuid, response.error or "")
            return upstream_error(response, f"Could not update the title of {uuid}")

        context.audit_log("UPDATE_TITLE", uuid, f"schema={schema.label}")
        return success_result({
            "uuid": uuid,
            "title": args.title,
            "schema": schema.label,
            "xpath": schema.title_xpath,
            "response": response.data,
        })


@dataclass(frozen=True)
class RecordTagsArgs:
    uuid: str
    tags: List[Any]


TAGS_SCHEMA = {
    "properties": {
        "uuid": {
            "type": "string",
            "description": "The UUID of the metadata record",
        },
        "tags": {
            "type": "array",
            "items": {"type": "integer"},
            "description": "Array of tag IDs",
        },
    },
    "required": ["uuid", "tags"],
}


class _RecordTagsTool(ToolHandler):
    args_type = RecordTagsArgs
    remove = False

    def run_tool(self, args: RecordTagsArgs, context: ToolContext) -> CallToolResult:
        try:
            uuid = ArgumentValidator.validate_identifier(args.uuid)
            tag_ids = ArgumentValidator.validate_tag_ids(args.tags)
        except ValidationError as e:
            return error_result(str(e))

        action = "TAGS_REMOVE" if self.remove else "TAGS_ADD"
        response = context.client.send(
            shape_tags(uuid, tag_ids, remove=self.remove),
            headers=context.session_headers(),
        )
        if not response.success:
            context.audit_log(f"{action}_FAILED", uuid, f"tags={tag_ids}: {response.error}")
            return upstream_error(response, f"Could not update tags of {uuid}")

        context.audit_log(action, uuid, f"tags={tag_ids}")
        return success_result({
            "uuid": uuid,
            "removed" if self.remove else "added": tag_ids,
            "response": response.data,
        })


class AddRecordTagsTool(_RecordTagsTool):
    def __init__(self):
        super().__init__(ToolDescriptor(
            name=ToolName.ADD_RECORD_TAGS,
            description="Add tags (categories) to a metadata record. Use get_tags first to find "
                        "available tag IDs. Requires authentication.",
            input_schema=TAGS_SCHEMA,
            requires_auth=True,
        ))


class DeleteRecordTagsTool(_RecordTagsTool):
    remove = True

    def __init__(self):
        super().__init__(ToolDescriptor(
            name=ToolName.DELETE_RECORD_TAGS,
            description="Remove tags (categories) from a metadata record. Requires authentication.",
            input_schema=TAGS_SCHEMA,
            requires_auth=True,
        ))
