"""Attachment tools: get_attachments, delete_attachment, upload_file_to_record."""

from dataclasses import dataclass
from typing import Optional

from mcp.types import CallToolResult

from ..formatters import error_result, success_result, upstream_error
from ..security import ArgumentValidator, ValidationError
from ..shaping import shape_attachment_delete, shape_attachment_upload, shape_attachments_list
from . import ToolContext, ToolDescriptor, ToolHandler, ToolName


@dataclass(frozen=True)
class GetAttachmentsArgs:
    metadata_uuid: str
    sort: str = "type"
    approved: bool = False
    filter: Optional[str] = None


class GetAttachmentsTool(ToolHandler):
    """Tool for listing files attached to a record."""

    args_type = GetAttachmentsArgs

    def __init__(self):
        super().__init__(ToolDescriptor(
            name=ToolName.GET_ATTACHMENTS,
            description="List the files (attachments) of a metadata record",
            input_schema={
                "properties": {
                    "metadataUuid": {
                        "type": "string",
                        "description": "The UUID of the metadata record",
                    },
                    "sort": {
                        "type": "string",
                        "enum": ["type", "name"],
                        "description": "Sort by resource type or name (default: type)",
                        "default": "type",
                    },
                    "approved": {
                        "type": "boolean",
                        "description": "Use the approved version of the record (default: false)",
                        "default": False,
                    },
                    "filter": {
                        "type": "string",
                        "description": "Glob filter on file names (e.g. '*.pdf')",
                    },
                },
                "required": ["metadataUuid"],
            },
        ))

    def run_tool(self, args: GetAttachmentsArgs, context: ToolContext) -> CallToolResult:
        try:
            uuid = ArgumentValidator.validate_identifier(args.metadata_uuid, "metadataUuid")
        except ValidationError as e:
            return error_result(str(e))

        response = context.client.send(shape_attachments_list(uuid, args.sort, args.approved, args.filter))
        if not response.success:
            return upstream_error(response, f"Could not list attachments of {uuid}")
        return success_result(response.data)


@dataclass(frozen=True)
class DeleteAttachmentArgs:
    metadata_uuid: str
    resource_id: str
    approved: bool = False


class DeleteAttachmentTool(ToolHandler):
    """Tool for removing one attachment from a record."""

    args_type = DeleteAttachmentArgs

    def __init__(self):
        super().__init__(ToolDescriptor(
            name=ToolName.DELETE_ATTACHMENT,
            description="Delete a file attached to a metadata record. Requires authentication.",
            input_schema={
                "properties": {
                    "metadataUuid": {
                        "type": "string",
                        "description": "The UUID of the metadata record",
                    },
                    "resourceId": {
                        "type": "string",
                        "description": "The attachment's resource id (file name), see get_attachments",
                    },
                    "approved": {
                        "type": "boolean",
                        "description": "Use the approved version of the record (default: false)",
                        "default": False,
                    },
                },
                "required": ["metadataUuid", "resourceId"],
            },
            requires_auth=True,
        ))

    def run_tool(self, args: DeleteAttachmentArgs, context: ToolContext) -> CallToolResult:
        try:
            uuid = ArgumentValidator.validate_identifier(args.metadata_uuid, "metadataUuid")
            resource_id = ArgumentValidator.validate_identifier(args.resource_id, "resourceId")
        except ValidationError as e:
            return error_result(str(e))

        response = context.client.send(
            shape_attachment_delete(uuid, resource_id, args.approved),
            headers=context.session_headers(),
        )
        if not response.success:
            context.audit_log("ATTACHMENT_DELETE_FAILED", uuid, f"{resource_id}: {response.error}")
            return upstream_error(response, f"Could not delete attachment {resource_id}")

        context.audit_log("ATTACHMENT_DELETE", uuid, resource_id)
        return success_result({"metadataUuid": uuid, "deleted": resource_id})


@dataclass(frozen=True)
class UploadFileArgs:
    metadata_uuid: str
    file_path: str
    visibility: str = "PUBLIC"
    approved: bool = False


class UploadFileToRecordTool(ToolHandler):
    """Tool for attaching a local file to a record."""

    args_type = UploadFileArgs

    def __init__(self):
        super().__init__(ToolDescriptor(
            name=ToolName.UPLOAD_FILE_TO_RECORD,
            description="Upload a local file and attach it to a metadata record. Requires authentication.",
            input_schema={
                "properties": {
                    "metadataUuid": {
                        "type": "string",
                        "description": "The UUID of the metadata record",
                    },
                    "filePath": {
                        "type": "string",
                        "description": "Path of the file on the MCP server host (max 100MB)",
                    },
                    "visibility": {
                        "type": "string",
                        "enum": ["PUBLIC", "PRIVATE"],
                        "description": "Attachment visibility (default: PUBLIC)",
                        "default": "PUBLIC",
                    },
                    "approved": {
                        "type": "boolean",
                        "description": "Attach to the approved version of the record (default: false)",
                        "default": False,
                    },
                },
                "required": ["metadataUuid", "filePath"],
            },
            requires_auth=True,
        ))

    def run_tool(self, args: UploadFileArgs, context: ToolContext) -> CallToolResult:
        try:
            uuid = ArgumentValidator.validate_identifier(args.metadata_uuid, "metadataUuid")
            path = ArgumentValidator.validate_file_path(args.file_path)
        except ValidationError as e:
            return error_result(str(e))

        with open(path, "rb") as stream:
            response = context.client.send(
                shape_attachment_upload(uuid, path.name, stream, args.visibility, args.approved),
                headers=context.session_headers(),
            )

        if not response.success:
            context.audit_log("ATTACHMENT_UPLOAD_FAILED", uuid, f"{path.name}: {response.error}")
            return upstream_error(response, f"Could not upload {path.name}")

        context.audit_log("ATTACHMENT_UPLOAD", uuid, f"{path.name} visibility={args.visibility}")
        return success_result({
            "metadataUuid": uuid,
            "file": path.name,
            "visibility": args.visibility,
            "response": response.data,
        })
