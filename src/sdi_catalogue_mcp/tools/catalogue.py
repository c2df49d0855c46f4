"""Catalogue-wide read tools: list_groups, get_sources, get_site_info, get_tags, get_regions."""

from dataclasses import dataclass
from typing import Optional

from mcp.types import CallToolResult

from ..client import OutboundRequest
from ..formatters import success_result, upstream_error
from ..shaping import shape_groups, shape_regions, shape_simple_get
from . import NoArgs, ToolContext, ToolDescriptor, ToolHandler, ToolName

NO_ARGUMENTS = {"properties": {}, "required": []}


class _PassthroughTool(ToolHandler):
    """Sends one shaped GET and returns the JSON as-is."""

    def shape(self, args) -> OutboundRequest:
        raise NotImplementedError

    def run_tool(self, args, context: ToolContext) -> CallToolResult:
        response = context.client.send(self.shape(args))
        if not response.success:
            return upstream_error(response)
        return success_result(response.data)


@dataclass(frozen=True)
class ListGroupsArgs:
    with_reserved_group: bool = False


class ListGroupsTool(_PassthroughTool):
    args_type = ListGroupsArgs

    def __init__(self):
        super().__init__(ToolDescriptor(
            name=ToolName.LIST_GROUPS,
            description="List all groups in the catalogue",
            input_schema={
                "properties": {
                    "withReservedGroup": {
                        "type": "boolean",
                        "description": "Include reserved system groups",
                        "default": False,
                    },
                },
                "required": [],
            },
        ))

    def shape(self, args: ListGroupsArgs) -> OutboundRequest:
        return shape_groups(args.with_reserved_group)


class GetSourcesTool(_PassthroughTool):
    args_type = NoArgs

    def __init__(self):
        super().__init__(ToolDescriptor(
            name=ToolName.GET_SOURCES,
            description="Get information about catalogue sources (sub-portals)",
            input_schema=NO_ARGUMENTS,
        ))

    def shape(self, args: NoArgs) -> OutboundRequest:
        return shape_simple_get("/sources")


class GetSiteInfoTool(_PassthroughTool):
    args_type = NoArgs

    def __init__(self):
        super().__init__(ToolDescriptor(
            name=ToolName.GET_SITE_INFO,
            description="Get general information about the catalogue site configuration",
            input_schema=NO_ARGUMENTS,
        ))

    def shape(self, args: NoArgs) -> OutboundRequest:
        return shape_simple_get("/site")


class GetTagsTool(_PassthroughTool):
    args_type = NoArgs

    def __init__(self):
        super().__init__(ToolDescriptor(
            name=ToolName.GET_TAGS,
            description="Get all available tags/categories in the catalogue",
            input_schema=NO_ARGUMENTS,
        ))

    def shape(self, args: NoArgs) -> OutboundRequest:
        return shape_simple_get("/tags")


@dataclass(frozen=True)
class RegionsArgs:
    category_id: Optional[str] = None


class GetRegionsTool(_PassthroughTool):
    args_type = RegionsArgs

    def __init__(self):
        super().__init__(ToolDescriptor(
            name=ToolName.GET_REGIONS,
            description="Get geographic regions/extents available in the catalogue",
            input_schema={
                "properties": {
                    "categoryId": {
                        "type": "string",
                        "description": "Filter regions by category ID",
                    },
                },
                "required": [],
            },
        ))

    def shape(self, args: RegionsArgs) -> OutboundRequest:
        return shape_regions(args.category_id)
