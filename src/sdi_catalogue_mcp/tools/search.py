"""Search tools: search_records, search_by_extent."""

import logging
from dataclasses import dataclass
from typing import Optional

from mcp.types import CallToolResult

from ..formatters import error_result, success_result, upstream_error
from ..security import ArgumentValidator, ValidationError
from ..shaping import (
    returned_hits,
    shape_search,
    shape_search_by_extent,
    total_hits,
    truncation_notice,
)
from . import ToolContext, ToolDescriptor, ToolHandler, ToolName

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchRecordsArgs:
    query: str = ""
    from_: int = 0
    size: int = 10
    bucket: Optional[str] = None
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None


class SearchRecordsTool(ToolHandler):
    """Tool for full-text search over the catalogue index."""

    args_type = SearchRecordsArgs

    def __init__(self):
        super().__init__(ToolDescriptor(
            name=ToolName.SEARCH_RECORDS,
            description="Search for metadata records in the EEA catalogue. Supports full Elasticsearch query syntax.",
            input_schema={
                "properties": {
                    "query": {
                        "type": "string",
                        "description": "Search query text (searches across all fields)",
                    },
                    "from": {
                        "type": "integer",
                        "description": "Starting position for results (default: 0)",
                        "default": 0,
                    },
                    "size": {
                        "type": "integer",
                        "description": "Number of results to return (default: 10, max: 100)",
                        "default": 10,
                    },
                    "bucket": {
                        "type": "string",
                        "description": "Facet field to aggregate results by",
                    },
                    "sortBy": {
                        "type": "string",
                        "description": "Field to sort by (e.g., 'resourceTitleObject.default.sort')",
                    },
                    "sortOrder": {
                        "type": "string",
                        "description": "Sort order: 'asc' (default) or 'desc'",
                    },
                },
                "required": [],
            },
        ))

    def run_tool(self, args: SearchRecordsArgs, context: ToolContext) -> CallToolResult:
        request = shape_search(
            query=args.query,
            from_=args.from_,
            size=args.size,
            bucket=args.bucket,
            sort_by=args.sort_by,
            sort_order=args.sort_order,
            max_results=context.config.max_search_results,
        )
        response = context.client.send(request, headers=context.session_headers())
        if not response.success:
            return upstream_error(response, "Search failed")

        total = total_hits(response.data)
        returned = len(returned_hits(response.data))
        logger.info("Search found %d hits, returning %d", total, returned)

        notice = truncation_notice(total, request.json["from"], returned, request.json["size"])
        if notice and isinstance(response.data, dict):
            return success_result({"notice": notice, **response.data})
        return success_result(response.data)


@dataclass(frozen=True)
class SearchByExtentArgs:
    minx: float
    miny: float
    maxx: float
    maxy: float
    relation: str = "intersects"


class SearchByExtentTool(ToolHandler):
    """Tool for bounding-box search."""

    args_type = SearchByExtentArgs

    def __init__(self):
        super().__init__(ToolDescriptor(
            name=ToolName.SEARCH_BY_EXTENT,
            description="Search for records by geographic extent (bounding box)",
            input_schema={
                "properties": {
                    "minx": {"type": "number", "description": "Minimum longitude (west)"},
                    "miny": {"type": "number", "description": "Minimum latitude (south)"},
                    "maxx": {"type": "number", "description": "Maximum longitude (east)"},
                    "maxy": {"type": "number", "description": "Maximum latitude (north)"},
                    "relation": {
                        "type": "string",
                        "enum": ["intersects", "within", "contains"],
                        "description": "Spatial relationship (default: intersects)",
                        "default": "intersects",
                    },
                },
                "required": ["minx", "miny", "maxx", "maxy"],
            },
        ))

    def run_tool(self, args: SearchByExtentArgs, context: ToolContext) -> CallToolResult:
        try:
            ArgumentValidator.validate_bbox(args.minx, args.miny, args.maxx, args.maxy)
        except ValidationError as e:
            return error_result(f"Invalid bounding box: {e}")

        request = shape_search_by_extent(args.minx, args.miny, args.maxx, args.maxy, args.relation)
        response = context.client.send(request)
        if not response.success:
            return upstream_error(response, "Extent search failed")
        return success_result(response.data)
