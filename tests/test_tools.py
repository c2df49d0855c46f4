"""Tests for tool descriptors and argument binding (sdi_catalogue_mcp.tools)."""

from __future__ import annotations

import pytest

from sdi_catalogue_mcp.security import ValidationError
from sdi_catalogue_mcp.server import TOOL_HANDLERS
from sdi_catalogue_mcp.tools import ToolName, python_name
from sdi_catalogue_mcp.tools.edit import DuplicateRecordArgs, UpdateRecordArgs
from sdi_catalogue_mcp.tools.search import SearchRecordsArgs


@pytest.mark.parametrize(
    "key,expected",
    [
        ("uuid", "uuid"),
        ("metadataUuid", "metadata_uuid"),
        ("updateDateStamp", "update_date_stamp"),
        ("from", "from_"),
    ],
)
def test_python_name(key, expected):
    assert python_name(key) == expected


class TestBinding:
    def test_search_defaults(self):
        args = TOOL_HANDLERS[ToolName.SEARCH_RECORDS].parse_arguments({})

        assert args == SearchRecordsArgs(query="", from_=0, size=10)

    def test_search_camel_case_arguments(self):
        args = TOOL_HANDLERS[ToolName.SEARCH_RECORDS].parse_arguments(
            {"query": "air", "from": 20, "sortBy": "createDate", "sortOrder": "desc"}
        )

        assert args.from_ == 20
        assert args.sort_by == "createDate"
        assert args.sort_order == "desc"

    def test_string_numbers_and_booleans_are_coerced(self):
        args = TOOL_HANDLERS[ToolName.DUPLICATE_RECORD].parse_arguments(
            {"metadataUuid": "u", "isChildOfSource": "true", "hasCategoryOfSource": "false"}
        )

        assert args == DuplicateRecordArgs(
            metadata_uuid="u", is_child_of_source=True, has_category_of_source=False
        )
        assert TOOL_HANDLERS[ToolName.SEARCH_RECORDS].parse_arguments({"size": "25"}).size == 25

    def test_update_defaults(self):
        args = TOOL_HANDLERS[ToolName.UPDATE_RECORD].parse_arguments(
            {"uuid": "u", "xpath": "gmd:title", "value": "v"}
        )

        assert args == UpdateRecordArgs(uuid="u", xpath="gmd:title", value="v")
        assert args.operation == "replace"
        assert args.update_date_stamp is True

    def test_unknown_arguments_are_dropped(self):
        args = TOOL_HANDLERS[ToolName.GET_TAGS].parse_arguments({"surprise": 1})

        assert args is not None

    def test_missing_required(self):
        with pytest.raises(ValidationError, match="metadataUuid"):
            TOOL_HANDLERS[ToolName.DUPLICATE_RECORD].parse_arguments({})

    def test_enum_is_enforced(self):
        with pytest.raises(ValidationError, match="operation"):
            TOOL_HANDLERS[ToolName.UPDATE_RECORD].parse_arguments(
                {"uuid": "u", "xpath": "x", "value": "v", "operation": "merge"}
            )

    def test_non_integer_rejected(self):
        with pytest.raises(ValidationError):
            TOOL_HANDLERS[ToolName.GET_RECORD_BY_ID].parse_arguments({"id": 4.5})

    def test_boolean_is_not_a_number(self):
        with pytest.raises(ValidationError):
            TOOL_HANDLERS[ToolName.SEARCH_RECORDS].parse_arguments({"size": True})


class TestDescriptors:
    def test_tool_schema_is_a_copy(self):
        tool = TOOL_HANDLERS[ToolName.SEARCH_RECORDS].get_tool_description()
        tool.inputSchema["properties"].pop("query")

        again = TOOL_HANDLERS[ToolName.SEARCH_RECORDS].get_tool_description()
        assert "query" in again.inputSchema["properties"]

    def test_required_arguments_are_declared(self):
        for handler in TOOL_HANDLERS.values():
            schema = handler.get_tool_description().inputSchema
            assert set(schema["required"]) <= set(schema["properties"])

    def test_write_tools_mention_authentication(self):
        for handler in TOOL_HANDLERS.values():
            if handler.requires_auth:
                assert "Requires authentication" in handler.descriptor.description
