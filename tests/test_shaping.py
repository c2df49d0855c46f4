"""Tests for request shaping (sdi_catalogue_mcp.shaping)."""

from __future__ import annotations

import pytest

from conftest import ISO19115_3_XML, ISO19139_XML
from sdi_catalogue_mcp.shaping import (
    DEFAULT_SCHEMA,
    EditOperation,
    OperationKind,
    SchemaVariant,
    clamp_size,
    detect_schema,
    normalize_sort_order,
    parse_duplicate_response,
    shape_duplicate,
    shape_field_update,
    shape_id_lookup,
    shape_id_term_lookup,
    shape_search,
    shape_search_by_extent,
    shape_tags,
    shape_title_update,
    total_hits,
    truncation_notice,
)


class TestSearchShaping:
    """Search body construction and size clamping."""

    @pytest.mark.parametrize("requested", [101, 250, 500, 10_000])
    def test_size_above_max_is_clamped(self, requested):
        assert clamp_size(requested, 100) == 100

    def test_size_below_max_is_kept(self):
        assert clamp_size(25, 100) == 25

    def test_minimal_body(self):
        request = shape_search(max_results=100)

        assert request.method == "POST"
        assert request.path == "/search/records/_search"
        assert request.json == {"from": 0, "size": 10}

    def test_full_body(self):
        request = shape_search(
            query="water quality",
            from_=20,
            size=500,
            bucket="cl_topic.key",
            sort_by="resourceTitleObject.default.sort",
            sort_order="DESC",
            max_results=100,
        )

        assert request.json == {
            "from": 20,
            "size": 100,
            "query": {"query_string": {"query": "water quality"}},
            "aggregations": {"cl_topic.key": {"terms": {"field": "cl_topic.key"}}},
            "sort": [{"resourceTitleObject.default.sort": {"order": "desc"}}],
        }

    def test_sort_without_order_is_ascending(self):
        request = shape_search(sort_by="createDate", max_results=100)
        assert request.json["sort"] == [{"createDate": {"order": "asc"}}]


class TestSortOrder:
    @pytest.mark.parametrize("value", ["desc", "DESC", "Descending", " desc "])
    def test_desc_variants(self, value):
        assert normalize_sort_order(value) == "desc"

    @pytest.mark.parametrize("value", [None, "", "asc", "ASC", "down", "des", "reverse", 1])
    def test_everything_else_is_asc(self, value):
        assert normalize_sort_order(value) == "asc"


class TestTruncationNotice:
    def test_first_page_of_larger_result(self):
        notice = truncation_notice(237, 0, 100, 100)

        assert notice is not None
        assert "limited to 100 of 237" in notice
        assert "from=100" in notice

    def test_later_page_points_forward(self):
        notice = truncation_notice(237, 100, 100, 100)

        assert "from=200" in notice

    @pytest.mark.parametrize(
        "total,from_,returned,size",
        [
            (100, 0, 100, 100),
            (5, 0, 5, 10),
            (0, 0, 0, 10),
            (50, 40, 10, 100),
            (237, 200, 37, 100),
        ],
    )
    def test_no_notice_otherwise(self, total, from_, returned, size):
        assert truncation_notice(total, from_, returned, size) is None

    def test_total_hits_object_and_legacy_forms(self):
        assert total_hits({"hits": {"total": {"value": 237}}}) == 237
        assert total_hits({"hits": {"total": 12}}) == 12
        assert total_hits({}) == 0
        assert total_hits("not json") == 0


class TestExtentShaping:
    def test_envelope_corners(self):
        request = shape_search_by_extent(5.0, 45.0, 10.0, 50.0, "within")
        geom = request.json["query"]["bool"]["must"][0]["geo_shape"]["geom"]

        assert geom["shape"] == {"type": "envelope", "coordinates": [[5.0, 50.0], [10.0, 45.0]]}
        assert geom["relation"] == "within"


class TestEditEnvelope:
    """Operation tags wrapped around batch-edit values."""

    def test_replace_wraps_value_unchanged(self):
        edit = EditOperation("gmd:title", "New <b>Title</b> & more", OperationKind.REPLACE)
        assert edit.envelope() == "<gn_replace>New <b>Title</b> & more</gn_replace>"

    def test_add_wraps_value_unchanged(self):
        edit = EditOperation("gmd:keyword", "<gmd:keyword/>", OperationKind.ADD)
        assert edit.envelope() == "<gn_add><gmd:keyword/></gn_add>"

    @pytest.mark.parametrize("value", ["", "ignored", "<gmd:title>x</gmd:title>"])
    def test_delete_ignores_value(self, value):
        edit = EditOperation("gmd:title", value, OperationKind.DELETE)
        assert edit.envelope() == "<gn_delete></gn_delete>"

    def test_field_update_request(self):
        edit = EditOperation("gmd:abstract", "Text", OperationKind.REPLACE)
        request = shape_field_update("uuid-1", edit, update_date_stamp=False)

        assert request.method == "PUT"
        assert request.path == "/records/batchediting"
        assert request.params == {"uuids": "uuid-1", "updateDateStamp": "false"}
        assert request.json == [{"xpath": "gmd:abstract", "value": "<gn_replace>Text</gn_replace>"}]


class TestSchemaDetection:
    def test_older_dialect(self):
        assert detect_schema(ISO19139_XML) is SchemaVariant.ISO19139

    def test_newer_dialect(self):
        assert detect_schema(ISO19115_3_XML) is SchemaVariant.ISO19115_3

    @pytest.mark.parametrize("content", [None, "", "<html>login</html>", "{}"])
    def test_fallback_is_newer_dialect(self, content):
        assert detect_schema(content) is DEFAULT_SCHEMA is SchemaVariant.ISO19115_3

    def test_detection_is_idempotent(self):
        results = {detect_schema(ISO19139_XML) for _ in range(5)}
        assert results == {SchemaVariant.ISO19139}

    def test_title_update_uses_dialect_xpath(self):
        older = shape_title_update("u", "T", SchemaVariant.ISO19139)
        newer = shape_title_update("u", "T", SchemaVariant.ISO19115_3)

        assert older.json[0]["xpath"].startswith("gmd:identificationInfo")
        assert newer.json[0]["xpath"].startswith("mdb:identificationInfo")
        assert older.json[0]["value"] == "<gn_replace>T</gn_replace>"
        assert older.params["updateDateStamp"] == "true"


class TestDuplicateShaping:
    def test_defaults_are_omitted(self):
        request = shape_duplicate("src-uuid")

        assert request.method == "PUT"
        assert request.path == "/records/duplicate"
        assert request.params == {"metadataUuid": "src-uuid"}
        assert request.json is None

    def test_non_default_flags_are_sent(self):
        request = shape_duplicate(
            "src-uuid",
            group="2",
            is_child_of_source=True,
            target_uuid="new-uuid",
            has_category_of_source=False,
        )

        assert request.params == {
            "metadataUuid": "src-uuid",
            "group": "2",
            "isChildOfSource": "true",
            "targetUuid": "new-uuid",
            "hasCategoryOfSource": "false",
        }

    def test_explicit_defaults_are_omitted(self):
        request = shape_duplicate("src", is_child_of_source=False, has_category_of_source=True)
        assert request.params == {"metadataUuid": "src"}

    @pytest.mark.parametrize(
        "data,expected",
        [
            ({"id": 42}, {"id": 42, "uuid": None}),
            ({"id": 42, "uuid": "abc"}, {"id": 42, "uuid": "abc"}),
            (42, {"id": 42, "uuid": None}),
            ("42", {"id": 42, "uuid": None}),
            ("new-uuid", {"id": None, "uuid": "new-uuid"}),
            (None, {"id": None, "uuid": None}),
        ],
    )
    def test_parse_duplicate_response(self, data, expected):
        assert parse_duplicate_response(data) == expected


class TestLookupShaping:
    def test_term_lookup(self):
        request = shape_id_term_lookup(42)
        assert request.json["query"] == {"term": {"id": "42"}}

    def test_multi_field_lookup(self):
        should = shape_id_lookup(42).json["query"]["bool"]["should"]
        assert {"term": {"id": "42"}} in should
        assert {"term": {"id.keyword": "42"}} in should
        assert {"ids": {"values": ["42"]}} in should


class TestTagShaping:
    def test_add_and_remove(self):
        add = shape_tags("u", [1, 2])
        remove = shape_tags("u", [3], remove=True)

        assert (add.method, add.path, add.json) == ("PUT", "/records/u/tags", [1, 2])
        assert (remove.method, remove.json) == ("DELETE", [3])
