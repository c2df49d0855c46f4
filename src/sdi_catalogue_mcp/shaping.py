"""Builds the exact outbound catalogue request for each tool.

Everything here is pure: functions take validated tool arguments and return
an ``OutboundRequest`` (or a plain value) without touching the network.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from .client import OutboundRequest

SEARCH_PATH = "/search/records/_search"
BATCH_EDIT_PATH = "/records/batchediting"
DUPLICATE_PATH = "/records/duplicate"


def bool_param(value: bool) -> str:
    """Query-string form of a boolean, as the catalogue expects it."""
    return "true" if value else "false"


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

def clamp_size(requested: int, configured_max: int) -> int:
    return max(0, min(int(requested), int(configured_max)))


def normalize_sort_order(order: Optional[str]) -> str:
    """Anything that does not start with "desc" (any case) sorts ascending."""
    if isinstance(order, str) and order.strip().lower().startswith("desc"):
        return "desc"
    return "asc"


def shape_search(
    query: str = "",
    from_: int = 0,
    size: int = 10,
    bucket: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    max_results: int = 100,
) -> OutboundRequest:
    body: Dict[str, Any] = {
        "from": max(0, int(from_)),
        "size": clamp_size(size, max_results),
    }
    if query:
        body["query"] = {"query_string": {"query": query}}
    if bucket:
        body["aggregations"] = {bucket: {"terms": {"field": bucket}}}
    if sort_by:
        body["sort"] = [{sort_by: {"order": normalize_sort_order(sort_order)}}]

    return OutboundRequest(method="POST", path=SEARCH_PATH, json=body)


def total_hits(search_response: Any) -> int:
    """Total hit count from an Elasticsearch response (object or legacy int form)."""
    if not isinstance(search_response, dict):
        return 0
    total = (search_response.get("hits") or {}).get("total")
    if isinstance(total, dict):
        total = total.get("value")
    try:
        return int(total or 0)
    except (TypeError, ValueError):
        return 0


def returned_hits(search_response: Any) -> List[Dict[str, Any]]:
    if not isinstance(search_response, dict):
        return []
    return list((search_response.get("hits") or {}).get("hits") or [])


def truncation_notice(total: int, from_: int, returned: int, effective_size: int) -> Optional[str]:
    """
    Paging guidance when the result set is larger than one page.

    Args:
        total: True hit count reported by the index
        from_: Offset the page started at
        returned: Hits actually on this page
        effective_size: Page size after clamping

    Returns:
        Notice text, or None if the total fits in one page or nothing lies past this page
    """
    next_from = max(0, from_) + returned
    if total <= effective_size or total <= next_from:
        return None
    return (
        f"Results limited to {returned} of {total} total hits. "
        f"Use 'from' (e.g. from={next_from}) to page through the remaining results."
    )


def shape_search_by_extent(
    minx: float, miny: float, maxx: float, maxy: float, relation: str = "intersects"
) -> OutboundRequest:
    body = {
        "query": {
            "bool": {
                "must": [
                    {
                        "geo_shape": {
                            "geom": {
                                "shape": {
                                    "type": "envelope",
                                    "coordinates": [[minx, maxy], [maxx, miny]],
                                },
                                "relation": relation,
                            }
                        }
                    }
                ]
            }
        }
    }
    return OutboundRequest(method="POST", path=SEARCH_PATH, json=body)


# ---------------------------------------------------------------------------
# Field updates
# ---------------------------------------------------------------------------

class OperationKind(str, Enum):
    REPLACE = "replace"
    ADD = "add"
    DELETE = "delete"


@dataclass(frozen=True)
class EditOperation:
    """One batch-edit instruction: where, what, and how."""

    xpath: str
    value: str
    operation: OperationKind = OperationKind.REPLACE

    def envelope(self) -> str:
        """
        Wrap the value in the catalogue's operation tag.

        Delete ignores the value and always yields an empty marker.
        """
        if self.operation is OperationKind.DELETE:
            return "<gn_delete></gn_delete>"
        tag = f"gn_{self.operation.value}"
        return f"<{tag}>{self.value}</{tag}>"

    def to_payload(self) -> Dict[str, str]:
        return {"xpath": self.xpath, "value": self.envelope()}


def shape_field_update(uuid: str, edit: EditOperation, update_date_stamp: bool = True) -> OutboundRequest:
    return OutboundRequest(
        method="PUT",
        path=BATCH_EDIT_PATH,
        params={"uuids": uuid, "updateDateStamp": bool_param(update_date_stamp)},
        json=[edit.to_payload()],
    )


class SchemaVariant(Enum):
    """The two metadata dialects a record can be encoded in."""

    ISO19139 = ("iso19139", ("<gmd:MD_Metadata", "http://www.isotc211.org/2005/gmd"),
                "gmd:identificationInfo/*/gmd:citation/gmd:CI_Citation/gmd:title/gco:CharacterString")
    ISO19115_3 = ("iso19115-3", ("<mdb:MD_Metadata", "http://standards.iso.org/iso/19115/-3/mdb/"),
                  "mdb:identificationInfo/*/mri:citation/cit:CI_Citation/cit:title/gco:CharacterString")

    def __init__(self, label: str, markers: tuple, title_xpath: str):
        self.label = label
        self.markers = markers
        self.title_xpath = title_xpath

    def matches(self, content: str) -> bool:
        return any(marker in content for marker in self.markers)


DEFAULT_SCHEMA = SchemaVariant.ISO19115_3


def detect_schema(content: Optional[str]) -> SchemaVariant:
    """
    Pick the dialect whose root marker appears in an exported record.

    The newer dialect is checked first and is also the fallback when neither
    marker is found.
    """
    if not content:
        return DEFAULT_SCHEMA
    for variant in (SchemaVariant.ISO19115_3, SchemaVariant.ISO19139):
        if variant.matches(content):
            return variant
    return DEFAULT_SCHEMA


def shape_schema_probe(uuid: str) -> OutboundRequest:
    return OutboundRequest(
        method="GET",
        path=f"/records/{uuid}/formatters/xml",
        headers={"Accept": "application/xml"},
        raw=True,
    )


def shape_title_update(uuid: str, title: str, schema: SchemaVariant) -> OutboundRequest:
    edit = EditOperation(xpath=schema.title_xpath, value=title, operation=OperationKind.REPLACE)
    return shape_field_update(uuid, edit, update_date_stamp=True)


# ---------------------------------------------------------------------------
# Duplicate and lookup by internal id
# ---------------------------------------------------------------------------

def shape_duplicate(
    metadata_uuid: str,
    group: Optional[str] = None,
    is_child_of_source: bool = False,
    target_uuid: Optional[str] = None,
    has_category_of_source: bool = True,
) -> OutboundRequest:
    """Flags equal to the catalogue's defaults are left out of the query."""
    params: Dict[str, str] = {"metadataUuid": metadata_uuid}
    if group:
        params["group"] = str(group)
    if is_child_of_source:
        params["isChildOfSource"] = "true"
    if target_uuid:
        params["targetUuid"] = target_uuid
    if not has_category_of_source:
        params["hasCategoryOfSource"] = "false"

    return OutboundRequest(method="PUT", path=DUPLICATE_PATH, params=params)


def shape_id_term_lookup(record_id: Any) -> OutboundRequest:
    body = {
        "query": {"term": {"id": str(record_id)}},
        "size": 1,
        "_source": ["uuid", "id", "resourceTitleObject"],
    }
    return OutboundRequest(method="POST", path=SEARCH_PATH, json=body)


def shape_id_lookup(record_id: Any) -> OutboundRequest:
    record_id = str(record_id)
    body = {
        "query": {
            "bool": {
                "should": [
                    {"term": {"id": record_id}},
                    {"term": {"id.keyword": record_id}},
                    {"ids": {"values": [record_id]}},
                ],
                "minimum_should_match": 1,
            }
        },
        "size": 1,
    }
    return OutboundRequest(method="POST", path=SEARCH_PATH, json=body)


def first_hit(search_response: Any) -> Optional[Dict[str, Any]]:
    hits = returned_hits(search_response)
    return hits[0] if hits else None


def hit_uuid(hit: Dict[str, Any]) -> Optional[str]:
    source = hit.get("_source") or {}
    return source.get("uuid") or source.get("metadataIdentifier") or hit.get("_id")


def parse_duplicate_response(data: Any) -> Dict[str, Optional[Any]]:
    """
    Pull the new record's identifiers out of a duplicate response.

    The catalogue answers either with a JSON object or with the bare numeric id.
    """
    new_id: Optional[Any] = None
    new_uuid: Optional[str] = None

    if isinstance(data, dict):
        new_uuid = data.get("uuid") or data.get("metadataUuid")
        new_id = data.get("id", data.get("metadataId"))
    elif isinstance(data, bool):
        pass
    elif isinstance(data, int):
        new_id = data
    elif isinstance(data, str) and data.strip():
        text = data.strip().strip('"')
        new_id = int(text) if text.isdigit() else None
        if new_id is None:
            new_uuid = text

    return {"id": new_id, "uuid": new_uuid}


# ---------------------------------------------------------------------------
# Records, tags, attachments and read-only passthroughs
# ---------------------------------------------------------------------------

def shape_record_fetch(uuid: Any, approved: bool = True) -> OutboundRequest:
    return OutboundRequest(method="GET", path=f"/records/{uuid}", params={"approved": bool_param(approved)})


def shape_record_formatters(uuid: str) -> OutboundRequest:
    return OutboundRequest(method="GET", path=f"/records/{uuid}/formatters")


def shape_export(uuid: str, formatter: str) -> OutboundRequest:
    return OutboundRequest(
        method="GET",
        path=f"/records/{uuid}/formatters/{formatter}",
        headers={"Accept": "*/*"},
        raw=True,
    )


def shape_related(uuid: str, relation_type: Optional[str] = None) -> OutboundRequest:
    return OutboundRequest(
        method="GET",
        path=f"/related/{uuid}",
        params={"type": relation_type} if relation_type else None,
    )


def shape_groups(with_reserved_group: bool = False) -> OutboundRequest:
    return OutboundRequest(method="GET", path="/groups", params={"withReservedGroup": bool_param(with_reserved_group)})


def shape_regions(category_id: Optional[str] = None) -> OutboundRequest:
    return OutboundRequest(
        method="GET",
        path="/regions",
        params={"categoryId": category_id} if category_id else None,
    )


def shape_simple_get(path: str) -> OutboundRequest:
    return OutboundRequest(method="GET", path=path)


def shape_tags(uuid: str, tag_ids: List[int], remove: bool = False) -> OutboundRequest:
    return OutboundRequest(
        method="DELETE" if remove else "PUT",
        path=f"/records/{uuid}/tags",
        json=[int(t) for t in tag_ids],
    )


def shape_attachments_list(
    uuid: str, sort: str = "type", approved: bool = False, filter_: Optional[str] = None
) -> OutboundRequest:
    params: Dict[str, str] = {"sort": sort, "approved": bool_param(approved)}
    if filter_:
        params["filter"] = filter_
    return OutboundRequest(method="GET", path=f"/records/{uuid}/attachments", params=params)


def shape_attachment_delete(uuid: str, resource_id: str, approved: bool = False) -> OutboundRequest:
    return OutboundRequest(
        method="DELETE",
        path=f"/records/{uuid}/attachments/{resource_id}",
        params={"approved": bool_param(approved)},
    )


def shape_attachment_upload(
    uuid: str, filename: str, stream: Any, visibility: str = "PUBLIC", approved: bool = False
) -> OutboundRequest:
    return OutboundRequest(
        method="POST",
        path=f"/records/{uuid}/attachments",
        params={"visibility": visibility.lower(), "approved": bool_param(approved)},
        files={"file": (filename, stream)},
    )
