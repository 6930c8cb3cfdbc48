"""Mode selection and query filters for finding retrieval."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from veracode_tools.models.finding import severity_from_label

# Presence of any of these on a request switches to filtered retrieval.
FILTER_FIELDS = ("scan_type", "severity", "status", "cwe_ids", "page", "size")


class OperationMode(str, Enum):
    BASIC_OVERVIEW = "basic_overview"
    FILTERED = "filtered"


@dataclass(frozen=True)
class ModeSelection:
    mode: OperationMode
    filters: dict[str, Any] = field(default_factory=dict)


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (list, tuple, set)) and not value:
        return False
    return True


def select_mode(request: Any, sandbox_guid: Optional[str] = None) -> ModeSelection:
    """Pick the retrieval mode for ``request`` and build its filters.

    ``request`` is any object exposing the filter fields as attributes.
    """
    filtered = any(_present(getattr(request, name, None)) for name in FILTER_FIELDS)
    mode = OperationMode.FILTERED if filtered else OperationMode.BASIC_OVERVIEW
    if mode is OperationMode.BASIC_OVERVIEW:
        filters = {"context": sandbox_guid} if sandbox_guid else {}
    else:
        filters = build_filters(request, sandbox_guid)
    return ModeSelection(mode=mode, filters=filters)


def build_filters(request: Any, sandbox_guid: Optional[str] = None) -> dict[str, Any]:
    """Query parameters for the findings API; unset fields are left out."""
    filters: dict[str, Any] = {}

    scan_type = getattr(request, "scan_type", None)
    if scan_type:
        filters["scan_type"] = getattr(scan_type, "value", scan_type)

    severities = getattr(request, "severity", None)
    if severities:
        values = [severity_from_label(s) if isinstance(s, str) else s for s in severities]
        filters["severity"] = sorted({v for v in values if v is not None}, reverse=True)

    statuses = getattr(request, "status", None)
    if statuses:
        filters["status"] = [getattr(s, "value", s) for s in statuses]

    cwe_ids = getattr(request, "cwe_ids", None)
    if cwe_ids:
        filters["cwe"] = [int(c) for c in cwe_ids]

    if sandbox_guid:
        filters["context"] = sandbox_guid
    return filters


def format_pagination_info(page: int, size: int, total_elements: int) -> dict[str, Any]:
    total_pages = -(-total_elements // size) if size > 0 else 0
    return {
        "current_page": page,
        "page_size": size,
        "total_elements": total_elements,
        "total_pages": total_pages,
        "has_next_page": page < total_pages - 1,
        "has_previous_page": page > 0,
        "is_first_page": page == 0,
        "is_last_page": page >= total_pages - 1,
    }
