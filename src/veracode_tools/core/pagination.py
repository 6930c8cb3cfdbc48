"""Sequential page retrieval under a page budget."""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from veracode_tools.core.errors import PaginationError, UpstreamError

logger = logging.getLogger("veracode_tools")


@dataclass
class PageResult:
    items: list[Any]
    total_elements: int
    has_next: bool


@dataclass
class AggregatedResult:
    items: list[Any] = field(default_factory=list)
    total_elements: int = 0
    pages_retrieved: int = 0
    truncated: bool = False

    @property
    def is_complete(self) -> bool:
        return not self.truncated

    def to_dict(self) -> dict[str, Any]:
        return {
            "retrieved": len(self.items),
            "total_elements": self.total_elements,
            "pages_retrieved": self.pages_retrieved,
            "truncated": self.truncated,
        }


PageQuery = Callable[[int, int], Awaitable[PageResult]]


async def aggregate(
    query: PageQuery,
    page_size: int,
    max_pages: int,
    start_page: int = 0,
) -> AggregatedResult:
    """Fetch up to ``max_pages`` pages of ``page_size`` items via ``query(page, size)``.

    Items keep arrival order. ``truncated`` is set only when the budget ran
    out while the last fetched page still reported more data. A failed fetch
    raises :class:`PaginationError` holding what was retrieved so far.
    """
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    if max_pages < 1:
        raise ValueError("max_pages must be at least 1")

    result = AggregatedResult()
    page = start_page
    has_next = True

    while has_next and result.pages_retrieved < max_pages:
        try:
            current = await query(page, page_size)
        except Exception as e:
            status = e.status_code if isinstance(e, UpstreamError) else None
            raise PaginationError(
                f"Failed to retrieve page {page}: {e}", partial=result, status_code=status
            ) from e

        result.items.extend(current.items)
        result.total_elements = current.total_elements
        result.pages_retrieved += 1
        has_next = current.has_next
        logger.debug(
            "Fetched page %d (%d items, total %d, more=%s)",
            page, len(current.items), current.total_elements, has_next,
        )
        page += 1

    result.truncated = has_next
    if result.truncated:
        logger.info(
            "Stopped after %d page(s); %d of %d items retrieved",
            result.pages_retrieved, len(result.items), result.total_elements,
        )
    return result
