"""Error types raised by the toolkit core and the upstream client."""

from typing import Any, Optional


class ToolkitError(Exception):
    """Base class for every error the toolkit raises on purpose."""


class ConfigurationError(ToolkitError):
    pass


class NotFoundError(ToolkitError):
    """A reference did not resolve to any entity."""

    def __init__(self, kind: str, reference: str, suggestions: Optional[list[str]] = None):
        self.kind = kind
        self.reference = reference
        self.suggestions = list(suggestions or [])
        super().__init__(f"No {kind} found matching '{reference}'")


class AmbiguousMatchError(ToolkitError):
    """A name matched several entities and none of them exactly."""

    def __init__(self, kind: str, reference: str, candidates: list[str]):
        self.kind = kind
        self.reference = reference
        self.candidates = list(candidates)
        super().__init__(
            f"'{reference}' matches {len(candidates)} {kind}s: {', '.join(candidates)}"
        )


class UpstreamError(ToolkitError):
    """The remote API returned an error or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class PaginationError(UpstreamError):
    """A page fetch failed part way through an aggregation.

    ``partial`` holds the pages retrieved before the failure.
    """

    def __init__(self, message: str, partial: Any, status_code: Optional[int] = None):
        self.partial = partial
        super().__init__(message, status_code)


class UnknownToolError(ToolkitError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Tool not found: {name}")
