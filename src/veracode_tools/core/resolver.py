"""Turn a user-supplied application or sandbox reference into a concrete GUID.

A reference is either a GUID, which is looked up directly, or a free-text
name, which is searched and disambiguated. Both paths go through
:func:`resolve` with a directory adapter for the entity kind.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from veracode_tools.core.errors import AmbiguousMatchError, NotFoundError
from veracode_tools.utils.validators import is_identifier

logger = logging.getLogger("veracode_tools")


class EntityDirectory(Protocol):
    kind: str

    async def get_by_id(self, entity_id: str) -> Optional[dict]: ...

    async def search_by_name(self, text: str) -> list[dict]: ...

    async def candidate_names(self, limit: int) -> list[str]: ...

    def name_of(self, record: dict) -> str: ...

    def id_of(self, record: dict) -> str: ...


@dataclass(frozen=True)
class ResolvedEntity:
    id: str
    name: str
    details: dict
    resolved_from_name: bool

    def to_dict(self) -> dict[str, Any]:
        return {"guid": self.id, "name": self.name, "resolved_from_name": self.resolved_from_name}


async def resolve(
    ref: str,
    directory: EntityDirectory,
    strict: bool = False,
    suggestion_limit: int = 5,
) -> ResolvedEntity:
    """Resolve ``ref`` against ``directory``.

    GUIDs cost one ``get_by_id`` call and never trigger a search. Names cost
    one search; a case-insensitive exact match wins over partial matches,
    otherwise the first result is used. With ``strict`` set, several partial
    matches without an exact one raise :class:`AmbiguousMatchError` instead.
    """
    ref = ref.strip()

    if is_identifier(ref):
        record = await directory.get_by_id(ref)
        if record is None:
            raise NotFoundError(directory.kind, ref)
        return ResolvedEntity(
            id=directory.id_of(record),
            name=directory.name_of(record),
            details=record,
            resolved_from_name=False,
        )

    matches = await directory.search_by_name(ref)
    if not matches:
        suggestions = await directory.candidate_names(suggestion_limit)
        raise NotFoundError(directory.kind, ref, suggestions[:suggestion_limit])

    wanted = ref.lower()
    exact = next((m for m in matches if directory.name_of(m).lower() == wanted), None)
    if exact is not None:
        chosen = exact
        others = [directory.name_of(m) for m in matches if m is not exact]
        if others:
            logger.debug("Exact %s match for '%s' (alternates: %s)", directory.kind, ref, ", ".join(others))
    elif len(matches) == 1:
        chosen = matches[0]
    else:
        names = [directory.name_of(m) for m in matches]
        if strict:
            raise AmbiguousMatchError(directory.kind, ref, names)
        chosen = matches[0]
        logger.warning(
            "No exact %s match for '%s'; using '%s' (alternates: %s)",
            directory.kind, ref, names[0], ", ".join(names[1:]),
        )

    logger.debug("Resolved %s '%s' to %s", directory.kind, ref, directory.id_of(chosen))
    return ResolvedEntity(
        id=directory.id_of(chosen),
        name=directory.name_of(chosen),
        details=chosen,
        resolved_from_name=True,
    )


class ApplicationDirectory:
    """Application profiles, looked up through the applications API."""

    kind = "application"

    def __init__(self, client):
        self.client = client

    async def get_by_id(self, entity_id: str) -> Optional[dict]:
        return await self.client.get_application(entity_id)

    async def search_by_name(self, text: str) -> list[dict]:
        return await self.client.search_applications(text)

    async def candidate_names(self, limit: int) -> list[str]:
        apps = await self.client.get_applications({"size": limit})
        return [self.name_of(a) for a in apps[:limit]]

    def name_of(self, record: dict) -> str:
        return (record.get("profile") or {}).get("name") or ""

    def id_of(self, record: dict) -> str:
        return record.get("guid", "")


class SandboxDirectory:
    """Sandboxes of a single application. The upstream has no sandbox search,
    so both lookups filter the application's sandbox list."""

    kind = "sandbox"

    def __init__(self, client, application_guid: str):
        self.client = client
        self.application_guid = application_guid
        self._sandboxes: Optional[list[dict]] = None

    async def _all(self) -> list[dict]:
        if self._sandboxes is None:
            self._sandboxes = await self.client.get_sandboxes(self.application_guid)
        return self._sandboxes

    async def get_by_id(self, entity_id: str) -> Optional[dict]:
        wanted = entity_id.lower()
        return next((s for s in await self._all() if s.get("guid", "").lower() == wanted), None)

    async def search_by_name(self, text: str) -> list[dict]:
        wanted = text.lower()
        return [s for s in await self._all() if wanted in self.name_of(s).lower()]

    async def candidate_names(self, limit: int) -> list[str]:
        return [self.name_of(s) for s in (await self._all())[:limit]]

    def name_of(self, record: dict) -> str:
        return record.get("name") or ""

    def id_of(self, record: dict) -> str:
        return record.get("guid", "")


async def resolve_application(ref: str, client, config: Optional[dict] = None) -> ResolvedEntity:
    settings = (config or {}).get("resolution", {})
    return await resolve(
        ref,
        ApplicationDirectory(client),
        strict=settings.get("strict_names", False),
        suggestion_limit=settings.get("suggestion_limit", 5),
    )


async def resolve_sandbox(
    ref: str, application_guid: str, client, config: Optional[dict] = None
) -> ResolvedEntity:
    settings = (config or {}).get("resolution", {})
    return await resolve(
        ref,
        SandboxDirectory(client, application_guid),
        strict=settings.get("strict_names", False),
        suggestion_limit=settings.get("suggestion_limit", 5),
    )
