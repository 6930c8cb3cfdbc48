import asyncio
import logging
from typing import Any, Optional
from urllib.parse import urlparse

import httpx

from veracode_tools.api.auth import VeracodeHmacAuth
from veracode_tools.core.config import Credentials
from veracode_tools.core.errors import ConfigurationError, UpstreamError
from veracode_tools.core.pagination import PageResult
from veracode_tools.models.finding import Finding
from veracode_tools.utils.rate_limiter import RateLimiter
from veracode_tools.utils.validators import validate_base_url

logger = logging.getLogger("veracode_tools")

PLATFORM_HOSTS = {
    "api.veracode.com": "analysiscenter.veracode.com",
    "api.veracode.eu": "analysiscenter.veracode.eu",
    "api.veracode.us": "analysiscenter.veracode.us",
}
DEFAULT_PLATFORM_URL = "https://analysiscenter.veracode.com"
_LINK_FIELDS = ("app_profile_url", "results_url", "scan_url")


def derive_platform_url(base_url: str) -> str:
    """Web platform root for an API base URL (region aware)."""
    host = urlparse(base_url).hostname or ""
    if host in PLATFORM_HOSTS:
        return f"https://{PLATFORM_HOSTS[host]}"
    if host.startswith("api.veracode."):
        return f"https://analysiscenter.{host[len('api.'):]}"
    logger.warning("Unknown API host %s; using the commercial platform URL", host or base_url)
    return DEFAULT_PLATFORM_URL


def error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("message", "error"):
            if body.get(key):
                return str(body[key])
    return str(body)


class VeracodeClient:
    """Async client for the Veracode REST API with HMAC auth, retries and rate limiting."""

    def __init__(
        self,
        config: dict,
        credentials: Credentials,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        api = config.get("api", {})
        valid, base_url = validate_base_url(api.get("base_url") or "https://api.veracode.com/")
        if not valid:
            raise ConfigurationError(base_url)
        self.base_url = base_url
        self.platform_url = (api.get("platform_url") or derive_platform_url(self.base_url)).rstrip("/")
        self.timeout = api.get("timeout", 30)
        self.retries = api.get("retries", 2)
        self.user_agent = api.get("user_agent", "veracode-agent-tools/0.1")
        self.credentials = credentials
        self.request_count = 0
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._limiter = RateLimiter(api.get("rate_limit", 10), api.get("burst", 20))
        self._semaphore = asyncio.Semaphore(api.get("max_concurrent", 5))

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            auth=VeracodeHmacAuth(self.credentials.api_id, self.credentials.api_key),
            timeout=httpx.Timeout(self.timeout),
            headers={"User-Agent": self.user_agent, "Accept": "application/json"},
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, params: Optional[dict] = None) -> httpx.Response:
        if not self._client:
            raise RuntimeError("VeracodeClient not initialized. Use 'async with'.")
        params = {k: v for k, v in (params or {}).items() if v is not None}
        async with self._semaphore:
            for attempt in range(self.retries + 1):
                try:
                    await self._limiter.acquire()
                    response = await self._client.request(method, path, params=params)
                    self.request_count += 1
                    return response
                except httpx.TransportError as e:
                    if attempt < self.retries:
                        wait = 2 ** attempt
                        logger.debug("%s %s failed (%s); retrying in %ss", method, path, e, wait)
                        await asyncio.sleep(wait)
                    else:
                        raise UpstreamError(f"Request failed: {method} {path} - {e}") from e
                except httpx.HTTPError as e:
                    raise UpstreamError(f"Request failed: {method} {path} - {e}") from e
        raise UpstreamError(f"Request failed: {method} {path}")

    async def get_json(self, path: str, params: Optional[dict] = None, allow_missing: bool = False) -> Any:
        response = await self._request("GET", path, params)
        if allow_missing and response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise UpstreamError(error_message(response), status_code=response.status_code)
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(
                f"Invalid JSON from {path}: {e}", status_code=response.status_code
            ) from e

    def to_platform_url(self, link: Optional[str]) -> Optional[str]:
        if not link or link.startswith(("http://", "https://")):
            return link
        return f"{self.platform_url}/auth/index.jsp#{link}"

    def _with_links(self, record: dict) -> dict:
        record = dict(record)
        for key in _LINK_FIELDS:
            if record.get(key):
                record[key] = self.to_platform_url(record[key])
        if isinstance(record.get("scans"), list):
            record["scans"] = [self._with_links(s) for s in record["scans"]]
        return record

    # applications

    async def get_applications(self, params: Optional[dict] = None) -> list[dict]:
        data = await self.get_json("appsec/v1/applications", params)
        apps = (data.get("_embedded") or {}).get("applications") or []
        return [self._with_links(a) for a in apps]

    async def search_applications(self, name: str) -> list[dict]:
        return await self.get_applications({"name": name})

    async def get_application(self, guid: str) -> Optional[dict]:
        data = await self.get_json(f"appsec/v1/applications/{guid}", allow_missing=True)
        return self._with_links(data) if data else None

    # sandboxes and scans

    async def get_sandboxes(
        self, application_guid: str, page: Optional[int] = None, size: Optional[int] = None
    ) -> list[dict]:
        data = await self.get_json(
            f"appsec/v1/applications/{application_guid}/sandboxes", {"page": page, "size": size}
        )
        return (data.get("_embedded") or {}).get("sandboxes") or []

    async def get_scans(
        self,
        application_guid: str,
        scan_type: Optional[str] = None,
        sandbox_guid: Optional[str] = None,
    ) -> list[dict]:
        data = await self.get_json(
            f"appsec/v1/applications/{application_guid}/scans",
            {"scan_type": scan_type, "context": sandbox_guid},
        )
        return [self._with_links(s) for s in (data.get("_embedded") or {}).get("scans") or []]

    # findings

    async def get_findings_page(
        self, application_guid: str, page: int, size: int, filters: Optional[dict] = None
    ) -> PageResult:
        params = dict(filters or {})
        params.update({"page": page, "size": size})
        data = await self.get_json(f"appsec/v2/applications/{application_guid}/findings", params)
        raw = (data.get("_embedded") or {}).get("findings") or []
        items = [Finding.from_api(f) for f in raw]
        meta = data.get("page") or {}
        total_pages = meta.get("total_pages", 1)
        number = meta.get("number", page)
        return PageResult(
            items=items,
            total_elements=meta.get("total_elements", len(items)),
            has_next=number + 1 < total_pages,
        )

    async def get_static_flaw_info(
        self, application_guid: str, issue_id: int, sandbox_guid: Optional[str] = None
    ) -> Optional[dict]:
        return await self.get_json(
            f"appsec/v2/applications/{application_guid}/findings/{issue_id}/static_flaw_info",
            {"context": sandbox_guid},
            allow_missing=True,
        )

    # policies

    async def get_policies(self, params: Optional[dict] = None) -> dict:
        return await self.get_json("appsec/v1/policies", params)

    async def get_policy(self, guid: str) -> Optional[dict]:
        return await self.get_json(f"appsec/v1/policies/{guid}", allow_missing=True)

    async def get_policy_settings(self) -> dict:
        return await self.get_json("appsec/v1/policy_settings")
