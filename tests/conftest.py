"""Shared pytest fixtures for veracode-agent-tools tests."""

import math

import pytest

from veracode_tools.agent.context import ToolContext
from veracode_tools.agent.tools import build_registry
from veracode_tools.core.config import _builtin_defaults
from veracode_tools.core.errors import UpstreamError
from veracode_tools.core.pagination import PageResult
from veracode_tools.models.finding import Finding

APP_GUID = "11111111-1111-4111-8111-111111111111"
STAGING_GUID = "22222222-2222-4222-8222-222222222222"
DEV_SANDBOX = "33333333-3333-4333-8333-333333333333"
QA_SANDBOX = "44444444-4444-4444-8444-444444444444"


def raw_finding(
    issue_id,
    severity=3,
    scan_type="STATIC",
    status="OPEN",
    cwe=None,
    violates_policy=False,
    new=False,
    cvss=None,
    exploit=False,
    component_id=None,
    metadata=None,
    licenses=None,
):
    details = {"severity": severity}
    if cwe is not None:
        details["cwe"] = {"id": cwe, "name": f"CWE {cwe}"}
    if scan_type == "STATIC":
        details.update({"file_path": "src/app/Main.java", "file_line_number": "42", "module": "app.jar"})
    if component_id:
        details.update(
            {
                "component_id": component_id,
                "component_filename": f"{component_id}.jar",
                "version": "1.0.0",
                "metadata": metadata,
                "licenses": licenses or [],
            }
        )
    if cvss is not None:
        details["cve"] = {
            "name": f"CVE-2024-{issue_id:04d}",
            "cvss": cvss,
            "exploitability": {"exploit_observed": exploit},
        }
    if severity is None:
        del details["severity"]
    return {
        "issue_id": issue_id,
        "scan_type": scan_type,
        "description": f"Finding {issue_id}",
        "count": 1,
        "context_type": "APPLICATION",
        "violates_policy": violates_policy,
        "finding_status": {"status": status, "new": new, "resolution": "UNRESOLVED"},
        "finding_details": details,
    }


def application(guid, name, criticality="HIGH", policy_status="DID_NOT_PASS"):
    return {
        "guid": guid,
        "id": 1,
        "profile": {
            "name": name,
            "business_criticality": criticality,
            "policies": [
                {
                    "guid": "55555555-5555-4555-8555-555555555555",
                    "name": "Corporate Policy",
                    "is_default": True,
                    "policy_compliance_status": policy_status,
                }
            ],
        },
    }


class FakeVeracodeClient:
    """In-memory stand-in for VeracodeClient; records every call."""

    def __init__(self, apps=None, sandboxes=None, scans=None, findings=None, flaw_info=None, policies=None):
        self.apps = apps or []
        self.sandboxes = sandboxes or {}
        self.scans = scans or {}
        self.findings = findings or {}
        self.flaw_info = flaw_info or {}
        self.policies = policies or []
        self.calls = []

    def count(self, method):
        return sum(1 for c in self.calls if c[0] == method)

    async def get_application(self, guid):
        self.calls.append(("get_application", guid))
        return next((a for a in self.apps if a["guid"].lower() == guid.lower()), None)

    async def search_applications(self, name):
        self.calls.append(("search_applications", name))
        return [a for a in self.apps if name.lower() in a["profile"]["name"].lower()]

    async def get_applications(self, params=None):
        self.calls.append(("get_applications", params))
        return list(self.apps)

    async def get_sandboxes(self, application_guid, page=None, size=None):
        self.calls.append(("get_sandboxes", application_guid))
        return list(self.sandboxes.get(application_guid, []))

    async def get_scans(self, application_guid, scan_type=None, sandbox_guid=None):
        self.calls.append(("get_scans", application_guid, scan_type, sandbox_guid))
        scans = self.scans.get((application_guid, sandbox_guid), [])
        if isinstance(scans, Exception):
            raise scans
        return [s for s in scans if scan_type is None or s["scan_type"] == scan_type]

    async def get_findings_page(self, application_guid, page, size, filters=None):
        filters = dict(filters or {})
        self.calls.append(("get_findings_page", application_guid, page, size, filters))
        source = self.findings.get(application_guid, [])
        if isinstance(source, Exception):
            raise source
        items = [Finding.from_api(f) for f in source]
        if "scan_type" in filters:
            items = [f for f in items if f.scan_type == filters["scan_type"]]
        if filters.get("violates_policy"):
            items = [f for f in items if f.violates_policy]
        total_pages = math.ceil(len(items) / size) if items else 0
        return PageResult(
            items=items[page * size:(page + 1) * size],
            total_elements=len(items),
            has_next=page + 1 < total_pages,
        )

    async def get_static_flaw_info(self, application_guid, issue_id, sandbox_guid=None):
        self.calls.append(("get_static_flaw_info", application_guid, issue_id, sandbox_guid))
        return self.flaw_info.get((application_guid, issue_id))

    async def get_policies(self, params=None):
        self.calls.append(("get_policies", params))
        return {"_embedded": {"policy_versions": self.policies}, "page": {"number": 0}}

    async def get_policy(self, guid):
        return next((p for p in self.policies if p["guid"] == guid), None)

    async def get_policy_settings(self):
        return {"_embedded": {"policy_settings": []}}


@pytest.fixture
def config():
    return _builtin_defaults()


@pytest.fixture
def portfolio_findings():
    """Mixed static and SCA findings for the main application."""
    return [
        raw_finding(1, severity=5, cwe=89, violates_policy=True, new=True),
        raw_finding(2, severity=4, cwe=79, violates_policy=True),
        raw_finding(3, severity=3, cwe=79, status="FIXED"),
        raw_finding(4, severity=0, cwe=200),
        raw_finding(5, severity=4, scan_type="SCA", component_id="log4j", cvss=10.0, exploit=True,
                    metadata="DIRECT", licenses=[{"license_id": "GPL-3.0", "risk_rating": "4"}]),
        raw_finding(6, severity=3, scan_type="SCA", component_id="jackson", cvss=7.5,
                    metadata="TRANSITIVE"),
        raw_finding(7, severity=2, scan_type="SCA", component_id="jackson", cvss=5.3,
                    metadata="TRANSITIVE"),
    ]


@pytest.fixture
def fake_client(portfolio_findings):
    return FakeVeracodeClient(
        apps=[application(APP_GUID, "MyApp"), application(STAGING_GUID, "MyApp-Staging", criticality="LOW")],
        sandboxes={
            APP_GUID: [
                {"guid": DEV_SANDBOX, "name": "dev", "owner_username": "alice", "modified": "2024-05-01"},
                {"guid": QA_SANDBOX, "name": "qa", "owner_username": "bob", "modified": "2024-06-01",
                 "auto_recreate": True},
            ],
        },
        scans={
            (APP_GUID, None): [
                {"scan_id": "s1", "scan_type": "STATIC", "status": "PUBLISHED", "created_date": "2024-06-01T10:00:00Z"},
                {"scan_id": "s2", "scan_type": "SCA", "status": "PUBLISHED", "created_date": "2024-06-02T10:00:00Z"},
            ],
            (APP_GUID, DEV_SANDBOX): [{"scan_id": "s3", "scan_type": "STATIC", "status": "PUBLISHED"}],
            (APP_GUID, QA_SANDBOX): [{"scan_id": "s4", "scan_type": "DYNAMIC", "status": "PUBLISHED"}],
        },
        findings={APP_GUID: portfolio_findings},
    )


@pytest.fixture
def registry(fake_client, config):
    return build_registry(ToolContext(client=fake_client, config=config))


@pytest.fixture
def upstream_failure():
    return UpstreamError("Service unavailable", status_code=503)
