"""Finding retrieval tools: overview/filtered listing and policy compliance."""

import logging
from typing import Literal, Optional

from pydantic import Field

from veracode_tools.agent.context import ToolContext
from veracode_tools.agent.registry import ToolCategory, ToolDescriptor
from veracode_tools.agent.tools.common import (
    ApplicationSandboxArgs,
    PageArgs,
    resolve_target,
    target_info,
)
from veracode_tools.core.filters import OperationMode, format_pagination_info, select_mode
from veracode_tools.core.pagination import aggregate
from veracode_tools.core.stats import summarize
from veracode_tools.models.finding import FindingStatus, ScanType, severity_label
from veracode_tools.models.views import finding_view

logger = logging.getLogger("veracode_tools")

SeverityName = Literal["Very High", "High", "Medium", "Low", "Very Low", "Informational"]

NO_SCAN_SUGGESTIONS = [
    "Run a static, dynamic or SCA scan for this application first",
    "Check get-scan-results to see which scans exist",
    "If you expected sandbox results, pass the sandbox name or GUID",
]


class GetFindingsArgs(ApplicationSandboxArgs, PageArgs):
    scan_type: Optional[ScanType] = Field(default=None, description="STATIC, DYNAMIC, SCA or MANUAL")
    severity: Optional[list[SeverityName]] = Field(default=None, description="Severity labels to include")
    status: Optional[list[FindingStatus]] = Field(default=None, description="Finding statuses to include")
    cwe_ids: Optional[list[int]] = Field(default=None, description="CWE ids to include")
    include_details: bool = Field(default=False, description="Return the detailed finding view")


async def get_findings(args: GetFindingsArgs, context: ToolContext) -> dict:
    app, sandbox = await resolve_target(context, args.app_profile, args.sandbox)
    client = context.client
    settings = context.section("findings")

    scans = await client.get_scans(app.id, sandbox_guid=sandbox.id if sandbox else None)
    if not scans:
        where = f"sandbox '{sandbox.name}'" if sandbox else "the policy context"
        return {
            **target_info(app, sandbox),
            "findings": [],
            "total_findings": 0,
            "message": f"Application '{app.name}' has no scans in {where}",
            "suggestions": NO_SCAN_SUGGESTIONS,
        }

    selection = select_mode(args, sandbox.id if sandbox else None)
    logger.debug("Retrieving findings for %s in %s mode", app.name, selection.mode.value)

    async def query(page: int, size: int):
        return await client.get_findings_page(app.id, page, size, selection.filters)

    if selection.mode is OperationMode.BASIC_OVERVIEW:
        size = settings.get("overview_size", 300)
        result = await aggregate(query, page_size=size, max_pages=1)
        stats = summarize(result.items)
        data = {
            **target_info(app, sandbox),
            "operation_mode": selection.mode.value,
            "total_findings": result.total_elements,
            "showing": len(result.items),
            "summary": stats.to_dict(),
            "findings": [finding_view(f, args.include_details) for f in result.items],
        }
        if result.truncated:
            data["note"] = (
                f"Showing the first {len(result.items)} of {result.total_elements} findings; "
                "add filters or page/size to see the rest"
            )
        return data

    page = args.page or 0
    size = args.size or settings.get("default_size", 300)
    result = await aggregate(query, page_size=size, max_pages=1, start_page=page)
    stats = summarize(result.items)
    high_priority = sum(1 for f in result.items if f.is_high_risk)
    return {
        **target_info(app, sandbox),
        "operation_mode": selection.mode.value,
        "filters_applied": selection.filters,
        "pagination_info": format_pagination_info(page, size, result.total_elements),
        "summary": stats.to_dict(),
        "recommendations": {
            "high_priority_count": high_priority,
            "unresolved_count": stats.unresolved,
            "message": (
                f"Address {high_priority} high or very high severity finding(s) first"
                if high_priority
                else "No high severity findings on this page"
            ),
        },
        "findings": [finding_view(f, args.include_details) for f in result.items],
    }


async def get_policy_compliance(args: ApplicationSandboxArgs, context: ToolContext) -> dict:
    app, sandbox = await resolve_target(context, args.app_profile, args.sandbox)
    client = context.client
    settings = context.section("findings")
    filters = {"violates_policy": True}
    if sandbox:
        filters["context"] = sandbox.id

    async def query(page: int, size: int):
        return await client.get_findings_page(app.id, page, size, filters)

    result = await aggregate(
        query,
        page_size=settings.get("max_size", 500),
        max_pages=settings.get("compliance_max_pages", 10),
    )
    violations = [f for f in result.items if f.violates_policy]
    stats = summarize(violations)

    policies = (app.details.get("profile") or {}).get("policies") or []
    primary = next((p for p in policies if p.get("is_default")), policies[0] if policies else None)
    status = _compliance_status(primary, len(violations))

    worst_first = sorted(violations, key=lambda f: f.severity if f.severity is not None else -1, reverse=True)
    return {
        **target_info(app, sandbox),
        "policy": {
            "name": primary.get("name"),
            "guid": primary.get("guid"),
        } if primary else None,
        "policy_compliance_status": status,
        "total_policy_violations": len(violations),
        "violations_by_severity": stats.by_severity,
        "has_critical_violations": stats.by_severity.get(severity_label(5), 0) > 0,
        "has_high_violations": stats.by_severity.get(severity_label(4), 0) > 0,
        "top_violations": [finding_view(f) for f in worst_first[:10]],
        "retrieval": result.to_dict(),
    }


def _compliance_status(policy: Optional[dict], violation_count: int) -> str:
    upstream = (policy or {}).get("policy_compliance_status")
    if upstream == "PASSED":
        return "PASS"
    if upstream == "DID_NOT_PASS":
        return "FAIL"
    if upstream == "CONDITIONAL_PASS":
        return "CONDITIONAL_PASS"
    return "PASS" if violation_count == 0 else "FAIL"


def create_findings_tools() -> list[ToolDescriptor]:
    return [
        ToolDescriptor(
            name="get-findings",
            description="Findings for an application or sandbox. Without filters returns an "
            "overview of the first 300 findings with summary statistics; with scan_type, "
            "severity, status, cwe_ids, page or size returns one filtered page",
            category=ToolCategory.FINDINGS,
            schema=GetFindingsArgs,
            handler=get_findings,
            error_message="Failed to retrieve findings",
            troubleshooting=(
                "Verify the application and sandbox names or GUIDs",
                "Check that the application has completed scans",
                "Reduce the page size if the request times out",
            ),
        ),
        ToolDescriptor(
            name="get-policy-compliance",
            description="Policy compliance status and policy-violating findings for an application",
            category=ToolCategory.FINDINGS,
            schema=ApplicationSandboxArgs,
            handler=get_policy_compliance,
            error_message="Failed to retrieve policy compliance",
            troubleshooting=(
                "Verify the application name or GUID",
                "Check that a policy is assigned to the application",
            ),
        ),
    ]
