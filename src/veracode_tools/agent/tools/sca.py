"""Software composition analysis tools.

All three tools aggregate SCA findings under a page budget from the ``sca``
config section and report whether the budget truncated the data.
"""

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Literal, Optional

from pydantic import Field

from veracode_tools.agent.context import ToolContext
from veracode_tools.agent.registry import ToolCategory, ToolDescriptor
from veracode_tools.agent.tools.common import ApplicationSandboxArgs, ToolArgs, resolve_target, target_info
from veracode_tools.core.errors import ToolkitError
from veracode_tools.core.pagination import aggregate
from veracode_tools.core.stats import (
    RiskLevel,
    classify_risk,
    component_stats,
    score_bands,
    summarize,
    top_vulnerabilities,
)
from veracode_tools.models.finding import ScanType
from veracode_tools.models.views import finding_view, vulnerability_view

logger = logging.getLogger("veracode_tools")

CRITICALITY_LEVELS = ["VERY_LOW", "LOW", "MEDIUM", "HIGH", "VERY_HIGH"]


class ScaResultsArgs(ApplicationSandboxArgs):
    severity_gte: Optional[int] = Field(default=None, ge=0, le=5, description="Minimum severity (0-5)")
    cvss_gte: Optional[float] = Field(default=None, ge=0, le=10, description="Minimum CVSS score")
    only_policy_violations: bool = False
    only_new_findings: bool = False
    only_exploitable: bool = Field(default=False, description="Keep only CVEs with an observed exploit")
    include_direct: Optional[bool] = Field(default=None, description="Include direct dependencies")
    include_transitive: Optional[bool] = Field(default=None, description="Include transitive dependencies")
    max_results: int = Field(default=1000, ge=1, le=25000, description="Upper bound on findings retrieved")


class ScaAppsArgs(ToolArgs):
    min_business_criticality: Optional[Literal["VERY_LOW", "LOW", "MEDIUM", "HIGH", "VERY_HIGH"]] = None
    include_recent_only: bool = Field(default=False, description="Only apps with an SCA scan in the last 30 days")
    include_risk_analysis: bool = True


def _dependency_mode(args: ScaResultsArgs) -> Optional[str]:
    if args.include_direct and not args.include_transitive:
        return "DIRECT"
    if args.include_transitive and not args.include_direct:
        return "TRANSITIVE"
    return None


def _sca_filters(args: ScaResultsArgs, sandbox_guid: Optional[str]) -> dict:
    filters = {
        "scan_type": ScanType.SCA.value,
        "severity_gte": args.severity_gte,
        "cvss_gte": args.cvss_gte,
        "violates_policy": True if args.only_policy_violations else None,
        "new": True if args.only_new_findings else None,
        "sca_dep_mode": _dependency_mode(args),
        "context": sandbox_guid,
    }
    return {k: v for k, v in filters.items() if v is not None}


async def get_sca_results(args: ScaResultsArgs, context: ToolContext) -> dict:
    app, sandbox = await resolve_target(context, args.app_profile, args.sandbox)
    settings = context.section("sca")
    filters = _sca_filters(args, sandbox.id if sandbox else None)

    page_size = min(settings.get("page_size", 500), args.max_results)
    max_pages = min(settings.get("max_pages", 50), math.ceil(args.max_results / page_size))

    async def query(page: int, size: int):
        return await context.client.get_findings_page(app.id, page, size, filters)

    result = await aggregate(query, page_size=page_size, max_pages=max_pages)
    findings = result.items
    if args.only_exploitable:
        findings = [f for f in findings if f.is_exploitable]
    findings = findings[: args.max_results]

    stats = summarize(findings)
    top = top_vulnerabilities(findings, settings.get("top_n", 10))
    return {
        **target_info(app, sandbox),
        "filters_applied": {**filters, "only_exploitable": args.only_exploitable},
        "analysis": {
            "total_findings": stats.total,
            "exploitable_findings": stats.exploitable,
            "high_risk_findings": stats.high_risk,
            "policy_violations": stats.policy_violations,
            "severity_breakdown": stats.by_severity,
            **component_stats(findings).to_dict(),
            "top_vulnerabilities": [vulnerability_view(f) for f in top],
        },
        "findings": [finding_view(f) for f in findings],
        "retrieval": {**result.to_dict(), "complete": result.is_complete},
    }


async def get_sca_summary(args: ApplicationSandboxArgs, context: ToolContext) -> dict:
    app, sandbox = await resolve_target(context, args.app_profile, args.sandbox)
    settings = context.section("sca")
    filters = {"scan_type": ScanType.SCA.value}
    if sandbox:
        filters["context"] = sandbox.id

    async def query(page: int, size: int):
        return await context.client.get_findings_page(app.id, page, size, filters)

    result = await aggregate(
        query,
        page_size=settings.get("page_size", 500),
        max_pages=settings.get("summary_max_pages", 2),
    )
    stats = summarize(result.items)
    components = component_stats(result.items)
    top = top_vulnerabilities(result.items, settings.get("top_n", 10))
    bands = score_bands(top)
    risk = classify_risk(stats.exploitable, stats.high_risk, settings.get("high_risk_threshold", 5))

    return {
        **target_info(app, sandbox),
        "risk_assessment": {
            "overall_risk": risk.value,
            "needs_immediate_attention": stats.exploitable > 0 or bands["critical"] > 0,
            "critical_components": bands["critical"],
            "high_components": bands["high"],
            "medium_components": bands["medium"],
        },
        "summary": {
            "total_findings": stats.total,
            "exploitable_findings": stats.exploitable,
            "high_risk_findings": stats.high_risk,
            "policy_violations": stats.policy_violations,
            "severity_breakdown": stats.by_severity,
            **components.to_dict(),
        },
        "top_vulnerabilities": [
            vulnerability_view(f) for f in top[: settings.get("summary_top_n", 5)]
        ],
        "recommendations": _recommendations(stats.exploitable, stats.high_risk, components.licensing_issues),
        "priority_focus": _priority_focus(stats.exploitable, stats.high_risk),
        "retrieval": {**result.to_dict(), "complete": result.is_complete},
    }


def _recommendations(exploitable: int, high_risk: int, licensing: int) -> list[str]:
    recs = []
    if exploitable:
        recs.append(f"Immediately address {exploitable} exploitable vulnerabilit{'y' if exploitable == 1 else 'ies'}")
    if high_risk:
        recs.append(f"Prioritize upgrading components behind {high_risk} high severity finding(s)")
    if licensing:
        recs.append(f"Review {licensing} finding(s) with high-risk licenses")
    if not recs:
        recs.append("No immediate action required; keep dependencies up to date")
    return recs


def _priority_focus(exploitable: int, high_risk: int) -> str:
    if exploitable:
        return "exploitable_vulnerabilities"
    if high_risk:
        return "high_risk_components"
    return "maintenance"


def _parse_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _criticality_rank(value: Optional[str]) -> int:
    return CRITICALITY_LEVELS.index(value) if value in CRITICALITY_LEVELS else -1


async def get_sca_apps(args: ScaAppsArgs, context: ToolContext) -> dict:
    client = context.client
    settings = context.section("sca")
    apps = await client.get_applications()

    if args.min_business_criticality:
        floor = _criticality_rank(args.min_business_criticality)
        apps = [
            a for a in apps
            if _criticality_rank((a.get("profile") or {}).get("business_criticality")) >= floor
        ]

    cutoff = datetime.now(timezone.utc) - timedelta(days=settings.get("recent_days", 30))
    portfolio = []
    skipped = []
    for app in apps:
        profile = app.get("profile") or {}
        guid = app.get("guid")
        if not guid:
            logger.warning("Skipping %s: application record has no guid", profile.get("name"))
            skipped.append({"name": profile.get("name"), "reason": "missing application guid"})
            continue
        try:
            scans = await client.get_scans(guid, ScanType.SCA.value)
        except ToolkitError as e:
            logger.warning("Skipping %s: could not list SCA scans (%s)", profile.get("name"), e)
            skipped.append({"name": profile.get("name"), "reason": str(e)})
            continue
        if not scans:
            continue

        relevant = scans
        if args.include_recent_only:
            relevant = [s for s in scans if (_parse_date(s.get("created_date")) or cutoff) > cutoff]
            if not relevant:
                continue
        latest = max(relevant, key=lambda s: _parse_date(s.get("created_date")) or datetime.min.replace(tzinfo=timezone.utc))

        entry = {
            "name": profile.get("name"),
            "guid": guid,
            "business_criticality": profile.get("business_criticality"),
            "total_sca_scans": len(scans),
            "recent_sca_scans": len(relevant),
            "latest_sca_scan": {
                "scan_id": latest.get("scan_id"),
                "status": latest.get("status"),
                "created_date": latest.get("created_date"),
                "policy_compliance_status": latest.get("policy_compliance_status"),
            },
            "risk_assessment": None,
            "app_profile_url": app.get("app_profile_url"),
        }
        if args.include_risk_analysis:
            entry["risk_assessment"] = await _sample_risk(context, guid, profile.get("name"))
        portfolio.append(entry)

    def sort_key(entry: dict) -> tuple[int, int]:
        risk = entry["risk_assessment"]
        risk_rank = RiskLevel(risk["risk_level"]).rank if risk else 0
        return risk_rank, _criticality_rank(entry["business_criticality"])

    portfolio.sort(key=sort_key, reverse=True)
    levels = [e["risk_assessment"]["risk_level"] for e in portfolio if e["risk_assessment"]]
    return {
        "summary": {
            "total_applications_analyzed": len(apps),
            "sca_enabled_applications": len(portfolio),
            "high_risk_applications": levels.count(RiskLevel.HIGH.value),
            "medium_risk_applications": levels.count(RiskLevel.MEDIUM.value),
            "low_risk_applications": levels.count(RiskLevel.LOW.value),
        },
        "filters_applied": {
            "include_recent_only": args.include_recent_only,
            "include_risk_analysis": args.include_risk_analysis,
            "min_business_criticality": args.min_business_criticality or "any",
        },
        "applications": portfolio,
        "skipped_applications": skipped,
        "sorted_by": "risk_level_and_business_criticality",
    }


async def _sample_risk(context: ToolContext, app_guid: str, name: Optional[str]) -> Optional[dict]:
    settings = context.section("sca")
    filters = {"scan_type": ScanType.SCA.value}

    async def query(page: int, size: int):
        return await context.client.get_findings_page(app_guid, page, size, filters)

    try:
        sample = await aggregate(query, page_size=settings.get("portfolio_sample_size", 100), max_pages=1)
    except ToolkitError as e:
        logger.warning("No risk sample for %s: %s", name, e)
        return None

    stats = summarize(sample.items)
    risk = classify_risk(stats.exploitable, stats.high_risk, settings.get("high_risk_threshold", 5))
    return {
        "sampled_findings": stats.total,
        "total_findings": sample.total_elements,
        "exploitable_findings": stats.exploitable,
        "high_risk_findings": stats.high_risk,
        "policy_violations": stats.policy_violations,
        "severity_breakdown": stats.by_severity,
        "risk_level": risk.value,
        "sample_truncated": sample.truncated,
    }


def create_sca_tools() -> list[ToolDescriptor]:
    troubleshooting = (
        "Verify the application has SCA (agent-based or upload) scans",
        "Check that your API user has SCA permissions",
    )
    return [
        ToolDescriptor(
            name="get-sca-results",
            description="Software composition analysis findings with component, license and "
            "exploitability analysis",
            category=ToolCategory.SCA,
            schema=ScaResultsArgs,
            handler=get_sca_results,
            error_message="Failed to retrieve SCA results",
            troubleshooting=troubleshooting + ("Lower max_results if the request is slow",),
        ),
        ToolDescriptor(
            name="get-sca-summary",
            description="Risk-focused summary of an application's open source components",
            category=ToolCategory.SCA,
            schema=ApplicationSandboxArgs,
            handler=get_sca_summary,
            error_message="Failed to retrieve SCA summary",
            troubleshooting=troubleshooting,
        ),
        ToolDescriptor(
            name="get-sca-apps",
            description="Portfolio view of applications with SCA scans, ranked by risk and "
            "business criticality",
            category=ToolCategory.SCA,
            schema=ScaAppsArgs,
            handler=get_sca_apps,
            error_message="Failed to retrieve SCA applications",
            troubleshooting=("Narrow the portfolio with min_business_criticality",),
        ),
    ]
