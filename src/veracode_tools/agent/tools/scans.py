import logging
from typing import Optional

from pydantic import Field

from veracode_tools.agent.context import ToolContext
from veracode_tools.agent.registry import ToolCategory, ToolDescriptor
from veracode_tools.agent.tools.common import ApplicationArgs, ApplicationSandboxArgs, resolve_target, target_info
from veracode_tools.core.comparison import ScanContext, compare
from veracode_tools.core.errors import ToolkitError
from veracode_tools.core.resolver import resolve_application
from veracode_tools.models.finding import ScanType
from veracode_tools.models.views import sandbox_view, scan_view

logger = logging.getLogger("veracode_tools")


class ScanResultsArgs(ApplicationSandboxArgs):
    scan_type: Optional[ScanType] = Field(default=None, description="Only scans of this type")


async def get_scan_results(args: ScanResultsArgs, context: ToolContext) -> dict:
    app, sandbox = await resolve_target(context, args.app_profile, args.sandbox)
    scan_type = args.scan_type.value if args.scan_type else None
    scans = await context.client.get_scans(app.id, scan_type, sandbox.id if sandbox else None)

    data = {
        **target_info(app, sandbox),
        "scan_type_filter": scan_type,
        "total_scans": len(scans),
        "available_scan_types": sorted({s["scan_type"] for s in scans if s.get("scan_type")}),
        "scans": [scan_view(s) for s in scans],
    }
    if not scans:
        where = f"sandbox '{sandbox.name}'" if sandbox else "the policy context"
        kind = f"{scan_type} scans" if scan_type else "scans"
        data["message"] = f"No {kind} found for '{app.name}' in {where}"
    return data


async def _sandbox_scans(context: ToolContext, app_guid: str) -> tuple[list[dict], list[dict]]:
    """Scans for every sandbox of an application; a failing sandbox is recorded with no scans."""
    entries = []
    errors = []
    for sandbox in await context.client.get_sandboxes(app_guid):
        try:
            scans = await context.client.get_scans(app_guid, sandbox_guid=sandbox.get("guid"))
        except ToolkitError as e:
            logger.warning("Could not list scans for sandbox %s: %s", sandbox.get("name"), e)
            errors.append({"sandbox": sandbox.get("name"), "error": str(e)})
            scans = []
        entries.append({"sandbox": sandbox, "scans": scans})
    return entries, errors


async def get_sandbox_scans(args: ApplicationArgs, context: ToolContext) -> dict:
    app = await resolve_application(args.app_profile, context.client, context.config)
    entries, errors = await _sandbox_scans(context, app.id)
    sandboxes = []
    for entry in entries:
        scan_types = sorted({s["scan_type"] for s in entry["scans"] if s.get("scan_type")})
        sandboxes.append(
            {
                "sandbox": sandbox_view(entry["sandbox"]),
                "scan_count": len(entry["scans"]),
                "scan_types": scan_types,
                "scans": [scan_view(s) for s in entry["scans"]],
            }
        )
    return {
        "application": app.to_dict(),
        "total_sandboxes": len(sandboxes),
        "total_sandbox_scans": sum(s["scan_count"] for s in sandboxes),
        "sandboxes": sandboxes,
        "errors": errors,
    }


async def compare_policy_vs_sandbox_scans(args: ApplicationArgs, context: ToolContext) -> dict:
    app = await resolve_application(args.app_profile, context.client, context.config)
    policy_scans = await context.client.get_scans(app.id)
    entries, errors = await _sandbox_scans(context, app.id)

    policy = ScanContext.from_scans("policy", policy_scans)
    sandboxes = [
        ScanContext.from_scans(e["sandbox"].get("name") or e["sandbox"].get("guid", ""), e["scans"])
        for e in entries
    ]
    comparison = compare(policy, sandboxes)
    return {
        "application": app.to_dict(),
        "policy": {"scan_count": policy.scan_count, "scan_types": sorted(policy.types)},
        "sandboxes": [
            {"name": s.label, "scan_count": s.scan_count, "scan_types": sorted(s.types)}
            for s in sandboxes
        ],
        "comparison": comparison.to_dict(),
        "errors": errors,
    }


def create_scan_tools() -> list[ToolDescriptor]:
    return [
        ToolDescriptor(
            name="get-scan-results",
            description="Scans of an application in the policy context or a sandbox",
            category=ToolCategory.SCAN,
            schema=ScanResultsArgs,
            handler=get_scan_results,
            error_message="Failed to retrieve scan results",
            troubleshooting=("Verify the application and sandbox names or GUIDs",),
        ),
        ToolDescriptor(
            name="get-sandbox-scans",
            description="Scans in every sandbox of an application",
            category=ToolCategory.SCAN,
            schema=ApplicationArgs,
            handler=get_sandbox_scans,
            error_message="Failed to retrieve sandbox scans",
            troubleshooting=("Verify the application name or GUID",),
        ),
        ToolDescriptor(
            name="compare-policy-vs-sandbox-scans",
            description="Compare scan type coverage between the policy context and sandboxes",
            category=ToolCategory.SCAN,
            schema=ApplicationArgs,
            handler=compare_policy_vs_sandbox_scans,
            error_message="Failed to compare policy and sandbox scans",
            troubleshooting=("Verify the application name or GUID",),
        ),
    ]
