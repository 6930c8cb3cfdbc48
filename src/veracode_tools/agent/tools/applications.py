from typing import Literal, Optional

from pydantic import Field

from veracode_tools.agent.context import ToolContext
from veracode_tools.agent.registry import ToolCategory, ToolDescriptor
from veracode_tools.agent.tools.common import ApplicationArgs, PageArgs, Reference, ToolArgs
from veracode_tools.core.resolver import resolve_application
from veracode_tools.models.finding import ScanType
from veracode_tools.models.views import application_view


class ListApplicationsArgs(PageArgs):
    name: Optional[str] = Field(default=None, description="Filter by (partial) application name")
    tag: Optional[str] = Field(default=None, description="Filter by tag")
    team: Optional[str] = Field(default=None, description="Filter by team name")
    business_unit: Optional[str] = Field(default=None, description="Filter by business unit name")
    policy_compliance: Optional[
        Literal["PASSED", "DID_NOT_PASS", "CONDITIONAL_PASS", "NOT_ASSESSED"]
    ] = Field(default=None, description="Filter by policy compliance status")
    scan_type: Optional[ScanType] = Field(default=None, description="Only applications with this scan type")
    modified_after: Optional[str] = Field(default=None, description="ISO date (yyyy-MM-dd)")


class SearchApplicationsArgs(ToolArgs):
    name: Reference = Field(description="Application name or part of it")


async def list_applications(args: ListApplicationsArgs, context: ToolContext) -> dict:
    params = args.model_dump(exclude_none=True, mode="json")
    apps = await context.client.get_applications(params)
    return {
        "applications": [application_view(a) for a in apps],
        "count": len(apps),
        "filters_applied": params,
    }


async def search_applications(args: SearchApplicationsArgs, context: ToolContext) -> dict:
    apps = await context.client.search_applications(args.name)
    wanted = args.name.lower()
    results = []
    for app in apps:
        view = application_view(app)
        view["exact_match"] = (view["name"] or "").lower() == wanted
        results.append(view)
    data = {"search_term": args.name, "applications": results, "count": len(results)}
    if not results:
        data["message"] = f"No applications found matching '{args.name}'"
    return data


async def get_application_details(args: ApplicationArgs, context: ToolContext) -> dict:
    app = await resolve_application(args.app_profile, context.client, context.config)
    details = app.details
    if app.resolved_from_name:
        # search results omit some profile fields
        details = await context.client.get_application(app.id) or details
    return {"resolution": app.to_dict(), "application": application_view(details, detailed=True)}


def create_application_tools() -> list[ToolDescriptor]:
    return [
        ToolDescriptor(
            name="get-application-profiles",
            description="List application profiles, optionally filtered by name, tag, team, "
            "business unit, compliance status or scan type",
            category=ToolCategory.APPLICATION,
            schema=ListApplicationsArgs,
            handler=list_applications,
            error_message="Failed to retrieve application profiles",
            troubleshooting=("Check API credentials and permissions", "Relax or remove filters"),
        ),
        ToolDescriptor(
            name="search-application-profiles",
            description="Search application profiles by name (partial, case-insensitive)",
            category=ToolCategory.APPLICATION,
            schema=SearchApplicationsArgs,
            handler=search_applications,
            error_message="Failed to search application profiles",
            troubleshooting=("Try a shorter part of the name",),
        ),
        ToolDescriptor(
            name="get-application-profile-details",
            description="Full details of one application profile, given its GUID or name",
            category=ToolCategory.APPLICATION,
            schema=ApplicationArgs,
            handler=get_application_details,
            error_message="Failed to retrieve application details",
            troubleshooting=(
                "Verify the application GUID or name",
                "Use search-application-profiles to find the exact name",
            ),
        ),
    ]
