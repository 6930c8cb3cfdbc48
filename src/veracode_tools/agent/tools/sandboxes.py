from veracode_tools.agent.context import ToolContext
from veracode_tools.agent.registry import ToolCategory, ToolDescriptor
from veracode_tools.agent.tools.common import ApplicationArgs, PageArgs
from veracode_tools.core.resolver import resolve_application
from veracode_tools.models.views import sandbox_view


class SandboxListArgs(ApplicationArgs, PageArgs):
    pass


async def get_sandboxes(args: SandboxListArgs, context: ToolContext) -> dict:
    app = await resolve_application(args.app_profile, context.client, context.config)
    sandboxes = await context.client.get_sandboxes(app.id, args.page, args.size)
    return {
        "application": app.to_dict(),
        "total_sandboxes": len(sandboxes),
        "sandboxes": [sandbox_view(s) for s in sandboxes],
    }


async def get_sandbox_summary(args: ApplicationArgs, context: ToolContext) -> dict:
    app = await resolve_application(args.app_profile, context.client, context.config)
    sandboxes = [sandbox_view(s) for s in await context.client.get_sandboxes(app.id)]
    data = {
        "application": app.to_dict(),
        "total_sandboxes": len(sandboxes),
        "auto_recreate_count": sum(1 for s in sandboxes if s["auto_recreate"]),
        "owners": sorted({s["owner"] for s in sandboxes if s["owner"]}),
        "sandboxes": [
            {"name": s["name"], "guid": s["guid"], "owner": s["owner"], "modified": s["modified"]}
            for s in sandboxes
        ],
    }
    if sandboxes:
        latest = max(sandboxes, key=lambda s: s["modified"] or "")
        data["most_recently_modified"] = latest["name"]
    else:
        data["message"] = "No sandboxes found for this application"
    return data


def create_sandbox_tools() -> list[ToolDescriptor]:
    return [
        ToolDescriptor(
            name="get-sandboxes",
            description="List the sandboxes of an application",
            category=ToolCategory.SANDBOX,
            schema=SandboxListArgs,
            handler=get_sandboxes,
            error_message="Failed to retrieve sandboxes",
            troubleshooting=("Verify the application name or GUID",),
        ),
        ToolDescriptor(
            name="get-sandbox-summary",
            description="Short summary of an application's sandboxes and their owners",
            category=ToolCategory.SANDBOX,
            schema=ApplicationArgs,
            handler=get_sandbox_summary,
            error_message="Failed to summarize sandboxes",
            troubleshooting=("Verify the application name or GUID",),
        ),
    ]
