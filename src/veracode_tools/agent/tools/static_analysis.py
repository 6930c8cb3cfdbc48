from pydantic import Field

from veracode_tools.agent.context import ToolContext
from veracode_tools.agent.registry import ToolCategory, ToolDescriptor
from veracode_tools.agent.tools.common import ApplicationSandboxArgs, resolve_target, target_info
from veracode_tools.core.errors import NotFoundError


class StaticFlawArgs(ApplicationSandboxArgs):
    issue_id: int = Field(ge=1, description="Issue (flaw) id of a STATIC finding")


async def get_static_flaw_info(args: StaticFlawArgs, context: ToolContext) -> dict:
    app, sandbox = await resolve_target(context, args.app_profile, args.sandbox)
    info = await context.client.get_static_flaw_info(
        app.id, args.issue_id, sandbox.id if sandbox else None
    )
    if info is None:
        raise NotFoundError("static flaw", str(args.issue_id))

    data_paths = info.get("data_paths") or []
    return {
        **target_info(app, sandbox),
        "issue_id": args.issue_id,
        "issue_summary": info.get("issue_summary") or {},
        "data_path_count": len(data_paths),
        "data_paths": data_paths,
    }


def create_static_analysis_tools() -> list[ToolDescriptor]:
    return [
        ToolDescriptor(
            name="get-static-flaw-info",
            description="Data paths and call stacks for one static analysis flaw",
            category=ToolCategory.STATIC_ANALYSIS,
            schema=StaticFlawArgs,
            handler=get_static_flaw_info,
            error_message="Failed to retrieve static flaw info",
            troubleshooting=(
                "Make sure issue_id belongs to a STATIC finding (see get-findings)",
                "Pass the sandbox when the flaw was found in a sandbox scan",
                "Data path details are not available for every flaw",
            ),
        ),
    ]
