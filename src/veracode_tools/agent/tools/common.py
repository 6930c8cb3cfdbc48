"""Argument types and resolution helpers shared by the tool modules."""

from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from veracode_tools.agent.context import ToolContext
from veracode_tools.core.resolver import ResolvedEntity, resolve_application, resolve_sandbox

Reference = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class ToolArgs(BaseModel):
    model_config = ConfigDict(extra="ignore")


class ApplicationArgs(ToolArgs):
    app_profile: Reference = Field(description="Application profile GUID or name")


class ApplicationSandboxArgs(ApplicationArgs):
    sandbox: Optional[Reference] = Field(
        default=None, description="Sandbox GUID or name; omit for the policy context"
    )


class PageArgs(ToolArgs):
    page: Optional[int] = Field(default=None, ge=0, description="Page number (0-based)")
    size: Optional[int] = Field(default=None, ge=1, le=500, description="Page size (1-500)")


async def resolve_target(
    context: ToolContext, app_ref: str, sandbox_ref: Optional[str] = None
) -> tuple[ResolvedEntity, Optional[ResolvedEntity]]:
    """Resolve an application and, when given, one of its sandboxes."""
    app = await resolve_application(app_ref, context.client, context.config)
    sandbox = None
    if sandbox_ref:
        sandbox = await resolve_sandbox(sandbox_ref, app.id, context.client, context.config)
    return app, sandbox


def target_info(app: ResolvedEntity, sandbox: Optional[ResolvedEntity] = None) -> dict[str, Any]:
    info: dict[str, Any] = {"application": app.to_dict(), "context": "SANDBOX" if sandbox else "POLICY"}
    if sandbox:
        info["sandbox"] = sandbox.to_dict()
    return info
