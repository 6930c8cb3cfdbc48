from typing import Literal, Optional

from pydantic import Field, field_validator

from veracode_tools.agent.context import ToolContext
from veracode_tools.agent.registry import ToolCategory, ToolDescriptor
from veracode_tools.agent.tools.common import PageArgs, Reference, ToolArgs
from veracode_tools.core.errors import NotFoundError
from veracode_tools.utils.validators import is_identifier


class ListPoliciesArgs(PageArgs):
    category: Optional[Literal["APPLICATION", "COMPONENT"]] = None
    name: Optional[str] = Field(default=None, description="Filter by policy name")
    name_exact: Optional[bool] = None
    public_policy: Optional[bool] = None
    vendor_policy: Optional[bool] = None


class PolicyArgs(ToolArgs):
    policy_guid: Reference = Field(description="Policy GUID")

    @field_validator("policy_guid")
    @classmethod
    def _must_be_guid(cls, value: str) -> str:
        if not is_identifier(value):
            raise ValueError("policy_guid must be a GUID")
        return value


async def get_policies(args: ListPoliciesArgs, context: ToolContext) -> dict:
    params = args.model_dump(exclude_none=True)
    data = await context.client.get_policies(params)
    policies = (data.get("_embedded") or {}).get("policy_versions") or []
    return {
        "policies": [
            {
                "guid": p.get("guid"),
                "name": p.get("name"),
                "type": p.get("type"),
                "version": p.get("version"),
                "description": p.get("description"),
                "vendor_policy": p.get("vendor_policy", False),
            }
            for p in policies
        ],
        "count": len(policies),
        "page": data.get("page") or {},
    }


async def get_policy(args: PolicyArgs, context: ToolContext) -> dict:
    policy = await context.client.get_policy(args.policy_guid)
    if policy is None:
        raise NotFoundError("policy", args.policy_guid)
    return {"policy": policy}


async def get_policy_settings(args: dict, context: ToolContext) -> dict:
    return {"settings": await context.client.get_policy_settings()}


def create_policy_tools() -> list[ToolDescriptor]:
    return [
        ToolDescriptor(
            name="get-policies",
            description="List security policies",
            category=ToolCategory.POLICY,
            schema=ListPoliciesArgs,
            handler=get_policies,
            error_message="Failed to retrieve policies",
        ),
        ToolDescriptor(
            name="get-policy",
            description="Latest version of one policy, including rules and grace periods",
            category=ToolCategory.POLICY,
            schema=PolicyArgs,
            handler=get_policy,
            error_message="Failed to retrieve policy",
            troubleshooting=("Use get-policies to find the policy GUID",),
        ),
        ToolDescriptor(
            name="get-policy-settings",
            description="Default policy assigned to each business criticality level",
            category=ToolCategory.POLICY,
            handler=get_policy_settings,
            error_message="Failed to retrieve policy settings",
        ),
    ]
