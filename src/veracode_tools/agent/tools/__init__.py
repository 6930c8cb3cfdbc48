"""Tool definitions grouped by area, and the registry factory."""

from veracode_tools.agent.context import ToolContext
from veracode_tools.agent.registry import ToolDescriptor, ToolRegistry
from veracode_tools.agent.tools.applications import create_application_tools
from veracode_tools.agent.tools.findings import create_findings_tools
from veracode_tools.agent.tools.policies import create_policy_tools
from veracode_tools.agent.tools.sandboxes import create_sandbox_tools
from veracode_tools.agent.tools.sca import create_sca_tools
from veracode_tools.agent.tools.scans import create_scan_tools
from veracode_tools.agent.tools.static_analysis import create_static_analysis_tools

TOOL_FACTORIES = [
    create_application_tools,
    create_findings_tools,
    create_static_analysis_tools,
    create_sca_tools,
    create_scan_tools,
    create_sandbox_tools,
    create_policy_tools,
]


def all_tools() -> list[ToolDescriptor]:
    return [tool for factory in TOOL_FACTORIES for tool in factory()]


def build_registry(context: ToolContext) -> ToolRegistry:
    registry = ToolRegistry(context)
    registry.register_all(all_tools())
    return registry


__all__ = ["TOOL_FACTORIES", "all_tools", "build_registry"]
