"""Tests for the tool registry and response envelope."""

from unittest.mock import AsyncMock

import pytest
from pydantic import BaseModel, Field

from veracode_tools.agent.context import ToolContext
from veracode_tools.agent.registry import (
    ToolCategory,
    ToolDescriptor,
    ToolRegistry,
    ToolResponse,
)
from veracode_tools.agent.tools import all_tools
from veracode_tools.core.errors import NotFoundError, UnknownToolError


class EchoArgs(BaseModel):
    app_profile: str = Field(min_length=1)
    size: int = Field(default=10, ge=1, le=500)


def _registry(handler, schema=EchoArgs):
    registry = ToolRegistry(ToolContext(client=None, config={}))
    registry.register(
        ToolDescriptor(
            name="echo",
            description="Echo arguments",
            category=ToolCategory.APPLICATION,
            schema=schema,
            handler=handler,
            error_message="Failed to echo",
            troubleshooting=("Try again",),
        )
    )
    return registry


@pytest.mark.asyncio
async def test_unknown_tool_raises():
    registry = _registry(AsyncMock(return_value={}))
    with pytest.raises(UnknownToolError, match="Tool not found: nope"):
        await registry.execute("nope", {})


@pytest.mark.asyncio
async def test_success_wraps_handler_data():
    handler = AsyncMock(return_value={"ok": 1})
    registry = _registry(handler)
    response = await registry.execute("echo", {"app_profile": "MyApp"})
    assert response.to_dict() == {"success": True, "data": {"ok": 1}}
    args, context = handler.await_args.args
    assert isinstance(args, EchoArgs)
    assert args.size == 10
    assert context is registry.context


@pytest.mark.asyncio
async def test_invalid_arguments_never_reach_handler():
    handler = AsyncMock(return_value={})
    registry = _registry(handler)
    response = await registry.execute("echo", {"size": 900})
    assert response.success is False
    assert response.error == "Invalid arguments provided"
    fields = {e["field"] for e in response.data["validation_errors"]}
    assert fields == {"app_profile", "size"}
    assert len(response.data["troubleshooting"]) == 3
    handler.assert_not_awaited()


@pytest.mark.asyncio
async def test_none_arguments_validated_as_empty():
    registry = _registry(AsyncMock(return_value={}))
    response = await registry.execute("echo", None)
    assert response.success is False
    assert response.error == "Invalid arguments provided"


@pytest.mark.asyncio
async def test_handler_exception_becomes_failure_envelope():
    registry = _registry(AsyncMock(side_effect=RuntimeError("boom")))
    response = await registry.execute("echo", {"app_profile": "MyApp"})
    assert response.success is False
    assert response.error == "Failed to echo: boom"
    assert response.data["troubleshooting"] == ["Try again"]
    assert response.data["error_type"] == "RuntimeError"


@pytest.mark.asyncio
async def test_not_found_carries_suggestions():
    error = NotFoundError("sandbox", "prod", ["dev", "qa"])
    registry = _registry(AsyncMock(side_effect=error))
    response = await registry.execute("echo", {"app_profile": "MyApp"})
    assert response.data["suggestions"] == ["dev", "qa"]
    assert "No sandbox found matching 'prod'" in response.error


@pytest.mark.asyncio
async def test_non_mapping_result_is_a_failure():
    registry = _registry(AsyncMock(return_value=None))
    response = await registry.execute("echo", {"app_profile": "MyApp"})
    assert response.success is False


@pytest.mark.asyncio
async def test_tool_without_schema_receives_raw_args():
    handler = AsyncMock(return_value={"seen": True})
    registry = _registry(handler, schema=None)
    response = await registry.execute("echo", {"anything": 1})
    assert response.success is True
    assert handler.await_args.args[0] == {"anything": 1}


def test_duplicate_registration_rejected():
    registry = _registry(AsyncMock())
    with pytest.raises(ValueError):
        registry.register(registry.get("echo"))


def test_response_omits_unset_fields():
    assert ToolResponse(success=False, error="x").to_dict() == {"success": False, "error": "x"}


def test_registered_tool_catalogue(registry):
    expected = {
        "get-application-profiles",
        "search-application-profiles",
        "get-application-profile-details",
        "get-findings",
        "get-policy-compliance",
        "get-static-flaw-info",
        "get-sca-results",
        "get-sca-summary",
        "get-sca-apps",
        "get-scan-results",
        "get-sandbox-scans",
        "compare-policy-vs-sandbox-scans",
        "get-sandboxes",
        "get-sandbox-summary",
        "get-policies",
        "get-policy",
        "get-policy-settings",
    }
    assert set(registry.names()) == expected
    assert len(registry) == len(all_tools())
    assert registry.category_summary()["sca"] == 3
    assert {t.name for t in registry.by_category(ToolCategory.SANDBOX)} == {"get-sandboxes", "get-sandbox-summary"}


def test_definitions_expose_argument_schema(registry):
    definitions = {d["name"]: d for d in registry.definitions()}
    findings = definitions["get-findings"]
    assert findings["category"] == "findings"
    assert "app_profile" in findings["input_schema"]["properties"]
    assert "app_profile" in findings["input_schema"]["required"]
    assert definitions["get-policy-settings"]["input_schema"] == {"type": "object"}
