"""Natural-language requests planned by a text generator and run on the router."""

import json
import logging
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError

from compass_bridge.core.mcp.exceptions import OrchestrationError
from compass_bridge.core.mcp.protocols import TextGenerator
from compass_bridge.core.mcp.result import Ok
from compass_bridge.utils.parsing import extract_json

from .router import CapabilityRouter

logger = logging.getLogger(__name__)

DEFAULT_PLAN_RESPONSE = "Based on your request, I'll help you with that task."


class PlannedAction(BaseModel):
    type: Literal["tool_call", "resource_request"]
    server: str
    tool: str | None = None
    uri: str | None = None
    arguments: dict[str, Any] = Field(default_factory=dict)


class ExecutionPlan(BaseModel):
    response: str
    actions: list[PlannedAction] = Field(default_factory=list)


def parse_plan(raw: str) -> ExecutionPlan:
    """Read an execution plan from model output.

    Output that is not a plan object becomes a plan with ``raw`` as the
    response and no actions. Individual malformed actions are dropped.
    """
    data = extract_json(raw)
    if not isinstance(data, dict) or not isinstance(data.get("response"), str):
        return ExecutionPlan(response=raw, actions=[])

    actions = []
    for item in data.get("actions") or []:
        try:
            actions.append(PlannedAction.model_validate(item))
        except ValidationError as e:
            logger.warning(
                f"Dropping malformed planned action {item!r}: {e.error_count()} errors"
            )
    return ExecutionPlan(response=data["response"], actions=actions)


class NaturalLanguageOrchestrator:
    """Turns a free-text request into tool calls and resource reads."""

    def __init__(self, router: CapabilityRouter, generator: TextGenerator):
        self.router = router
        self.generator = generator

    async def process(
        self, prompt: str, context: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Plan, execute and summarize a request.

        Returns:
            ``{response, toolCalls, resourcesUsed, failures}``

        Raises:
            OrchestrationError: If the plan cannot be produced
        """
        tools = await self.router.list_all_tools()
        resources = await self.router.list_all_resources()
        system_prompt = self.build_system_prompt(tools, resources)

        user_prompt = prompt
        if context:
            user_prompt += f"\n\nContext:\n{json.dumps(context, indent=2, default=str)}"

        try:
            raw_plan = await self.generator.generate(
                user_prompt,
                system=system_prompt,
                fallback=json.dumps({"response": DEFAULT_PLAN_RESPONSE, "actions": []}),
            )
        except Exception as e:
            raise OrchestrationError(f"Planning failed: {e}") from e

        plan = parse_plan(raw_plan)
        logger.info(f"Executing plan with {len(plan.actions)} actions")

        tool_calls: list[dict[str, Any]] = []
        resources_used: list[dict[str, Any]] = []
        failures: list[dict[str, Any]] = []

        for action in plan.actions:
            if action.type == "tool_call":
                if not action.tool:
                    continue
                target = action.tool
                outcome = await self.router.try_invoke(
                    action.server, action.tool, action.arguments
                )
                if isinstance(outcome, Ok):
                    tool_calls.append(
                        {
                            "server": action.server,
                            "tool": action.tool,
                            "arguments": action.arguments,
                            "result": outcome.value,
                        }
                    )
                    continue
            else:
                if not action.uri:
                    continue
                target = action.uri
                outcome = await self.router.try_read_resource(action.server, action.uri)
                if isinstance(outcome, Ok):
                    resources_used.append(
                        {"server": action.server, "uri": action.uri, "data": outcome.value}
                    )
                    continue

            logger.warning(
                f"{action.type} {action.server}/{target} failed: {outcome.message}"
            )
            failures.append(
                {
                    "type": action.type,
                    "server": action.server,
                    "target": target,
                    "kind": str(outcome.kind),
                    "message": outcome.message,
                }
            )

        return {
            "response": self.summarize(plan.response, tool_calls, resources_used, failures),
            "toolCalls": tool_calls,
            "resourcesUsed": resources_used,
            "failures": failures,
        }

    @staticmethod
    def build_system_prompt(
        tools: list[dict[str, Any]], resources: list[dict[str, Any]]
    ) -> str:
        lines = [
            "You are an AI assistant with access to the following tools and resources "
            "through capability providers:",
            "",
            "AVAILABLE TOOLS:",
        ]
        for entry in tools:
            lines.append(f"\nServer: {entry['providerName']}")
            for tool in entry["tools"]:
                lines.append(f"- {tool.name}: {tool.description}")

        lines.append("\nAVAILABLE RESOURCES:")
        for entry in resources:
            lines.append(f"\nServer: {entry['providerName']}")
            for resource in entry["resources"]:
                lines.append(f"- {resource.uri}: {resource.description or 'No description'}")

        lines.append(
            """
When processing user requests, respond with a JSON object containing:
{
  "response": "Your natural language response to the user",
  "actions": [
    {
      "type": "tool_call" | "resource_request",
      "server": "server_name",
      "tool": "tool_name" (if tool_call),
      "uri": "resource_uri" (if resource_request),
      "arguments": {} (if tool_call)
    }
  ]
}

Always provide helpful, detailed responses while efficiently using the available tools and resources."""
        )
        return "\n".join(lines)

    @staticmethod
    def summarize(
        planned_response: str,
        tool_calls: list[dict[str, Any]],
        resources_used: list[dict[str, Any]],
        failures: list[dict[str, Any]],
    ) -> str:
        if not (tool_calls or resources_used or failures):
            return planned_response

        parts = [planned_response, "\n\nExecution Summary:"]
        if tool_calls:
            parts.append("\n\nTools used:")
            for call in tool_calls:
                parts.append(
                    f"\n- {call['server']}/{call['tool']}: "
                    f"{json.dumps(call['result'], default=str)}"
                )
        if resources_used:
            parts.append("\n\nResources accessed:")
            for resource in resources_used:
                parts.append(f"\n- {resource['server']}/{resource['uri']}")
        if failures:
            parts.append("\n\nFailed actions:")
            for failure in failures:
                parts.append(
                    f"\n- {failure['server']}/{failure['target']} "
                    f"({failure['kind']}): {failure['message']}"
                )
        return "".join(parts)
