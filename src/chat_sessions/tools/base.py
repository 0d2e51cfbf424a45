"""
Tool abstractions for model function calling.

A 'Tool' exposes a JSON schema via 'json_schema()' that services pass to the
backend, and a 'call()' coroutine that executes the action when the model
requests it. 'ChatSession' itself never calls tools directly: it hands every
requested 'ToolCall' to a 'ToolCallHandler'. 'tool_call_handler()' builds such
a handler from a list of tools, but callers are free to write their own.

A tool with 'stops_run = True' ends the session run after it has been
answered, which is how terminal actions (e.g. "submit the final report")
prevent further model rounds.
"""

import json
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Literal, TypedDict

from pydantic import BaseModel, Field

from chat_sessions.messages.base import Message, Roles, ToolCall


class FunctionDescription(TypedDict):
    """The callable part of a tool as the model sees it: its name, what it does and its argument schema."""

    name: str
    description: str
    parameters: dict[str, Any]


class ToolDescription(TypedDict):
    """Wire shape of one entry in a backend request's 'tools' list."""

    type: Literal["function"]
    function: FunctionDescription


class ToolCallResponse(BaseModel):
    """What a handler returns for one tool call.

    'should_continue = False' asks the session to stop after this round.
    """

    messages: list[Message] = Field(default_factory=list)
    should_continue: bool = True


ToolCallHandler = Callable[[ToolCall], Awaitable[ToolCallResponse]]


class Tool(ABC):
    """
    A function the model may ask a session to run.

    The class attributes double as the model-facing definition: services read
    them through 'ChatServiceRequest.tool_descriptions()', and
    'tool_call_handler()' matches incoming calls against 'name'. Set
    'stops_run' on terminal actions so that answering the call ends the run.
    """

    name: str
    description: str
    parameters: dict[str, Any]
    stops_run: bool = False

    @abstractmethod
    async def call(self, args: dict[str, Any]) -> dict[str, Any]:
        """Execute the tool with the decoded model arguments and return a JSON-serialisable result."""
        pass

    def json_schema(self) -> ToolDescription:
        """Describe this tool for a backend request. 'parameters' is passed through as the JSON schema of the arguments."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


def build_tool_answer(tool_call: ToolCall, result: dict[str, Any]) -> Message:
    return Message(
        role=Roles.TOOL,
        content=json.dumps(result),
        tool_call_id=tool_call.id,
        name=tool_call.function.name,
    )


def tool_call_handler(tools: Sequence[Tool]) -> ToolCallHandler:
    """
    Build a handler that dispatches tool calls to 'tools' by function name.

    Unknown names raise 'KeyError' and malformed arguments raise
    'json.JSONDecodeError'; the coordinator turns either into an
    "Unknown tool." answer.
    """
    available_tools = {tool.name: tool for tool in tools}

    async def handle(tool_call: ToolCall) -> ToolCallResponse:
        tool = available_tools[tool_call.function.name]
        args = json.loads(tool_call.function.arguments) if tool_call.function.arguments else {}
        result = await tool.call(args)
        return ToolCallResponse(
            messages=[build_tool_answer(tool_call, result)],
            should_continue=not tool.stops_run,
        )

    return handle
