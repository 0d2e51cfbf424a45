"""Shared test helpers: scripted backends, tools and message builders."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from typing import Any

from chat_sessions.llms.base import ChatService, ChatServiceRequest
from chat_sessions.messages.base import FinishReason, Function, Message, Roles, ToolCall
from chat_sessions.tools.base import Tool


def assistant(content: str | None = None, **kwargs: Any) -> Message:
    return Message(role=Roles.ASSISTANT, content=content, **kwargs)


def tool_call(name: str, arguments: str = "{}", call_id: str = "call_1") -> ToolCall:
    return ToolCall(id=call_id, function=Function(name=name, arguments=arguments))


def assistant_calling(*calls: ToolCall) -> Message:
    return Message(role=Roles.ASSISTANT, tool_calls=list(calls), finish_reason=FinishReason.TOOL_CALLS)


class ScriptedService(ChatService):
    """Backend answering from a script.

    'rounds' is either a list (one list of deltas per round, the last round
    repeats) or a callable building the deltas for a round index. 'generate'
    folds the deltas into one message, 'generate_stream' yields them as is.
    """

    def __init__(self, rounds: list[list[Message]] | Callable[[int], list[Message]]) -> None:
        self._rounds = rounds
        self.requests: list[ChatServiceRequest] = []

    def _next_round(self, request: ChatServiceRequest) -> list[Message]:
        index = len(self.requests)
        self.requests.append(request)
        if callable(self._rounds):
            return self._rounds(index)
        return self._rounds[min(index, len(self._rounds) - 1)]

    async def generate(self, request: ChatServiceRequest) -> Message:
        deltas = self._next_round(request)
        message = deltas[0]
        for delta in deltas[1:]:
            message = message.apply(delta)
        return message

    async def generate_stream(self, request: ChatServiceRequest) -> AsyncGenerator[Message, None]:
        for delta in self._next_round(request):
            yield delta


class FailingService(ChatService):
    async def generate(self, request: ChatServiceRequest) -> Message:
        raise ConnectionError("backend unavailable")

    async def generate_stream(self, request: ChatServiceRequest) -> AsyncGenerator[Message, None]:
        yield assistant("partial")
        raise ConnectionError("stream dropped")


class EchoTool(Tool):
    name = "echo"
    description = "Echo the given text back."
    parameters = {
        "type": "object",
        "properties": {"text": {"type": "string"}},
        "required": ["text"],
    }

    async def call(self, args: dict[str, Any]) -> dict[str, Any]:
        return {"echo": args["text"]}


class SubmitTool(Tool):
    name = "submit"
    description = "Submit the final answer and end the run."
    parameters = {"type": "object", "properties": {"answer": {"type": "string"}}}
    stops_run = True

    async def call(self, args: dict[str, Any]) -> dict[str, Any]:
        return {"submitted": True}
