"""
Multi-turn chat runs with tool calling.

'ChatSession' drives a run: it sends the conversation to the backend, folds
the answer into the history, executes any requested tool calls through the
request's handler, appends the tool answers and asks the backend again. The
loop ends when a round produces no tool calls, when a tool answer asks to
stop, or when 'run_loop_limit' rounds have been made.

Both entry points share the same loop:

    'completion' - waits for the run to finish and returns a
                   'ChatSessionResponse' with every message produced.
    'stream'     - async generator yielding every message update as it
                   happens, including the partially streamed assistant
                   message after each chunk.

A forced tool choice is only sent on the first round. Forcing it again would
make the model call the tool forever and the run would only stop at the loop
limit.
"""

from collections.abc import AsyncGenerator, Sequence
from dataclasses import dataclass, field, replace
from typing import TypeVar

from loguru import logger
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from chat_sessions.config import Settings, get_settings
from chat_sessions.llms.base import ChatService, ChatServiceRequest
from chat_sessions.messages.base import Message
from chat_sessions.sessions.errors import (
    MissingMessageError,
    MissingToolCallError,
    MissingToolCallsError,
    ToolArgumentsDecodeError,
)
from chat_sessions.tools.base import Tool, ToolCallHandler
from chat_sessions.tools.coordinator import process_tool_calls
from chat_sessions.utils.database import generate_uid

T = TypeVar("T")


def upsert_message(messages: Sequence[Message], message: Message) -> list[Message]:
    """Replace the first message with the same id, or append. Returns a new list."""
    updated = list(messages)
    for index, existing in enumerate(updated):
        if existing.id == message.id:
            updated[index] = message
            return updated
    updated.append(message)
    return updated


@dataclass(frozen=True)
class ChatSessionRequest:
    """
    Everything a run needs, fixed for its whole duration.

    Attributes:
        service: The backend to talk to.
        model: Model identifier passed through to the backend.
        tool_handler: Called for every tool call the model makes. Without a
            handler the run stops after the first round, even if the model
            asked for tools.
        messages: The conversation so far.
        tools: Tools the model may call.
        tool: Tool the model is forced to call on the first round.
        temperature: Optional sampling temperature forwarded to the backend.
        run_loop_limit: Maximum number of backend rounds. 'None' uses
            'Settings.run_loop_limit'.
    """

    service: ChatService
    model: str
    tool_handler: ToolCallHandler | None = None
    messages: tuple[Message, ...] = ()
    tools: tuple[Tool, ...] = ()
    tool: Tool | None = None
    temperature: float | None = None
    run_loop_limit: int | None = None

    def __post_init__(self) -> None:
        if self.run_loop_limit is not None and self.run_loop_limit < 1:
            raise ValueError(f"run_loop_limit must be at least 1, got {self.run_loop_limit}")

    def with_messages(self, messages: Sequence[Message]) -> "ChatSessionRequest":
        return replace(self, messages=tuple(messages))

    def with_tools(self, tools: Sequence[Tool]) -> "ChatSessionRequest":
        return replace(self, tools=tuple(tools))

    def with_tool(self, tool: Tool | None) -> "ChatSessionRequest":
        """Force 'tool' on the first round and make it available. 'None' clears the forced choice only."""
        if tool is None:
            return replace(self, tool=None)
        return replace(self, tool=tool, tools=(*self.tools, tool))


class ChatSessionResponse(BaseModel):
    """
    The messages produced by one run, without the seed history.

    'truncated' is set when the run hit its loop limit while tools still asked
    to continue. The run ends quietly in that case, this flag is the only
    trace of it.
    """

    messages: list[Message] = Field(default_factory=list)
    run_id: str | None = None
    truncated: bool = False

    def extract_tool(self, name: str, type_: type[T]) -> T:
        """
        Decode the arguments of the tool call 'name' on the last message into 'type_'.

        Typical use is structured output: force a tool with 'with_tool', run
        'completion', then read its arguments as a pydantic model.
        """
        if not self.messages:
            raise MissingMessageError("The response has no messages")
        message = self.messages[-1]
        if not message.tool_calls:
            raise MissingToolCallsError(f"Message {message.id} has no tool calls")
        tool_call = next((call for call in message.tool_calls if call.function.name == name), None)
        if tool_call is None:
            raise MissingToolCallError(name)
        try:
            return TypeAdapter(type_).validate_json(tool_call.function.arguments)
        except ValidationError as exc:
            raise ToolArgumentsDecodeError(f"Arguments of tool call {name!r} could not be decoded") from exc


@dataclass
class _RunState:
    run_id: str = field(default_factory=generate_uid)
    rounds: int = 0
    truncated: bool = False


class ChatSession:
    """
    Runs chat requests to completion.

    The session holds no per-run state, one instance can serve any number of
    concurrent runs.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    async def completion(self, request: ChatSessionRequest) -> ChatSessionResponse:
        state = _RunState()
        messages: list[Message] = []
        async for message in self._run(request, state, streaming=False):
            messages = upsert_message(messages, message)
        return ChatSessionResponse(messages=messages, run_id=state.run_id, truncated=state.truncated)

    async def stream(self, request: ChatSessionRequest) -> AsyncGenerator[Message, None]:
        """
        Yield every message update of the run as it happens.

        Truncation at the loop limit cannot be reported through the stream, it
        is only logged as a warning. Use 'completion' when the 'truncated' flag
        matters.
        """
        state = _RunState()
        async for message in self._run(request, state, streaming=True):
            yield message

    async def _run(
        self, request: ChatSessionRequest, state: _RunState, streaming: bool
    ) -> AsyncGenerator[Message, None]:
        run_loop_limit = request.run_loop_limit if request.run_loop_limit is not None else self.settings.run_loop_limit
        messages = list(request.messages)
        should_continue = True

        while should_continue and state.rounds < run_loop_limit:
            service_request = ChatServiceRequest(
                model=request.model,
                messages=tuple(messages),
                tools=request.tools,
                tool_choice=request.tool if state.rounds == 0 else None,
                temperature=request.temperature,
            )
            logger.debug(
                f"Run {state.run_id}: round {state.rounds} with {len(messages)} messages"
                f" (forced tool: {service_request.tool_choice.name if service_request.tool_choice else None})"
            )

            message: Message | None = None
            if streaming:
                async for delta in request.service.generate_stream(service_request):
                    message = delta if message is None else message.apply(delta)
                    message = message.model_copy(update={"run_id": state.run_id})
                    messages = upsert_message(messages, message)
                    yield message
            else:
                message = await request.service.generate(service_request)
                message = message.model_copy(update={"run_id": state.run_id})
                messages = upsert_message(messages, message)
                yield message

            state.rounds += 1
            if request.tool_handler is None or message is None:
                break

            tool_messages, should_continue = await process_tool_calls(message, request.tool_handler)
            for tool_message in tool_messages:
                messages = upsert_message(messages, tool_message)
                yield tool_message

            if should_continue and state.rounds >= run_loop_limit:
                state.truncated = True
                logger.warning(f"Run {state.run_id} stopped at the loop limit of {run_loop_limit} rounds")

        logger.info(f"Run {state.run_id} finished after {state.rounds} round(s)")
