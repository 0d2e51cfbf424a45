"""
Parallel execution of the tool calls requested in one assistant message.

Every call is dispatched concurrently with 'asyncio.gather' and the
coordinator waits for all of them before returning. Handlers never touch the
conversation history; they return messages and the session merges them once
the whole batch is done.
"""

import asyncio

from loguru import logger

from chat_sessions.messages.base import Message, Roles, ToolCall
from chat_sessions.tools.base import ToolCallHandler, ToolCallResponse

UNKNOWN_TOOL_CONTENT = "Unknown tool."
UNKNOWN_TOOL_LABEL = "Unknown tool"


def unknown_tool_response(tool_call: ToolCall) -> ToolCallResponse:
    message = Message(
        role=Roles.TOOL,
        content=UNKNOWN_TOOL_CONTENT,
        tool_call_id=tool_call.id,
        name=tool_call.function.name,
        metadata={"label": UNKNOWN_TOOL_LABEL},
    )
    return ToolCallResponse(messages=[message], should_continue=False)


async def _invoke(handler: ToolCallHandler, tool_call: ToolCall) -> ToolCallResponse:
    try:
        return await handler(tool_call)
    except Exception as exc:
        logger.warning(f"Tool call {tool_call.id} ({tool_call.function.name!r}) failed: {exc!r}")
        return unknown_tool_response(tool_call)


async def process_tool_calls(message: Message, handler: ToolCallHandler | None) -> tuple[list[Message], bool]:
    """
    Run every tool call in 'message' through 'handler'.

    Returns the tool messages, stamped with the run id of 'message', and
    whether the run should continue. A single response with
    'should_continue = False' (including a failed handler) stops the run.
    Without a handler or without tool calls there is nothing to do and the run
    stops.
    """
    if handler is None or not message.tool_calls:
        return [], False

    logger.debug(f"Dispatching {len(message.tool_calls)} tool call(s) for message {message.id}")
    responses: list[ToolCallResponse] = list(
        await asyncio.gather(*(_invoke(handler, tool_call) for tool_call in message.tool_calls))
    )

    messages = [
        tool_message.model_copy(update={"run_id": message.run_id})
        for response in responses
        for tool_message in response.messages
    ]
    should_continue = all(response.should_continue for response in responses)
    return messages, should_continue
