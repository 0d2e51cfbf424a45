"""
Provider-agnostic chat session runtime.

The package drives multi-turn conversations against any 'ChatService'
backend: it streams partial responses into complete 'Message' objects,
executes requested tool calls in parallel and loops until the model answers
or the run loop limit is reached.

    from chat_sessions import ChatSession, ChatSessionRequest

    session = ChatSession()
    request = ChatSessionRequest(service=service, model="mistral-large").with_messages(history)
    response = await session.completion(request)
"""

from chat_sessions.llms.base import ChatService, ChatServiceRequest
from chat_sessions.messages.base import Attachment, FinishReason, Function, Kind, Message, Roles, ToolCall
from chat_sessions.sessions.chat_session import ChatSession, ChatSessionRequest, ChatSessionResponse, upsert_message
from chat_sessions.sessions.errors import (
    ChatSessionError,
    MissingMessageError,
    MissingToolCallError,
    MissingToolCallsError,
    ToolArgumentsDecodeError,
)
from chat_sessions.tools.base import Tool, ToolCallResponse, tool_call_handler
from chat_sessions.utils.content_parser import ParseResult, TagSegment, TextSegment, parse_content

__all__ = [
    "Attachment",
    "ChatService",
    "ChatServiceRequest",
    "ChatSession",
    "ChatSessionError",
    "ChatSessionRequest",
    "ChatSessionResponse",
    "FinishReason",
    "Function",
    "Kind",
    "Message",
    "MissingMessageError",
    "MissingToolCallError",
    "MissingToolCallsError",
    "ParseResult",
    "Roles",
    "TagSegment",
    "TextSegment",
    "Tool",
    "ToolArgumentsDecodeError",
    "ToolCall",
    "ToolCallResponse",
    "parse_content",
    "tool_call_handler",
    "upsert_message",
]
