"""
Backend abstraction consumed by 'ChatSession'.

Concrete backends (OpenAI, Mistral, Ollama, ...) adapt their API client to the
'ChatService' interface. Request encoding, authentication and transport
retries live entirely in those implementations; the session only sees
'Message' objects going in and coming out.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator, Sequence
from dataclasses import dataclass, field

from chat_sessions.messages.base import Message
from chat_sessions.tools.base import Tool, ToolDescription


@dataclass(frozen=True)
class ChatServiceRequest:
    """
    A single request to a backend.

    'tool_choice' forces the model to call that tool. 'ChatSession' only sets it
    on the first round of a run.
    """

    model: str
    messages: Sequence[Message]
    tools: Sequence[Tool] = field(default_factory=tuple)
    tool_choice: Tool | None = None
    temperature: float | None = None

    def tool_descriptions(self) -> list[ToolDescription]:
        """The descriptors a service sends as the request's 'tools' list."""
        return [tool.json_schema() for tool in self.tools]


class ChatService(ABC):
    """
    Abstract base class for model backends.

    'generate' returns one complete message. 'generate_stream' yields deltas of
    a single message: every chunk carries only the new content and tool call
    argument fragments, and the caller folds them together with
    'Message.apply'. Backends that cannot stream may keep the default
    implementation, which yields the complete message once.
    """

    @abstractmethod
    async def generate(self, request: ChatServiceRequest) -> Message:
        """Return a single complete response for the given request."""
        pass

    async def generate_stream(self, request: ChatServiceRequest) -> AsyncGenerator[Message, None]:
        """Yield response deltas as they arrive from the model."""
        yield await self.generate(request)
