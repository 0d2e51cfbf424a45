"""Errors raised when reading structured results out of a 'ChatSessionResponse'."""


class ChatSessionError(Exception):
    """Base class for chat session failures surfaced to the caller."""


class MissingMessageError(ChatSessionError):
    """The response holds no messages."""


class MissingToolCallsError(ChatSessionError):
    """The trailing message carries no tool calls."""


class MissingToolCallError(ChatSessionError):
    """No tool call on the trailing message matches the requested function name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"No tool call named {name!r} in the last message")
        self.name = name


class ToolArgumentsDecodeError(ChatSessionError):
    """The tool call arguments could not be decoded into the requested type."""
