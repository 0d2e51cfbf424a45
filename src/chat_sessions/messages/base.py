"""
Message data models and merge semantics.

'Message' is the single, backend-agnostic representation of a conversational
turn. It is treated as immutable by convention: every update goes through
'Message.apply', which returns a new message instead of mutating the existing
one. This lets streaming backends emit small deltas (a few tokens, a fragment
of a tool call's JSON arguments) that are folded into the running message
chunk by chunk.

Two messages represent the same logical turn when their 'id' matches. The
'(id, modified)' pair is exposed as 'Message.identity' for cheap "has this
message changed" checks; pydantic's structural '==' is left untouched.
"""

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator

from chat_sessions.config import get_settings
from chat_sessions.utils.database import generate_uid
from chat_sessions.utils.time import advance, as_utc, get_current_datetime


class Roles(StrEnum):
    """Conversation roles as used by OpenAI-compatible chat APIs."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class Kind(StrEnum):
    """Controls where a message travels: to the backend, to the UI, or both."""

    # Sent to the backend, hidden from the UI unless debugging.
    INSTRUCTION = "instruction"
    # Shown in the UI, never sent.
    LOCAL = "local"
    # Shown in the UI, never sent.
    ERROR = "error"
    # Sent and shown.
    NONE = "none"


class FinishReason(StrEnum):
    """Why the model stopped generating. Only set on assistant messages."""

    STOP = "stop"
    LENGTH = "length"
    TOOL_CALLS = "tool_calls"
    CONTENT_FILTER = "content_filter"
    CANCELLED = "cancelled"


class AssetKind(StrEnum):
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"


class Asset(BaseModel):
    """
    Reference to a binary asset stored outside the message.

    'noop' marks placeholder assets that are kept for display but must not be
    forwarded to a model (e.g. an image that failed to upload).
    """

    name: str
    kind: AssetKind
    location: str | None = None
    mime_type: str | None = None
    noop: bool = False


class Component(BaseModel):
    """An opaque, named UI component with a JSON payload."""

    name: str
    payload: str


class AssetAttachment(BaseModel):
    type: Literal["asset"] = "asset"
    asset: Asset


class AgentAttachment(BaseModel):
    type: Literal["agent"] = "agent"
    agent_id: str


class AutomationAttachment(BaseModel):
    type: Literal["automation"] = "automation"
    automation_id: str


class ComponentAttachment(BaseModel):
    type: Literal["component"] = "component"
    component: Component


Attachment = Annotated[
    AssetAttachment | AgentAttachment | AutomationAttachment | ComponentAttachment,
    Field(discriminator="type"),
]


def _append(existing: str | None, delta: str | None) -> str | None:
    if delta is None:
        return existing
    if existing is None:
        return delta
    return existing + delta


class Function(BaseModel):
    """The function name and JSON-encoded arguments inside a tool call.

    While a response is streaming, 'arguments' may hold only a fragment of the
    final JSON document.
    """

    name: str = ""
    arguments: str = ""


class ToolCall(BaseModel):
    """A single tool invocation requested by the model."""

    id: str
    function: Function
    type: str = "function"

    def apply(self, update: "ToolCall") -> "ToolCall":
        """Fold a streamed fragment of the same call into this one.

        Argument text is appended. Name and type are only taken from the
        update while they are still empty here, since most backends send them
        once on the first fragment.
        """
        return ToolCall(
            id=self.id,
            type=self.type or update.type,
            function=Function(
                name=self.function.name or update.function.name,
                arguments=self.function.arguments + update.function.arguments,
            ),
        )


class Message(BaseModel):
    """
    A single turn in a conversation.

    'tool_calls' is populated when the assistant requests tool invocations.
    'tool_call_id' and 'name' are set on the 'tool' role message that answers
    one of those calls. 'run_id' tags every message produced within one
    'ChatSession' run.
    """

    id: str = Field(default_factory=generate_uid)
    kind: Kind = Kind.NONE
    role: Roles
    content: str | None = None
    attachments: list[Attachment] = Field(default_factory=list)
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None
    run_id: str | None = None
    name: str | None = None
    finish_reason: FinishReason | None = None
    metadata: dict[str, str] = Field(default_factory=dict)
    created: datetime = Field(default_factory=get_current_datetime)
    modified: datetime = Field(default_factory=get_current_datetime)

    @field_validator("created", "modified")
    @classmethod
    def normalise_timezone(cls, value: datetime) -> datetime:
        return as_utc(value)

    @property
    def identity(self) -> tuple[str, datetime]:
        return self.id, self.modified

    def same_identity(self, other: "Message") -> bool:
        """True when both messages are the same revision of the same turn.

        Only 'id' and 'modified' are compared, content is ignored.
        """
        return self.identity == other.identity

    @property
    def is_sent_to_service(self) -> bool:
        return self.kind in (Kind.INSTRUCTION, Kind.NONE)

    def is_visible(self, debug: bool | None = None) -> bool:
        if debug is None:
            debug = get_settings().debug
        if self.kind == Kind.INSTRUCTION:
            return debug
        return True

    @property
    def vision_images(self) -> list[Asset]:
        return [
            attachment.asset
            for attachment in self.attachments
            if isinstance(attachment, AssetAttachment)
            and attachment.asset.kind == AssetKind.IMAGE
            and not attachment.asset.noop
        ]

    def apply(self, update: "Message") -> "Message":
        """
        Merge a partial or updated revision of this message into a new message.

        - 'content' is appended ('None' in the update leaves it unchanged).
        - 'finish_reason', 'tool_call_id' and 'run_id' are taken from the update
          as is, including 'None'.
        - Tool calls are matched by id: known calls are merged with
          'ToolCall.apply', unknown ones are appended in arrival order.
        - 'modified' is refreshed and always moves strictly forward, so the
          merged message never shares its identity with this one.

        The ids are expected to match but this is not checked.
        """
        tool_calls = [call.model_copy(deep=True) for call in self.tool_calls] if self.tool_calls is not None else None
        for tool_call in update.tool_calls or []:
            if tool_calls is None:
                tool_calls = []
            index = next((i for i, call in enumerate(tool_calls) if call.id == tool_call.id), None)
            if index is None:
                tool_calls.append(tool_call.model_copy(deep=True))
            else:
                tool_calls[index] = tool_calls[index].apply(tool_call)

        return self.model_copy(
            deep=True,
            update={
                "content": _append(self.content, update.content),
                "finish_reason": update.finish_reason,
                "tool_call_id": update.tool_call_id,
                "run_id": update.run_id,
                "tool_calls": tool_calls,
                "modified": advance(self.modified),
            },
        )

    def apply_metadata(self, key: str, value: str | None) -> "Message":
        """Set a metadata entry, unless 'value' is None."""
        if value is None:
            return self
        return self.model_copy(update={"metadata": {**self.metadata, key: value}})

    def apply_kind(self, kind: Kind) -> "Message":
        return self.model_copy(update={"kind": kind})
