"""Raw log entry types decoded from session JSONL lines."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union


class EntryKind(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    PROGRESS = "progress"
    SYSTEM = "system"
    FILE_SNAPSHOT = "file-history-snapshot"
    QUEUE_OP = "queue-operation"
    COMPACT = "compact"
    ERROR = "error"
    UNKNOWN = "unknown"

    @classmethod
    def from_type(cls, type_str: Any) -> "EntryKind":
        try:
            return cls(type_str)
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class TextBlock:
    text: str


@dataclass(frozen=True)
class ToolUseBlock:
    name: str
    input: Any = None
    id: str = ""


@dataclass(frozen=True)
class ToolResultBlock:
    content: str
    tool_use_id: str = ""
    is_error: bool = False


@dataclass(frozen=True)
class ThinkingBlock:
    thinking: str = ""


@dataclass(frozen=True)
class UnknownBlock:
    type: str = ""


ContentBlock = Union[TextBlock, ToolUseBlock, ToolResultBlock, ThinkingBlock, UnknownBlock]

# Plain string content or an ordered list of typed blocks
Content = Union[str, list[ContentBlock]]


@dataclass(frozen=True)
class EntryMessage:
    """The nested ``message`` object of a user/assistant entry."""
    role: str = ""
    content: Content = ""
    model: str = ""
    usage: dict = field(default_factory=dict)


@dataclass(frozen=True)
class LogEntry:
    kind: EntryKind
    timestamp: Optional[datetime]
    type: str = ""
    version: str = ""
    git_branch: str = ""
    is_sidechain: bool = False
    session_id: str = ""
    cwd: str = ""
    uuid: str = ""
    parent_uuid: str = ""
    user_type: str = ""
    message: Optional[EntryMessage] = None

    @property
    def is_conversational(self) -> bool:
        return self.kind in (EntryKind.USER, EntryKind.ASSISTANT)
