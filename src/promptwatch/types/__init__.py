"""Type definitions for promptwatch."""

from promptwatch.types.entries import (
    EntryKind,
    EntryMessage,
    LogEntry,
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
    UnknownBlock,
)
from promptwatch.types.messages import Message, MessageKind, MessageRole, TokenUsage
from promptwatch.types.sessions import (
    Project,
    Session,
    SessionIndexFile,
    SessionMetadata,
    SessionStats,
)
from promptwatch.types.processes import (
    Process,
    WORKDIR_PERMISSION_DENIED,
    WORKDIR_UNAVAILABLE,
)
from promptwatch.types.views import (
    LoadTicket,
    MessageFilter,
    SortOrder,
    ViewMode,
    ViewState,
)

__all__ = [
    "EntryKind",
    "EntryMessage",
    "LogEntry",
    "TextBlock",
    "ThinkingBlock",
    "ToolResultBlock",
    "ToolUseBlock",
    "UnknownBlock",
    "Message",
    "MessageKind",
    "MessageRole",
    "TokenUsage",
    "Project",
    "Session",
    "SessionIndexFile",
    "SessionMetadata",
    "SessionStats",
    "Process",
    "WORKDIR_PERMISSION_DENIED",
    "WORKDIR_UNAVAILABLE",
    "LoadTicket",
    "MessageFilter",
    "SortOrder",
    "ViewMode",
    "ViewState",
]
