"""Session, project and aggregate statistics types."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from promptwatch.types.messages import Message
from promptwatch.utils.formatting import format_duration


@dataclass
class SessionStats:
    """Full aggregate over one session file."""
    file_path: str
    created_at: Optional[datetime] = None
    last_activity_at: Optional[datetime] = None
    duration: timedelta = timedelta(0)
    total_messages: int = 0
    user_messages: int = 0
    assistant_messages: int = 0
    progress_events: int = 0
    system_events: int = 0
    file_snapshots: int = 0
    queue_operations: int = 0
    compact_count: int = 0
    error_count: int = 0
    unknown_entries: int = 0
    messages: list[Message] = field(default_factory=list)
    assistant_version: str = ""

    def summary(self) -> str:
        started = self.created_at.strftime("%Y-%m-%d %H:%M") if self.created_at else "unknown"
        version = f" | Claude {self.assistant_version}" if self.assistant_version else ""
        return (
            f"Started: {started} | Duration: {format_duration(self.duration)} | "
            f"Messages: {self.total_messages} (User: {self.user_messages}, "
            f"AI: {self.assistant_messages}){version}"
        )

    def detailed_summary(self) -> str:
        return (
            f"Messages: {self.total_messages} (User: {self.user_messages}, "
            f"AI: {self.assistant_messages}) | Events: Progress: {self.progress_events}, "
            f"System: {self.system_events}, File Snapshots: {self.file_snapshots}, "
            f"Queue: {self.queue_operations} | Errors: {self.error_count}"
        )


@dataclass(frozen=True)
class SessionMetadata:
    """Cheap per-session metadata for list views."""
    started: datetime
    ended: datetime
    message_count: int = 0
    user_prompt_count: int = 0
    interruption_count: int = 0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    version: str = ""
    first_prompt: str = ""
    branch: str = ""
    sidechain: bool = False

    @property
    def duration(self) -> timedelta:
        return max(self.ended - self.started, timedelta(0))

    @property
    def total_tokens(self) -> int:
        return self.total_input_tokens + self.total_output_tokens


@dataclass(frozen=True)
class Session:
    id: str
    title: str
    file_path: str
    updated_at: datetime
    created_at: Optional[datetime] = None
    metadata: Optional[SessionMetadata] = None


@dataclass(frozen=True)
class Project:
    id: str            # Encoded directory name
    dir_path: str      # Directory holding the session files
    display_name: str  # originalPath from the index, or decoded name
    modified_at: datetime
    session_count: int = 0


@dataclass(frozen=True)
class SessionIndexFile:
    """Contents of a project's sessions-index.json."""
    version: int = 0
    entries: list = field(default_factory=list)
    original_path: str = ""
