"""View state, navigation events and side-effect descriptions."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from promptwatch.types.messages import Message
from promptwatch.types.processes import Process
from promptwatch.types.sessions import Project, Session, SessionStats


class ViewMode(str, Enum):
    PROCESS_LIST = "processes"
    PROJECT_LIST = "projects"
    SESSION_LIST = "sessions"
    SESSION_DETAIL = "session-detail"
    MESSAGE_DETAIL = "message-detail"


class MessageFilter(str, Enum):
    ALL = "all"
    USER_ONLY = "user"
    ASSISTANT_ONLY = "assistant"


class SortOrder(str, Enum):
    OLDEST_FIRST = "oldest"
    NEWEST_FIRST = "newest"


@dataclass(frozen=True)
class LoadTicket:
    """Correlates a background load with the selection it was issued for."""
    generation: int
    key: str


@dataclass(frozen=True)
class ViewState:
    active_view: ViewMode = ViewMode.PROCESS_LIST
    session_source: ViewMode = ViewMode.PROCESS_LIST
    # Selection per list
    process_index: int = 0
    project_index: int = 0
    session_index: int = 0
    message_index: int = 0
    message_filter: MessageFilter = MessageFilter.ALL
    sort_order: SortOrder = SortOrder.OLDEST_FIRST
    scroll_offset: int = 0
    detail_scroll: int = 0
    viewport_height: int = 15
    card_height: int = 4
    show_helpers: bool = False
    # Loaded data
    processes: tuple[Process, ...] = ()
    projects: tuple[Project, ...] = ()
    sessions: tuple[Session, ...] = ()
    selected_process: Optional[Process] = None
    selected_session: Optional[Session] = None
    stats: Optional[SessionStats] = None
    detail_message: Optional[Message] = None
    last_update: Optional[datetime] = None
    # In-flight loads
    generation: int = 0
    processes_ticket: Optional[LoadTicket] = None
    projects_ticket: Optional[LoadTicket] = None
    sessions_ticket: Optional[LoadTicket] = None
    detail_ticket: Optional[LoadTicket] = None
    # Errors are scoped to the view that requested the load
    process_error: str = ""
    projects_error: str = ""
    session_error: str = ""
    message_error: str = ""
    status: str = ""

    @property
    def loading(self) -> bool:
        return any(t is not None for t in (
            self.projects_ticket, self.sessions_ticket, self.detail_ticket,
        ))


# ----------------------------------------------------------------------
# Events
# ----------------------------------------------------------------------

class Event:
    """Base class for everything delivered to the state machine."""


@dataclass(frozen=True)
class Select(Event):
    pass


@dataclass(frozen=True)
class Back(Event):
    pass


@dataclass(frozen=True)
class MoveUp(Event):
    pass


@dataclass(frozen=True)
class MoveDown(Event):
    pass


@dataclass(frozen=True)
class Home(Event):
    pass


@dataclass(frozen=True)
class End(Event):
    pass


@dataclass(frozen=True)
class PageUp(Event):
    pass


@dataclass(frozen=True)
class PageDown(Event):
    pass


@dataclass(frozen=True)
class PreviousMessage(Event):
    pass


@dataclass(frozen=True)
class NextMessage(Event):
    pass


@dataclass(frozen=True)
class SetFilter(Event):
    message_filter: MessageFilter


@dataclass(frozen=True)
class ToggleSort(Event):
    pass


@dataclass(frozen=True)
class ToggleProjects(Event):
    pass


@dataclass(frozen=True)
class Refresh(Event):
    pass


@dataclass(frozen=True)
class ToggleHelpers(Event):
    pass


@dataclass(frozen=True)
class Resize(Event):
    viewport_height: int


@dataclass(frozen=True)
class Tick(Event):
    pass


@dataclass(frozen=True)
class ProcessesLoaded(Event):
    ticket: LoadTicket
    processes: tuple[Process, ...] = ()
    error: str = ""
    loaded_at: Optional[datetime] = None


@dataclass(frozen=True)
class ProjectsLoaded(Event):
    ticket: LoadTicket
    projects: tuple[Project, ...] = ()
    error: str = ""


@dataclass(frozen=True)
class SessionsLoaded(Event):
    ticket: LoadTicket
    sessions: tuple[Session, ...] = ()
    error: str = ""


@dataclass(frozen=True)
class SessionDetailLoaded(Event):
    ticket: LoadTicket
    stats: Optional[SessionStats] = None
    error: str = ""


# ----------------------------------------------------------------------
# Effects (dispatched as background work by the session manager)
# ----------------------------------------------------------------------

class Effect:
    """Base class for side-effect descriptions returned by transitions."""


@dataclass(frozen=True)
class LoadProcesses(Effect):
    ticket: LoadTicket
    show_helpers: bool = False


@dataclass(frozen=True)
class LoadProjects(Effect):
    ticket: LoadTicket


@dataclass(frozen=True)
class LoadSessionsForDirectory(Effect):
    ticket: LoadTicket
    working_dir: str


@dataclass(frozen=True)
class LoadSessionsForProject(Effect):
    ticket: LoadTicket
    project_dir: str


@dataclass(frozen=True)
class LoadSessionDetail(Effect):
    ticket: LoadTicket
    file_path: str
