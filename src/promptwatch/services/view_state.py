"""Navigation state machine: pure transitions over an immutable ViewState.

``transition(state, event)`` returns the next state plus a list of effects
describing background work to start. Completion events carry the LoadTicket
they were issued with; a completion whose ticket no longer matches the one
the state is waiting for is stale and ignored.
"""

from dataclasses import replace
from typing import Callable, Sequence

from promptwatch.types.messages import Message, MessageKind
from promptwatch.types.views import (
    Back,
    Effect,
    End,
    Event,
    Home,
    LoadProcesses,
    LoadProjects,
    LoadSessionDetail,
    LoadSessionsForDirectory,
    LoadSessionsForProject,
    LoadTicket,
    MessageFilter,
    MoveDown,
    MoveUp,
    NextMessage,
    PageDown,
    PageUp,
    PreviousMessage,
    ProcessesLoaded,
    ProjectsLoaded,
    Refresh,
    Resize,
    Select,
    SessionDetailLoaded,
    SessionsLoaded,
    SetFilter,
    SortOrder,
    Tick,
    ToggleHelpers,
    ToggleProjects,
    ToggleSort,
    ViewMode,
    ViewState,
)
from promptwatch.utils.scroll import scroll_offset_for

Transition = tuple[ViewState, list[Effect]]

_FILTER_KINDS = {
    MessageFilter.USER_ONLY: frozenset({MessageKind.PROMPT}),
    MessageFilter.ASSISTANT_ONLY: frozenset({MessageKind.ASSISTANT_RESPONSE, MessageKind.TOOL_RESULT}),
}

_FILTER_STATUS = {
    MessageFilter.ALL: ("No messages found in this session", "Showing all {n} messages"),
    MessageFilter.USER_ONLY: ("No user prompts found in this session", "Showing {n} user prompts"),
    MessageFilter.ASSISTANT_ONLY: (
        "No assistant responses found in this session", "Showing {n} assistant responses",
    ),
}


# ----------------------------------------------------------------------
# Message views
# ----------------------------------------------------------------------

def filter_messages(messages: Sequence[Message], message_filter: MessageFilter) -> tuple[Message, ...]:
    kinds = _FILTER_KINDS.get(message_filter)
    if kinds is None:
        return tuple(messages)
    return tuple(m for m in messages if m.kind in kinds)


def sort_messages(messages: Sequence[Message], order: SortOrder) -> tuple[Message, ...]:
    if order == SortOrder.NEWEST_FIRST:
        return tuple(reversed(messages))
    return tuple(messages)


def visible_messages(state: ViewState) -> tuple[Message, ...]:
    """The session's messages after the active filter and sort order."""
    if state.stats is None:
        return ()
    return sort_messages(filter_messages(state.stats.messages, state.message_filter), state.sort_order)


def selected_message(state: ViewState) -> Message | None:
    messages = visible_messages(state)
    if 0 <= state.message_index < len(messages):
        return messages[state.message_index]
    return None


def clamp_index(index: int, count: int) -> int:
    if count <= 0:
        return 0
    return min(max(index, 0), count - 1)


def filter_status(message_filter: MessageFilter, count: int) -> str:
    empty, showing = _FILTER_STATUS[message_filter]
    return showing.format(n=count) if count else empty


# ----------------------------------------------------------------------
# Entry point
# ----------------------------------------------------------------------

def transition(state: ViewState, event: Event) -> Transition:
    handler = _HANDLERS.get(type(event))
    if handler is None:
        return state, []
    return handler(state, event)


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------

def _issue_ticket(state: ViewState, key: str) -> tuple[ViewState, LoadTicket]:
    generation = state.generation + 1
    return replace(state, generation=generation), LoadTicket(generation, key)


def _load_processes(state: ViewState) -> Transition:
    """Start a process scan. A newer scan supersedes any in flight."""
    state, ticket = _issue_ticket(state, "processes")
    state = replace(state, processes_ticket=ticket)
    return state, [LoadProcesses(ticket=ticket, show_helpers=state.show_helpers)]


def _with_message_index(state: ViewState, index: int, force: bool = False) -> ViewState:
    """Move the message selection; the viewport only moves when it changes."""
    count = len(visible_messages(state))
    index = clamp_index(index, count)
    if index == state.message_index and not force:
        return state
    offset = scroll_offset_for(index, state.viewport_height, count, state.card_height)
    return replace(state, message_index=index, scroll_offset=offset)


def _list_length(state: ViewState) -> int:
    if state.active_view == ViewMode.PROCESS_LIST:
        return len(state.processes)
    if state.active_view == ViewMode.PROJECT_LIST:
        return len(state.projects)
    if state.active_view == ViewMode.SESSION_LIST:
        return len(state.sessions)
    return 0


def _with_list_index(state: ViewState, index: int) -> ViewState:
    if state.active_view == ViewMode.PROCESS_LIST:
        return replace(state, process_index=index)
    if state.active_view == ViewMode.PROJECT_LIST:
        return replace(state, project_index=index)
    return replace(state, session_index=index)


def _list_index(state: ViewState) -> int:
    if state.active_view == ViewMode.PROCESS_LIST:
        return state.process_index
    if state.active_view == ViewMode.PROJECT_LIST:
        return state.project_index
    return state.session_index


def _detail_max_scroll(state: ViewState) -> int:
    if state.detail_message is None:
        return 0
    lines = state.detail_message.content.count("\n") + 1
    return max(lines - state.viewport_height, 0)


def _with_detail_scroll(state: ViewState, offset: int) -> ViewState:
    return replace(state, detail_scroll=min(max(offset, 0), _detail_max_scroll(state)))


def _is_list_view(state: ViewState) -> bool:
    return state.active_view in (ViewMode.PROCESS_LIST, ViewMode.PROJECT_LIST, ViewMode.SESSION_LIST)


# ----------------------------------------------------------------------
# Navigation
# ----------------------------------------------------------------------

def _on_select(state: ViewState, event: Select) -> Transition:
    view = state.active_view

    if view == ViewMode.PROCESS_LIST:
        if not 0 <= state.process_index < len(state.processes):
            return state, []
        proc = state.processes[state.process_index]
        state = replace(
            state,
            active_view=ViewMode.SESSION_LIST,
            session_source=ViewMode.PROCESS_LIST,
            selected_process=proc,
            sessions=(),
            session_index=0,
            session_error="",
            sessions_ticket=None,
        )
        if not proc.has_working_dir:
            return replace(state, session_error=f"Working directory unavailable: {proc.working_dir}"), []
        state, ticket = _issue_ticket(state, proc.working_dir)
        state = replace(state, sessions_ticket=ticket)
        return state, [LoadSessionsForDirectory(ticket=ticket, working_dir=proc.working_dir)]

    if view == ViewMode.PROJECT_LIST:
        if not 0 <= state.project_index < len(state.projects):
            return state, []
        project = state.projects[state.project_index]
        state, ticket = _issue_ticket(state, project.dir_path)
        state = replace(
            state,
            active_view=ViewMode.SESSION_LIST,
            session_source=ViewMode.PROJECT_LIST,
            selected_process=None,
            sessions=(),
            session_index=0,
            session_error="",
            sessions_ticket=ticket,
        )
        return state, [LoadSessionsForProject(ticket=ticket, project_dir=project.dir_path)]

    if view == ViewMode.SESSION_LIST:
        if not 0 <= state.session_index < len(state.sessions):
            return state, []
        session = state.sessions[state.session_index]
        state, ticket = _issue_ticket(state, session.file_path)
        state = replace(
            state,
            active_view=ViewMode.SESSION_DETAIL,
            selected_session=session,
            stats=None,
            message_filter=MessageFilter.ALL,
            sort_order=SortOrder.OLDEST_FIRST,
            message_index=0,
            scroll_offset=0,
            message_error="",
            status="",
            detail_ticket=ticket,
        )
        return state, [LoadSessionDetail(ticket=ticket, file_path=session.file_path)]

    if view == ViewMode.SESSION_DETAIL:
        message = selected_message(state)
        if message is None:
            return state, []
        return replace(
            state, active_view=ViewMode.MESSAGE_DETAIL, detail_message=message, detail_scroll=0,
        ), []

    return state, []


def _on_back(state: ViewState, event: Back) -> Transition:
    view = state.active_view

    if view == ViewMode.MESSAGE_DETAIL:
        return replace(
            state, active_view=ViewMode.SESSION_DETAIL, detail_message=None, detail_scroll=0,
        ), []

    if view == ViewMode.SESSION_DETAIL:
        return replace(
            state,
            active_view=ViewMode.SESSION_LIST,
            selected_session=None,
            stats=None,
            message_index=0,
            scroll_offset=0,
            message_error="",
            status="",
            detail_ticket=None,
        ), []

    if view == ViewMode.SESSION_LIST:
        return replace(
            state,
            active_view=state.session_source,
            selected_process=None,
            sessions=(),
            session_index=0,
            session_error="",
            sessions_ticket=None,
        ), []

    return state, []


def _on_move(state: ViewState, step: int) -> Transition:
    if _is_list_view(state):
        count = _list_length(state)
        if count == 0:
            return state, []
        # List views wrap around at both ends
        return _with_list_index(state, (_list_index(state) + step) % count), []

    if state.active_view == ViewMode.SESSION_DETAIL:
        count = len(visible_messages(state))
        index = state.message_index + step
        if not 0 <= index < count:
            return state, []
        return _with_message_index(state, index), []

    if state.active_view == ViewMode.MESSAGE_DETAIL:
        return _with_detail_scroll(state, state.detail_scroll + step), []

    return state, []


def _on_move_up(state: ViewState, event: MoveUp) -> Transition:
    return _on_move(state, -1)


def _on_move_down(state: ViewState, event: MoveDown) -> Transition:
    return _on_move(state, 1)


def _on_jump(state: ViewState, to_end: bool) -> Transition:
    if _is_list_view(state):
        count = _list_length(state)
        return _with_list_index(state, count - 1 if to_end and count else 0), []
    if state.active_view == ViewMode.SESSION_DETAIL:
        count = len(visible_messages(state))
        return _with_message_index(state, count - 1 if to_end else 0), []
    if state.active_view == ViewMode.MESSAGE_DETAIL:
        return _with_detail_scroll(state, _detail_max_scroll(state) if to_end else 0), []
    return state, []


def _on_home(state: ViewState, event: Home) -> Transition:
    return _on_jump(state, to_end=False)


def _on_end(state: ViewState, event: End) -> Transition:
    return _on_jump(state, to_end=True)


def _on_page(state: ViewState, direction: int) -> Transition:
    if state.active_view == ViewMode.SESSION_DETAIL:
        # Paging moves the viewport by half a view without touching the selection
        count = len(visible_messages(state))
        max_offset = max(0, count * state.card_height - state.viewport_height)
        offset = state.scroll_offset + direction * max(state.viewport_height // 2, 1)
        return replace(state, scroll_offset=min(max(offset, 0), max_offset)), []
    if state.active_view == ViewMode.MESSAGE_DETAIL:
        return _with_detail_scroll(state, state.detail_scroll + direction * state.viewport_height), []
    return state, []


def _on_page_up(state: ViewState, event: PageUp) -> Transition:
    return _on_page(state, -1)


def _on_page_down(state: ViewState, event: PageDown) -> Transition:
    return _on_page(state, 1)


def _on_step_message(state: ViewState, step: int) -> Transition:
    if state.active_view != ViewMode.MESSAGE_DETAIL:
        return state, []
    messages = visible_messages(state)
    index = state.message_index + step
    if not 0 <= index < len(messages):
        return state, []
    state = _with_message_index(state, index)
    return replace(state, detail_message=messages[index], detail_scroll=0), []


def _on_previous_message(state: ViewState, event: PreviousMessage) -> Transition:
    return _on_step_message(state, -1)


def _on_next_message(state: ViewState, event: NextMessage) -> Transition:
    return _on_step_message(state, 1)


# ----------------------------------------------------------------------
# Filtering and sorting
# ----------------------------------------------------------------------

def _on_set_filter(state: ViewState, event: SetFilter) -> Transition:
    if state.active_view != ViewMode.SESSION_DETAIL:
        return state, []
    state = replace(state, message_filter=event.message_filter)
    count = len(visible_messages(state))
    state = _with_message_index(state, state.message_index, force=True)
    return replace(state, status=filter_status(event.message_filter, count)), []


def _on_toggle_sort(state: ViewState, event: ToggleSort) -> Transition:
    if state.active_view != ViewMode.SESSION_DETAIL:
        return state, []
    order = SortOrder.OLDEST_FIRST if state.sort_order == SortOrder.NEWEST_FIRST else SortOrder.NEWEST_FIRST
    state = replace(state, sort_order=order)
    # Selection stays at the same position, not on the same message
    state = _with_message_index(state, state.message_index)
    label = "newest first" if order == SortOrder.NEWEST_FIRST else "oldest first"
    return replace(state, status=f"Sorting {label}"), []


# ----------------------------------------------------------------------
# Top-level lists
# ----------------------------------------------------------------------

def _on_toggle_projects(state: ViewState, event: ToggleProjects) -> Transition:
    if state.active_view == ViewMode.PROCESS_LIST:
        state, ticket = _issue_ticket(state, "projects")
        state = replace(
            state, active_view=ViewMode.PROJECT_LIST, project_index=0, projects_ticket=ticket,
        )
        return state, [LoadProjects(ticket=ticket)]
    if state.active_view == ViewMode.PROJECT_LIST:
        state = replace(
            state, active_view=ViewMode.PROCESS_LIST, process_index=0, projects_ticket=None,
        )
        return _load_processes(state)
    return state, []


def _on_refresh(state: ViewState, event: Refresh) -> Transition:
    if state.active_view == ViewMode.PROCESS_LIST:
        return _load_processes(state)
    if state.active_view == ViewMode.PROJECT_LIST:
        state, ticket = _issue_ticket(state, "projects")
        return replace(state, projects_ticket=ticket), [LoadProjects(ticket=ticket)]
    return state, []


def _on_toggle_helpers(state: ViewState, event: ToggleHelpers) -> Transition:
    if state.active_view != ViewMode.PROCESS_LIST:
        return state, []
    return _load_processes(replace(state, show_helpers=not state.show_helpers))


def _on_tick(state: ViewState, event: Tick) -> Transition:
    # Periodic refresh only while the process list is showing, and never
    # on top of a scan that has not finished
    if state.active_view == ViewMode.PROCESS_LIST and state.processes_ticket is None:
        return _load_processes(state)
    return state, []


def _on_resize(state: ViewState, event: Resize) -> Transition:
    state = replace(state, viewport_height=max(event.viewport_height, 1))
    state = _with_message_index(state, state.message_index, force=True)
    return _with_detail_scroll(state, state.detail_scroll), []


# ----------------------------------------------------------------------
# Background load completions
# ----------------------------------------------------------------------

def _on_processes_loaded(state: ViewState, event: ProcessesLoaded) -> Transition:
    if event.ticket != state.processes_ticket:
        return state, []
    if event.error:
        return replace(state, processes_ticket=None, process_error=event.error), []
    return replace(
        state,
        processes_ticket=None,
        processes=tuple(event.processes),
        process_index=clamp_index(state.process_index, len(event.processes)),
        process_error="",
        last_update=event.loaded_at,
    ), []


def _on_projects_loaded(state: ViewState, event: ProjectsLoaded) -> Transition:
    if event.ticket != state.projects_ticket:
        return state, []
    if event.error:
        return replace(state, projects_ticket=None, projects_error=event.error), []
    return replace(
        state,
        projects_ticket=None,
        projects=tuple(event.projects),
        project_index=clamp_index(state.project_index, len(event.projects)),
        projects_error="",
    ), []


def _on_sessions_loaded(state: ViewState, event: SessionsLoaded) -> Transition:
    if event.ticket != state.sessions_ticket:
        return state, []
    if event.error:
        return replace(state, sessions_ticket=None, session_error=event.error), []
    return replace(
        state,
        sessions_ticket=None,
        sessions=tuple(event.sessions),
        session_index=clamp_index(state.session_index, len(event.sessions)),
        session_error="",
    ), []


def _on_session_detail_loaded(state: ViewState, event: SessionDetailLoaded) -> Transition:
    if event.ticket != state.detail_ticket:
        return state, []
    if event.error or event.stats is None:
        return replace(state, detail_ticket=None, message_error=event.error or "No session data loaded"), []
    state = replace(
        state,
        detail_ticket=None,
        stats=event.stats,
        message_index=0,
        scroll_offset=0,
        message_error="",
    )
    count = len(visible_messages(state))
    status = "" if count else "No messages in this session"
    return replace(state, status=status), []


_HANDLERS: dict[type, Callable[..., Transition]] = {
    Select: _on_select,
    Back: _on_back,
    MoveUp: _on_move_up,
    MoveDown: _on_move_down,
    Home: _on_home,
    End: _on_end,
    PageUp: _on_page_up,
    PageDown: _on_page_down,
    PreviousMessage: _on_previous_message,
    NextMessage: _on_next_message,
    SetFilter: _on_set_filter,
    ToggleSort: _on_toggle_sort,
    ToggleProjects: _on_toggle_projects,
    Refresh: _on_refresh,
    ToggleHelpers: _on_toggle_helpers,
    Tick: _on_tick,
    Resize: _on_resize,
    ProcessesLoaded: _on_processes_loaded,
    ProjectsLoaded: _on_projects_loaded,
    SessionsLoaded: _on_sessions_loaded,
    SessionDetailLoaded: _on_session_detail_loaded,
}
