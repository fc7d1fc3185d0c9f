"""Tests for promptwatch.services.view_state."""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from promptwatch.services.view_state import (
    filter_messages,
    selected_message,
    transition,
    visible_messages,
)
from promptwatch.types.messages import Message, MessageKind, MessageRole
from promptwatch.types.processes import WORKDIR_PERMISSION_DENIED, Process
from promptwatch.types.sessions import Project, Session, SessionStats
from promptwatch.types.views import (
    Back,
    End,
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

T0 = datetime(2026, 1, 30, 14, 0, tzinfo=timezone.utc)


def _msg(kind, content, seconds=0):
    role = MessageRole.USER if kind in (MessageKind.PROMPT, MessageKind.TOOL_RESULT) else MessageRole.ASSISTANT
    return Message(role=role, kind=kind, content=content, timestamp=T0 + timedelta(seconds=seconds))


def _stats(messages):
    return SessionStats(file_path="/p/s.jsonl", messages=list(messages))


def _session(name):
    return Session(id=name, title=name, file_path=f"/p/{name}.jsonl", updated_at=T0)


def _detail_state(messages, **kwargs):
    return ViewState(
        active_view=ViewMode.SESSION_DETAIL,
        selected_session=_session("s"),
        stats=_stats(messages),
        **kwargs,
    )


ASSISTANT_ONLY = [
    _msg(MessageKind.ASSISTANT_RESPONSE, f"reply {i}", i) for i in range(5)
]

MIXED = [
    _msg(MessageKind.PROMPT, "question", 0),
    _msg(MessageKind.ASSISTANT_RESPONSE, "answer", 1),
    _msg(MessageKind.TOOL_RESULT, "output", 2),
    _msg(MessageKind.PROMPT, "follow-up", 3),
]

PROCESSES = (
    Process(pid=10, working_dir="/home/wiz/a"),
    Process(pid=20, working_dir="/home/wiz/b"),
    Process(pid=30, working_dir="/home/wiz/c"),
)


# ---------------------------------------------------------------------------
# Filtering and sorting
# ---------------------------------------------------------------------------

class TestFilterMessages:
    def test_user_only_keeps_prompts(self):
        assert [m.content for m in filter_messages(MIXED, MessageFilter.USER_ONLY)] == ["question", "follow-up"]

    def test_assistant_only_keeps_responses_and_tool_results(self):
        kept = filter_messages(MIXED, MessageFilter.ASSISTANT_ONLY)
        assert [m.content for m in kept] == ["answer", "output"]

    def test_all(self):
        assert len(filter_messages(MIXED, MessageFilter.ALL)) == 4

    @pytest.mark.parametrize("message_filter", list(MessageFilter))
    def test_idempotent(self, message_filter):
        once = filter_messages(MIXED, message_filter)
        assert filter_messages(once, message_filter) == once

    def test_set_filter_twice_same_view(self):
        state = _detail_state(MIXED)
        once, _ = transition(state, SetFilter(MessageFilter.USER_ONLY))
        twice, _ = transition(once, SetFilter(MessageFilter.USER_ONLY))
        assert visible_messages(once) == visible_messages(twice)
        assert once.message_index == twice.message_index


class TestSetFilter:
    def test_empty_result_clamps_and_reports(self):
        """All (5 messages) to UserOnly (none present): selection 0, explicit empty state."""
        state = _detail_state(ASSISTANT_ONLY, message_index=3)
        state, effects = transition(state, SetFilter(MessageFilter.USER_ONLY))

        assert effects == []
        assert visible_messages(state) == ()
        assert state.message_index == 0
        assert state.status == "No user prompts found in this session"
        assert state.message_error == ""
        assert selected_message(state) is None

    def test_selection_clamped_into_bounds(self):
        state = _detail_state(MIXED, message_index=3)
        state, _ = transition(state, SetFilter(MessageFilter.ASSISTANT_ONLY))
        assert state.message_index == 1
        assert selected_message(state).content == "output"

    def test_status_counts(self):
        state = _detail_state(MIXED)
        state, _ = transition(state, SetFilter(MessageFilter.ASSISTANT_ONLY))
        assert state.status == "Showing 2 assistant responses"
        state, _ = transition(state, SetFilter(MessageFilter.ALL))
        assert state.status == "Showing all 4 messages"

    def test_ignored_outside_detail(self):
        state = ViewState()
        assert transition(state, SetFilter(MessageFilter.USER_ONLY)) == (state, [])


class TestToggleSort:
    def test_reverses_and_keeps_index(self):
        messages = MIXED[:3]
        state = _detail_state(messages)
        assert selected_message(state).content == "question"

        state, _ = transition(state, ToggleSort())
        assert state.sort_order == SortOrder.NEWEST_FIRST
        assert state.message_index == 0
        assert selected_message(state).content == "output"
        assert [m.content for m in visible_messages(state)] == ["output", "answer", "question"]
        assert state.status == "Sorting newest first"

    def test_toggle_back(self):
        state = _detail_state(MIXED)
        state, _ = transition(state, ToggleSort())
        state, _ = transition(state, ToggleSort())
        assert state.sort_order == SortOrder.OLDEST_FIRST
        assert state.status == "Sorting oldest first"

    def test_sort_applies_after_filter(self):
        state = _detail_state(MIXED, message_filter=MessageFilter.USER_ONLY)
        state, _ = transition(state, ToggleSort())
        assert [m.content for m in visible_messages(state)] == ["follow-up", "question"]


# ---------------------------------------------------------------------------
# Navigation between views
# ---------------------------------------------------------------------------

class TestSelect:
    def test_process_to_sessions(self):
        state = ViewState(processes=PROCESSES, process_index=1)
        state, effects = transition(state, Select())

        assert state.active_view == ViewMode.SESSION_LIST
        assert state.session_source == ViewMode.PROCESS_LIST
        assert state.selected_process.pid == 20
        assert effects == [LoadSessionsForDirectory(ticket=state.sessions_ticket, working_dir="/home/wiz/b")]
        assert state.loading

    def test_permission_denied_process(self):
        denied = Process(pid=99, working_dir=WORKDIR_PERMISSION_DENIED)
        state, effects = transition(ViewState(processes=(denied,)), Select())

        assert effects == []
        assert state.active_view == ViewMode.SESSION_LIST
        assert WORKDIR_PERMISSION_DENIED in state.session_error
        assert state.sessions_ticket is None

    def test_empty_process_list(self):
        state = ViewState()
        assert transition(state, Select()) == (state, [])

    def test_project_to_sessions(self):
        project = Project(id="-p", dir_path="/root/-p", display_name="/p", modified_at=T0)
        state = ViewState(active_view=ViewMode.PROJECT_LIST, projects=(project,))
        state, effects = transition(state, Select())

        assert state.active_view == ViewMode.SESSION_LIST
        assert state.session_source == ViewMode.PROJECT_LIST
        assert effects == [LoadSessionsForProject(ticket=state.sessions_ticket, project_dir="/root/-p")]

    def test_session_to_detail_resets_view_options(self):
        state = ViewState(
            active_view=ViewMode.SESSION_LIST,
            sessions=(_session("a"), _session("b")),
            session_index=1,
            message_filter=MessageFilter.USER_ONLY,
            sort_order=SortOrder.NEWEST_FIRST,
            message_index=4,
        )
        state, effects = transition(state, Select())

        assert state.active_view == ViewMode.SESSION_DETAIL
        assert state.message_filter == MessageFilter.ALL
        assert state.sort_order == SortOrder.OLDEST_FIRST
        assert state.message_index == 0
        assert state.selected_session.id == "b"
        assert effects == [LoadSessionDetail(ticket=state.detail_ticket, file_path="/p/b.jsonl")]

    def test_detail_to_message_snapshots_visible_message(self):
        state = _detail_state(MIXED, sort_order=SortOrder.NEWEST_FIRST, message_index=1)
        state, _ = transition(state, Select())
        assert state.active_view == ViewMode.MESSAGE_DETAIL
        assert state.detail_message.content == "output"

    def test_detail_select_with_no_messages(self):
        state = _detail_state([])
        assert transition(state, Select()) == (state, [])


class TestBack:
    def test_message_to_detail_discards_snapshot(self):
        state = _detail_state(MIXED)
        state, _ = transition(state, Select())
        state, _ = transition(state, Back())
        assert state.active_view == ViewMode.SESSION_DETAIL
        assert state.detail_message is None
        assert state.stats is not None

    def test_detail_to_list_discards_stats(self):
        state, _ = transition(_detail_state(MIXED), Back())
        assert state.active_view == ViewMode.SESSION_LIST
        assert state.stats is None

    @pytest.mark.parametrize("source", [ViewMode.PROCESS_LIST, ViewMode.PROJECT_LIST])
    def test_session_list_returns_to_source(self, source):
        state = ViewState(active_view=ViewMode.SESSION_LIST, session_source=source)
        state, _ = transition(state, Back())
        assert state.active_view == source

    def test_round_trip_through_projects(self):
        project = Project(id="-p", dir_path="/root/-p", display_name="/p", modified_at=T0)
        state = ViewState(active_view=ViewMode.PROJECT_LIST, projects=(project,))
        state, _ = transition(state, Select())
        state, _ = transition(state, Back())
        assert state.active_view == ViewMode.PROJECT_LIST

    def test_back_at_top_is_noop(self):
        state = ViewState()
        assert transition(state, Back()) == (state, [])


class TestToggleProjects:
    def test_to_projects_loads(self):
        state, effects = transition(ViewState(), ToggleProjects())
        assert state.active_view == ViewMode.PROJECT_LIST
        assert effects == [LoadProjects(ticket=state.projects_ticket)]

    def test_back_to_processes(self):
        state = ViewState(active_view=ViewMode.PROJECT_LIST, show_helpers=True)
        state, effects = transition(state, ToggleProjects())
        assert state.active_view == ViewMode.PROCESS_LIST
        assert effects == [LoadProcesses(ticket=state.processes_ticket, show_helpers=True)]


# ---------------------------------------------------------------------------
# Movement
# ---------------------------------------------------------------------------

class TestMovement:
    def test_list_wraps_down(self):
        state = ViewState(processes=PROCESSES, process_index=2)
        state, _ = transition(state, MoveDown())
        assert state.process_index == 0

    def test_list_wraps_up(self):
        state = ViewState(processes=PROCESSES)
        state, _ = transition(state, MoveUp())
        assert state.process_index == 2

    def test_empty_list(self):
        state = ViewState()
        assert transition(state, MoveDown()) == (state, [])

    def test_session_list_wraps(self):
        state = ViewState(active_view=ViewMode.SESSION_LIST, sessions=(_session("a"), _session("b")))
        state, _ = transition(state, MoveUp())
        assert state.session_index == 1

    def test_detail_stops_at_ends(self):
        state = _detail_state(MIXED)
        state, _ = transition(state, MoveUp())
        assert state.message_index == 0
        state = replace(state, message_index=3)
        state, _ = transition(state, MoveDown())
        assert state.message_index == 3

    def test_home_and_end(self):
        state = _detail_state(MIXED)
        state, _ = transition(state, End())
        assert state.message_index == 3
        state, _ = transition(state, Home())
        assert state.message_index == 0

    def test_list_home_end(self):
        state = ViewState(processes=PROCESSES)
        state, _ = transition(state, End())
        assert state.process_index == 2
        state, _ = transition(state, Home())
        assert state.process_index == 0

    def test_message_detail_scrolls_text(self):
        long_message = _msg(MessageKind.ASSISTANT_RESPONSE, "\n".join(str(i) for i in range(40)))
        state = _detail_state([long_message], viewport_height=10)
        state, _ = transition(state, Select())
        state, _ = transition(state, MoveDown())
        assert state.detail_scroll == 1
        state, _ = transition(state, End())
        assert state.detail_scroll == 30
        state, _ = transition(state, MoveDown())
        assert state.detail_scroll == 30
        state, _ = transition(state, PageUp())
        assert state.detail_scroll == 20

    def test_previous_next_message(self):
        state = _detail_state(MIXED, message_filter=MessageFilter.USER_ONLY)
        state, _ = transition(state, Select())
        state, _ = transition(state, NextMessage())
        assert state.detail_message.content == "follow-up"
        assert state.message_index == 1
        state, _ = transition(state, NextMessage())
        assert state.detail_message.content == "follow-up"
        state, _ = transition(state, PreviousMessage())
        assert state.detail_message.content == "question"

    def test_previous_outside_message_detail(self):
        state = _detail_state(MIXED)
        assert transition(state, PreviousMessage()) == (state, [])


# ---------------------------------------------------------------------------
# Scrolling
# ---------------------------------------------------------------------------

class TestScrolling:
    def test_offset_follows_selection(self):
        messages = [_msg(MessageKind.PROMPT, f"m{i}", i) for i in range(20)]
        state = _detail_state(messages, viewport_height=15)
        for _ in range(10):
            state, _ = transition(state, MoveDown())
        # 10 * 4 - 7 + 2
        assert state.scroll_offset == 35

    def test_offset_clamped_at_end(self):
        messages = [_msg(MessageKind.PROMPT, f"m{i}", i) for i in range(20)]
        state = _detail_state(messages, viewport_height=15)
        state, _ = transition(state, End())
        assert state.scroll_offset == 20 * 4 - 15

    def test_unchanged_selection_keeps_offset(self):
        state = _detail_state(MIXED, scroll_offset=3)
        state, _ = transition(state, MoveUp())
        assert state.scroll_offset == 3

    def test_page_moves_viewport_only(self):
        messages = [_msg(MessageKind.PROMPT, f"m{i}", i) for i in range(20)]
        state = _detail_state(messages, viewport_height=10)
        state, _ = transition(state, PageDown())
        assert state.scroll_offset == 5
        assert state.message_index == 0

    def test_resize_recomputes(self):
        messages = [_msg(MessageKind.PROMPT, f"m{i}", i) for i in range(20)]
        state = _detail_state(messages, message_index=10, scroll_offset=0)
        state, _ = transition(state, Resize(viewport_height=21))
        assert state.viewport_height == 21
        assert state.scroll_offset == 40 - 10 + 2


# ---------------------------------------------------------------------------
# Refresh and periodic ticks
# ---------------------------------------------------------------------------

class TestRefresh:
    def test_tick_in_process_list(self):
        state, effects = transition(ViewState(), Tick())
        assert state.processes_ticket is not None
        assert effects == [LoadProcesses(ticket=state.processes_ticket, show_helpers=False)]

    def test_tick_skipped_while_scan_in_flight(self):
        state, _ = transition(ViewState(), Tick())
        assert transition(state, Tick()) == (state, [])

    def test_refresh_supersedes_scan_in_flight(self):
        state, _ = transition(ViewState(), Tick())
        first = state.processes_ticket
        state, effects = transition(state, Refresh())
        assert state.processes_ticket != first
        assert effects == [LoadProcesses(ticket=state.processes_ticket, show_helpers=False)]

    @pytest.mark.parametrize("view", [
        ViewMode.PROJECT_LIST, ViewMode.SESSION_LIST, ViewMode.SESSION_DETAIL, ViewMode.MESSAGE_DETAIL,
    ])
    def test_tick_elsewhere_does_nothing(self, view):
        state = ViewState(active_view=view)
        assert transition(state, Tick()) == (state, [])

    def test_toggle_helpers(self):
        state, effects = transition(ViewState(), ToggleHelpers())
        assert state.show_helpers is True
        assert effects == [LoadProcesses(ticket=state.processes_ticket, show_helpers=True)]

    def test_refresh_projects(self):
        state = ViewState(active_view=ViewMode.PROJECT_LIST)
        state, effects = transition(state, Refresh())
        assert effects == [LoadProjects(ticket=state.projects_ticket)]


# ---------------------------------------------------------------------------
# Load completions and stale results
# ---------------------------------------------------------------------------

class TestCompletions:
    def test_processes_loaded_clamps_selection(self):
        state, _ = transition(ViewState(processes=PROCESSES, process_index=2), Tick())
        ticket = state.processes_ticket
        state, _ = transition(state, ProcessesLoaded(ticket=ticket, processes=PROCESSES[:1], loaded_at=T0))
        assert state.process_index == 0
        assert state.last_update == T0
        assert state.processes_ticket is None

    def test_process_error_keeps_snapshot(self):
        state, _ = transition(ViewState(processes=PROCESSES), Tick())
        ticket = state.processes_ticket
        state, _ = transition(state, ProcessesLoaded(ticket=ticket, error="failed to get processes"))
        assert state.processes == PROCESSES
        assert state.process_error == "failed to get processes"
        assert state.processes_ticket is None

    def test_older_process_snapshot_ignored(self):
        state, _ = transition(ViewState(), Tick())
        older = state.processes_ticket
        state, _ = transition(state, Refresh())
        newer = state.processes_ticket

        state, _ = transition(state, ProcessesLoaded(ticket=newer, processes=PROCESSES, loaded_at=T0))
        state, _ = transition(state, ProcessesLoaded(ticket=older, processes=PROCESSES[:1]))
        assert state.processes == PROCESSES
        assert state.last_update == T0

    def test_sessions_loaded(self):
        state, _ = transition(ViewState(processes=PROCESSES), Select())
        ticket = state.sessions_ticket
        state, _ = transition(state, SessionsLoaded(ticket=ticket, sessions=(_session("a"),)))
        assert [s.id for s in state.sessions] == ["a"]
        assert not state.loading

    def test_stale_session_list_discarded(self):
        state, _ = transition(ViewState(processes=PROCESSES), Select())
        stale = state.sessions_ticket
        state, _ = transition(state, Back())
        state, _ = transition(state, MoveDown())
        state, _ = transition(state, Select())
        assert state.sessions_ticket != stale

        after, _ = transition(state, SessionsLoaded(ticket=stale, sessions=(_session("old"),)))
        assert after == state

    def test_stale_detail_discarded(self):
        sessions = (_session("a"), _session("b"))
        state = ViewState(active_view=ViewMode.SESSION_LIST, sessions=sessions)
        state, _ = transition(state, Select())
        first_ticket = state.detail_ticket
        state, _ = transition(state, Back())
        state, _ = transition(state, MoveDown())
        state, _ = transition(state, Select())

        # The first load finishes late
        state, _ = transition(state, SessionDetailLoaded(ticket=first_ticket, stats=_stats(MIXED)))
        assert state.stats is None
        assert state.loading

        state, _ = transition(state, SessionDetailLoaded(ticket=state.detail_ticket, stats=_stats(MIXED[:1])))
        assert len(state.stats.messages) == 1
        assert state.selected_session.id == "b"

    def test_same_key_reissued_is_still_distinct(self):
        sessions = (_session("a"),)
        state = ViewState(active_view=ViewMode.SESSION_LIST, sessions=sessions)
        state, _ = transition(state, Select())
        first = state.detail_ticket
        state, _ = transition(state, Back())
        state, _ = transition(state, Select())
        assert first.key == state.detail_ticket.key
        assert first != state.detail_ticket

    def test_detail_error_is_scoped(self):
        state = ViewState(active_view=ViewMode.SESSION_LIST, sessions=(_session("a"),))
        state, _ = transition(state, Select())
        state, _ = transition(state, SessionDetailLoaded(ticket=state.detail_ticket, error="failed to open"))
        assert state.message_error == "failed to open"
        assert state.active_view == ViewMode.SESSION_DETAIL
        assert state.sessions == (_session("a"),)

    def test_empty_session_is_not_error(self):
        state = ViewState(active_view=ViewMode.SESSION_LIST, sessions=(_session("a"),))
        state, _ = transition(state, Select())
        state, _ = transition(state, SessionDetailLoaded(ticket=state.detail_ticket, stats=_stats([])))
        assert state.message_error == ""
        assert state.status == "No messages in this session"

    def test_projects_error(self):
        state, _ = transition(ViewState(), ToggleProjects())
        state, _ = transition(state, ProjectsLoaded(ticket=state.projects_ticket, error="cannot read"))
        assert state.projects_error == "cannot read"
        assert state.projects_ticket is None

    def test_unknown_ticket_ignored(self):
        state = ViewState(active_view=ViewMode.PROJECT_LIST)
        stray = ProjectsLoaded(ticket=LoadTicket(99, "projects"), projects=())
        assert transition(state, stray) == (state, [])


def test_unknown_event_ignored():
    state = ViewState()
    assert transition(state, object()) == (state, [])
