"""Plain-text rendering of the current view."""

from typing import Optional

from promptwatch.services.view_state import visible_messages
from promptwatch.types.messages import Message, MessageKind, MessageRole
from promptwatch.types.sessions import SessionMetadata
from promptwatch.types.views import MessageFilter, ViewMode, ViewState
from promptwatch.utils.cards import CardArena
from promptwatch.utils.cost_model import DEFAULT_RATES, PricingRates, session_cost
from promptwatch.utils.formatting import (
    format_cpu,
    format_memory,
    format_short_duration,
    format_timestamp,
    format_uptime,
    truncate_path,
)

TITLE = "promptwatch"

_FOOTERS = {
    ViewMode.PROCESS_LIST: "j/k: Navigate | enter: View sessions | p: Projects | r: Refresh | f: Toggle helpers | q: Quit",
    ViewMode.PROJECT_LIST: "j/k: Navigate | enter: View sessions | p: Processes | r: Refresh | q: Quit",
    ViewMode.SESSION_LIST: "j/k: Navigate | enter: Open | esc: Back | q: Quit",
    ViewMode.SESSION_DETAIL: (
        "j/k: Navigate | enter: Open | u: User prompts | a: Assistant responses | "
        "b: Both | s: Sort | esc: Back | q: Quit"
    ),
    ViewMode.MESSAGE_DETAIL: "j/k: Scroll | h/l: Prev/Next message | g/G: Jump | esc: Back | q: Quit",
}

_FILTER_LABELS = {
    MessageFilter.ALL: "All Messages",
    MessageFilter.USER_ONLY: "User Prompts",
    MessageFilter.ASSISTANT_ONLY: "Assistant Responses",
}


def render(
    state: ViewState,
    width: int = 80,
    rates: PricingRates = DEFAULT_RATES,
    home: Optional[str] = None,
) -> str:
    """Render the active view as plain text."""
    if state.active_view == ViewMode.MESSAGE_DETAIL:
        body = render_message_detail(state, width)
    elif state.active_view == ViewMode.SESSION_DETAIL:
        body = render_session_detail(state, width, rates, home)
    elif state.active_view == ViewMode.SESSION_LIST:
        body = render_session_list(state, width, home)
    elif state.active_view == ViewMode.PROJECT_LIST:
        body = render_project_list(state, width)
    else:
        body = render_process_list(state, width, home)
    return "\n".join(body + ["", _FOOTERS[state.active_view]])


def _marker(selected: bool) -> str:
    return "> " if selected else "  "


def render_process_list(state: ViewState, width: int = 80, home: Optional[str] = None) -> list[str]:
    status = f"{len(state.processes)} instances"
    if state.show_helpers:
        status += " (including helpers)"
    header = f"{TITLE}  {status}"
    if state.last_update is not None:
        header += f"  |  Updated: {state.last_update.strftime('%H:%M:%S')}"
    lines = [header, ""]

    if state.process_error:
        lines.append(f"Error: {state.process_error}")
        return lines
    if not state.processes:
        lines.append("No assistant instances found.")
        lines.append("Press 'r' to refresh or 'q' to quit")
        return lines

    lines.append(f"  {'PID':>7}  {'CPU':>6}  {'MEM':>9}  {'UPTIME':>7}  DIRECTORY")
    dir_width = max(width - 42, 10)
    for i, proc in enumerate(state.processes):
        lines.append(
            f"{_marker(i == state.process_index)}{proc.pid:>7}  {format_cpu(proc.cpu_percent):>6}  "
            f"{format_memory(proc.memory_mb):>9}  {format_uptime(proc.uptime):>7}  "
            f"{truncate_path(proc.working_dir, dir_width, home)}"
        )
    return lines


def render_project_list(state: ViewState, width: int = 80) -> list[str]:
    lines = [f"{TITLE}  {len(state.projects)} projects", ""]
    if state.projects_error:
        lines.append(f"Error: {state.projects_error}")
        return lines
    if state.projects_ticket is not None and not state.projects:
        lines.append("Loading projects...")
        return lines
    if not state.projects:
        lines.append("No projects found")
        return lines

    name_width = max(width - 34, 10)
    for i, project in enumerate(state.projects):
        name = project.display_name
        if len(name) > name_width:
            name = "..." + name[len(name) - name_width + 3:]
        lines.append(
            f"{_marker(i == state.project_index)}{name:<{name_width}}  "
            f"{project.session_count:>4} sessions  {format_timestamp(project.modified_at)}"
        )
    return lines


def _session_list_header(state: ViewState, home: Optional[str]) -> list[str]:
    if state.session_source == ViewMode.PROJECT_LIST:
        if 0 <= state.project_index < len(state.projects):
            return [f"Sessions for: {state.projects[state.project_index].display_name}"]
        return ["Sessions"]
    proc = state.selected_process
    if proc is None:
        return ["Error: No process selected"]
    return [
        f"Sessions for: {truncate_path(proc.working_dir, 50, home)}",
        f"PID: {proc.pid} | CPU: {proc.cpu_percent:.1f}% | MEM: {proc.memory_mb:.2f} MB",
    ]


def _token_column(meta: SessionMetadata) -> str:
    if meta.total_tokens == 0:
        return "-"
    return f"{meta.total_input_tokens}/{meta.total_output_tokens}"


def render_session_list(state: ViewState, width: int = 80, home: Optional[str] = None) -> list[str]:
    lines = _session_list_header(state, home) + [""]

    if state.session_error:
        lines.append(f"Error: {state.session_error}")
        return lines
    if state.sessions_ticket is not None:
        lines.append("Loading sessions...")
        return lines
    if not state.sessions:
        lines.append("No sessions found for this directory")
        return lines

    for i, session in enumerate(state.sessions):
        meta = session.metadata
        row = f"{_marker(i == state.session_index)}{format_timestamp(session.updated_at)}  "
        if meta is not None:
            version = f"v{meta.version}" if meta.version else ""
            row += (
                f"{version:<8}  {meta.branch or '-':<12.12}  "
                f"{format_short_duration(meta.duration):>6}  {meta.user_prompt_count:>3} prompts  "
                f"{meta.interruption_count:>2} breaks  {_token_column(meta):>13}  "
            )
            title = meta.first_prompt or session.title
        else:
            title = session.title
        title = " ".join(title.split())
        if meta is not None and meta.sidechain:
            title = "[side] " + title
        room = max(width - len(row), 10)
        if len(title) > room:
            title = title[:room - 3] + "..."
        lines.append(row + title)
    return lines


def render_session_detail(
    state: ViewState,
    width: int = 80,
    rates: PricingRates = DEFAULT_RATES,
    home: Optional[str] = None,
) -> list[str]:
    lines = ["Session Details"]
    if state.selected_session is not None:
        lines.append(f"Path: {truncate_path(state.selected_session.file_path, 60, home)}")
    lines.append("")

    if state.message_error:
        lines.append(f"Error: {state.message_error}")
        return lines
    stats = state.stats
    if stats is None:
        lines.append("Loading session...")
        return lines

    cost, savings = session_cost(stats.messages, rates)
    lines.append(stats.summary())
    lines.append(stats.detailed_summary())
    lines.append(f"Cost: ${cost:.4f} | Cache savings: ${savings:.4f}")
    lines.append("")

    messages = visible_messages(state)
    lines.append(f"Messages: [{_FILTER_LABELS[state.message_filter]}: {len(messages)}]")
    if state.status:
        lines.append(state.status)
    arena = CardArena(messages, width=width - 2, card_height=state.card_height, rates=rates)
    lines.extend(arena.window(state.scroll_offset, state.viewport_height, state.message_index))
    return lines


def message_title(message: Message) -> str:
    if message.kind == MessageKind.PROMPT:
        return "Your Prompt"
    if message.kind == MessageKind.TOOL_RESULT:
        return f"Tool Result: {message.tool_name}" if message.tool_name else "Tool Result"
    if message.tool_name:
        return f"Tool Call: {message.tool_name}"
    return "Assistant Response" if message.role == MessageRole.ASSISTANT else "Your Message"


def render_message_detail(state: ViewState, width: int = 80) -> list[str]:
    message = state.detail_message
    if message is None:
        return ["Error: No message to display"]

    lines = [message_title(message)]
    if message.timestamp is not None:
        lines.append(f"Time: {message.timestamp.strftime('%Y-%m-%d %H:%M:%S')}")
    if message.tool_name:
        info = f"Tool: {message.tool_name}"
        if message.tool_arguments:
            info += f" | Arguments: {message.tool_arguments}"
        lines.append(info)
    lines.append("")

    content = message.content.split("\n")
    start = min(state.detail_scroll, len(content))
    shown = content[start:start + state.viewport_height]
    wrap = max(width - 4, 40)
    for line in shown:
        while len(line) > wrap:
            lines.append(line[:wrap])
            line = line[wrap:]
        lines.append(line)
    lines.append("")
    lines.append(f"Line {start + 1}-{start + len(shown)} of {len(content)}")
    return lines
