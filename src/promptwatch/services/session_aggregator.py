"""Single-pass session aggregation: full statistics and cheap list metadata."""

import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

from promptwatch.services.jsonl_parser import SessionReadError, stream_entries
from promptwatch.services.message_normalizer import normalize_entry, token_count
from promptwatch.types.entries import EntryKind
from promptwatch.types.messages import MessageRole
from promptwatch.types.sessions import SessionMetadata, SessionStats

logger = logging.getLogger(__name__)

# A gap strictly longer than this between two messages counts as an interruption
INTERRUPTION_GAP = timedelta(hours=1)

_EVENT_COUNTERS = {
    EntryKind.PROGRESS: "progress_events",
    EntryKind.SYSTEM: "system_events",
    EntryKind.FILE_SNAPSHOT: "file_snapshots",
    EntryKind.QUEUE_OP: "queue_operations",
    EntryKind.COMPACT: "compact_count",
    EntryKind.ERROR: "error_count",
    EntryKind.UNKNOWN: "unknown_entries",
}

__all__ = [
    "INTERRUPTION_GAP",
    "SessionReadError",
    "aggregate_session",
    "read_session_metadata",
]


def aggregate_session(file_path: str | Path) -> SessionStats:
    """Parse a whole session file into SessionStats.

    Raises SessionReadError if the file cannot be opened or read. Malformed
    lines are skipped.
    """
    stats = SessionStats(file_path=str(file_path))

    for entry in stream_entries(file_path):
        if not stats.assistant_version and entry.version:
            stats.assistant_version = entry.version

        ts = entry.timestamp
        if ts is not None:
            if stats.created_at is None or ts < stats.created_at:
                stats.created_at = ts
            if stats.last_activity_at is None or ts > stats.last_activity_at:
                stats.last_activity_at = ts

        if entry.is_conversational:
            if entry.message is None or not entry.message.role:
                continue
            stats.total_messages += 1
            if entry.message.role == MessageRole.USER.value:
                stats.user_messages += 1
            elif entry.message.role == MessageRole.ASSISTANT.value:
                stats.assistant_messages += 1

            msg = normalize_entry(entry)
            if msg is not None:
                stats.messages.append(msg)
        else:
            counter = _EVENT_COUNTERS[entry.kind]
            setattr(stats, counter, getattr(stats, counter) + 1)

    if stats.created_at is not None and stats.last_activity_at is not None:
        stats.duration = max(stats.last_activity_at - stats.created_at, timedelta(0))

    logger.debug(
        "Aggregated %s: %d entries kept as messages", Path(file_path).name, len(stats.messages),
    )
    return stats


def read_session_metadata(
    file_path: str | Path,
    interruption_gap: timedelta = INTERRUPTION_GAP,
) -> SessionMetadata:
    """Cheap metadata pass for list views; no Message objects are built.

    Raises SessionReadError if the file cannot be read or has no valid
    timestamps.
    """
    started: Optional[datetime] = None
    ended: Optional[datetime] = None
    last_message_at: Optional[datetime] = None
    message_count = 0
    user_prompts = 0
    interruptions = 0
    input_tokens = 0
    output_tokens = 0
    version = ""
    first_prompt = ""
    branch = ""
    sidechain = False

    for entry in stream_entries(file_path):
        ts = entry.timestamp
        if ts is None:
            continue

        if started is None:
            started = ts
            version = entry.version
            branch = entry.git_branch
            sidechain = entry.is_sidechain
        ended = ts

        if not entry.is_conversational:
            continue

        message_count += 1
        if entry.kind == EntryKind.USER:
            user_prompts += 1
            if not first_prompt and entry.message is not None:
                if isinstance(entry.message.content, str):
                    first_prompt = entry.message.content
        elif entry.message is not None:
            usage = entry.message.usage
            input_tokens += token_count(usage.get("input_tokens")) + token_count(usage.get("cache_creation_input_tokens"))
            output_tokens += token_count(usage.get("output_tokens"))

        if last_message_at is not None and ts - last_message_at > interruption_gap:
            interruptions += 1
        last_message_at = ts

    if started is None or ended is None:
        raise SessionReadError("no valid timestamps found in session")

    return SessionMetadata(
        started=started,
        ended=ended,
        message_count=message_count,
        user_prompt_count=user_prompts,
        interruption_count=interruptions,
        total_input_tokens=input_tokens,
        total_output_tokens=output_tokens,
        version=version,
        first_prompt=first_prompt,
        branch=branch,
        sidechain=sidechain,
    )

