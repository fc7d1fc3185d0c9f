"""Streaming JSONL decoder for session log files."""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator, Optional

import orjson

from promptwatch.types.entries import (
    ContentBlock,
    EntryKind,
    EntryMessage,
    LogEntry,
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
    UnknownBlock,
)

logger = logging.getLogger(__name__)

# Max size for a single JSONL line (10MB)
MAX_LINE_SIZE = 10 * 1024 * 1024

# Initial read buffer; lines longer than this are still read whole
READ_BUFFER_SIZE = 512 * 1024

# fromisoformat() on 3.10 takes exactly 3 or 6 fractional digits
_FRACTION_RE = re.compile(r"\.(\d+)")


class SessionReadError(Exception):
    """A session file could not be opened or read."""


def stream_entries(file_path: str | Path) -> Iterator[LogEntry]:
    """Stream-decode a session file, yielding LogEntry objects.

    Malformed and oversized lines are logged and skipped. Failing to open or
    read the file raises SessionReadError.
    """
    path = Path(file_path)
    try:
        f = open(path, "rb", buffering=READ_BUFFER_SIZE)
    except OSError as e:
        raise SessionReadError(f"failed to open session file: {e}") from e

    with f:
        line_num = 0
        while True:
            try:
                line = f.readline()
            except OSError as e:
                raise SessionReadError(f"error reading session file: {e}") from e
            if not line:
                break
            line_num += 1

            if len(line) > MAX_LINE_SIZE:
                logger.warning(
                    "Line %d in %s exceeds %dMB, skipping",
                    line_num, path.name, MAX_LINE_SIZE // (1024 * 1024),
                )
                continue

            entry = decode_line(line)
            if entry is None:
                if line.strip():
                    logger.debug("Skipping undecodable line %d in %s", line_num, path.name)
                continue
            yield entry


def decode_line(line: str | bytes) -> Optional[LogEntry]:
    """Decode one JSONL line. Returns None for anything that is not an entry."""
    line = line.strip()
    if not line or len(line) > MAX_LINE_SIZE:
        return None

    try:
        raw = orjson.loads(line)
    except orjson.JSONDecodeError:
        return None

    if not isinstance(raw, dict):
        return None
    return _parse_raw_entry(raw)


def _micro_fraction(match: re.Match) -> str:
    return "." + match.group(1).ljust(6, "0")[:6]


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an RFC3339 / RFC3339-nano timestamp. Returns None if invalid."""
    if not isinstance(value, str) or not value:
        return None
    text = _FRACTION_RE.sub(_micro_fraction, value.strip())
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        ts = datetime.fromisoformat(text)
    except ValueError:
        return None
    # RFC3339 requires an offset
    if ts.tzinfo is None:
        return None
    return ts


def _parse_raw_entry(raw: dict) -> LogEntry:
    type_str = raw.get("type", "")
    message = raw.get("message")

    return LogEntry(
        kind=EntryKind.from_type(type_str),
        timestamp=parse_timestamp(raw.get("timestamp")),
        type=type_str if isinstance(type_str, str) else "",
        version=_str(raw.get("version")),
        git_branch=_str(raw.get("gitBranch")),
        is_sidechain=raw.get("isSidechain") is True,
        session_id=_str(raw.get("sessionId")),
        cwd=_str(raw.get("cwd")),
        uuid=_str(raw.get("uuid")),
        parent_uuid=_str(raw.get("parentUuid")),
        user_type=_str(raw.get("userType")),
        message=_parse_message(message) if isinstance(message, dict) else None,
    )


def _parse_message(message: dict) -> EntryMessage:
    content = message.get("content", "")
    if isinstance(content, list):
        content = [_parse_block(b) for b in content]
    elif not isinstance(content, str):
        content = ""

    usage = message.get("usage")
    return EntryMessage(
        role=_str(message.get("role")),
        content=content,
        model=_str(message.get("model")),
        usage=usage if isinstance(usage, dict) else {},
    )


def _parse_block(block: Any) -> ContentBlock:
    """Decode one content block by its ``type`` discriminator."""
    if not isinstance(block, dict):
        return UnknownBlock()

    block_type = block.get("type", "")
    if block_type == "text":
        return TextBlock(text=_str(block.get("text")))
    if block_type == "tool_use":
        return ToolUseBlock(
            name=_str(block.get("name")),
            input=block.get("input"),
            id=_str(block.get("id")),
        )
    if block_type == "tool_result":
        return ToolResultBlock(
            content=_result_text(block.get("content")),
            tool_use_id=_str(block.get("tool_use_id")),
            is_error=block.get("is_error") is True,
        )
    if block_type == "thinking":
        return ThinkingBlock(thinking=_str(block.get("thinking")))
    return UnknownBlock(type=_str(block_type))


def _result_text(content: Any) -> str:
    """Plain text of a tool_result's content (string or list of text items)."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        texts = []
        for item in content:
            if isinstance(item, dict) and item.get("type") == "text":
                texts.append(_str(item.get("text")))
        return "\n".join(t for t in texts if t)
    return ""


def _str(value: Any) -> str:
    return value if isinstance(value, str) else ""
