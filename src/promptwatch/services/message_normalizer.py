"""Turn decoded user/assistant log entries into canonical Messages."""

from typing import Any, Optional

import orjson

from promptwatch.types.entries import (
    LogEntry,
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from promptwatch.types.messages import Message, MessageKind, MessageRole, TokenUsage


def normalize_entry(entry: LogEntry) -> Optional[Message]:
    """Build a Message from a user/assistant entry.

    Returns None when the entry carries neither text nor a tool call;
    those entries are intentionally not shown.
    """
    if not entry.is_conversational or entry.message is None:
        return None

    try:
        role = MessageRole(entry.message.role)
    except ValueError:
        return None

    content = entry.message.content
    text = ""
    kind: Optional[MessageKind] = None
    tool_name = ""
    tool_arguments = ""
    has_text = False

    if isinstance(content, str):
        text = content
        kind = MessageKind.PROMPT if role == MessageRole.USER else MessageKind.ASSISTANT_RESPONSE
    elif role == MessageRole.USER:
        for block in content:
            if isinstance(block, ToolResultBlock) and block.content:
                text = block.content
                kind = MessageKind.TOOL_RESULT
                break
            if isinstance(block, TextBlock) and block.text and not text:
                text = block.text
                kind = MessageKind.PROMPT
    else:
        for block in content:
            if isinstance(block, TextBlock):
                if block.text and not has_text:
                    # Replaces a tool-call placeholder
                    text = block.text
                    has_text = True
                    kind = MessageKind.ASSISTANT_RESPONSE
            elif isinstance(block, ToolUseBlock):
                if block.name and not tool_name:
                    tool_name = block.name
                    tool_arguments = _serialize_arguments(block.input)
                    kind = MessageKind.ASSISTANT_RESPONSE
                    if not text:
                        text = f"Called tool: {tool_name}"
            elif isinstance(block, ThinkingBlock):
                continue

    if not text and not tool_name:
        return None
    if kind is None:
        kind = MessageKind.PROMPT if role == MessageRole.USER else MessageKind.ASSISTANT_RESPONSE

    usage = TokenUsage()
    model = ""
    if role == MessageRole.ASSISTANT:
        usage = _parse_usage(entry.message.usage)
        model = entry.message.model

    return Message(
        role=role,
        kind=kind,
        content=text,
        timestamp=entry.timestamp,
        tool_name=tool_name,
        tool_arguments=tool_arguments,
        model=model,
        usage=usage,
        id=entry.uuid,
        parent_id=entry.parent_uuid,
        session_id=entry.session_id,
        working_dir=entry.cwd,
        version=entry.version,
        branch=entry.git_branch,
        user_type=entry.user_type,
        sidechain=entry.is_sidechain,
    )


def _parse_usage(raw: dict) -> TokenUsage:
    return TokenUsage(
        input_tokens=token_count(raw.get("input_tokens")),
        output_tokens=token_count(raw.get("output_tokens")),
        cache_read_input_tokens=token_count(raw.get("cache_read_input_tokens")),
        cache_creation_input_tokens=token_count(raw.get("cache_creation_input_tokens")),
    )


def token_count(value: Any) -> int:
    # bool is an int subclass; a flag is not a token count
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return max(value, 0)


def _serialize_arguments(tool_input: Any) -> str:
    if tool_input is None:
        return ""
    try:
        return orjson.dumps(tool_input, option=orjson.OPT_SORT_KEYS).decode()
    except TypeError:
        return str(tool_input)
