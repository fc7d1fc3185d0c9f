"""Normalized message types built from session log entries."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class MessageKind(str, Enum):
    PROMPT = "prompt"
    ASSISTANT_RESPONSE = "assistant_response"
    TOOL_RESULT = "tool_result"


@dataclass(frozen=True)
class TokenUsage:
    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_input_tokens: int = 0
    cache_creation_input_tokens: int = 0

    @property
    def total(self) -> int:
        return (self.input_tokens + self.output_tokens +
                self.cache_read_input_tokens + self.cache_creation_input_tokens)


@dataclass(frozen=True)
class Message:
    role: MessageRole
    kind: MessageKind
    content: str
    timestamp: Optional[datetime] = None
    tool_name: str = ""
    tool_arguments: str = ""  # JSON-serialized tool input
    model: str = ""
    usage: TokenUsage = field(default_factory=TokenUsage)
    # Identity
    id: str = ""
    parent_id: str = ""
    session_id: str = ""
    working_dir: str = ""
    version: str = ""
    branch: str = ""
    user_type: str = ""
    sidechain: bool = False

    @property
    def input_tokens(self) -> int:
        return self.usage.input_tokens

    @property
    def output_tokens(self) -> int:
        return self.usage.output_tokens

    @property
    def cache_write_tokens(self) -> int:
        return self.usage.cache_creation_input_tokens

    @property
    def cache_read_tokens(self) -> int:
        return self.usage.cache_read_input_tokens
