"""Services for promptwatch."""

from promptwatch.services.session_manager import SessionManager
from promptwatch.services.config_manager import ConfigManager
from promptwatch.services.session_aggregator import aggregate_session, read_session_metadata
from promptwatch.services.view_state import transition, visible_messages

__all__ = [
    "SessionManager",
    "ConfigManager",
    "aggregate_session",
    "read_session_metadata",
    "transition",
    "visible_messages",
]
