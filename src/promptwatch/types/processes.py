"""Running assistant process snapshot types."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

# Rendered in place of a working directory that could not be read
WORKDIR_PERMISSION_DENIED = "[Permission Denied]"
WORKDIR_UNAVAILABLE = "[Unavailable]"


@dataclass(frozen=True)
class Process:
    """One running assistant instance."""
    pid: int
    cpu_percent: float = 0.0
    memory_mb: float = 0.0
    working_dir: str = ""
    command: str = ""
    uptime: timedelta = timedelta(0)
    start_time: Optional[datetime] = None
    is_helper: bool = False

    @property
    def has_working_dir(self) -> bool:
        return bool(self.working_dir) and self.working_dir not in (
            WORKDIR_PERMISSION_DENIED, WORKDIR_UNAVAILABLE,
        )
