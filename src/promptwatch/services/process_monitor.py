"""Discover running assistant processes through Linux /proc."""

import logging
import os
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Optional

from promptwatch.services.session_index import CLAUDE_PROJECTS_DIR, has_sessions
from promptwatch.types.processes import Process, WORKDIR_PERMISSION_DENIED, WORKDIR_UNAVAILABLE

logger = logging.getLogger(__name__)

PROC_ROOT = Path("/proc")
HELPER_FLAGS = ("--claude-in-chrome-mcp", "--mcp")


def find_processes(
    show_helpers: bool = False,
    projects_root: str | Path = CLAUDE_PROJECTS_DIR,
    proc_root: Path = PROC_ROOT,
    session_check: Optional[Callable[[str], bool]] = None,
) -> list[Process]:
    """Snapshot of running assistant processes that have recorded sessions."""
    if session_check is None:
        def session_check(working_dir: str) -> bool:
            return has_sessions(working_dir, projects_root)

    try:
        pids = sorted(int(p.name) for p in proc_root.iterdir() if p.name.isdigit())
    except OSError as e:
        raise OSError(f"failed to get processes: {e}") from e

    boot_time = _boot_time(proc_root)
    processes = []
    for pid in pids:
        proc_dir = proc_root / str(pid)
        if not _is_assistant_executable(proc_dir):
            continue
        try:
            cmdline = _read_cmdline(proc_dir)
        except OSError:
            continue

        is_helper = any(flag in cmdline for flag in HELPER_FLAGS)
        if is_helper and not show_helpers:
            continue

        try:
            proc = _collect_metrics(pid, proc_dir, cmdline, is_helper, boot_time)
        except (OSError, ValueError, IndexError):
            logger.debug("Cannot collect metrics for pid %d", pid, exc_info=True)
            continue

        if not proc.has_working_dir or not session_check(proc.working_dir):
            continue
        processes.append(proc)

    return processes


def get_working_dir(pid: int, proc_root: Path = PROC_ROOT) -> tuple[str, Optional[Exception]]:
    """Return (path, error) for a process's current directory.

    PermissionError is returned as-is so callers can tell it apart from a
    process that has gone away.
    """
    try:
        cwd = os.readlink(proc_root / str(pid) / "cwd")
    except OSError as e:
        return "", e

    if not os.path.isdir(cwd):
        return "", NotADirectoryError(f"cwd is not a directory: {cwd}")
    return cwd, None


def working_dir_display(pid: int, proc_root: Path = PROC_ROOT) -> str:
    """Working directory, or a sentinel when it cannot be read."""
    cwd, err = get_working_dir(pid, proc_root)
    if isinstance(err, PermissionError):
        return WORKDIR_PERMISSION_DENIED
    if err is not None:
        return WORKDIR_UNAVAILABLE
    return cwd


def _is_assistant_executable(proc_dir: Path) -> bool:
    try:
        exe = os.readlink(proc_dir / "exe")
    except OSError:
        return False
    # Skip the desktop app
    if "Claude.app" in exe:
        return False
    return exe.endswith("/claude") or exe == "claude"


def _read_cmdline(proc_dir: Path) -> str:
    raw = (proc_dir / "cmdline").read_bytes()
    return " ".join(part.decode("utf-8", "replace") for part in raw.split(b"\0") if part)


def _collect_metrics(pid: int, proc_dir: Path, cmdline: str, is_helper: bool, boot_time: float) -> Process:
    stat = (proc_dir / "stat").read_text()
    # Fields after the parenthesised command name; field 3 is index 0 here
    fields = stat[stat.rindex(")") + 2:].split()
    ticks = os.sysconf("SC_CLK_TCK")
    cpu_seconds = (int(fields[11]) + int(fields[12])) / ticks
    start_epoch = boot_time + int(fields[19]) / ticks

    now = time.time()
    elapsed = max(now - start_epoch, 0.0)
    cpu_percent = 100.0 * cpu_seconds / elapsed if elapsed > 0 else 0.0

    rss_pages = int((proc_dir / "statm").read_text().split()[1])
    memory_mb = rss_pages * os.sysconf("SC_PAGE_SIZE") / 1024 / 1024

    return Process(
        pid=pid,
        cpu_percent=cpu_percent,
        memory_mb=memory_mb,
        working_dir=working_dir_display(pid, proc_dir.parent),
        command=cmdline,
        uptime=timedelta(seconds=elapsed),
        start_time=datetime.fromtimestamp(start_epoch),
        is_helper=is_helper,
    )


def _boot_time(proc_root: Path) -> float:
    try:
        for line in (proc_root / "stat").read_text().splitlines():
            if line.startswith("btime "):
                return float(line.split()[1])
    except OSError:
        logger.debug("Cannot read boot time", exc_info=True)
    return 0.0
