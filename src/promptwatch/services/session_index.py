"""Project and session discovery under the projects root."""

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import orjson

from promptwatch.services.jsonl_parser import SessionReadError, parse_timestamp
from promptwatch.services.session_aggregator import INTERRUPTION_GAP, read_session_metadata
from promptwatch.types.sessions import Project, Session, SessionIndexFile
from promptwatch.utils.path_codec import encode_path, format_project_path, project_display_name

logger = logging.getLogger(__name__)

CLAUDE_PROJECTS_DIR = Path.home() / ".claude" / "projects"
SESSIONS_INDEX_FILE = "sessions-index.json"

# Session header lines scanned for an explicit id/title
_HEADER_LINES = 10


class ProjectReadError(Exception):
    """A project directory or its index could not be read."""


def list_projects(projects_root: str | Path = CLAUDE_PROJECTS_DIR, home: Optional[str] = None) -> list[Project]:
    """List project directories, most recently modified first."""
    root = Path(projects_root)
    try:
        entries = list(os.scandir(root))
    except OSError as e:
        raise ProjectReadError(f"cannot read projects directory: {e}") from e

    projects = []
    for entry in entries:
        try:
            if not entry.is_dir():
                continue
            mtime = entry.stat().st_mtime
        except OSError:
            continue

        dir_path = Path(entry.path)
        display_name = project_display_name(entry.name, home)
        try:
            index = read_sessions_index(dir_path / SESSIONS_INDEX_FILE)
        except ProjectReadError:
            index = None
        if index is not None and index.original_path:
            display_name = format_project_path(index.original_path, home)

        projects.append(Project(
            id=entry.name,
            dir_path=str(dir_path),
            display_name=display_name,
            modified_at=datetime.fromtimestamp(mtime, tz=timezone.utc),
            session_count=_count_session_files(dir_path),
        ))

    # Stable sort: ties keep directory order
    projects.sort(key=lambda p: p.modified_at, reverse=True)
    return projects


def list_sessions(
    project_dir: str | Path,
    interruption_gap=INTERRUPTION_GAP,
) -> list[Session]:
    """List sessions in one project directory, most recently modified first.

    The ID and title come from the file name; metadata is read with the cheap
    pass and left as None for files without usable timestamps.
    """
    dir_path = Path(project_dir)
    try:
        entries = sorted(os.scandir(dir_path), key=lambda e: e.name)
    except OSError as e:
        raise ProjectReadError(f"cannot read project directory: {e}") from e

    sessions = []
    for entry in entries:
        if not entry.name.endswith(".jsonl"):
            continue
        try:
            if entry.is_dir():
                continue
            mtime = entry.stat().st_mtime
        except OSError:
            continue

        session_id = entry.name[:-len(".jsonl")]
        sessions.append(Session(
            id=session_id,
            title=session_id,
            file_path=entry.path,
            updated_at=datetime.fromtimestamp(mtime, tz=timezone.utc),
            metadata=_metadata_or_none(entry.path, interruption_gap),
        ))

    sessions.sort(key=lambda s: s.updated_at, reverse=True)
    return sessions


def find_sessions_for_directory(
    working_dir: str,
    projects_root: str | Path = CLAUDE_PROJECTS_DIR,
    interruption_gap=INTERRUPTION_GAP,
) -> list[Session]:
    """Sessions recorded for a process's working directory.

    A missing project directory means no sessions, not an error. Sessions may
    carry an explicit id/title/createdAt/updatedAt in their first lines.
    """
    session_dir = Path(projects_root) / encode_path(working_dir)
    if not session_dir.is_dir():
        return []

    try:
        entries = sorted(os.scandir(session_dir), key=lambda e: e.name)
    except OSError as e:
        raise ProjectReadError(f"failed to read session directory: {e}") from e

    sessions = []
    for entry in entries:
        if not entry.name.endswith(".jsonl"):
            continue
        try:
            if entry.is_dir():
                continue
            session = _read_session_header(Path(entry.path))
        except OSError:
            logger.debug("Skipping unreadable session file %s", entry.path, exc_info=True)
            continue
        sessions.append(Session(
            id=session.id,
            title=session.title,
            file_path=session.file_path,
            updated_at=session.updated_at,
            created_at=session.created_at,
            metadata=_metadata_or_none(entry.path, interruption_gap),
        ))

    sessions.sort(key=lambda s: s.updated_at, reverse=True)
    return sessions


def read_sessions_index(index_path: str | Path) -> Optional[SessionIndexFile]:
    """Parse sessions-index.json. Returns None if the file does not exist."""
    path = Path(index_path)
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        return None
    except OSError as e:
        raise ProjectReadError(f"cannot read sessions index: {e}") from e

    try:
        raw = orjson.loads(data)
    except orjson.JSONDecodeError as e:
        raise ProjectReadError(f"cannot parse sessions index: {e}") from e
    if not isinstance(raw, dict):
        raise ProjectReadError("cannot parse sessions index: not an object")

    version = raw.get("version", 0)
    entries = raw.get("entries", [])
    original_path = raw.get("originalPath", "")
    return SessionIndexFile(
        version=version if isinstance(version, int) else 0,
        entries=entries if isinstance(entries, list) else [],
        original_path=original_path if isinstance(original_path, str) else "",
    )


def has_sessions(working_dir: str, projects_root: str | Path = CLAUDE_PROJECTS_DIR) -> bool:
    """Whether any project under the root records sessions for working_dir."""
    if not working_dir:
        return False
    root = Path(projects_root)
    if _count_session_files(root / encode_path(working_dir)) > 0:
        return True

    try:
        entries = list(os.scandir(root))
    except OSError:
        return False
    for entry in entries:
        try:
            index = read_sessions_index(Path(entry.path) / SESSIONS_INDEX_FILE)
        except (ProjectReadError, OSError):
            continue
        if index is not None and index.original_path == working_dir:
            return True
    return False


def _read_session_header(path: Path) -> Session:
    """ID/title/timestamps from the first few lines, falling back to the file."""
    session_id = path.stem
    title = ""
    created_at = updated_at = None

    with open(path, "rb") as f:
        for line_num, line in enumerate(f):
            if line_num >= _HEADER_LINES:
                break
            try:
                raw = orjson.loads(line)
            except orjson.JSONDecodeError:
                continue
            if not isinstance(raw, dict):
                continue
            if isinstance(raw.get("id"), str) and raw["id"]:
                session_id = raw["id"]
            if isinstance(raw.get("title"), str):
                title = raw["title"]
            created_at = parse_timestamp(raw.get("createdAt")) or created_at
            updated_at = parse_timestamp(raw.get("updatedAt")) or updated_at
            if title:
                break

    mtime = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
    return Session(
        id=session_id,
        title=title or f"Session {session_id[:8]}",
        file_path=str(path),
        updated_at=updated_at or mtime,
        created_at=created_at or mtime,
    )


def _metadata_or_none(path: str, interruption_gap):
    try:
        return read_session_metadata(path, interruption_gap)
    except SessionReadError as e:
        logger.debug("No metadata for %s: %s", path, e)
        return None


def _count_session_files(dir_path: Path) -> int:
    try:
        return sum(
            1 for e in os.scandir(dir_path)
            if e.name.endswith(".jsonl") and e.is_file()
        )
    except OSError:
        return 0
