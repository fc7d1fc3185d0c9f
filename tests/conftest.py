"""Shared test fixtures for promptwatch."""

import os
import sys
from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(scope="session")
def qapp():
    """Create a QCoreApplication for tests that need Qt."""
    os.environ["QT_QPA_PLATFORM"] = "offscreen"
    from PySide6.QtCore import QCoreApplication

    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication(sys.argv or ["test"])
    yield app


@pytest.fixture
def fixtures_dir() -> Path:
    """Path to the test fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def scenario_session_path(fixtures_dir) -> Path:
    return fixtures_dir / "scenario_session.jsonl"


@pytest.fixture
def tools_session_path(fixtures_dir) -> Path:
    return fixtures_dir / "tools_session.jsonl"


@pytest.fixture
def malformed_session_path(fixtures_dir) -> Path:
    return fixtures_dir / "malformed_session.jsonl"


@pytest.fixture
def tmp_projects_root(tmp_path) -> Path:
    """Create a temporary projects directory with one empty project."""
    projects_dir = tmp_path / ".claude" / "projects"
    project_dir = projects_dir / "-home-wiz-projects-myapp"
    project_dir.mkdir(parents=True)
    return projects_dir


@pytest.fixture
def tmp_session_file(tmp_projects_root, tools_session_path) -> Path:
    """Copy the tools session into the temporary project."""
    dest = tmp_projects_root / "-home-wiz-projects-myapp" / "test-session.jsonl"
    dest.write_text(tools_session_path.read_text())
    return dest
