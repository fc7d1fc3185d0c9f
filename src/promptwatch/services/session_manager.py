"""Central orchestrator: owns the view state and runs background loads."""

import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Optional

from PySide6.QtCore import QObject, Signal, Slot, QTimer, QThread

from promptwatch.services.process_monitor import find_processes
from promptwatch.services.session_aggregator import INTERRUPTION_GAP, aggregate_session
from promptwatch.services.session_index import (
    CLAUDE_PROJECTS_DIR,
    find_sessions_for_directory,
    list_projects,
    list_sessions,
)
from promptwatch.services.view_state import transition
from promptwatch.types.processes import Process
from promptwatch.types.views import (
    Effect,
    Event,
    LoadProcesses,
    LoadProjects,
    LoadSessionDetail,
    LoadSessionsForDirectory,
    LoadSessionsForProject,
    ProcessesLoaded,
    ProjectsLoaded,
    SessionDetailLoaded,
    SessionsLoaded,
    Tick,
    ViewState,
)

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL = 2000  # ms

ProcessSource = Callable[[bool], list[Process]]


class _LoadWorker(QThread):
    """Background thread running one effect and delivering its completion event."""

    loaded = Signal(object)  # Event

    def __init__(self, effect: Effect, perform: Callable[[Effect], Event],
                 fail: Callable[[Effect, Exception], Event], parent=None):
        super().__init__(parent)
        self._effect = effect
        self._perform = perform
        self._fail = fail

    def run(self):
        try:
            event = self._perform(self._effect)
        except Exception as e:
            logger.exception("Worker failed on %s", type(self._effect).__name__)
            event = self._fail(self._effect, e)
        self.loaded.emit(event)


class SessionManager(QObject):
    """Applies events to the single ViewState and dispatches effects.

    Events are processed one at a time on the thread that owns the manager.
    Worker results come back as queued signals and go through the same
    ``post`` path, so the state is never mutated concurrently.
    """

    state_changed = Signal()

    def __init__(
        self,
        parent=None,
        projects_root: str | Path | None = None,
        interruption_gap: timedelta = INTERRUPTION_GAP,
        refresh_interval: int = DEFAULT_REFRESH_INTERVAL,
        initial_state: Optional[ViewState] = None,
        process_source: Optional[ProcessSource] = None,
    ):
        super().__init__(parent)
        self._projects_root = Path(projects_root) if projects_root else CLAUDE_PROJECTS_DIR
        self._interruption_gap = interruption_gap
        self._state = initial_state if initial_state is not None else ViewState()
        self._process_source = process_source or self._find_processes
        self._workers: list[_LoadWorker] = []

        self._refresh_timer = QTimer(self)
        self._refresh_timer.setInterval(refresh_interval)
        self._refresh_timer.timeout.connect(self._on_tick)

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def projects_root(self) -> Path:
        return self._projects_root

    def start(self):
        """Take the first process snapshot and start periodic refresh."""
        self.post(Tick())
        self._refresh_timer.start()

    def post(self, event: Event):
        """Apply one event and start the background work it asks for."""
        self._state, effects = transition(self._state, event)
        for effect in effects:
            self._dispatch(effect)
        self.state_changed.emit()

    # ------------------------------------------------------------------
    # Effects
    # ------------------------------------------------------------------

    def _dispatch(self, effect: Effect):
        worker = _LoadWorker(effect, self._perform, self._failed, self)
        worker.loaded.connect(self._on_loaded)
        self._workers.append(worker)
        worker.start()

    def _perform(self, effect: Effect) -> Event:
        """Run on the worker thread. Must not touch self._state."""
        if isinstance(effect, LoadProcesses):
            processes = self._process_source(effect.show_helpers)
            return ProcessesLoaded(
                ticket=effect.ticket, processes=tuple(processes), loaded_at=datetime.now(),
            )
        if isinstance(effect, LoadProjects):
            if not self._projects_root.exists():
                logger.warning("Projects root does not exist: %s", self._projects_root)
                return ProjectsLoaded(ticket=effect.ticket)
            return ProjectsLoaded(ticket=effect.ticket, projects=tuple(list_projects(self._projects_root)))
        if isinstance(effect, LoadSessionsForDirectory):
            sessions = find_sessions_for_directory(
                effect.working_dir, self._projects_root, self._interruption_gap,
            )
            return SessionsLoaded(ticket=effect.ticket, sessions=tuple(sessions))
        if isinstance(effect, LoadSessionsForProject):
            sessions = list_sessions(effect.project_dir, self._interruption_gap)
            return SessionsLoaded(ticket=effect.ticket, sessions=tuple(sessions))
        if isinstance(effect, LoadSessionDetail):
            return SessionDetailLoaded(ticket=effect.ticket, stats=aggregate_session(effect.file_path))
        raise TypeError(f"unknown effect: {effect!r}")

    def _failed(self, effect: Effect, error: Exception) -> Event:
        message = str(error) or type(error).__name__
        if isinstance(effect, LoadProcesses):
            return ProcessesLoaded(ticket=effect.ticket, error=message)
        if isinstance(effect, LoadProjects):
            return ProjectsLoaded(ticket=effect.ticket, error=message)
        if isinstance(effect, (LoadSessionsForDirectory, LoadSessionsForProject)):
            return SessionsLoaded(ticket=effect.ticket, error=message)
        return SessionDetailLoaded(ticket=effect.ticket, error=message)

    def _find_processes(self, show_helpers: bool) -> list[Process]:
        return find_processes(show_helpers=show_helpers, projects_root=self._projects_root)

    @Slot(object)
    def _on_loaded(self, event: Event):
        worker = self.sender()
        if isinstance(worker, _LoadWorker):
            if worker in self._workers:
                self._workers.remove(worker)
            # run() returns right after emitting
            worker.wait()
            worker.deleteLater()
        self.post(event)

    @Slot()
    def _on_tick(self):
        self.post(Tick())

    def cleanup(self):
        """Stop the refresh timer and wait for in-flight loads."""
        self._refresh_timer.stop()
        for worker in list(self._workers):
            worker.wait(2000)
