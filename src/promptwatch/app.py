"""Application entry point: settings, logging and the terminal loop."""

import argparse
import logging
import os
import shutil
import signal
import sys
from typing import Optional

from PySide6.QtCore import QCoreApplication, QObject, QSocketNotifier, Signal

from promptwatch.render import render
from promptwatch.services.config_manager import ConfigManager
from promptwatch.services.session_manager import SessionManager
from promptwatch.types.views import (
    Back,
    End,
    Home,
    MessageFilter,
    MoveDown,
    MoveUp,
    NextMessage,
    PageDown,
    PageUp,
    PreviousMessage,
    Refresh,
    Select,
    SetFilter,
    ToggleHelpers,
    ToggleProjects,
    ToggleSort,
    ViewState,
)
from promptwatch.utils.cost_model import DEFAULT_RATES

logger = logging.getLogger(__name__)

# One command per input line; an empty line selects
COMMANDS = {
    "": Select,
    "enter": Select,
    "esc": Back,
    "j": MoveDown,
    "k": MoveUp,
    "g": Home,
    "G": End,
    "<": PageUp,
    ">": PageDown,
    "h": PreviousMessage,
    "l": NextMessage,
    "s": ToggleSort,
    "p": ToggleProjects,
    "r": Refresh,
    "f": ToggleHelpers,
}

FILTER_COMMANDS = {
    "u": MessageFilter.USER_ONLY,
    "a": MessageFilter.ASSISTANT_ONLY,
    "b": MessageFilter.ALL,
}

QUIT_COMMANDS = ("q", "quit")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="promptwatch",
        description="Browse running assistant instances and their session logs.",
    )
    parser.add_argument("--interval", type=int, default=None,
                        help="process refresh interval in milliseconds")
    parser.add_argument("--helpers", action="store_true",
                        help="include MCP helper processes")
    parser.add_argument("--projects-root", default=None,
                        help="directory holding per-project session logs")
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    return parser.parse_args(argv)


def configure_logging(debug: bool):
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def event_for_command(command: str):
    """Map one line of input to an event, or None if it is not a command."""
    if command in FILTER_COMMANDS:
        return SetFilter(FILTER_COMMANDS[command])
    event_type = COMMANDS.get(command)
    return event_type() if event_type is not None else None


class TerminalFrontend(QObject):
    """Reads line commands from stdin and prints the view after each change."""

    quit_requested = Signal()

    def __init__(self, manager: SessionManager, rates=DEFAULT_RATES, width: int = 80,
                 stream=None, config: Optional[ConfigManager] = None, parent=None):
        super().__init__(parent)
        self._manager = manager
        self._config = config
        self._show_helpers = manager.state.show_helpers
        self._rates = rates
        self._width = width
        self._stream = stream if stream is not None else sys.stdout
        self._notifier = None
        manager.state_changed.connect(self.redraw)
        manager.state_changed.connect(self._remember_helpers)

    def listen(self, fd: int):
        self._notifier = QSocketNotifier(fd, QSocketNotifier.Type.Read, self)
        self._notifier.activated.connect(self._on_input)

    def _on_input(self, *args):
        line = sys.stdin.readline()
        if not line:
            # stdin closed
            self.quit_requested.emit()
            return
        self.handle_command(line.strip())

    def handle_command(self, command: str) -> bool:
        """Apply one command. Returns False for unknown input."""
        if command in QUIT_COMMANDS:
            self.quit_requested.emit()
            return True
        event = event_for_command(command)
        if event is None:
            logger.debug("Ignoring unknown command %r", command)
            return False
        self._manager.post(event)
        return True

    def _remember_helpers(self):
        # The helper toggle survives restarts
        show_helpers = self._manager.state.show_helpers
        if show_helpers == self._show_helpers:
            return
        self._show_helpers = show_helpers
        if self._config is not None:
            self._config.set_bool("general/showHelpers", show_helpers)

    def redraw(self):
        self._stream.write("\n" + render(self._manager.state, self._width, self._rates) + "\n")
        self._stream.flush()


def run(argv=None) -> int:
    """Launch the application."""
    args = parse_args(argv)

    app = QCoreApplication(sys.argv[:1])
    app.setApplicationName("promptwatch")
    app.setOrganizationName("promptwatch")

    config = ConfigManager()
    configure_logging(args.debug or config.get_bool("advanced/debugLogging"))

    # Allow Ctrl+C to kill the app
    signal.signal(signal.SIGINT, signal.SIG_DFL)

    projects_root = (
        os.path.expanduser(args.projects_root) if args.projects_root else config.projects_root()
    )
    interval = args.interval if args.interval else config.get_int("general/refreshInterval")
    state = ViewState(
        show_helpers=args.helpers or config.get_bool("general/showHelpers"),
        viewport_height=max(config.get_int("view/viewportHeight"), 1),
        card_height=max(config.get_int("view/cardHeight"), 1),
    )
    logger.debug("Projects root %s, refresh every %d ms", projects_root, interval)

    manager = SessionManager(
        projects_root=projects_root,
        interruption_gap=config.interruption_gap(),
        refresh_interval=interval,
        initial_state=state,
    )
    frontend = TerminalFrontend(
        manager, rates=config.pricing_rates(), width=shutil.get_terminal_size().columns,
        config=config,
    )
    frontend.quit_requested.connect(app.quit)
    frontend.listen(sys.stdin.fileno())

    manager.start()
    ret = app.exec()
    manager.cleanup()
    return ret
