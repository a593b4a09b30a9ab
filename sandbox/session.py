"""Terminal-multiplexer (tmux) session emulator.

Models the lifecycle of a single tmux session without any real process
management: NoSession, Attached and Detached, plus pane and window counters.
Panes are counted across the whole session, not per window.
"""

import logging
from typing import Callable, Optional

from pydantic import BaseModel, Field

from sandbox.errors import CommandNotFoundError, MissingOperandError, SessionGuardError

logger = logging.getLogger(__name__)

NESTED_SESSION_MESSAGE = "sessions should be nested with care, unset $TMUX to force"
NO_SERVER_MESSAGE = "no server running on /tmp/tmux-1000/default"
NO_SESSIONS_MESSAGE = "no sessions"
NO_CLIENT_MESSAGE = "no current client"


def _option_value(args: list[str], flag: str) -> Optional[str]:
    """Return the value following a flag, or None when the flag is absent.

    Raises:
        MissingOperandError: If the flag is the last argument.
    """
    if flag not in args:
        return None
    index = args.index(flag)
    if index + 1 >= len(args):
        raise MissingOperandError(f"tmux: option requires an argument -- {flag.lstrip('-')}")
    return args[index + 1]


class SessionState(BaseModel):
    """State of the emulated tmux server.

    Args:
        name: Session name, None when there is no session.
        attached: Whether the learner is inside the session.
        detached: Whether the session exists but is detached.
        panes: Pane count for the session.
        windows: Window count for the session.
        current_pane: Zero-based index of the active pane.
        current_window: Zero-based index of the active window.
        sessions_started: Sessions created since the last reset.
    """

    name: Optional[str] = Field(default=None, description="Session name, None when no session")
    attached: bool = Field(default=False, description="Whether the learner is inside the session")
    detached: bool = Field(default=False, description="Whether the session exists but is detached")
    panes: int = Field(default=0, description="Pane count")
    windows: int = Field(default=0, description="Window count")
    current_pane: int = Field(default=0, description="Active pane index")
    current_window: int = Field(default=0, description="Active window index")
    sessions_started: int = Field(default=0, description="Sessions created since the last reset")

    @property
    def has_session(self) -> bool:
        return self.name is not None

    @property
    def state(self) -> str:
        if self.attached:
            return "attached"
        if self.has_session:
            return "detached"
        return "none"

    def execute(self, args: list[str]) -> str:
        """Run one tmux subcommand.

        Args:
            args: Arguments after "tmux". An empty list means "new-session".

        Returns:
            Output text of the subcommand.

        Raises:
            SessionGuardError: If the subcommand is not allowed in the current state.
            CommandNotFoundError: If the subcommand is unknown.
        """
        subcommand = args[0] if args else "new-session"
        options = args[1:]

        handlers: dict[str, Callable[[list[str]], str]] = {
            "new": self._new_session,
            "new-session": self._new_session,
            "attach": self._attach,
            "attach-session": self._attach,
            "a": self._attach,
            "detach": self._detach,
            "detach-client": self._detach,
            "d": self._detach,
            "ls": self._list_sessions,
            "list-sessions": self._list_sessions,
            "split-window": self._split_window,
            "select-pane": self._select_pane,
            "new-window": self._new_window,
            "select-window": self._select_window,
            "next-window": lambda opts: self._select_window(["-n"]),
            "previous-window": lambda opts: self._select_window(["-p"]),
            "kill-session": self._kill_session,
        }

        handler = handlers.get(subcommand)
        if handler is None:
            raise CommandNotFoundError(f"unknown command: {subcommand}")

        output = handler(options)
        logger.debug(f"tmux {subcommand}: state={self.state}")
        return output

    def _require_attached(self) -> None:
        if not self.attached:
            raise SessionGuardError(NO_CLIENT_MESSAGE)

    def _new_session(self, options: list[str]) -> str:
        if self.attached:
            raise SessionGuardError(NESTED_SESSION_MESSAGE)

        name = _option_value(options, "-s") or str(self.sessions_started)
        self.name = name
        self.attached = True
        self.detached = False
        self.panes = 1
        self.windows = 1
        self.current_pane = 0
        self.current_window = 0
        self.sessions_started += 1
        return f"[new session {name}]"

    def _attach(self, options: list[str]) -> str:
        if self.attached:
            raise SessionGuardError(NESTED_SESSION_MESSAGE)
        if not self.has_session:
            raise SessionGuardError(NO_SESSIONS_MESSAGE)

        target = _option_value(options, "-t")
        if target is not None and target != self.name:
            raise SessionGuardError(f"can't find session: {target}")

        self.attached = True
        self.detached = False
        return f"[attached (to session {self.name})]"

    def _detach(self, options: list[str]) -> str:
        self._require_attached()
        self.attached = False
        self.detached = True
        return f"[detached (from session {self.name})]"

    def _list_sessions(self, options: list[str]) -> str:
        if not self.has_session:
            raise SessionGuardError(NO_SERVER_MESSAGE)
        line = f"{self.name}: {self.windows} windows"
        if self.attached:
            line += " (attached)"
        elif self.detached:
            line += " (detached)"
        return line

    def _split_window(self, options: list[str]) -> str:
        self._require_attached()
        orientation = "horizontally" if "-h" in options else "vertically"
        self.panes += 1
        self.current_pane = self.panes - 1
        return f"split window {orientation} (pane {self.current_pane})"

    def _select_pane(self, options: list[str]) -> str:
        self._require_attached()
        self.current_pane = (self.current_pane + 1) % self.panes
        return f"selected pane {self.current_pane}"

    def _new_window(self, options: list[str]) -> str:
        self._require_attached()
        self.windows += 1
        self.current_window = self.windows - 1
        return f"created window {self.current_window}"

    def _select_window(self, options: list[str]) -> str:
        self._require_attached()
        step = -1 if "-p" in options else 1
        self.current_window = (self.current_window + step) % self.windows
        return f"selected window {self.current_window}"

    def _kill_session(self, options: list[str]) -> str:
        if not self.has_session:
            raise SessionGuardError(NO_SERVER_MESSAGE)
        name = self.name
        self._clear_session()
        return f"[killed session {name}]"

    def _clear_session(self) -> None:
        self.name = None
        self.attached = False
        self.detached = False
        self.panes = 0
        self.windows = 0
        self.current_pane = 0
        self.current_window = 0

    def reset(self) -> None:
        """Return to NoSession, forgetting that any session ever existed."""
        self._clear_session()
        self.sessions_started = 0

    def describe(self) -> str:
        """Return a one-line status for display."""
        if self.attached:
            return (
                f"tmux session {self.name} (attached): "
                f"window {self.current_window + 1}/{self.windows}, "
                f"pane {self.current_pane + 1}/{self.panes}"
            )
        if self.has_session:
            return f"tmux session {self.name} (detached)"
        return "no tmux session"
