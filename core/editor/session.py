"""Runtime state of one live mount of the editing widget."""

from dataclasses import dataclass
from enum import Enum

from core.blocks.types import BlockDocument

from .timers import Debouncer
from .widget import EditorWidget


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    INIT_FAILED = "init_failed"
    DESTROYING = "destroying"
    DESTROYED = "destroyed"


# States in which a widget is live or being brought up
LIVE_STATES = frozenset({SessionState.INITIALIZING, SessionState.READY})


@dataclass
class EditorConfig:
    """Timings for the editing session, in seconds."""
    settle_delay: float = 0.1  # Lets the host finish its own teardown/mount cycle
    typing_window: float = 2.0
    focus_release_delay: float = 0.5
    save_debounce: float = 1.5
    ready_timeout: float = 5.0  # Upper bound on waiting for readiness during destroy


@dataclass
class EditingSession:
    """
    Per-controller session record.

    Owned by exactly one EditorController; never shared and never persisted.
    """
    state: SessionState = SessionState.UNINITIALIZED
    widget: EditorWidget | None = None
    document: BlockDocument | None = None  # Latest document supplied by the host
    is_focused: bool = False
    is_typing: bool = False
    last_keystroke_at: float | None = None
    typing_timer: Debouncer | None = None
    focus_timer: Debouncer | None = None
    save_timer: Debouncer | None = None

    def cancel_timers(self) -> None:
        for timer in (self.typing_timer, self.focus_timer, self.save_timer):
            if timer is not None:
                timer.cancel()

    def reset_activity(self) -> None:
        self.is_focused = False
        self.is_typing = False
        self.last_keystroke_at = None
