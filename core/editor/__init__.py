"""Live editing session management for block documents."""

from .controller import FALLBACK_MESSAGE, EditorController, EditorSaveError
from .session import EditingSession, EditorConfig, SessionState
from .timers import AsyncioScheduler, Debouncer, Scheduler
from .widget import EditorWidget, MountPoint, Node, WidgetOptions

__all__ = [
    "FALLBACK_MESSAGE",
    "EditorController",
    "EditorSaveError",
    "EditingSession",
    "EditorConfig",
    "SessionState",
    "AsyncioScheduler",
    "Debouncer",
    "Scheduler",
    "EditorWidget",
    "MountPoint",
    "Node",
    "WidgetOptions",
]
