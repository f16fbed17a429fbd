"""
Lifecycle controller for the live editing widget.

Keeps one BlockDocument in sync with one asynchronously-initialized widget
per mount point:

    UNINITIALIZED -> INITIALIZING -> READY -> DESTROYING -> DESTROYED
                          |
                          +-> INIT_FAILED (back to UNINITIALIZED on next mount)

Error handling: widget failures never escape the controller. Initialization
failures leave a fallback message in the mount point and are reported to
Sentry; render/clear/destroy failures are logged; debounced save failures
are logged and retried on the next change. Only an explicit save() raises.
"""

import asyncio
import logging
from typing import Callable

import sentry_sdk

from core.blocks.types import BlockDocument, create_empty, document_from_dict, document_to_dict

from .session import LIVE_STATES, EditingSession, EditorConfig, SessionState
from .timers import AsyncioScheduler, Debouncer, Scheduler, TimerHandle
from .widget import DEFAULT_PLACEHOLDER, EditorWidget, MountPoint, Node, WidgetFactory, WidgetOptions

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "The editor could not be loaded. Please reload the page to try again."


class EditorSaveError(Exception):
    """Raised when the widget cannot serialize its content."""
    pass


class EditorController:
    """
    Owns the editing session for one mount point.

    Args:
        mount_point: Container the widget renders into
        widget_factory: Constructs a widget inside a mount point
        data: Initial document supplied by the host (never mutated)
        on_change: Called with a fresh BlockDocument after each save
        read_only: Widget is display-only; changes are never saved
        placeholder: Placeholder text for an empty editor
        config: Timings; defaults to EditorConfig()
        scheduler: Timer source; defaults to the running event loop
    """

    def __init__(
        self,
        mount_point: MountPoint,
        widget_factory: WidgetFactory,
        *,
        data: BlockDocument | None = None,
        on_change: Callable[[BlockDocument], None] | None = None,
        read_only: bool = False,
        placeholder: str = DEFAULT_PLACEHOLDER,
        config: EditorConfig | None = None,
        scheduler: Scheduler | None = None,
    ):
        self.mount_point = mount_point
        self.widget_factory = widget_factory
        self.on_change = on_change
        self.read_only = read_only
        self.placeholder = placeholder
        self.save_disabled = False
        self.config = config or EditorConfig()
        self.scheduler = scheduler or AsyncioScheduler()

        self.session = EditingSession(document=data)
        self.session.typing_timer = Debouncer(
            self.scheduler, self.config.typing_window, self._end_typing, "typing"
        )
        self.session.focus_timer = Debouncer(
            self.scheduler, self.config.focus_release_delay, self._release_focus, "focus-release"
        )
        self.session.save_timer = Debouncer(
            self.scheduler, self.config.save_debounce, self._on_save_timer, "save"
        )

        self._mount_handle: TimerHandle | None = None
        self._init_task: asyncio.Task | None = None
        self._teardown_task: asyncio.Task | None = None
        self._last_emitted: BlockDocument | None = None
        self._running_tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def widget(self) -> EditorWidget | None:
        return self.session.widget

    # =========================================================================
    # Mount / unmount
    # =========================================================================

    def mount(self) -> None:
        """
        Request a widget for the mount point after the settle delay.

        A no-op while a mount is already pending, or a widget is
        initializing or ready.
        """
        init_pending = self._init_task is not None and not self._init_task.done()
        if self._mount_handle is not None or init_pending or self.state in LIVE_STATES:
            logger.debug(
                f"Mount of {self.mount_point.mount_id} ignored in state {self.state.value}"
            )
            return

        if self.state == SessionState.INIT_FAILED:
            self.session.state = SessionState.UNINITIALIZED

        self._mount_handle = self.scheduler.call_later(
            self.config.settle_delay, self._begin_initialization
        )

    def _begin_initialization(self) -> None:
        self._mount_handle = None
        self._init_task = asyncio.ensure_future(self._initialize(self._teardown_task))

    async def _initialize(self, pending_teardown: asyncio.Task | None) -> None:
        # A previous teardown always finishes before a new widget is built
        if pending_teardown is not None:
            await asyncio.shield(pending_teardown)

        self.session.state = SessionState.INITIALIZING
        self.session.reset_activity()
        self.mount_point.reset()

        options = WidgetOptions(
            data=document_to_dict(self.session.document or create_empty()),
            on_change=self.handle_widget_change,
            placeholder=self.placeholder,
            read_only=self.read_only,
        )

        try:
            widget = self.widget_factory(self.mount_point, options)
        except Exception as e:
            self._initialization_failed(e)
            return

        self.session.widget = widget

        try:
            await asyncio.shield(widget.is_ready)
        except Exception as e:
            self._initialization_failed(e)
            return

        if self.session.widget is not widget or self.state != SessionState.INITIALIZING:
            return

        self.session.state = SessionState.READY
        logger.info(f"Editor ready in {self.mount_point.mount_id}")

    def _initialization_failed(self, error: Exception) -> None:
        logger.error(f"Editor initialization failed in {self.mount_point.mount_id}: {error}")
        sentry_sdk.capture_exception(error)

        self.session.widget = None
        self.session.state = SessionState.INIT_FAILED
        self.mount_point.reset()
        self.mount_point.append_child(
            Node("div", text=FALLBACK_MESSAGE, attributes={"class": "editor-fallback", "role": "alert"})
        )

    async def wait_until_settled(self) -> SessionState:
        """Wait for any in-flight teardown and initialization; return the resulting state."""
        for task in (self._teardown_task, self._init_task):
            if task is not None and not task.done():
                await asyncio.gather(task, return_exceptions=True)
        return self.state

    async def unmount(self) -> None:
        """
        Tear the widget down and forcibly reset the mount point.

        Safe in any state. Never waits longer than ready_timeout on a widget
        that has not become ready.
        """
        if self._mount_handle is not None:
            self._mount_handle.cancel()
            self._mount_handle = None

        self._teardown_task = asyncio.ensure_future(self._teardown(self._teardown_task))
        await asyncio.shield(self._teardown_task)

    async def _teardown(self, previous: asyncio.Task | None) -> None:
        if previous is not None and not previous.done():
            await asyncio.gather(previous, return_exceptions=True)

        self.session.state = SessionState.DESTROYING
        self.session.cancel_timers()

        init_task, self._init_task = self._init_task, None
        if init_task is not None and not init_task.done():
            init_task.cancel()
            await asyncio.gather(init_task, return_exceptions=True)

        for task in list(self._running_tasks):
            task.cancel()

        widget, self.session.widget = self.session.widget, None
        if widget is not None:
            await self._destroy_widget(widget)

        # Graceful destroy is never trusted to remove everything
        self.mount_point.reset()
        self.session.reset_activity()
        self._last_emitted = None
        self.session.state = SessionState.DESTROYED
        logger.info(f"Editor destroyed in {self.mount_point.mount_id}")

    async def _destroy_widget(self, widget: EditorWidget) -> None:
        if not widget.ready:
            try:
                await asyncio.wait_for(
                    asyncio.shield(widget.is_ready), timeout=self.config.ready_timeout
                )
            except asyncio.TimeoutError:
                logger.warning(
                    f"Editor in {self.mount_point.mount_id} never became ready, forcing cleanup"
                )
                return
            except Exception as e:
                logger.warning(f"Editor failed before destroy, forcing cleanup: {e}")
                return

        try:
            await widget.destroy()
        except Exception as e:
            logger.warning(f"Error destroying editor: {e}")

    # =========================================================================
    # Activity tracking
    # =========================================================================

    def handle_keystroke(self) -> None:
        """Called on every key press inside the widget."""
        self.session.last_keystroke_at = self.scheduler.now()
        self._mark_typing()

    def handle_widget_change(self) -> None:
        """Called by the widget whenever its content changes."""
        if self.read_only or self.state != SessionState.READY:
            return
        self._mark_typing()
        self.session.save_timer.trigger()

    def focus_in(self) -> None:
        self.session.is_focused = True
        self.session.focus_timer.cancel()

    def focus_out(self) -> None:
        # Deferred so clicks on toolbar buttons don't re-enable external renders
        self.session.focus_timer.trigger()

    def _mark_typing(self) -> None:
        self.session.is_typing = True
        self.session.typing_timer.trigger()

    def _end_typing(self) -> None:
        self.session.is_typing = False

    def _release_focus(self) -> None:
        self.session.is_focused = False

    # =========================================================================
    # Saving
    # =========================================================================

    def _on_save_timer(self) -> None:
        if self.state != SessionState.READY:
            return
        if self.save_disabled or self.read_only:
            logger.debug("Debounced save skipped: saving disabled by host")
            return

        # Keystrokes without a content change since the timer was armed postpone the save
        armed_at = self.session.save_timer.armed_at
        last_keystroke = self.session.last_keystroke_at
        if (
            self.session.is_typing
            and last_keystroke is not None
            and armed_at is not None
            and last_keystroke > armed_at
        ):
            self.session.save_timer.trigger()
            return

        self._spawn(self._debounced_save(), name=f"save-{self.mount_point.mount_id}")

    def _spawn(self, coro, name: str) -> None:
        task = asyncio.ensure_future(coro)
        task.set_name(name)
        self._running_tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._running_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc:
            logger.error(f"Editor task {task.get_name()} failed: {exc}")
            sentry_sdk.capture_exception(exc)

    async def _serialize(self) -> BlockDocument:
        widget = self.session.widget
        if widget is None or self.state != SessionState.READY:
            raise EditorSaveError(f"Editor is not ready (state: {self.state.value})")

        try:
            raw = await widget.save()
        except Exception as e:
            raise EditorSaveError(f"Error saving editor data: {e}") from e

        return document_from_dict(raw)

    def _forward(self, doc: BlockDocument) -> None:
        self._last_emitted = doc
        if self.on_change is not None:
            self.on_change(doc)

    async def _debounced_save(self) -> None:
        widget = self.session.widget
        try:
            doc = await self._serialize()
        except EditorSaveError as e:
            logger.error(f"{e}; retrying on next change")
            return

        if self.session.widget is not widget:
            logger.debug("Discarding save from a replaced editor")
            return

        self._forward(doc)

    async def save(self) -> BlockDocument | None:
        """
        Serialize the widget now and forward the result to the host.

        Returns:
            The saved document, or None if no widget is ready

        Raises:
            EditorSaveError: If the widget fails to serialize
        """
        if self.state != SessionState.READY:
            return None

        self.session.save_timer.cancel()
        doc = await self._serialize()
        self._forward(doc)
        return doc

    # =========================================================================
    # Host-driven updates
    # =========================================================================

    async def set_data(self, doc: BlockDocument) -> bool:
        """
        Render a document supplied by the host into the widget.

        Suppressed while the user is focused in the editor or typing, so an
        external update never overwrites in-progress edits. Also skipped when
        doc is the document this controller just emitted.

        Returns:
            True if the widget was re-rendered
        """
        self.session.document = doc

        if self.state != SessionState.READY:
            return False

        if self.session.is_focused or self.session.is_typing:
            logger.debug(f"External render suppressed in {self.mount_point.mount_id}: user is editing")
            return False

        if self._last_emitted is not None and doc == self._last_emitted:
            return False

        try:
            await self.session.widget.render(document_to_dict(doc))
        except Exception as e:
            logger.error(f"Error rendering data: {e}")
            return False

        return True

    async def clear(self) -> None:
        if self.state != SessionState.READY:
            return
        try:
            await self.session.widget.clear()
        except Exception as e:
            logger.error(f"Error clearing editor: {e}")
