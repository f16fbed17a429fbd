"""Pytest fixtures for editor lifecycle tests.

Provides a manual clock so debounce and settle timings can be stepped
deterministically, and an in-memory widget whose readiness, failures and
destroy behaviour can be controlled per test.
"""

import asyncio
from typing import Any

import pytest

from core.editor.controller import EditorController
from core.editor.session import EditorConfig
from core.editor.timers import Scheduler
from core.editor.widget import EditorWidget, MountPoint, Node, WidgetOptions


async def _drain():
    """Let spawned tasks and their awaited coroutines run to completion."""
    for _ in range(10):
        await asyncio.sleep(0)


class ManualHandle:
    def __init__(self, when: float, seq: int, callback, args):
        self.when = when
        self.seq = seq
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler(Scheduler):
    """Scheduler whose clock only moves when a test calls advance()."""

    def __init__(self):
        self.time = 0.0
        self._seq = 0
        self._timers: list[ManualHandle] = []

    def now(self) -> float:
        return self.time

    def call_later(self, delay, callback, *args):
        handle = ManualHandle(self.time + delay, self._seq, callback, args)
        self._seq += 1
        self._timers.append(handle)
        return handle

    async def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due callbacks in order."""
        target = self.time + seconds + 1e-9
        while True:
            self._timers = [h for h in self._timers if not h.cancelled]
            due = [h for h in self._timers if h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: (h.when, h.seq))
            self._timers.remove(handle)
            self.time = max(self.time, handle.when)
            handle.callback(*handle.args)
            await _drain()
        self.time = max(self.time, target - 1e-9)
        await _drain()


class FakeWidget(EditorWidget):
    """In-memory editing widget that renders one node into its mount point."""

    def __init__(self, mount_point: MountPoint, options: WidgetOptions, factory: "FakeWidgetFactory"):
        self.mount_point = mount_point
        self.options = options
        self.factory = factory
        self.data: dict[str, Any] = options.data
        self.render_calls: list[dict] = []
        self.destroyed = False
        self._ready = asyncio.get_running_loop().create_future()

        self.node = Node("div", attributes={"class": "codex-editor"})
        mount_point.append_child(self.node)
        mount_point.class_name = "editorjs-editor codex-editor--ready"

        if factory.fail_ready:
            self._ready.set_exception(RuntimeError("widget failed to start"))
        elif not factory.hang:
            self._ready.set_result(None)

    @property
    def is_ready(self):
        return self._ready

    def become_ready(self) -> None:
        if not self._ready.done():
            self._ready.set_result(None)

    async def save(self) -> dict:
        if self.factory.save_error:
            raise RuntimeError("serialization failed")
        return self.data

    async def render(self, data: dict) -> None:
        self.render_calls.append(data)
        self.data = data

    async def clear(self) -> None:
        self.data = {**self.data, "blocks": []}

    async def destroy(self) -> None:
        self.destroyed = True
        if not self.factory.leak_on_destroy:
            self.mount_point.remove_child(self.node)

    def edit(self, blocks: list[dict]) -> None:
        """Simulate the user changing content."""
        self.data = {**self.data, "blocks": blocks}
        self.options.on_change()


class FakeWidgetFactory:
    def __init__(self):
        self.created: list[FakeWidget] = []
        self.raise_on_create = False
        self.fail_ready = False
        self.hang = False
        self.leak_on_destroy = False
        self.save_error = False

    def __call__(self, mount_point: MountPoint, options: WidgetOptions) -> FakeWidget:
        if self.raise_on_create:
            raise RuntimeError("widget constructor failed")
        widget = FakeWidget(mount_point, options, self)
        self.created.append(widget)
        return widget

    @property
    def last(self) -> FakeWidget:
        return self.created[-1]


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def widget_factory():
    return FakeWidgetFactory()


@pytest.fixture
def mount_point():
    return MountPoint("lesson-editor")


@pytest.fixture
def saved():
    """Documents forwarded to the host, with the clock time of each save."""
    return []


@pytest.fixture
def make_controller(scheduler, widget_factory, mount_point, saved):
    def _make(**kwargs):
        kwargs.setdefault("config", EditorConfig(ready_timeout=0.05))
        kwargs.setdefault("on_change", lambda doc: saved.append((scheduler.now(), doc)))
        return EditorController(mount_point, widget_factory, scheduler=scheduler, **kwargs)

    return _make
