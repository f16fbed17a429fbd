"""
The seam between the controller and the third-party editing widget.

The widget is untrusted: the controller only relies on constructing it and
on being able to forcibly reset the mount point it renders into. Its own
destroy() is attempted but never assumed to clean up completely.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable

# Marker class the mount point carries when no widget has touched it
MOUNT_MARKER_CLASS = "editorjs-editor"

DEFAULT_PLACEHOLDER = "Let's write an awesome lesson!"


@dataclass
class Node:
    """A child element inside a mount point."""
    tag: str
    text: str = ""
    attributes: dict[str, str] = field(default_factory=dict)


class MountPoint:
    """The container element the editing widget renders into."""

    def __init__(self, mount_id: str):
        self.mount_id = mount_id
        self.children: list[Node] = []
        self.class_name = MOUNT_MARKER_CLASS
        self.style: dict[str, str] = {}
        self.attributes: dict[str, str] = {}

    def append_child(self, node: Node) -> None:
        self.children.append(node)

    def remove_child(self, node: Node) -> None:
        if node in self.children:
            self.children.remove(node)

    def reset(self) -> None:
        """Remove every child and restore class, style and attributes. Idempotent."""
        self.children.clear()
        self.class_name = MOUNT_MARKER_CLASS
        self.style = {}
        self.attributes = {}

    def __repr__(self) -> str:
        return f"MountPoint({self.mount_id!r}, children={len(self.children)})"


@dataclass
class WidgetOptions:
    """Construction options handed to the widget factory."""
    data: dict[str, Any]
    on_change: Callable[[], None]
    placeholder: str = DEFAULT_PLACEHOLDER
    read_only: bool = False


class EditorWidget(ABC):
    """
    A live editing widget bound to one mount point.

    Construction is synchronous; the widget signals internal readiness
    through is_ready, an asyncio.Future that may be awaited more than once.
    """

    @property
    @abstractmethod
    def is_ready(self) -> "asyncio.Future[None]":
        """Future resolved when the widget is ready, rejected if it failed to start."""

    @property
    def ready(self) -> bool:
        future = self.is_ready
        return future.done() and not future.cancelled() and future.exception() is None

    @abstractmethod
    async def save(self) -> dict[str, Any]:
        """Serialize the widget's current content to a document dict."""

    @abstractmethod
    async def render(self, data: dict[str, Any]) -> None:
        """Replace the widget's content with a document dict."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove all content."""

    @abstractmethod
    async def destroy(self) -> None:
        """Tear the widget down."""


WidgetFactory = Callable[[MountPoint, WidgetOptions], EditorWidget]
