"""Tree node base class and its loading state machine.

A node starts NotLoaded with a single LoadingPlaceholder child when it can
have children. Expanding it runs load_children(), which moves it through
Loading to Loaded. Cancellation sends it back to NotLoaded so the next expand
retries; failures end in Loaded with an inert ErrorPlaceholder child.

All mutation happens on the event loop thread, so begin_load() is a plain
check-and-set.
"""

import asyncio
import weakref
from collections.abc import Callable
from typing import TypeVar

from stratus.services.base import execute_with_timeout
from stratus.services.errors import LoadTimeoutError
from stratus.tree.children import ChildSequence
from stratus.utils.logging import get_logger

logger = get_logger(__name__)

LOADING_LABEL = "Loading..."
LOADING_DESCRIPTION = "loading..."
TIMED_OUT_DESCRIPTION = "Timed out - check connection"

StateListener = Callable[["Node", str], None]
N = TypeVar("N", bound="Node")


class Node:
    """One entity of the explorer tree."""

    supports_children: bool = False
    context_menu_id: int = 0
    base_icon_key: str = "Document"
    is_placeholder: bool = False

    def __init__(self, label: str, description: str | None = None) -> None:
        """Initialize the node.

        Args:
            label: Display name, also the sort key among siblings
            description: Secondary text
        """
        self._label = label
        self._description = description
        self._idle_description = description
        self._is_loading = False
        self._is_loaded = False
        self._is_expanded = False
        self._parent_ref: weakref.ref[Node] | None = None
        self._state_listeners: list[StateListener] = []
        self._load_waiters: list[asyncio.Future[None]] = []
        self.children = ChildSequence()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._label!r}>"

    # --- display attributes -------------------------------------------------

    @property
    def label(self) -> str:
        return self._label

    @label.setter
    def label(self, value: str) -> None:
        if value != self._label:
            self._label = value
            self._notify_state("label")

    @property
    def description(self) -> str | None:
        return self._description

    @description.setter
    def description(self, value: str | None) -> None:
        if value != self._description:
            self._description = value
            self._notify_state("description")

    @property
    def icon_key(self) -> str:
        """Icon identifier derived from the current state."""
        if self._is_loading:
            return "Loading"
        return self.base_icon_key

    @property
    def is_visible(self) -> bool:
        return True

    @property
    def opacity(self) -> float:
        return 1.0

    @property
    def actual_node(self) -> "Node":
        """Node that commands operate on (wrappers return the wrapped node)."""
        return self

    # --- state flags --------------------------------------------------------

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @is_loading.setter
    def is_loading(self, value: bool) -> None:
        if value != self._is_loading:
            self._is_loading = value
            self._notify_state("is_loading")

    @property
    def is_loaded(self) -> bool:
        return self._is_loaded

    @is_loaded.setter
    def is_loaded(self, value: bool) -> None:
        if value != self._is_loaded:
            self._is_loaded = value
            self._notify_state("is_loaded")

    @property
    def is_expanded(self) -> bool:
        return self._is_expanded

    @is_expanded.setter
    def is_expanded(self, value: bool) -> None:
        if value != self._is_expanded:
            self._is_expanded = value
            self._notify_state("is_expanded")

    @property
    def has_error(self) -> bool:
        """True when the last load ended with an error placeholder."""
        return any(isinstance(child, ErrorPlaceholder) for child in self.children)

    # --- hierarchy ----------------------------------------------------------

    @property
    def parent(self) -> "Node | None":
        """Weakly referenced parent, used only to find ancestors."""
        return self._parent_ref() if self._parent_ref is not None else None

    @parent.setter
    def parent(self, value: "Node | None") -> None:
        self._parent_ref = weakref.ref(value) if value is not None else None

    def find_ancestor(self, node_type: type[N]) -> N | None:
        """Walk up the parent links to the nearest node of a type.

        Args:
            node_type: Class to look for

        Returns:
            The closest ancestor of that type, or None
        """
        current = self.parent
        while current is not None:
            if isinstance(current, node_type):
                return current
            current = current.parent
        return None

    def add_child(self, child: "Node") -> None:
        """Append a child and link it to this node."""
        child.parent = self
        self.children.append(child)

    def insert_child_sorted(self, child: "Node") -> int:
        """Insert a child in label order and link it to this node.

        Returns:
            Index the child was inserted at
        """
        child.parent = self
        return self.children.insert_sorted(child)

    def add_placeholder(self) -> None:
        """Add a loading placeholder unless one is already present."""
        if not any(isinstance(child, LoadingPlaceholder) for child in self.children):
            self.add_child(LoadingPlaceholder())

    # --- notifications ------------------------------------------------------

    def subscribe(self, listener: StateListener) -> None:
        """Register a listener called with (node, property_name) on state changes."""
        self._state_listeners.append(listener)

    def unsubscribe(self, listener: StateListener) -> None:
        """Remove a state listener (no-op if not registered)."""
        if listener in self._state_listeners:
            self._state_listeners.remove(listener)

    def notify_state_changed(self, name: str) -> None:
        """Tell listeners that a derived property (e.g. is_visible) changed."""
        self._notify_state(name)

    def _notify_state(self, name: str) -> None:
        for listener in list(self._state_listeners):
            try:
                listener(self, name)
            except Exception as e:
                logger.error(f"State listener failed for {self!r}.{name}: {e}", exc_info=True)

    # --- loading state machine ----------------------------------------------

    def begin_load(self) -> bool:
        """Enter the Loading state.

        Returns:
            False if the node is already loading or loaded (caller must stop),
            True otherwise
        """
        if self._is_loading or self._is_loaded:
            return False

        self.is_loading = True
        self._idle_description = self._description
        self.description = LOADING_DESCRIPTION
        return True

    def end_load(self) -> None:
        """Enter the Loaded state, dropping any remaining loading placeholder."""
        for child in self.children:
            if isinstance(child, LoadingPlaceholder):
                self.children.remove(child)

        self.description = self._idle_description
        self.is_loading = False
        self.is_loaded = True
        self._release_load_waiters()

    def abort_load(self) -> None:
        """Return to NotLoaded after a cancelled load.

        Partial results are discarded so that the next load starts clean.
        """
        self.children.replace_all([])
        if self.supports_children:
            self.add_placeholder()
        self.description = self._idle_description
        self.is_loading = False
        self.is_loaded = False
        self._release_load_waiters()

    async def wait_for_load(self) -> None:
        """Wait until the running load ends; returns at once when not loading."""
        if not self._is_loading:
            return
        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._load_waiters.append(waiter)
        await waiter

    def _release_load_waiters(self) -> None:
        waiters, self._load_waiters = self._load_waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)

    async def load_children(self) -> None:
        """Load child nodes. Nodes without lazy children do nothing."""
        return None

    async def expand(self) -> None:
        """Expand action: mark expanded and load children on first use."""
        self.is_expanded = True
        await self.load_children()

    def collapse(self) -> None:
        """Collapse action."""
        self.is_expanded = False

    async def refresh(self, timeout: float | None = None) -> bool:
        """Reload this node's children.

        Args:
            timeout: Optional bound in seconds for the reload

        Returns:
            False if a load is already running (nothing was done), else True
        """
        if self._is_loading:
            logger.debug(f"Refresh of {self.label} skipped: load in progress")
            return False

        logger.info(f"Refreshing {self.label}")
        self.is_loaded = False
        self.description = None
        self.children.replace_all([])
        if self.supports_children:
            self.add_placeholder()

        if timeout is None:
            await self.load_children()
            return True

        try:
            await execute_with_timeout(
                self.load_children,
                operation_name=f"refresh({self.label})",
                timeout=timeout,
            )
        except LoadTimeoutError:
            self.end_load()
            self.description = TIMED_OUT_DESCRIPTION
        return True


class LoadingPlaceholder(Node):
    """Sentinel child shown until its parent has loaded."""

    is_placeholder = True
    base_icon_key = "Loading"

    def __init__(self, label: str = LOADING_LABEL) -> None:
        super().__init__(label)


class ErrorPlaceholder(Node):
    """Inert child that replaces the placeholder when a load failed."""

    is_placeholder = True
    base_icon_key = "StatusError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
