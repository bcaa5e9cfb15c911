"""Ordered child collection with change notifications."""

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from stratus.utils.logging import get_logger

if TYPE_CHECKING:
    from stratus.tree.node import Node

logger = get_logger(__name__)


class ChangeKind(str, Enum):
    """Structural change reported to listeners."""

    INSERTED = "inserted"
    REMOVED = "removed"
    REPLACED = "replaced"


@dataclass(frozen=True)
class ChildrenChange:
    """One structural change of a ChildSequence.

    Attributes:
        kind: What happened
        index: Position of the inserted or removed node (-1 for REPLACED)
        nodes: The inserted or removed node, or the new contents for REPLACED
    """

    kind: ChangeKind
    index: int
    nodes: tuple["Node", ...] = field(default_factory=tuple)


ChildrenListener = Callable[[ChildrenChange], None]


def label_sort_key(label: str) -> str:
    """Ordinal, case-insensitive sort key for resource labels."""
    return label.upper()


class ChildSequence:
    """Ordered, mutable collection of nodes owned by a single parent.

    Listeners registered with subscribe() are called synchronously after
    every structural change, on the thread that made it.
    """

    def __init__(self) -> None:
        """Initialize an empty sequence."""
        self._items: list[Node] = []
        self._listeners: list[ChildrenListener] = []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator["Node"]:
        # Iterate over a snapshot so listeners may mutate safely
        return iter(list(self._items))

    def __getitem__(self, index: int) -> "Node":
        return self._items[index]

    def __contains__(self, node: object) -> bool:
        return any(item is node for item in self._items)

    def index(self, node: "Node") -> int:
        """Position of `node` by identity.

        Raises:
            ValueError: If the node is not a member
        """
        for i, item in enumerate(self._items):
            if item is node:
                return i
        raise ValueError(f"{node!r} is not in this sequence")

    def subscribe(self, listener: ChildrenListener) -> None:
        """Register a change listener."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: ChildrenListener) -> None:
        """Remove a change listener (no-op if not registered)."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def append(self, node: "Node") -> None:
        """Add a node at the end."""
        self._items.append(node)
        self._notify(ChildrenChange(ChangeKind.INSERTED, len(self._items) - 1, (node,)))

    def insert(self, index: int, node: "Node") -> None:
        """Insert a node at a position."""
        index = max(0, min(index, len(self._items)))
        self._items.insert(index, node)
        self._notify(ChildrenChange(ChangeKind.INSERTED, index, (node,)))

    def insert_sorted(
        self,
        node: "Node",
        key: Callable[[str], str] = label_sort_key,
    ) -> int:
        """Insert a node before the first member whose label sorts >= its own.

        Placeholders always stay after real nodes.

        Args:
            node: Node to insert
            key: Sort key applied to labels

        Returns:
            The index the node was inserted at
        """
        new_key = key(node.label)
        index = 0
        while (
            index < len(self._items)
            and not self._items[index].is_placeholder
            and key(self._items[index].label) < new_key
        ):
            index += 1

        self.insert(index, node)
        return index

    def remove(self, node: "Node") -> None:
        """Remove a node by identity.

        Raises:
            ValueError: If the node is not a member
        """
        index = self.index(node)
        del self._items[index]
        self._notify(ChildrenChange(ChangeKind.REMOVED, index, (node,)))

    def remove_at(self, index: int) -> "Node":
        """Remove and return the node at a position."""
        node = self._items.pop(index)
        self._notify(ChildrenChange(ChangeKind.REMOVED, index, (node,)))
        return node

    def replace_all(self, nodes: Iterable["Node"]) -> None:
        """Swap the whole contents in one step."""
        self._items = list(nodes)
        self._notify(ChildrenChange(ChangeKind.REPLACED, -1, tuple(self._items)))

    def clear(self) -> None:
        """Remove every node."""
        self.replace_all([])

    def _notify(self, change: ChildrenChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception as e:
                # Listener failures never reach the mutating loader
                logger.error(f"Children listener failed on {change.kind.value}: {e}", exc_info=True)
