"""Textual tree widget that mirrors an explorer node tree."""

from collections.abc import Iterable
from typing import Any

from rich.text import Text
from textual.binding import Binding
from textual.widgets import Tree
from textual.widgets.tree import TreeNode

from stratus.actions import refresh_node
from stratus.tree.children import ChangeKind, ChildrenChange, ChildrenListener, ChildSequence
from stratus.tree.node import Node, StateListener
from stratus.utils.logging import get_logger

logger = get_logger(__name__)

ICONS = {
    "Loading": "⏳",
    "StatusError": "⚠️",
    "AzureAccount": "👤",
    "AzureSubscriptionKey": "🔑",
    "AzureResourceGroup": "📦",
    "FolderClosed": "📁",
    "Web": "🌐",
    "AzureFunctionsApp": "⚡",
    "ApplicationGroup": "🗂️",
    "CloudGroup": "☁️",
    "Endpoint": "🔗",
    "AzureKeyVault": "🔐",
    "Key": "🗝️",
    "AzureSqlServer": "🗄️",
    "Database": "💾",
    "AzureStorageAccount": "🪣",
    "BlobContainer": "📂",
    "VirtualMachine": "🖥️",
}
DEFAULT_ICON = "📄"
STOPPED_ICON = "⏹️"


def render_label(node: Node) -> Text:
    """Render a node's label, icon and description."""
    icon_key = node.icon_key
    if icon_key.endswith("Stopped"):
        icon = STOPPED_ICON
    else:
        icon = ICONS.get(icon_key, DEFAULT_ICON)

    text = Text(f"{icon} {node.label}")
    if node.description:
        text.append(f"  {node.description}", style="italic")
    if node.opacity < 1.0:
        text.stylize("dim")
    return text


class ExplorerTree(Tree[Node]):
    """Tree widget that shows explorer nodes.

    Each TreeNode mirrors one explorer node: structural changes and state
    changes of the explorer node are applied to the widget as they happen,
    and expanding a TreeNode expands (and lazily loads) its explorer node.
    Nodes whose is_visible is False are left out of the widget until they
    become visible again.
    """

    BINDINGS = [
        Binding("r", "refresh_node", "Refresh", show=True),
    ]

    def __init__(self, label: str = "Cloud Explorer", *args: Any, **kwargs: Any) -> None:
        """Initialize the explorer tree."""
        super().__init__(label, *args, **kwargs)
        self.root.expand()
        self._root_nodes: list[Node] | ChildSequence = []
        # id(parent TreeNode) -> id(explorer node) -> (explorer node, state listener)
        self._members: dict[int, dict[int, tuple[Node, StateListener]]] = {}
        # id(TreeNode) -> (explorer node, children listener)
        self._subscriptions: dict[int, tuple[Node, ChildrenListener]] = {}
        self._root_subscription: tuple[ChildSequence, ChildrenListener] | None = None

    @property
    def selected_node(self) -> Node | None:
        """Explorer node under the cursor."""
        cursor = self.cursor_node
        return cursor.data if cursor is not None else None

    def add_root_node(self, node: Node) -> TreeNode[Node] | None:
        """Show an explorer node (usually an account) at the top level.

        Args:
            node: Explorer node to mirror

        Returns:
            The TreeNode created for it, or None while the node is invisible
        """
        if not isinstance(self._root_nodes, list):
            self.clear_nodes()
        self._root_nodes.append(node)
        return self._add_member(self.root, node)

    def mirror(self, children: ChildSequence) -> None:
        """Show a child sequence at the top level and follow its changes.

        Used for search results, whose groups arrive while the search runs.

        Args:
            children: Sequence to mirror (e.g. SearchAggregator.children)
        """
        self.clear_nodes()
        self._root_nodes = children
        for child in children:
            self._add_member(self.root, child)

        def on_root_changed(change: ChildrenChange) -> None:
            self._apply_change(self.root, change)

        children.subscribe(on_root_changed)
        self._root_subscription = (children, on_root_changed)

    def clear_nodes(self) -> None:
        """Remove every top-level node and stop mirroring them."""
        if self._root_subscription is not None:
            children, listener = self._root_subscription
            children.unsubscribe(listener)
            self._root_subscription = None

        self._release_children(self.root)
        self.root.remove_children()
        self._root_nodes = []

    # --- membership -----------------------------------------------------------

    def _siblings(self, parent: TreeNode[Node]) -> Iterable[Node]:
        if parent is self.root:
            return self._root_nodes
        return parent.data.children

    def _find(self, parent: TreeNode[Node], node: Node) -> TreeNode[Node] | None:
        for tree_node in parent.children:
            if tree_node.data is node:
                return tree_node
        return None

    def _add_member(self, parent: TreeNode[Node], node: Node) -> TreeNode[Node] | None:
        def on_state_changed(changed: Node, name: str) -> None:
            if name == "is_visible":
                self._sync_visibility(parent, changed)
                return
            tree_node = self._find(parent, changed)
            if tree_node is not None:
                tree_node.set_label(render_label(changed))

        node.subscribe(on_state_changed)
        self._members.setdefault(id(parent), {})[id(node)] = (node, on_state_changed)
        if not node.is_visible:
            return None
        return self._show(parent, node)

    def _remove_member(self, parent: TreeNode[Node], node: Node) -> None:
        entry = self._members.get(id(parent), {}).pop(id(node), None)
        if entry is not None:
            node.unsubscribe(entry[1])
        tree_node = self._find(parent, node)
        if tree_node is not None:
            self._hide(tree_node)

    def _sync_visibility(self, parent: TreeNode[Node], node: Node) -> None:
        tree_node = self._find(parent, node)
        if tree_node is None:
            if node.is_visible:
                self._show(parent, node)
        elif not node.is_visible:
            self._hide(tree_node)
        else:
            tree_node.set_label(render_label(node))

    def _show(self, parent: TreeNode[Node], node: Node) -> TreeNode[Node]:
        # Keep the explorer order: insert before the next sibling already shown
        before: TreeNode[Node] | None = None
        found = False
        for sibling in self._siblings(parent):
            if sibling is node:
                found = True
            elif found:
                before = self._find(parent, sibling)
                if before is not None:
                    break

        tree_node = parent.add(
            render_label(node),
            data=node,
            before=before,
            expand=node.is_expanded,
            allow_expand=node.supports_children,
        )

        def on_children_changed(change: ChildrenChange) -> None:
            self._apply_change(tree_node, change)

        node.children.subscribe(on_children_changed)
        self._subscriptions[id(tree_node)] = (node, on_children_changed)
        for child in node.children:
            self._add_member(tree_node, child)
        return tree_node

    def _hide(self, tree_node: TreeNode[Node]) -> None:
        self._release_children(tree_node)
        entry = self._subscriptions.pop(id(tree_node), None)
        if entry is not None:
            node, on_children_changed = entry
            node.children.unsubscribe(on_children_changed)
        tree_node.remove()

    def _release_children(self, parent: TreeNode[Node]) -> None:
        """Stop following every child of a TreeNode, shown or not."""
        for node, on_state_changed in self._members.pop(id(parent), {}).values():
            node.unsubscribe(on_state_changed)

        for tree_node in list(parent.children):
            self._release_children(tree_node)
            entry = self._subscriptions.pop(id(tree_node), None)
            if entry is not None:
                node, on_children_changed = entry
                node.children.unsubscribe(on_children_changed)

    def _apply_change(self, tree_node: TreeNode[Node], change: ChildrenChange) -> None:
        if change.kind is ChangeKind.INSERTED:
            for child in change.nodes:
                self._add_member(tree_node, child)

        elif change.kind is ChangeKind.REMOVED:
            for child in change.nodes:
                self._remove_member(tree_node, child)

        else:
            self._release_children(tree_node)
            tree_node.remove_children()
            for child in change.nodes:
                self._add_member(tree_node, child)

    async def _on_tree_node_expanded(self, event: Tree.NodeExpanded[Node]) -> None:
        """Handle tree node expansion with lazy loading.

        Args:
            event: Node expanded event
        """
        node = event.node.data
        if node is None:
            return

        try:
            await node.expand()
        except Exception as e:
            logger.error(f"Failed to expand {node.label}: {e}")

    def _on_tree_node_collapsed(self, event: Tree.NodeCollapsed[Node]) -> None:
        """Keep the explorer node's expanded flag in sync."""
        if event.node.data is not None:
            event.node.data.collapse()

    async def action_refresh_node(self) -> None:
        """Refresh the explorer node under the cursor."""
        message = await refresh_node(self.selected_node)
        logger.info(message)
        self.notify(message)
