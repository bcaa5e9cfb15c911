"""Nodes of the search-result tree: account > subscription > result."""

import asyncio

from stratus.tree.node import ErrorPlaceholder, LoadingPlaceholder, Node
from stratus.utils.logging import get_logger

logger = get_logger(__name__)


class SearchGroupNode(Node):
    """Grouping node of the search tree, created loaded and expanded."""

    supports_children = True

    def __init__(self, group_id: str, label: str) -> None:
        super().__init__(label)
        self.group_id = group_id
        self._is_loaded = True
        self._is_expanded = True

    def _find_child(self, group_id: str) -> Node | None:
        for child in self.children:
            if isinstance(child, SearchGroupNode) and child.group_id == group_id:
                return child
        return None


class SearchAccountNode(SearchGroupNode):
    """Account grouping in the search tree."""

    base_icon_key = "AzureAccount"

    @property
    def account_id(self) -> str:
        return self.group_id

    def get_or_create_subscription(
        self, subscription_id: str, label: str
    ) -> "SearchSubscriptionNode":
        """Return the subscription group with this ID, creating it if needed.

        The label of an existing group is kept (first write wins).

        Args:
            subscription_id: Subscription ID (identity)
            label: Display name used when the group is created

        Returns:
            The subscription group node
        """
        node = self._find_child(subscription_id)
        if node is None:
            node = SearchSubscriptionNode(subscription_id, label)
            self.add_child(node)
        return node


class SearchSubscriptionNode(SearchGroupNode):
    """Subscription grouping in the search tree."""

    base_icon_key = "AzureSubscriptionKey"

    @property
    def subscription_id(self) -> str:
        return self.group_id

    def add_result(self, result: "SearchResultNode") -> None:
        """Append a result in arrival order (results are never sorted)."""
        self.add_child(result)


class SearchResultNode(Node):
    """A search hit, shown as "name (type)".

    When the hit maps to a loaded browse node, the result wraps it: it
    expands into the wrapped node's children and commands act on the
    wrapped node. Without one it is an inert leaf.
    """

    def __init__(
        self,
        resource_name: str,
        resource_type: str,
        resource_id: str,
        subscription_id: str = "",
        subscription_label: str = "",
        account_label: str = "",
        icon_key: str = "Document",
        actual_node: Node | None = None,
    ) -> None:
        """Initialize the result node.

        Args:
            resource_name: Resource name
            resource_type: Human readable resource type
            resource_id: Full resource ID
            subscription_id: Subscription the resource lives in
            subscription_label: Subscription display name
            account_label: Account display name
            icon_key: Icon identifier
            actual_node: Loaded browse node for the same resource, not owned
        """
        super().__init__(f"{resource_name} ({resource_type})")
        self.resource_name = resource_name
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.subscription_id = subscription_id
        self.subscription_label = subscription_label
        self.account_label = account_label
        self.base_icon_key = icon_key
        self._actual_node = actual_node
        if actual_node is not None and actual_node.supports_children:
            self.add_placeholder()

    @property
    def supports_children(self) -> bool:
        return self._actual_node is not None and self._actual_node.supports_children

    @property
    def context_menu_id(self) -> int:
        return self._actual_node.context_menu_id if self._actual_node is not None else 0

    @property
    def actual_node(self) -> Node:
        return self._actual_node if self._actual_node is not None else self

    async def load_children(self) -> None:
        """Load the wrapped node and show its children here.

        The children stay owned by the wrapped node; only references are
        listed under the result.

        When the wrapped node is already loading (for example in a pre-load),
        its load is awaited rather than started again.
        """
        if self._actual_node is None or not self.begin_load():
            return

        cancelled = False
        try:
            await self._load_actual()
            mirrored = [
                child for child in self._actual_node.children
                if not isinstance(child, LoadingPlaceholder)
            ]
            self.children.replace_all([*mirrored, *self._placeholders()])
        except asyncio.CancelledError:
            cancelled = True
            raise
        except Exception as e:
            logger.error(f"Failed to load {self.resource_name} from search: {e}")
            placeholder = ErrorPlaceholder(f"Error: {e}")
            placeholder.parent = self
            self.children.replace_all([placeholder])
        finally:
            if cancelled:
                self.abort_load()
            else:
                self.end_load()

    async def _load_actual(self) -> None:
        actual = self._actual_node
        await actual.load_children()
        # Loading elsewhere: wait for it, and retry after a cancelled load
        while actual.is_loading:
            await actual.wait_for_load()
            await actual.load_children()

    def _placeholders(self) -> list[Node]:
        return [child for child in self.children if isinstance(child, LoadingPlaceholder)]
