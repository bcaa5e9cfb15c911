"""Builds the account > subscription > result tree from search matches."""

from collections.abc import AsyncIterator

from stratus.models.resource import ResourceKind
from stratus.models.search import SearchMatch
from stratus.search.nodes import SearchAccountNode, SearchResultNode, SearchSubscriptionNode
from stratus.tree.children import ChildSequence
from stratus.utils.logging import get_logger

logger = get_logger(__name__)

_ICON_BY_DISPLAY_NAME = {kind.display_name.lower(): kind.info.icon_key for kind in ResourceKind}


def icon_for(match: SearchMatch) -> str:
    """Icon for a match: the loaded node's icon, else the kind's icon."""
    if match.actual_node is not None:
        return match.actual_node.icon_key
    return _ICON_BY_DISPLAY_NAME.get(match.resource_type.lower(), "Document")


class SearchAggregator:
    """Groups search results under account and subscription nodes.

    Groups are identified by ID only; the label given when a group is first
    created is kept. Repeated IDs always resolve to the same node instance.
    """

    def __init__(self) -> None:
        self.children = ChildSequence()

    def get_or_create_account(self, account_id: str, label: str) -> SearchAccountNode:
        """Return the top-level account group with this ID, creating it if needed.

        Args:
            account_id: Account ID (identity)
            label: Display name used when the group is created

        Returns:
            The account group node
        """
        for child in self.children:
            if isinstance(child, SearchAccountNode) and child.account_id == account_id:
                return child

        node = SearchAccountNode(account_id, label)
        self.children.append(node)
        return node

    def get_or_create_subscription(
        self, account: SearchAccountNode, subscription_id: str, label: str
    ) -> SearchSubscriptionNode:
        """Return the subscription group under an account, creating it if needed."""
        return account.get_or_create_subscription(subscription_id, label)

    def add_match(self, match: SearchMatch) -> SearchResultNode:
        """Place one match in the tree.

        Args:
            match: Search hit

        Returns:
            The result node appended under its subscription
        """
        account = self.get_or_create_account(match.account_id, match.account_label)
        subscription = account.get_or_create_subscription(
            match.subscription_id, match.subscription_label
        )
        result = SearchResultNode(
            match.resource_name,
            match.resource_type,
            match.resource_id,
            subscription_id=match.subscription_id,
            subscription_label=match.subscription_label,
            account_label=match.account_label,
            icon_key=icon_for(match),
            actual_node=match.actual_node,
        )
        subscription.add_result(result)
        return result

    async def consume(
        self, matches: AsyncIterator[SearchMatch], limit: int | None = None
    ) -> int:
        """Add matches from an async stream until it ends or the limit is hit.

        Cancellation propagates; matches added so far stay in the tree.

        Args:
            matches: Async iterator of matches
            limit: Maximum number of matches to add

        Returns:
            Number of matches added
        """
        added = 0
        async for match in matches:
            if limit is not None and added >= limit:
                break
            self.add_match(match)
            added += 1
        return added

    def result_count(self) -> int:
        """Total number of result nodes in the tree."""
        return sum(
            len(subscription.children)
            for account in self.children
            for subscription in account.children
        )

    def clear(self) -> None:
        """Remove every group and result."""
        self.children.clear()
