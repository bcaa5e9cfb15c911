"""Instant search over browse nodes that are already loaded."""

from collections.abc import Iterable, Iterator

from stratus.models.resource import ResourceKind
from stratus.models.search import SearchMatch
from stratus.search.query import ParsedSearchQuery
from stratus.tree.node import Node
from stratus.tree.nodes import AccountNode, ResourceNode, SubscriptionNode

UNKNOWN_LABEL = "Unknown"

# Top-level resources only; sub-resources are reached by expanding a result
SEARCHABLE_KINDS = frozenset(
    kind
    for kind in ResourceKind
    if kind.resource_type.count("/") == 1
    and kind not in (ResourceKind.SUBSCRIPTION, ResourceKind.RESOURCE_GROUP)
)


def search_loaded_nodes(
    roots: Iterable[Node], query: ParsedSearchQuery
) -> Iterator[SearchMatch]:
    """Yield matches among already loaded resource nodes.

    Never triggers a load: only children of loaded nodes are visited. A
    resource reachable through several categories is reported once.

    Args:
        roots: Root nodes of the browse tree (usually account nodes)
        query: Parsed query

    Yields:
        SearchMatch records whose actual_node is the matching browse node
    """
    if query.is_empty:
        return

    seen: set[str] = set()
    for root in roots:
        yield from _walk(root, query, seen, None, None)


def _walk(
    node: Node,
    query: ParsedSearchQuery,
    seen: set[str],
    account: AccountNode | None,
    subscription: SubscriptionNode | None,
) -> Iterator[SearchMatch]:
    if isinstance(node, AccountNode):
        account = node
    elif isinstance(node, SubscriptionNode):
        subscription = node

    if (
        isinstance(node, ResourceNode)
        and node.kind in SEARCHABLE_KINDS
        and query.matches(node.name, node.tags)
    ):
        resource_id = node.resource_id
        if resource_id.lower() not in seen:
            seen.add(resource_id.lower())
            yield SearchMatch(
                account_id=account.account_id if account else UNKNOWN_LABEL,
                account_label=account.label if account else UNKNOWN_LABEL,
                subscription_id=node.resource_scope.subscription_id or "",
                subscription_label=subscription.label if subscription else UNKNOWN_LABEL,
                resource_name=node.name,
                resource_type=node.kind.display_name,
                resource_id=resource_id,
                tags=dict(node.tags),
                actual_node=node,
            )

    if node.is_loaded:
        for child in node.children:
            if not child.is_placeholder:
                yield from _walk(child, query, seen, account, subscription)
