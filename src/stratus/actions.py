"""Node commands invoked from the UI.

Commands dispatch on the node's ResourceKind rather than on per-type
classes. Search results are resolved to the browse node they wrap first.
"""

from stratus.config_file import EXPLORER_SECTION, update_config_value
from stratus.models.resource import ResourceKind
from stratus.tree.node import Node
from stratus.tree.nodes import ResourceGroupNode, ResourceNode, SubscriptionNode
from stratus.utils.logging import get_logger

logger = get_logger(__name__)

PORTAL_BASE_URL = "https://portal.azure.com/#@/resource"

# Portal blade opened for each kind; sub-resources open a blade of their parent
_PORTAL_BLADES: dict[ResourceKind, str] = {
    ResourceKind.KEY_VAULT_SECRET: "secrets",
    ResourceKind.STORAGE_CONTAINER: "containersList",
    ResourceKind.FRONT_DOOR_ENDPOINT: "afdEndpoints",
}


def resolve_actual(node: Node | None) -> Node | None:
    """Return the node a command should act on (unwraps search results)."""
    return node.actual_node if node is not None else None


def portal_url(node: Node | None) -> str | None:
    """Build the Azure portal link for a node.

    Args:
        node: Selected node

    Returns:
        Portal URL, or None for nodes without a portal page
    """
    actual = resolve_actual(node)

    if isinstance(actual, SubscriptionNode):
        return f"{PORTAL_BASE_URL}/subscriptions/{actual.subscription_id}/overview"

    if isinstance(actual, ResourceGroupNode):
        return (
            f"{PORTAL_BASE_URL}/subscriptions/{actual.scope.subscription_id}"
            f"/resourceGroups/{actual.name}/overview"
        )

    if isinstance(actual, ResourceNode):
        blade = _PORTAL_BLADES.get(actual.kind)
        if blade is None:
            return f"{PORTAL_BASE_URL}{actual.resource_id}/overview"

        parent = actual.find_ancestor(ResourceNode)
        if parent is None:
            return None
        return f"{PORTAL_BASE_URL}{parent.resource_id}/{blade}"

    return None


def can_refresh(node: Node | None) -> bool:
    """Whether the refresh command applies to a node."""
    return node is not None and node.supports_children


async def refresh_node(node: Node | None) -> str:
    """Refresh a node and describe the outcome.

    Args:
        node: Selected node

    Returns:
        Status message for the status bar
    """
    if not can_refresh(node):
        return "Nothing to refresh"

    try:
        started = await node.refresh()
    except Exception as e:
        logger.error(f"Refresh of {node.label} failed: {e}", exc_info=True)
        return f"Refresh failed: {e}"

    if not started:
        return f"{node.label} is already loading"
    return f"Refreshed {node.label}"


def toggle_subscription_hidden(node: Node | None) -> str | None:
    """Hide or unhide a subscription and save the preference.

    Args:
        node: Selected node

    Returns:
        Status message, or None when the node is not a subscription
    """
    actual = resolve_actual(node)
    if not isinstance(actual, SubscriptionNode):
        return None

    config = actual.context.config
    hidden = config.toggle_subscription_hidden(actual.subscription_id)
    try:
        update_config_value(
            EXPLORER_SECTION, "hidden_subscriptions", list(config.hidden_subscriptions)
        )
    except OSError as e:
        logger.error(f"Failed to save hidden subscriptions: {e}")
        return f"Failed to toggle subscription visibility: {e}"
    finally:
        actual.hidden_changed()

    if not hidden:
        return f"Subscription '{actual.label}' is now visible."
    if config.show_all:
        return f"Subscription '{actual.label}' is now hidden (visible because Show All is enabled)."
    return f"Subscription '{actual.label}' is now hidden."
