"""Resource created/deleted notifications for loaded listing nodes."""

import weakref
from typing import TYPE_CHECKING

from stratus.models.resource import ResourceKind, Scope
from stratus.utils.logging import get_logger

if TYPE_CHECKING:
    from stratus.tree.loader import ListingNode

logger = get_logger(__name__)


class ResourceEvents:
    """Broadcasts resource changes made elsewhere (e.g. a create dialog).

    Nodes are held weakly, so a discarded subtree stops receiving events
    without unregistering.
    """

    def __init__(self) -> None:
        self._nodes: weakref.WeakSet[ListingNode] = weakref.WeakSet()

    def __len__(self) -> int:
        return len(self._nodes)

    def register(self, node: "ListingNode") -> None:
        """Start delivering events to a node."""
        self._nodes.add(node)

    def unregister(self, node: "ListingNode") -> None:
        """Stop delivering events to a node."""
        self._nodes.discard(node)

    def resource_created(self, kind: ResourceKind, scope: Scope, name: str) -> None:
        """Announce that a resource was created.

        Args:
            kind: Kind of the new resource
            scope: Scope it was created in (subscription and resource group)
            name: Resource name
        """
        logger.info(f"{kind.display_name} {name} created")
        for node in list(self._nodes):
            node.on_resource_created(kind, scope, name)

    def resource_deleted(self, kind: ResourceKind, scope: Scope, name: str) -> None:
        """Announce that a resource was deleted.

        Args:
            kind: Kind of the deleted resource
            scope: Scope it was deleted from
            name: Resource name
        """
        logger.info(f"{kind.display_name} {name} deleted")
        for node in list(self._nodes):
            node.on_resource_deleted(kind, scope, name)
