"""Turns provider descriptors into explorer nodes."""

from collections.abc import Callable
from typing import TYPE_CHECKING

from stratus.models.resource import (
    ResourceDescriptor,
    ResourceKind,
    Scope,
    resource_group_from_id,
)
from stratus.tree.node import Node
from stratus.tree.nodes import ResourceGroupNode, ResourceNode, SubscriptionNode
from stratus.utils.logging import get_logger

if TYPE_CHECKING:
    from stratus.context import ExplorerContext

logger = get_logger(__name__)

NodeCreator = Callable[[ResourceDescriptor, Scope, "ExplorerContext"], Node | None]


def _resource_scope(descriptor: ResourceDescriptor, scope: Scope) -> Scope:
    # Subscription-wide listings learn the resource group from the ID
    if scope.resource_group is None:
        resource_group = resource_group_from_id(descriptor.id)
        if resource_group:
            return scope.model_copy(update={"resource_group": resource_group})
    return scope


def _create_subscription(
    descriptor: ResourceDescriptor, scope: Scope, context: "ExplorerContext"
) -> Node:
    subscription_id = descriptor.name
    if descriptor.id:
        subscription_id = descriptor.id.rstrip("/").rsplit("/", 1)[-1]
    return SubscriptionNode(subscription_id, descriptor.name, context, account_id=scope.account_id)


def _create_resource_group(
    descriptor: ResourceDescriptor, scope: Scope, context: "ExplorerContext"
) -> Node:
    return ResourceGroupNode(descriptor.name, context, scope.within_resource_group(descriptor.name))


def _create_site(
    descriptor: ResourceDescriptor, scope: Scope, context: "ExplorerContext"
) -> Node:
    is_function_app = "functionapp" in (descriptor.kind or "").lower()
    kind = ResourceKind.FUNCTION_APP if is_function_app else ResourceKind.APP_SERVICE
    return ResourceNode.from_descriptor(kind, descriptor, _resource_scope(descriptor, scope), context)


def _resource_creator(kind: ResourceKind) -> NodeCreator:
    def create(descriptor: ResourceDescriptor, scope: Scope, context: "ExplorerContext") -> Node:
        return ResourceNode.from_descriptor(
            kind, descriptor, _resource_scope(descriptor, scope), context
        )

    return create


class NodeFactory:
    """Registry from provider resource type to node constructor.

    Lookups are case-insensitive. Unknown types produce None, which loaders
    skip silently.
    """

    def __init__(self) -> None:
        """Initialize the factory with every known resource kind."""
        self._creators: dict[str, NodeCreator] = {}
        self.register(ResourceKind.SUBSCRIPTION.resource_type, _create_subscription)
        self.register(ResourceKind.RESOURCE_GROUP.resource_type, _create_resource_group)
        self.register(ResourceKind.APP_SERVICE.resource_type, _create_site)
        for kind in ResourceKind:
            if kind.resource_type.lower() not in self._creators:
                self.register(kind.resource_type, _resource_creator(kind))

    def register(self, resource_type: str, creator: NodeCreator) -> None:
        """Register or replace the constructor for a resource type.

        Args:
            resource_type: Provider resource type, any casing
            creator: Callable taking (descriptor, scope, context)
        """
        self._creators[resource_type.lower()] = creator

    def supports(self, resource_type: str) -> bool:
        """Whether a resource type has a registered constructor."""
        return resource_type.lower() in self._creators

    def create(
        self,
        descriptor: ResourceDescriptor,
        scope: Scope,
        context: "ExplorerContext",
    ) -> Node | None:
        """Create the node for a descriptor.

        Args:
            descriptor: Resource reported by the provider
            scope: Scope the descriptor was listed in
            context: Explorer context handed to the new node

        Returns:
            The node, or None for unsupported resource types
        """
        creator = self._creators.get(descriptor.type.lower())
        if creator is None:
            logger.debug(f"No node for resource type {descriptor.type}, skipping {descriptor.name}")
            return None
        return creator(descriptor, scope, context)
