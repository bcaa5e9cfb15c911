"""Category loading: list resources of one type in one scope as child nodes.

Every node that shows "the resources of type T in scope S" (category nodes,
the subscriptions of an account, the resource groups of a subscription, the
sub-resources of a resource) loads the same way:

1. Guard with begin_load().
2. Stream descriptors from the resource provider.
3. Turn each descriptor into a node with the node factory, skipping the
   unsupported ones.
4. Either buffer, sort and append (batched) or insert each node sorted as it
   arrives (streaming).
5. On failure, replace the lone placeholder with an error node, or keep the
   partial results when some were already shown.
6. end_load() on every exit except cancellation, which restores NotLoaded.
"""

import asyncio
from typing import TYPE_CHECKING

from stratus.models.resource import ResourceDescriptor, ResourceKind, Scope
from stratus.tree.children import label_sort_key
from stratus.tree.node import ErrorPlaceholder, Node
from stratus.utils.logging import get_logger

if TYPE_CHECKING:
    from stratus.context import ExplorerContext

logger = get_logger(__name__)


class ListingNode(Node):
    """Node whose children are the provider resources of one type in a scope."""

    supports_children = True
    streaming = False

    def __init__(
        self,
        label: str,
        context: "ExplorerContext",
        scope: Scope,
        resource_type: str,
        description: str | None = None,
    ) -> None:
        """Initialize the listing node.

        Args:
            label: Display name
            context: Explorer context (providers, factory, config, events)
            scope: Scope passed to the resource provider
            resource_type: Provider resource type listed by this node
            description: Secondary text
        """
        super().__init__(label, description)
        self.context = context
        self.scope = scope
        self.resource_type = resource_type
        if self.supports_children:
            self.add_placeholder()
            context.events.register(self)

    def create_child(self, descriptor: ResourceDescriptor, scope: Scope) -> Node | None:
        """Create the child node for a descriptor.

        Args:
            descriptor: Resource reported by the provider
            scope: Scope the resource was found in

        Returns:
            The node, or None when the descriptor is not shown here
        """
        node = self.context.factory.create(descriptor, scope, self.context)
        if node is None or not self.accepts(node):
            return None
        return node

    def accepts(self, node: Node) -> bool:
        """Whether a factory-made node belongs under this listing."""
        return True

    def children_changed(self) -> None:
        """Hook called after the real children changed."""
        return None

    async def load_children(self) -> None:
        """Load the children from the resource provider."""
        if not self.supports_children or not self.begin_load():
            return

        logger.info(f"Loading {self.resource_type} for {self.label}")
        cancelled = False
        count = 0
        try:
            batch: list[Node] = []
            async for descriptor in self.context.resource_provider.list_resources(
                self.scope, self.resource_type
            ):
                node = self.create_child(descriptor, self.scope)
                if node is None:
                    continue

                if self.streaming:
                    self.insert_child_sorted(node)
                    count += 1
                    self.description = f"loading... ({count} found)"
                else:
                    batch.append(node)

            for node in sorted(batch, key=lambda n: label_sort_key(n.label)):
                self.add_child(node)
            count += len(batch)
            logger.info(f"Loaded {count} {self.resource_type} for {self.label}")

        except asyncio.CancelledError:
            cancelled = True
            logger.debug(f"Loading {self.label} cancelled")
            raise

        except Exception as e:
            self._record_failure(e)

        finally:
            if cancelled:
                self.abort_load()
            else:
                self.end_load()
            self.children_changed()

    def _record_failure(self, error: Exception) -> None:
        if len(self.children) <= 1:
            logger.error(f"Failed to load {self.label}: {error}")
            placeholder = ErrorPlaceholder(f"Error: {error}")
            placeholder.parent = self
            self.children.replace_all([placeholder])
        else:
            logger.warning(
                f"Failed to load all of {self.label}, keeping partial results: {error}"
            )

    async def refresh(self, timeout: float | None = None) -> bool:
        """Reload children, bounded by the configured load timeout by default."""
        if timeout is None:
            timeout = self.context.config.load_timeout
        return await super().refresh(timeout)

    # --- resource events ----------------------------------------------------

    def on_resource_created(self, kind: ResourceKind, scope: Scope, name: str) -> None:
        """Insert a newly created resource if it belongs under this node.

        Args:
            kind: Kind of the created resource
            scope: Scope the resource was created in
            name: Resource name
        """
        if not self._listens_to(kind, scope):
            return

        wanted = name.lower()
        if any(c.label.lower() == wanted for c in self.children if not c.is_placeholder):
            return

        descriptor = ResourceDescriptor(
            name=name,
            type=kind.resource_type,
            kind="functionapp" if kind is ResourceKind.FUNCTION_APP else None,
        )
        node = self.create_child(descriptor, scope)
        if node is None:
            return

        for child in self.children:
            if isinstance(child, ErrorPlaceholder):
                self.children.remove(child)

        logger.debug(f"Adding created {kind.display_name} {name} to {self.label}")
        self.insert_child_sorted(node)
        self.children_changed()

    def on_resource_deleted(self, kind: ResourceKind, scope: Scope, name: str) -> None:
        """Remove a deleted resource if it is shown under this node.

        Args:
            kind: Kind of the deleted resource
            scope: Scope the resource was deleted from
            name: Resource name
        """
        if not self._listens_to(kind, scope):
            return

        wanted = name.lower()
        for child in self.children:
            if not child.is_placeholder and child.label.lower() == wanted:
                logger.debug(f"Removing deleted {kind.display_name} {name} from {self.label}")
                self.children.remove(child)
                self.children_changed()
                return

    def _listens_to(self, kind: ResourceKind, scope: Scope) -> bool:
        # Unloaded nodes pick the change up on their first load
        if not self.is_loaded or self.is_loading:
            return False
        if kind.resource_type.lower() != self.resource_type.lower():
            return False
        return self.scope.covers(scope)


class CategoryNode(ListingNode):
    """Groups the resources of one kind, e.g. "Key Vaults"."""

    base_icon_key = "FolderClosed"

    def __init__(
        self,
        kind: ResourceKind,
        context: "ExplorerContext",
        scope: Scope,
        streaming: bool = False,
    ) -> None:
        """Initialize the category.

        Args:
            kind: Resource kind listed by this category
            context: Explorer context
            scope: Subscription or resource group scope
            streaming: Insert results one at a time instead of in one batch
        """
        self.kind = kind
        self.streaming = streaming
        super().__init__(kind.category_label, context, scope, kind.resource_type)

    def accepts(self, node: Node) -> bool:
        # App Services and Function Apps share one resource type
        return getattr(node, "kind", None) is self.kind

    @property
    def has_resources(self) -> bool:
        """True once loaded with at least one real resource."""
        return self.is_loaded and any(not c.is_placeholder for c in self.children)

    @property
    def is_visible(self) -> bool:
        return self.has_resources or self.context.config.show_all

    @property
    def opacity(self) -> float:
        return 1.0 if self.has_resources else 0.5

    def children_changed(self) -> None:
        self.notify_state_changed("is_visible")
        self.notify_state_changed("opacity")
