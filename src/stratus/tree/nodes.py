"""Concrete explorer nodes: accounts, subscriptions, resource groups, resources."""

from typing import TYPE_CHECKING, Any

from stratus.models.resource import (
    RESOURCE_GROUP_MENU,
    SUBSCRIPTION_MENU,
    ProvisioningState,
    ResourceDescriptor,
    ResourceKind,
    Scope,
    build_resource_id,
)
from stratus.tree.loader import CategoryNode, ListingNode
from stratus.tree.node import Node
from stratus.tree.preload import PreloadOrchestrator, load_non_empty
from stratus.utils.logging import get_logger

if TYPE_CHECKING:
    from stratus.context import ExplorerContext

logger = get_logger(__name__)

# Category order under a subscription, followed by "Resource Groups"
SUBSCRIPTION_CATEGORY_KINDS = (
    ResourceKind.APP_SERVICE,
    ResourceKind.FUNCTION_APP,
    ResourceKind.FRONT_DOOR,
    ResourceKind.KEY_VAULT,
    ResourceKind.SQL_SERVER,
    ResourceKind.STORAGE_ACCOUNT,
    ResourceKind.VIRTUAL_MACHINE,
)

RESOURCE_GROUP_CATEGORY_KINDS = (
    ResourceKind.APP_SERVICE,
    ResourceKind.APP_SERVICE_PLAN,
    ResourceKind.FRONT_DOOR,
    ResourceKind.FUNCTION_APP,
    ResourceKind.KEY_VAULT,
    ResourceKind.SQL_SERVER,
    ResourceKind.STORAGE_ACCOUNT,
)


class AccountNode(ListingNode):
    """A signed-in account; its children are the visible subscriptions."""

    base_icon_key = "AzureAccount"

    def __init__(self, account_id: str, label: str, context: "ExplorerContext") -> None:
        self.account_id = account_id
        super().__init__(
            label,
            context,
            Scope(account_id=account_id),
            ResourceKind.SUBSCRIPTION.resource_type,
        )


class ScopeNode(Node):
    """Node that creates fixed category children and pre-loads them."""

    supports_children = True

    def __init__(
        self,
        label: str,
        context: "ExplorerContext",
        scope: Scope,
        description: str | None = None,
    ) -> None:
        super().__init__(label, description)
        self.context = context
        self.scope = scope
        self.preloader = PreloadOrchestrator(label)
        self.add_placeholder()

    def create_categories(self) -> list[Node]:
        """Build the category children, in display order."""
        raise NotImplementedError

    async def refresh(self, timeout: float | None = None) -> bool:
        """Reload children, bounded by the configured load timeout by default."""
        if timeout is None:
            timeout = self.context.config.load_timeout
        self.preloader.cancel()
        return await super().refresh(timeout)

    def abort_load(self) -> None:
        self.preloader.cancel()
        super().abort_load()


class SubscriptionNode(ScopeNode):
    """A subscription: resource-type categories plus its resource groups."""

    context_menu_id = SUBSCRIPTION_MENU
    base_icon_key = ResourceKind.SUBSCRIPTION.info.icon_key

    def __init__(
        self,
        subscription_id: str,
        label: str,
        context: "ExplorerContext",
        account_id: str | None = None,
    ) -> None:
        """Initialize the subscription node.

        Args:
            subscription_id: Subscription ID
            label: Subscription display name
            context: Explorer context
            account_id: Owning account, if known
        """
        self.subscription_id = subscription_id
        super().__init__(
            label,
            context,
            Scope(account_id=account_id, subscription_id=subscription_id),
        )

    @property
    def is_hidden(self) -> bool:
        return self.context.config.is_subscription_hidden(self.subscription_id)

    @property
    def is_visible(self) -> bool:
        return not self.is_hidden or self.context.config.show_all

    @property
    def opacity(self) -> float:
        return 0.5 if self.is_hidden else 1.0

    def hidden_changed(self) -> None:
        """Re-evaluate visibility after the hidden list changed."""
        self.notify_state_changed("is_visible")
        self.notify_state_changed("opacity")

    def create_categories(self) -> list[Node]:
        categories: list[Node] = [
            CategoryNode(kind, self.context, self.scope, streaming=True)
            for kind in SUBSCRIPTION_CATEGORY_KINDS
        ]
        categories.append(ResourceGroupsNode(self.context, self.scope))
        return categories

    async def load_children(self) -> None:
        """Add every category, finish loading, then pre-load the categories."""
        if not self.begin_load():
            return

        categories = self.create_categories()
        for node in categories:
            self.add_child(node)
        self.end_load()

        self.preloader.start(categories)


class ResourceGroupsNode(ListingNode):
    """The "Resource Groups" folder of a subscription."""

    base_icon_key = "FolderClosed"

    def __init__(self, context: "ExplorerContext", scope: Scope) -> None:
        super().__init__(
            ResourceKind.RESOURCE_GROUP.category_label,
            context,
            scope,
            ResourceKind.RESOURCE_GROUP.resource_type,
        )


class ResourceGroupNode(ScopeNode):
    """A resource group: one category per resource kind it can contain."""

    context_menu_id = RESOURCE_GROUP_MENU
    base_icon_key = ResourceKind.RESOURCE_GROUP.info.icon_key

    def __init__(self, name: str, context: "ExplorerContext", scope: Scope) -> None:
        """Initialize the resource group node.

        Args:
            name: Resource group name
            context: Explorer context
            scope: Scope narrowed to this resource group
        """
        self.name = name
        super().__init__(name, context, scope)

    def create_categories(self) -> list[Node]:
        return [
            CategoryNode(kind, self.context, self.scope)
            for kind in RESOURCE_GROUP_CATEGORY_KINDS
        ]

    async def load_children(self) -> None:
        """Create the categories.

        With show_all every category is added and the group is loaded at
        once; otherwise the group stays loading until its categories are
        loaded and only non-empty ones are shown.
        """
        if not self.begin_load():
            return

        categories = self.create_categories()
        if self.context.config.show_all:
            for node in categories:
                self.add_child(node)
            self.end_load()
            self.preloader.start(categories)
        else:
            await load_non_empty(self, categories)


class ResourceNode(ListingNode):
    """A single resource; expandable when its kind has sub-resources."""

    def __init__(
        self,
        kind: ResourceKind,
        name: str,
        context: "ExplorerContext",
        scope: Scope,
        state: ProvisioningState = ProvisioningState.UNKNOWN,
        tags: dict[str, str] | None = None,
        resource_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the resource node.

        Args:
            kind: Resource kind
            name: Resource name
            context: Explorer context
            scope: Scope the resource lives in
            state: Parsed provisioning or power state
            tags: Resource tags
            resource_id: Full resource ID, built from the scope when absent
            details: Kind specific extras (e.g. vm_size, os_type)
        """
        self.kind = kind
        self.name = name
        self.state = state
        self.tags = tags or {}
        self.details = details or {}
        self.resource_scope = scope
        self._resource_id = resource_id
        child_kind = kind.child_kind
        super().__init__(
            name,
            context,
            scope.within_resource(name),
            child_kind.resource_type if child_kind else kind.resource_type,
            description=self._describe(),
        )

    @classmethod
    def from_descriptor(
        cls,
        kind: ResourceKind,
        descriptor: ResourceDescriptor,
        scope: Scope,
        context: "ExplorerContext",
    ) -> "ResourceNode":
        """Create a resource node from a provider descriptor."""
        details: dict[str, Any] = {}
        if kind is ResourceKind.VIRTUAL_MACHINE:
            properties = descriptor.properties_dict()
            hardware = properties.get("hardwareProfile") or {}
            os_disk = (properties.get("storageProfile") or {}).get("osDisk") or {}
            if isinstance(hardware, dict) and hardware.get("vmSize"):
                details["vm_size"] = hardware["vmSize"]
            if isinstance(os_disk, dict) and os_disk.get("osType"):
                details["os_type"] = os_disk["osType"]

        return cls(
            kind,
            descriptor.name,
            context,
            scope,
            state=ProvisioningState.parse(descriptor.state),
            tags=dict(descriptor.tags),
            resource_id=descriptor.id,
            details=details,
        )

    @property
    def supports_children(self) -> bool:
        return self.kind.child_kind is not None

    @property
    def context_menu_id(self) -> int:
        return self.kind.info.context_menu_id

    @property
    def icon_key(self) -> str:
        if self.is_loading:
            return "Loading"
        if self.state is ProvisioningState.FAILED:
            return "StatusError"
        if self.state is ProvisioningState.STOPPED:
            return f"{self.kind.info.icon_key}Stopped"
        return self.kind.info.icon_key

    @property
    def resource_id(self) -> str:
        if self._resource_id:
            return self._resource_id
        return build_resource_id(self.resource_scope, self.kind.resource_type, self.name)

    def accepts(self, node: Node) -> bool:
        return getattr(node, "kind", None) is self.kind.child_kind

    def has_tag(self, key: str, value: str | None = None) -> bool:
        """Check for a tag, comparing keys and values case-insensitively.

        Args:
            key: Tag name
            value: Required value, or None to accept any value

        Returns:
            True if the resource carries the tag
        """
        for tag_key, tag_value in self.tags.items():
            if tag_key.lower() != key.lower():
                continue
            if value is None or (tag_value or "").lower() == value.lower():
                return True
        return False

    def _describe(self) -> str | None:
        if self.state is ProvisioningState.STOPPED:
            return "Stopped"
        if self.state is ProvisioningState.FAILED:
            return "Failed"
        return self.details.get("vm_size")
