"""Resource kinds, scopes and descriptors."""

import json
from enum import Enum
from typing import Any, NamedTuple

from pydantic import Field

from stratus.models.base import BaseModel


class KindInfo(NamedTuple):
    """Static metadata attached to a ResourceKind."""

    resource_type: str
    display_name: str
    category_label: str
    icon_key: str
    context_menu_id: int = 0
    child_kind: "ResourceKind | None" = None


class ResourceKind(str, Enum):
    """Closed set of resource kinds the explorer knows how to show."""

    SUBSCRIPTION = "subscription"
    RESOURCE_GROUP = "resource_group"
    APP_SERVICE = "app_service"
    FUNCTION_APP = "function_app"
    APP_SERVICE_PLAN = "app_service_plan"
    FRONT_DOOR = "front_door"
    KEY_VAULT = "key_vault"
    SQL_SERVER = "sql_server"
    STORAGE_ACCOUNT = "storage_account"
    VIRTUAL_MACHINE = "virtual_machine"
    # Sub-resources
    DEPLOYMENT_SLOT = "deployment_slot"
    FRONT_DOOR_ENDPOINT = "front_door_endpoint"
    KEY_VAULT_SECRET = "key_vault_secret"
    SQL_DATABASE = "sql_database"
    STORAGE_CONTAINER = "storage_container"

    @property
    def info(self) -> KindInfo:
        """Metadata for this kind."""
        return _KIND_INFO[self]

    @property
    def resource_type(self) -> str:
        """Provider resource type string (e.g. Microsoft.KeyVault/vaults)."""
        return self.info.resource_type

    @property
    def display_name(self) -> str:
        """Singular human readable name (e.g. Key Vault)."""
        return self.info.display_name

    @property
    def category_label(self) -> str:
        """Plural label used by category nodes (e.g. Key Vaults)."""
        return self.info.category_label

    @property
    def child_kind(self) -> "ResourceKind | None":
        """Sub-resource kind listed when a resource of this kind is expanded."""
        return self.info.child_kind


# Context menu IDs consumed by the UI host; 0 means no menu
SUBSCRIPTION_MENU = 0x0100
RESOURCE_GROUP_MENU = 0x0110
APP_SERVICE_MENU = 0x0200
FUNCTION_APP_MENU = 0x0210
APP_SERVICE_PLAN_MENU = 0x0220
FRONT_DOOR_MENU = 0x0300
KEY_VAULT_MENU = 0x0400
SECRET_MENU = 0x0410
SQL_SERVER_MENU = 0x0500
SQL_DATABASE_MENU = 0x0510
STORAGE_ACCOUNT_MENU = 0x0600
CONTAINER_MENU = 0x0610
VIRTUAL_MACHINE_MENU = 0x0700
DEPLOYMENT_SLOT_MENU = 0x0230

_KIND_INFO: dict[ResourceKind, KindInfo] = {
    ResourceKind.SUBSCRIPTION: KindInfo(
        "Microsoft.Resources/subscriptions", "Subscription", "Subscriptions",
        "AzureSubscriptionKey", SUBSCRIPTION_MENU,
    ),
    ResourceKind.RESOURCE_GROUP: KindInfo(
        "Microsoft.Resources/resourceGroups", "Resource Group", "Resource Groups",
        "AzureResourceGroup", RESOURCE_GROUP_MENU,
    ),
    ResourceKind.APP_SERVICE: KindInfo(
        "Microsoft.Web/sites", "App Service", "App Services",
        "Web", APP_SERVICE_MENU, ResourceKind.DEPLOYMENT_SLOT,
    ),
    ResourceKind.FUNCTION_APP: KindInfo(
        "Microsoft.Web/sites", "Function App", "Function Apps",
        "AzureFunctionsApp", FUNCTION_APP_MENU, ResourceKind.DEPLOYMENT_SLOT,
    ),
    ResourceKind.APP_SERVICE_PLAN: KindInfo(
        "Microsoft.Web/serverfarms", "App Service Plan", "App Service Plans",
        "ApplicationGroup", APP_SERVICE_PLAN_MENU,
    ),
    ResourceKind.FRONT_DOOR: KindInfo(
        "Microsoft.Cdn/profiles", "Front Door", "Front Doors",
        "CloudGroup", FRONT_DOOR_MENU, ResourceKind.FRONT_DOOR_ENDPOINT,
    ),
    ResourceKind.KEY_VAULT: KindInfo(
        "Microsoft.KeyVault/vaults", "Key Vault", "Key Vaults",
        "AzureKeyVault", KEY_VAULT_MENU, ResourceKind.KEY_VAULT_SECRET,
    ),
    ResourceKind.SQL_SERVER: KindInfo(
        "Microsoft.Sql/servers", "SQL Server", "SQL Servers",
        "AzureSqlServer", SQL_SERVER_MENU, ResourceKind.SQL_DATABASE,
    ),
    ResourceKind.STORAGE_ACCOUNT: KindInfo(
        "Microsoft.Storage/storageAccounts", "Storage Account", "Storage Accounts",
        "AzureStorageAccount", STORAGE_ACCOUNT_MENU, ResourceKind.STORAGE_CONTAINER,
    ),
    ResourceKind.VIRTUAL_MACHINE: KindInfo(
        "Microsoft.Compute/virtualMachines", "Virtual Machine", "Virtual Machines",
        "VirtualMachine", VIRTUAL_MACHINE_MENU,
    ),
    ResourceKind.DEPLOYMENT_SLOT: KindInfo(
        "Microsoft.Web/sites/slots", "Deployment Slot", "Deployment Slots",
        "Web", DEPLOYMENT_SLOT_MENU,
    ),
    ResourceKind.FRONT_DOOR_ENDPOINT: KindInfo(
        "Microsoft.Cdn/profiles/afdEndpoints", "Endpoint", "Endpoints",
        "Endpoint",
    ),
    ResourceKind.KEY_VAULT_SECRET: KindInfo(
        "Microsoft.KeyVault/vaults/secrets", "Secret", "Secrets",
        "Key", SECRET_MENU,
    ),
    ResourceKind.SQL_DATABASE: KindInfo(
        "Microsoft.Sql/servers/databases", "SQL Database", "Databases",
        "Database", SQL_DATABASE_MENU,
    ),
    ResourceKind.STORAGE_CONTAINER: KindInfo(
        "Microsoft.Storage/storageAccounts/blobServices/containers", "Blob Container",
        "Containers", "BlobContainer", CONTAINER_MENU,
    ),
}


class ProvisioningState(str, Enum):
    """Coarse state of a resource, parsed from the provider state string."""

    UNKNOWN = "unknown"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    RUNNING = "running"
    STOPPED = "stopped"

    @classmethod
    def parse(cls, state: str | None) -> "ProvisioningState":
        """Parse a provider state string.

        Args:
            state: State string such as "Succeeded", "Running", "VM deallocated"

        Returns:
            Parsed state (UNKNOWN for anything unrecognised)
        """
        if not state:
            return cls.UNKNOWN

        normalized = state.strip().lower()
        if normalized == "succeeded":
            return cls.SUCCEEDED
        if normalized == "failed":
            return cls.FAILED
        if normalized in ("running", "vm running"):
            return cls.RUNNING
        if normalized in ("stopped", "vm stopped", "vm deallocated", "deallocated"):
            return cls.STOPPED
        return cls.UNKNOWN


class Scope(BaseModel):
    """Addressing tuple that bounds a provider query."""

    account_id: str | None = Field(None, description="Signed-in account ID")
    subscription_id: str | None = Field(None, description="Subscription ID")
    resource_group: str | None = Field(None, description="Resource group name")
    parent_name: str | None = Field(
        None, description="Parent resource name for sub-resource queries"
    )

    def within_resource_group(self, resource_group: str) -> "Scope":
        """Narrow this scope to a resource group."""
        return self.model_copy(update={"resource_group": resource_group, "parent_name": None})

    def within_resource(self, name: str) -> "Scope":
        """Narrow this scope to a parent resource."""
        return self.model_copy(update={"parent_name": name})

    def covers(self, other: "Scope") -> bool:
        """Check whether a resource addressed by `other` falls inside this scope.

        Unset fields on this scope match anything. Comparisons are
        case-insensitive, the way the provider treats names.

        Args:
            other: Scope of a created or deleted resource

        Returns:
            True if every field set on this scope matches `other`
        """
        for field_name in ("subscription_id", "resource_group", "parent_name"):
            mine = getattr(self, field_name)
            if mine is None:
                continue
            theirs = getattr(other, field_name)
            if theirs is None or theirs.lower() != mine.lower():
                return False
        return True


class ResourceDescriptor(BaseModel):
    """A resource as reported by the Resource Provider."""

    name: str = Field(..., description="Resource name")
    type: str = Field(..., description="Provider resource type")
    kind: str | None = Field(None, description="Provider kind hint (e.g. functionapp)")
    state: str | None = Field(None, description="Provisioning or power state")
    properties: str | None = Field(None, description="Raw properties JSON")
    tags: dict[str, str] = Field(default_factory=dict, description="Resource tags")
    id: str | None = Field(None, description="Full resource ID")
    location: str | None = Field(None, description="Region")

    def properties_dict(self) -> dict[str, Any]:
        """Parse the properties JSON.

        Returns:
            Parsed properties, or an empty dict when absent or malformed
        """
        if not self.properties:
            return {}
        try:
            data = json.loads(self.properties)
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "ResourceDescriptor":
        """Create a ResourceDescriptor from a management API resource.

        Args:
            data: API response data

        Returns:
            ResourceDescriptor instance

        Example API response structure:
            {
                "id": "/subscriptions/0000/resourceGroups/rg/providers/Microsoft.Web/sites/app",
                "name": "app",
                "type": "Microsoft.Web/sites",
                "kind": "app,linux",
                "location": "westeurope",
                "tags": {"env": "prod"},
                "properties": {"state": "Running", "provisioningState": "Succeeded"}
            }
        """
        properties = data.get("properties") or {}
        if isinstance(properties, dict):
            state = properties.get("state") or properties.get("provisioningState")
            properties_json = json.dumps(properties) if properties else None
        else:
            state = None
            properties_json = str(properties)

        return cls(
            name=data.get("name", ""),
            type=data.get("type", ""),
            kind=data.get("kind"),
            state=state,
            properties=properties_json,
            tags=data.get("tags") or {},
            id=data.get("id"),
            location=data.get("location"),
        )


def resource_group_from_id(resource_id: str | None) -> str | None:
    """Extract the resource group name from a full resource ID.

    Args:
        resource_id: ID such as /subscriptions/s/resourceGroups/rg/providers/...

    Returns:
        The resource group name, or None when the ID has none
    """
    if not resource_id:
        return None
    parts = resource_id.strip("/").split("/")
    for i, part in enumerate(parts[:-1]):
        if part.lower() == "resourcegroups":
            return parts[i + 1]
    return None


def build_resource_id(scope: Scope, resource_type: str, name: str) -> str:
    """Build a full resource ID from a scope, a type and a name.

    Sub-resource types carry one more type segment than names; the missing
    intermediate name is "default" (e.g. blobServices/default/containers).

    Args:
        scope: Scope the resource lives in (parent_name set for sub-resources)
        resource_type: Provider resource type string
        name: Resource name

    Returns:
        Resource ID string
    """
    namespace, _, type_path = resource_type.partition("/")
    type_segments = [segment for segment in type_path.split("/") if segment]
    names = [scope.parent_name, name] if scope.parent_name else [name]
    while len(names) < len(type_segments):
        names.insert(len(names) - 1, "default")

    resource_id = f"/subscriptions/{scope.subscription_id}"
    if scope.resource_group:
        resource_id += f"/resourceGroups/{scope.resource_group}"
    path = "/".join(f"{t}/{n}" for t, n in zip(type_segments, names))
    return f"{resource_id}/providers/{namespace}/{path}"
