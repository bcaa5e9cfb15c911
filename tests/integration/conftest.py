"""Integration test fixtures: a small, scope-aware cloud estate."""

import asyncio
from collections.abc import AsyncIterator
from typing import Any

import pytest

from stratus.config import Config
from stratus.context import ExplorerContext
from stratus.models.resource import ResourceDescriptor, ResourceKind, Scope
from stratus.models.search import SearchMatch
from stratus.search.query import ParsedSearchQuery

SUBSCRIPTION_ID = "sub-1"


def create_descriptor(
    kind: ResourceKind,
    name: str,
    resource_group: str | None = None,
    parent: str | None = None,
    /,
    **extra: Any,
) -> ResourceDescriptor:
    """Create a descriptor with a realistic resource ID.

    Args:
        kind: Resource kind
        name: Resource name
        resource_group: Owning resource group
        parent: Parent resource name for sub-resources
        **extra: Other descriptor fields (kind, state, tags, properties)

    Returns:
        ResourceDescriptor for the estate
    """
    if kind is ResourceKind.SUBSCRIPTION:
        resource_id = f"/subscriptions/{name}"
    elif kind is ResourceKind.RESOURCE_GROUP:
        resource_id = f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/{name}"
    else:
        namespace, _, types = kind.resource_type.partition("/")
        type_segments = types.split("/")
        names = [parent, name] if parent else [name]
        while len(names) < len(type_segments):
            names.insert(len(names) - 1, "default")
        path = "/".join(f"{t}/{n}" for t, n in zip(type_segments, names))
        resource_id = (
            f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/{resource_group}"
            f"/providers/{namespace}/{path}"
        )
    return ResourceDescriptor(name=name, type=kind.resource_type, id=resource_id, **extra)


class EstateProvider:
    """Resource provider that filters a fixed estate by scope."""

    def __init__(self, descriptors: list[ResourceDescriptor]) -> None:
        self.descriptors = descriptors
        self.calls: list[tuple[Scope, str]] = []

    async def list_resources(
        self, scope: Scope, resource_type: str
    ) -> AsyncIterator[ResourceDescriptor]:
        self.calls.append((scope, resource_type))
        for descriptor in self.descriptors:
            if descriptor.type.lower() != resource_type.lower():
                continue
            if not self._in_scope(descriptor, scope):
                continue
            yield descriptor
            await asyncio.sleep(0)

    @staticmethod
    def _in_scope(descriptor: ResourceDescriptor, scope: Scope) -> bool:
        resource_id = (descriptor.id or "").lower() + "/"
        if descriptor.type.lower() == ResourceKind.SUBSCRIPTION.resource_type.lower():
            return True
        if scope.subscription_id and f"/subscriptions/{scope.subscription_id.lower()}/" not in resource_id:
            return False
        if scope.resource_group and f"/resourcegroups/{scope.resource_group.lower()}/" not in resource_id:
            return False
        if scope.parent_name and f"/{scope.parent_name.lower()}/" not in resource_id:
            return False
        return True


def display_name(descriptor: ResourceDescriptor) -> str:
    """Human readable type of a descriptor, the way search results show it."""
    if "functionapp" in (descriptor.kind or "").lower():
        return ResourceKind.FUNCTION_APP.display_name
    for kind in ResourceKind:
        if kind.resource_type.lower() == descriptor.type.lower():
            return kind.display_name
    return descriptor.type


class EstateSearchProvider:
    """Search provider that matches top-level resources of the estate."""

    def __init__(self, descriptors: list[ResourceDescriptor]) -> None:
        self.descriptors = descriptors

    async def search(self, query: str) -> AsyncIterator[SearchMatch]:
        parsed = ParsedSearchQuery.parse(query)
        for descriptor in self.descriptors:
            if descriptor.type.count("/") != 1 or "Microsoft.Resources" in descriptor.type:
                continue
            if not parsed.matches(descriptor.name, descriptor.tags):
                continue
            yield SearchMatch(
                account_id="acct-1",
                account_label="user@example.com",
                subscription_id=SUBSCRIPTION_ID,
                subscription_label="Production",
                resource_name=descriptor.name,
                resource_type=display_name(descriptor),
                resource_id=descriptor.id,
                tags=descriptor.tags,
            )
            await asyncio.sleep(0)


@pytest.fixture
def estate() -> list[ResourceDescriptor]:
    """Two resource groups with web, vault and storage resources."""
    return [
        create_descriptor(ResourceKind.SUBSCRIPTION, SUBSCRIPTION_ID).model_copy(
            update={"name": "Production"}
        ),
        create_descriptor(ResourceKind.RESOURCE_GROUP, "rg-web"),
        create_descriptor(ResourceKind.RESOURCE_GROUP, "rg-data"),
        create_descriptor(ResourceKind.APP_SERVICE, "shop", "rg-web", kind="app,linux"),
        create_descriptor(ResourceKind.FUNCTION_APP, "shop-fn", "rg-web", kind="functionapp"),
        create_descriptor(
            ResourceKind.KEY_VAULT, "shop-kv", "rg-web", tags={"env": "prod"}
        ),
        create_descriptor(ResourceKind.KEY_VAULT_SECRET, "db-password", "rg-web", "shop-kv"),
        create_descriptor(ResourceKind.STORAGE_ACCOUNT, "shopdata", "rg-data"),
        create_descriptor(ResourceKind.STORAGE_CONTAINER, "images", "rg-data", "shopdata"),
        create_descriptor(
            ResourceKind.VIRTUAL_MACHINE,
            "build-vm",
            "rg-data",
            state="VM deallocated",
            properties='{"hardwareProfile": {"vmSize": "Standard_B2s"}}',
        ),
    ]


@pytest.fixture
def estate_context(estate: list[ResourceDescriptor]) -> ExplorerContext:
    """Explorer context over the estate."""
    return ExplorerContext(
        resource_provider=EstateProvider(estate),
        search_provider=EstateSearchProvider(estate),
        config=Config(),
    )


@pytest.fixture
def make_descriptor():
    """Factory for estate descriptors added during a test."""
    return create_descriptor
