"""Pytest configuration and shared fixtures."""

import asyncio
from collections.abc import AsyncIterator
from typing import Any

import pytest

from stratus.config import Config, reset_config
from stratus.context import ExplorerContext
from stratus.models.resource import ResourceDescriptor, Scope
from stratus.models.search import SearchMatch


class FakeResourceProvider:
    """In-memory resource provider.

    Resources are keyed by resource type (case-insensitive) regardless of
    scope. A type can be made to fail after N results, or to block on an
    event until the test releases it.
    """

    def __init__(self) -> None:
        self.resources: dict[str, list[ResourceDescriptor]] = {}
        self.errors: dict[str, tuple[Exception, int]] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.calls: list[tuple[Scope, str]] = []

    def add(self, resource_type: str, *descriptors: ResourceDescriptor) -> None:
        self.resources.setdefault(resource_type.lower(), []).extend(descriptors)

    def fail(self, resource_type: str, error: Exception, after: int = 0) -> None:
        self.errors[resource_type.lower()] = (error, after)

    def block(self, resource_type: str) -> asyncio.Event:
        gate = asyncio.Event()
        self.gates[resource_type.lower()] = gate
        return gate

    def calls_for(self, resource_type: str) -> int:
        return sum(1 for _, t in self.calls if t.lower() == resource_type.lower())

    async def list_resources(
        self, scope: Scope, resource_type: str
    ) -> AsyncIterator[ResourceDescriptor]:
        key = resource_type.lower()
        self.calls.append((scope, resource_type))

        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()

        error, after = self.errors.get(key, (None, 0))
        for i, descriptor in enumerate(self.resources.get(key, [])):
            if error is not None and i >= after:
                raise error
            yield descriptor
            await asyncio.sleep(0)

        if error is not None:
            raise error


class FakeSearchProvider:
    """Search provider that replays a fixed list of matches."""

    def __init__(self, matches: list[SearchMatch] | None = None) -> None:
        self.matches = matches or []
        self.error: Exception | None = None
        self.queries: list[str] = []

    async def search(self, query: str) -> AsyncIterator[SearchMatch]:
        self.queries.append(query)
        for match in self.matches:
            yield match
            await asyncio.sleep(0)
        if self.error is not None:
            raise self.error


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Any, monkeypatch: pytest.MonkeyPatch):
    """Keep tests away from the user's config file and global config."""
    monkeypatch.setenv("STRATUS_CONFIG_DIR", str(tmp_path / "config"))
    reset_config()
    yield
    reset_config()


@pytest.fixture
def provider() -> FakeResourceProvider:
    """Empty fake resource provider."""
    return FakeResourceProvider()


@pytest.fixture
def search_provider() -> FakeSearchProvider:
    """Empty fake search provider."""
    return FakeSearchProvider()


@pytest.fixture
def config() -> Config:
    """Default configuration."""
    return Config()


@pytest.fixture
def context(
    provider: FakeResourceProvider,
    search_provider: FakeSearchProvider,
    config: Config,
) -> ExplorerContext:
    """Explorer context wired to the fake providers."""
    return ExplorerContext(
        resource_provider=provider,
        search_provider=search_provider,
        config=config,
    )


@pytest.fixture
def sub_scope() -> Scope:
    """Subscription scope."""
    return Scope(account_id="acct-1", subscription_id="sub-1")


@pytest.fixture
def rg_scope(sub_scope: Scope) -> Scope:
    """Resource group scope."""
    return sub_scope.within_resource_group("rg-web")


@pytest.fixture
def mock_site_response() -> dict[str, Any]:
    """Management API response for a web site."""
    return {
        "id": "/subscriptions/sub-1/resourceGroups/rg-web/providers/Microsoft.Web/sites/shop",
        "name": "shop",
        "type": "Microsoft.Web/sites",
        "kind": "app,linux",
        "location": "westeurope",
        "tags": {"env": "prod"},
        "properties": {"state": "Running", "provisioningState": "Succeeded"},
    }
