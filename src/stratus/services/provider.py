"""Interfaces of the external providers the explorer talks to.

Concrete clients live outside Stratus. They are expected to raise
ProviderError subclasses for remote failures and to let
asyncio.CancelledError propagate untouched.
"""

from collections.abc import AsyncIterator
from typing import Protocol

from stratus.models.resource import ResourceDescriptor, Scope
from stratus.models.search import SearchMatch


class ResourceProvider(Protocol):
    """Lists resources of one type within a scope."""

    def list_resources(
        self, scope: Scope, resource_type: str
    ) -> AsyncIterator[ResourceDescriptor]:
        """Stream descriptors of `resource_type` inside `scope`.

        Args:
            scope: Query scope
            resource_type: Provider resource type string

        Returns:
            Async iterator of descriptors
        """
        ...


class SearchProvider(Protocol):
    """Searches resources across every signed-in account."""

    def search(self, query: str) -> AsyncIterator[SearchMatch]:
        """Stream matches for a query.

        Args:
            query: Free text query (may contain tag:Key=Value filters)

        Returns:
            Async iterator of matches, ordered per subscription
        """
        ...
