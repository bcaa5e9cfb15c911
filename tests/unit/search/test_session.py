"""Tests for SearchSession."""

import asyncio

import pytest

from stratus.models.resource import ResourceDescriptor, ResourceKind
from stratus.models.search import SearchMatch
from stratus.search.nodes import SearchResultNode
from stratus.search.session import SearchSession
from stratus.services.errors import ProviderError
from stratus.tree.nodes import AccountNode, ResourceNode

VAULT_ID = "/subscriptions/sub-1/resourceGroups/rg-web/providers/Microsoft.KeyVault/vaults/shop-kv"


def match(name: str, resource_id: str | None = None) -> SearchMatch:
    return SearchMatch(
        account_id="acct-1",
        account_label="user@example.com",
        subscription_id="sub-1",
        subscription_label="Production",
        resource_name=name,
        resource_type="Key Vault",
        resource_id=resource_id or f"/subscriptions/sub-1/providers/x/{name}",
    )


def results(session: SearchSession) -> list[SearchResultNode]:
    return [
        result
        for account in session.aggregator.children
        for subscription in account.children
        for result in subscription.children
    ]


class TestSearchSession:
    """Test SearchSession.run."""

    @pytest.mark.asyncio
    async def test_provider_results(self, context, search_provider) -> None:
        """Test provider matches are added to the aggregator."""
        search_provider.matches = [match("shop-kv"), match("shop-api")]
        session = SearchSession(context)

        count = await session.run("shop")

        assert count == 2
        assert session.result_count == 2
        assert search_provider.queries == ["shop"]
        assert [r.resource_name for r in results(session)] == ["shop-kv", "shop-api"]

    @pytest.mark.asyncio
    async def test_empty_query(self, context, search_provider) -> None:
        """Test blank text does not reach the provider."""
        session = SearchSession(context)

        assert await session.run("   ") == 0
        assert search_provider.queries == []

    @pytest.mark.asyncio
    async def test_limit(self, context, search_provider) -> None:
        """Test the result count never exceeds max_search_results."""
        context.config.max_search_results = 3
        search_provider.matches = [match(f"kv{i}") for i in range(10)]
        session = SearchSession(context)

        assert await session.run("kv") == 3
        assert len(results(session)) == 3

    @pytest.mark.asyncio
    async def test_duplicates_dropped(self, context, search_provider) -> None:
        """Test the same resource ID is only added once, ignoring case."""
        search_provider.matches = [match("a", "/x/A"), match("a", "/x/a")]
        session = SearchSession(context)

        assert await session.run("a") == 1

    @pytest.mark.asyncio
    async def test_rerun_replaces_results(self, context, search_provider) -> None:
        """Test a new run clears the previous results."""
        search_provider.matches = [match("one")]
        session = SearchSession(context)
        await session.run("one")

        search_provider.matches = [match("two")]
        await session.run("two")

        assert [r.resource_name for r in results(session)] == ["two"]
        assert session.result_count == 1

    @pytest.mark.asyncio
    async def test_provider_error_keeps_results(self, context, search_provider) -> None:
        """Test a failing provider keeps the results gathered so far."""
        search_provider.matches = [match("first")]
        search_provider.error = ProviderError("throttled")
        session = SearchSession(context)

        assert await session.run("x") == 1

    @pytest.mark.asyncio
    async def test_without_provider(self, context) -> None:
        """Test a missing search provider yields only local results."""
        context.search_provider = None
        session = SearchSession(context)

        assert await session.run("x") == 0

    @pytest.mark.asyncio
    async def test_cancel_keeps_results(self, context) -> None:
        """Test cancelling a run keeps what was found."""
        release = asyncio.Event()

        class SlowProvider:
            async def search(self, query):
                yield match("first")
                await release.wait()
                yield match("second")

        context.search_provider = SlowProvider()
        session = SearchSession(context)

        task = asyncio.create_task(session.run("x"))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert session.result_count == 1

    @pytest.mark.asyncio
    async def test_local_matches_first(self, context, provider, search_provider) -> None:
        """Test loaded nodes are found before the provider and not duplicated."""
        provider.add(
            ResourceKind.SUBSCRIPTION.resource_type,
            ResourceDescriptor(name="Production", type=ResourceKind.SUBSCRIPTION.resource_type,
                               id="/subscriptions/sub-1"),
        )
        provider.add(
            ResourceKind.KEY_VAULT.resource_type,
            ResourceDescriptor(name="shop-kv", type=ResourceKind.KEY_VAULT.resource_type,
                               id=VAULT_ID),
        )
        account = AccountNode("acct-1", "user@example.com", context)
        await account.load_children()
        subscription = account.children[0]
        await subscription.load_children()
        await subscription.preloader.wait()

        search_provider.matches = [match("shop-kv", VAULT_ID.upper()), match("shop-api")]
        session = SearchSession(context)

        assert await session.run("shop", roots=[account]) == 2

        first, second = results(session)
        assert first.resource_name == "shop-kv"
        assert isinstance(first.actual_node, ResourceNode)
        assert first.supports_children is True
        assert second.resource_name == "shop-api"
        assert second.actual_node is second
