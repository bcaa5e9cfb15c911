"""One search run: local matches first, then the search provider stream."""

import asyncio
from collections.abc import Iterable

from stratus.context import ExplorerContext
from stratus.models.search import SearchMatch
from stratus.search.aggregator import SearchAggregator
from stratus.search.local import search_loaded_nodes
from stratus.search.query import ParsedSearchQuery
from stratus.services.errors import ProviderError
from stratus.tree.node import Node
from stratus.utils.logging import get_logger

logger = get_logger(__name__)


class SearchSession:
    """Runs searches into a SearchAggregator."""

    def __init__(
        self,
        context: ExplorerContext,
        aggregator: SearchAggregator | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            context: Explorer context (search provider and result limit)
            aggregator: Result tree to fill, a new one by default
        """
        self.context = context
        self.aggregator = aggregator or SearchAggregator()
        self._seen: set[str] = set()
        self._count = 0

    @property
    def result_count(self) -> int:
        return self._count

    def _limit_reached(self) -> bool:
        return self._count >= self.context.config.max_search_results

    def _add(self, match: SearchMatch) -> bool:
        key = match.resource_id.lower()
        if key in self._seen:
            return False
        self._seen.add(key)
        self.aggregator.add_match(match)
        self._count += 1
        return True

    async def run(self, text: str, roots: Iterable[Node] = ()) -> int:
        """Search for `text`, replacing the previous results.

        Loaded browse nodes are searched first so that hits appear at once
        and can expand into the real resource. The provider stream follows;
        hits already found are skipped. Cancelling the run keeps the results
        gathered so far.

        Args:
            text: Raw query text
            roots: Root nodes of the browse tree for the local pass

        Returns:
            Number of results in the tree
        """
        self.aggregator.clear()
        self._seen.clear()
        self._count = 0

        query = ParsedSearchQuery.parse(text)
        if query.is_empty:
            return 0

        logger.info(f"Searching for {text!r}")
        for match in search_loaded_nodes(roots, query):
            if self._limit_reached():
                break
            self._add(match)
        logger.debug(f"{self._count} local matches for {text!r}")

        provider = self.context.search_provider
        if provider is None or self._limit_reached():
            return self._count

        try:
            async for match in provider.search(text):
                if self._limit_reached():
                    logger.info(f"Search stopped at {self._count} results")
                    break
                self._add(match)
        except asyncio.CancelledError:
            logger.debug(f"Search for {text!r} cancelled with {self._count} results")
            raise
        except ProviderError as e:
            logger.error(f"Search for {text!r} failed after {self._count} results: {e}")
            return self._count

        logger.info(f"Search for {text!r} found {self._count} results")
        return self._count
