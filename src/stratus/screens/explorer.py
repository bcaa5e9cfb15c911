"""Explorer screen: the browse tree plus a search box."""

import asyncio
from typing import ClassVar

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import Screen
from textual.widgets import Footer, Header, Input

from stratus.actions import portal_url, toggle_subscription_hidden
from stratus.context import ExplorerContext
from stratus.search.session import SearchSession
from stratus.tree.node import Node
from stratus.tree.nodes import AccountNode, ScopeNode
from stratus.utils.logging import get_logger
from stratus.widgets.explorer_tree import ExplorerTree

logger = get_logger(__name__)


class ExplorerScreen(Screen[None]):
    """Browse tree with a search box above it.

    Layout:
    +------------------------------------------+
    |  Header                                  |
    +------------------------------------------+
    |  Search (hidden until "/")               |
    +------------------------------------------+
    |  Explorer Tree                           |
    +------------------------------------------+
    |  Footer                                  |
    +------------------------------------------+

    While the search box holds text the tree shows search results; clearing
    it brings the browse tree back with its loaded state intact.
    """

    BINDINGS: ClassVar = [
        Binding("slash", "toggle_search", "Search"),
        Binding("escape", "clear_search", "Clear search", show=False),
        Binding("o", "open_portal", "Open in portal"),
        Binding("h", "toggle_hidden", "Hide/Unhide subscription"),
    ]

    CSS = """
    ExplorerScreen {
        layout: vertical;
    }

    #search-container {
        height: 0;
        background: $panel;
        padding: 0 1;
        overflow: hidden;
    }

    #search-container.visible {
        height: 3;
    }

    #search-input {
        width: 100%;
        height: 1;
        border: none;
    }

    ExplorerTree {
        height: 1fr;
        width: 100%;
    }
    """

    def __init__(self, context: ExplorerContext, accounts: list[AccountNode]) -> None:
        """Initialize the explorer screen.

        Args:
            context: Explorer context shared by every node
            accounts: Account nodes shown at the top of the browse tree
        """
        super().__init__()
        self.context = context
        self.accounts = accounts
        self.session = SearchSession(context)
        self.explorer_tree: ExplorerTree | None = None
        self.search_input: Input | None = None
        self.search_active = False
        self._search_task: asyncio.Task[int] | None = None

    def compose(self) -> ComposeResult:
        """Compose the screen layout.

        Yields:
            Widget components
        """
        yield Header()

        with Vertical(id="search-container"):
            self.search_input = Input(
                placeholder="Search resources... (name, tag:Key=Value, Esc to clear)",
                id="search-input",
            )
            yield self.search_input

        self.explorer_tree = ExplorerTree()
        yield self.explorer_tree
        yield Footer()

    def on_mount(self) -> None:
        """Show the accounts once the widgets exist."""
        logger.info(f"Explorer screen mounted with {len(self.accounts)} accounts")
        self.show_browse()

    def on_unmount(self) -> None:
        self.cancel_search()
        # Pre-loads run at every loaded scope, not just subscriptions
        pending: list[Node] = list(self.accounts)
        while pending:
            node = pending.pop()
            if isinstance(node, ScopeNode):
                node.preloader.cancel()
            pending.extend(node.children)

    def show_browse(self) -> None:
        """Show the browse tree."""
        if self.explorer_tree is None:
            return
        self.explorer_tree.clear_nodes()
        for account in self.accounts:
            self.explorer_tree.add_root_node(account)

    # Search

    def cancel_search(self) -> None:
        if self._search_task is not None and not self._search_task.done():
            self._search_task.cancel()
        self._search_task = None

    def start_search(self, text: str) -> asyncio.Task[int] | None:
        """Replace any running search with a search for `text`.

        Args:
            text: Raw query text; blank text returns to the browse tree

        Returns:
            The search task, or None when the browse tree is shown instead
        """
        self.cancel_search()

        if not text.strip():
            self.show_browse()
            return None

        if self.explorer_tree is not None:
            self.explorer_tree.mirror(self.session.aggregator.children)
        self._search_task = asyncio.create_task(self._run_search(text))
        return self._search_task

    async def _run_search(self, text: str) -> int:
        try:
            count = await self.session.run(text, roots=self.accounts)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Search for {text!r} failed: {e}", exc_info=True)
            self.notify(f"Search failed: {e}", severity="error")
            return self.session.result_count

        limit = self.context.config.max_search_results
        if count >= limit:
            self.notify(f"Showing the first {limit} results for {text!r}")
        elif count == 0:
            self.notify(f"No resources match {text!r}")
        return count

    async def on_input_changed(self, event: Input.Changed) -> None:
        """Run a search as the query is typed.

        Args:
            event: Input changed event
        """
        if event.input.id == "search-input":
            self.start_search(event.value)

    async def action_toggle_search(self) -> None:
        """Show or hide the search box (triggered by '/')."""
        if self.search_input is None:
            return

        container = self.query_one("#search-container")
        if self.search_active:
            await self.action_clear_search()
        else:
            container.add_class("visible")
            self.search_active = True
            self.search_input.focus()
            logger.debug("Search shown")

    async def action_clear_search(self) -> None:
        """Clear the search and return to the browse tree (Esc)."""
        if self.search_input is None or not self.search_active:
            return

        self.search_input.value = ""
        self.start_search("")
        self.query_one("#search-container").remove_class("visible")
        self.search_active = False
        if self.explorer_tree is not None:
            self.explorer_tree.focus()
        logger.debug("Search cleared")

    # Node commands

    async def action_open_portal(self) -> None:
        """Open the selected node in the Azure portal."""
        if self.explorer_tree is None:
            return

        url = portal_url(self.explorer_tree.selected_node)
        if url is None:
            self.notify("No portal page for this item", severity="warning")
            return
        logger.info(f"Opening {url}")
        self.app.open_url(url)

    async def action_toggle_hidden(self) -> None:
        """Hide or unhide the selected subscription."""
        if self.explorer_tree is None:
            return

        message = toggle_subscription_hidden(self.explorer_tree.selected_node)
        if message is not None:
            self.notify(message)
