"""Textual application hosting the explorer."""

from collections.abc import Iterable

from textual.app import App

from stratus.context import ExplorerContext
from stratus.screens.explorer import ExplorerScreen
from stratus.tree.nodes import AccountNode
from stratus.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


class StratusApp(App[None]):
    """Cloud resource explorer."""

    TITLE = "Stratus"

    BINDINGS = [
        ("q", "quit", "Quit"),
    ]

    def __init__(self, context: ExplorerContext, accounts: Iterable[tuple[str, str]]) -> None:
        """Initialize the application.

        Args:
            context: Explorer context wired to concrete providers
            accounts: (account_id, label) pairs of the signed-in accounts
        """
        super().__init__()
        self.context = context
        self.accounts = [
            AccountNode(account_id, label, context) for account_id, label in accounts
        ]

    def on_mount(self) -> None:
        """Show the explorer screen."""
        self.push_screen(ExplorerScreen(self.context, self.accounts))


def run(context: ExplorerContext, accounts: Iterable[tuple[str, str]]) -> None:
    """Configure logging from the context's config and run the explorer.

    Args:
        context: Explorer context wired to concrete providers
        accounts: (account_id, label) pairs of the signed-in accounts
    """
    config = context.config
    setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        enable_credential_scrubbing=config.enable_credential_scrubbing,
    )
    logger.info("Starting Stratus")
    StratusApp(context, accounts).run()
