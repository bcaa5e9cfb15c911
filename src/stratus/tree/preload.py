"""Concurrent background loading of category nodes.

Once a subscription or resource group has created its category nodes and
finished its own load, the categories are loaded in parallel so that their
counts and visibility settle without the user expanding each one.
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from stratus.tree.node import LoadingPlaceholder, Node
from stratus.utils.logging import get_logger

logger = get_logger(__name__)


class PreloadStatus(str, Enum):
    """Outcome of one pre-loaded node."""

    LOADED = "loaded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class PreloadOutcome:
    """Result of pre-loading one node."""

    node: Node
    status: PreloadStatus
    error: BaseException | None = None


@dataclass
class PreloadReport:
    """Per-node outcomes of one fan-out."""

    outcomes: list[PreloadOutcome] = field(default_factory=list)

    def _count(self, status: PreloadStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status is status)

    @property
    def loaded(self) -> int:
        return self._count(PreloadStatus.LOADED)

    @property
    def failed(self) -> int:
        return self._count(PreloadStatus.FAILED)

    @property
    def cancelled(self) -> int:
        return self._count(PreloadStatus.CANCELLED)


async def preload(nodes: Sequence[Node], owner: str = "") -> PreloadReport:
    """Load several nodes concurrently and collect their outcomes.

    Each load runs independently: one failing never cancels the others.
    Cancelling the whole batch cancels every pending load and returns the
    report instead of raising.

    Args:
        nodes: Nodes to load (already attached to their parent)
        owner: Label of the parent, for logging

    Returns:
        Report with one outcome per node
    """
    if not nodes:
        return PreloadReport()

    logger.info(f"Pre-loading {len(nodes)} categories of {owner}")
    report = PreloadReport()
    try:
        results = await asyncio.gather(
            *(node.load_children() for node in nodes),
            return_exceptions=True,
        )
    except asyncio.CancelledError:
        logger.debug(f"Pre-load of {owner} cancelled")
        for node in nodes:
            status = PreloadStatus.LOADED if node.is_loaded else PreloadStatus.CANCELLED
            report.outcomes.append(PreloadOutcome(node, status))
        return report

    for node, result in zip(nodes, results):
        if isinstance(result, asyncio.CancelledError):
            report.outcomes.append(PreloadOutcome(node, PreloadStatus.CANCELLED, result))
        elif isinstance(result, BaseException):
            logger.error(f"Pre-load of {node.label} failed: {result}")
            report.outcomes.append(PreloadOutcome(node, PreloadStatus.FAILED, result))
        elif node.has_error:
            report.outcomes.append(PreloadOutcome(node, PreloadStatus.FAILED))
        else:
            report.outcomes.append(PreloadOutcome(node, PreloadStatus.LOADED))

    logger.info(
        f"Pre-load of {owner} finished: {report.loaded} loaded, "
        f"{report.failed} failed, {report.cancelled} cancelled"
    )
    return report


async def load_non_empty(parent: Node, nodes: Sequence[Node]) -> None:
    """Load category nodes and insert each one once it has content.

    Used when empty categories are hidden: the parent stays loading while its
    categories load concurrently, gains each category (sorted) as soon as the
    category's first child appears, and ends its load when all are done.
    A cancelled batch returns the parent to NotLoaded and re-raises.

    Args:
        parent: Node that is loading (begin_load already succeeded)
        nodes: Category nodes to load and conditionally insert
    """
    inserted: set[int] = set()
    listeners = []

    def watch(node: Node):
        def on_change(change) -> None:
            if id(node) in inserted:
                return
            if any(not isinstance(child, LoadingPlaceholder) for child in node.children):
                inserted.add(id(node))
                parent.insert_child_sorted(node)

        return on_change

    for node in nodes:
        listener = watch(node)
        listeners.append((node, listener))
        node.children.subscribe(listener)

    try:
        results = await asyncio.gather(
            *(node.load_children() for node in nodes),
            return_exceptions=True,
        )
        for node, result in zip(nodes, results):
            if isinstance(result, BaseException):
                logger.error(f"Loading {node.label} failed: {result}")
    except asyncio.CancelledError:
        logger.debug(f"Loading categories of {parent.label} cancelled")
        parent.abort_load()
        raise
    finally:
        for node, listener in listeners:
            node.children.unsubscribe(listener)

    parent.end_load()


class PreloadOrchestrator:
    """Owns the background pre-load task of one parent node."""

    def __init__(self, owner: str) -> None:
        """Initialize the orchestrator.

        Args:
            owner: Label of the parent node, for logging
        """
        self.owner = owner
        self.last_report: PreloadReport | None = None
        self._task: asyncio.Task[PreloadReport] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, nodes: Sequence[Node]) -> "asyncio.Task[PreloadReport]":
        """Start pre-loading in the background, cancelling a previous run.

        Args:
            nodes: Nodes to load

        Returns:
            The background task
        """
        self.cancel()
        self._task = asyncio.create_task(self._run(list(nodes)))
        return self._task

    async def _run(self, nodes: list[Node]) -> PreloadReport:
        self.last_report = await preload(nodes, self.owner)
        return self.last_report

    def cancel(self) -> None:
        """Cancel the running pre-load, if any."""
        if self.running:
            self._task.cancel()

    async def wait(self) -> PreloadReport | None:
        """Wait for the current pre-load to finish.

        Returns:
            Its report, or None when no pre-load was started
        """
        if self._task is None:
            return None
        await asyncio.wait({self._task})
        if self._task.cancelled():
            return self.last_report
        return self._task.result()
