"""Explorer context: the collaborators every node needs."""

from dataclasses import dataclass, field

from stratus.config import Config, get_config
from stratus.services.provider import ResourceProvider, SearchProvider
from stratus.tree.events import ResourceEvents
from stratus.tree.factory import NodeFactory


@dataclass
class ExplorerContext:
    """Providers, node factory, configuration and event hub of one explorer.

    Passed to node constructors instead of module-level singletons, so that
    several explorers (and tests) can run side by side.
    """

    resource_provider: ResourceProvider
    search_provider: SearchProvider | None = None
    config: Config = field(default_factory=get_config)
    factory: NodeFactory = field(default_factory=NodeFactory)
    events: ResourceEvents = field(default_factory=ResourceEvents)
