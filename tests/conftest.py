"""Configuration file for pytest containing shared fixtures.

- graph: a fresh in-memory descriptor graph
- walker: a TypeWalker over that graph with default options
"""

import pytest

from typeshape.kernel.config.loader import clear_config_cache
from typeshape.kernel.schema.walker import TypeWalker
from typeshape.stdlib.adapters.descriptor_graph import DescriptorGraph


@pytest.fixture
def graph() -> DescriptorGraph:
    """Fixture providing an empty descriptor graph."""
    return DescriptorGraph()


@pytest.fixture
def walker(graph: DescriptorGraph) -> TypeWalker:
    """Fixture providing a walker bound to the graph fixture."""
    return TypeWalker(graph)


@pytest.fixture(autouse=True)
def _isolated_config():
    """Clear cached configuration between tests."""
    clear_config_cache()
    yield
    clear_config_cache()
