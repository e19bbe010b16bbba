"""Type-information provider adapters.

- DescriptorGraph: explicit in-memory type graphs
- PythonTypeProvider: Python annotations (dataclasses, pydantic models, TypedDicts...)
"""

from typeshape.stdlib.adapters.descriptor_graph import DescriptorGraph, TypeNode
from typeshape.stdlib.adapters.python_types import PythonTypeProvider

__all__ = ["DescriptorGraph", "PythonTypeProvider", "TypeNode"]
