"""typeshape - OpenAPI schema derivation from type descriptor graphs.

Walks the types described by a host type-information provider and produces
OpenAPI 3 schema objects, registering each named type once under a
collision-free name and coalescing structurally identical duplicates.
"""

try:
    from importlib.metadata import version

    __version__ = version("typeshape")
except Exception:
    __version__ = "0.0.0.dev0"  # Fallback for development installs

from typeshape.kernel.config import DerivationConfig, TypeShapeConfig, load_config
from typeshape.kernel.exceptions import CyclicAnonymousTypeError, TypeShapeError
from typeshape.kernel.ports import Accessibility, PropertyInfo, TypeInfoProvider, TypeKind
from typeshape.kernel.schema import (
    SchemaDocument,
    SchemaFragment,
    SchemaRegistry,
    TypeWalker,
    derive_schema,
)
from typeshape.stdlib.adapters import DescriptorGraph, PythonTypeProvider, TypeNode

__all__ = [
    "Accessibility",
    "CyclicAnonymousTypeError",
    "DerivationConfig",
    "DescriptorGraph",
    "PropertyInfo",
    "PythonTypeProvider",
    "SchemaDocument",
    "SchemaFragment",
    "SchemaRegistry",
    "TypeInfoProvider",
    "TypeKind",
    "TypeNode",
    "TypeShapeConfig",
    "TypeShapeError",
    "TypeWalker",
    "derive_schema",
    "load_config",
]
