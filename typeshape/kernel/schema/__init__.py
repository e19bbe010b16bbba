"""Schema derivation engine.

Turns a graph of provider type handles into OpenAPI schema fragments plus a
registry of named, deduplicated schemas.
"""

from typeshape.kernel.schema.builder import SchemaBuilder
from typeshape.kernel.schema.cache import CacheEntry, CacheEntryState, Deduplicator, ReferenceCache
from typeshape.kernel.schema.fragments import (
    AllOfSchema,
    ArraySchema,
    EnumSchema,
    ObjectSchema,
    OneOfSchema,
    PrimitiveSchema,
    PropertySchema,
    ReferenceSchema,
    SchemaFragment,
)
from typeshape.kernel.schema.hashing import structural_hash
from typeshape.kernel.schema.naming import NameAllocator
from typeshape.kernel.schema.registry import SchemaRegistry
from typeshape.kernel.schema.walker import (
    DerivationContext,
    DerivationMode,
    SchemaDocument,
    TypeWalker,
    derive_schema,
)

__all__ = [
    "AllOfSchema",
    "ArraySchema",
    "CacheEntry",
    "CacheEntryState",
    "Deduplicator",
    "DerivationContext",
    "DerivationMode",
    "EnumSchema",
    "NameAllocator",
    "ObjectSchema",
    "OneOfSchema",
    "PrimitiveSchema",
    "PropertySchema",
    "ReferenceCache",
    "ReferenceSchema",
    "SchemaBuilder",
    "SchemaDocument",
    "SchemaFragment",
    "SchemaRegistry",
    "TypeWalker",
    "derive_schema",
    "structural_hash",
]
