"""TypeWalker - recursive type-to-schema derivation.

The walker dispatches on the kind reported by a ``TypeInfoProvider`` and
bottoms out in fragments built by ``SchemaBuilder``. Named (nominal) types are
routed through the ``ReferenceCache``: they are registered once under a
collision-free name and referenced everywhere else, which is also what makes
the traversal terminate on recursive type graphs.

Examples
--------
>>> from typeshape.stdlib.adapters.descriptor_graph import DescriptorGraph
>>> graph = DescriptorGraph()
>>> node = graph.nominal("Node")
>>> node.add_property("value", graph.primitive("number"))
>>> node.add_property("next", node, optional=True)
>>> document = derive_schema(node, graph)
>>> document.root.to_dict()
{'$ref': '#/components/schemas/Node'}
>>> document.registry["Node"].to_dict()["required"]
['value']
"""

from collections.abc import Hashable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any

from typeshape.kernel.config.loader import load_config
from typeshape.kernel.config.models import DerivationConfig
from typeshape.kernel.exceptions import CyclicAnonymousTypeError
from typeshape.kernel.logging import configure_from, get_logger
from typeshape.kernel.ports.type_provider import TypeInfoProvider, TypeKind
from typeshape.kernel.schema.builder import SchemaBuilder
from typeshape.kernel.schema.cache import Deduplicator, ReferenceCache
from typeshape.kernel.schema.fragments import (
    ObjectSchema,
    PropertySchema,
    ReferenceSchema,
    SchemaFragment,
)
from typeshape.kernel.schema.hashing import structural_hash
from typeshape.kernel.schema.naming import NameAllocator
from typeshape.kernel.schema.registry import SchemaRegistry

logger = get_logger(__name__)


class DerivationMode(StrEnum):
    """How a nominal type is rendered at the current position."""

    REFERENCE = "reference"  # $ref through the cache
    INLINE = "inline"  # full expansion, used once per newly registered type


@dataclass(slots=True)
class DerivationContext:
    """Mutable state of one root traversal.

    A context must not be shared between traversals; every public entry point
    of ``TypeWalker`` builds a fresh one.
    """

    registry: SchemaRegistry = field(default_factory=SchemaRegistry)
    cache: ReferenceCache = field(default_factory=ReferenceCache)
    # anonymous types under expansion since the innermost nominal boundary
    expanding_anonymous: set[Hashable] = field(default_factory=set)

    def taken_names(self) -> set[str]:
        return set(self.registry) | self.cache.reserved_names()

    @contextmanager
    def nominal_frame(self) -> Iterator[None]:
        """Open a fresh anonymous-expansion frame for a nominal expansion."""
        outer = self.expanding_anonymous
        self.expanding_anonymous = set()
        try:
            yield
        finally:
            self.expanding_anonymous = outer


@dataclass(frozen=True, slots=True)
class SchemaDocument:
    """Result of a root traversal: the root fragment plus named schemas."""

    root: SchemaFragment
    registry: SchemaRegistry

    def to_dict(self) -> dict[str, Any]:
        return {"schema": self.root.to_dict(), "components": self.registry.to_components()}

    def dangling_references(self) -> list[str]:
        """Return referenced names missing from the registry (empty when sound)."""
        referenced = set(self.root.references())
        for _, fragment in self.registry.items():
            referenced.update(fragment.references())
        return sorted(name for name in referenced if name not in self.registry)


class TypeWalker[T]:
    """Derives schema fragments from provider type handles.

    Parameters
    ----------
    provider : TypeInfoProvider[T]
        Source of kinds, members and documentation for handles of type ``T``
    config : DerivationConfig | None
        Derivation options; defaults apply when omitted. Configuration files
        are not consulted here, use ``from_config`` for that.
    """

    def __init__(
        self, provider: TypeInfoProvider[T], config: DerivationConfig | None = None
    ) -> None:
        self.provider = provider
        self.config = config or DerivationConfig()
        self.builder = SchemaBuilder(ref_prefix=self.config.ref_prefix)

    @classmethod
    def from_config(
        cls, provider: TypeInfoProvider[T], path: str | Path | None = None
    ) -> "TypeWalker[T]":
        """Build a walker from the discovered (or given) configuration file.

        The ``logging`` section is applied globally and the ``derivation``
        section, environment overrides included, configures the walker.
        """
        config = load_config(path)
        configure_from(config.logging)
        return cls(provider, config.derivation)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def derive_document(self, root: T) -> SchemaDocument:
        """Walk *root* in reference mode with a fresh context."""
        ctx = DerivationContext()
        fragment = self.derive(root, ctx)
        logger.debug(
            "Derived schema for {root} with {count} named schemas",
            root=self.provider.render(root),
            count=len(ctx.registry),
        )
        return SchemaDocument(root=fragment, registry=ctx.registry)

    def derive_components(self, roots: Iterable[T]) -> tuple[list[SchemaFragment], SchemaRegistry]:
        """Walk several roots in one shared context.

        Named types reachable from more than one root are registered once.
        """
        ctx = DerivationContext()
        fragments = [self.derive(root, ctx) for root in roots]
        return fragments, ctx.registry

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def derive(
        self, type_: T, ctx: DerivationContext, mode: DerivationMode = DerivationMode.REFERENCE
    ) -> SchemaFragment:
        """Derive the fragment for *type_*.

        In reference mode a nominal type yields a ``$ref``; inline mode
        expands it in place. Children are always derived in reference mode.
        """
        provider = self.provider
        kind = provider.kind(type_)

        # Lazy values are resolved at derivation time, never a shape of their own
        if kind is TypeKind.LAZY_WRAPPER:
            arguments = provider.type_arguments(type_)
            if not arguments:
                return self._describe(self.builder.unconstrained(), type_)
            return self.derive(arguments[0], ctx, mode)

        fragment: SchemaFragment
        match kind:
            case TypeKind.ARRAY:
                arguments = provider.type_arguments(type_)
                items = self.derive(arguments[0], ctx) if arguments else self.builder.unconstrained()
                fragment = self.builder.array(items)

            case TypeKind.BOOLEAN:
                # Some type systems model boolean as the union true | false
                fragment = self.builder.boolean()

            case TypeKind.UNION:
                members = provider.constituents(type_)
                if members and all(provider.kind(m) is TypeKind.ENUM_LITERAL for m in members):
                    fragment = self.builder.enum(provider.literal_value(m) for m in members)
                else:
                    fragment = self.builder.one_of(self.derive(m, ctx) for m in members)

            case TypeKind.INTERSECTION:
                fragment = self.builder.all_of(
                    self.derive(m, ctx) for m in provider.constituents(type_)
                )

            case TypeKind.NOMINAL:
                builtin = self.config.builtin_nominals.get(provider.declared_name(type_) or "")
                if builtin is not None:
                    fragment = self.builder.from_dict(builtin)
                elif mode is DerivationMode.INLINE:
                    fragment = self.expand_object(type_, ctx)
                else:
                    return self.resolve_named_type(type_, ctx)

            case TypeKind.ANONYMOUS:
                fragment = self._expand_anonymous(type_, ctx)

            case _:
                fragment = self.builder.primitive(provider.render(type_))

        return self._describe(fragment, type_)

    # ------------------------------------------------------------------
    # Named types
    # ------------------------------------------------------------------

    def resolve_named_type(self, type_: T, ctx: DerivationContext) -> ReferenceSchema:
        """Return a ``$ref`` for a nominal type, registering it on first sight.

        The cache entry is inserted before the type is expanded so that any
        recursive path back to it resolves to the same reference. After the
        expansion, a previously finalized type with the same declared name and
        identical content absorbs this one.
        """
        provider = self.provider
        identity = provider.identity(type_)

        entry = ctx.cache.lookup(identity)
        if entry is not None:
            logger.debug("Reusing schema reference {name}", name=entry.assigned_name)
            return self.builder.reference(entry.assigned_name)

        declared_name = provider.declared_name(type_) or provider.render(type_)
        name = NameAllocator.allocate(declared_name, ctx.taken_names())
        entry = ctx.cache.insert(identity, declared_name=declared_name, assigned_name=name)

        with ctx.nominal_frame():
            fragment = self.derive(type_, ctx, DerivationMode.INLINE)

        digest = structural_hash(fragment, self.config.hash_algorithm)
        equivalent = Deduplicator.find_equivalent(ctx.cache, entry, digest)
        if equivalent is not None:
            ctx.cache.supersede(entry)
            logger.debug(
                "Coalesced {name} into structurally identical {existing}",
                name=name,
                existing=equivalent.assigned_name,
            )
            return self.builder.reference(equivalent.assigned_name)

        entry.finalize(digest)
        ctx.registry.register(name, fragment)
        logger.debug("Registered schema {name}", name=name)
        return self.builder.reference(name)

    # ------------------------------------------------------------------
    # Member expansion
    # ------------------------------------------------------------------

    def expand_object(self, type_: T, ctx: DerivationContext) -> ObjectSchema:
        """Expand the publicly observable data members of *type_*."""
        provider = self.provider

        additional: SchemaFragment | None = None
        index_type = provider.index_value_type(type_)
        if index_type is not None:
            additional = self.derive(index_type, ctx)

        properties: dict[str, PropertySchema] = {}
        for prop in provider.properties(type_):
            if not prop.is_public or prop.is_callable:
                continue

            if prop.declared_type is None:
                fragment: SchemaFragment = self.builder.unconstrained()
            elif provider.is_callable_type(prop.declared_type):
                continue
            else:
                fragment = self.derive(prop.declared_type, ctx)

            if self.config.include_descriptions:
                fragment = fragment.with_description(prop.documentation)
            properties[prop.name] = self.builder.property_schema(
                fragment, required=not prop.optional
            )

        return self.builder.object_schema(properties, additional)

    def _expand_anonymous(self, type_: T, ctx: DerivationContext) -> ObjectSchema:
        identity = self.provider.identity(type_)
        if identity in ctx.expanding_anonymous:
            raise CyclicAnonymousTypeError(self.provider.render(type_))

        ctx.expanding_anonymous.add(identity)
        try:
            return self.expand_object(type_, ctx)
        finally:
            ctx.expanding_anonymous.discard(identity)

    def _describe(self, fragment: SchemaFragment, type_: T) -> SchemaFragment:
        if not self.config.include_descriptions:
            return fragment
        return fragment.with_description(self.provider.documentation(type_))


def derive_schema[T](
    root: T, provider: TypeInfoProvider[T], config: DerivationConfig | None = None
) -> SchemaDocument:
    """Derive the schema document for *root* in a fresh traversal.

    Without *config* the default options apply; configuration files are only
    read by ``TypeWalker.from_config``.
    """
    return TypeWalker(provider, config).derive_document(root)
