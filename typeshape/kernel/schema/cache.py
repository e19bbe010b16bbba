"""Reference cache and structural deduplication of nominal types.

The cache maps a type's identity to the registry name allocated for it. It
serves two purposes:

* cycle breaking - an entry is inserted *before* its type is expanded, so any
  path that leads back to the type resolves to a ``$ref`` instead of
  re-entering expansion;
* deduplication - once expanded, the entry stores a structural hash that
  later entries with the same declared name are compared against.

Entry lifecycle::

    unseen -> PROVISIONAL -> FINALIZED   (hash stored, schema registered)
                          -> SUPERSEDED  (removed, rebound to an earlier entry)
"""

from collections.abc import Hashable, Iterator
from dataclasses import dataclass
from enum import StrEnum


class CacheEntryState(StrEnum):
    PROVISIONAL = "provisional"
    FINALIZED = "finalized"
    SUPERSEDED = "superseded"


@dataclass(slots=True)
class CacheEntry:
    """Cache bookkeeping for one nominal type.

    Attributes
    ----------
    type_identity : Hashable
        Provider identity token of the type
    declared_name : str
        Name the type was declared with, before disambiguation
    assigned_name : str
        Registry name allocated for the type
    structural_hash : str | None
        Content hash of the expanded schema, set on finalization
    state : CacheEntryState
        Position in the entry lifecycle
    referenced : bool
        Set when a lookup returned this entry while it was still provisional,
        i.e. a ``$ref`` to ``assigned_name`` exists inside its own expansion
    """

    type_identity: Hashable
    declared_name: str
    assigned_name: str
    structural_hash: str | None = None
    state: CacheEntryState = CacheEntryState.PROVISIONAL
    referenced: bool = False

    def finalize(self, structural_hash: str) -> None:
        self.structural_hash = structural_hash
        self.state = CacheEntryState.FINALIZED


class ReferenceCache:
    """Identity-keyed cache of nominal types, in traversal order.

    Examples
    --------
    >>> cache = ReferenceCache()
    >>> entry = cache.insert("id-1", declared_name="Pair", assigned_name="Pair")
    >>> cache.lookup("id-1") is entry
    True
    >>> cache.reserved_names()
    {'Pair'}
    """

    __slots__ = ("_entries",)

    def __init__(self) -> None:
        self._entries: dict[Hashable, CacheEntry] = {}

    def lookup(self, type_identity: Hashable) -> CacheEntry | None:
        """Return the entry for *type_identity*, marking provisional hits."""
        entry = self._entries.get(type_identity)
        if entry is not None and entry.state is CacheEntryState.PROVISIONAL:
            entry.referenced = True
        return entry

    def insert(self, type_identity: Hashable, declared_name: str, assigned_name: str) -> CacheEntry:
        """Create a provisional entry; at most one entry exists per identity."""
        if type_identity in self._entries:
            raise KeyError(f"Type identity {type_identity!r} is already cached")
        entry = CacheEntry(
            type_identity=type_identity,
            declared_name=declared_name,
            assigned_name=assigned_name,
        )
        self._entries[type_identity] = entry
        return entry

    def supersede(self, entry: CacheEntry) -> None:
        """Drop *entry* from the cache after it was coalesced into another."""
        del self._entries[entry.type_identity]
        entry.state = CacheEntryState.SUPERSEDED

    def reserved_names(self) -> set[str]:
        """Names held by entries whose schema is not registered yet."""
        return {
            entry.assigned_name
            for entry in self._entries.values()
            if entry.state is CacheEntryState.PROVISIONAL
        }

    def finalized(self) -> Iterator[CacheEntry]:
        """Yield finalized entries in the order they were first encountered."""
        for entry in self._entries.values():
            if entry.state is CacheEntryState.FINALIZED:
                yield entry

    def __contains__(self, type_identity: object) -> bool:
        return type_identity in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[CacheEntry]:
        return iter(self._entries.values())


class Deduplicator:
    """Finds an earlier finalized entry that a fresh expansion can coalesce to."""

    @staticmethod
    def find_equivalent(
        cache: ReferenceCache, candidate: CacheEntry, structural_hash: str
    ) -> CacheEntry | None:
        """Return the first finalized entry matching *candidate*'s name and hash.

        Identity is ignored: two distinct types declared under the
        same name that expand to identical content share one schema. Only
        entries already finalized are considered, so the search looks backward
        in traversal order.

        A candidate that was referenced during its own expansion is never
        coalesced: its name already appears in emitted ``$ref``s and must stay
        registered.
        """
        if candidate.referenced:
            return None
        for entry in cache.finalized():
            if (
                entry is not candidate
                and entry.declared_name == candidate.declared_name
                and entry.structural_hash == structural_hash
            ):
                return entry
        return None
