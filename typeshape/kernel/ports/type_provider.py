"""Port interface for host type-information providers.

The schema engine never inspects types itself. Everything it needs - kind,
members, generic arguments, documentation - is asked of a provider through
this protocol. Handles are opaque to the engine; only the provider knows
what they are (``ts.Type`` objects, Python annotations, in-memory nodes...).

Absent information is reported as ``None`` or an empty sequence, never by
raising: a missing declaration, comment or index signature simply means
"use the default" to the engine.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Hashable, Sequence


class TypeKind(StrEnum):
    """Closed classification of type handles understood by the walker."""

    PRIMITIVE = "primitive"
    ARRAY = "array"
    BOOLEAN = "boolean"
    UNION = "union"
    INTERSECTION = "intersection"
    ENUM_LITERAL = "enum_literal"
    NOMINAL = "nominal"
    ANONYMOUS = "anonymous"
    LAZY_WRAPPER = "lazy_wrapper"
    OTHER = "other"


class Accessibility(StrEnum):
    """Declared visibility of a member."""

    PUBLIC = "public"
    PROTECTED = "protected"
    PRIVATE = "private"


@dataclass(frozen=True)
class PropertyInfo[T]:
    """One own member of a nominal or anonymous type.

    Attributes
    ----------
    name : str
        Member name as it appears in the data shape
    declared_type : T | None
        Handle of the member's value type, None when it cannot be resolved
    optional : bool
        Whether the member carries an optionality marker
    accessibility : Accessibility
        Declared visibility
    is_callable : bool
        Whether the member is method-shaped (declared as a method)
    documentation : str | None
        Documentation comment attached to the member
    """

    name: str
    declared_type: T | None = None
    optional: bool = False
    accessibility: Accessibility = Accessibility.PUBLIC
    is_callable: bool = False
    documentation: str | None = None

    @property
    def is_public(self) -> bool:
        return self.accessibility is Accessibility.PUBLIC


@runtime_checkable
class TypeInfoProvider[T](Protocol):
    """Read-only view over a host type system.

    Implementations answer synchronously from an in-memory type graph.
    """

    @abstractmethod
    def identity(self, type_: T) -> Hashable:
        """Return a stable identity token for *type_*."""
        ...

    @abstractmethod
    def kind(self, type_: T) -> TypeKind:
        """Classify *type_*."""
        ...

    @abstractmethod
    def declared_name(self, type_: T) -> str | None:
        """Return the declared name of a nominal type, None otherwise."""
        ...

    @abstractmethod
    def type_arguments(self, type_: T) -> Sequence[T]:
        """Return generic arguments (array element, lazy payload)."""
        ...

    @abstractmethod
    def constituents(self, type_: T) -> Sequence[T]:
        """Return the ordered members of a union or intersection."""
        ...

    @abstractmethod
    def literal_value(self, type_: T) -> Any:
        """Return the value carried by an enum-literal type."""
        ...

    @abstractmethod
    def properties(self, type_: T) -> Sequence[PropertyInfo[T]]:
        """Return own members in declared order."""
        ...

    @abstractmethod
    def index_value_type(self, type_: T) -> T | None:
        """Return the value type of a string- or number-keyed index signature."""
        ...

    @abstractmethod
    def is_callable_type(self, type_: T) -> bool:
        """Return True when *type_* is function-shaped."""
        ...

    @abstractmethod
    def documentation(self, type_: T) -> str | None:
        """Return the documentation comment attached to *type_*."""
        ...

    @abstractmethod
    def render(self, type_: T) -> str:
        """Return a best-effort textual rendering of *type_*."""
        ...
