"""In-memory type descriptor graph.

A provider whose handles are plain ``TypeNode`` objects, compared by object
identity. Nodes are created first and wired afterwards, so recursive and
mutually recursive graphs are built the same way as acyclic ones::

    graph = DescriptorGraph()
    parent = graph.nominal("Parent")
    child = graph.nominal("Child")
    parent.add_property("children", graph.array(child))
    child.add_property("parent", parent, optional=True)

Useful for hosts that already hold a type model of their own (an IDL, a
database catalogue...) and for exercising the engine without a host type
system.
"""

from collections.abc import Hashable, Sequence
from dataclasses import dataclass, field
from typing import Any

from typeshape.kernel.ports.type_provider import (
    Accessibility,
    PropertyInfo,
    TypeInfoProvider,
    TypeKind,
)


@dataclass(eq=False, repr=False)
class TypeNode:
    """One node of a descriptor graph."""

    kind: TypeKind
    name: str | None = None
    text: str | None = None
    arguments: list["TypeNode"] = field(default_factory=list)
    constituents: list["TypeNode"] = field(default_factory=list)
    properties: list[PropertyInfo["TypeNode"]] = field(default_factory=list)
    index_type: "TypeNode | None" = None
    value: Any = None
    documentation: str | None = None
    function_shaped: bool = False

    def add_property(
        self,
        name: str,
        type_: "TypeNode | None" = None,
        *,
        optional: bool = False,
        accessibility: Accessibility = Accessibility.PUBLIC,
        method: bool = False,
        documentation: str | None = None,
    ) -> None:
        """Append a member; ``method=True`` declares it method-shaped."""
        self.properties.append(
            PropertyInfo(
                name=name,
                declared_type=type_,
                optional=optional,
                accessibility=accessibility,
                is_callable=method,
                documentation=documentation,
            )
        )

    def __repr__(self) -> str:
        return f"TypeNode({self.kind.value}, {self.name or self.text!r})"


class DescriptorGraph(TypeInfoProvider[TypeNode]):
    """Factory and provider for ``TypeNode`` graphs.

    Examples
    --------
    >>> graph = DescriptorGraph()
    >>> status = graph.union(graph.enum_literal("Ok"), graph.enum_literal("Error"))
    >>> graph.kind(status)
    <TypeKind.UNION: 'union'>
    >>> graph.render(status)
    '"Ok" | "Error"'
    """

    # -- factories ------------------------------------------------------

    def primitive(self, text: str, documentation: str | None = None) -> TypeNode:
        return TypeNode(TypeKind.PRIMITIVE, text=text, documentation=documentation)

    def boolean(self) -> TypeNode:
        return TypeNode(TypeKind.BOOLEAN, text="boolean")

    def array(self, element: TypeNode) -> TypeNode:
        return TypeNode(TypeKind.ARRAY, arguments=[element])

    def union(self, *members: TypeNode, documentation: str | None = None) -> TypeNode:
        return TypeNode(TypeKind.UNION, constituents=list(members), documentation=documentation)

    def intersection(self, *members: TypeNode) -> TypeNode:
        return TypeNode(TypeKind.INTERSECTION, constituents=list(members))

    def enum_literal(self, value: Any) -> TypeNode:
        return TypeNode(TypeKind.ENUM_LITERAL, value=value)

    def nominal(
        self,
        name: str,
        documentation: str | None = None,
        index_type: TypeNode | None = None,
    ) -> TypeNode:
        return TypeNode(
            TypeKind.NOMINAL, name=name, documentation=documentation, index_type=index_type
        )

    def anonymous(self, index_type: TypeNode | None = None) -> TypeNode:
        return TypeNode(TypeKind.ANONYMOUS, index_type=index_type)

    def lazy(self, payload: TypeNode | None = None, name: str = "Promise") -> TypeNode:
        return TypeNode(
            TypeKind.LAZY_WRAPPER, name=name, arguments=[payload] if payload is not None else []
        )

    def function(self, text: str = "Function") -> TypeNode:
        return TypeNode(TypeKind.OTHER, text=text, function_shaped=True)

    def other(self, text: str) -> TypeNode:
        return TypeNode(TypeKind.OTHER, text=text)

    # -- TypeInfoProvider -----------------------------------------------

    def identity(self, type_: TypeNode) -> Hashable:
        return type_

    def kind(self, type_: TypeNode) -> TypeKind:
        return type_.kind

    def declared_name(self, type_: TypeNode) -> str | None:
        return type_.name if type_.kind is TypeKind.NOMINAL else None

    def type_arguments(self, type_: TypeNode) -> Sequence[TypeNode]:
        return type_.arguments

    def constituents(self, type_: TypeNode) -> Sequence[TypeNode]:
        return type_.constituents

    def literal_value(self, type_: TypeNode) -> Any:
        return type_.value

    def properties(self, type_: TypeNode) -> Sequence[PropertyInfo[TypeNode]]:
        return type_.properties

    def index_value_type(self, type_: TypeNode) -> TypeNode | None:
        return type_.index_type

    def is_callable_type(self, type_: TypeNode) -> bool:
        return type_.function_shaped

    def documentation(self, type_: TypeNode) -> str | None:
        return type_.documentation

    def render(self, type_: TypeNode) -> str:
        match type_.kind:
            case TypeKind.ENUM_LITERAL:
                return f'"{type_.value}"' if isinstance(type_.value, str) else str(type_.value)
            case TypeKind.UNION:
                return " | ".join(self.render(m) for m in type_.constituents)
            case TypeKind.INTERSECTION:
                return " & ".join(self.render(m) for m in type_.constituents)
            case TypeKind.ARRAY if type_.arguments:
                return f"{self.render(type_.arguments[0])}[]"
            case _:
                return type_.text or type_.name or type_.kind.value
