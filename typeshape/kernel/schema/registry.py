"""SchemaRegistry - the output namespace of finalized named schemas."""

from collections.abc import Iterator
from typing import Any

from typeshape.kernel.exceptions import SchemaRegistryError
from typeshape.kernel.schema.fragments import SchemaFragment


class SchemaRegistry:
    """Insertion-ordered ``name -> fragment`` mapping.

    Names are unique; a fragment is registered once, when its nominal type
    finishes expanding, and is never replaced.

    Examples
    --------
    >>> from typeshape.kernel.schema.fragments import PrimitiveSchema
    >>> registry = SchemaRegistry()
    >>> registry.register("Id", PrimitiveSchema(type="string"))
    >>> "Id" in registry, len(registry)
    (True, 1)
    """

    __slots__ = ("_schemas",)

    def __init__(self) -> None:
        self._schemas: dict[str, SchemaFragment] = {}

    def register(self, name: str, fragment: SchemaFragment) -> None:
        """Add *fragment* under *name*.

        Raises
        ------
        SchemaRegistryError
            If *name* is already registered
        """
        if name in self._schemas:
            raise SchemaRegistryError(f"Schema '{name}' is already registered")
        self._schemas[name] = fragment

    def get(self, name: str) -> SchemaFragment | None:
        return self._schemas.get(name)

    def __getitem__(self, name: str) -> SchemaFragment:
        return self._schemas[name]

    def __contains__(self, name: object) -> bool:
        return name in self._schemas

    def __iter__(self) -> Iterator[str]:
        return iter(self._schemas)

    def __len__(self) -> int:
        return len(self._schemas)

    def names(self) -> list[str]:
        return list(self._schemas)

    def items(self) -> Iterator[tuple[str, SchemaFragment]]:
        yield from self._schemas.items()

    def to_dict(self) -> dict[str, dict[str, Any]]:
        """Render every schema, in registration order."""
        return {name: fragment.to_dict() for name, fragment in self._schemas.items()}

    def to_components(self) -> dict[str, Any]:
        """Render as an OpenAPI ``components`` object."""
        return {"schemas": self.to_dict()}
