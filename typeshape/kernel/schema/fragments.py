"""Schema fragments - the nodes of a derived OpenAPI schema tree.

Each fragment is an immutable pydantic model with a ``to_dict()`` rendering
in OpenAPI 3 "Schema Object" form. The variants form a closed set:

+------------------+-------------------------------------------------+
| Fragment         | Rendering                                       |
+==================+=================================================+
| PrimitiveSchema  | ``{"type": ..., "format": ...}``                |
| ArraySchema      | ``{"type": "array", "items": ...}``             |
| ObjectSchema     | ``{"type": "object", "properties": ..., ...}``  |
| EnumSchema       | ``{"type": "string", "enum": [...]}``           |
| OneOfSchema      | ``{"oneOf": [...]}``                            |
| AllOfSchema      | ``{"allOf": [...]}``                            |
| ReferenceSchema  | ``{"$ref": "#/components/schemas/<name>"}``     |
+------------------+-------------------------------------------------+

Every variant may carry a ``description``.
"""

from abc import abstractmethod
from collections.abc import Iterator
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field

from typeshape.kernel.config.models import DEFAULT_REF_PREFIX


class SchemaFragment(BaseModel):
    """Abstract base class of all fragments."""

    model_config = ConfigDict(frozen=True)

    description: str | None = None

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """Render the fragment as an OpenAPI schema object."""
        ...

    def with_description(self, description: str | None) -> Self:
        """Return a copy carrying *description*; empty text leaves it untouched."""
        if not description:
            return self
        return self.model_copy(update={"description": description})

    def references(self) -> Iterator[str]:
        """Yield every registry name referenced from this fragment, depth first."""
        yield from ()

    def _decorate(self, data: dict[str, Any]) -> dict[str, Any]:
        if self.description:
            data["description"] = self.description
        return data


class PrimitiveSchema(SchemaFragment):
    """A scalar (or unconstrained ``any``) type."""

    type: str
    format: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type}
        if self.format:
            data["format"] = self.format
        return self._decorate(data)


class ArraySchema(SchemaFragment):
    """A homogeneous array."""

    items: SchemaFragment

    def to_dict(self) -> dict[str, Any]:
        return self._decorate({"type": "array", "items": self.items.to_dict()})

    def references(self) -> Iterator[str]:
        yield from self.items.references()


class PropertySchema(BaseModel):
    """One entry of an object's ``properties`` map."""

    model_config = ConfigDict(frozen=True)

    fragment: SchemaFragment
    required: bool = True


class ObjectSchema(SchemaFragment):
    """A structured object.

    ``required`` is derived from the per-property flags and rendered only when
    at least one property is required, since OpenAPI rejects an empty list.
    """

    properties: dict[str, PropertySchema] = Field(default_factory=dict)
    additional_properties: SchemaFragment | None = None

    @property
    def required(self) -> list[str]:
        return [name for name, prop in self.properties.items() if prop.required]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": "object",
            "properties": {name: prop.fragment.to_dict() for name, prop in self.properties.items()},
        }
        if required := self.required:
            data["required"] = required
        if self.additional_properties is not None:
            data["additionalProperties"] = self.additional_properties.to_dict()
        return self._decorate(data)

    def references(self) -> Iterator[str]:
        if self.additional_properties is not None:
            yield from self.additional_properties.references()
        for prop in self.properties.values():
            yield from prop.fragment.references()


class EnumSchema(SchemaFragment):
    """A closed set of literal values, in declared order."""

    type: str = "string"
    values: tuple[Any, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return self._decorate({"type": self.type, "enum": list(self.values)})


class OneOfSchema(SchemaFragment):
    """Exactly one of several alternatives (a non-enum union)."""

    members: tuple[SchemaFragment, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return self._decorate({"oneOf": [member.to_dict() for member in self.members]})

    def references(self) -> Iterator[str]:
        for member in self.members:
            yield from member.references()


class AllOfSchema(SchemaFragment):
    """All of several shapes at once (an intersection)."""

    members: tuple[SchemaFragment, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return self._decorate({"allOf": [member.to_dict() for member in self.members]})

    def references(self) -> Iterator[str]:
        for member in self.members:
            yield from member.references()


class ReferenceSchema(SchemaFragment):
    """A ``$ref`` to a named schema in the registry."""

    name: str
    ref_prefix: str = DEFAULT_REF_PREFIX

    @property
    def ref(self) -> str:
        return f"{self.ref_prefix}{self.name}"

    def to_dict(self) -> dict[str, Any]:
        return self._decorate({"$ref": self.ref})

    def references(self) -> Iterator[str]:
        yield self.name
