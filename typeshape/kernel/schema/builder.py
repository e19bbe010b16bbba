"""SchemaBuilder - assembles fragments from sub-fragments."""

from collections.abc import Iterable, Mapping
from typing import Any

from typeshape.kernel.config.models import DEFAULT_REF_PREFIX
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

ANY_TYPE = "any"


class SchemaBuilder:
    """Factory for every fragment variant.

    The builder owns the ``$ref`` prefix so that all references produced in a
    traversal agree on it.

    Examples
    --------
    >>> builder = SchemaBuilder()
    >>> builder.array(builder.primitive("string")).to_dict()
    {'type': 'array', 'items': {'type': 'string'}}
    >>> builder.reference("Node").to_dict()
    {'$ref': '#/components/schemas/Node'}
    """

    def __init__(self, ref_prefix: str = DEFAULT_REF_PREFIX) -> None:
        self.ref_prefix = ref_prefix

    def primitive(self, type_: str, format: str | None = None) -> PrimitiveSchema:
        return PrimitiveSchema(type=type_, format=format)

    def unconstrained(self) -> PrimitiveSchema:
        """Unconstrained fragment used wherever a shape cannot be resolved."""
        return PrimitiveSchema(type=ANY_TYPE)

    def boolean(self) -> PrimitiveSchema:
        return PrimitiveSchema(type="boolean")

    def array(self, items: SchemaFragment) -> ArraySchema:
        return ArraySchema(items=items)

    def enum(self, values: Iterable[Any]) -> EnumSchema:
        return EnumSchema(type="string", values=tuple(values))

    def one_of(self, members: Iterable[SchemaFragment]) -> OneOfSchema:
        return OneOfSchema(members=tuple(members))

    def all_of(self, members: Iterable[SchemaFragment]) -> AllOfSchema:
        return AllOfSchema(members=tuple(members))

    def reference(self, name: str) -> ReferenceSchema:
        return ReferenceSchema(name=name, ref_prefix=self.ref_prefix)

    def object_schema(
        self,
        properties: Mapping[str, PropertySchema] | None = None,
        additional_properties: SchemaFragment | None = None,
    ) -> ObjectSchema:
        return ObjectSchema(
            properties=dict(properties or {}),
            additional_properties=additional_properties,
        )

    def property_schema(self, fragment: SchemaFragment, required: bool) -> PropertySchema:
        return PropertySchema(fragment=fragment, required=required)

    def from_dict(self, data: Mapping[str, Any]) -> PrimitiveSchema:
        """Build a fixed fragment from a configured ``{"type", "format"}`` mapping."""
        return PrimitiveSchema(
            type=data["type"],
            format=data.get("format"),
            description=data.get("description"),
        )
