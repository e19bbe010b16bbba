"""Port interfaces consumed by the schema engine."""

from typeshape.kernel.ports.type_provider import (
    Accessibility,
    PropertyInfo,
    TypeInfoProvider,
    TypeKind,
)

__all__ = ["Accessibility", "PropertyInfo", "TypeInfoProvider", "TypeKind"]
