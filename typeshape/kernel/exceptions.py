"""Core exception hierarchy for typeshape.

Schema derivation itself is total: unsupported or unresolvable type shapes
degrade to an unconstrained fragment instead of raising. The exceptions below
cover configuration problems and the few structural conditions that indicate
a broken type graph or an internal bookkeeping fault. All of them inherit from
TypeShapeError for easy exception handling.
"""

from __future__ import annotations

# ============================================================================
# Base Exception
# ============================================================================


class TypeShapeError(Exception):
    """Base exception for all typeshape errors.

    Catch this to handle every typeshape-specific error.
    """

    pass


# ============================================================================
# Configuration & Validation Errors
# ============================================================================


class ConfigurationError(TypeShapeError):
    """Raised when configuration is invalid or missing.

    Examples
    --------
    Example usage::

        raise ConfigurationError("typeshape.toml", "[tool.typeshape] must be a table")
    """

    def __init__(self, component: str, reason: str) -> None:
        """Initialize configuration error.

        Args
        ----
            component: Name of the component with invalid configuration
            reason: Explanation of what's wrong
        """
        super().__init__(f"Configuration error in '{component}': {reason}")
        self.component = component
        self.reason = reason


class ValidationError(TypeShapeError):
    """Raised when a configuration value fails validation.

    Examples
    --------
    Example usage::

        raise ValidationError("hash_algorithm", "unknown hashlib algorithm", value="crc7")
    """

    def __init__(self, field: str, constraint: str, value: object = None) -> None:
        """Initialize validation error.

        Args
        ----
            field: Name of the field that failed validation
            constraint: Description of the validation constraint
            value: The invalid value (optional)
        """
        if value is not None:
            msg = f"Validation failed for '{field}': {constraint} (got {value!r})"
        else:
            msg = f"Validation failed for '{field}': {constraint}"
        super().__init__(msg)
        self.field = field
        self.constraint = constraint
        self.value = value


# ============================================================================
# Derivation Errors
# ============================================================================


class SchemaRegistryError(TypeShapeError):
    """Raised when the schema registry bookkeeping is violated.

    Registering a name twice means two cache entries were handed the same
    name, which the name allocator must never allow.

    Examples
    --------
    Example usage::

        raise SchemaRegistryError("Schema 'Pair' is already registered")
    """

    pass


class CyclicAnonymousTypeError(TypeShapeError):
    """Raised when a type cycle passes only through anonymous types.

    Anonymous structural types are always inlined and never cached, so a
    cycle without a nominal type on it cannot be broken by a reference.
    """

    def __init__(self, rendering: str) -> None:
        """Initialize cyclic anonymous type error.

        Args
        ----
            rendering: Textual rendering of the anonymous type that re-entered
        """
        super().__init__(
            f"Anonymous type '{rendering}' is reachable from itself without passing "
            "through a named type; such a cycle cannot be expressed with references"
        )
        self.rendering = rendering
