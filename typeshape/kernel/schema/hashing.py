"""Structural content hashing of schema fragments."""

import hashlib
import json

from typeshape.kernel.schema.fragments import SchemaFragment


def structural_hash(fragment: SchemaFragment, algorithm: str = "sha256") -> str:
    """Hash the rendered content of *fragment*.

    Two fragments hash equal exactly when their OpenAPI renderings are equal,
    key order aside. Enum values that are not JSON-native are hashed by their
    ``str()`` form.

    Examples
    --------
    >>> from typeshape.kernel.schema.fragments import PrimitiveSchema
    >>> structural_hash(PrimitiveSchema(type="string")) == structural_hash(
    ...     PrimitiveSchema(type="string")
    ... )
    True
    """
    canonical = json.dumps(
        fragment.to_dict(), sort_keys=True, separators=(",", ":"), default=str
    )
    return hashlib.new(algorithm, canonical.encode("utf-8")).hexdigest()
