"""Type-information provider backed by Python type annotations.

Handles are the annotation objects themselves (``int``, ``list[Order]``,
``Literal["a", "b"]``, a dataclass...), plus enum members as the literals of
an ``Enum`` class. Classification:

+-------------------------------------------+----------------+
| Annotation                                | TypeKind       |
+===========================================+================+
| int, float, str, bytes, None, Any...      | PRIMITIVE      |
| bool                                      | BOOLEAN        |
| list/set/frozenset/tuple/Sequence[T]      | ARRAY          |
| X | Y, Optional[X], Literal[a, b], Enum   | UNION          |
| Literal[a], enum member                   | ENUM_LITERAL   |
| Awaitable[T], Coroutine[.., .., T]        | LAZY_WRAPPER   |
| dataclass, pydantic model, TypedDict,     | NOMINAL        |
| NamedTuple, annotated class, date, object |                |
| dict[K, V], Mapping[K, V]                 | ANONYMOUS      |
| anything else (Callable...)               | OTHER          |
+-------------------------------------------+----------------+

Examples
--------
>>> from dataclasses import dataclass
>>> from typeshape.kernel.schema.walker import derive_schema
>>> @dataclass
... class Point:
...     '''A point on the plane.'''
...     x: float
...     y: float = 0.0
>>> document = derive_schema(Point, PythonTypeProvider())
>>> document.registry["Point"].to_dict()
{'type': 'object', 'properties': {'x': {'type': 'number'}, 'y': {'type': 'number'}}, \
'required': ['x'], 'description': 'A point on the plane.'}
"""

import asyncio
import collections
import collections.abc
import contextlib
import dataclasses
import datetime
import decimal
import inspect
import sys
import types
import uuid
from collections.abc import Callable, Hashable, Sequence
from enum import Enum
from typing import (
    Annotated,
    Any,
    ClassVar,
    Literal,
    NewType,
    TypeAliasType,
    Union,
    get_args,
    get_origin,
    get_type_hints,
    is_typeddict,
)

from pydantic import BaseModel

from typeshape.kernel.logging import get_logger
from typeshape.kernel.ports.type_provider import (
    Accessibility,
    PropertyInfo,
    TypeInfoProvider,
    TypeKind,
)
from typeshape.stdlib.adapters.docstrings import extract_member_docs, own_docstring, summarize

logger = get_logger(__name__)

NoneType = type(None)

# Scalar annotations and their OpenAPI type names
PRIMITIVE_NAMES: dict[Any, str] = {
    int: "integer",
    float: "number",
    str: "string",
    bytes: "string",
    None: "null",
    NoneType: "null",
    Any: "any",
    decimal.Decimal: "number",
    uuid.UUID: "string",
}

# Literal value type -> OpenAPI type name
LITERAL_TYPE_NAMES: dict[type, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
}

# Classes rendered through the builtin-nominal table rather than expanded
NAMED_BUILTINS = frozenset({object, datetime.date, datetime.datetime})

ARRAY_ORIGINS = frozenset(
    {
        list,
        set,
        frozenset,
        tuple,
        collections.deque,
        collections.abc.Sequence,
        collections.abc.MutableSequence,
        collections.abc.Set,
        collections.abc.MutableSet,
        collections.abc.Collection,
        collections.abc.Iterable,
    }
)

MAPPING_ORIGINS = frozenset(
    {
        dict,
        collections.OrderedDict,
        collections.defaultdict,
        collections.abc.Mapping,
        collections.abc.MutableMapping,
    }
)

LAZY_ORIGINS = frozenset(
    {collections.abc.Awaitable, collections.abc.Coroutine, asyncio.Future, asyncio.Task}
)

UNION_ORIGINS = frozenset({Union, types.UnionType})

GENERIC_ENUM_DOC = "An enumeration."


class PythonTypeProvider(TypeInfoProvider[Any]):
    """Describe Python annotations to the schema engine.

    Unresolvable forward references degrade to members without a declared
    type, which the engine renders as unconstrained.
    """

    # -- classification -------------------------------------------------

    def kind(self, type_: Any) -> TypeKind:
        type_ = _unwrap(type_)

        if isinstance(type_, Enum):
            return TypeKind.ENUM_LITERAL
        if type_ is bool:
            return TypeKind.BOOLEAN
        hashable = _is_hashable(type_)
        if hashable and type_ in PRIMITIVE_NAMES:
            return TypeKind.PRIMITIVE

        origin = get_origin(type_)
        if origin is Literal:
            return TypeKind.ENUM_LITERAL if len(get_args(type_)) == 1 else TypeKind.UNION
        if origin in UNION_ORIGINS:
            return TypeKind.UNION
        if origin in LAZY_ORIGINS:
            return TypeKind.LAZY_WRAPPER
        if (hashable and type_ in ARRAY_ORIGINS) or origin in ARRAY_ORIGINS:
            return TypeKind.ARRAY
        if (hashable and type_ in MAPPING_ORIGINS) or origin in MAPPING_ORIGINS:
            return TypeKind.ANONYMOUS
        if self.is_callable_type(type_):
            return TypeKind.OTHER

        if isinstance(type_, type):
            if issubclass(type_, Enum):
                return TypeKind.UNION
            if type_ in NAMED_BUILTINS or _is_structured(type_):
                return TypeKind.NOMINAL

        return TypeKind.OTHER

    def identity(self, type_: Any) -> Hashable:
        type_ = _unwrap(type_)
        return type_ if _is_hashable(type_) else id(type_)

    def declared_name(self, type_: Any) -> str | None:
        type_ = _unwrap(type_)
        if isinstance(type_, type):
            return type_.__name__
        return None

    # -- structure ------------------------------------------------------

    def type_arguments(self, type_: Any) -> Sequence[Any]:
        type_ = _unwrap(type_)
        origin = get_origin(type_)
        args = get_args(type_)

        if origin is collections.abc.Coroutine:
            return args[-1:]
        if origin is tuple:
            if len(args) == 2 and args[1] is Ellipsis:
                return args[:1]
            if len(set(args)) > 1:
                return (Union[args],)  # noqa: UP007
        return args[:1]

    def constituents(self, type_: Any) -> Sequence[Any]:
        type_ = _unwrap(type_)
        if isinstance(type_, type) and issubclass(type_, Enum):
            return list(type_)
        if get_origin(type_) is Literal:
            return [Literal[value] for value in get_args(type_)]
        return get_args(type_)

    def literal_value(self, type_: Any) -> Any:
        type_ = _unwrap(type_)
        value = get_args(type_)[0] if get_origin(type_) is Literal else type_
        return value.value if isinstance(value, Enum) else value

    def index_value_type(self, type_: Any) -> Any | None:
        type_ = _unwrap(type_)
        if get_origin(type_) in MAPPING_ORIGINS or type_ in MAPPING_ORIGINS:
            args = get_args(type_)
            return args[1] if len(args) == 2 else None
        return None

    def properties(self, type_: Any) -> Sequence[PropertyInfo[Any]]:
        cls = _unwrap(type_)
        if not isinstance(cls, type) or cls in NAMED_BUILTINS:
            return []

        docs = _member_docs(cls)
        if dataclasses.is_dataclass(cls):
            members = self._dataclass_members(cls, docs)
        elif issubclass(cls, BaseModel):
            members = self._model_members(cls, docs)
        else:
            members = self._annotated_members(cls, docs)

        seen = {member.name for member in members}
        for name, value in vars(cls).items():
            if name in seen or (name.startswith("__") and name.endswith("__")):
                continue
            if inspect.isfunction(value) or isinstance(value, (staticmethod, classmethod)):
                members.append(
                    PropertyInfo(
                        name=name,
                        accessibility=_accessibility(name),
                        is_callable=True,
                    )
                )
        return members

    def is_callable_type(self, type_: Any) -> bool:
        type_ = _unwrap(type_)
        if type_ is Callable or type_ is collections.abc.Callable:
            return True
        return get_origin(type_) is collections.abc.Callable

    # -- text -----------------------------------------------------------

    def documentation(self, type_: Any) -> str | None:
        type_ = _unwrap(type_)
        if not isinstance(type_, type) or _is_stdlib(type_):
            return None
        summary = summarize(own_docstring(type_))
        if summary == GENERIC_ENUM_DOC:
            return None
        return summary

    def render(self, type_: Any) -> str:
        type_ = _unwrap(type_)
        if _is_hashable(type_) and type_ in PRIMITIVE_NAMES:
            return PRIMITIVE_NAMES[type_]
        if isinstance(type_, Enum) or get_origin(type_) is Literal:
            value = self.literal_value(type_)
            return LITERAL_TYPE_NAMES.get(type(value), "string")
        if isinstance(type_, type):
            return type_.__name__
        return repr(type_).replace("typing.", "")

    # -- member extraction ----------------------------------------------

    def _dataclass_members(self, cls: type, docs: dict[str, str]) -> list[PropertyInfo[Any]]:
        hints = _type_hints(cls)
        members = []
        for f in dataclasses.fields(cls):
            optional = (
                f.default is not dataclasses.MISSING
                or f.default_factory is not dataclasses.MISSING
            )
            doc = f.metadata.get("description") or docs.get(f.name)
            members.append(
                PropertyInfo(
                    name=f.name,
                    declared_type=_strip_optional(hints.get(f.name)),
                    optional=optional,
                    accessibility=_accessibility(f.name),
                    documentation=doc,
                )
            )
        return members

    def _model_members(
        self, cls: type[BaseModel], docs: dict[str, str]
    ) -> list[PropertyInfo[Any]]:
        members = []
        for name, info in cls.model_fields.items():
            members.append(
                PropertyInfo(
                    name=info.alias or name,
                    declared_type=_strip_optional(info.annotation),
                    optional=not info.is_required(),
                    accessibility=_accessibility(name),
                    documentation=info.description or docs.get(name),
                )
            )
        return members

    def _annotated_members(self, cls: type, docs: dict[str, str]) -> list[PropertyInfo[Any]]:
        hints = _type_hints(cls)
        if is_typeddict(cls):
            optional_keys = getattr(cls, "__optional_keys__", frozenset())
        elif issubclass(cls, tuple) and hasattr(cls, "_fields"):
            optional_keys = frozenset(getattr(cls, "_field_defaults", {}))
        else:
            optional_keys = frozenset(name for name in hints if hasattr(cls, name))

        members = []
        for name, hint in hints.items():
            if get_origin(hint) is ClassVar or hint is ClassVar:
                continue
            members.append(
                PropertyInfo(
                    name=name,
                    declared_type=_strip_optional(hint),
                    optional=name in optional_keys,
                    accessibility=_accessibility(name),
                    documentation=docs.get(name),
                )
            )
        return members


def _unwrap(type_: Any) -> Any:
    """Strip Annotated metadata, NewType and ``type`` aliases."""
    while True:
        if get_origin(type_) is Annotated:
            type_ = get_args(type_)[0]
        elif isinstance(type_, NewType):
            type_ = type_.__supertype__
        elif isinstance(type_, TypeAliasType):
            type_ = type_.__value__
        else:
            return type_


def _strip_optional(hint: Any) -> Any:
    """Drop ``None`` from a member annotation; optionality comes from defaults."""
    if hint is None:
        return None
    hint = _unwrap(hint)
    if get_origin(hint) in UNION_ORIGINS:
        non_none = tuple(arg for arg in get_args(hint) if arg is not NoneType)
        if len(non_none) == 1:
            return non_none[0]
        if len(non_none) < len(get_args(hint)):
            return Union[non_none]  # noqa: UP007
    return hint


def _type_hints(cls: type) -> dict[str, Any]:
    """Resolve annotations, falling back to raw ones when forward refs fail."""
    hints: dict[str, Any] = {}
    with contextlib.suppress(Exception):
        hints = get_type_hints(cls)
    if hints:
        return hints

    raw: dict[str, Any] = {}
    for base in reversed(cls.__mro__):
        raw.update(vars(base).get("__annotations__", {}))
    if raw:
        logger.debug("Could not resolve annotations of {cls}, using raw ones", cls=cls.__name__)
    # Unresolved string annotations carry no usable type
    return {name: None if isinstance(hint, str) else hint for name, hint in raw.items()}


def _member_docs(cls: type) -> dict[str, str]:
    docs: dict[str, str] = {}
    for base in reversed(cls.__mro__):
        if base is object or _is_stdlib(base):
            continue
        docs.update(extract_member_docs(own_docstring(base)))
    return docs


def _accessibility(name: str) -> Accessibility:
    if name.startswith("__") and not name.endswith("__"):
        return Accessibility.PRIVATE
    if name.startswith("_"):
        return Accessibility.PROTECTED
    return Accessibility.PUBLIC


def _is_structured(cls: type) -> bool:
    if dataclasses.is_dataclass(cls) or is_typeddict(cls):
        return True
    if issubclass(cls, BaseModel):
        return cls is not BaseModel
    if _is_stdlib(cls):
        return False
    return bool(_type_hints(cls))


def _is_stdlib(cls: type) -> bool:
    module = getattr(cls, "__module__", "") or ""
    top_level = module.split(".")[0]
    return top_level in sys.stdlib_module_names or top_level in ("builtins", "pydantic")


def _is_hashable(value: Any) -> bool:
    try:
        hash(value)
    except TypeError:
        return False
    return True
