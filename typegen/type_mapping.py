# typegen/type_mapping.py
from __future__ import annotations
import collections.abc as cabc
import sys
from typing import Dict, FrozenSet, Optional

UNRESOLVED = "<unresolved>"
STRING_LIKE = "builtins.str"
FALLBACK = "any"
INDEX_SIGNATURE_FALLBACK = "{ [key: string]: any }"

# qualified source name -> TypeScript text
PRIMITIVE_TYPES: Dict[str, str] = {
    "builtins.str": "string",
    "builtins.bool": "boolean",
    # numerics
    "builtins.int": "number",
    "builtins.float": "number",
    "builtins.complex": "number",
    "decimal.Decimal": "number",
    # temporal
    "datetime.datetime": "Date",
    "datetime.date": "Date",
    "datetime.time": "string",
    "datetime.timedelta": "string",
    # identifiers / binary (base64 on the wire)
    "uuid.UUID": "string",
    "builtins.bytes": "string",
    "builtins.bytearray": "string",
    # untyped
    "builtins.object": "any",
    "typing.Any": "any",
}

# Value-like kinds: a non-nullable property of one of these is required.
VALUE_KINDS: FrozenSet[str] = frozenset({
    "builtins.bool",
    "builtins.int",
    "builtins.float",
    "builtins.complex",
    "decimal.Decimal",
    "datetime.datetime",
    "datetime.date",
    "datetime.time",
    "datetime.timedelta",
    "uuid.UUID",
})

# Generic origins recognized as array-of(T)
COLLECTION_ORIGINS: FrozenSet[object] = frozenset({
    list,
    set,
    frozenset,
    cabc.Sequence,
    cabc.MutableSequence,
    cabc.Set,
    cabc.MutableSet,
    cabc.Collection,
    cabc.Iterable,
})

# Generic origins recognized as dictionary-of(K, V)
DICTIONARY_ORIGINS: FrozenSet[object] = frozenset({
    dict,
    cabc.Mapping,
    cabc.MutableMapping,
})


def qualified_name_of(cls: type) -> str:
    module = getattr(cls, "__module__", None) or "builtins"
    qualname = getattr(cls, "__qualname__", None) or getattr(cls, "__name__", repr(cls))
    return f"{module}.{qualname}"


def map_primitive(qualified_name: str) -> str:
    """
    Map a qualified source-type name -> TypeScript primitive text.
    Anything not in the table (including unresolved shapes) maps to `any`.
    """
    return PRIMITIVE_TYPES.get(qualified_name, FALLBACK)


def is_value_kind(qualified_name: str) -> bool:
    return qualified_name in VALUE_KINDS


def is_system_module(module_name: str | None) -> bool:
    """True for builtins and the standard library (never inlined as declarations)."""
    if not module_name:
        return True
    root = module_name.split(".", 1)[0]
    return root in sys.stdlib_module_names or root == "builtins"


def primitive_base_of(cls: type) -> Optional[str]:
    """
    Qualified name of the nearest mapped primitive in the class's MRO, e.g.
    `class Email(str)` -> "builtins.str". `object` does not count.
    """
    for klass in getattr(cls, "__mro__", ()):
        if klass is object:
            continue
        qualified = qualified_name_of(klass)
        if qualified in PRIMITIVE_TYPES:
            return qualified
    return None
