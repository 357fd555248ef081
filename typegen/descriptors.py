# typegen/descriptors.py
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import Any, Callable, Optional, Tuple, Union


class TypeKind(str, Enum):
    CLASS = "class"
    INTERFACE = "interface"
    ENUM = "enum"
    PRIMITIVE = "primitive"


class Origin(str, Enum):
    SCANNED = "scanned"
    EXTERNAL = "external"


class DeclarationKind(str, Enum):
    INTERFACE = "interface"
    ENUM = "enum"


@dataclass(frozen=True)
class EnumMember:
    name: str
    value: Any


def _no_properties() -> Tuple["PropertyDescriptor", ...]:
    return ()


@dataclass(eq=False)
class TypeDescriptor:
    """
    Reflected identity and shape of one source type.

    `properties` is loaded on first access through `load_properties`, so graphs
    that reference themselves can be described before they are walked. Identity
    is the qualified name.
    """
    qualified_name: str
    simple_name: str
    kind: TypeKind
    origin: Origin = Origin.EXTERNAL
    export_name: Optional[str] = None
    is_value_kind: bool = False
    primitive_base: Optional[str] = None
    is_export_root: bool = False
    enum_members: Tuple[EnumMember, ...] = ()
    load_properties: Callable[[], Tuple["PropertyDescriptor", ...]] = field(
        default=_no_properties, repr=False
    )

    @cached_property
    def properties(self) -> Tuple["PropertyDescriptor", ...]:
        return tuple(self.load_properties())

    @property
    def target_name(self) -> str:
        return self.export_name or self.simple_name

    @property
    def primitive_name(self) -> str:
        """Name used for primitive lookup; a subclass of str/int/... maps as its base."""
        return self.primitive_base or self.qualified_name

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TypeDescriptor):
            return NotImplemented
        return self.qualified_name == other.qualified_name

    def __hash__(self) -> int:
        return hash(self.qualified_name)


# ---- shapes -----------------------------------------------------------------

@dataclass(frozen=True)
class Direct:
    type: TypeDescriptor


@dataclass(frozen=True)
class NullableOf:
    inner: "Shape"


@dataclass(frozen=True)
class ArrayOf:
    element: "Shape"


@dataclass(frozen=True)
class DictionaryOf:
    key: "Shape"
    value: "Shape"


Shape = Union[Direct, NullableOf, ArrayOf, DictionaryOf]


@dataclass(frozen=True)
class PropertyDescriptor:
    name: str
    declared_type: Shape
    is_navigation_candidate: bool = False
    is_ignored_by_serializer: bool = False


# ---- output -----------------------------------------------------------------

@dataclass(frozen=True)
class ResolvedField:
    name: str
    type_text: str
    optional: bool


@dataclass(frozen=True)
class GeneratedDeclaration:
    target_name: str
    kind: DeclarationKind
    source_type: TypeDescriptor
    exported: bool
    fields: Tuple[ResolvedField, ...] = ()
    members: Tuple[EnumMember, ...] = ()
    body_text: str = ""


@dataclass(frozen=True)
class Artifact:
    root: GeneratedDeclaration
    nested: Tuple[GeneratedDeclaration, ...] = ()

    @property
    def declarations(self) -> Tuple[GeneratedDeclaration, ...]:
        return self.nested + (self.root,)
