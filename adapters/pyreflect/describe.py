# adapters/pyreflect/describe.py
"""
Python reflection -> TypeDescriptor / Shape.

Understands dataclasses, pydantic models, SQLAlchemy declarative models, plain
annotated classes, typing.Protocol classes and Enum subclasses. Anything it can't
make sense of degrades to the unresolved descriptor (rendered as `any`).
"""
from __future__ import annotations
import dataclasses
import enum
import inspect
import logging
import threading
import types
from functools import partial
from typing import (
    Annotated,
    Any,
    ClassVar,
    Dict,
    Final,
    Iterable,
    List,
    Mapping,
    Set,
    Tuple,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from pydantic import BaseModel
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Mapped, Mapper

from typegen.descriptors import (
    ArrayOf,
    DictionaryOf,
    Direct,
    EnumMember,
    NullableOf,
    Origin,
    PropertyDescriptor,
    Shape,
    TypeDescriptor,
    TypeKind,
)
from typegen.markers import ForeignKey, JsonIgnore, export_marker_of
from typegen.type_mapping import (
    COLLECTION_ORIGINS,
    DICTIONARY_ORIGINS,
    PRIMITIVE_TYPES,
    UNRESOLVED,
    is_system_module,
    is_value_kind,
    primitive_base_of,
    qualified_name_of,
)

logger = logging.getLogger(__name__)

NoneType = type(None)


@dataclasses.dataclass
class _Unwrapped:
    annotation: Any
    metadata: List[Any] = dataclasses.field(default_factory=list)
    is_final: bool = False
    is_classvar: bool = False


def unwrap_annotation(annotation: Any) -> _Unwrapped:
    """Peel Annotated / Final / ClassVar / Mapped / NewType layers, keeping their flags."""
    result = _Unwrapped(annotation)
    ann = annotation
    while True:
        origin = get_origin(ann)
        if origin is Annotated:
            result.metadata.extend(getattr(ann, "__metadata__", ()))
            ann = get_args(ann)[0]
        elif origin is Final or ann is Final:
            result.is_final = True
            args = get_args(ann)
            ann = args[0] if args else Any
        elif origin is ClassVar or ann is ClassVar:
            result.is_classvar = True
            args = get_args(ann)
            ann = args[0] if args else Any
        elif origin is Mapped:
            args = get_args(ann)
            ann = args[0] if args else Any
        elif callable(ann) and hasattr(ann, "__supertype__"):
            ann = ann.__supertype__
        else:
            break
    if isinstance(ann, str) and ann.lstrip().startswith(("ClassVar", "typing.ClassVar")):
        result.is_classvar = True
    result.annotation = ann
    return result


def is_generic_definition(cls: type) -> bool:
    return bool(getattr(cls, "__parameters__", ()))


def is_protocol(cls: type) -> bool:
    return bool(getattr(cls, "_is_protocol", False))


def is_orm_mapped(cls: type) -> bool:
    return isinstance(getattr(cls, "__mapper__", None), Mapper)


class DescriptorFactory:
    """
    Builds (and memoizes) TypeDescriptors for one run.

    `available` is the scanned universe keyed by simple and qualified name; a class
    found there (and not from the stdlib) gets origin SCANNED and may be inlined.
    The memo is shared by concurrently running translations, hence the lock.
    """

    def __init__(self, available: Mapping[str, type]):
        self._available = dict(available)
        self._cache: Dict[Any, TypeDescriptor] = {}
        self._lock = threading.RLock()
        self.unresolved = TypeDescriptor(
            qualified_name=UNRESOLVED,
            simple_name="any",
            kind=TypeKind.PRIMITIVE,
        )

    @classmethod
    def from_classes(cls, classes: Iterable[type]) -> "DescriptorFactory":
        return cls(index_by_name(classes))

    # ---- types ----------------------------------------------------------

    def describe(self, cls: Any) -> TypeDescriptor:
        with self._lock:
            cached = self._cache.get(cls)
            if cached is None:
                cached = self._build(cls)
                self._cache[cls] = cached
            return cached

    def is_scanned(self, cls: type) -> bool:
        if is_system_module(getattr(cls, "__module__", None)) or inspect.isabstract(cls):
            return False
        return qualified_name_of(cls) in self._available or cls.__name__ in self._available

    def _build(self, cls: Any) -> TypeDescriptor:
        if cls is Any:
            return TypeDescriptor(qualified_name="typing.Any", simple_name="Any", kind=TypeKind.PRIMITIVE)
        if not isinstance(cls, type):
            return self.unresolved

        qualified = qualified_name_of(cls)
        marker = export_marker_of(cls)
        common = dict(
            qualified_name=qualified,
            simple_name=cls.__name__,
            origin=Origin.SCANNED if self.is_scanned(cls) else Origin.EXTERNAL,
            export_name=marker.custom_name if marker else None,
            is_export_root=marker is not None,
        )

        if issubclass(cls, enum.Enum):
            members = tuple(EnumMember(name, m.value) for name, m in cls.__members__.items())
            return TypeDescriptor(kind=TypeKind.ENUM, is_value_kind=True, enum_members=members, **common)
        if qualified in PRIMITIVE_TYPES:
            return TypeDescriptor(kind=TypeKind.PRIMITIVE, is_value_kind=is_value_kind(qualified), **common)
        base = primitive_base_of(cls)
        if base is not None:
            return TypeDescriptor(
                kind=TypeKind.PRIMITIVE, is_value_kind=is_value_kind(base), primitive_base=base, **common
            )

        kind = TypeKind.INTERFACE if is_protocol(cls) else TypeKind.CLASS
        return TypeDescriptor(kind=kind, load_properties=partial(self.properties_of, cls), **common)

    # ---- shapes ---------------------------------------------------------

    def shape(self, annotation: Any) -> Shape:
        ann = unwrap_annotation(annotation).annotation
        origin = get_origin(ann)
        args = get_args(ann)

        if origin is Union or origin is types.UnionType:
            rest = [a for a in args if a is not NoneType]
            if len(rest) == len(args):
                return Direct(self.unresolved)
            inner = self.shape(rest[0]) if len(rest) == 1 else Direct(self.unresolved)
            return NullableOf(inner)

        if origin is tuple:
            if len(args) == 2 and args[1] is Ellipsis:
                return ArrayOf(self.shape(args[0]))
            return Direct(self.unresolved)

        if origin in COLLECTION_ORIGINS or (isinstance(ann, type) and ann in COLLECTION_ORIGINS):
            return ArrayOf(self.shape(args[0]) if args else Direct(self.describe(Any)))

        if origin in DICTIONARY_ORIGINS or (isinstance(ann, type) and ann in DICTIONARY_ORIGINS):
            if len(args) == 2:
                return DictionaryOf(self.shape(args[0]), self.shape(args[1]))
            return DictionaryOf(Direct(self.describe(Any)), Direct(self.describe(Any)))

        if ann is Any:
            return Direct(self.describe(Any))
        if origin is None and isinstance(ann, type):
            return Direct(self.describe(ann))
        # parameterized user generics (Page[User]) resolve to their class
        if isinstance(origin, type):
            return Direct(self.describe(origin))
        return Direct(self.unresolved)

    # ---- properties -----------------------------------------------------

    def properties_of(self, cls: type) -> Tuple[PropertyDescriptor, ...]:
        excluded: Set[str] = set()
        navigations: Set[str] = set()

        if issubclass(cls, BaseModel):
            # pydantic has already resolved annotations; markers live in field.metadata
            hints = {
                n: Annotated[(f.annotation, *f.metadata)] if f.metadata else f.annotation
                for n, f in cls.model_fields.items()
            }
            names = list(hints)
            excluded = {n for n, f in cls.model_fields.items() if f.exclude is True}
        elif dataclasses.is_dataclass(cls):
            hints = resolve_type_hints(cls)
            fields = dataclasses.fields(cls)
            names = [f.name for f in fields]
            excluded = {f.name for f in fields if f.metadata.get("json_ignore")}
        elif is_orm_mapped(cls):
            hints = resolve_type_hints(cls)
            names = [n for n, a in hints.items() if _is_mapped_annotation(a)]
            navigations = orm_relationships(cls)
        else:
            hints = resolve_type_hints(cls)
            names = list(hints)

        props: List[PropertyDescriptor] = []
        for name in names:
            if name.startswith("_"):
                continue
            unwrapped = unwrap_annotation(hints.get(name, Any))
            if unwrapped.is_classvar:
                continue
            has_fk = name in navigations or any(isinstance(m, ForeignKey) for m in unwrapped.metadata)
            props.append(PropertyDescriptor(
                name=name,
                declared_type=self.shape(hints.get(name, Any)),
                is_navigation_candidate=has_fk and not unwrapped.is_final,
                is_ignored_by_serializer=(
                    name in excluded or any(isinstance(m, JsonIgnore) for m in unwrapped.metadata)
                ),
            ))
        return tuple(props)


def index_by_name(classes: Iterable[type]) -> Dict[str, type]:
    index: Dict[str, type] = {}
    for cls in classes:
        index[qualified_name_of(cls)] = cls
        index[cls.__name__] = cls
    return index


def _is_mapped_annotation(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return "Mapped[" in annotation
    ann = annotation
    while get_origin(ann) is Annotated:
        ann = get_args(ann)[0]
    return get_origin(ann) is Mapped


def orm_relationships(cls: type) -> Set[str]:
    try:
        return set(sa_inspect(cls).relationships.keys())
    except SQLAlchemyError as exc:
        logger.warning("Could not inspect ORM relationships of %s: %s", qualified_name_of(cls), exc)
        return set()


def resolve_type_hints(cls: type) -> Dict[str, Any]:
    """
    typing.get_type_hints with extras; when one annotation can't be evaluated,
    fall back to evaluating each one on its own so the rest still resolve.
    Unresolvable annotations stay as strings (-> unresolved shape).
    """
    try:
        return get_type_hints(cls, include_extras=True)
    except Exception as exc:  # NameError/TypeError from forward references
        logger.debug("get_type_hints failed for %s (%s); evaluating annotations one by one",
                     qualified_name_of(cls), exc)

    hints: Dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        try:
            annotations = inspect.get_annotations(klass)
        except NameError as exc:
            logger.warning("Skipping unevaluable annotations of %s: %s", qualified_name_of(klass), exc)
            continue
        for name, ann in annotations.items():
            hints[name] = _resolve_one(klass, name, ann)
    return hints


def _resolve_one(klass: type, name: str, annotation: Any) -> Any:
    """Resolve a single annotation in `klass`'s module, via a one-field holder class."""
    holder = type(
        f"_{klass.__name__}_{name}",
        (),
        {"__annotations__": {name: annotation}, "__module__": klass.__module__},
    )
    try:
        return get_type_hints(holder, localns=dict(vars(klass)), include_extras=True)[name]
    except (NameError, TypeError, SyntaxError, AttributeError) as exc:
        logger.debug("Leaving %s.%s unresolved: %s", qualified_name_of(klass), name, exc)
        return annotation
