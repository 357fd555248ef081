# typegen/translator.py
"""
Lower a reflected root type into TypeScript declarations.

One `translate()` call produces one Artifact: the root declaration plus every
inline declaration it transitively needs. Inline declarations are collected
post-order against a per-artifact seen set (seeded with the root), so cyclic and
diamond-shaped graphs terminate and each source type is emitted at most once.
"""
from __future__ import annotations
import logging
from dataclasses import replace
from typing import Dict, List, Set, Tuple

from typegen.config_models import TranslationPolicy
from typegen.descriptors import (
    Artifact,
    ArrayOf,
    DeclarationKind,
    DictionaryOf,
    Direct,
    GeneratedDeclaration,
    NullableOf,
    Origin,
    PropertyDescriptor,
    ResolvedField,
    Shape,
    TypeDescriptor,
    TypeKind,
)
from typegen.renderer import render_declaration
from typegen.type_mapping import FALLBACK, INDEX_SIGNATURE_FALLBACK, STRING_LIKE, map_primitive

logger = logging.getLogger(__name__)


# ---- property policy --------------------------------------------------------

def is_navigation_property(prop: PropertyDescriptor) -> bool:
    return prop.is_navigation_candidate


def should_include_property(prop: PropertyDescriptor, policy: TranslationPolicy) -> bool:
    if policy.exclude_navigation_candidates and is_navigation_property(prop):
        return False
    return not prop.is_ignored_by_serializer or policy.include_ignored_properties


def filter_properties(type_: TypeDescriptor, policy: TranslationPolicy) -> List[PropertyDescriptor]:
    return [p for p in type_.properties if should_include_property(p, policy)]


def is_property_optional(prop: PropertyDescriptor) -> bool:
    """
    Only non-nullable value kinds (numbers, booleans, temporals, UUIDs, enums)
    are required; every reference shape and every serializer-ignored property
    is optional.
    """
    shape = prop.declared_type
    if isinstance(shape, NullableOf):
        return True
    if not (isinstance(shape, Direct) and shape.type.is_value_kind):
        return True
    return prop.is_ignored_by_serializer


def _custom_mapping(type_: TypeDescriptor, policy: TranslationPolicy) -> str | None:
    mappings = policy.custom_type_mappings
    if type_.qualified_name in mappings:
        return mappings[type_.qualified_name]
    return mappings.get(type_.simple_name)


def is_inline_candidate(type_: TypeDescriptor) -> bool:
    return type_.kind is TypeKind.CLASS and type_.origin is Origin.SCANNED


# ---- translation ------------------------------------------------------------

class _ArtifactBuilder:
    """Per-artifact resolution state; discarded after one translate() call."""

    def __init__(self, root: TypeDescriptor, policy: TranslationPolicy):
        self.policy = policy
        self.root = root
        self.seen: Set[str] = {root.qualified_name}
        self.nested: Dict[str, GeneratedDeclaration] = {}

    def resolve(self, shape: Shape) -> str:
        if isinstance(shape, NullableOf):
            return self.resolve(shape.inner)
        if isinstance(shape, ArrayOf):
            return f"{self.resolve(shape.element)}[]"
        if isinstance(shape, DictionaryOf):
            key = shape.key
            if isinstance(key, Direct) and key.type.primitive_name == STRING_LIKE:
                return f"Record<string, {self.resolve(shape.value)}>"
            return INDEX_SIGNATURE_FALLBACK
        return self.resolve_type(shape.type)

    def resolve_type(self, type_: TypeDescriptor) -> str:
        custom = _custom_mapping(type_, self.policy)
        if custom is not None:
            return custom
        if type_.kind is TypeKind.ENUM:
            return type_.target_name
        if is_inline_candidate(type_):
            if not self.policy.generate_nested_declarations:
                return FALLBACK
            self.collect(type_)
            return type_.target_name
        return map_primitive(type_.primitive_name)

    def collect(self, type_: TypeDescriptor) -> None:
        if type_.qualified_name in self.seen:
            return
        # mark before recursing: breaks cycles
        self.seen.add(type_.qualified_name)
        fields = self.resolve_fields(type_)
        declaration = self.declaration(type_, fields, exported=False)
        self.nested[type_.qualified_name] = declaration
        logger.debug("Collected nested declaration %s for %s", type_.target_name, self.root.qualified_name)

    def resolve_fields(self, type_: TypeDescriptor) -> Tuple[ResolvedField, ...]:
        return tuple(
            ResolvedField(
                name=prop.name,
                type_text=self.resolve(prop.declared_type),
                optional=is_property_optional(prop),
            )
            for prop in filter_properties(type_, self.policy)
        )

    def declaration(self, type_: TypeDescriptor, fields, exported: bool) -> GeneratedDeclaration:
        draft = GeneratedDeclaration(
            target_name=type_.target_name,
            kind=DeclarationKind.INTERFACE,
            source_type=type_,
            exported=exported,
            fields=fields,
        )
        return _with_body(draft, self.policy)

    def ordered_nested(self) -> Tuple[GeneratedDeclaration, ...]:
        return tuple(sorted(
            self.nested.values(),
            key=lambda d: (d.target_name, d.source_type.qualified_name),
        ))


def _with_body(declaration: GeneratedDeclaration, policy: TranslationPolicy) -> GeneratedDeclaration:
    return replace(declaration, body_text=render_declaration(declaration, policy))


class TypeTranslator:
    def __init__(self, policy: TranslationPolicy):
        self.policy = policy

    def translate(self, root: TypeDescriptor) -> Artifact:
        if root.kind is TypeKind.ENUM:
            draft = GeneratedDeclaration(
                target_name=root.target_name,
                kind=DeclarationKind.ENUM,
                source_type=root,
                exported=True,
                members=root.enum_members,
            )
            return Artifact(root=_with_body(draft, self.policy))

        builder = _ArtifactBuilder(root, self.policy)
        fields = builder.resolve_fields(root)
        declaration = builder.declaration(root, fields, exported=True)
        return Artifact(root=declaration, nested=builder.ordered_nested())


def translate(root: TypeDescriptor, policy: TranslationPolicy) -> Artifact:
    return TypeTranslator(policy).translate(root)
