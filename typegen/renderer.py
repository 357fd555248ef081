# typegen/renderer.py
from __future__ import annotations
import json
import re
from typing import Iterable, List

from typegen.config_models import TranslationPolicy
from typegen.descriptors import Artifact, DeclarationKind, EnumMember, GeneratedDeclaration

HEADER_LINES = (
    "// <auto-generated />",
    "// Changes to this file may be overwritten.",
)
FILE_EXTENSION = ".ts"

_TS_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def to_camel_case(name: str) -> str:
    if len(name) < 2:
        return name.lower()
    return name[0].lower() + name[1:]


def file_stem(target_name: str) -> str:
    return to_camel_case(target_name)


def _property_key(name: str, policy: TranslationPolicy) -> str:
    key = to_camel_case(name) if policy.use_camel_case_names else name
    if _TS_IDENTIFIER.match(key):
        return key
    return json.dumps(key)


def _member_value(member: EnumMember) -> str:
    value = member.value
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, str):
        return json.dumps(value)
    return json.dumps(str(value))


def render_declaration(declaration: GeneratedDeclaration, policy: TranslationPolicy) -> str:
    """
    Render one interface or enum declaration from its already-resolved fields/members.
    Root declarations are exported; nested ones are file-local.
    """
    prefix = "export " if declaration.exported else ""
    lines: List[str] = []

    if declaration.kind is DeclarationKind.ENUM:
        lines.append(f"{prefix}enum {declaration.target_name} {{")
        members = declaration.members
        for i, member in enumerate(members):
            comma = "," if i < len(members) - 1 else ""
            lines.append(f"  {member.name} = {_member_value(member)}{comma}")
    else:
        lines.append(f"{prefix}interface {declaration.target_name} {{")
        for f in declaration.fields:
            mark = "?" if f.optional else ""
            lines.append(f"  {_property_key(f.name, policy)}{mark}: {f.type_text};")

    lines.append("}")
    return "\n".join(lines) + "\n"


def _header(policy: TranslationPolicy) -> str:
    if not policy.emit_header_comment:
        return ""
    return "\n".join(HEADER_LINES) + "\n\n"


def render_artifact(artifact: Artifact, policy: TranslationPolicy) -> str:
    parts = [_header(policy)]
    for nested in artifact.nested:
        parts.append(nested.body_text or render_declaration(nested, policy))
        parts.append("\n")
    parts.append(artifact.root.body_text or render_declaration(artifact.root, policy))
    return "".join(parts)


def render_index(names: Iterable[str]) -> str:
    """Index manifest re-exporting every generated name from its own file, sorted by name."""
    lines = [HEADER_LINES[0], ""]
    for name in sorted(set(names)):
        lines.append(f"export {{ {name} }} from './{file_stem(name)}';")
    return "\n".join(lines) + "\n"
