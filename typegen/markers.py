# typegen/markers.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional

EXPORT_ATTR = "__typegen_export__"


@dataclass(frozen=True)
class ExportToTs:
    """Export marker stored on a class by @export_to_ts."""
    custom_name: Optional[str] = None


@dataclass(frozen=True)
class ForeignKey:
    """
    Marks an attribute as an ORM-style back-reference, e.g.
    ``owner: Annotated[Optional["User"], ForeignKey("owner_id")]``.
    """
    column: Optional[str] = None


class JsonIgnore:
    """Marks an attribute as excluded from the model's own JSON serialization."""

    def __repr__(self) -> str:
        return "JsonIgnore()"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, JsonIgnore)

    def __hash__(self) -> int:
        return hash(JsonIgnore)


def export_to_ts(name: Any = None):
    """
    Class decorator marking a class or enum for TypeScript export.

    Usable bare (``@export_to_ts``) or with an override name
    (``@export_to_ts("UserDto")``). The marker is not inherited by subclasses.
    """
    if isinstance(name, type):
        setattr(name, EXPORT_ATTR, ExportToTs())
        return name

    def decorator(cls):
        setattr(cls, EXPORT_ATTR, ExportToTs(name))
        return cls

    return decorator


def export_marker_of(cls: type) -> Optional[ExportToTs]:
    # look only at the class's own namespace
    marker = vars(cls).get(EXPORT_ATTR) if hasattr(cls, "__dict__") else None
    return marker if isinstance(marker, ExportToTs) else None
