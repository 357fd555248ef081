# tests/test_type_mapping.py
import pytest

from typegen.type_mapping import (
    FALLBACK,
    UNRESOLVED,
    is_system_module,
    is_value_kind,
    map_primitive,
    qualified_name_of,
)


@pytest.mark.parametrize("qualified, expected", [
    ("builtins.str", "string"),
    ("builtins.bool", "boolean"),
    ("builtins.int", "number"),
    ("decimal.Decimal", "number"),
    ("datetime.datetime", "Date"),
    ("datetime.date", "Date"),
    ("datetime.timedelta", "string"),
    ("uuid.UUID", "string"),
    ("builtins.bytes", "string"),
    ("typing.Any", "any"),
])
def test_primitive_table(qualified, expected):
    assert map_primitive(qualified) == expected


def test_unknown_and_unresolved_fall_back_to_any():
    assert map_primitive(UNRESOLVED) == FALLBACK
    assert map_primitive("app.models.Unknown") == FALLBACK


def test_value_kinds():
    assert is_value_kind("builtins.int")
    assert is_value_kind("uuid.UUID")
    assert not is_value_kind("builtins.str")
    assert not is_value_kind("builtins.bytes")


def test_system_modules():
    assert is_system_module("datetime")
    assert is_system_module("collections.abc")
    assert is_system_module(None)
    assert not is_system_module("sample_models.shop")


def test_qualified_name_of_nested_class():
    class Outer:
        class Inner:
            pass

    assert qualified_name_of(int) == "builtins.int"
    assert qualified_name_of(Outer.Inner).endswith("Outer.Inner")


def test_primitive_base_of():
    from decimal import Decimal
    from datetime import date, datetime

    from typegen.type_mapping import primitive_base_of

    class Money(Decimal):
        pass

    class Stamp(datetime):
        pass

    class Plain:
        pass

    assert primitive_base_of(Money) == "decimal.Decimal"
    assert primitive_base_of(Stamp) == "datetime.datetime"
    assert primitive_base_of(date) == "datetime.date"
    assert primitive_base_of(Plain) is None
