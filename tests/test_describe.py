# tests/test_describe.py
from datetime import datetime
from typing import Annotated, Any, Dict, Final, List, Optional, Sequence, Tuple, Union

from sample_models import shop
from adapters.pyreflect.describe import DescriptorFactory, unwrap_annotation
from typegen.descriptors import ArrayOf, DictionaryOf, Direct, NullableOf, Origin, TypeKind
from typegen.markers import ForeignKey, JsonIgnore, export_marker_of, export_to_ts
from typegen.type_mapping import UNRESOLVED


def test_unwrap_keeps_metadata_and_final_flag():
    unwrapped = unwrap_annotation(Annotated[Final[int], ForeignKey("x_id"), JsonIgnore()])
    assert unwrapped.annotation is int
    assert unwrapped.is_final
    assert ForeignKey("x_id") in unwrapped.metadata
    assert JsonIgnore() in unwrapped.metadata


def test_shapes(factory):
    assert factory.shape(Optional[int]) == NullableOf(Direct(factory.describe(int)))
    assert factory.shape(int | None) == NullableOf(Direct(factory.describe(int)))
    assert factory.shape(List[str]) == ArrayOf(Direct(factory.describe(str)))
    assert factory.shape(Sequence[str]) == ArrayOf(Direct(factory.describe(str)))
    assert factory.shape(Tuple[int, ...]) == ArrayOf(Direct(factory.describe(int)))
    assert factory.shape(Dict[str, datetime]) == DictionaryOf(
        Direct(factory.describe(str)), Direct(factory.describe(datetime))
    )


def test_unrecognized_shapes_degrade_to_unresolved(factory):
    assert factory.shape(Union[int, str]) == Direct(factory.unresolved)
    assert factory.shape(Tuple[int, str]) == Direct(factory.unresolved)
    assert factory.shape("NotAType") == Direct(factory.unresolved)
    assert factory.unresolved.qualified_name == UNRESOLVED


def test_kinds_and_origins(factory):
    assert factory.describe(shop.OrderStatus).kind is TypeKind.ENUM
    assert factory.describe(shop.OrderStatus).is_value_kind
    assert factory.describe(shop.Named).kind is TypeKind.INTERFACE
    assert factory.describe(shop.Address).kind is TypeKind.CLASS
    assert factory.describe(shop.Address).origin is Origin.SCANNED
    assert factory.describe(datetime).kind is TypeKind.PRIMITIVE
    assert factory.describe(datetime).origin is Origin.EXTERNAL
    assert factory.describe(Any).qualified_name == "typing.Any"


def test_classes_outside_the_index_are_external():
    factory = DescriptorFactory.from_classes([shop.Account])
    assert factory.describe(shop.Account).origin is Origin.SCANNED
    assert factory.describe(shop.Address).origin is Origin.EXTERNAL


def test_descriptors_are_memoized(factory):
    assert factory.describe(shop.Customer) is factory.describe(shop.Customer)


def test_export_marker_is_not_inherited(factory):
    assert factory.describe(shop.Account).is_export_root
    assert not factory.describe(shop.PremiumAccount).is_export_root
    assert export_marker_of(shop.PremiumAccount) is None


def test_export_marker_name_override():
    @export_to_ts("WidgetDto")
    class Widget:
        pass

    @export_to_ts
    class Gadget:
        pass

    assert export_marker_of(Widget).custom_name == "WidgetDto"
    assert export_marker_of(Gadget).custom_name is None
    assert DescriptorFactory({}).describe(Widget).target_name == "WidgetDto"


def test_serializer_flags(factory):
    product = {p.name: p for p in factory.describe(shop.ProductModel).properties}
    assert product["secret"].is_ignored_by_serializer
    assert product["audit"].is_ignored_by_serializer
    assert not product["sku"].is_ignored_by_serializer


def test_orm_relationships_are_navigation_candidates(factory):
    props = {p.name: p for p in factory.describe(shop.UserRow).properties}
    assert set(props) == {"id", "email", "teamId", "team"}
    assert props["team"].is_navigation_candidate
    assert not props["teamId"].is_navigation_candidate


def test_class_vars_and_private_names_are_skipped():
    from typing import ClassVar

    class Settings:
        name: str
        _secret: str
        registry: ClassVar[Dict[str, str]] = {}

    props = DescriptorFactory({}).describe(Settings).properties
    assert [p.name for p in props] == ["name"]


def test_primitive_subclass_descriptor(factory):
    email = factory.describe(shop.Email)
    cents = factory.describe(shop.Cents)
    assert email.kind is TypeKind.PRIMITIVE
    assert email.primitive_name == "builtins.str"
    assert not email.is_value_kind
    assert cents.primitive_name == "builtins.int"
    assert cents.is_value_kind


def test_type_hints_fall_back_per_annotation():
    from adapters.pyreflect.describe import resolve_type_hints

    hints = resolve_type_hints(shop.Haunted)
    assert hints["ghost"] == "Ghost"
    assert hints["name"] is str
    assert hints["lines"] == List[shop.OrderLine]
