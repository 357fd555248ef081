# tests/test_translator.py
from sample_models import shop
from typegen.descriptors import ArrayOf, Direct, NullableOf, PropertyDescriptor, TypeDescriptor, TypeKind
from typegen.renderer import render_artifact
from typegen.translator import (
    filter_properties,
    is_navigation_property,
    is_property_optional,
    translate,
)


def _render(factory, cls, policy):
    return render_artifact(translate(factory.describe(cls), policy), policy)


def _nested_names(artifact):
    return [d.target_name for d in artifact.nested]


# ---- property policy ----

def test_optionality_law():
    number = TypeDescriptor("builtins.int", "int", TypeKind.PRIMITIVE, is_value_kind=True)
    text = TypeDescriptor("builtins.str", "str", TypeKind.PRIMITIVE)

    assert not is_property_optional(PropertyDescriptor("a", Direct(number)))
    assert is_property_optional(PropertyDescriptor("b", NullableOf(Direct(number))))
    assert is_property_optional(PropertyDescriptor("c", Direct(text)))
    assert is_property_optional(PropertyDescriptor("d", ArrayOf(Direct(number))))
    assert is_property_optional(PropertyDescriptor("e", Direct(number), is_ignored_by_serializer=True))


def test_navigation_filtering(factory, make_policy):
    customer = factory.describe(shop.Customer)
    orders = next(p for p in customer.properties if p.name == "orders")
    assert is_navigation_property(orders)

    kept = [p.name for p in filter_properties(customer, make_policy())]
    assert "orders" not in kept
    kept = [p.name for p in filter_properties(customer, make_policy(ignoreNavigationProperties=False))]
    assert "orders" in kept


def test_final_foreign_key_is_not_navigation(factory, make_policy):
    text = _render(factory, shop.Shipment, make_policy(addGeneratedHeaders=False))
    assert "  orderId: number;" in text
    assert "order?:" not in text


# ---- scenarios ----

def test_role_scenario(factory, make_policy):
    text = _render(factory, shop.Account, make_policy(addGeneratedHeaders=False))
    assert text == (
        "interface Role {\n"
        "  roleId?: number;\n"
        "  roleName?: string;\n"
        "}\n"
        "\n"
        "export interface Account {\n"
        "  name?: string;\n"
        "  roles?: Role[];\n"
        "}\n"
    )


def test_value_kinds_dictionaries_and_dedup(factory, make_policy):
    policy = make_policy(addGeneratedHeaders=False)
    artifact = translate(factory.describe(shop.Customer), policy)
    assert _nested_names(artifact) == ["Address"]

    text = render_artifact(artifact, policy)
    assert text == (
        "interface Address {\n"
        "  street?: string;\n"
        "  city?: string;\n"
        "}\n"
        "\n"
        "export interface Customer {\n"
        "  id: number;\n"
        "  email?: string;\n"
        "  createdAt: Date;\n"
        "  balance: number;\n"
        "  externalId: string;\n"
        "  status: OrderStatus;\n"
        "  home?: Address;\n"
        "  work?: Address;\n"
        "  tags?: Record<string, string>;\n"
        "  scores?: { [key: string]: any };\n"
        "}\n"
    )


def test_nested_declarations_sorted_by_name(factory, make_policy):
    artifact = translate(factory.describe(shop.Customer), make_policy(ignoreNavigationProperties=False))
    assert _nested_names(artifact) == ["Address", "OrderDto", "OrderLine"]
    # the root is never re-emitted as a nested declaration
    assert "Customer" not in _nested_names(artifact)


def test_mutual_reference_terminates(factory, make_policy):
    policy = make_policy(addGeneratedHeaders=False)
    artifact = translate(factory.describe(shop.Author), policy)
    assert _nested_names(artifact) == ["Book"]

    text = render_artifact(artifact, policy)
    assert "  author?: Author;" in text
    assert text.count("interface Author") == 1


def test_self_reference(factory, make_policy):
    artifact = translate(factory.describe(shop.TreeNode), make_policy())
    assert artifact.nested == ()
    fields = {f.name: f.type_text for f in artifact.root.fields}
    assert fields == {"label": "string", "children": "TreeNode[]", "parent": "TreeNode"}


def test_serializer_ignored_properties(factory, make_policy):
    text = _render(factory, shop.Order, make_policy(addGeneratedHeaders=False))
    assert "export interface OrderDto {" in text
    assert "  notes?: string;" in text
    assert "  total?: number;" in text
    assert "  customer?: Customer;" in text

    text = _render(factory, shop.Order, make_policy(includeJsonIgnoreProperties=False))
    assert "notes" not in text
    assert "total" not in text


def test_pydantic_model(factory, make_policy):
    text = _render(factory, shop.ProductModel, make_policy(addGeneratedHeaders=False))
    assert text == (
        "export interface ProductModel {\n"
        "  sku?: string;\n"
        "  price: number;\n"
        "  inStock: boolean;\n"
        "  secret?: string;\n"
        "  audit?: string;\n"
        "}\n"
    )


def test_orm_model_skips_relationships(factory, make_policy):
    text = _render(factory, shop.UserRow, make_policy())
    assert "  id: number;" in text
    assert "  email?: string;" in text
    assert "  teamId?: number;" in text
    assert "team?:" not in text


def test_protocol_root(factory, make_policy):
    descriptor = factory.describe(shop.Named)
    assert descriptor.kind is TypeKind.INTERFACE
    assert "export interface Named {\n  displayName?: string;\n}\n" in _render(factory, shop.Named, make_policy())


# ---- policy switches ----

def test_custom_mappings_take_precedence(factory, make_policy):
    policy = make_policy(typeMappings={"Address": "AddressDto", "datetime.datetime": "string"})
    artifact = translate(factory.describe(shop.Customer), policy)
    fields = {f.name: f for f in artifact.root.fields}

    assert artifact.nested == ()
    assert fields["home"].type_text == "AddressDto"
    assert fields["createdAt"].type_text == "string"
    assert not fields["createdAt"].optional


def test_qualified_custom_mapping(factory, make_policy):
    policy = make_policy(typeMappings={"sample_models.shop.Role": "RoleRef"})
    artifact = translate(factory.describe(shop.Account), policy)
    assert {f.name: f.type_text for f in artifact.root.fields}["roles"] == "RoleRef[]"


def test_nested_generation_disabled(factory, make_policy):
    artifact = translate(factory.describe(shop.Customer), make_policy(generateNestedInterfaces=False))
    fields = {f.name: f.type_text for f in artifact.root.fields}
    assert artifact.nested == ()
    assert fields["home"] == "any"
    assert fields["status"] == "OrderStatus"


def test_camel_case_switch(factory, make_policy):
    assert "  recordId: number;" in _render(factory, shop.LegacyRecord, make_policy())
    text = _render(factory, shop.LegacyRecord, make_policy(useCamelCase=False))
    assert "  RecordId: number;" in text
    assert "  DisplayName?: string;" in text


def test_enum_root(factory, make_policy):
    text = _render(factory, shop.Color, make_policy(addGeneratedHeaders=False))
    assert text == 'export enum Color {\n  Red = "red",\n  Green = "green"\n}\n'


def test_translation_is_idempotent(factory, make_policy):
    policy = make_policy(ignoreNavigationProperties=False)
    first = _render(factory, shop.Customer, policy)
    second = _render(factory, shop.Customer, policy)
    assert first == second


def test_primitive_subclasses_map_like_their_base(factory, make_policy):
    artifact = translate(factory.describe(shop.Invoice), make_policy(addGeneratedHeaders=False))
    assert artifact.nested == ()
    assert artifact.root.body_text == (
        "export interface Invoice {\n"
        "  email?: string;\n"
        "  amount: number;\n"
        "  tagsByEmail?: Record<string, string>;\n"
        "}\n"
    )


def test_primitive_subclass_custom_mapping(factory, make_policy):
    artifact = translate(factory.describe(shop.Invoice), make_policy(typeMappings={"Email": "EmailAddress"}))
    assert {f.name: f.type_text for f in artifact.root.fields}["email"] == "EmailAddress"


def test_unresolvable_reference_degrades_to_any(factory, make_policy):
    artifact = translate(factory.describe(shop.Haunted), make_policy())
    fields = {f.name: f for f in artifact.root.fields}

    assert fields["ghost"].type_text == "any"
    assert fields["ghost"].optional
    assert fields["name"].type_text == "string"
    assert fields["lines"].type_text == "OrderLine[]"
    assert fields["count"].type_text == "number"
    assert not fields["count"].optional
    assert _nested_names(artifact) == ["OrderLine"]
