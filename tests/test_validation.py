"""Tests for order request validation."""

from decimal import Decimal

import pytest

from order_engine.order_request.catalog import Catalog, Category, ClientLimits
from order_engine.order_request.validation import (
    LIMIT_EXCEEDED,
    MINIMUM_NOT_MET,
    MISSING_REQUIRED_FIELD,
    QUOTA_MISMATCH,
    UNRESOLVED_REFERENCE,
    OrderRequestValidator,
    ValidationResult,
    category_required_value,
    validate,
)


def _food(*selections):
    return {"serviceType": "Food", "vendorSelections": list(selections)}


def _box(box_type_id="bt1", vendor_id="bx", quantity=1, items=None):
    return {"boxTypeId": box_type_id, "vendorId": vendor_id, "quantity": quantity, "items": items or {}, "itemNotes": {}}


def _boxes(*boxes):
    return {"serviceType": "Boxes", "vendorId": "bx", "boxOrders": list(boxes)}


class TestValidateFood:
    """Test cases for Food drafts."""

    def test_weighted_total_matches_approved_meals(self, catalog):
        draft = _food({"vendorId": "v1", "items": {"m1": 4, "m2": 3}})

        result = validate(draft, ClientLimits(approved_meals_per_week=10), catalog)

        assert result.valid
        assert result.messages == []

    def test_total_short_of_approved_meals(self, catalog):
        result = validate(_food({"vendorId": "v1", "items": {"m1": 9}}), ClientLimits(approved_meals_per_week=10), catalog)

        assert result.messages == [
            "Total meals selected (9) is 1 short of the approved 10 meals per week. Please add items to match exactly."
        ]
        assert result.issues[0].kind == QUOTA_MISMATCH

    def test_total_exceeds_approved_meals(self, catalog):
        draft = _food({"vendorId": "v1", "items": {"m1": 5, "m2": 3}})

        result = validate(draft, ClientLimits(approved_meals_per_week=10), catalog)

        assert result.messages == [
            "Total meals selected (11) exceeds the approved 10 meals per week by 1. Please remove items to match exactly."
        ]

    def test_no_allowance_skips_total_check(self, catalog):
        assert validate(_food({"vendorId": "v1", "items": {"m1": 3}}), ClientLimits(), catalog).valid

    def test_vendor_minimum_checked_per_delivery_day(self, catalog):
        draft = {
            "serviceType": "Food",
            "deliveryDayOrders": {
                "Monday": {"vendorSelections": [{"vendorId": "v2", "items": {"m3": 3}}]},
                "Thursday": {"vendorSelections": [{"vendorId": "v2", "items": {"m3": 5}}]},
            },
        }

        result = validate(draft, ClientLimits(), catalog)

        assert result.messages == ["Fresh Bites (Monday): 3 meals selected, but minimum is 5."]
        assert result.issues[0].kind == MINIMUM_NOT_MET

    def test_single_day_minimum_uses_first_delivery_day(self, catalog):
        result = validate(_food({"vendorId": "v2", "items": {"m3": 2}}), ClientLimits(), catalog)

        assert result.messages == ["Fresh Bites (Monday): 2 meals selected, but minimum is 5."]

    def test_unresolved_references(self, catalog):
        draft = _food(
            {"vendorId": "nope", "items": {"zz": 1}},
            {"vendorId": "old", "items": {"m1": 1}},
            {"vendorId": "bx", "items": {"m1": 1}},
        )

        result = validate(draft, ClientLimits(), catalog)

        assert result.messages == [
            "Menu item zz was not found in the catalog.",
            "Vendor nope was not found in the catalog.",
            "Vendor Old Vendor is not active.",
            "Vendor Box Co does not offer Food service.",
        ]
        assert {issue.kind for issue in result.issues} == {UNRESOLVED_REFERENCE}

    def test_unknown_items_weigh_one(self, catalog):
        draft = _food({"vendorId": "v1", "items": {"m1": 1, "zz": 2}})

        result = validate(draft, ClientLimits(approved_meals_per_week=3), catalog)

        assert result.messages == ["Menu item zz was not found in the catalog."]

    def test_items_without_vendor(self, catalog):
        draft = {
            "serviceType": "Food",
            "deliveryDayOrders": {"Monday": {"vendorSelections": [{"vendorId": "", "items": {"m1": 1}}]}},
        }

        result = validate(draft, ClientLimits(), catalog)

        assert result.messages == ["Vendor selection #1 (Monday) has items but no vendor."]
        assert result.issues[0].kind == MISSING_REQUIRED_FIELD

    def test_empty_placeholder_selection_is_valid(self, catalog):
        assert validate(_food({"vendorId": "", "items": {}}), ClientLimits(), catalog).valid

    def test_vendor_without_delivery_days(self, catalog_data):
        catalog_data["vendors"].append({"id": "nd", "name": "No Days Diner", "serviceTypes": ["Food"]})
        catalog = Catalog.from_dict(catalog_data)

        result = validate(_food({"vendorId": "nd", "items": {}}), ClientLimits(), catalog)

        assert result.messages == ["Vendor(s) No Days Diner have no delivery days configured."]


class TestValidateBoxes:
    """Test cases for Boxes drafts."""

    def test_category_set_value_scales_with_box_count(self, catalog_data):
        catalog_data["categories"][2]["setValue"] = 4
        catalog = Catalog.from_dict(catalog_data)

        valid = validate(_boxes(_box(items={"b-grain": 4}), _box(items={"b-grain": 4})), ClientLimits(), catalog)
        short = validate(_boxes(_box(items={"b-grain": 4}), _box(items={"b-grain": 3})), ClientLimits(), catalog)
        over = validate(_boxes(_box(items={"b-grain": 5}), _box(items={"b-grain": 4})), ClientLimits(), catalog)

        assert valid.valid
        assert short.messages == ["You must have a total of 8 Grains points, but you have 7."]
        assert short.issues[0].kind == QUOTA_MISMATCH
        assert over.messages == ["You must have a total of 8 Grains points, but you have 9."]

    def test_box_quota_uses_item_weights(self, catalog_data):
        catalog_data["boxQuotas"] = [{"boxTypeId": "bt1", "categoryId": "cat-prot", "targetValue": 2}]
        catalog = Catalog.from_dict(catalog_data)

        valid = validate(_boxes(_box(items={"b-prot": 1}), _box(items={"b-prot": 1})), ClientLimits(), catalog)
        short = validate(_boxes(_box(items={"b-prot": 1}), _box(items={"b-veg": 2})), ClientLimits(), catalog)

        assert valid.valid
        assert short.messages == [
            'Box type "Standard Box": category "Protein" requires exactly 4 quota value, but you have 2.'
        ]

    def test_quota_for_unused_box_type_is_ignored(self, catalog_data):
        catalog_data["boxQuotas"] = [{"boxTypeId": "bt3", "categoryId": "cat-prot", "targetValue": 2}]
        catalog = Catalog.from_dict(catalog_data)

        assert validate(_boxes(_box()), ClientLimits(), catalog).valid

    def test_no_boxes(self, catalog):
        result = validate(_boxes(), ClientLimits(), catalog)

        assert result.messages == ["Please add at least one box to the order."]

    def test_box_without_resolvable_vendor(self, catalog):
        result = validate(_boxes(_box(box_type_id="bt-orphan", vendor_id=None)), ClientLimits(), catalog)

        assert result.messages == ["Box #1 has no vendor and no box type that resolves to one."]

    def test_vendor_recovered_through_box_type(self, catalog):
        assert validate(_boxes(_box(box_type_id="bt3", vendor_id=None)), ClientLimits(), catalog).valid

    def test_unknown_box_type(self, catalog):
        result = validate(_boxes(_box(box_type_id="zzz")), ClientLimits(), catalog)

        assert result.messages == ["Box #1: box type zzz was not found."]

    def test_box_count_above_authorized_amount(self, catalog):
        result = validate(_boxes(_box(quantity=2)), ClientLimits(authorized_amount=1), catalog)

        assert result.messages == ["Order has 2 boxes, but only 1 are authorized."]
        assert result.issues[0].kind == LIMIT_EXCEEDED


class TestValidateCustomAndProduce:
    """Test cases for Custom and Produce drafts."""

    def test_valid_custom_order(self, catalog):
        draft = {"serviceType": "Custom", "vendorId": "v1", "customItems": [{"name": "Widget", "price": "5.00", "quantity": 2}]}

        assert validate(draft, None, catalog).valid

    def test_custom_item_price_must_be_positive(self, catalog):
        draft = {"serviceType": "Custom", "vendorId": "v1", "customItems": [{"name": "Widget", "price": 0, "quantity": 1}]}

        result = validate(draft, None, catalog)

        assert result.messages == ["Item #1: price must be greater than 0."]

    def test_custom_item_fields(self, catalog):
        draft = {
            "serviceType": "Custom",
            "vendorId": "",
            "customItems": [{"name": " ", "price": "2", "quantity": 1.5}, "junk"],
        }

        result = validate(draft, None, catalog)

        assert result.messages == [
            "A vendor is required for Custom orders.",
            "Item #1: name is required.",
            "Item #1: quantity must be a whole number of at least 1.",
            "Item #2: name, price and quantity are required.",
        ]

    def test_custom_requires_items(self, catalog):
        result = validate({"serviceType": "Custom", "vendorId": "v1", "customItems": []}, None, catalog)

        assert result.messages == ["At least one custom item is required."]

    @pytest.mark.parametrize(
        "amount,messages",
        [
            (Decimal("0"), []),
            ("19.99", []),
            ("abc", ["Bill amount must be a number."]),
            (-5, ["Bill amount cannot be negative (got -5)."]),
        ],
    )
    def test_produce_bill_amount(self, catalog, amount, messages):
        result = validate({"serviceType": "Produce", "billAmount": amount}, None, catalog)

        assert result.messages == messages


class TestValidationHelpers:
    """Test cases for the result type and shared helpers."""

    def test_invalid_service_type_raises(self, catalog):
        with pytest.raises(ValueError):
            OrderRequestValidator(catalog).validate({"serviceType": "Equipment"})

    def test_result_to_dict(self):
        result = ValidationResult()
        result.add(QUOTA_MISMATCH, "off by one")

        assert result.to_dict() == {
            "valid": False,
            "messages": ["off by one"],
            "issues": [{"kind": QUOTA_MISMATCH, "message": "off by one"}],
        }

    def test_category_required_value(self):
        category = Category(id="c", name="Grains", set_value=4)

        assert category_required_value(category, "Boxes", 3) == 12
        assert category_required_value(category, "Food", 3) == 4
        assert category_required_value(Category(id="c"), "Boxes", 3) is None

    def test_client_limits_from_document(self):
        limits = ClientLimits.from_dict({"approvedMealsPerWeek": "14", "authorized_amount": 2})

        assert limits == ClientLimits(approved_meals_per_week=14, authorized_amount=2)
