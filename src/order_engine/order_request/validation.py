"""Quota and eligibility validation for canonical order requests.

Validation never raises for business-rule violations and never stops at the
first problem: every violation is collected so the caller can show all of
them at once and decide whether to block the save.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from ..utils.logging import get_logger
from .boxes import box_vendor, total_box_count
from .catalog import Catalog, Category, ClientLimits, normalize_id
from .constants import BOXES, CUSTOM, FOOD, PRODUCE, require_service_type
from .normalize import positive_int, to_decimal
from .vendors import is_blank

logger = get_logger(__name__)

QUOTA_MISMATCH = "QuotaMismatch"
MINIMUM_NOT_MET = "MinimumNotMet"
MISSING_REQUIRED_FIELD = "MissingRequiredField"
UNRESOLVED_REFERENCE = "UnresolvedReference"
LIMIT_EXCEEDED = "LimitExceeded"


@dataclass(frozen=True)
class ValidationIssue:
    kind: str
    message: str


@dataclass
class ValidationResult:
    """Outcome of validating one draft."""

    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.issues

    @property
    def messages(self) -> List[str]:
        return [issue.message for issue in self.issues]

    def add(self, kind: str, message: str) -> None:
        self.issues.append(ValidationIssue(kind, message))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "messages": self.messages,
            "issues": [{"kind": issue.kind, "message": issue.message} for issue in self.issues],
        }


def category_required_value(category: Category, service_type: str, box_count: int) -> Optional[int]:
    """
    Exact quota a category with a setValue demands.

    Boxes orders need setValue once per box; every other service type uses
    setValue unchanged.
    """
    if category.set_value is None:
        return None
    if service_type == BOXES:
        return category.set_value * box_count
    return category.set_value


class OrderRequestValidator:
    """Check a canonical draft against client limits and catalog rules."""

    def __init__(self, catalog: Catalog, limits: Optional[ClientLimits] = None) -> None:
        self.catalog = catalog
        self.limits = limits or ClientLimits()

    def validate(self, draft: Dict[str, Any]) -> ValidationResult:
        service_type = draft.get("serviceType") if isinstance(draft, dict) else None
        require_service_type(service_type)
        result = ValidationResult()
        {
            FOOD: self._validate_food,
            BOXES: self._validate_boxes,
            CUSTOM: self._validate_custom,
            PRODUCE: self._validate_produce,
        }[service_type](draft, result)
        if not result.valid:
            logger.debug(f"{service_type} draft failed validation with {len(result.issues)} issue(s)")
        return result

    # --- shared helpers ---

    def _weighted(self, items: Any, category_id: Optional[str] = None) -> int:
        """Quota-weighted total of an items map, optionally restricted to one category."""
        if not isinstance(items, dict):
            return 0
        total = 0
        for item_id, qty in items.items():
            quantity = positive_int(qty) or 0
            if category_id is not None:
                item = self.catalog.menu_item(item_id)
                if item is None or item.category_id != category_id:
                    continue
            total += quantity * self.catalog.quota_value(item_id)
        return total

    def _report_unknown_items(self, items: Any, seen: set, result: ValidationResult) -> None:
        if not isinstance(items, dict):
            return
        for item_id in items:
            key = normalize_id(item_id)
            if key not in seen and self.catalog.menu_item(key) is None:
                seen.add(key)
                result.add(UNRESOLVED_REFERENCE, f"Menu item {key} was not found in the catalog.")

    def _check_vendor(self, vendor_id: str, service_type: Optional[str], result: ValidationResult) -> None:
        vendor = self.catalog.vendor(vendor_id)
        if vendor is None:
            result.add(UNRESOLVED_REFERENCE, f"Vendor {vendor_id} was not found in the catalog.")
        elif not vendor.is_active:
            result.add(UNRESOLVED_REFERENCE, f"Vendor {vendor.display_name} is not active.")
        elif service_type and not vendor.supports(service_type):
            result.add(UNRESOLVED_REFERENCE, f"Vendor {vendor.display_name} does not offer {service_type} service.")

    # --- Food ---

    def _food_days(self, draft: Dict[str, Any]) -> List[Tuple[Optional[str], List[Dict[str, Any]]]]:
        day_orders = draft.get("deliveryDayOrders")
        if isinstance(day_orders, dict):
            return [
                (day, [s for s in (order or {}).get("vendorSelections") or [] if isinstance(s, dict)])
                for day, order in day_orders.items()
            ]
        selections = draft.get("vendorSelections") or []
        return [(None, [s for s in selections if isinstance(s, dict)])]

    def _validate_food(self, draft: Dict[str, Any], result: ValidationResult) -> None:
        total = 0
        checked_vendors = set()
        unknown_items = set()
        vendors_without_days = []

        for day, selections in self._food_days(draft):
            for index, selection in enumerate(selections, start=1):
                items = selection.get("items")
                count = self._weighted(items)
                total += count
                self._report_unknown_items(items, unknown_items, result)

                vendor_id = normalize_id(selection.get("vendorId"))
                if not vendor_id:
                    if count > 0:
                        where = f" ({day})" if day else ""
                        result.add(MISSING_REQUIRED_FIELD, f"Vendor selection #{index}{where} has items but no vendor.")
                    continue

                if vendor_id not in checked_vendors:
                    checked_vendors.add(vendor_id)
                    self._check_vendor(vendor_id, FOOD, result)
                    vendor = self.catalog.vendor(vendor_id)
                    if vendor and not vendor.delivery_days:
                        vendors_without_days.append(vendor.display_name)

                vendor = self.catalog.vendor(vendor_id)
                if vendor and vendor.minimum_meals > 0 and count < vendor.minimum_meals:
                    label = day or (vendor.delivery_days[0] if vendor.delivery_days else "weekly")
                    result.add(
                        MINIMUM_NOT_MET,
                        f"{vendor.display_name} ({label}): {count} meals selected, "
                        f"but minimum is {vendor.minimum_meals}.",
                    )

        approved = self.limits.approved_meals_per_week
        if approved > 0 and total != approved:
            if total > approved:
                result.add(
                    QUOTA_MISMATCH,
                    f"Total meals selected ({total}) exceeds the approved {approved} meals per week "
                    f"by {total - approved}. Please remove items to match exactly.",
                )
            else:
                result.add(
                    QUOTA_MISMATCH,
                    f"Total meals selected ({total}) is {approved - total} short of the approved "
                    f"{approved} meals per week. Please add items to match exactly.",
                )

        if vendors_without_days:
            result.add(
                UNRESOLVED_REFERENCE,
                f"Vendor(s) {', '.join(vendors_without_days)} have no delivery days configured.",
            )

    # --- Boxes ---

    def _validate_boxes(self, draft: Dict[str, Any], result: ValidationResult) -> None:
        boxes = [box for box in draft.get("boxOrders") or [] if isinstance(box, dict)]
        if not boxes:
            result.add(MISSING_REQUIRED_FIELD, "Please add at least one box to the order.")
            return

        box_count = total_box_count(boxes)
        unknown_items = set()
        checked_vendors = set()

        for index, box in enumerate(boxes, start=1):
            box_type_id = normalize_id(box.get("boxTypeId"))
            if box_type_id and self.catalog.box_type(box_type_id) is None:
                result.add(UNRESOLVED_REFERENCE, f"Box #{index}: box type {box_type_id} was not found.")
            vendor_id = box_vendor(box, self.catalog)
            if vendor_id is None:
                result.add(
                    MISSING_REQUIRED_FIELD,
                    f"Box #{index} has no vendor and no box type that resolves to one.",
                )
            elif vendor_id not in checked_vendors:
                checked_vendors.add(vendor_id)
                self._check_vendor(vendor_id, BOXES, result)
            self._report_unknown_items(box.get("items"), unknown_items, result)

        # Quota rows apply to the box types used in this order
        box_type_ids = []
        for box in boxes:
            box_type_id = normalize_id(box.get("boxTypeId"))
            if box_type_id and box_type_id not in box_type_ids:
                box_type_ids.append(box_type_id)

        for quota in self.catalog.box_quotas:
            if quota.box_type_id not in box_type_ids:
                continue
            actual = sum(
                self._weighted(box.get("items"), quota.category_id)
                for box in boxes
                if normalize_id(box.get("boxTypeId")) == quota.box_type_id
            )
            required = quota.target_value * box_count
            if actual != required:
                box_type = self.catalog.box_type(quota.box_type_id)
                category = self.catalog.category(quota.category_id)
                box_type_name = box_type.name if box_type and box_type.name else quota.box_type_id
                category_name = category.name if category else "Unknown Category"
                result.add(
                    QUOTA_MISMATCH,
                    f'Box type "{box_type_name}": category "{category_name}" requires exactly '
                    f"{required} quota value, but you have {actual}.",
                )

        for category in self.catalog.categories:
            required = category_required_value(category, BOXES, box_count)
            if required is None:
                continue
            actual = sum(self._weighted(box.get("items"), category.id) for box in boxes)
            if actual != required:
                result.add(
                    QUOTA_MISMATCH,
                    f"You must have a total of {required} {category.name} points, but you have {actual}.",
                )

        cap = self.limits.authorized_amount
        if cap and cap > 0 and box_count > cap:
            result.add(LIMIT_EXCEEDED, f"Order has {box_count} boxes, but only {cap} are authorized.")

    # --- Custom ---

    def _validate_custom(self, draft: Dict[str, Any], result: ValidationResult) -> None:
        vendor_id = normalize_id(draft.get("vendorId"))
        if not vendor_id:
            result.add(MISSING_REQUIRED_FIELD, "A vendor is required for Custom orders.")
        else:
            # Any active vendor may fulfil a Custom order
            self._check_vendor(vendor_id, None, result)

        items = draft.get("customItems")
        if not isinstance(items, list) or not items:
            result.add(MISSING_REQUIRED_FIELD, "At least one custom item is required.")
            return

        for index, item in enumerate(items, start=1):
            if not isinstance(item, dict):
                result.add(MISSING_REQUIRED_FIELD, f"Item #{index}: name, price and quantity are required.")
                continue
            if is_blank(item.get("name")):
                result.add(MISSING_REQUIRED_FIELD, f"Item #{index}: name is required.")
            price = to_decimal(item.get("price"))
            if price is None or price <= 0:
                result.add(MISSING_REQUIRED_FIELD, f"Item #{index}: price must be greater than 0.")
            if not _is_whole_at_least_one(item.get("quantity")):
                result.add(MISSING_REQUIRED_FIELD, f"Item #{index}: quantity must be a whole number of at least 1.")

    # --- Produce ---

    def _validate_produce(self, draft: Dict[str, Any], result: ValidationResult) -> None:
        amount = to_decimal(draft.get("billAmount"))
        if amount is None:
            result.add(MISSING_REQUIRED_FIELD, "Bill amount must be a number.")
        elif amount < 0:
            result.add(MISSING_REQUIRED_FIELD, f"Bill amount cannot be negative (got {amount}).")


def _is_whole_at_least_one(value: Any) -> bool:
    number = to_decimal(value)
    return number is not None and number == number.to_integral_value() and number >= Decimal(1)


def validate(
    draft: Dict[str, Any],
    limits: Optional[ClientLimits],
    catalog: Catalog,
) -> ValidationResult:
    """
    Validate a canonical draft.

    Args:
        draft: Canonical order request
        limits: Client meal allowance and box cap
        catalog: Reference data snapshot

    Returns:
        ValidationResult holding every violation found

    Raises:
        ValueError: If the draft's serviceType is not a known service type
    """
    return OrderRequestValidator(catalog, limits).validate(draft)
