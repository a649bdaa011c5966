"""Read-only reference data consumed by the order request engine.

Records arrive as plain documents (MongoDB rows, JSON snapshots) with
camelCase keys; the ``from_dict`` parsers accept both camelCase and the
snake_case column names used by older exports.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from .constants import SERVICE_TYPES


def normalize_id(obj_id: Any) -> str:
    """Normalize ObjectId / extended-JSON ids to plain strings."""
    if obj_id is None:
        return ""
    if isinstance(obj_id, dict) and "$oid" in obj_id:
        return str(obj_id["$oid"])
    return str(obj_id).strip()


def _first(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_decimal(value: Any, default: str = "0") -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal(default)


def _normalize_service_types(raw: Any) -> List[str]:
    if isinstance(raw, str):
        raw = raw.split(",")
    types = []
    for value in raw or []:
        text = str(value).strip().lower()
        for known in SERVICE_TYPES:
            if known.lower() == text and known not in types:
                types.append(known)
    return types


@dataclass(frozen=True)
class Vendor:
    id: str
    name: str = ""
    is_active: bool = True
    is_default: bool = False
    service_types: tuple = ()
    minimum_meals: int = 0
    delivery_days: tuple = ()
    cutoff_hours: int = 0

    @property
    def display_name(self) -> str:
        return self.name or self.id

    def supports(self, service_type: str) -> bool:
        return service_type in self.service_types

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Vendor":
        return cls(
            id=normalize_id(_first(data, "id", "_id")),
            name=str(_first(data, "name", default="")),
            is_active=bool(_first(data, "isActive", "is_active", default=True)),
            is_default=bool(_first(data, "isDefault", "is_default", default=False)),
            service_types=tuple(_normalize_service_types(_first(data, "serviceTypes", "service_types", "serviceType"))),
            minimum_meals=max(0, _as_int(_first(data, "minimumMeals", "minimum_meals", default=0))),
            delivery_days=tuple(str(day) for day in _first(data, "deliveryDays", "delivery_days", default=[]) or []),
            cutoff_hours=_as_int(_first(data, "cutoffHours", "cutoff_hours", default=0)),
        )


@dataclass(frozen=True)
class MenuItem:
    id: str
    name: str = ""
    vendor_id: Optional[str] = None
    category_id: Optional[str] = None
    is_active: bool = True
    quota_value: int = 1
    price: Decimal = Decimal("0")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MenuItem":
        vendor_id = _first(data, "vendorId", "vendor_id")
        category_id = _first(data, "categoryId", "category_id")
        quota_value = _as_int(_first(data, "quotaValue", "quota_value", "value", default=1), default=1)
        return cls(
            id=normalize_id(_first(data, "id", "_id")),
            name=str(_first(data, "name", default="")),
            vendor_id=normalize_id(vendor_id) or None,
            category_id=normalize_id(category_id) or None,
            is_active=bool(_first(data, "isActive", "is_active", default=True)),
            # Weight of one unit in meal-equivalents; a missing or zero weight counts as 1
            quota_value=quota_value if quota_value >= 1 else 1,
            price=_as_decimal(_first(data, "price", "priceEach", default="0")),
        )


@dataclass(frozen=True)
class Category:
    id: str
    name: str = ""
    set_value: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Category":
        set_value = _first(data, "setValue", "set_value")
        return cls(
            id=normalize_id(_first(data, "id", "_id")),
            name=str(_first(data, "name", default="")),
            set_value=_as_int(set_value) if set_value is not None else None,
        )


@dataclass(frozen=True)
class BoxType:
    id: str
    name: str = ""
    vendor_id: Optional[str] = None
    is_active: bool = True
    price_each: Decimal = Decimal("0")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BoxType":
        vendor_id = _first(data, "vendorId", "vendor_id")
        return cls(
            id=normalize_id(_first(data, "id", "_id")),
            name=str(_first(data, "name", default="")),
            vendor_id=normalize_id(vendor_id) or None,
            is_active=bool(_first(data, "isActive", "is_active", default=True)),
            price_each=_as_decimal(_first(data, "priceEach", "price_each", default="0")),
        )


@dataclass(frozen=True)
class BoxQuota:
    box_type_id: str
    category_id: str
    target_value: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BoxQuota":
        return cls(
            box_type_id=normalize_id(_first(data, "boxTypeId", "box_type_id")),
            category_id=normalize_id(_first(data, "categoryId", "category_id")),
            target_value=_as_int(_first(data, "targetValue", "target_value", default=0)),
        )


@dataclass(frozen=True)
class Catalog:
    """Snapshot of vendors, items, categories, box types and box quotas."""

    vendors: tuple = ()
    menu_items: tuple = ()
    categories: tuple = ()
    box_types: tuple = ()
    box_quotas: tuple = ()

    def __post_init__(self) -> None:
        # Frozen dataclass: index once, bypassing __setattr__
        object.__setattr__(self, "_vendors_by_id", {v.id: v for v in self.vendors})
        object.__setattr__(self, "_items_by_id", {i.id: i for i in self.menu_items})
        object.__setattr__(self, "_categories_by_id", {c.id: c for c in self.categories})
        object.__setattr__(self, "_box_types_by_id", {b.id: b for b in self.box_types})

    def vendor(self, vendor_id: Optional[str]) -> Optional[Vendor]:
        return self._vendors_by_id.get(normalize_id(vendor_id))

    def menu_item(self, item_id: Optional[str]) -> Optional[MenuItem]:
        return self._items_by_id.get(normalize_id(item_id))

    def category(self, category_id: Optional[str]) -> Optional[Category]:
        return self._categories_by_id.get(normalize_id(category_id))

    def box_type(self, box_type_id: Optional[str]) -> Optional[BoxType]:
        return self._box_types_by_id.get(normalize_id(box_type_id))

    def active_box_types(self) -> List[BoxType]:
        return [bt for bt in self.box_types if bt.is_active]

    def quota_value(self, item_id: str) -> int:
        """Meal-equivalent weight of one unit of an item; unknown items weigh 1."""
        item = self.menu_item(item_id)
        return item.quota_value if item else 1

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Catalog":
        data = data or {}
        return cls(
            vendors=tuple(Vendor.from_dict(v) for v in data.get("vendors") or []),
            menu_items=tuple(MenuItem.from_dict(i) for i in _first(data, "menuItems", "menu_items", default=[])),
            categories=tuple(Category.from_dict(c) for c in data.get("categories") or []),
            box_types=tuple(BoxType.from_dict(b) for b in _first(data, "boxTypes", "box_types", default=[])),
            box_quotas=tuple(BoxQuota.from_dict(q) for q in _first(data, "boxQuotas", "box_quotas", default=[])),
        )


@dataclass(frozen=True)
class ClientLimits:
    approved_meals_per_week: int = 0
    # Box-count cap for Boxes clients, not a currency amount
    authorized_amount: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ClientLimits":
        data = data or {}
        authorized = _first(data, "authorizedAmount", "authorized_amount")
        return cls(
            approved_meals_per_week=_as_int(_first(data, "approvedMealsPerWeek", "approved_meals_per_week", default=0)),
            authorized_amount=_as_int(authorized) if authorized is not None else None,
        )
