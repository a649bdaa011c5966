"""Single-day vs per-delivery-day representation of Food orders."""

from __future__ import annotations

import copy
from typing import Any, Dict, Iterable, List, Optional

from .catalog import Vendor
from .constants import FOOD, WEEKDAYS
from .normalize import normalize_selections
from .vendors import is_blank, resolve_default_vendor


def _vendor_days(vendor_id: Any, vendors_by_id: Dict[str, Vendor]) -> tuple:
    vendor = vendors_by_id.get(str(vendor_id).strip()) if not is_blank(vendor_id) else None
    return vendor.delivery_days if vendor else ()


def _day_sort_key(day: str) -> tuple:
    # Unknown day labels sort after the weekdays, alphabetically
    return (WEEKDAYS.index(day), "") if day in WEEKDAYS else (len(WEEKDAYS), day)


def needs_multi_day(selections: List[Dict[str, Any]], vendors: Iterable[Vendor]) -> bool:
    """True when any selected vendor delivers on more than one day."""
    vendors_by_id = {v.id: v for v in vendors}
    return any(len(_vendor_days(sel.get("vendorId"), vendors_by_id)) > 1 for sel in selections)


def split_by_delivery_day(
    selections: List[Dict[str, Any]],
    vendors: Iterable[Vendor],
    base: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Lay Food selections out per delivery day when a vendor delivers more than once a week.

    Each day gets a copy of every selection whose vendor delivers that day,
    plus every selection that has no vendor yet.

    Args:
        selections: Food vendor selections
        vendors: Catalog vendors
        base: Draft whose other fields (caseId, notes) are carried over

    Returns:
        A Food draft in deliveryDayOrders or vendorSelections form
    """
    vendors = list(vendors)
    vendors_by_id = {v.id: v for v in vendors}
    draft = copy.deepcopy(base) if base else {}
    draft.pop("vendorSelections", None)
    draft.pop("deliveryDayOrders", None)
    draft["serviceType"] = FOOD

    if not needs_multi_day(selections, vendors):
        draft["vendorSelections"] = copy.deepcopy(selections)
        return draft

    days = set()
    for sel in selections:
        days.update(_vendor_days(sel.get("vendorId"), vendors_by_id))

    delivery_day_orders = {}
    for day in sorted(days, key=_day_sort_key):
        day_selections = [
            copy.deepcopy(sel)
            for sel in selections
            if is_blank(sel.get("vendorId")) or day in _vendor_days(sel.get("vendorId"), vendors_by_id)
        ]
        delivery_day_orders[day] = {"vendorSelections": day_selections}
    draft["deliveryDayOrders"] = delivery_day_orders
    return draft


def consolidate_delivery_days(draft: Dict[str, Any]) -> Dict[str, Any]:
    """Collapse deliveryDayOrders into weekly per-vendor totals."""
    consolidated = copy.deepcopy(draft)
    day_orders = consolidated.pop("deliveryDayOrders", None)
    if not isinstance(day_orders, dict):
        return consolidated

    by_vendor: Dict[str, Dict[str, Any]] = {}
    unassigned: List[Dict[str, Any]] = []
    for day_order in day_orders.values():
        for sel in normalize_selections((day_order or {}).get("vendorSelections")):
            if is_blank(sel["vendorId"]):
                # Empty placeholder rows are repeated on every day; keep one
                if sel["items"] or not unassigned:
                    unassigned.append(sel)
                continue
            target = by_vendor.setdefault(sel["vendorId"], {"vendorId": sel["vendorId"], "items": {}})
            for item_id, qty in sel["items"].items():
                target["items"][item_id] = target["items"].get(item_id, 0) + qty

    consolidated["vendorSelections"] = list(by_vendor.values()) + unassigned
    return consolidated


def update_day_selections(
    draft: Dict[str, Any],
    day: Optional[str],
    selections: List[Dict[str, Any]],
    vendors: Iterable[Vendor],
) -> Dict[str, Any]:
    """
    Replace the selections of one delivery day.

    A None day means the consolidated view: the first existing day is
    updated, or a day is created from the default Food vendor's first
    delivery day when none exists yet.
    """
    updated = copy.deepcopy(draft)
    new_selections = copy.deepcopy(selections)

    if "deliveryDayOrders" not in updated:
        if day is None:
            updated["vendorSelections"] = new_selections
        else:
            updated.pop("vendorSelections", None)
            updated["deliveryDayOrders"] = {day: {"vendorSelections": new_selections}}
        return updated

    day_orders = updated.get("deliveryDayOrders") or {}
    target = day
    if target is None and day_orders:
        target = next(iter(day_orders))
    if target is None:
        vendors = list(vendors)
        default_id = resolve_default_vendor(FOOD, vendors)
        default_days = _vendor_days(default_id, {v.id: v for v in vendors})
        target = default_days[0] if default_days else None

    if target is None:
        # No day to attach to: fall back to the single-day form
        updated.pop("deliveryDayOrders", None)
        updated["vendorSelections"] = new_selections
        return updated

    day_orders[target] = {"vendorSelections": new_selections}
    updated["deliveryDayOrders"] = day_orders
    return updated
