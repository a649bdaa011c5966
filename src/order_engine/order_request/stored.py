"""Reduce a canonical draft to the payload handed to the persistence layer.

Only the fields allowed for the draft's service type are kept, and decimals
become floats so the payload is JSON-serializable.
"""

from __future__ import annotations

from typing import Any, Dict, List

from .catalog import normalize_id
from .constants import BOXES, CUSTOM, FOOD, PRODUCE, require_service_type
from .normalize import clean_text, normalize_selections, positive_int, to_decimal
from .boxes import normalize_box


def _common(draft: Dict[str, Any], service_type: str) -> Dict[str, Any]:
    stored = {"serviceType": service_type}
    for key in ("caseId", "notes"):
        text = clean_text(draft.get(key))
        if text:
            stored[key] = text
    return stored


def _stored_selections(selections: Any) -> List[Dict[str, Any]]:
    return [sel for sel in normalize_selections(selections) if sel["vendorId"]]


def _to_stored_food(draft: Dict[str, Any]) -> Dict[str, Any]:
    stored = _common(draft, FOOD)
    day_orders = draft.get("deliveryDayOrders")
    if isinstance(day_orders, dict):
        days = {}
        for day, order in day_orders.items():
            selections = _stored_selections((order or {}).get("vendorSelections"))
            if selections:
                days[day] = {"vendorSelections": selections}
        if days:
            stored["deliveryDayOrders"] = days
        return stored
    selections = _stored_selections(draft.get("vendorSelections"))
    if selections:
        stored["vendorSelections"] = selections
    return stored


def _to_stored_boxes(draft: Dict[str, Any]) -> Dict[str, Any]:
    stored = _common(draft, BOXES)
    boxes = []
    for entry in draft.get("boxOrders") or []:
        if not isinstance(entry, dict):
            continue
        box = {key: value for key, value in normalize_box(entry).items() if value not in (None, {})}
        boxes.append(box)
    stored["boxOrders"] = boxes
    return stored


def _to_stored_custom(draft: Dict[str, Any]) -> Dict[str, Any]:
    stored = _common(draft, CUSTOM)
    vendor_id = normalize_id(draft.get("vendorId"))
    if vendor_id:
        stored["vendorId"] = vendor_id

    items = []
    for entry in draft.get("customItems") or []:
        if not isinstance(entry, dict):
            continue
        name = clean_text(entry.get("name"))
        price = to_decimal(entry.get("price"))
        if not name:
            continue
        items.append(
            {
                "name": name,
                "price": float(price) if price is not None else 0.0,
                "quantity": positive_int(entry.get("quantity")) or 0,
            }
        )
    stored["customItems"] = items

    # Single-item mirror kept for readers of the older custom_name/custom_price columns
    primary = next((item for item in items if item["quantity"] > 0), items[0] if items else None)
    if primary:
        stored["custom_name"] = primary["name"]
        stored["custom_price"] = primary["price"]
    return stored


def _to_stored_produce(draft: Dict[str, Any]) -> Dict[str, Any]:
    stored = _common(draft, PRODUCE)
    amount = to_decimal(draft.get("billAmount"))
    if amount is not None:
        stored["billAmount"] = float(amount)
    return stored


def to_stored(draft: Dict[str, Any]) -> Dict[str, Any]:
    """Stored payload for a canonical draft; raises ValueError for an unknown serviceType."""
    service_type = require_service_type(draft.get("serviceType"))
    return {
        FOOD: _to_stored_food,
        BOXES: _to_stored_boxes,
        CUSTOM: _to_stored_custom,
        PRODUCE: _to_stored_produce,
    }[service_type](draft)
