"""Coercion helpers for the loosely-typed payloads the engine ingests."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from ..utils.logging import get_logger
from .catalog import normalize_id
from .constants import TIMESTAMP_FIELDS

logger = get_logger(__name__)


def positive_int(value: Any) -> Optional[int]:
    """Coerce a stored quantity to a positive int; None when it is not a whole number above 0."""
    number = to_decimal(value)
    if number is None:
        return None
    if number != number.to_integral_value():
        logger.debug(f"Rejecting non-integral quantity {value!r}")
        return None
    return int(number) if number > 0 else None


def to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    return number


def clean_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def order_timestamp(order: Dict[str, Any]) -> str:
    for key in TIMESTAMP_FIELDS:
        if order.get(key):
            return str(order[key])
    return ""


def newest_first(orders: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Order documents sorted by timestamp, newest first; undated ones keep their relative order at the end."""
    return sorted(
        (order for order in orders if isinstance(order, dict)),
        key=order_timestamp,
        reverse=True,
    )


def normalize_items(items: Any) -> Dict[str, int]:
    """Keep only positive integer quantities; zero or negative entries are dropped."""
    if not isinstance(items, dict):
        return {}
    normalized = {}
    for item_id, qty in items.items():
        quantity = positive_int(qty)
        if quantity is not None:
            normalized[normalize_id(item_id)] = quantity
    return normalized


def normalize_notes(notes: Any, items: Dict[str, int]) -> Dict[str, str]:
    if not isinstance(notes, dict):
        return {}
    return {
        normalize_id(item_id): str(text)
        for item_id, text in notes.items()
        if normalize_id(item_id) in items and clean_text(text)
    }


def normalize_selection(selection: Any) -> Optional[Dict[str, Any]]:
    """Normalize one vendor selection, or None when it is not a mapping."""
    if not isinstance(selection, dict):
        return None
    items = normalize_items(selection.get("items"))
    normalized = {
        "vendorId": normalize_id(selection.get("vendorId")),
        "items": items,
    }
    notes = normalize_notes(selection.get("itemNotes"), items)
    if notes:
        normalized["itemNotes"] = notes
    return normalized


def normalize_selections(selections: Any) -> List[Dict[str, Any]]:
    if not isinstance(selections, list):
        return []
    result = []
    for selection in selections:
        normalized = normalize_selection(selection)
        if normalized is not None:
            result.append(normalized)
    return result


def empty_selection(vendor_id: Optional[str] = None) -> Dict[str, Any]:
    return {"vendorId": vendor_id or "", "items": {}}


def carry_common_fields(source: Any, target: Dict[str, Any]) -> Dict[str, Any]:
    """Copy non-blank ``caseId`` and ``notes`` from a raw payload onto a draft."""
    if not isinstance(source, dict):
        return target
    for key in ("caseId", "notes"):
        text = clean_text(source.get(key))
        if text:
            target[key] = text
    return target
