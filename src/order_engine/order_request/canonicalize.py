"""Format canonicalization for persisted order requests.

Order requests have been written in several shapes over the life of the
system (day-keyed maps, single-vendor Food orders, single-box Boxes orders,
flat Custom name/price pairs). ``canonicalize`` turns any of them into the one
draft shape per service type that editing and validation work on.

Where more than one source could supply the data, sources are tried in a
fixed priority order; each attempt either returns a populated result or
``None`` to hand over to the next one.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from ..utils.logging import get_logger
from .boxes import default_box, normalize_box, recover_box_vendor, sync_legacy_mirror
from .catalog import Catalog, normalize_id
from .constants import (
    BOXES,
    CUSTOM,
    FOOD,
    PRODUCE,
    WEEKDAYS,
    require_service_type,
)
from .normalize import (
    carry_common_fields,
    clean_text,
    empty_selection,
    newest_first,
    normalize_items,
    normalize_selections,
    positive_int,
    to_decimal,
)
from .vendors import fill_default_vendor, is_blank

logger = get_logger(__name__)


@dataclass
class OrderSources:
    """Already-fetched collaborator data the canonicalizer may fall back on."""

    client_id: Optional[str] = None
    # Separately stored active-order snapshot for the client
    active_order: Optional[Dict[str, Any]] = None
    # Independent box-order store, keyed by client id
    box_order_lookup: Optional[Callable[[str], Optional[List[Dict[str, Any]]]]] = None
    confirmed_orders: List[Dict[str, Any]] = field(default_factory=list)
    order_history: List[Dict[str, Any]] = field(default_factory=list)
    # New client or service-type switch
    initializing: bool = False


def canonicalize(
    raw: Any,
    service_type: str,
    catalog: Catalog,
    sources: Optional[OrderSources] = None,
) -> Dict[str, Any]:
    """
    Build the canonical draft for a client's declared service type.

    Args:
        raw: Persisted order payload in any historical shape (may be None)
        service_type: The client's declared service type
        catalog: Reference data snapshot
        sources: Collaborator data used by the Boxes and Custom fallbacks

    Returns:
        A new canonical draft; ``raw`` is never modified

    Raises:
        ValueError: If ``service_type`` is not a known service type
    """
    require_service_type(service_type)
    sources = sources or OrderSources()
    payload = copy.deepcopy(raw) if isinstance(raw, dict) else {}
    return _CANONICALIZERS[service_type](payload, catalog, sources)


# --- Food ---


def _looks_like_order(value: Any) -> bool:
    return isinstance(value, dict) and ("serviceType" in value or "id" in value)


def _is_day_keyed(raw: Dict[str, Any]) -> bool:
    if not raw or "serviceType" in raw or "deliveryDayOrders" in raw:
        return False
    return any(key in WEEKDAYS and _looks_like_order(value) for key, value in raw.items())


def _day_orders_from_day_keyed(raw: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    day_orders = {}
    for day, entry in raw.items():
        if day not in WEEKDAYS or not _looks_like_order(entry):
            continue
        if entry.get("serviceType") != FOOD:
            logger.debug(f"Dropping non-Food entry for {day} from day-keyed order")
            continue
        selections = normalize_selections(
            entry.get("vendorSelections") or entry.get("vendor_selections")
        )
        if selections:
            day_orders[day] = {"vendorSelections": selections}
    return day_orders


def _day_orders_from_delivery_day_orders(raw: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    source = raw.get("deliveryDayOrders")
    if not isinstance(source, dict):
        return {}
    day_orders = {}
    for day, entry in source.items():
        if not isinstance(entry, dict):
            continue
        is_food_like = entry.get("serviceType") == FOOD or isinstance(entry.get("vendorSelections"), list)
        if not is_food_like:
            continue
        selections = normalize_selections(entry.get("vendorSelections"))
        if selections:
            day_orders[str(day)] = {"vendorSelections": selections}
    return day_orders


def _day_entries(raw: Dict[str, Any], service_type: str) -> List[Dict[str, Any]]:
    return [
        entry for day, entry in raw.items()
        if day in WEEKDAYS and isinstance(entry, dict) and entry.get("serviceType") == service_type
    ]


def _first_case_id(raw: Dict[str, Any], service_type: str) -> str:
    for entry in _day_entries(raw, service_type):
        case_id = clean_text(entry.get("caseId"))
        if case_id:
            return case_id
    return ""


def _food_from_active_order(active_order: Dict[str, Any]) -> Dict[str, Any]:
    """Fold a multi-order active snapshot ({multiple, orders}) into the deliveryDayOrders shape."""
    orders = active_order.get("orders")
    if active_order.get("multiple") is not True or not isinstance(orders, list):
        return active_order

    orders = [order for order in orders if isinstance(order, dict)]
    day_orders = {}
    for order in orders:
        day = order.get("scheduledDeliveryDate") or order.get("deliveryDay") or order.get("id")
        selections = order.get("vendorSelections")
        if day and isinstance(selections, list) and selections:
            day_orders[str(day)] = {"vendorSelections": selections}

    if day_orders:
        folded = {"serviceType": FOOD, "deliveryDayOrders": day_orders}
        if orders[0].get("caseId"):
            folded["caseId"] = orders[0]["caseId"]
        return folded
    return dict(orders[0], serviceType=FOOD) if orders else {}


def _canonicalize_food(raw: Dict[str, Any], catalog: Catalog, sources: OrderSources) -> Dict[str, Any]:
    if not raw and isinstance(sources.active_order, dict):
        logger.debug("No upcoming Food order; using the active order snapshot")
        raw = _food_from_active_order(copy.deepcopy(sources.active_order))

    draft = carry_common_fields(raw, {"serviceType": FOOD})
    day_orders: Dict[str, Dict[str, Any]] = {}
    selections: List[Dict[str, Any]] = []

    if _is_day_keyed(raw):
        logger.debug("Food order is in the legacy day-keyed format")
        day_orders = _day_orders_from_day_keyed(raw)
        case_id = _first_case_id(raw, FOOD)
        if case_id and "caseId" not in draft:
            draft["caseId"] = case_id
    elif "deliveryDayOrders" in raw:
        day_orders = _day_orders_from_delivery_day_orders(raw)
    elif raw.get("serviceType") == FOOD and not raw.get("vendorSelections"):
        # Legacy single-vendor order: vendorId + menuSelections
        vendor_id = normalize_id(raw.get("vendorId"))
        if vendor_id:
            selections = [{"vendorId": vendor_id, "items": normalize_items(raw.get("menuSelections"))}]
    else:
        selections = normalize_selections(raw.get("vendorSelections"))

    if day_orders:
        for day_order in day_orders.values():
            fill_default_vendor(day_order["vendorSelections"], FOOD, catalog.vendors)
        draft["deliveryDayOrders"] = day_orders
        return draft

    if not selections:
        selections = [empty_selection()]
    draft["vendorSelections"] = fill_default_vendor(selections, FOOD, catalog.vendors)
    return draft


# --- Boxes ---


def _normalize_boxes(entries: Any) -> Optional[List[Dict[str, Any]]]:
    if not isinstance(entries, list):
        return None
    boxes = [normalize_box(entry) for entry in entries if isinstance(entry, dict)]
    return boxes or None


def _boxes_from_input(raw: Dict[str, Any], sources: OrderSources) -> Optional[List[Dict[str, Any]]]:
    entries = raw.get("boxOrders")
    if not entries:
        # Older drafts kept the array under "boxes"
        entries = raw.get("boxes")
    return _normalize_boxes(entries)


def _boxes_from_day_keyed(raw: Dict[str, Any], sources: OrderSources) -> Optional[List[Dict[str, Any]]]:
    if not _is_day_keyed(raw):
        return None
    entries = _day_entries(raw, BOXES)
    if not entries:
        return None
    # The first Boxes day carries the whole configuration
    return _boxes_from_input(entries[0], sources) or _boxes_from_legacy_fields(entries[0], sources)


def _boxes_from_active_order(raw: Dict[str, Any], sources: OrderSources) -> Optional[List[Dict[str, Any]]]:
    if not isinstance(sources.active_order, dict):
        return None
    return _normalize_boxes(copy.deepcopy(sources.active_order.get("boxOrders")))


def _boxes_from_legacy_fields(raw: Dict[str, Any], sources: OrderSources) -> Optional[List[Dict[str, Any]]]:
    items = normalize_items(raw.get("items"))
    if is_blank(raw.get("boxTypeId")) and is_blank(raw.get("vendorId")) and not items:
        return None
    return [
        normalize_box(
            {
                "boxTypeId": raw.get("boxTypeId"),
                "vendorId": raw.get("vendorId"),
                "quantity": raw.get("boxQuantity"),
                "items": items,
                "itemNotes": raw.get("itemNotes"),
            }
        )
    ]


def _boxes_from_store(raw: Dict[str, Any], sources: OrderSources) -> Optional[List[Dict[str, Any]]]:
    if sources.box_order_lookup is None or is_blank(sources.client_id):
        return None
    return _normalize_boxes(sources.box_order_lookup(sources.client_id))


_BOX_SOURCES = (
    ("input boxOrders", _boxes_from_input),
    ("day-keyed Boxes entry", _boxes_from_day_keyed),
    ("active order snapshot", _boxes_from_active_order),
    ("legacy single-box fields", _boxes_from_legacy_fields),
    ("box order store", _boxes_from_store),
)


def _is_corrupt(boxes: List[Dict[str, Any]]) -> bool:
    return all(is_blank(box.get("vendorId")) and is_blank(box.get("boxTypeId")) for box in boxes)


def _canonicalize_boxes(raw: Dict[str, Any], catalog: Catalog, sources: OrderSources) -> Dict[str, Any]:
    draft = carry_common_fields(raw, {"serviceType": BOXES})
    if _is_day_keyed(raw):
        case_id = _first_case_id(raw, BOXES)
        if case_id and "caseId" not in draft:
            draft["caseId"] = case_id
    boxes = None

    for label, attempt in _BOX_SOURCES:
        candidate = attempt(raw, sources)
        if not candidate:
            continue
        candidate = [recover_box_vendor(box, catalog) for box in candidate]
        if _is_corrupt(candidate):
            logger.warning(f"Discarding Boxes configuration from {label}: no box has a vendor or box type")
            continue
        logger.debug(f"Boxes configuration taken from {label}")
        boxes = candidate
        break

    if boxes is None:
        box = default_box(catalog)
        boxes = [] if _is_corrupt([box]) else [box]
        logger.debug(f"No usable Boxes configuration found; synthesized {len(boxes)} default box(es)")

    draft["boxOrders"] = boxes
    return sync_legacy_mirror(draft)


# --- Custom ---


def _normalize_custom_item(payload: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(payload, dict):
        return None
    name = clean_text(payload.get("name") or payload.get("custom_name"))
    price = to_decimal(payload.get("price") if payload.get("price") is not None else payload.get("custom_price"))
    quantity = positive_int(payload.get("quantity", 1))
    if not name or price is None or price <= 0 or quantity is None:
        return None
    return {"name": name, "price": price, "quantity": quantity}


def _selection_item_payloads(selections: Any) -> List[Any]:
    payloads = []
    if not isinstance(selections, list):
        return payloads
    for selection in selections:
        if not isinstance(selection, dict):
            continue
        items = selection.get("items")
        if isinstance(items, dict):
            payloads.extend(items.values())
        elif isinstance(items, list):
            payloads.extend(items)
    return payloads


def _first_selection_vendor(selections: Any) -> str:
    if isinstance(selections, list):
        for selection in selections:
            if isinstance(selection, dict) and not is_blank(selection.get("vendorId")):
                return normalize_id(selection["vendorId"])
    return ""


def _extract_custom_items(order: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Read items from whichever of the three stored encodings yields any."""
    details = order.get("orderDetails") if isinstance(order.get("orderDetails"), dict) else {}
    encodings = (
        order.get("customItems") if isinstance(order.get("customItems"), list) else [],
        _selection_item_payloads(order.get("vendorSelections")),
        _selection_item_payloads(details.get("vendorSelections")),
    )
    for payloads in encodings:
        items = [item for item in (_normalize_custom_item(p) for p in payloads) if item is not None]
        if items:
            return items
    return []


def _order_vendor(order: Dict[str, Any]) -> str:
    details = order.get("orderDetails") if isinstance(order.get("orderDetails"), dict) else {}
    return (
        normalize_id(order.get("vendorId"))
        or _first_selection_vendor(order.get("vendorSelections"))
        or _first_selection_vendor(details.get("vendorSelections"))
    )


def _custom_candidates(raw: Dict[str, Any], sources: OrderSources) -> List[Dict[str, Any]]:
    confirmed = [order for order in newest_first(sources.confirmed_orders) if order.get("serviceType") == CUSTOM]
    history = [
        order for order in sources.order_history
        if isinstance(order, dict) and order.get("serviceType") == CUSTOM
    ]
    return [raw] + confirmed + history


def _legacy_custom_items(raw: Dict[str, Any]) -> List[Dict[str, Any]]:
    if is_blank(raw.get("custom_name")):
        return []
    item = _normalize_custom_item(
        {"name": raw.get("custom_name"), "price": raw.get("custom_price"), "quantity": raw.get("quantity", 1)}
    )
    return [item] if item else []


def _canonicalize_custom(raw: Dict[str, Any], catalog: Catalog, sources: OrderSources) -> Dict[str, Any]:
    draft = carry_common_fields(raw, {"serviceType": CUSTOM})
    vendor_id = normalize_id(raw.get("vendorId"))
    custom_items = raw.get("customItems") if isinstance(raw.get("customItems"), list) else []

    if vendor_id and custom_items:
        draft["vendorId"] = vendor_id
        draft["customItems"] = custom_items
        return draft

    initializing = (
        sources.initializing
        or not raw
        or raw.get("serviceType") not in (None, CUSTOM)
    )

    if not custom_items:
        custom_items = _legacy_custom_items(raw)

    if initializing and not custom_items:
        for order in _custom_candidates(raw, sources):
            items = _extract_custom_items(order)
            if items:
                custom_items = items
                vendor_id = vendor_id or _order_vendor(order)
                logger.debug(f"Custom items auto-populated from a previous order ({len(items)} item(s))")
                break

    draft["vendorId"] = vendor_id
    draft["customItems"] = custom_items
    return draft


# --- Produce ---


def _canonicalize_produce(raw: Dict[str, Any], catalog: Catalog, sources: OrderSources) -> Dict[str, Any]:
    draft = carry_common_fields(raw, {"serviceType": PRODUCE})
    amount = to_decimal(raw.get("billAmount"))
    draft["billAmount"] = amount if amount is not None else Decimal("0")
    return draft


_CANONICALIZERS = {
    FOOD: _canonicalize_food,
    BOXES: _canonicalize_boxes,
    CUSTOM: _canonicalize_custom,
    PRODUCE: _canonicalize_produce,
}
