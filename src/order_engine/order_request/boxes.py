"""Multi-box editing for Boxes order requests.

Every operation returns a new draft. The ``boxOrders`` array of an edited
draft never becomes empty, and the top-level ``vendorId`` mirrors box 0 for
readers that still expect the single-box layout.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional

from ..utils.logging import get_logger
from .catalog import Catalog, normalize_id
from .constants import BOXES
from .normalize import normalize_items, normalize_notes, positive_int
from .vendors import is_blank, resolve_default_vendor

logger = get_logger(__name__)

BOX_FIELDS = ("vendorId", "boxTypeId", "quantity", "items", "itemNotes")


def normalize_box(entry: Dict[str, Any]) -> Dict[str, Any]:
    items = normalize_items(entry.get("items"))
    return {
        "boxTypeId": normalize_id(entry.get("boxTypeId")) or None,
        "vendorId": normalize_id(entry.get("vendorId")) or None,
        "quantity": positive_int(entry.get("quantity")) or 1,
        "items": items,
        "itemNotes": normalize_notes(entry.get("itemNotes"), items),
    }


def box_vendor(box: Dict[str, Any], catalog: Catalog) -> Optional[str]:
    """Vendor of a box, taken directly or through its box type."""
    if not is_blank(box.get("vendorId")):
        return normalize_id(box["vendorId"])
    box_type = catalog.box_type(box.get("boxTypeId")) if not is_blank(box.get("boxTypeId")) else None
    if box_type and box_type.vendor_id:
        return box_type.vendor_id
    return None


def recover_box_vendor(box: Dict[str, Any], catalog: Catalog) -> Dict[str, Any]:
    if is_blank(box.get("vendorId")):
        box["vendorId"] = box_vendor(box, catalog)
    return box


def default_box(catalog: Catalog) -> Dict[str, Any]:
    """An empty box seeded with the default Boxes vendor and the first active box type."""
    vendor_id = resolve_default_vendor(BOXES, catalog.vendors)
    box_type_id = None
    box_types = catalog.active_box_types()
    if box_types:
        box_type_id = box_types[0].id
        if box_types[0].vendor_id:
            vendor_id = box_types[0].vendor_id
    return {
        "boxTypeId": box_type_id,
        "vendorId": vendor_id,
        "quantity": 1,
        "items": {},
        "itemNotes": {},
    }


def total_box_count(boxes: List[Dict[str, Any]]) -> int:
    return sum(positive_int(box.get("quantity")) or 1 for box in boxes)


def sync_legacy_mirror(draft: Dict[str, Any]) -> Dict[str, Any]:
    boxes = draft.get("boxOrders") or []
    draft["vendorId"] = boxes[0].get("vendorId") if boxes else None
    return draft


def _editable(draft: Dict[str, Any]) -> Dict[str, Any]:
    updated = copy.deepcopy(draft)
    if not isinstance(updated.get("boxOrders"), list):
        updated["boxOrders"] = []
    return updated


def _box_at(draft: Dict[str, Any], index: int) -> Dict[str, Any]:
    boxes = draft["boxOrders"]
    if not 0 <= index < len(boxes):
        raise IndexError(f"Box index {index} out of range for {len(boxes)} box(es)")
    return boxes[index]


def add_box(
    draft: Dict[str, Any],
    catalog: Catalog,
    authorized_amount: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Append a default box, unless the client's box cap is already reached.

    Args:
        draft: Canonical Boxes draft
        catalog: Reference data snapshot
        authorized_amount: Maximum number of boxes; None or <= 0 means no cap

    Returns:
        New draft (unchanged copy when at the cap)
    """
    updated = _editable(draft)
    boxes = updated["boxOrders"]
    if authorized_amount and authorized_amount > 0 and total_box_count(boxes) >= authorized_amount:
        logger.info(f"Box cap of {authorized_amount} reached; not adding a box")
        return sync_legacy_mirror(updated)
    boxes.append(default_box(catalog))
    return sync_legacy_mirror(updated)


def remove_box(draft: Dict[str, Any], index: int, catalog: Catalog) -> Dict[str, Any]:
    """Delete a box; the last remaining box is reset to a default box instead."""
    updated = _editable(draft)
    boxes = updated["boxOrders"]
    if not boxes:
        boxes.append(default_box(catalog))
        return sync_legacy_mirror(updated)
    _box_at(updated, index)
    if len(boxes) > 1:
        del boxes[index]
    else:
        boxes[index] = default_box(catalog)
    return sync_legacy_mirror(updated)


def update_box(
    draft: Dict[str, Any],
    index: int,
    field: str,
    value: Any,
    catalog: Catalog,
) -> Dict[str, Any]:
    """
    Set one field of a box.

    A blank vendorId falls back to the default Boxes vendor; a vendor change
    picks that vendor's first active box type. Setting boxTypeId pulls the
    vendor from the box type when it has one.
    """
    if field not in BOX_FIELDS:
        raise ValueError(f"Unknown box field {field!r}; expected one of {', '.join(BOX_FIELDS)}")
    updated = _editable(draft)
    box = _box_at(updated, index)

    if field == "vendorId":
        vendor_id = normalize_id(value)
        if not vendor_id:
            vendor_id = resolve_default_vendor(BOXES, catalog.vendors)
        box["vendorId"] = vendor_id
        if vendor_id:
            _assign_box_type_for_vendor(box, vendor_id, catalog)
    elif field == "boxTypeId":
        box["boxTypeId"] = normalize_id(value) or None
        box_type = catalog.box_type(box["boxTypeId"]) if box["boxTypeId"] else None
        if box_type and box_type.vendor_id:
            box["vendorId"] = box_type.vendor_id
    elif field == "quantity":
        box["quantity"] = positive_int(value) or 1
    elif field == "items":
        box["items"] = normalize_items(value)
        box["itemNotes"] = normalize_notes(box.get("itemNotes"), box["items"])
    else:
        box["itemNotes"] = normalize_notes(value, box.get("items") or {})

    return sync_legacy_mirror(updated)


def _assign_box_type_for_vendor(box: Dict[str, Any], vendor_id: str, catalog: Catalog) -> None:
    current = catalog.box_type(box.get("boxTypeId")) if box.get("boxTypeId") else None
    if current and current.is_active and current.vendor_id == vendor_id:
        return
    for box_type in catalog.active_box_types():
        if box_type.vendor_id == vendor_id:
            box["boxTypeId"] = box_type.id
            return
    if current and current.vendor_id and current.vendor_id != vendor_id:
        box["boxTypeId"] = None


def update_box_item(
    draft: Dict[str, Any],
    index: int,
    item_id: str,
    quantity: Any,
    note: Optional[str] = None,
) -> Dict[str, Any]:
    """Set an item quantity in a box; zero or less removes the item and its note."""
    updated = _editable(draft)
    box = _box_at(updated, index)
    items = box.setdefault("items", {})
    notes = box.setdefault("itemNotes", {})
    item_id = normalize_id(item_id)

    qty = positive_int(quantity)
    if qty is None:
        items.pop(item_id, None)
        notes.pop(item_id, None)
    else:
        items[item_id] = qty
        if note is not None:
            if note.strip():
                notes[item_id] = note
            else:
                notes.pop(item_id, None)

    return sync_legacy_mirror(updated)
