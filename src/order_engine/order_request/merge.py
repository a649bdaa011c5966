"""Fold the client's last confirmed order into a freshly loaded draft."""

from __future__ import annotations

import copy
from typing import Any, Dict, Optional

from ..utils.logging import get_logger
from .normalize import normalize_selections

logger = get_logger(__name__)


def merge_confirmed(draft: Dict[str, Any], confirmed: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Merge a confirmed order's vendor selections into every delivery day of a draft.

    Matching vendors have their item quantities summed key-wise; vendors the
    day does not have yet are appended. Nothing is removed or decreased.

    The merge adds quantities, so it must run exactly once per load cycle,
    right after canonicalization and before any edit is recorded.

    Args:
        draft: Canonical draft; only the deliveryDayOrders form is merged into
        confirmed: Confirmed order snapshot with vendorSelections (may be None)

    Returns:
        A new draft; an unchanged copy when there is nothing to merge
    """
    merged = copy.deepcopy(draft)
    day_orders = merged.get("deliveryDayOrders")
    if not isinstance(day_orders, dict) or not isinstance(confirmed, dict):
        return merged

    confirmed_selections = normalize_selections(copy.deepcopy(confirmed.get("vendorSelections")))
    if not confirmed_selections:
        return merged

    for day, day_order in day_orders.items():
        selections = day_order.setdefault("vendorSelections", [])
        for confirmed_sel in confirmed_selections:
            match = next(
                (sel for sel in selections if sel.get("vendorId") == confirmed_sel["vendorId"]),
                None,
            )
            if match is None:
                selections.append(copy.deepcopy(confirmed_sel))
                continue
            items = match.get("items") if isinstance(match.get("items"), dict) else {}
            for item_id, qty in confirmed_sel["items"].items():
                items[item_id] = items.get(item_id, 0) + qty
            match["items"] = items
        logger.debug(f"Merged {len(confirmed_selections)} confirmed selection(s) into {day}")

    return merged
