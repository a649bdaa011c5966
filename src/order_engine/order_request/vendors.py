"""Default vendor resolution.

The fallback chain is evaluated on every call against the vendors passed in;
nothing is cached.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from .catalog import Vendor
from .constants import require_service_type


def is_blank(value: Any) -> bool:
    """True for None and empty/whitespace-only strings."""
    return value is None or not str(value).strip()


def resolve_default_vendor(service_type: str, vendors: Iterable[Vendor]) -> Optional[str]:
    """
    Pick the fallback vendor id for a service type.

    Order of preference:
    1. Active vendor flagged as default that serves the service type
    2. First active vendor (input order) that serves the service type
    3. First active vendor of any type
    4. None when there are no active vendors

    Args:
        service_type: One of the four service types
        vendors: Catalog vendors, in catalog order

    Returns:
        The chosen vendor id, or None
    """
    require_service_type(service_type)
    active = [v for v in vendors if v.is_active]

    for vendor in active:
        if vendor.is_default and vendor.supports(service_type):
            return vendor.id
    for vendor in active:
        if vendor.supports(service_type):
            return vendor.id
    if active:
        return active[0].id
    return None


def fill_default_vendor(
    selections: List[Dict[str, Any]],
    service_type: str,
    vendors: Iterable[Vendor],
) -> List[Dict[str, Any]]:
    """Fill blank ``vendorId`` slots in place; populated selections are never touched."""
    if not any(is_blank(sel.get("vendorId")) for sel in selections):
        return selections
    default_id = resolve_default_vendor(service_type, vendors)
    if default_id is None:
        return selections
    for sel in selections:
        if is_blank(sel.get("vendorId")):
            sel["vendorId"] = default_id
    return selections
