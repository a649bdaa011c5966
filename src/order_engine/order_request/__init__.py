"""Order request reconciliation and validation engine."""

from .boxes import add_box, remove_box, update_box, update_box_item
from .canonicalize import OrderSources, canonicalize
from .catalog import BoxQuota, BoxType, Catalog, Category, ClientLimits, MenuItem, Vendor
from .delivery_days import (
    consolidate_delivery_days,
    needs_multi_day,
    split_by_delivery_day,
    update_day_selections,
)
from .merge import merge_confirmed
from .repository import ClientOrderRepository
from .service import OrderRequestService, run_load_cycle
from .stored import to_stored
from .validation import OrderRequestValidator, ValidationResult, validate
from .vendors import resolve_default_vendor

__all__ = [
    "BoxQuota",
    "BoxType",
    "Catalog",
    "Category",
    "ClientLimits",
    "ClientOrderRepository",
    "MenuItem",
    "OrderRequestService",
    "OrderRequestValidator",
    "OrderSources",
    "ValidationResult",
    "Vendor",
    "add_box",
    "canonicalize",
    "consolidate_delivery_days",
    "merge_confirmed",
    "needs_multi_day",
    "remove_box",
    "resolve_default_vendor",
    "run_load_cycle",
    "split_by_delivery_day",
    "to_stored",
    "update_box",
    "update_box_item",
    "update_day_selections",
    "validate",
]
