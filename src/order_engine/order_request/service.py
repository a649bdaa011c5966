"""Load cycle for a client's order request: canonicalize, merge once, validate."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..utils.logging import get_logger
from .canonicalize import OrderSources, canonicalize
from .catalog import Catalog, ClientLimits, normalize_id
from .constants import FOOD, require_service_type
from .merge import merge_confirmed
from .normalize import newest_first
from .repository import ClientOrderRepository
from .validation import validate

logger = get_logger(__name__)


def latest_confirmed_food_order(confirmed_orders: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Most recent confirmed order carrying Food vendor selections, whatever order the input is in."""
    for order in newest_first(confirmed_orders):
        if order.get("serviceType") not in (None, FOOD):
            continue
        if isinstance(order.get("vendorSelections"), list) and order["vendorSelections"]:
            return order
    return None


def run_load_cycle(
    client: Dict[str, Any],
    catalog: Catalog,
    confirmed_orders: Optional[List[Dict[str, Any]]] = None,
    order_history: Optional[List[Dict[str, Any]]] = None,
    box_order_lookup=None,
) -> Dict[str, Any]:
    """
    Build and validate the draft for one client from already-fetched data.

    The confirmed order is merged here and only here, once per load.

    Args:
        client: Client document (serviceType, upcomingOrder, activeOrder, limits)
        catalog: Reference data snapshot
        confirmed_orders: Confirmed orders; sorted by timestamp here
        order_history: Past orders of any status
        box_order_lookup: Callable reading the independent box-order store

    Returns:
        Dict with client_id, service_type, draft, merged flag and ValidationResult
    """
    client_id = normalize_id(client.get("id") or client.get("_id"))
    service_type = require_service_type(client.get("serviceType"))
    confirmed_orders = confirmed_orders or []

    sources = OrderSources(
        client_id=client_id,
        active_order=client.get("activeOrder"),
        box_order_lookup=box_order_lookup,
        confirmed_orders=confirmed_orders,
        order_history=order_history or [],
    )
    draft = canonicalize(client.get("upcomingOrder"), service_type, catalog, sources)

    merged = False
    confirmed = latest_confirmed_food_order(confirmed_orders) if service_type == FOOD else None
    if confirmed is not None and "deliveryDayOrders" in draft:
        draft = merge_confirmed(draft, confirmed)
        merged = True
        logger.info(f"Merged confirmed order into draft for client {client_id}")

    result = validate(draft, ClientLimits.from_dict(client), catalog)
    logger.info(
        f"Client {client_id} ({service_type}): "
        f"{'valid' if result.valid else f'{len(result.issues)} validation issue(s)'}"
    )
    return {
        "client_id": client_id,
        "service_type": service_type,
        "draft": draft,
        "merged": merged,
        "result": result,
    }


class OrderRequestService:
    """High-level service that loads a client's order request from MongoDB."""

    def __init__(self, db_name: Optional[str] = None, connection_url_env_key: Optional[str] = None):
        self.db_name = db_name
        self.connection_url_env_key = connection_url_env_key

    def load_order_request(self, client_id: str) -> Dict[str, Any]:
        with ClientOrderRepository(
            db_name=self.db_name,
            connection_url_env_key=self.connection_url_env_key,
        ) as repo:
            client = repo.get_client(client_id)
            if not client:
                raise ValueError(f"Client with ID {client_id} not found")

            return run_load_cycle(
                client,
                repo.load_catalog(),
                confirmed_orders=repo.get_confirmed_orders(client_id),
                order_history=repo.get_order_history(client_id),
                box_order_lookup=repo.get_box_orders,
            )

    @staticmethod
    def check_snapshot(snapshot: Dict[str, Any]) -> Dict[str, Any]:
        """Run the load cycle over an in-memory snapshot (client, catalog, orders)."""
        client = snapshot.get("client")
        if not isinstance(client, dict):
            raise ValueError("Snapshot has no client document")

        box_orders = snapshot.get("boxOrders")

        def lookup(client_id: str) -> Optional[List[Dict[str, Any]]]:
            return box_orders or None

        return run_load_cycle(
            client,
            Catalog.from_dict(snapshot.get("catalog")),
            confirmed_orders=snapshot.get("confirmedOrders") or [],
            order_history=snapshot.get("orderHistory") or [],
            box_order_lookup=lookup,
        )
