"""MongoDB repository for client, catalog and order-history documents."""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING, MongoClient

from ..utils.config import Config
from ..utils.logging import get_logger
from .catalog import Catalog

logger = get_logger(__name__)


class ClientOrderRepository:
    def __init__(
        self,
        url: Optional[str] = None,
        db_name: Optional[str] = None,
        connection_url_env_key: Optional[str] = None,
        config: Optional[Config] = None,
    ) -> None:
        self._config = config or Config(".env")

        # Environment-specific URL first, then the generic one
        if connection_url_env_key:
            self._url = os.getenv(connection_url_env_key) or url or self._config.get("mongo_url")
        else:
            self._url = url or self._config.get("mongo_url")

        self._db = db_name or self._config.get("mongo_db")
        if not self._url:
            raise ValueError("DB_CONNECTION_URL is required")
        self._client: Optional[MongoClient] = None

    def __enter__(self) -> "ClientOrderRepository":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()

    def connect(self) -> None:
        if self._client is None:
            self._client = MongoClient(self._url, serverSelectionTimeoutMS=5000)

    def disconnect(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _collection(self, key: str):
        if self._client is None:
            self.connect()
        return self._client[self._db][self._config.get(key)]

    def get_client(self, client_id: str) -> Optional[Dict[str, Any]]:
        return self._collection("clients_collection").find_one({"id": client_id})

    def load_catalog(self) -> Catalog:
        """Fetch the full catalog snapshot; inactive records are kept, the engine filters them."""
        snapshot = {
            "vendors": list(self._collection("vendors_collection").find({})),
            "menuItems": list(self._collection("menu_items_collection").find({})),
            "categories": list(self._collection("categories_collection").find({})),
            "boxTypes": list(self._collection("box_types_collection").find({})),
            "boxQuotas": list(self._collection("box_quotas_collection").find({})),
        }
        logger.debug(
            f"Loaded catalog: {len(snapshot['vendors'])} vendors, "
            f"{len(snapshot['menuItems'])} menu items, {len(snapshot['boxTypes'])} box types"
        )
        return Catalog.from_dict(snapshot)

    def get_confirmed_orders(self, client_id: str) -> List[Dict[str, Any]]:
        """Orders that were actually fulfilled or billed, newest first."""
        cursor = (
            self._collection("orders_collection")
            .find({"clientId": client_id, "status": {"$in": ["confirmed", "completed", "billed"]}})
            .sort("createdAt", DESCENDING)
            .limit(self._config.get("history_limit"))
        )
        return list(cursor)

    def get_order_history(self, client_id: str) -> List[Dict[str, Any]]:
        cursor = (
            self._collection("orders_collection")
            .find({"clientId": client_id})
            .sort("createdAt", DESCENDING)
            .limit(self._config.get("history_limit"))
        )
        return list(cursor)

    def get_box_orders(self, client_id: str) -> Optional[List[Dict[str, Any]]]:
        rows = list(self._collection("box_orders_collection").find({"clientId": client_id}))
        return rows or None
