"""
Configuration utilities for the Order Request Engine.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv


class Config:
    """Configuration manager for the Order Request Engine."""

    def __init__(self, env_file: Optional[str] = None) -> None:
        """Initialize configuration.

        If an env_file path is provided, load environment variables from it.
        Otherwise, do not auto-load a .env file to keep defaults predictable.
        """
        self.env_file = env_file
        self._load_environment()
        self._config = self._load_config()

    def _load_environment(self) -> None:
        """Load environment variables from explicit .env file if provided."""
        if not self.env_file:
            return
        env_path = Path(self.env_file)
        if env_path.exists():
            load_dotenv(env_path)

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        return {
            "log_level": self._get_str("LOG_LEVEL", default="INFO"),
            # MongoDB settings for the client/catalog collaborators
            "mongo_url": self._get_str("DB_CONNECTION_URL", default=""),
            "mongo_db": self._get_str("DB_NAME", default="ORDER_REQUESTS_STG"),
            "clients_collection": self._get_str("CLIENTS_COLLECTION", default="clients"),
            "vendors_collection": self._get_str("VENDORS_COLLECTION", default="vendors"),
            "menu_items_collection": self._get_str("MENU_ITEMS_COLLECTION", default="menu_items"),
            "categories_collection": self._get_str("CATEGORIES_COLLECTION", default="item_categories"),
            "box_types_collection": self._get_str("BOX_TYPES_COLLECTION", default="box_types"),
            "box_quotas_collection": self._get_str("BOX_QUOTAS_COLLECTION", default="box_quotas"),
            "orders_collection": self._get_str("ORDERS_COLLECTION", default="orders"),
            "box_orders_collection": self._get_str("BOX_ORDERS_COLLECTION", default="client_box_orders"),
            # Number of past orders scanned when auto-populating Custom items
            "history_limit": self._get_int("ORDER_HISTORY_LIMIT", default=10),
        }

    def _get_str(self, key: str, default: str = "") -> str:
        """Get string configuration value."""
        if self.env_file is None:
            return default
        return os.getenv(key, default)

    def _get_int(self, key: str, default: int = 0) -> int:
        """Get integer configuration value."""
        if self.env_file is None:
            return default
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            return default

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self._config.get(key, default)

    def __getitem__(self, key: str) -> Any:
        """Get configuration value using bracket notation."""
        return self._config[key]

    def __contains__(self, key: str) -> bool:
        """Check if configuration key exists."""
        return key in self._config
