"""
Pytest configuration and shared catalog fixtures for the Order Request Engine tests.
"""

import copy
import sys
from pathlib import Path

import pytest

# Add src to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from order_engine.order_request.catalog import Catalog  # noqa: E402

CATALOG_DATA = {
    "vendors": [
        {"id": "v1", "name": "Green Kitchen", "serviceTypes": ["Food"], "deliveryDays": ["Monday"]},
        {
            "id": "v2",
            "name": "Fresh Bites",
            "serviceTypes": ["food"],
            "deliveryDays": ["Monday", "Thursday"],
            "minimumMeals": 5,
        },
        {"id": "vd", "name": "Default Deli", "serviceTypes": ["Food"], "isDefault": True, "deliveryDays": ["Tuesday"]},
        {"id": "bx", "name": "Box Co", "serviceTypes": ["Boxes"], "deliveryDays": ["Wednesday"]},
        {"id": "bx2", "name": "Harvest Boxes", "serviceTypes": ["Boxes"], "deliveryDays": ["Friday"]},
        {"id": "old", "name": "Old Vendor", "serviceTypes": ["Food"], "isActive": False, "deliveryDays": ["Monday"]},
    ],
    "menuItems": [
        {"id": "m1", "name": "Chicken Plate", "vendorId": "v1", "quotaValue": 1},
        {"id": "m2", "name": "Family Tray", "vendorId": "v1", "quotaValue": 2},
        {"id": "m3", "name": "Veggie Bowl", "vendorId": "v2", "quotaValue": 1},
        {"id": "b-veg", "name": "Carrots", "categoryId": "cat-veg", "quotaValue": 1},
        {"id": "b-prot", "name": "Beans", "categoryId": "cat-prot", "quotaValue": 2},
        {"id": "b-grain", "name": "Rice", "categoryId": "cat-grain", "quotaValue": 1},
    ],
    "categories": [
        {"id": "cat-veg", "name": "Vegetables"},
        {"id": "cat-prot", "name": "Protein"},
        {"id": "cat-grain", "name": "Grains"},
    ],
    "boxTypes": [
        {"id": "bt1", "name": "Standard Box", "vendorId": "bx"},
        {"id": "bt3", "name": "Harvest Box", "vendorId": "bx2"},
        {"id": "bt-orphan", "name": "Loose Box"},
    ],
    "boxQuotas": [],
}


@pytest.fixture
def catalog_data():
    """Mutable copy of the reference catalog document."""
    return copy.deepcopy(CATALOG_DATA)


@pytest.fixture
def catalog(catalog_data):
    """Parsed reference catalog."""
    return Catalog.from_dict(catalog_data)


@pytest.fixture
def vendors(catalog):
    return list(catalog.vendors)
