"""Tests for the load cycle, the service facade and the MongoDB repository."""

from unittest.mock import MagicMock, patch

import pytest

from order_engine.order_request.repository import ClientOrderRepository
from order_engine.order_request.service import (
    OrderRequestService,
    latest_confirmed_food_order,
    run_load_cycle,
)
from order_engine.utils.config import Config


@pytest.fixture
def food_client():
    return {
        "id": "c-1",
        "serviceType": "Food",
        "approvedMealsPerWeek": 9,
        "upcomingOrder": {
            "serviceType": "Food",
            "deliveryDayOrders": {
                "Monday": {"vendorSelections": [{"vendorId": "v2", "items": {"m3": 3}}]},
                "Thursday": {"vendorSelections": [{"vendorId": "v2", "items": {"m3": 2}}]},
            },
        },
    }


@pytest.fixture
def confirmed_orders():
    return [
        {"serviceType": "Custom", "customItems": [{"name": "Cake", "price": 4, "quantity": 1}]},
        {"serviceType": "Food", "vendorSelections": [{"vendorId": "v2", "items": {"m3": 2}}]},
        {"serviceType": "Food", "vendorSelections": [{"vendorId": "v1", "items": {"m1": 7}}]},
    ]


class TestRunLoadCycle:
    """Test cases for run_load_cycle."""

    def test_merges_latest_confirmed_food_order_once(self, food_client, catalog, confirmed_orders):
        outcome = run_load_cycle(food_client, catalog, confirmed_orders=confirmed_orders)

        days = outcome["draft"]["deliveryDayOrders"]
        assert outcome["merged"] is True
        assert days["Monday"]["vendorSelections"] == [{"vendorId": "v2", "items": {"m3": 5}}]
        assert days["Thursday"]["vendorSelections"] == [{"vendorId": "v2", "items": {"m3": 4}}]
        assert outcome["result"].messages == ["Fresh Bites (Thursday): 4 meals selected, but minimum is 5."]

    def test_single_day_draft_is_not_merged(self, catalog, confirmed_orders):
        client = {
            "id": "c-2",
            "serviceType": "Food",
            "upcomingOrder": {"serviceType": "Food", "vendorSelections": [{"vendorId": "v1", "items": {"m1": 1}}]},
        }

        outcome = run_load_cycle(client, catalog, confirmed_orders=confirmed_orders)

        assert outcome["merged"] is False
        assert outcome["draft"]["vendorSelections"] == [{"vendorId": "v1", "items": {"m1": 1}}]
        assert outcome["result"].valid

    def test_client_document_is_not_mutated(self, food_client, catalog, confirmed_orders):
        run_load_cycle(food_client, catalog, confirmed_orders=confirmed_orders)

        monday = food_client["upcomingOrder"]["deliveryDayOrders"]["Monday"]
        assert monday["vendorSelections"][0]["items"] == {"m3": 3}

    def test_invalid_client_service_type(self, catalog):
        with pytest.raises(ValueError, match="Invalid serviceType"):
            run_load_cycle({"id": "c-3", "serviceType": "Meals"}, catalog)

    def test_merges_newest_confirmed_order_regardless_of_list_order(self, catalog):
        client = {
            "id": "c-5",
            "serviceType": "Food",
            "upcomingOrder": {
                "serviceType": "Food",
                "deliveryDayOrders": {"Monday": {"vendorSelections": [{"vendorId": "v2", "items": {"m3": 1}}]}},
            },
        }
        confirmed = [
            {"serviceType": "Food", "createdAt": "2024-01-01T00:00:00Z", "vendorSelections": [{"vendorId": "v2", "items": {"m3": 100}}]},
            {"serviceType": "Food", "createdAt": "2025-06-01T00:00:00Z", "vendorSelections": [{"vendorId": "v2", "items": {"m3": 2}}]},
        ]

        outcome = run_load_cycle(client, catalog, confirmed_orders=confirmed)

        assert outcome["draft"]["deliveryDayOrders"]["Monday"]["vendorSelections"] == [
            {"vendorId": "v2", "items": {"m3": 3}}
        ]

    def test_food_client_without_upcoming_order_uses_multi_order_active_snapshot(self, catalog):
        client = {
            "id": "c-6",
            "serviceType": "Food",
            "activeOrder": {
                "multiple": True,
                "orders": [
                    {"scheduledDeliveryDate": "2025-06-02", "caseId": "CASE-3", "vendorSelections": [{"vendorId": "v2", "items": {"m3": 5}}]},
                    {"scheduledDeliveryDate": "2025-06-05", "vendorSelections": [{"vendorId": "v2", "items": {"m3": 6}}]},
                    {"deliveryDay": "Friday", "vendorSelections": []},
                ],
            },
        }

        outcome = run_load_cycle(client, catalog)

        assert outcome["draft"] == {
            "serviceType": "Food",
            "caseId": "CASE-3",
            "deliveryDayOrders": {
                "2025-06-02": {"vendorSelections": [{"vendorId": "v2", "items": {"m3": 5}}]},
                "2025-06-05": {"vendorSelections": [{"vendorId": "v2", "items": {"m3": 6}}]},
            },
        }
        assert outcome["result"].valid

    def test_latest_confirmed_food_order_skips_other_types(self, confirmed_orders):
        assert latest_confirmed_food_order(confirmed_orders) is confirmed_orders[1]
        assert latest_confirmed_food_order([]) is None


class TestOrderRequestService:
    """Test cases for OrderRequestService."""

    def test_check_snapshot_reads_box_order_store(self, catalog_data):
        snapshot = {
            "client": {"id": "c-4", "serviceType": "Boxes", "authorizedAmount": 1, "upcomingOrder": {"serviceType": "Boxes"}},
            "catalog": catalog_data,
            "boxOrders": [{"boxTypeId": "bt3", "quantity": 2, "items": {"b-veg": 1}}],
        }

        outcome = OrderRequestService.check_snapshot(snapshot)

        assert outcome["draft"]["boxOrders"][0]["vendorId"] == "bx2"
        assert outcome["result"].messages == ["Order has 2 boxes, but only 1 are authorized."]

    def test_check_snapshot_requires_client(self):
        with pytest.raises(ValueError, match="no client document"):
            OrderRequestService.check_snapshot({"catalog": {}})

    @patch("order_engine.order_request.service.ClientOrderRepository")
    def test_load_order_request(self, mock_repo_class, food_client, catalog, confirmed_orders):
        repo = mock_repo_class.return_value.__enter__.return_value
        repo.get_client.return_value = food_client
        repo.load_catalog.return_value = catalog
        repo.get_confirmed_orders.return_value = confirmed_orders
        repo.get_order_history.return_value = []

        service = OrderRequestService(db_name="ORDER_REQUESTS_PROD", connection_url_env_key="DB_CONNECTION_URL_PROD")
        outcome = service.load_order_request("c-1")

        mock_repo_class.assert_called_once_with(
            db_name="ORDER_REQUESTS_PROD",
            connection_url_env_key="DB_CONNECTION_URL_PROD",
        )
        repo.get_client.assert_called_once_with("c-1")
        assert outcome["client_id"] == "c-1"
        assert outcome["merged"] is True

    @patch("order_engine.order_request.service.ClientOrderRepository")
    def test_load_order_request_missing_client(self, mock_repo_class):
        mock_repo_class.return_value.__enter__.return_value.get_client.return_value = None

        with pytest.raises(ValueError, match="Client with ID c-9 not found"):
            OrderRequestService().load_order_request("c-9")


class TestClientOrderRepository:
    """Test cases for the MongoDB repository."""

    def test_requires_connection_url(self):
        with pytest.raises(ValueError, match="DB_CONNECTION_URL is required"):
            ClientOrderRepository(config=Config())

    @patch("order_engine.order_request.repository.MongoClient")
    def test_queries(self, mock_mongo_client):
        collection = MagicMock()
        mock_mongo_client.return_value.__getitem__.return_value.__getitem__.return_value = collection
        collection.find_one.return_value = {"id": "c-1"}
        collection.find.return_value.sort.return_value.limit.return_value = [{"id": "o-1"}]

        with ClientOrderRepository(url="mongodb://localhost:27017", db_name="orders_test", config=Config()) as repo:
            assert repo.get_client("c-1") == {"id": "c-1"}
            assert repo.get_confirmed_orders("c-1") == [{"id": "o-1"}]

        mock_mongo_client.assert_called_once_with("mongodb://localhost:27017", serverSelectionTimeoutMS=5000)
        collection.find_one.assert_called_once_with({"id": "c-1"})
        collection.find.return_value.sort.return_value.limit.assert_called_once_with(10)
        mock_mongo_client.return_value.close.assert_called_once()

    @patch("order_engine.order_request.repository.MongoClient")
    def test_load_catalog_and_empty_box_orders(self, mock_mongo_client, catalog_data):
        collection = MagicMock()
        mock_mongo_client.return_value.__getitem__.return_value.__getitem__.return_value = collection
        collection.find.side_effect = [
            catalog_data["vendors"],
            catalog_data["menuItems"],
            catalog_data["categories"],
            catalog_data["boxTypes"],
            [],
            [],
        ]

        repo = ClientOrderRepository(url="mongodb://localhost:27017", config=Config())
        catalog = repo.load_catalog()

        assert catalog.vendor("bx2").name == "Harvest Boxes"
        assert catalog.box_type("bt3").vendor_id == "bx2"
        assert repo.get_box_orders("c-1") is None
