"""Tests for API endpoints"""
import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, Mock

from api.index import app
from storefront.cart import CartManager, MemoryCartStore, ReservationEngine
from storefront.errors import CartStoreUnavailable
from storefront.routers.deps import get_cart_manager, get_product_repo
from storefront.services.models import Product
from conftest import InMemoryLedger

HEADERS = {"X-Cart-Session": "sess-1"}


@pytest.fixture
def api_ledger():
    return InMemoryLedger({"product-123": 5})


@pytest.fixture
def mock_products():
    repo = Mock()
    catalog = {
        "product-123": Product(id="product-123", name="Silk Scarf", price="49.90", stock=5),
        "retired": Product(id="retired", name="Old Hat", price="10", stock=1, status="discontinued"),
    }
    repo.get_by_id = AsyncMock(side_effect=lambda product_id: catalog.get(product_id))
    return repo


@pytest.fixture
def client(api_ledger, mock_products):
    """Test client with in-memory cart and ledger"""
    manager = CartManager(MemoryCartStore(), ReservationEngine(api_ledger))
    app.dependency_overrides[get_cart_manager] = lambda: manager
    app.dependency_overrides[get_product_repo] = lambda: mock_products
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health_check(client):
    """Test health check endpoint"""
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_session_header_required(client):
    response = client.get("/api/cart")
    assert response.status_code == 401


def test_empty_cart(client):
    response = client.get("/api/cart", headers=HEADERS)

    assert response.status_code == 200
    assert response.json()["is_empty"] is True


def test_add_to_cart(client, api_ledger):
    response = client.post(
        "/api/cart/add",
        json={"product_id": "product-123", "quantity": 3, "source": "grid"},
        headers=HEADERS,
    )

    data = response.json()
    assert response.status_code == 200
    assert data["added_qty"] == 3
    assert data["remaining_stock"] == 2
    assert data["error"] == ""
    assert data["total_items"] == 3
    assert api_ledger.stock["product-123"] == 2


def test_add_unknown_product(client):
    response = client.post("/api/cart/add", json={"product_id": "nope"}, headers=HEADERS)
    assert response.status_code == 404


def test_add_discontinued_product(client):
    response = client.post("/api/cart/add", json={"product_id": "retired"}, headers=HEADERS)
    assert response.status_code == 400


def test_update_and_remove(client, api_ledger):
    client.post("/api/cart/add", json={"product_id": "product-123", "quantity": 4}, headers=HEADERS)

    response = client.patch("/api/cart/item", json={"product_id": "product-123", "quantity": 1}, headers=HEADERS)
    assert response.json()["total_items"] == 1
    assert api_ledger.stock["product-123"] == 4

    response = client.delete("/api/cart/item", params={"product_id": "product-123"}, headers=HEADERS)
    assert response.json()["is_empty"] is True
    assert api_ledger.stock["product-123"] == 5


def test_update_to_zero_removes(client, api_ledger):
    client.post("/api/cart/add", json={"product_id": "product-123", "quantity": 2}, headers=HEADERS)

    response = client.patch("/api/cart/item", json={"product_id": "product-123", "quantity": 0}, headers=HEADERS)

    assert response.json()["is_empty"] is True
    assert api_ledger.stock["product-123"] == 5


def test_clear_cart(client, api_ledger):
    client.post("/api/cart/add", json={"product_id": "product-123", "quantity": 2}, headers=HEADERS)

    response = client.post("/api/cart/clear", json={"release_stock": True}, headers=HEADERS)

    assert response.json()["is_empty"] is True
    assert api_ledger.stock["product-123"] == 5


def test_store_outage_is_503(client):
    outage = CartStoreUnavailable("Cart service unavailable: upstash down")
    broken = Mock()
    for name in ("get_cart_summary", "add_to_cart", "update_qty", "remove_from_cart", "clear_cart"):
        setattr(broken, name, AsyncMock(side_effect=outage))
    app.dependency_overrides[get_cart_manager] = lambda: broken

    assert client.get("/api/cart", headers=HEADERS).status_code == 503
    assert client.post("/api/cart/add", json={"product_id": "product-123"}, headers=HEADERS).status_code == 503
    assert client.patch(
        "/api/cart/item", json={"product_id": "product-123", "quantity": 2}, headers=HEADERS
    ).status_code == 503
    assert client.delete("/api/cart/item", params={"product_id": "product-123"}, headers=HEADERS).status_code == 503
    assert client.post("/api/cart/clear", json={}, headers=HEADERS).status_code == 503


def test_catalog_failure_is_500(client, mock_products):
    mock_products.get_by_id = AsyncMock(side_effect=RuntimeError("supabase down"))

    response = client.post("/api/cart/add", json={"product_id": "product-123"}, headers=HEADERS)

    assert response.status_code == 500
