"""Pytest configuration and fixtures"""
import asyncio
import os
import pytest
from unittest.mock import Mock, AsyncMock
from typing import Callable, Dict, List, Optional

# Set test environment variables
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test_key")
os.environ.setdefault("UPSTASH_REDIS_REST_URL", "https://test.upstash.io")
os.environ.setdefault("UPSTASH_REDIS_REST_TOKEN", "test_token")

from storefront.cart import (  # noqa: E402
    CartEvents,
    CartManager,
    CartSignal,
    MemoryCartStore,
    ReservationEngine,
    StockLedger,
)
from storefront.errors import ERROR_PRODUCT_NOT_FOUND, LedgerErrorKind, StockLedgerError  # noqa: E402
from storefront.services.models import Product  # noqa: E402


class InMemoryLedger(StockLedger):
    """Stock ledger with real compare-and-swap semantics.

    ``before_write`` hooks run (one per write) between the caller's read and
    its conditional write, to simulate another shopper winning the race.
    """

    def __init__(self, stock: Optional[Dict[str, int]] = None):
        self.stock: Dict[str, int] = dict(stock or {})
        self.reads = 0
        self.writes = 0
        self.read_error: Optional[StockLedgerError] = None
        self.write_error: Optional[StockLedgerError] = None
        self.before_write: List[Callable[["InMemoryLedger", str], None]] = []

    async def read_stock(self, product_id: str) -> int:
        self.reads += 1
        await asyncio.sleep(0)
        if self.read_error is not None:
            raise self.read_error
        if product_id not in self.stock:
            raise StockLedgerError(LedgerErrorKind.NOT_FOUND, ERROR_PRODUCT_NOT_FOUND)
        return self.stock[product_id]

    async def conditional_set_stock(self, product_id: str, expected_stock: int, new_stock: int):
        self.writes += 1
        if self.before_write:
            self.before_write.pop(0)(self, product_id)
        if self.write_error is not None:
            raise self.write_error
        if self.stock.get(product_id) != expected_stock:
            return None
        self.stock[product_id] = new_stock
        return new_stock


class EventRecorder:
    """Collects every cart event emitted."""

    def __init__(self, events: CartEvents):
        self.changed = []
        self.added = []
        events.subscribe(CartSignal.CHANGED, self.changed.append)
        events.subscribe(CartSignal.ADDED, self.added.append)


@pytest.fixture
def ledger():
    """In-memory stock ledger"""
    return InMemoryLedger({"product-123": 5})


@pytest.fixture
def cart_events():
    return CartEvents()


@pytest.fixture
def recorder(cart_events):
    return EventRecorder(cart_events)


@pytest.fixture
def cart_store(cart_events):
    return MemoryCartStore(cart_events)


@pytest.fixture
def engine(ledger):
    return ReservationEngine(ledger)


@pytest.fixture
def cart_manager(cart_store, engine):
    return CartManager(cart_store, engine)


@pytest.fixture
def sample_product():
    """Sample inventoried product"""
    return Product(
        id="product-123",
        name="Silk Scarf",
        price="49.90",
        image_url="https://cdn.test/scarf.jpg",
        stock=5,
    )


@pytest.fixture
def untracked_product():
    """Sample product without a stock counter"""
    return Product(id="gift-card", name="Gift Card", price="25.00", stock=None)


@pytest.fixture
def mock_supabase_client():
    """Mock async Supabase client"""
    client = Mock()

    # Mock table operations
    table_mock = Mock()
    table_mock.select.return_value = table_mock
    table_mock.update.return_value = table_mock
    table_mock.eq.return_value = table_mock
    table_mock.limit.return_value = table_mock
    table_mock.execute = AsyncMock(return_value=Mock(data=[]))

    client.table.return_value = table_mock

    return client
