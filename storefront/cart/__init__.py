"""Cart package: models, storage, reservation engine and manager facade."""
from .events import CartEvents, CartSignal, CartChanged, LineAdded
from .ledger import StockLedger
from .models import CartLine, Cart, to_positive_int
from .reservation import ReservationEngine, ReservationResult, ReleaseResult
from .service import AddToCartResult, CartManager
from .storage import CartStore, MemoryCartStore, RedisCartStore

__all__ = [
    "AddToCartResult",
    "Cart",
    "CartChanged",
    "CartEvents",
    "CartLine",
    "CartManager",
    "CartSignal",
    "CartStore",
    "LineAdded",
    "MemoryCartStore",
    "RedisCartStore",
    "ReleaseResult",
    "ReservationEngine",
    "ReservationResult",
    "StockLedger",
    "to_positive_int",
]
