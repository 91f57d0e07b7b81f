"""
Shared Dependencies for Routers

Lazy-loaded singletons to optimize cold start.
"""

from typing import Optional, TYPE_CHECKING

from fastapi import Header, HTTPException

from storefront.errors import ERROR_SESSION_REQUIRED

if TYPE_CHECKING:
    from storefront.cart import CartManager
    from storefront.services.repositories import ProductRepository


# ==================== LAZY SINGLETONS ====================

_cart_manager: Optional["CartManager"] = None
_product_repo: Optional["ProductRepository"] = None


async def get_cart_manager() -> "CartManager":
    """Get or create CartManager singleton (Redis store + Supabase ledger)."""
    global _cart_manager
    if _cart_manager is None:
        from storefront.cart import CartEvents, CartManager, RedisCartStore, ReservationEngine
        from storefront.db import get_supabase
        from storefront.realtime import attach_realtime
        from storefront.services.repositories import StockRepository

        events = CartEvents()
        attach_realtime(events)
        ledger = StockRepository(await get_supabase())
        _cart_manager = CartManager(RedisCartStore(events), ReservationEngine(ledger))
    return _cart_manager


async def get_product_repo() -> "ProductRepository":
    """Get or create ProductRepository singleton."""
    global _product_repo
    if _product_repo is None:
        from storefront.db import get_supabase
        from storefront.services.repositories import ProductRepository

        _product_repo = ProductRepository(await get_supabase())
    return _product_repo


# ==================== SESSION ====================

async def get_session_id(x_cart_session: Optional[str] = Header(default=None)) -> str:
    """Cart session issued by the auth layer, passed as X-Cart-Session."""
    session_id = (x_cart_session or "").strip()
    if not session_id:
        raise HTTPException(status_code=401, detail=ERROR_SESSION_REQUIRED)
    return session_id
