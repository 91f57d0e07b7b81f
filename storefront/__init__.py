"""
Storefront Core Module

This package contains the cart and inventory reservation components:
- db: Database clients (Supabase + Redis)
- cart: cart store, reservation engine and mutation facade
- realtime: Redis stream bridge for cart events
- routers: FastAPI endpoints

Note: Imports are lazy to avoid circular dependency issues
and ensure clean module loading in serverless environments.
"""

# Lazy imports to avoid issues at module load time
__all__ = [
    "get_supabase",
    "get_redis",
    "CartManager",
]


def __getattr__(name):
    """Lazy attribute access for clean serverless loading."""
    if name == "get_supabase":
        from storefront.db import get_supabase
        return get_supabase
    if name == "get_redis":
        from storefront.db import get_redis
        return get_redis
    if name == "CartManager":
        from storefront.cart import CartManager
        return CartManager
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
