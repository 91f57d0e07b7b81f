"""
Cart Router

Shopping cart endpoints. Stock reservation happens inside CartManager; the
router only resolves the product, the session and the response shape.
"""
from fastapi import APIRouter, Depends, HTTPException

from storefront.errors import ERROR_PRODUCT_NOT_FOUND, CartStoreUnavailable
from storefront.logging import get_logger
from .deps import get_cart_manager, get_product_repo, get_session_id
from .models import AddToCartRequest, ClearCartRequest, UpdateCartItemRequest

logger = get_logger(__name__)

router = APIRouter(prefix="/cart", tags=["cart"])


def _ensure_product_orderable(product):
    """Validate product status for cart operations."""
    if getattr(product, "status", "active") != "active":
        raise HTTPException(status_code=400, detail="Product is unavailable for order.")


def _to_http_error(e: Exception, action: str) -> HTTPException:
    """Store outage -> 503, bad input -> 400, anything else logged -> 500."""
    if isinstance(e, CartStoreUnavailable):
        logger.error(f"Cart store unavailable while trying to {action}: {e}")
        return HTTPException(status_code=503, detail=str(e))
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=str(e))
    logger.error(f"Failed to {action}: {e}", exc_info=True)
    return HTTPException(status_code=500, detail=f"Failed to {action}")


@router.get("")
async def get_cart(session_id: str = Depends(get_session_id), cart_manager=Depends(get_cart_manager)):
    """Get the session's cart with summary totals."""
    try:
        return await cart_manager.get_cart_summary(session_id)
    except Exception as e:
        raise _to_http_error(e, "retrieve cart")


@router.post("/add")
async def add_to_cart(
    request: AddToCartRequest,
    session_id: str = Depends(get_session_id),
    cart_manager=Depends(get_cart_manager),
    products=Depends(get_product_repo),
):
    """Add item to cart, reserving stock for inventoried products."""
    try:
        product = await products.get_by_id(request.product_id)
    except Exception as e:
        raise _to_http_error(e, "load product")
    if not product:
        raise HTTPException(status_code=404, detail=ERROR_PRODUCT_NOT_FOUND)
    _ensure_product_orderable(product)

    try:
        result = await cart_manager.add_to_cart(
            session_id, product, request.quantity, source=request.source
        )
        summary = await cart_manager.get_cart_summary(session_id)
    except Exception as e:
        raise _to_http_error(e, "add item to cart")

    return {
        **summary,
        "added_qty": result.added_qty,
        "remaining_stock": result.remaining_stock,
        "error": result.error,
    }


@router.patch("/item")
async def update_cart_item(
    request: UpdateCartItemRequest,
    session_id: str = Depends(get_session_id),
    cart_manager=Depends(get_cart_manager),
):
    """Update cart item quantity (0 = remove)."""
    try:
        if request.quantity <= 0:
            await cart_manager.remove_from_cart(session_id, request.product_id)
        else:
            await cart_manager.update_qty(session_id, request.product_id, request.quantity)
        return await cart_manager.get_cart_summary(session_id)
    except Exception as e:
        raise _to_http_error(e, "update cart item")


@router.delete("/item")
async def remove_cart_item(
    product_id: str,
    session_id: str = Depends(get_session_id),
    cart_manager=Depends(get_cart_manager),
):
    """Remove item from cart, returning its units to stock."""
    try:
        await cart_manager.remove_from_cart(session_id, product_id)
        return await cart_manager.get_cart_summary(session_id)
    except Exception as e:
        raise _to_http_error(e, "remove cart item")


@router.post("/clear")
async def clear_cart(
    request: ClearCartRequest,
    session_id: str = Depends(get_session_id),
    cart_manager=Depends(get_cart_manager),
):
    """Empty the cart (after checkout, or abandoned with release_stock=true)."""
    try:
        await cart_manager.clear_cart(session_id, release_stock=request.release_stock)
        return await cart_manager.get_cart_summary(session_id)
    except Exception as e:
        raise _to_http_error(e, "clear cart")
