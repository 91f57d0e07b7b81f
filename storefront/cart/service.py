"""Cart manager facade.

Composes the persisted cart with the reservation engine:
- products without a stock counter are added locally, no ledger call
- tracked products reserve on the ledger first, then update the cart
- a write rejected by the ledger's access policy falls back to local-only
  tracking bounded by the last known stock
"""
import asyncio
import weakref
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, List, Optional

from storefront.logging import get_logger, sanitize_id_for_logging, sanitize_string_for_logging
from storefront.services.models import Product
from storefront.services.money import to_float
from .models import Cart, CartLine, to_positive_int, to_stock
from .reservation import ReservationEngine
from .storage import CartStore

logger = get_logger(__name__)


@dataclass
class AddToCartResult:
    """Outcome of an add; ``error`` is empty unless the caller should see it."""
    lines: List[CartLine]
    added_qty: int
    remaining_stock: Optional[int]
    error: str = ""


class CartManager:
    """
    Manages shopping carts against the stock ledger.

    Calls for the same session are serialized; different sessions only
    coordinate through the ledger's conditional writes. The cart is always
    loaded before anything is reserved, and a reservation whose cart could
    not be saved is released again.
    """

    def __init__(self, store: CartStore, engine: ReservationEngine):
        self.store = store
        self.engine = engine
        # Entries vanish once no coroutine holds or waits on the lock
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    @property
    def events(self):
        return self.store.events

    @asynccontextmanager
    async def _session_lock(self, session_id: str):
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        async with lock:
            yield

    async def get_cart(self, session_id: str) -> Cart:
        """Load the session's cart."""
        return Cart(session_id=session_id, lines=await self.store.load(session_id))

    async def _save_or_release(self, cart: Cart, product_id: str, reserved: int) -> None:
        """Persist the cart; if that fails, hand ``reserved`` units back before re-raising."""
        try:
            await self.store.save(cart.session_id, cart.lines)
        except Exception:
            if reserved > 0:
                logger.error(
                    f"Cart save failed, releasing {reserved} units of product "
                    f"{sanitize_id_for_logging(product_id)}"
                )
                await self.engine.release(product_id, reserved)
            raise

    async def add_to_cart(
        self,
        session_id: str,
        product: Product,
        qty: Any = 1,
        source: str = "",
    ) -> AddToCartResult:
        """Add a product, reserving ledger stock when the product tracks it."""
        async with self._session_lock(session_id):
            cart = await self.get_cart(session_id)
            return await self._add(cart, product, qty, source)

    async def _add(self, cart: Cart, product: Product, qty: Any, source: str) -> AddToCartResult:
        wanted = to_positive_int(qty, 1)
        product_stock = to_stock(product.stock)

        if product_stock is None:
            return await self._add_locally(cart, product, wanted, None, source)

        reservation = await self.engine.reserve(product.id, wanted)

        if reservation.reserved > 0:
            return await self._add_locally(
                cart, product, reservation.reserved, reservation.stock, source, reserved=reservation.reserved
            )

        if not reservation.error:
            # Out of stock: nothing to add, report what the ledger has
            return AddToCartResult(lines=cart.lines, added_qty=0, remaining_stock=reservation.stock)

        if reservation.policy_denied:
            # Client can read the ledger but not write it: track locally
            existing = cart.find(product.id)
            if existing is not None and existing.tracks_stock:
                local_remaining = existing.stock
            else:
                local_remaining = product_stock
            local_add = min(local_remaining, wanted)

            logger.warning(
                f"Stock write denied for product {sanitize_id_for_logging(product.id)}, "
                f"tracking locally (add={local_add}, remaining={local_remaining})"
            )
            if local_add <= 0:
                return AddToCartResult(lines=cart.lines, added_qty=0, remaining_stock=local_remaining)
            return await self._add_locally(cart, product, local_add, local_remaining - local_add, source)

        logger.warning(
            f"Add to cart failed for product {sanitize_id_for_logging(product.id)}: "
            f"{sanitize_string_for_logging(reservation.error)}"
        )
        return AddToCartResult(
            lines=cart.lines,
            added_qty=0,
            remaining_stock=product_stock,
            error=reservation.error,
        )

    async def _add_locally(
        self,
        cart: Cart,
        product: Product,
        add_qty: int,
        remaining: Optional[int],
        source: str,
        reserved: int = 0,
    ) -> AddToCartResult:
        remaining = to_stock(remaining)
        existing = cart.find(product.id)

        if existing is not None:
            existing.qty += add_qty
            existing.stock = remaining
        else:
            cart.lines.append(CartLine(
                id=product.id,
                name=product.name,
                qty=add_qty,
                price=product.price,
                image_url=product.image_url,
                stock=remaining,
            ))

        await self._save_or_release(cart, product.id, reserved)
        await self.events.line_added(cart.session_id, product.id, product.name, add_qty, source)
        return AddToCartResult(lines=cart.lines, added_qty=add_qty, remaining_stock=remaining)

    async def update_qty(self, session_id: str, product_id: str, qty: Any) -> List[CartLine]:
        """Set a line's quantity, reserving or releasing the difference."""
        async with self._session_lock(session_id):
            cart = await self.get_cart(session_id)
            return await self._update(cart, product_id, qty)

    async def _update(self, cart: Cart, product_id: str, qty: Any) -> List[CartLine]:
        desired = to_positive_int(qty, 1)
        line = cart.find(product_id)
        if line is None:
            return cart.lines

        reserved = 0
        if not line.tracks_stock:
            line.qty = desired
        elif desired > line.qty:
            diff = desired - line.qty
            reservation = await self.engine.reserve(product_id, diff)
            if reservation.reserved > 0:
                reserved = reservation.reserved
                line.qty += reservation.reserved
                line.stock = reservation.stock
            elif reservation.policy_denied:
                local_add = min(line.stock, diff)
                logger.warning(
                    f"Stock write denied for product {sanitize_id_for_logging(product_id)}, "
                    f"tracking locally (add={local_add})"
                )
                line.qty += local_add
                line.stock = line.stock - local_add
            elif reservation.error:
                logger.warning(
                    f"Quantity increase failed for product {sanitize_id_for_logging(product_id)}: "
                    f"{sanitize_string_for_logging(reservation.error)}"
                )
        elif desired < line.qty:
            release = await self.engine.release(product_id, line.qty - desired)
            line.qty = desired
            if release.error:
                logger.warning(
                    f"Stock release failed for product {sanitize_id_for_logging(product_id)}, "
                    f"keeping cached stock: {sanitize_string_for_logging(release.error)}"
                )
                line.stock = to_stock(release.stock or line.stock)
            else:
                line.stock = release.stock

        await self._save_or_release(cart, product_id, reserved)
        return cart.lines

    async def remove_from_cart(self, session_id: str, product_id: str) -> List[CartLine]:
        """Release a line's units and delete it; the delete happens whatever the ledger says."""
        async with self._session_lock(session_id):
            cart = await self.get_cart(session_id)
            line = cart.find(product_id)
            if line is None:
                return cart.lines

            if line.tracks_stock:
                await self._release_best_effort(line)

            cart.remove(product_id)
            await self.store.save(cart.session_id, cart.lines)
            return cart.lines

    async def clear_cart(self, session_id: str, release_stock: bool = False) -> List[CartLine]:
        """Empty the cart.

        After checkout the order owns the reserved units, so nothing is
        released. ``release_stock=True`` is for abandoned carts.
        """
        async with self._session_lock(session_id):
            if release_stock:
                for line in (await self.get_cart(session_id)).lines:
                    if line.tracks_stock:
                        await self._release_best_effort(line)
            await self.store.save(session_id, [])
            return []

    async def _release_best_effort(self, line: CartLine) -> None:
        release = await self.engine.release(line.id, line.qty)
        if release.error:
            logger.warning(
                f"Release of {line.qty} units failed for product {sanitize_id_for_logging(line.id)}: "
                f"{sanitize_string_for_logging(release.error)}"
            )

    async def get_cart_summary(self, session_id: str) -> dict:
        """Cart lines plus badge count and subtotal, JSON-ready."""
        cart = await self.get_cart(session_id)
        return {
            "is_empty": not cart.lines,
            "total_items": cart.total_items,
            "items": [
                {
                    **line.to_dict(),
                    "price": to_float(line.price),
                    "total_price": to_float(line.total_price),
                    "max_qty": line.max_qty,
                }
                for line in cart.lines
            ],
            "subtotal": to_float(cart.subtotal),
        }
