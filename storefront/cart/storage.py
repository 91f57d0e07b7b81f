"""Cart persistence.

A store loads and saves the whole line list of one session. Every save is
followed by a ``cart.changed`` notification.
"""
import copy
import json
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from storefront.db import get_redis, RedisKeys, TTL
from storefront.errors import ERROR_CART_UNAVAILABLE, CartStoreUnavailable
from storefront.logging import get_logger, sanitize_id_for_logging
from .events import CartEvents
from .models import CartLine

logger = get_logger(__name__)


def _parse_lines(raw: list) -> List[CartLine]:
    """Decode stored lines, dropping entries that cannot be read."""
    lines: List[CartLine] = []
    for entry in raw:
        try:
            lines.append(CartLine.from_dict(entry))
        except (KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Dropping unreadable cart line: {e}")
    return lines


class CartStore(ABC):
    """Persisted line list per session."""

    def __init__(self, events: Optional[CartEvents] = None):
        self.events = events or CartEvents()

    @abstractmethod
    async def load(self, session_id: str) -> List[CartLine]:
        """Return the session's lines (empty list if none)."""

    @abstractmethod
    async def _write(self, session_id: str, lines: List[CartLine]) -> None:
        """Replace the stored lines."""

    async def save(self, session_id: str, lines: List[CartLine]) -> None:
        """Persist the whole cart and notify observers."""
        await self._write(session_id, lines)
        await self.events.cart_changed(session_id, lines)


class RedisCartStore(CartStore):
    """
    Stores carts in Upstash Redis as one JSON document per session.

    Keys expire after TTL.CART; an abandoned cart that expires does not give
    its reserved units back to the ledger.
    """

    def __init__(self, events: Optional[CartEvents] = None, ttl: int = TTL.CART):
        super().__init__(events)
        self.ttl = ttl
        self._redis = None  # Lazy initialization

    @property
    def redis(self):
        """Get Redis client (lazy initialization)."""
        if self._redis is None:
            try:
                self._redis = get_redis()
            except ValueError as e:
                raise CartStoreUnavailable(
                    f"{ERROR_CART_UNAVAILABLE}: Redis not available: {e}. Check UPSTASH_REDIS_REST_URL and "
                    f"UPSTASH_REDIS_REST_TOKEN environment variables."
                )
        return self._redis

    async def load(self, session_id: str) -> List[CartLine]:
        key = RedisKeys.cart_key(session_id)
        try:
            data = await self.redis.get(key)
        except CartStoreUnavailable:
            raise
        except Exception as e:
            logger.error(f"Failed to get cart from Redis: {e}")
            raise CartStoreUnavailable(f"{ERROR_CART_UNAVAILABLE}: {e}")

        if not data:
            return []

        try:
            raw = json.loads(data)
        except (json.JSONDecodeError, TypeError) as e:
            # Corrupted data - clear it and start over
            logger.warning(f"Corrupted cart data for session {sanitize_id_for_logging(session_id)}: {e}")
            await self.redis.delete(key)
            return []

        if not isinstance(raw, list):
            return []
        return _parse_lines(raw)

    async def _write(self, session_id: str, lines: List[CartLine]) -> None:
        key = RedisKeys.cart_key(session_id)
        try:
            if lines:
                await self.redis.set(key, json.dumps([line.to_dict() for line in lines]), ex=self.ttl)
            else:
                await self.redis.delete(key)
        except CartStoreUnavailable:
            raise
        except Exception as e:
            logger.error(f"Failed to save cart to Redis: {e}")
            raise CartStoreUnavailable(f"{ERROR_CART_UNAVAILABLE}: {e}")


class MemoryCartStore(CartStore):
    """Process-local store, for tests and single-process development."""

    def __init__(self, events: Optional[CartEvents] = None):
        super().__init__(events)
        self._carts: Dict[str, List[dict]] = {}

    async def load(self, session_id: str) -> List[CartLine]:
        return _parse_lines(copy.deepcopy(self._carts.get(session_id, [])))

    async def _write(self, session_id: str, lines: List[CartLine]) -> None:
        self._carts[session_id] = [line.to_dict() for line in lines]
