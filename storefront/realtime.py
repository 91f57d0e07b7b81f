"""Upstash Realtime Module - cart event broadcasting.

Forwards cart events to a Redis Stream per session so the frontend badge
and mini-cart can follow changes made from other tabs or devices.

Note: Using Redis Streams (XADD/XREAD) instead of Pub/Sub for better
compatibility with Upstash REST API and history/replay support.
"""

import json
from typing import Union

from storefront.cart.events import CartChanged, CartEvents, CartSignal, LineAdded
from storefront.db import RedisKeys, get_redis
from storefront.logging import get_logger, sanitize_id_for_logging

logger = get_logger(__name__)


async def emit_cart_event(payload: Union[CartChanged, LineAdded]) -> None:
    """Append a cart event to the session's stream.

    Args:
        payload: CartChanged or LineAdded event
    """
    data = payload.to_dict()
    try:
        redis = get_redis()
        stream_key = RedisKeys.cart_stream_key(payload.session_id)
        await redis.xadd(stream_key, "*", {"data": json.dumps(data)})
        logger.debug(f"Emitted {data['event']} for session {sanitize_id_for_logging(payload.session_id)}")
    except Exception as e:
        logger.warning(f"Failed to emit {data['event']}: {e}", exc_info=True)


def attach_realtime(events: CartEvents) -> None:
    """Subscribe the stream emitter to both cart signals."""
    events.subscribe(CartSignal.CHANGED, emit_cart_event)
    events.subscribe(CartSignal.ADDED, emit_cart_event)
