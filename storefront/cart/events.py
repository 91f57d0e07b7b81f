"""Cart change notifications.

Two signals are produced:
- ``cart.changed``: after every save, carries the full line list
- ``cart.added``: after units were actually added to a line

Handlers may be plain functions or coroutines. A failing handler is logged
and skipped; it never undoes or breaks the cart mutation that fired it.
"""
import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Union

from storefront.logging import get_logger

logger = get_logger(__name__)


class CartSignal(str, Enum):
    CHANGED = "cart.changed"
    ADDED = "cart.added"


@dataclass
class CartChanged:
    session_id: str
    lines: List[dict]
    total_items: int

    def to_dict(self) -> dict:
        return {
            "event": CartSignal.CHANGED.value,
            "session_id": self.session_id,
            "lines": self.lines,
            "total_items": self.total_items,
        }


@dataclass
class LineAdded:
    session_id: str
    id: str
    name: str
    qty: int
    source: str = ""

    def to_dict(self) -> dict:
        return {
            "event": CartSignal.ADDED.value,
            "session_id": self.session_id,
            "id": self.id,
            "name": self.name,
            "qty": self.qty,
            "source": self.source,
        }


Handler = Callable[[Any], Union[None, Awaitable[None]]]


@dataclass
class CartEvents:
    """Subscriber registry for cart signals."""
    _handlers: Dict[CartSignal, List[Handler]] = field(default_factory=dict)

    def subscribe(self, signal: CartSignal, handler: Handler) -> Callable[[], None]:
        """Register a handler; returns a callable that unsubscribes it."""
        self._handlers.setdefault(signal, []).append(handler)
        return lambda: self.unsubscribe(signal, handler)

    def unsubscribe(self, signal: CartSignal, handler: Handler) -> None:
        handlers = self._handlers.get(signal, [])
        if handler in handlers:
            handlers.remove(handler)

    async def emit(self, signal: CartSignal, payload: Union[CartChanged, LineAdded]) -> None:
        for handler in list(self._handlers.get(signal, [])):
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.warning(f"Cart event handler failed for {signal.value}", exc_info=True)

    async def cart_changed(self, session_id: str, lines: List[Any]) -> None:
        await self.emit(
            CartSignal.CHANGED,
            CartChanged(
                session_id=session_id,
                lines=[line.to_dict() for line in lines],
                total_items=sum(line.qty for line in lines),
            ),
        )

    async def line_added(self, session_id: str, product_id: str, name: str, qty: int, source: str = "") -> None:
        await self.emit(
            CartSignal.ADDED,
            LineAdded(session_id=session_id, id=product_id, name=name, qty=qty, source=source or ""),
        )
