"""Cart models with Decimal-based pricing."""
import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, List, Optional

from storefront.services.money import to_decimal, round_money, multiply


def parse_int(value: Any) -> Optional[int]:
    """Read an integer from numbers or numeric strings; None if there is none."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return int(number)


def to_positive_int(value: Any, fallback: int = 1) -> int:
    """Parse a quantity; anything non-numeric, non-finite or below 1 becomes ``fallback``."""
    number = parse_int(value)
    return number if number is not None and number >= 1 else fallback


def to_stock(value: Any) -> Optional[int]:
    """Normalize a cached stock value: None stays untracked, everything else is >= 0."""
    if value is None:
        return None
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


@dataclass
class CartLine:
    """Single product in the cart.

    ``stock`` is the remaining ledger stock observed after this line's own
    reservation; None means the product is not inventoried.
    """
    id: str
    name: str
    qty: int
    price: Decimal = Decimal("0")
    image_url: Optional[str] = None
    stock: Optional[int] = None

    def __post_init__(self):
        self.price = to_decimal(self.price)
        self.qty = to_positive_int(self.qty)
        self.stock = to_stock(self.stock)

    @property
    def tracks_stock(self) -> bool:
        return self.stock is not None

    @property
    def max_qty(self) -> Optional[int]:
        """Upper bound for the quantity selector: what we hold plus what is left."""
        if self.stock is None:
            return None
        return max(1, self.qty + self.stock)

    @property
    def total_price(self) -> Decimal:
        """Total price for all units."""
        return round_money(multiply(self.price, self.qty))

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "qty": self.qty,
            "price": str(self.price),
            "image_url": self.image_url,
            "stock": self.stock,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartLine":
        """Create from dictionary."""
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            qty=to_positive_int(data.get("qty"), 1),
            price=to_decimal(data.get("price")),
            image_url=data.get("image_url"),
            stock=data.get("stock"),
        )


@dataclass
class Cart:
    """Ordered collection of cart lines, keyed by product id."""
    session_id: str
    lines: List[CartLine] = field(default_factory=list)

    def find(self, product_id: str) -> Optional[CartLine]:
        return next((line for line in self.lines if line.id == product_id), None)

    def remove(self, product_id: str) -> None:
        self.lines = [line for line in self.lines if line.id != product_id]

    @property
    def total_items(self) -> int:
        """Badge count: total units across all lines."""
        return sum(line.qty for line in self.lines)

    @property
    def subtotal(self) -> Decimal:
        return round_money(sum((line.total_price for line in self.lines), Decimal("0")))
