"""
Shopping carts held in process memory.

A Cart belongs to one signed-in session (one token) and lives until the token
expires or the session signs out; nothing is written to the store until
checkout. Route handlers run in a threadpool, so every mutation takes the
cart's lock.
"""

import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple, Union

from schemas import CartLineItem


class Cart:
    def __init__(self):
        self.items: List[CartLineItem] = []
        self._lock = threading.RLock()

    def __len__(self):
        return len(self.items)

    def __iter__(self):
        with self._lock:
            return iter(list(self.items))

    def _find(self, item_id: str):
        for line in self.items:
            if line.id == item_id:
                return line
        return None

    def add(self, item: Union[CartLineItem, dict]) -> CartLineItem:
        """Add one unit of a product. A product already in the cart gets +1."""
        data = item.model_dump() if isinstance(item, CartLineItem) else dict(item)
        with self._lock:
            line = self._find(data["id"])
            if line is not None:
                line.quantity += 1
                return line
            data["quantity"] = 1
            line = CartLineItem(**data)
            self.items.append(line)
            return line

    def set_quantity(self, item_id: str, quantity: int):
        if quantity < 1:
            return
        with self._lock:
            line = self._find(item_id)
            if line is not None:
                line.quantity = quantity

    def remove(self, item_id: str):
        with self._lock:
            self.items = [line for line in self.items if line.id != item_id]

    def clear(self):
        with self._lock:
            self.items = []

    def take(self) -> List[CartLineItem]:
        """Empty the cart and return the lines it held."""
        with self._lock:
            lines, self.items = self.items, []
            return lines

    def restore(self, lines: List[CartLineItem]):
        """Put back lines returned by take(), merged with anything added since."""
        with self._lock:
            added = self.items
            self.items = list(lines)
            for line in added:
                existing = self._find(line.id)
                if existing is not None:
                    existing.quantity += line.quantity
                else:
                    self.items.append(line)

    def total(self) -> float:
        with self._lock:
            return sum(line.price * line.quantity for line in self.items)

    def total_items(self) -> int:
        with self._lock:
            return sum(line.quantity for line in self.items)

    def to_dict(self) -> dict:
        with self._lock:
            return {
                "items": [line.model_dump() for line in self.items],
                "total": self.total(),
                "total_items": self.total_items(),
            }


class CartRegistry:
    """Carts keyed by session token id; expired sessions are evicted on access."""

    def __init__(self):
        self._carts: Dict[str, Tuple[Cart, Optional[datetime]]] = {}
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._carts)

    def _evict_expired(self, now: datetime):
        expired = [key for key, (_, expires_at) in self._carts.items() if expires_at and expires_at <= now]
        for key in expired:
            del self._carts[key]

    def get(self, session_id: str, expires_at: Optional[datetime] = None) -> Cart:
        with self._lock:
            self._evict_expired(datetime.now(timezone.utc))
            entry = self._carts.get(session_id)
            if entry is None:
                entry = self._carts[session_id] = (Cart(), expires_at)
            return entry[0]

    def drop(self, session_id: str):
        with self._lock:
            self._carts.pop(session_id, None)
