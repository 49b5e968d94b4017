"""Read-only aggregates and listings for the admin dashboard."""

from typing import List, Optional

import database
from catalog import PRODUCTS
from orders import ORDERS
from profiles import USERS


def compute_stats() -> dict:
    orders = database.get_documents(ORDERS)
    return {
        "total_products": database.count_documents(PRODUCTS),
        "total_users": database.count_documents(USERS, {"role": "user"}),
        "total_orders": len(orders),
        "pending_orders": sum(1 for o in orders if o.get("status") == "pending"),
        "completed_orders": sum(1 for o in orders if o.get("status") == "completed"),
        # every order counts, whatever its status
        "total_revenue": sum(o.get("total_amount") or 0 for o in orders),
    }


def list_customers(search: Optional[str] = None) -> List[dict]:
    users = database.get_documents(USERS, {"role": "user"})
    if not search:
        return users
    needle = search.lower()
    return [
        u for u in users
        if needle in (u.get("name") or "").lower()
        or needle in (u.get("email") or "").lower()
        or (u.get("phone") and search in u["phone"])
    ]
