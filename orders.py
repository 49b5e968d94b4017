"""
Order lifecycle: checkout and admin status transitions.

    pending --verify(accepted)--> verified --complete--> completed
    pending --verify(rejected)--> cancelled

Every status write is conditional on the status the transition starts from, so
two admins acting on the same order cannot both succeed.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Union

import database
from cart import Cart
from errors import Forbidden, InvalidTransition, OrderNotFound, ValidationError
from schemas import CustomerInfo, Order, OrderItem

logger = logging.getLogger(__name__)

ORDERS = "orders"

ALLOWED_TRANSITIONS = {
    "pending": ("verified", "cancelled"),
    "verified": ("completed",),
    "completed": (),
    "cancelled": (),
}

STATUS_MESSAGES = {
    "pending": "Order placed - Waiting for verification call",
    "verified": "Order verified - Being prepared for delivery",
    "completed": "Order delivered successfully",
    "cancelled": "Order was cancelled",
}


def status_message(status: str) -> str:
    return STATUS_MESSAGES.get(status, "Unknown status")


def _with_message(order: dict) -> dict:
    order["status_message"] = status_message(order.get("status"))
    return order


def place_order(profile: dict, cart: Cart, delivery_info: Union[CustomerInfo, dict]) -> dict:
    if isinstance(delivery_info, dict):
        delivery_info = CustomerInfo(**delivery_info)
    if len(cart) == 0:
        raise ValidationError("Your cart is empty")
    missing = [f for f in ("name", "phone", "address") if not (getattr(delivery_info, f) or "").strip()]
    if missing:
        raise ValidationError("Please fill all required fields: " + ", ".join(missing))

    # lines added while the order is being written stay in the cart
    lines = cart.take()
    if not lines:
        raise ValidationError("Your cart is empty")
    try:
        order = Order(
            user_id=profile["uid"],
            customer_info=delivery_info,
            items=[
                OrderItem(id=line.id, name=line.name, price=line.price, quantity=line.quantity, category=line.category)
                for line in lines
            ],
            total_amount=sum(line.price * line.quantity for line in lines),
            order_date=datetime.now(timezone.utc),
        )
        order_id = database.create_document(ORDERS, order)
    except Exception:
        cart.restore(lines)
        raise
    logger.info("Order %s placed by %s for %.2f", order_id, profile["uid"], order.total_amount)
    return _with_message(database.get_document_by_id(ORDERS, order_id))


def _transition(order_id: str, expected: str, update: dict) -> dict:
    target = update["status"]
    if target not in ALLOWED_TRANSITIONS[expected]:
        raise InvalidTransition(expected, target)
    if not database.update_document_where(ORDERS, order_id, {"status": expected}, update):
        current = database.get_document_by_id(ORDERS, order_id)
        if current is None:
            raise OrderNotFound()
        raise InvalidTransition(current.get("status"), target)
    logger.info("Order %s moved %s -> %s", order_id, expected, target)
    return _with_message(database.get_document_by_id(ORDERS, order_id))


def verify(order_id: str, accepted: bool, notes: Optional[str] = None) -> dict:
    if not notes:
        notes = "Order verified successfully" if accepted else "Verification failed"
    return _transition(order_id, "pending", {
        "verification_status": "verified" if accepted else "failed",
        "status": "verified" if accepted else "cancelled",
        "verification_notes": notes,
    })


def complete(order_id: str) -> dict:
    return _transition(order_id, "verified", {"status": "completed"})


def get_order(order_id: str, profile: dict) -> dict:
    order = database.get_document_by_id(ORDERS, order_id)
    if order is None:
        raise OrderNotFound()
    if profile.get("role") != "admin" and order.get("user_id") != profile.get("uid"):
        raise Forbidden()
    return _with_message(order)


def list_orders_for(uid: str) -> List[dict]:
    orders = database.get_documents(ORDERS, {"user_id": uid}, sort=[["order_date", -1]])
    return [_with_message(o) for o in orders]


def list_all_orders() -> List[dict]:
    return [_with_message(o) for o in database.get_documents(ORDERS, sort=[["order_date", -1]])]
