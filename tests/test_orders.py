import pytest

import orders
from cart import Cart
from errors import Forbidden, InvalidTransition, OrderNotFound, StoreUnavailable, ValidationError

PROFILE = {"uid": "uid-1", "name": "Rajesh Kumar", "role": "user"}
DELIVERY = {"name": "Rajesh Kumar", "phone": "9876543210", "address": "No. 123, Gandhi Street, Viruthunagar"}


def _cart():
    cart = Cart()
    cart.add({"id": "a", "name": "Premium Sparklers", "price": 150, "category": "Sparklers"})
    cart.add({"id": "a", "name": "Premium Sparklers", "price": 150, "category": "Sparklers"})
    cart.add({"id": "b", "name": "Flower Pot Deluxe", "price": 200, "category": "Flower pots"})
    return cart


def _placed(store):
    return orders.place_order(PROFILE, _cart(), DELIVERY)


def test_place_order_writes_pending_cod_order_and_clears_cart(store):
    cart = _cart()
    order = orders.place_order(PROFILE, cart, DELIVERY)
    assert len(cart) == 0
    assert store["orders"].count_documents({}) == 1
    assert order["status"] == "pending"
    assert order["verification_status"] == "pending"
    assert order["payment_method"] == "cod"
    assert order["total_amount"] == 500
    assert order["user_id"] == "uid-1"
    assert order["customer_info"]["address"] == DELIVERY["address"]
    assert [(i["id"], i["quantity"]) for i in order["items"]] == [("a", 2), ("b", 1)]


def test_place_order_empty_cart_fails_without_writes(store):
    with pytest.raises(ValidationError):
        orders.place_order(PROFILE, Cart(), DELIVERY)
    assert store["orders"].count_documents({}) == 0


def test_place_order_missing_address_keeps_cart(store):
    cart = _cart()
    with pytest.raises(ValidationError):
        orders.place_order(PROFILE, cart, {"name": "Rajesh", "phone": "9876543210"})
    assert len(cart) == 2
    assert store["orders"].count_documents({}) == 0


def test_place_order_blank_phone_fails(store):
    with pytest.raises(ValidationError):
        orders.place_order(PROFILE, _cart(), dict(DELIVERY, phone="   "))


def test_verify_rejected_cancels_with_notes(store):
    order = _placed(store)
    updated = orders.verify(order["id"], False, "damaged box")
    assert updated["status"] == "cancelled"
    assert updated["verification_status"] == "failed"
    assert updated["verification_notes"] == "damaged box"


def test_verify_accepted_uses_default_notes(store):
    order = _placed(store)
    updated = orders.verify(order["id"], True)
    assert updated["status"] == "verified"
    assert updated["verification_status"] == "verified"
    assert updated["verification_notes"] == "Order verified successfully"


def test_complete_pending_order_is_rejected(store):
    order = _placed(store)
    with pytest.raises(InvalidTransition):
        orders.complete(order["id"])
    assert store["orders"].find_one({})["status"] == "pending"


def test_complete_after_verify(store):
    order = _placed(store)
    orders.verify(order["id"], True)
    assert orders.complete(order["id"])["status"] == "completed"


def test_terminal_states_have_no_exits(store):
    order = _placed(store)
    orders.verify(order["id"], False)
    with pytest.raises(InvalidTransition):
        orders.verify(order["id"], True)
    with pytest.raises(InvalidTransition):
        orders.complete(order["id"])


def test_second_verification_loses(store):
    order = _placed(store)
    orders.verify(order["id"], True)
    with pytest.raises(InvalidTransition) as exc:
        orders.verify(order["id"], False, "late")
    assert exc.value.current == "verified"
    assert store["orders"].find_one({})["status"] == "verified"


def test_transition_on_unknown_order(store):
    with pytest.raises(OrderNotFound):
        orders.verify("64b7f0c2a1b2c3d4e5f60718", True)


def test_get_order_only_for_owner_or_admin(store):
    order = _placed(store)
    assert orders.get_order(order["id"], PROFILE)["id"] == order["id"]
    assert orders.get_order(order["id"], {"uid": "someone", "role": "admin"})["id"] == order["id"]
    with pytest.raises(Forbidden):
        orders.get_order(order["id"], {"uid": "someone", "role": "user"})


def test_list_orders_for_owner_only(store):
    _placed(store)
    orders.place_order({"uid": "uid-2"}, _cart(), DELIVERY)
    mine = orders.list_orders_for("uid-1")
    assert len(mine) == 1
    assert mine[0]["status_message"] == "Order placed - Waiting for verification call"
    assert len(orders.list_all_orders()) == 2


def test_status_message_unknown():
    assert orders.status_message("lost") == "Unknown status"


def test_place_order_store_failure_keeps_cart(no_store):
    cart = _cart()
    with pytest.raises(StoreUnavailable):
        orders.place_order(PROFILE, cart, DELIVERY)
    assert [(line.id, line.quantity) for line in cart] == [("a", 2), ("b", 1)]
