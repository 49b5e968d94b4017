import threading
from datetime import datetime, timedelta, timezone

from cart import Cart, CartRegistry


def _product(pid, price, category="Sparklers"):
    return {"id": pid, "name": f"Product {pid}", "price": price, "category": category, "in_stock": True}


def test_add_same_product_increments_quantity():
    cart = Cart()
    cart.add(_product("a", 150))
    cart.add(_product("a", 150))
    cart.add(_product("a", 150))
    assert len(cart) == 1
    assert cart.items[0].quantity == 3


def test_add_new_product_appends_line_with_quantity_one():
    cart = Cart()
    cart.add(_product("a", 150))
    cart.add(_product("b", 200))
    assert [line.id for line in cart] == ["a", "b"]
    assert all(line.quantity == 1 for line in cart)


def test_price_is_snapshot_from_first_add():
    cart = Cart()
    cart.add(_product("a", 150))
    cart.add(_product("a", 999))
    assert cart.items[0].price == 150


def test_set_quantity_ignores_values_below_one():
    cart = Cart()
    cart.add(_product("a", 150))
    cart.set_quantity("a", 4)
    cart.set_quantity("a", 0)
    cart.set_quantity("a", -2)
    assert cart.items[0].quantity == 4


def test_set_quantity_unknown_item_is_noop():
    cart = Cart()
    cart.add(_product("a", 150))
    cart.set_quantity("zzz", 5)
    assert cart.total_items() == 1


def test_total_matches_scenario():
    cart = Cart()
    cart.add(_product("a", 150))
    cart.add(_product("b", 200, "Flower pots"))
    cart.set_quantity("a", 2)
    assert cart.total() == 500
    assert cart.total_items() == 3


def test_total_after_mixed_operations():
    cart = Cart()
    for pid, price in [("a", 10), ("b", 25.5), ("c", 3)]:
        cart.add(_product(pid, price))
    cart.add(_product("b", 25.5))
    cart.set_quantity("c", 7)
    cart.remove("a")
    expected = sum(line.price * line.quantity for line in cart)
    assert cart.total() == expected == 25.5 * 2 + 3 * 7


def test_remove_and_clear():
    cart = Cart()
    cart.add(_product("a", 1))
    cart.add(_product("b", 2))
    cart.remove("a")
    assert [line.id for line in cart] == ["b"]
    cart.clear()
    assert len(cart) == 0
    assert cart.total() == 0


def test_to_dict():
    cart = Cart()
    cart.add(_product("a", 150))
    data = cart.to_dict()
    assert data["total"] == 150
    assert data["total_items"] == 1
    assert data["items"][0]["id"] == "a"


def test_registry_keeps_one_cart_per_session():
    carts = CartRegistry()
    assert carts.get("u1") is carts.get("u1")
    assert carts.get("u1") is not carts.get("u2")
    carts.get("u1").add(_product("a", 1))
    carts.drop("u1")
    assert len(carts.get("u1")) == 0


def test_concurrent_adds_of_same_product_keep_one_line():
    cart = Cart()
    workers = 16
    barrier = threading.Barrier(workers)

    def add():
        barrier.wait()
        cart.add(_product("a", 150))

    threads = [threading.Thread(target=add) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(cart) == 1
    assert cart.items[0].quantity == workers


def test_take_then_restore_merges_lines_added_meanwhile():
    cart = Cart()
    cart.add(_product("a", 150))
    cart.add(_product("b", 200))
    lines = cart.take()
    assert len(cart) == 0
    cart.add(_product("a", 150))
    cart.add(_product("c", 10))
    cart.restore(lines)
    assert [(line.id, line.quantity) for line in cart] == [("a", 2), ("b", 1), ("c", 1)]


def test_registry_evicts_expired_sessions():
    carts = CartRegistry()
    now = datetime.now(timezone.utc)
    old = carts.get("expired-session", now - timedelta(seconds=1))
    old.add(_product("a", 1))
    carts.get("live-session", now + timedelta(hours=1))
    assert len(carts) == 1
    assert len(carts.get("expired-session", now + timedelta(hours=1))) == 0


def test_registry_drop_only_affects_one_session():
    carts = CartRegistry()
    carts.get("phone").add(_product("a", 1))
    carts.get("laptop").add(_product("b", 1))
    carts.drop("phone")
    assert [line.id for line in carts.get("laptop")] == ["b"]
