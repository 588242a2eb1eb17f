import pytest

from conftest import make_product
from swaisy_wholesale.common.models.user import User
from swaisy_wholesale.services.draft_order import (
    AddItem,
    DraftOrder,
    Reset,
    SetDiscount,
    SetField,
    SetQuantity,
    apply,
    for_user,
    validate_for_submission,
)

RICE = make_product("RICE-0", "Rice", 5.0)
SALT = make_product("SALT-1", "Salt", 3.0)


def test_adding_same_product_twice_merges_lines():
    cart = apply(DraftOrder(), AddItem(RICE))
    cart = apply(cart, AddItem(RICE, qty=2))
    cart = apply(cart, AddItem(SALT))

    assert [(it.item_id, it.qty) for it in cart.items] == [("RICE-0", 3), ("SALT-1", 1)]
    assert cart.item_count == 4
    assert cart.items[0].price == 5.0
    assert cart.items[0].item_name == "Rice"


def test_events_do_not_mutate_previous_draft():
    empty = DraftOrder()
    apply(empty, AddItem(RICE))

    assert empty.items == ()


def test_set_quantity_updates_or_removes():
    cart = apply(apply(DraftOrder(), AddItem(RICE)), AddItem(SALT))

    cart = apply(cart, SetQuantity("RICE-0", 4))
    assert cart.items[0].qty == 4

    cart = apply(cart, SetQuantity("SALT-1", 0))
    assert [it.item_id for it in cart.items] == ["RICE-0"]


def test_totals_follow_discount():
    cart = apply(apply(DraftOrder(), AddItem(RICE, qty=2)), AddItem(SALT))
    cart = apply(cart, SetDiscount(10))

    assert cart.subtotal == pytest.approx(13.0)
    assert cart.total == pytest.approx(11.7)


@pytest.mark.parametrize("raw, expected", [(-5, 0.0), (150, 100.0), ("abc", 0.0), (12.5, 12.5)])
def test_discount_is_clamped(raw, expected):
    assert apply(DraftOrder(), SetDiscount(raw)).discount == expected


def test_set_field_and_reset():
    cart = apply(DraftOrder(), SetField("store_name", "Corner"))
    cart = apply(cart, AddItem(RICE))
    assert cart.store_name == "Corner"

    with pytest.raises(ValueError):
        apply(cart, SetField("discount", "50"))

    assert apply(cart, Reset()) == DraftOrder()


def test_unknown_event_type():
    with pytest.raises(TypeError):
        apply(DraftOrder(), object())


def test_add_item_rejects_non_positive_quantity():
    with pytest.raises(ValueError):
        apply(DraftOrder(), AddItem(RICE, qty=0))


def test_shop_user_orders_under_profile_without_discount():
    shop = User(
        id="u4", username="corner", password="shop", role="shop",
        store_name="Corner Shop", phone_number="71123456", address="Hamra St",
    )
    cart = DraftOrder(store_name="Other", discount=20)

    cart = for_user(cart, shop)

    assert (cart.store_name, cart.phone_number, cart.address) == ("Corner Shop", "71123456", "Hamra St")
    assert cart.discount == 0.0

    salesman = User(id="u2", username="salesman", password="password", role="salesman")
    assert for_user(DraftOrder(discount=20), salesman).discount == 20


def test_from_dict_reads_wire_keys():
    cart = DraftOrder.from_dict(
        {
            "storeName": "Corner",
            "phoneNumber": "71123456",
            "address": "Hamra",
            "items": [{"itemId": "RICE-0", "itemName": "Rice", "qty": 2, "price": 5}],
            "discount": "5",
        }
    )

    assert cart.items[0].qty == 2
    assert cart.discount == 5.0
    validate_for_submission(cart)

    with pytest.raises(ValueError):
        DraftOrder.from_dict({"items": [{"itemId": "RICE-0", "qty": 0}]})
