import pytest

from models.sell import Sell, SellItem
from services.errors import InsufficientStockError, ItemNotFoundError, ValidationError
from services.inventory import available_quantity
from services.sell import SellService


@pytest.fixture
def service(db_session):
    return SellService(db_session, search_limit=30, decrease_requires_available_stock=True,
                       base_url="http://localhost:3001")


def _lines(db_session, sell_id):
    return db_session.query(SellItem).filter(SellItem.sell_id == sell_id).order_by(SellItem.id).all()


# -----------------------------
# Dodawanie pozycji
# -----------------------------
def test_create_sale_starts_with_zero_discount(service, operator):
    sell = service.create_sale(operator.id)
    assert sell.id is not None
    assert sell.discount == 0
    assert sell.created_by == operator.id
    assert sell.deleted is False


def test_add_item_with_zero_sell_id_creates_sale(db_session, service, make_item, operator):
    item = make_item(quantity=3)
    line = service.add_item(0, item.id, operator.id)

    assert db_session.query(Sell).count() == 1
    assert line.sell_id == db_session.query(Sell).one().id
    assert line.quantity == 1


def test_duplicate_add_collapses_to_increase(db_session, service, make_item, operator):
    item = make_item(quantity=5)
    sell = service.create_sale(operator.id)

    service.add_item(sell.id, item.id, operator.id)
    line = service.add_item(sell.id, item.id, operator.id)

    lines = _lines(db_session, sell.id)
    assert len(lines) == 1
    assert line.quantity == 2


def test_add_item_by_barcode(service, make_item, operator):
    item = make_item(barcode="5901234000011")
    line = service.add_item(0, "5901234000011", operator.id, barcode=True)
    assert line.item_id == item.id


def test_unknown_barcode_is_not_found(service, make_item, operator):
    make_item(barcode="5901234000011")
    with pytest.raises(ItemNotFoundError):
        service.add_item(0, "0000", operator.id, barcode=True)


def test_deleted_item_is_not_found(service, make_item, operator):
    item = make_item(deleted=True)
    with pytest.raises(ItemNotFoundError):
        service.add_item(0, item.id, operator.id)


def test_insufficient_stock_leaves_no_sale_behind(db_session, service, make_item, make_sell, operator):
    item = make_item(quantity=1)
    make_sell(lines=[(item, 1)])
    sells_before = db_session.query(Sell).count()

    with pytest.raises(InsufficientStockError) as exc:
        service.add_item(0, item.id, operator.id)

    assert exc.value.message == "insufficient stock"
    assert db_session.query(Sell).count() == sells_before


def test_availability_counts_lines_of_all_sales(service, make_item, make_sell, operator):
    item = make_item(quantity=3)
    make_sell(lines=[(item, 2)])
    make_sell(lines=[(item, 1)])
    sell = service.create_sale(operator.id)
    with pytest.raises(InsufficientStockError):
        service.add_item(sell.id, item.id, operator.id)


def test_new_line_snapshots_prices(db_session, service, make_item, operator):
    item = make_item(purchase=4.0, sell=9.0)
    line = service.add_item(0, item.id, operator.id)

    item.item_sell_price = 15.0
    item.item_purchase_price = 7.0
    db_session.commit()

    db_session.refresh(line)
    assert line.item_sell_price == 9.0
    assert line.item_purchase_price == 4.0


# -----------------------------
# Zmiana ilości
# -----------------------------
def test_add_then_decrease_restores_available_quantity(db_session, service, make_item, operator):
    item = make_item(quantity=5)
    sell = service.create_sale(operator.id)
    service.add_item(sell.id, item.id, operator.id)
    service.add_item(sell.id, item.id, operator.id)
    before = available_quantity(db_session, item.id)

    service.add_item(sell.id, item.id, operator.id)
    assert available_quantity(db_session, item.id) == before - 1

    service.decrease(sell.id, item.id, operator.id)
    assert available_quantity(db_session, item.id) == before


def test_increase_requires_free_unit(service, make_item, operator):
    item = make_item(quantity=1)
    line = service.add_item(0, item.id, operator.id)
    with pytest.raises(InsufficientStockError):
        service.increase(line.sell_id, item.id, operator.id)


def test_decrease_keeps_availability_rule(service, make_item, operator):
    # Wyczerpany towar blokuje także zmniejszenie (zachowane zachowanie)
    item = make_item(quantity=1)
    line = service.add_item(0, item.id, operator.id)
    with pytest.raises(InsufficientStockError):
        service.decrease(line.sell_id, item.id, operator.id)


def test_decrease_without_availability_rule(db_session, make_item, operator):
    service = SellService(db_session, decrease_requires_available_stock=False)
    item = make_item(quantity=1)
    line = service.add_item(0, item.id, operator.id)
    line = service.decrease(line.sell_id, item.id, operator.id)
    assert line.quantity == 0


def test_decrease_below_zero_is_rejected(db_session, service, make_item, operator):
    item = make_item(quantity=5)
    line = service.add_item(0, item.id, operator.id)
    service.decrease(line.sell_id, item.id, operator.id)
    with pytest.raises(ValidationError):
        service.decrease(line.sell_id, item.id, operator.id)
    db_session.refresh(line)
    assert line.quantity == 0


def test_update_item_quantity_sets_value(service, make_item, operator):
    item = make_item(quantity=5)
    line = service.add_item(0, item.id, operator.id)
    line = service.update_item_quantity(line.sell_id, item.id, 4, operator.id)
    assert line.quantity == 4


def test_update_item_quantity_checks_stock_for_increase(service, make_item, operator):
    item = make_item(quantity=5)
    line = service.add_item(0, item.id, operator.id)
    with pytest.raises(InsufficientStockError):
        service.update_item_quantity(line.sell_id, item.id, 6, operator.id)
    with pytest.raises(ValidationError):
        service.update_item_quantity(line.sell_id, item.id, -1, operator.id)


def test_item_quantity(service, make_item, make_sell):
    item = make_item(quantity=10)
    make_sell(lines=[(item, 3)])
    make_sell(lines=[(item, 4)], deleted=True)
    assert service.item_quantity(item.id) == {
        "item_id": item.id, "quantity": 10, "sold": 3, "actual_quantity": 7,
    }


# -----------------------------
# Rabat
# -----------------------------
def test_discount_bounds_are_inclusive(service, make_item, make_sell, operator):
    a = make_item(sell=10.0, quantity=10)
    b = make_item(sell=5.0, quantity=10)
    sell = make_sell(lines=[(a, 2), (b, 1)])

    assert service.update_discount(sell.id, 0, operator.id).discount == 0
    assert service.update_discount(sell.id, 25, operator.id).discount == 25
    with pytest.raises(ValidationError):
        service.update_discount(sell.id, 25.01, operator.id)
    with pytest.raises(ValidationError):
        service.update_discount(sell.id, -1, operator.id)


def test_discount_ignores_removed_lines(service, make_item, make_sell, operator):
    a = make_item(sell=10.0, quantity=10)
    b = make_item(sell=5.0, quantity=10)
    sell = make_sell(lines=[(a, 1), (b, 1)])
    service.remove_item(sell.id, b.id)
    with pytest.raises(ValidationError):
        service.update_discount(sell.id, 15, operator.id)


@pytest.mark.parametrize("discount", ["nan", float("nan"), float("inf"), "-inf"])
def test_non_finite_discount_is_invalid(db_session, service, make_item, make_sell, operator, discount):
    sell = make_sell(lines=[(make_item(sell=10.0), 1)], discount=2)
    with pytest.raises(ValidationError):
        service.update_discount(sell.id, discount, operator.id)
    db_session.refresh(sell)
    assert sell.discount == 2


def test_removing_lines_lowers_discount_to_new_total(db_session, service, make_item, make_sell, operator):
    a = make_item(sell=10.0, quantity=10)
    b = make_item(sell=4.0, quantity=10)
    sell = make_sell(lines=[(a, 1), (b, 1)])
    service.update_discount(sell.id, 14, operator.id)

    service.remove_item(sell.id, a.id)
    db_session.refresh(sell)
    assert sell.discount == 4

    service.remove_item(sell.id, b.id)
    db_session.refresh(sell)
    assert sell.discount == 0


def test_lower_quantity_lowers_discount(db_session, make_item, make_sell, operator):
    service = SellService(db_session, decrease_requires_available_stock=False)
    item = make_item(sell=10.0, quantity=10)
    sell = make_sell(lines=[(item, 3)])
    service.update_discount(sell.id, 30, operator.id)

    service.decrease(sell.id, item.id, operator.id)
    db_session.refresh(sell)
    assert sell.discount == 20

    service.update_item_quantity(sell.id, item.id, 1, operator.id)
    db_session.refresh(sell)
    assert sell.discount == 10


def test_discount_within_new_total_is_kept(db_session, service, make_item, make_sell, operator):
    item = make_item(sell=10.0, quantity=10)
    sell = make_sell(lines=[(item, 3)], discount=5)
    service.update_item_quantity(sell.id, item.id, 1, operator.id)
    db_session.refresh(sell)
    assert sell.discount == 5


def test_discount_on_missing_sale(service, operator):
    with pytest.raises(ValidationError):
        service.update_discount(999, 0, operator.id)


# -----------------------------
# Usuwanie i przywracanie
# -----------------------------
def test_remove_item_marks_line_self_deleted(db_session, service, make_item, make_sell):
    item = make_item()
    sell = make_sell(lines=[(item, 1)])
    service.remove_item(sell.id, item.id)
    line = _lines(db_session, sell.id)[0]
    assert (line.deleted, line.self_deleted) == (False, True)


def test_delete_sale_cascades_and_partial_restore(db_session, service, make_item, make_sell, operator):
    items = [make_item() for _ in range(3)]
    sell = make_sell(lines=[(item, 1) for item in items])

    service.delete_sale(sell.id, operator.id)
    db_session.expire_all()
    assert db_session.get(Sell, sell.id).deleted is True
    assert all(l.deleted and l.self_deleted for l in _lines(db_session, sell.id))

    service.restore_sale(sell.id, [items[1].id], operator.id)
    db_session.expire_all()
    assert db_session.get(Sell, sell.id).deleted is False
    flags = [(l.item_id, l.deleted, l.self_deleted) for l in _lines(db_session, sell.id)]
    assert flags == [
        (items[0].id, True, True),
        (items[1].id, False, False),
        (items[2].id, True, True),
    ]


def test_restore_sale_brings_back_one_line_per_item(db_session, service, make_item, make_sell, operator):
    item = make_item(quantity=10)
    sell = make_sell(lines=[(item, 1)])
    service.remove_item(sell.id, item.id)
    replacement = service.add_item(sell.id, item.id, operator.id)

    service.delete_sale(sell.id, operator.id)
    service.restore_sale(sell.id, [item.id, item.id], operator.id)
    db_session.expire_all()

    active = [l for l in _lines(db_session, sell.id) if not l.deleted and not l.self_deleted]
    assert [l.id for l in active] == [replacement.id]

    # Ponowne przywrócenie nie dokłada drugiej aktywnej linii
    service.restore_sale(sell.id, [item.id], operator.id)
    db_session.expire_all()
    active = [l for l in _lines(db_session, sell.id) if not l.deleted and not l.self_deleted]
    assert len(active) == 1


def test_restore_sale_lowers_discount_to_restored_lines(db_session, service, make_item, make_sell, operator):
    a = make_item(sell=10.0)
    b = make_item(sell=5.0)
    sell = make_sell(lines=[(a, 1), (b, 1)], discount=12)

    service.delete_sale(sell.id, operator.id)
    service.restore_sale(sell.id, [b.id], operator.id)
    db_session.refresh(sell)
    assert sell.discount == 5


def test_deleted_sell_items_lists_cascaded_lines(service, make_item, make_sell, operator):
    a, b = make_item(), make_item()
    sell = make_sell(lines=[(a, 1), (b, 2)])
    service.delete_sale(sell.id, operator.id)
    rows = service.deleted_sell_items(sell.id)
    assert [r["item_id"] for r in rows] == [a.id, b.id]
    assert rows[0]["item_name"] == a.name


def test_restore_self_deleted_line(db_session, service, make_item, make_sell):
    item = make_item()
    sell = make_sell(lines=[(item, 1)])
    service.remove_item(sell.id, item.id)

    service.restore_self_deleted_line(item.id, sell.id)
    line = _lines(db_session, sell.id)[0]
    assert (line.deleted, line.self_deleted) == (False, False)


def test_restore_self_deleted_line_refuses_duplicate(service, make_item, make_sell, operator):
    item = make_item(quantity=10)
    sell = make_sell(lines=[(item, 1)])
    service.remove_item(sell.id, item.id)
    service.add_item(sell.id, item.id, operator.id)
    with pytest.raises(ValidationError):
        service.restore_self_deleted_line(item.id, sell.id)


def test_restore_self_deleted_line_skips_sale_deleted_lines(service, make_item, make_sell, operator):
    item = make_item()
    sell = make_sell(lines=[(item, 1)])
    service.delete_sale(sell.id, operator.id)
    with pytest.raises(ValidationError):
        service.restore_self_deleted_line(item.id)


# -----------------------------
# Odczyt
# -----------------------------
def test_list_sells_newest_first_with_usernames(service, make_sell, other_operator):
    first = make_sell()
    second = make_sell(created_by=other_operator)
    make_sell(deleted=True)

    result = service.list_sells(1, 10)
    assert [r["id"] for r in result["paginated_data"]] == [second.id, first.id]
    assert result["paginated_data"][0]["created_by"] == "manager"
    assert result["meta"]["total"] == 2

    by_user = service.list_sells(1, 10, user=other_operator.id)
    assert [r["id"] for r in by_user["paginated_data"]] == [second.id]

    deleted = service.list_sells(1, 10, deleted=True)
    assert deleted["meta"]["total"] == 1


def test_search_sells_is_capped(db_session, make_sell):
    service = SellService(db_session, search_limit=3)
    for _ in range(5):
        make_sell()
    assert len(service.search_sells("")) == 3


def test_self_deleted_items_pagination_and_search(service, make_item, make_sell):
    item = make_item()
    sells = [make_sell(lines=[(item, 1)]) for _ in range(3)]
    for sell in sells:
        service.remove_item(sell.id, item.id)

    page = service.self_deleted_items(1, 2)
    assert page["meta"]["total"] == 3
    assert page["meta"]["has_next_page"] is True
    assert len(page["paginated_data"]) == 2

    found = service.search_self_deleted_items(str(sells[0].id))
    assert sells[0].id in [r["sell_id"] for r in found]


def test_find_sell_and_items(service, make_item, make_sell):
    item = make_item(name="Wax")
    sell = make_sell(lines=[(item, 2)])
    assert service.find_sell(sell.id)["id"] == sell.id
    items = service.sell_items(sell.id)
    assert [(r["item_name"], r["quantity"]) for r in items] == [("Wax", 2)]
    with pytest.raises(ValidationError):
        service.find_sell(12345)


def test_receipt_data_rejects_empty_basket(service, operator):
    sell = service.create_sale(operator.id)
    with pytest.raises(ValidationError):
        service.receipt_data(sell.id)


def test_receipt_data_totals(service, make_item, make_sell):
    item = make_item(sell=12.0)
    sell = make_sell(lines=[(item, 3)], discount=6)
    receipt = service.receipt_data(sell.id)
    assert receipt["total_sell_price"] == 36.0
    assert receipt["total_after_discount"] == 30.0
