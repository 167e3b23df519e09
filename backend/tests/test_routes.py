from models.log import Log


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200


def test_add_item_creates_sale_and_logs(client, db_session, make_item):
    item = make_item(quantity=2)
    response = client.post("/sell/0/items", json={"item_id": item.id})
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["quantity"] == 1
    assert body["sell_id"] > 0

    log = db_session.query(Log).filter(Log.action == "SELL_ADD_ITEM").one()
    assert log.meta["item_id"] == item.id
    assert log.resource_id == str(body["sell_id"])


def test_add_item_by_barcode_not_found(client, make_item):
    make_item(barcode="111")
    response = client.post("/sell/0/items", json={"item_id": "999", "barcode": True})
    assert response.status_code == 400
    assert response.json()["detail"] == "item not found"


def test_add_item_out_of_stock(client, make_item, make_sell):
    item = make_item(quantity=1)
    make_sell(lines=[(item, 1)])
    response = client.post("/sell/0/items", json={"item_id": item.id})
    assert response.status_code == 400
    assert response.json()["detail"] == "insufficient stock"


def test_discount_out_of_range(client, make_item, make_sell):
    sell = make_sell(lines=[(make_item(sell=10.0), 1)])
    assert client.put(f"/sell/{sell.id}", json={"discount": 11}).status_code == 400
    response = client.put(f"/sell/{sell.id}", json={"discount": 10})
    assert response.status_code == 200
    assert response.json()["discount"] == 10


def test_discount_schema_rejects_nan_and_negative(client, make_item, make_sell):
    sell = make_sell(lines=[(make_item(sell=10.0), 1)])
    response = client.put(f"/sell/{sell.id}", content='{"discount": NaN}',
                          headers={"Content-Type": "application/json"})
    assert response.status_code == 422
    assert client.put(f"/sell/{sell.id}", json={"discount": -1}).status_code == 422


def test_negative_quantity_is_rejected_by_schema(client, make_item, make_sell):
    item = make_item()
    sell = make_sell(lines=[(item, 1)])
    response = client.put(f"/sell/{sell.id}/items/{item.id}", json={"quantity": -1})
    assert response.status_code == 422


def test_delete_and_restore_sale(client, make_item, make_sell):
    a, b = make_item(), make_item()
    sell = make_sell(lines=[(a, 1), (b, 1)])

    assert client.delete(f"/sell/{sell.id}").status_code == 200
    deleted = client.get(f"/sell/{sell.id}/deleted_items").json()
    assert {row["item_id"] for row in deleted} == {a.id, b.id}

    assert client.put(f"/sell/{sell.id}/restore", json={"item_ids": [b.id]}).status_code == 200
    items = client.get(f"/sell/{sell.id}/items").json()
    assert [row["item_id"] for row in items] == [b.id]


def test_sell_list_uses_frontend_aliases(client, make_sell):
    for _ in range(3):
        make_sell()
    body = client.get("/sell", params={"page": 1, "limit": 2}).json()
    assert len(body["paginatedData"]) == 2
    assert body["meta"]["hasNextPage"] is True
    assert body["meta"]["nextPageUrl"].endswith("?page=2&limit=2")


def test_item_quantity_endpoint(client, make_item, make_sell):
    item = make_item(quantity=6)
    make_sell(lines=[(item, 2)])
    body = client.get(f"/sell/item_quantity/{item.id}").json()
    assert body == {"item_id": item.id, "quantity": 6, "sold": 2, "actual_quantity": 4}


def test_report_list_meta(client, make_item, make_sell):
    item = make_item(quantity=100)
    for _ in range(3):
        make_sell(lines=[(item, 1)])

    body = client.get("/report/sell", params={"page": 2, "limit": 2}).json()
    assert len(body["paginatedData"]) == 1
    assert body["meta"] == {"total": 3, "hasNextPage": False, "nextPageUrl": None}


def test_report_invalid_page(client):
    assert client.get("/report/sell", params={"page": 0}).status_code == 400
    assert client.get("/report/unknown").status_code == 400


def test_report_information_with_user_filter(client, make_item, make_sell, other_operator):
    item = make_item(quantity=100, sell=5.0)
    make_sell(lines=[(item, 1)])
    make_sell(lines=[(item, 2)], created_by=other_operator)

    body = client.get("/report/sell/information", params={"userFilter": other_operator.id}).json()
    assert body["sell_count"] == 1
    assert body["total_sell_price"] == 10.0


def test_report_search(client, make_item):
    make_item(name="Ceramic coating")
    make_item(name="Shampoo")
    rows = client.get("/report/koga_all/search", params={"search": "ceramic"}).json()
    assert [row["name"] for row in rows] == ["Ceramic coating"]


def test_global_case(client, stored_config, make_expense):
    stored_config(report_print_modal=False, item_less_from=0, initial_money=1000)
    make_expense(200.0)
    body = client.get("/report/global_case").json()
    assert body["remain_money"] == 800.0
    assert body["total_expense"] == 200.0


def test_report_print_preview_returns_pdf(client, db_session, stored_config, active_printer):
    stored_config(report_print_modal=True, item_less_from=0, initial_money=0)
    response = client.get("/report/expense/print")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")

    log = db_session.query(Log).filter(Log.action == "REPORT_PRINT").one()
    assert log.resource_id == "expense"
    assert log.operator.username == "cashier"


def test_report_print_without_printer(client):
    response = client.get("/report/sell/print")
    assert response.status_code == 400
    assert response.json()["detail"] == "Please activate a printer in settings"
