from decimal import Decimal


def new_order(client, *menu_ids):
    order = client.post("/orders/", json={"customer_id": "CUST1001"}).json()
    for menu_item_id in menu_ids:
        r = client.post(f"/orders/{order['id']}/items", json={"menu_item_id": menu_item_id})
        assert r.status_code == 200
    return order["id"]


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["menu_items"] == 16
    assert data["skipped_records"] == 0


def test_menu(client):
    menu = client.get("/menu/").json()
    assert menu[0] == {"id": 101, "name": "chicken biryani", "price": "150.00"}
    assert len(menu) == 16


def test_cash_order_flow(client):
    order_id = new_order(client, 101, 101, 113)

    r = client.post(f"/orders/{order_id}/coupon", json={"code": "save100"})
    assert r.status_code == 200
    assert Decimal(r.json()["total"]) == Decimal("262.50")
    assert r.json()["items"][0]["quantity"] == 2

    challenge = client.post(f"/orders/{order_id}/payment/challenge", json={"method": "Cash"}).json()
    assert Decimal(challenge["amount_due"]) == Decimal("262.50")
    assert challenge["otp"] is None

    r = client.post(f"/orders/{order_id}/payment", json={"method": "Cash", "amount": "300"})
    assert r.status_code == 200
    assert Decimal(r.json()["change_due"]) == Decimal("37.50")

    order = client.get(f"/orders/{order_id}").json()
    assert order["status"] == "Confirmed"
    assert order["payment_status"] == "Paid"
    assert order["payment_method"] == "Cash"

    summary = client.get("/orders/summary").json()
    assert summary["count_orders"] == 1
    assert Decimal(summary["total_revenue"]) == Decimal("262.50")

    listed = client.get("/orders/", params={"customer_id": "CUST1001"}).json()
    assert [o["id"] for o in listed] == [order_id]


def test_online_payment_needs_matching_otp(client):
    order_id = new_order(client, 101)

    r = client.post(f"/orders/{order_id}/payment", json={"method": "Online", "amount": "157.50", "otp": "1234"})
    assert r.status_code == 400

    challenge = client.post(f"/orders/{order_id}/payment/challenge", json={"method": "Online"}).json()
    assert 1000 <= int(challenge["otp"]) <= 9999

    r = client.post(f"/orders/{order_id}/payment", json={"method": "Online", "amount": "157.50", "otp": "0000"})
    assert r.status_code == 402
    assert "OTP" in r.json()["detail"]
    assert client.get(f"/orders/{order_id}").json()["payment_status"] == "Pending"

    r = client.post(
        f"/orders/{order_id}/payment",
        json={"method": "Online", "amount": "157.50", "otp": challenge["otp"]},
    )
    assert r.status_code == 200
    assert client.get(f"/orders/{order_id}").json()["payment_status"] == "Paid"


def test_underpayment_is_rejected(client):
    order_id = new_order(client, 101)
    r = client.post(f"/orders/{order_id}/payment", json={"method": "Card", "amount": "100"})
    assert r.status_code == 402
    assert "less than" in r.json()["detail"]


def test_coupon_below_minimum(client):
    order_id = new_order(client, 113)
    r = client.post(f"/orders/{order_id}/coupon", json={"code": "SAVE100"})
    assert r.status_code == 400
    assert client.get(f"/orders/{order_id}").json()["discount"] == "0.00"


def test_status_changes(client):
    order_id = new_order(client, 113)

    r = client.patch(f"/orders/{order_id}/status", json={"status": "Ready"})
    assert r.status_code == 409

    r = client.post(f"/orders/{order_id}/place")
    assert r.json()["status"] == "Placed"

    r = client.patch(f"/orders/{order_id}/status", json={"status": "Cancelled"})
    assert r.status_code == 200
    assert r.json()["payment_status"] == "Cancelled"

    r = client.delete(f"/orders/{order_id}/items/113")
    assert r.status_code == 400


def test_unknown_order(client):
    assert client.get("/orders/404").status_code == 404
    assert client.post("/orders/404/items", json={"menu_item_id": 101}).status_code == 404


def test_booking_flow(client):
    r = client.post("/bookings/", json={"customer_name": "Asha", "phone": "555-0101", "party_size": 4})
    assert r.status_code == 201
    booking = r.json()
    assert (booking["customer_id"], booking["table_type"], booking["table_number"]) == ("CUST1001", "Table4", 1)
    assert Decimal(booking["booking_fee"]) == Decimal("200.00")

    availability = {a["table_type"]: a for a in client.get("/tables/availability").json()}
    assert availability["Table4"]["occupied_tables"] == [1]

    client.post("/bookings/CUST1001/payment/challenge", json={"method": "Card"})
    r = client.post("/bookings/CUST1001/payment", json={"method": "Card", "amount": "200"})
    assert r.status_code == 200

    r = client.post("/bookings/CUST1001/cancel")
    assert r.json()["payment_status"] == "Refunded"
    availability = {a["table_type"]: a for a in client.get("/tables/availability").json()}
    assert availability["Table4"]["occupied_tables"] == []


def test_tables_run_out(client):
    for i in range(10):
        r = client.post("/bookings/", json={"customer_name": f"Guest {i}", "phone": "555", "table_type": "Table2"})
        assert r.status_code == 201
    r = client.post("/bookings/", json={"customer_name": "Late", "phone": "555", "table_type": "Table2"})
    assert r.status_code == 409

    r = client.post("/bookings/", json={"customer_name": "Odd", "phone": "555", "table_type": "Booth"})
    assert r.status_code == 400
