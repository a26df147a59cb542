"""
Checkout tests.

Totals are recomputed server-side, stock is decremented atomically and a
failed checkout leaves stock and orders untouched.
"""

from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from pavan.errors import InsufficientStockError
from pavan.extensions import db
from pavan.models import Order, OrderItem, Product
from pavan.services import sales_service
from pavan.services.cart_service import CheckoutPayload, CustomerInfo


def _checkout(client, headers, items, **extra):
    body = {"items": items, "payment_method": "Cash"}
    body.update(extra)
    return client.post("/api/orders", json=body, headers=headers)


class TestCheckoutApi:

    def test_reference_sale(self, client, db_session, cashier_headers, product):
        resp = _checkout(client, cashier_headers, [{"product_id": product.id, "quantity": 3}], discount="10")

        assert resp.status_code == 201
        order = resp.json["order"]
        assert order["subtotal"] == "300.00"
        assert order["tax"] == "54.00"
        assert order["discount"] == "10.00"
        assert order["total"] == "344.00"
        assert order["customer_name"] == "Walk-in Customer"
        assert order["status"] == "Completed"
        assert len(order["items"]) == 1
        assert order["items"][0]["product_name"] == product.name

        db_session.expire_all()
        assert db_session.get(Product, product.id).quantity == 2

    def test_client_totals_are_ignored(self, client, db_session, cashier_headers, product):
        resp = _checkout(
            client, cashier_headers, [{"product_id": product.id, "quantity": 1}], total="1.00", subtotal="1.00"
        )
        assert resp.status_code == 201
        assert resp.json["order"]["total"] == "118.00"

    def test_customer_details_recorded(self, client, db_session, cashier_headers, product):
        resp = _checkout(
            client,
            cashier_headers,
            [{"product_id": product.id, "quantity": 1}],
            customer={"name": "Asha Rao", "phone": "98200 12345"},
            payment_method="UPI",
        )
        order = resp.json["order"]
        assert order["customer_name"] == "Asha Rao"
        assert order["customer_phone"] == "98200 12345"
        assert order["payment_method"] == "UPI"

    def test_cashier_recorded(self, client, db_session, cashier_headers, cashier_user, product):
        resp = _checkout(client, cashier_headers, [{"product_id": product.id, "quantity": 1}])
        assert resp.json["order"]["cashier_id"] == cashier_user.id

    def test_insufficient_stock_rejected(self, client, db_session, cashier_headers, product):
        resp = _checkout(client, cashier_headers, [{"product_id": product.id, "quantity": 6}])

        assert resp.status_code == 400
        assert "stock" in resp.json["error"].lower()
        db_session.expire_all()
        assert db_session.get(Product, product.id).quantity == 5
        assert db_session.query(Order).count() == 0

    def test_out_of_stock_rejected(self, client, db_session, cashier_headers, product_factory):
        empty = product_factory("EMPTY-1", quantity=0)
        resp = _checkout(client, cashier_headers, [{"product_id": empty.id, "quantity": 1}])
        assert resp.status_code == 400
        assert resp.json["error"] == f"{empty.name} is out of stock"

    def test_empty_cart_rejected(self, client, db_session, cashier_headers):
        resp = _checkout(client, cashier_headers, [])
        assert resp.status_code == 400
        assert resp.json["error"] == "Please add items to cart before checkout"

    def test_unknown_product(self, client, db_session, cashier_headers):
        resp = _checkout(client, cashier_headers, [{"product_id": 9999, "quantity": 1}])
        assert resp.status_code == 404

    def test_inactive_product_not_sellable(self, client, db_session, cashier_headers, product_factory):
        retired = product_factory("OLD-1", quantity=5, is_active=False)
        resp = _checkout(client, cashier_headers, [{"product_id": retired.id, "quantity": 1}])
        assert resp.status_code == 404

    def test_invalid_payment_method(self, client, db_session, cashier_headers, product):
        resp = _checkout(client, cashier_headers, [{"product_id": product.id, "quantity": 1}], payment_method="IOU")
        assert resp.status_code == 400
        db_session.expire_all()
        assert db_session.get(Product, product.id).quantity == 5

    @pytest.mark.parametrize("quantity", [0, -2, 1.5, "3"])
    def test_invalid_quantity(self, client, db_session, cashier_headers, product, quantity):
        resp = _checkout(client, cashier_headers, [{"product_id": product.id, "quantity": quantity}])
        assert resp.status_code == 400

    def test_duplicate_lines_merge_against_stock(self, client, db_session, cashier_headers, product):
        items = [{"product_id": product.id, "quantity": 3}, {"product_id": product.id, "quantity": 3}]
        resp = _checkout(client, cashier_headers, items)
        assert resp.status_code == 400

    def test_unknown_customer_id_rejected(self, client, db_session, cashier_headers, product):
        resp = _checkout(client, cashier_headers, [{"product_id": product.id, "quantity": 1}], customer={"customer_id": 9999})

        assert resp.status_code == 400
        assert resp.json["error"] == "customer_id does not exist"
        db_session.expire_all()
        assert db_session.get(Product, product.id).quantity == 5
        assert db_session.query(Order).count() == 0

    def test_known_customer_id_recorded(self, client, db_session, cashier_headers, sales_user, product):
        resp = _checkout(client, cashier_headers, [{"product_id": product.id, "quantity": 1}], customer={"customer_id": sales_user.id})

        assert resp.status_code == 201
        assert resp.json["order"]["customer_id"] == sales_user.id

    def test_database_failure_rolls_back(self, client, db_session, cashier_headers, product, monkeypatch):
        def fail_flush(*args, **kwargs):
            raise OperationalError("INSERT INTO orders", {}, Exception("database is locked"))

        monkeypatch.setattr(db.session, "flush", fail_flush)
        resp = _checkout(client, cashier_headers, [{"product_id": product.id, "quantity": 2}])
        monkeypatch.undo()

        assert resp.status_code == 503
        assert resp.json["error"] == "Could not record order"
        db_session.expire_all()
        assert db_session.get(Product, product.id).quantity == 5
        assert db_session.query(Order).count() == 0
        assert db_session.query(OrderItem).count() == 0

    def test_sales_role_cannot_checkout(self, client, db_session, sales_headers, product):
        resp = _checkout(client, sales_headers, [{"product_id": product.id, "quantity": 1}])
        assert resp.status_code == 403

    def test_requires_auth(self, client, db_session, product):
        resp = client.post("/api/orders", json={"items": [{"product_id": product.id, "quantity": 1}]})
        assert resp.status_code == 401


class TestPersistCheckout:

    def test_stock_changed_before_commit_rolls_back(self, db_session, product):
        """Another register sold the stock after the cart was validated."""
        cart = sales_service.build_cart([{"product_id": product.id, "quantity": 4}])
        payload = cart.build_payload(
            customer=CustomerInfo(), payment_method="Cash", cashier_id=None
        )

        product.quantity = 2
        db_session.commit()

        with pytest.raises(InsufficientStockError):
            sales_service.persist_checkout(payload)

        db_session.expire_all()
        assert db_session.get(Product, product.id).quantity == 2
        assert db_session.query(Order).count() == 0
        assert db_session.query(OrderItem).count() == 0

    def test_multi_line_failure_restores_earlier_lines(self, db_session, product_factory):
        a = product_factory("A-1", quantity=5)
        b = product_factory("B-1", quantity=1)
        payload = CheckoutPayload(
            order={
                "order_number": "ORD-TEST-1",
                "customer_name": "Walk-in Customer",
                "subtotal": Decimal("0"),
                "tax": Decimal("0"),
                "discount": Decimal("0"),
                "total": Decimal("0"),
                "payment_method": "Cash",
                "status": "Completed",
            },
            items=[
                {"product_id": a.id, "product_name": a.name, "quantity": 2, "price": Decimal("100.00"), "total": Decimal("200.00")},
                {"product_id": b.id, "product_name": b.name, "quantity": 2, "price": Decimal("100.00"), "total": Decimal("200.00")},
            ],
        )

        with pytest.raises(InsufficientStockError):
            sales_service.persist_checkout(payload)

        db_session.expire_all()
        assert db_session.get(Product, a.id).quantity == 5
        assert db_session.get(Product, b.id).quantity == 1


class TestQuote:

    def test_quote_does_not_persist(self, client, db_session, cashier_headers, product):
        resp = client.post(
            "/api/orders/quote",
            json={"items": [{"product_id": product.id, "quantity": 2}], "discount": "5"},
            headers=cashier_headers,
        )
        assert resp.status_code == 200
        assert resp.json["totals"] == {"subtotal": "200.00", "tax": "36.00", "discount": "5.00", "total": "231.00"}
        assert db_session.query(Order).count() == 0


class TestOrderHistory:

    def _sell(self, client, headers, product, qty=1):
        resp = _checkout(client, headers, [{"product_id": product.id, "quantity": qty}])
        assert resp.status_code == 201
        return resp.json["order"]

    def test_list_newest_first(self, client, db_session, cashier_headers, product):
        first = self._sell(client, cashier_headers, product)
        second = self._sell(client, cashier_headers, product)

        resp = client.get("/api/orders", headers=cashier_headers)
        assert resp.status_code == 200
        assert [o["id"] for o in resp.json["orders"]] == [second["id"], first["id"]]

    def test_get_with_items(self, client, db_session, cashier_headers, product):
        order = self._sell(client, cashier_headers, product, qty=2)
        resp = client.get(f"/api/orders/{order['id']}", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.json["order"]["items"][0]["quantity"] == 2

    def test_bad_date_filter(self, client, db_session, cashier_headers):
        resp = client.get("/api/orders?start=yesterday", headers=cashier_headers)
        assert resp.status_code == 400

    def test_cancel_restocks(self, client, db_session, admin_headers, cashier_headers, product):
        order = self._sell(client, cashier_headers, product, qty=3)

        resp = client.patch(f"/api/orders/{order['id']}/status", json={"status": "Cancelled"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["order"]["status"] == "Cancelled"

        db_session.expire_all()
        assert db_session.get(Product, product.id).quantity == 5

        reopen = client.patch(f"/api/orders/{order['id']}/status", json={"status": "Completed"}, headers=admin_headers)
        assert reopen.status_code == 400

    def test_cashier_cannot_change_status(self, client, db_session, cashier_headers, product):
        order = self._sell(client, cashier_headers, product)
        resp = client.patch(f"/api/orders/{order['id']}/status", json={"status": "Cancelled"}, headers=cashier_headers)
        assert resp.status_code == 403
