"""
Tests for the Orders API

Checkout side effects (stock, payouts, notifications), listing
visibility, status updates and the commission split.

Author: TM3
Date: 2026-02-09
"""
from conftest import auth_headers
from markettech.core.cache import cache, cache_keys
from markettech.models import Notification, Order, Product, SellerPayout, User


def _checkout(client, payload, product, quantity=1, price=None, headers=None):
    body = dict(payload)
    body["items"] = [{"productId": product.id, "quantity": quantity, "price": price if price is not None else float(product.price)}]
    return client.post("/api/v1/orders", json=body, headers=headers or {})


class TestCreateOrder:
    """Tests for POST /api/v1/orders"""

    def test_direct_seller_checkout(self, client, db_session, make_product, payment_profile,
                                    sample_order_payload, client_user, client_headers, seller_user):
        # Arrange
        product = make_product(price=200, stock=5)

        # Act
        response = _checkout(client, sample_order_payload, product, quantity=2, headers=client_headers)

        # Assert
        assert response.status_code == 201
        order = response.json()
        assert order["status"] == "PENDING_NO_PAYMENT"
        assert order["paymentStatus"] == "PENDING"
        assert order["userId"] == client_user.id
        assert order["total"] == 400.0
        assert order["itemCount"] == 2
        assert order["items"][0]["sellerId"] == seller_user.id
        assert order["items"][0]["sellerName"] == "Equipe de Vendas"
        assert order["items"][0]["subtotal"] == 400.0

        db_session.expire_all()
        assert db_session.get(Product, product.id).stock == 3

        payout = db_session.query(SellerPayout).one()
        assert payout.seller_id == seller_user.id
        assert float(payout.amount) == 380.0
        assert float(payout.commission) == 20.0
        assert payout.status == "PENDING"

        notification = db_session.query(Notification).one()
        assert notification.type == "ORDER_CREATED"
        assert notification.user_id == client_user.id
        assert "R$ 400,00" in notification.message

    def test_pix_checkout_keeps_stock(self, client, db_session, make_product, payment_profile, sample_order_payload):
        product = make_product(stock=5)
        payload = dict(sample_order_payload, paymentMethod="PIX")

        response = _checkout(client, payload, product, quantity=2)

        assert response.status_code == 201
        assert response.json()["status"] == "PENDING"
        db_session.expire_all()
        assert db_session.get(Product, product.id).stock == 5

    def test_guest_checkout_has_no_notification(self, client, db_session, make_product, payment_profile, sample_order_payload):
        product = make_product()

        response = _checkout(client, sample_order_payload, product)

        assert response.status_code == 201
        assert response.json()["userId"] is None
        assert db_session.query(Notification).count() == 0

    def test_requires_payment_profile(self, client, make_product, sample_order_payload):
        product = make_product()

        response = _checkout(client, sample_order_payload, product)

        assert response.status_code == 400
        assert response.json()["detail"] == "No hay perfil de pago global configurado"

    def test_insufficient_stock_leaves_nothing_behind(self, client, db_session, make_product,
                                                      payment_profile, sample_order_payload):
        # Arrange
        product = make_product(stock=3)
        body = dict(sample_order_payload)
        body["items"] = [
            {"productId": product.id, "quantity": 2, "price": 100},
            {"productId": product.id, "quantity": 2, "price": 100},
        ]

        # Act
        response = client.post("/api/v1/orders", json=body)

        # Assert
        assert response.status_code == 400
        assert response.json()["code"] == "INSUFFICIENT_STOCK"
        assert db_session.query(Order).count() == 0
        db_session.expire_all()
        assert db_session.get(Product, product.id).stock == 3

    def test_unknown_product(self, client, payment_profile, sample_order_payload):
        body = dict(sample_order_payload)
        body["items"] = [{"productId": 9999, "quantity": 1, "price": 10}]

        response = client.post("/api/v1/orders", json=body)

        assert response.status_code == 404
        assert response.json()["code"] == "PRODUCT_NOT_FOUND"

    def test_missing_customer_data(self, client, make_product, payment_profile):
        product = make_product()

        response = client.post(
            "/api/v1/orders",
            json={"items": [{"productId": product.id, "quantity": 1, "price": 10}]},
        )

        assert response.status_code == 400

    def test_invalid_payment_method(self, client, make_product, payment_profile, sample_order_payload):
        product = make_product()
        payload = dict(sample_order_payload, paymentMethod="BITCOIN")

        response = _checkout(client, payload, product)

        assert response.status_code == 400


class TestListOrders:
    """Tests for GET /api/v1/orders"""

    def _place_orders(self, client, make_product, sample_order_payload, client_headers):
        product = make_product(stock=50)
        _checkout(client, sample_order_payload, product, headers=client_headers)
        _checkout(client, sample_order_payload, product)

    def test_requires_token(self, client):
        response = client.get("/api/v1/orders")

        assert response.status_code == 401

    def test_client_sees_only_own_orders(self, client, make_product, payment_profile, sample_order_payload,
                                         client_headers, client_user):
        self._place_orders(client, make_product, sample_order_payload, client_headers)

        response = client.get("/api/v1/orders", headers=client_headers)

        orders = response.json()["orders"]
        assert len(orders) == 1
        assert orders[0]["userId"] == client_user.id

    def test_own_orders_are_cached_until_an_order_changes(self, client, make_product, payment_profile,
                                                          sample_order_payload, client_headers, client_user,
                                                          admin_headers):
        # Arrange
        self._place_orders(client, make_product, sample_order_payload, client_headers)
        first = client.get("/api/v1/orders?user=true", headers=client_headers).json()["orders"]
        assert cache.get(cache_keys.user_orders(client_user.id)) is not None

        # Act
        client.put(f"/api/v1/orders/{first[0]['id']}", headers=admin_headers, json={"status": "CONFIRMED"})
        second = client.get("/api/v1/orders?user=true", headers=client_headers).json()["orders"]

        # Assert
        assert first[0]["status"] == "PENDING_NO_PAYMENT"
        assert second[0]["status"] == "CONFIRMED"

    def test_client_cannot_request_admin_listing(self, client, client_headers):
        response = client.get("/api/v1/orders?admin=true", headers=client_headers)

        assert response.status_code == 403

    def test_admin_sees_all_orders(self, client, make_product, payment_profile, sample_order_payload,
                                   client_headers, admin_headers):
        self._place_orders(client, make_product, sample_order_payload, client_headers)

        response = client.get("/api/v1/orders?admin=true", headers=admin_headers)

        assert len(response.json()["orders"]) == 2

    def test_order_detail_owner_and_stranger(self, client, make_product, payment_profile, sample_order_payload,
                                             client_headers, seller_user, password_hash, db_session):
        product = make_product()
        order_id = _checkout(client, sample_order_payload, product, headers=client_headers).json()["id"]
        stranger = User(email="outro@ejemplo.com", name="Outro", role="CLIENT", password=password_hash)
        db_session.add(stranger)
        db_session.commit()

        own = client.get(f"/api/v1/orders/{order_id}", headers=client_headers)
        other = client.get(f"/api/v1/orders/{order_id}", headers=auth_headers(stranger))
        seller = client.get(f"/api/v1/orders/{order_id}", headers=auth_headers(seller_user))

        assert own.status_code == 200
        assert own.json()["order"]["id"] == order_id
        assert other.status_code == 403
        assert seller.status_code == 200

    def test_order_detail_not_found(self, client, admin_headers):
        response = client.get("/api/v1/orders/9999", headers=admin_headers)

        assert response.status_code == 404


class TestUpdateOrder:
    """Tests for PUT /api/v1/orders/{id}"""

    def _order(self, client, make_product, sample_order_payload, client_headers, **product_fields):
        product = make_product(**product_fields)
        return product, _checkout(client, sample_order_payload, product, quantity=2, headers=client_headers).json()

    def test_each_changed_field_notifies(self, client, db_session, make_product, payment_profile,
                                        sample_order_payload, client_headers, admin_headers):
        # Arrange
        _, order = self._order(client, make_product, sample_order_payload, client_headers)

        # Act
        response = client.put(
            f"/api/v1/orders/{order['id']}",
            headers=admin_headers,
            json={"status": "CONFIRMED", "paymentStatus": "PAID", "shippingStatus": "PREPARING"},
        )

        # Assert
        assert response.status_code == 200
        updated = response.json()["order"]
        assert updated["status"] == "CONFIRMED"
        assert updated["paymentStatus"] == "PAID"
        types = [n.type for n in db_session.query(Notification).order_by(Notification.id).all()]
        assert types == ["ORDER_CREATED", "ORDER_STATUS_CHANGED", "PAYMENT_RECEIVED", "SHIPPING_STATUS_CHANGED"]

    def test_unchanged_fields_do_not_notify(self, client, db_session, make_product, payment_profile,
                                            sample_order_payload, client_headers, admin_headers):
        _, order = self._order(client, make_product, sample_order_payload, client_headers)

        client.put(f"/api/v1/orders/{order['id']}", headers=admin_headers, json={"status": order["status"]})

        assert db_session.query(Notification).count() == 1

    def test_cancel_cancels_payouts(self, client, db_session, make_product, payment_profile,
                                    sample_order_payload, client_headers, admin_headers):
        _, order = self._order(client, make_product, sample_order_payload, client_headers)

        client.put(f"/api/v1/orders/{order['id']}", headers=admin_headers, json={"status": "CANCELLED"})

        db_session.expire_all()
        assert {p.status for p in db_session.query(SellerPayout).all()} == {"CANCELLED"}
        assert db_session.query(Notification).filter(Notification.type == "ORDER_CANCELLED").count() == 1

    def test_devolucion_restores_direct_seller_stock(self, client, db_session, make_product, payment_profile,
                                                     sample_order_payload, client_headers, admin_headers):
        product, order = self._order(client, make_product, sample_order_payload, client_headers, stock=5)

        client.put(f"/api/v1/orders/{order['id']}", headers=admin_headers, json={"status": "DEVOLUCION"})

        db_session.expire_all()
        assert db_session.get(Product, product.id).stock == 5
        assert db_session.get(Order, order["id"]).stock_reserved is False
        notification = db_session.query(Notification).filter(Notification.type == "ORDER_DEVOLUCION").one()
        assert "O estoque foi restaurado." in notification.message

    def test_devolucion_is_final(self, client, db_session, make_product, payment_profile,
                                 sample_order_payload, client_headers, admin_headers):
        # Arrange
        product, order = self._order(client, make_product, sample_order_payload, client_headers, stock=5)
        url = f"/api/v1/orders/{order['id']}"
        client.put(url, headers=admin_headers, json={"status": "DEVOLUCION"})

        # Act
        leave = client.put(url, headers=admin_headers, json={"status": "DELIVERED"})
        again = client.put(url, headers=admin_headers, json={"status": "DEVOLUCION"})

        # Assert
        assert leave.status_code == 400
        assert leave.json()["code"] == "INVALID_STATUS_TRANSITION"
        assert again.status_code == 200
        db_session.expire_all()
        assert db_session.get(Product, product.id).stock == 5
        assert db_session.query(Notification).filter(Notification.type == "ORDER_DEVOLUCION").count() == 1

    def test_devolucion_of_unpaid_pix_order_leaves_stock(self, client, db_session, make_product, payment_profile,
                                                         sample_order_payload, client_headers, admin_headers):
        product = make_product(stock=5)
        payload = dict(sample_order_payload, paymentMethod="PIX")
        order = _checkout(client, payload, product, quantity=2, headers=client_headers).json()

        client.put(f"/api/v1/orders/{order['id']}", headers=admin_headers, json={"status": "DEVOLUCION"})

        db_session.expire_all()
        assert db_session.get(Product, product.id).stock == 5
        notification = db_session.query(Notification).filter(Notification.type == "ORDER_DEVOLUCION").one()
        assert "estoque" not in notification.message

    def test_marking_pix_order_paid_takes_stock(self, client, db_session, make_product, payment_profile,
                                                sample_order_payload, client_headers, admin_headers):
        product = make_product(stock=5)
        payload = dict(sample_order_payload, paymentMethod="PIX")
        order = _checkout(client, payload, product, quantity=2, headers=client_headers).json()
        url = f"/api/v1/orders/{order['id']}"

        response = client.put(url, headers=admin_headers, json={"paymentStatus": "PAID"})
        client.put(url, headers=admin_headers, json={"paymentStatus": "REFUNDED"})
        client.put(url, headers=admin_headers, json={"paymentStatus": "PAID"})

        assert response.json()["order"]["stockReserved"] is True
        db_session.expire_all()
        assert db_session.get(Product, product.id).stock == 3

    def test_invalid_status(self, client, make_product, payment_profile, sample_order_payload,
                            client_headers, admin_headers):
        _, order = self._order(client, make_product, sample_order_payload, client_headers)

        response = client.put(f"/api/v1/orders/{order['id']}", headers=admin_headers, json={"status": "LOST"})

        assert response.status_code == 400

    def test_client_cannot_update(self, client, make_product, payment_profile, sample_order_payload, client_headers):
        _, order = self._order(client, make_product, sample_order_payload, client_headers)

        response = client.put(f"/api/v1/orders/{order['id']}", headers=client_headers, json={"status": "COMPLETED"})

        assert response.status_code == 403


class TestDeleteOrder:
    """Tests for DELETE /api/v1/orders/{id}"""

    def test_delete_unpaid_pix_order_leaves_stock(self, client, db_session, make_product, payment_profile,
                                                  sample_order_payload, admin_headers):
        product = make_product(stock=5)
        payload = dict(sample_order_payload, paymentMethod="PIX")
        order = _checkout(client, payload, product, quantity=2).json()

        response = client.delete(f"/api/v1/orders/{order['id']}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {"message": "Pedido eliminado exitosamente", "orderId": order["id"]}
        db_session.expire_all()
        assert db_session.get(Product, product.id).stock == 5
        assert db_session.query(Order).count() == 0
        assert db_session.query(SellerPayout).count() == 0

    def test_delete_paid_pix_order_restores_stock(self, client, db_session, make_product, payment_profile,
                                                  sample_order_payload, admin_headers):
        product = make_product(stock=5)
        payload = dict(sample_order_payload, paymentMethod="PIX")
        order = _checkout(client, payload, product, quantity=2).json()
        client.put(f"/api/v1/orders/{order['id']}", headers=admin_headers, json={"paymentStatus": "PAID"})

        client.delete(f"/api/v1/orders/{order['id']}", headers=admin_headers)

        db_session.expire_all()
        assert db_session.get(Product, product.id).stock == 5

    def test_delete_direct_seller_order_restores_stock(self, client, db_session, make_product, payment_profile,
                                                       sample_order_payload, admin_headers):
        product = make_product(stock=5)
        order = _checkout(client, sample_order_payload, product, quantity=2).json()

        client.delete(f"/api/v1/orders/{order['id']}", headers=admin_headers)

        db_session.expire_all()
        assert db_session.get(Product, product.id).stock == 5

    def test_delete_after_devolucion_does_not_restore_twice(self, client, db_session, make_product, payment_profile,
                                                            sample_order_payload, admin_headers):
        product = make_product(stock=5)
        order = _checkout(client, sample_order_payload, product, quantity=2).json()
        client.put(f"/api/v1/orders/{order['id']}", headers=admin_headers, json={"status": "DEVOLUCION"})

        client.delete(f"/api/v1/orders/{order['id']}", headers=admin_headers)

        db_session.expire_all()
        assert db_session.get(Product, product.id).stock == 5

    def test_delete_missing_order(self, client, admin_headers):
        response = client.delete("/api/v1/orders/9999", headers=admin_headers)

        assert response.status_code == 404


class TestCommission:
    """Tests for POST /api/v1/orders/commission"""

    def test_split_per_seller(self, client, db_session, make_product, payment_profile, sample_order_payload,
                              other_seller, admin_headers, seller_user):
        # Arrange
        mine = make_product(price=100, stock=10)
        theirs = make_product(price=50, stock=10, user_id=other_seller.id)
        body = dict(sample_order_payload)
        body["items"] = [
            {"productId": mine.id, "quantity": 2, "price": 100},
            {"productId": theirs.id, "quantity": 1, "price": 50},
        ]
        order = client.post("/api/v1/orders", json=body).json()

        # Act
        response = client.post(
            "/api/v1/orders/commission",
            headers=admin_headers,
            json={"orderId": order["id"], "commissionRate": 0.1},
        )

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["commissionRate"] == 0.1
        by_seller = {s["sellerId"]: s for s in data["sellers"]}
        assert by_seller[seller_user.id]["total"] == 200.0
        assert by_seller[seller_user.id]["platformFee"] == 20.0
        assert by_seller[seller_user.id]["sellerAmount"] == 180.0
        assert by_seller[other_seller.id]["platformFee"] == 5.0
        assert data["totalPlatformFee"] == 25.0

        db_session.expire_all()
        payouts = db_session.query(SellerPayout).order_by(SellerPayout.seller_id).all()
        assert len(payouts) == 2
        assert sorted(float(p.amount) for p in payouts) == [45.0, 180.0]

    def test_requires_admin(self, client, client_headers):
        response = client.post("/api/v1/orders/commission", headers=client_headers, json={"orderId": 1})

        assert response.status_code == 403

    def test_missing_order(self, client, admin_headers):
        response = client.post("/api/v1/orders/commission", headers=admin_headers, json={"orderId": 9999})

        assert response.status_code == 404
