import asyncio

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_order_repository, get_payment_service
from application.services.payment_service import SofortPaymentService
from infrastructure.external.payments.sofort_client import SofortClient
from infrastructure.locks import InMemoryKeyedLock
from infrastructure.repositories.payment_repository import (
    InMemoryOrderRepository,
    InMemoryPaymentRepository,
)
from main import app


NOTIFICATION_XML = (
    b'<?xml version="1.0" encoding="UTF-8"?>'
    b"<status_notification>"
    b"<notification_id>1</notification_id>"
    b"<transaction>123-456</transaction>"
    b"<time>2024-03-01T10:00:00+01:00</time>"
    b"</status_notification>"
)


@pytest.fixture
def transport(make_transport):
    return make_transport(status="received", txn="123-456")


@pytest.fixture
def repos():
    payments = InMemoryPaymentRepository()
    return payments, InMemoryOrderRepository(payments)


@pytest.fixture
def client(transport, repos):
    payments, orders = repos

    async def _service():
        yield SofortPaymentService(
            gateway=SofortClient(transport=transport),
            payments=payments,
            locks=InMemoryKeyedLock(),
        )

    app.dependency_overrides[get_payment_service] = _service
    app.dependency_overrides[get_order_repository] = lambda: orders
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def order(make_order, repos):
    order = make_order()
    asyncio.run(repos[1].add(order))
    return order


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["data"] == {"status": "healthy"}
    assert "X-Request-ID" in resp.headers


def test_initiate_returns_redirect(client, order):
    resp = client.post("/payments/sofort/orders/R123/initiate", json={"reference_number": "Invoice 1"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["kind"] == "redirect"
    assert data["external_transaction_id"] == "123-456"
    assert order.last_payment.external_transaction_id == "123-456"


def test_initiate_unknown_order(client):
    resp = client.post("/payments/sofort/orders/NOPE/initiate")
    assert resp.status_code == 422
    assert resp.json()["error"]["field"] == "order_number"


def test_xml_notification_reconciles(client, order, transport):
    order.last_payment.external_transaction_id = "123-456"
    resp = client.post("/sofort/status", content=NOTIFICATION_XML, headers={"Content-Type": "application/xml"})
    assert resp.status_code == 200
    assert order.last_payment.state.value == "complete"
    assert order.last_payment.audit_log.endswith("received / credited (49.90)\n")
    assert len(transport.calls) == 1


def test_form_notification_reconciles(client, order):
    order.last_payment.external_transaction_id = "123-456"
    resp = client.post(
        "/sofort/status",
        data={"status_notification[transaction]": "123-456"},
    )
    assert resp.status_code == 200
    assert order.last_payment.audit_log.count("\n") == 1


def test_garbage_notification_is_acknowledged(client, order, transport):
    resp = client.post("/sofort/status", content=b"<broken", headers={"Content-Type": "application/xml"})
    assert resp.status_code == 200
    assert transport.calls == []
    assert order.last_payment.audit_log == ""


def test_notification_for_unknown_transaction(client, order):
    resp = client.post("/sofort/status", content=NOTIFICATION_XML, headers={"Content-Type": "application/xml"})
    assert resp.status_code == 404
    assert resp.json()["error"]["type"] == "PaymentNotFound"


def test_success_callback(client, order):
    client.post("/payments/sofort/orders/R123/initiate")
    token = order.last_payment.correlation_token
    resp = client.get("/sofort/success", params={"sofort_hash": token, "order_number": "R123"})
    assert resp.status_code == 200
    assert resp.json()["data"]["payment_id"] == 7


def test_success_callback_bad_hash(client, order):
    resp = client.get("/sofort/success", params={"sofort_hash": "bad", "order_number": "R123"})
    assert resp.status_code == 422


def test_cancel_redirects_to_checkout(client):
    resp = client.get("/sofort/cancel", follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"] == "/checkout/payment"


def test_undecodable_form_notification_is_acknowledged(client, order, transport):
    resp = client.post(
        "/sofort/status",
        content=b"status_notification%5Btransaction%5D=\xff\xfe",
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert resp.status_code == 200
    assert transport.calls == []
    assert order.last_payment.audit_log == ""


def test_success_callback_non_ascii_hash(client, order):
    resp = client.get("/sofort/success", params={"sofort_hash": "ä", "order_number": "R123"})
    assert resp.status_code == 422
    assert resp.json()["error"]["field"] == "sofort_hash"
