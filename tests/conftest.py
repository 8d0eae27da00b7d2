"""Pytest fixtures for orderflow tests."""

import json
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["PAYMENT_GATEWAY_KEY_ID"] = "rzp_test_key"
os.environ["PAYMENT_GATEWAY_KEY_SECRET"] = "test_secret"
os.environ["NOTIFICATIONS_ENABLED"] = "false"

from datetime import timedelta  # noqa: E402
from decimal import Decimal  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from orderflow.api.deps import get_event_publisher, get_payment_gateway  # noqa: E402
from orderflow.database import Base, get_db  # noqa: E402
from orderflow.main import app  # noqa: E402
from orderflow.models import (  # noqa: E402
    Address,
    Coupon,
    CouponType,
    Inventory,
    Order,
    OrderItem,
    OrderStatus,
    OrderTracking,
    Payment,
    PaymentStatus,
    Product,
)
from orderflow.services.payment_gateway import PaymentGatewayClient, compute_signature  # noqa: E402
from orderflow.utils import generate_order_number, utcnow  # noqa: E402

KEY_SECRET = "test_secret"
CUSTOMER_ID = "user-1"
OTHER_CUSTOMER_ID = "user-2"


class RecordingPublisher:
    """Stands in for the RabbitMQ publisher and remembers what was sent."""

    enabled = True

    def __init__(self):
        self.sent = []

    def publish_order_email(self, template, order_data, customer_email):
        self.sent.append((template, order_data, customer_email))
        return True

    @property
    def templates(self):
        return [template for template, _, _ in self.sent]


class GatewayStub:
    """Programmable gateway endpoint served through httpx.MockTransport."""

    def __init__(self):
        self.requests = []
        self.fail_with = None
        self.counter = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with == "timeout":
            raise httpx.ConnectTimeout("timed out", request=request)
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"error": {"description": "boom"}})
        if request.method == "GET":
            return httpx.Response(200, json={})

        payload = json.loads(request.content)
        self.counter += 1
        return httpx.Response(200, json={
            "id": f"order_gw{self.counter}",
            "entity": "order",
            "amount": payload["amount"],
            "currency": payload["currency"],
            "receipt": payload["receipt"],
            "status": "created",
        })

    def client(self) -> PaymentGatewayClient:
        return PaymentGatewayClient(
            base_url="https://gateway.test/v1",
            key_id="rzp_test_key",
            key_secret=KEY_SECRET,
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def gateway():
    return GatewayStub()


@pytest.fixture
def client(session_factory, publisher, gateway):
    """Test client wired to the in-memory database, the stub gateway and the recording publisher."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_event_publisher] = lambda: publisher
    app.dependency_overrides[get_payment_gateway] = gateway.client

    yield TestClient(app)

    app.dependency_overrides.clear()


def customer_headers(user_id=CUSTOMER_ID, email="asha@example.com", name="Asha Rao"):
    return {
        "X-User-Id": user_id,
        "X-User-Role": "CUSTOMER",
        "X-User-Email": email,
        "X-User-Name": name,
    }


def admin_headers():
    return {"X-User-Id": "admin-1", "X-User-Role": "ADMIN", "X-User-Email": "ops@example.com"}


def signed_callback(gateway_order_id, gateway_payment_id="pay_001", secret=KEY_SECRET):
    return {
        "razorpay_order_id": gateway_order_id,
        "razorpay_payment_id": gateway_payment_id,
        "razorpay_signature": compute_signature(gateway_order_id, gateway_payment_id, secret),
    }


# Seed helpers

def add_product(db, name="Split AC 1.5 Ton", price="300.00", mrp=None, stock=10, reserved=0, is_active=True):
    product = Product(
        name=name,
        price=Decimal(price),
        mrp=Decimal(mrp) if mrp is not None else None,
        is_active=is_active,
    )
    db.add(product)
    db.flush()
    db.add(Inventory(product_id=product.id, quantity=stock, reserved_quantity=reserved))
    db.commit()
    return product


def add_address(db, user_id=CUSTOMER_ID):
    address = Address(
        user_id=user_id,
        full_name="Asha Rao",
        phone="9800000000",
        address_line1="12 MG Road",
        city="Bengaluru",
        state="Karnataka",
        pincode="560001",
    )
    db.add(address)
    db.commit()
    return address


def add_coupon(db, code="SAVE10", type=CouponType.PERCENTAGE, value="10", min_order_amount=None,
               max_discount_amount=None, is_active=True, valid_from=None, valid_until=None):
    coupon = Coupon(
        code=code,
        name=code.title(),
        type=type,
        value=Decimal(value),
        min_order_amount=Decimal(min_order_amount) if min_order_amount is not None else None,
        max_discount_amount=Decimal(max_discount_amount) if max_discount_amount is not None else None,
        is_active=is_active,
        valid_from=valid_from,
        valid_until=valid_until,
    )
    db.add(coupon)
    db.commit()
    return coupon


def add_order(db, items, status=OrderStatus.PENDING, user_id=CUSTOMER_ID, inventory_reserved=False,
              confirmed_hours_ago=None, customer_name="Asha Rao", customer_email="asha@example.com",
              total="708.00", paid_amount=None):
    """Insert an order directly, bypassing the API.

    items: list of (product, quantity) pairs.
    """
    order = Order(
        order_number=generate_order_number(),
        user_id=user_id,
        customer_name=customer_name,
        customer_email=customer_email,
        status=status,
        payment_method="RAZORPAY",
        subtotal=Decimal("600.00"),
        shipping_cost=Decimal("0.00"),
        tax=Decimal("108.00"),
        discount=Decimal("0.00"),
        total_amount=Decimal(total),
        total_savings=Decimal("0.00"),
        shipping_address={"fullName": customer_name, "city": "Bengaluru"},
        inventory_reserved=inventory_reserved,
    )
    for product, quantity in items:
        order.items.append(OrderItem(
            product_id=product.id,
            product_name=product.name,
            quantity=quantity,
            price=product.price,
            mrp=product.mrp or product.price,
        ))
    order.tracking.append(OrderTracking(status=OrderStatus.PENDING, message="Order placed, awaiting payment"))
    if confirmed_hours_ago is not None:
        order.tracking.append(OrderTracking(
            status=OrderStatus.CONFIRMED,
            message="Payment verified successfully - Order confirmed",
            created_at=utcnow() - timedelta(hours=confirmed_hours_ago),
        ))
    if paid_amount is not None:
        order.payments.append(Payment(
            amount=Decimal(paid_amount),
            currency="INR",
            method="RAZORPAY",
            status=PaymentStatus.COMPLETED,
            gateway_order_id=f"order_seed_{order.order_number}",
            gateway_payment_id="pay_seed",
            transaction_id="pay_seed",
        ))
    db.add(order)
    db.commit()
    return order


def stock_of(db, product_id):
    db.expire_all()
    inventory = db.get(Inventory, product_id)
    return inventory.quantity, inventory.reserved_quantity
