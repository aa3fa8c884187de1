"""
Pytest fixtures for the Paycom merchant API tests.

Provides an in-memory SQLite application, an authenticated RPC caller, a
recording order collaborator and helpers to seed transactions directly.
"""

import base64
from datetime import timedelta

import pytest

from paycom_merchant import create_app
from paycom_merchant.errors import InvalidAccount
from paycom_merchant.extensions import db
from paycom_merchant.models import PaycomTransaction
from paycom_merchant.models.transactions import STATE_CREATED
from paycom_merchant.rpc import parse_int
from paycom_merchant.services.order_service import MerchantOrder
from paycom_merchant.time_utils import timestamp, timestamp_to_datetime, utcnow


PAYCOM_LOGIN = "Paycom"
PAYCOM_KEY = "test-merchant-key"


# =============================================================================
# ORDER COLLABORATOR DOUBLE
# =============================================================================

class OrderBook:
    """Orders known to the fake collaborator plus a log of every side effect."""

    def __init__(self):
        self.orders = {}
        self.calls = []
        self.fail_set_paid = False

    def add(self, order_id, amount, allow_cancel=False):
        self.orders[str(order_id)] = {"amount": amount, "allow_cancel": allow_cancel}

    def factory(self):
        return RecordingOrder(self)

    def calls_named(self, name):
        return [call for call in self.calls if call[0] == name]


class RecordingOrder(MerchantOrder):
    def __init__(self, book):
        self.book = book
        self._order_id = None

    @property
    def order_id(self):
        return self._order_id

    def find(self, account):
        order_id = str(account.get("order_id")) if isinstance(account, dict) else None
        if order_id not in self.book.orders:
            raise InvalidAccount("Order not found.", "order_id")
        self._order_id = order_id

    def validate(self, params):
        amount = parse_int(params.get("amount"), "amount")
        if amount != self.book.orders[self._order_id]["amount"]:
            raise InvalidAccount("Incorrect amount.", "amount")

    def set_paid(self, transaction_id):
        if self.book.fail_set_paid:
            raise RuntimeError("fulfillment backend unavailable")
        self.book.calls.append(("set_paid", self._order_id, transaction_id))

    def cancel(self, after_complete=False):
        self.book.calls.append(("cancel", self._order_id, after_complete))

    def allow_cancel(self):
        return self.book.orders[self._order_id]["allow_cancel"]


# =============================================================================
# APPLICATION
# =============================================================================

@pytest.fixture
def order_book():
    book = OrderBook()
    book.add("1", 500000)
    book.add("2", 120000)
    return book


@pytest.fixture
def app_factory(tmp_path):
    """Build apps over a fresh in-memory database; each gets its own app context."""
    contexts = []

    def _make(order_factory=None, **overrides):
        config = {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "PAYCOM_LOGIN": PAYCOM_LOGIN,
            "PAYCOM_KEY": PAYCOM_KEY,
            "PAYCOM_KEY_FILE": str(tmp_path / "paycom.key"),
        }
        config.update(overrides)
        app = create_app(config_overrides=config, order_factory=order_factory)
        ctx = app.app_context()
        ctx.push()
        db.create_all()
        contexts.append(ctx)
        return app

    yield _make

    for ctx in reversed(contexts):
        db.session.remove()
        db.drop_all()
        ctx.pop()


@pytest.fixture
def app(app_factory, order_book):
    return app_factory(order_factory=order_book.factory)


@pytest.fixture
def client(app):
    return app.test_client()


def basic_auth(login=PAYCOM_LOGIN, key=PAYCOM_KEY):
    token = base64.b64encode(f"{login}:{key}".encode("utf-8")).decode("ascii")
    return {"Authorization": f"Basic {token}"}


@pytest.fixture
def auth_headers():
    return basic_auth()


@pytest.fixture
def call(client, auth_headers):
    """POST one RPC call and return the decoded envelope."""
    def _call(method, params=None, request_id=1001, headers=None):
        response = client.post(
            "/api/paycom",
            json={"method": method, "params": params or {}, "id": request_id},
            headers=auth_headers if headers is None else headers,
        )
        assert response.status_code == 200
        return response.get_json()
    return _call


# =============================================================================
# DATA HELPERS
# =============================================================================

def now_ms() -> int:
    return timestamp(milliseconds=True)


@pytest.fixture
def make_transaction(app):
    """Insert a transaction row directly, bypassing the dispatcher."""
    def _make(
        paycom_id="T-seed",
        order_id="1",
        amount=500000,
        state=STATE_CREATED,
        paycom_time=None,
        create_time=None,
        perform_time=None,
        cancel_time=None,
        reason=None,
        receivers=None,
    ):
        if paycom_time is None:
            paycom_time = now_ms()
        txn = PaycomTransaction(
            paycom_transaction_id=paycom_id,
            paycom_time=paycom_time,
            paycom_time_datetime=timestamp_to_datetime(paycom_time),
            create_time=create_time or utcnow(),
            perform_time=perform_time,
            cancel_time=cancel_time,
            amount=amount,
            state=state,
            reason=reason,
            receivers=receivers,
            order_id=order_id,
        )
        db.session.add(txn)
        db.session.commit()
        db.session.refresh(txn)
        return txn
    return _make


@pytest.fixture
def expired_create_time():
    return utcnow() - timedelta(hours=12, minutes=1)
