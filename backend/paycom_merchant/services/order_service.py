# Overview: Order collaborator interface and the bundled table-backed implementation.

"""
Merchant Order Collaborator

WHY: The payment endpoint never knows what is being sold. Everything about
the merchant's order (does it exist, is it payable, what happens when it is
paid or cancelled) sits behind MerchantOrder.

CONTRACT:
- find(account) resolves the order or raises InvalidAccount
- validate(params) checks the order is payable for params["amount"]
- set_paid / cancel apply fulfillment side effects through db.session
  without committing; the transaction store commits them together with
  the transaction state change
- allow_cancel() tells whether a paid order may still be cancelled

A fresh instance is created per request by the configured order factory.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from ..extensions import db
from ..errors import InvalidAccount, localized
from ..models import Order
from ..models.orders import (
    ORDER_STATE_CANCELLED,
    ORDER_STATE_PAY_ACCEPTED,
    ORDER_STATE_WAITING_PAY,
)
from ..rpc import parse_int
from .concurrency import lock_for_update


class MerchantOrder(ABC):
    """Per-request handle on the merchant's order."""

    @property
    @abstractmethod
    def order_id(self) -> str:
        """Reference stored on the transaction; valid after find()."""

    @abstractmethod
    def find(self, account: dict) -> None:
        pass

    @abstractmethod
    def validate(self, params: dict) -> None:
        pass

    @abstractmethod
    def set_paid(self, transaction_id: int) -> None:
        pass

    @abstractmethod
    def cancel(self, after_complete: bool = False) -> None:
        pass

    @abstractmethod
    def allow_cancel(self) -> bool:
        pass


class StoredOrder(MerchantOrder):
    """
    MerchantOrder over the local `orders` table.

    The gateway identifies the order with account.order_id; the amount it
    charges must equal the order amount in minor units.
    """

    def __init__(self):
        self.order: Optional[Order] = None

    @property
    def order_id(self) -> str:
        if self.order is None:
            raise RuntimeError("Order not loaded; call find() first")
        return str(self.order.id)

    def find(self, account: dict) -> None:
        if not isinstance(account, dict) or account.get("order_id") in (None, ""):
            raise InvalidAccount(
                localized(
                    "Неверный код заказа.",
                    "Harid kodida xatolik.",
                    "Incorrect order code.",
                ),
                "order_id",
            )

        order_id = parse_int(account["order_id"], "order_id")
        order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
        if order is None:
            raise InvalidAccount(
                localized(
                    "Заказ не найден.",
                    "Buyurtma topilmadi.",
                    "Order not found.",
                ),
                "order_id",
            )
        self.order = order

    def validate(self, params: dict) -> None:
        if self.order is None:
            self.find(params.get("account"))

        if self.order.state != ORDER_STATE_WAITING_PAY:
            raise InvalidAccount(
                localized(
                    "Заказ не ожидает оплаты.",
                    "Buyurtma to'lovni kutmayapti.",
                    "Order is not waiting for payment.",
                ),
                "order_id",
            )

        amount = params.get("amount")
        if amount is None:
            raise InvalidAccount("Amount not specified.", "amount")
        if parse_int(amount, "amount") != self.order.amount:
            raise InvalidAccount(
                localized(
                    "Неверная сумма.",
                    "Noto'g'ri summa.",
                    "Incorrect amount.",
                ),
                "amount",
            )

    def set_paid(self, transaction_id: int) -> None:
        self.order.state = ORDER_STATE_PAY_ACCEPTED
        self.order.paid_transaction_id = transaction_id
        db.session.flush()

    def cancel(self, after_complete: bool = False) -> None:
        self.order.state = ORDER_STATE_CANCELLED
        db.session.flush()

    def allow_cancel(self) -> bool:
        # Refunds are possible only until the goods leave the warehouse
        return self.order.state == ORDER_STATE_PAY_ACCEPTED and self.order.delivered_at is None


# =============================================================================
# ORDER ADMINISTRATION
# =============================================================================

def create_order(amount: int, description: Optional[str] = None) -> Order:
    if amount <= 0:
        raise ValueError("Order amount must be positive")

    order = Order(amount=amount, description=description, state=ORDER_STATE_WAITING_PAY)
    db.session.add(order)
    db.session.commit()
    return order


def list_orders(state: Optional[int] = None) -> list[Order]:
    query = db.session.query(Order)
    if state is not None:
        query = query.filter_by(state=state)
    return query.order_by(Order.id).all()
