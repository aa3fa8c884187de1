from __future__ import annotations

from ..extensions import db
from paycom_merchant.time_utils import to_utc_z


ORDER_STATE_AVAILABLE = 0
ORDER_STATE_WAITING_PAY = 1
ORDER_STATE_PAY_ACCEPTED = 2
ORDER_STATE_CANCELLED = 3


class Order(db.Model):
    """
    Merchant order paid through the gateway.

    Only used by the bundled StoredOrder collaborator; merchants with their
    own order system plug in a different collaborator instead.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.CheckConstraint("amount > 0", name="ck_orders_positive_amount"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Price in minor currency units (tiyin)
    amount = db.Column(db.Integer, nullable=False)
    state = db.Column(db.SmallInteger, nullable=False, default=ORDER_STATE_WAITING_PAY, index=True)

    description = db.Column(db.String(255), nullable=True)

    # Set by set_paid(); internal id of the transaction that paid the order
    paid_transaction_id = db.Column(db.Integer, nullable=True)
    delivered_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "amount": self.amount,
            "state": self.state,
            "description": self.description,
            "paid_transaction_id": self.paid_transaction_id,
            "delivered_at": to_utc_z(self.delivered_at),
            "created_at": to_utc_z(self.created_at),
        }
