from __future__ import annotations

from ..extensions import db
from paycom_merchant.time_utils import to_utc_z


# Transaction states as the gateway encodes them
STATE_CREATED = 1
STATE_COMPLETED = 2
STATE_CANCELLED = -1
STATE_CANCELLED_AFTER_COMPLETE = -2

VALID_STATES = (
    STATE_CREATED,
    STATE_COMPLETED,
    STATE_CANCELLED,
    STATE_CANCELLED_AFTER_COMPLETE,
)
CANCELLED_STATES = (STATE_CANCELLED, STATE_CANCELLED_AFTER_COMPLETE)

# Cancel reasons
REASON_RECEIVERS_NOT_FOUND = 1
REASON_PROCESSING_EXECUTION_FAILED = 2
REASON_EXECUTION_FAILED = 3
REASON_CANCELLED_BY_TIMEOUT = 4
REASON_FUND_RETURNED = 5
REASON_UNKNOWN = 10


DATETIME_COLUMNS = ("paycom_time_datetime", "create_time", "perform_time", "cancel_time")


def serialize_transaction_values(values: dict) -> dict:
    """JSON-safe copy of raw column values (datetimes as ISO-8601 'Z')."""
    return {
        key: to_utc_z(value) if key in DATETIME_COLUMNS else value
        for key, value in values.items()
    }


class PaycomTransaction(db.Model):
    """
    One payment attempt initiated by the gateway against a merchant order.

    Rows are inserted once (CreateTransaction) and afterwards only updated;
    cancellation is a state change, never a delete.

    INVARIANTS:
    - perform_time is set only for COMPLETED / CANCELLED_AFTER_COMPLETE
    - cancel_time and reason are set only for the cancelled states
    - paycom_transaction_id and order_id never change after insert
    """
    __tablename__ = "paycom_transactions"
    __table_args__ = (
        db.UniqueConstraint("paycom_transaction_id", name="uq_paycom_transactions_paycom_id"),
        db.Index("ix_paycom_transactions_order_state", "order_id", "state"),
        db.Index("ix_paycom_transactions_paycom_time", "paycom_time"),
        db.CheckConstraint("state IN (1, 2, -1, -2)", name="ck_paycom_transactions_state"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Identifier and time exactly as the gateway sent them
    paycom_transaction_id = db.Column(db.String(25), nullable=False)
    paycom_time = db.Column(db.BigInteger, nullable=False)
    paycom_time_datetime = db.Column(db.DateTime, nullable=False)

    create_time = db.Column(db.DateTime, nullable=False)
    perform_time = db.Column(db.DateTime, nullable=True)
    cancel_time = db.Column(db.DateTime, nullable=True)

    # Minor currency units (tiyin)
    amount = db.Column(db.Integer, nullable=False)
    state = db.Column(db.SmallInteger, nullable=False, default=STATE_CREATED)
    reason = db.Column(db.SmallInteger, nullable=True)

    # Payout split; NULL means the merchant is the only receiver
    receivers = db.Column(db.JSON(none_as_null=True), nullable=True)

    order_id = db.Column(db.String(64), nullable=False)

    @property
    def is_cancelled(self) -> bool:
        return self.state in CANCELLED_STATES

    def to_dict(self) -> dict:
        return serialize_transaction_values({
            column.key: getattr(self, column.key) for column in self.__table__.columns
        })

    def __repr__(self) -> str:
        return (
            f"<PaycomTransaction(id={self.id}, paycom_id={self.paycom_transaction_id}, "
            f"order={self.order_id}, state={self.state})>"
        )


class TransactionAudit(db.Model):
    """
    Append-only audit trail of transaction mutations.

    Written inside the same database transaction as the change it records.
    IMMUTABLE: Records are never updated or deleted.
    """
    __tablename__ = "paycom_transaction_audit"
    __table_args__ = (
        db.Index("ix_paycom_audit_transaction", "transaction_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey("paycom_transactions.id"), nullable=False, index=True)

    action = db.Column(db.String(16), nullable=False)  # INSERT, UPDATE, CANCEL
    before_json = db.Column(db.JSON(none_as_null=True), nullable=True)
    after_json = db.Column(db.JSON, nullable=False)
    occurred_at = db.Column(db.DateTime, nullable=False)

    transaction = db.relationship("PaycomTransaction", backref=db.backref("audit_entries", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transaction_id": self.transaction_id,
            "action": self.action,
            "before": self.before_json,
            "after": self.after_json,
            "occurred_at": to_utc_z(self.occurred_at),
        }
