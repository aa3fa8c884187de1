# Overview: Service-layer operations for Paycom transactions; encapsulates the store and its state transitions.

"""
Transaction Store

WHY: The gateway retries every call, so the store must make each transition
observable exactly once and keep the row consistent with its state.

DESIGN PRINCIPLES:
- One row per gateway transaction, inserted once, then only updated
- Cancellation is a state change, never a delete
- Each mutation is its own unit of work and is audited with before/after state
- The unique index on paycom_transaction_id settles concurrent creates
- Expiry is evaluated lazily on access, never by a sweeper
"""

from __future__ import annotations

from typing import Iterable, Optional

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..config import TRANSACTION_TIMEOUT_MS
from ..errors import DuplicateTransaction, InternalSystemError, InvalidAccount
from ..models import PaycomTransaction
from ..models.transactions import (
    CANCELLED_STATES,
    STATE_CANCELLED,
    STATE_CANCELLED_AFTER_COMPLETE,
    STATE_COMPLETED,
    STATE_CREATED,
    REASON_FUND_RETURNED,
    REASON_PROCESSING_EXECUTION_FAILED,
    serialize_transaction_values,
)
from paycom_merchant.time_utils import (
    datetime_to_milliseconds,
    datetime_to_timestamp,
    timestamp,
    timestamp_to_datetime,
    utcnow,
)
from .audit_service import ACTION_CANCEL, ACTION_INSERT, ACTION_UPDATE, record_mutation
from .concurrency import lock_for_update, unit_of_work


# =============================================================================
# LOOKUPS
# =============================================================================

def find_by_paycom_id(paycom_transaction_id: str, for_update: bool = False) -> Optional[PaycomTransaction]:
    query = db.session.query(PaycomTransaction).filter_by(paycom_transaction_id=paycom_transaction_id)
    if for_update:
        query = lock_for_update(query)
    return query.first()


def find_active_by_order(order_id: str) -> Optional[PaycomTransaction]:
    """
    First transaction of the order that is still CREATED or COMPLETED.

    Ordering between several such rows is unspecified; the creation check
    keeps there from being more than one.
    """
    return (
        db.session.query(PaycomTransaction)
        .filter(PaycomTransaction.order_id == str(order_id))
        .filter(PaycomTransaction.state.notin_(CANCELLED_STATES))
        .first()
    )


def can_create(order_id: str) -> bool:
    return find_active_by_order(order_id) is None


def ensure_can_create(order_id: str) -> None:
    """
    Reject a new transaction while another one for the order is not cancelled.

    Raises:
        InvalidAccount: if an active or completed transaction exists
    """
    existing = find_active_by_order(order_id)
    if existing is not None:
        raise InvalidAccount(
            f"Transaction {existing.id}({existing.paycom_transaction_id}) "
            f"with orderId: {order_id} already exists!",
            "order_id",
        )


def is_expired(transaction: PaycomTransaction, now_ms: Optional[int] = None) -> bool:
    """A CREATED transaction expires once TRANSACTION_TIMEOUT_MS have passed since create_time."""
    if transaction.state != STATE_CREATED:
        return False
    if now_ms is None:
        now_ms = timestamp(milliseconds=True)
    return now_ms - datetime_to_milliseconds(transaction.create_time) > TRANSACTION_TIMEOUT_MS


def list_in_period(from_time: int, to_time: int) -> list[PaycomTransaction]:
    """Transactions whose gateway time lies in [from_time, to_time], boundaries included."""
    return (
        db.session.query(PaycomTransaction)
        .filter(PaycomTransaction.paycom_time.between(from_time, to_time))
        .order_by(PaycomTransaction.paycom_time, PaycomTransaction.id)
        .all()
    )


# =============================================================================
# CREATION
# =============================================================================

def new_transaction(
    paycom_transaction_id: str,
    paycom_time: int,
    amount: int,
    order_id: str,
) -> PaycomTransaction:
    """Build an unsaved CREATED transaction stamped with the current time."""
    return PaycomTransaction(
        paycom_transaction_id=paycom_transaction_id,
        paycom_time=paycom_time,
        paycom_time_datetime=timestamp_to_datetime(paycom_time),
        create_time=utcnow(),
        state=STATE_CREATED,
        amount=amount,
        order_id=str(order_id),
        receivers=None,
    )


def save(transaction: PaycomTransaction, fields: Optional[Iterable[str]] = None) -> PaycomTransaction:
    """Insert a new transaction or update an existing one."""
    if transaction.id is None:
        return insert(transaction)
    return update(transaction, fields)


def insert(transaction: PaycomTransaction) -> PaycomTransaction:
    """
    Persist a new transaction; the store-assigned id is populated on success.

    Raises:
        DuplicateTransaction: another request already inserted this external id
        InternalSystemError: the row could not be written
    """
    if transaction.id is not None:
        raise InternalSystemError("Transaction already saved.")

    try:
        with unit_of_work():
            db.session.add(transaction)
            db.session.flush()
            if transaction.id is None:
                raise InternalSystemError("No rows affected.")
            record_mutation(transaction, ACTION_INSERT, before=None)
    except IntegrityError as exc:
        transaction.id = None
        if find_by_paycom_id(transaction.paycom_transaction_id) is not None:
            raise DuplicateTransaction(transaction.paycom_transaction_id) from exc
        raise InternalSystemError() from exc
    except Exception:
        transaction.id = None
        raise

    return transaction


def update(
    transaction: PaycomTransaction,
    fields: Optional[Iterable[str]] = None,
    action: str = ACTION_UPDATE,
) -> PaycomTransaction:
    """
    Write pending changes of an already inserted transaction.

    With `fields`, only those columns are written; pending changes to any
    other column are discarded so values read concurrently are not clobbered.

    Raises:
        InternalSystemError: the transaction was never inserted or no row matched
    """
    if transaction.id is None:
        raise InternalSystemError("Transaction id not set.")

    before = _committed_snapshot(transaction)

    if fields is not None:
        fields = set(fields)
        stale = [key for key in _changed_columns(transaction) if key not in fields]
        if stale:
            db.session.expire(transaction, stale)

    try:
        with unit_of_work():
            db.session.flush()
            record_mutation(transaction, action, before=before)
    except StaleDataError as exc:
        raise InternalSystemError() from exc

    return transaction


# =============================================================================
# STATE TRANSITIONS
# =============================================================================

def cancel(transaction: PaycomTransaction, reason: Optional[int] = None) -> PaycomTransaction:
    """
    Cancel a transaction and persist the change.

    A COMPLETED transaction becomes CANCELLED_AFTER_COMPLETE, anything else
    CANCELLED. Without a reason, FUND_RETURNED is used after completion and
    PROCESSING_EXECUTION_FAILED otherwise.
    """
    transaction.cancel_time = utcnow()

    if transaction.state == STATE_COMPLETED:
        transaction.state = STATE_CANCELLED_AFTER_COMPLETE
    else:
        transaction.state = STATE_CANCELLED

    if not reason:
        reason = (
            REASON_FUND_RETURNED
            if transaction.state == STATE_CANCELLED_AFTER_COMPLETE
            else REASON_PROCESSING_EXECUTION_FAILED
        )
    transaction.reason = reason

    return update(transaction, ["cancel_time", "state", "reason"], action=ACTION_CANCEL)


def complete(transaction: PaycomTransaction) -> PaycomTransaction:
    """Mark a CREATED transaction as performed now and persist it."""
    transaction.state = STATE_COMPLETED
    transaction.perform_time = utcnow()
    return update(transaction, ["state", "perform_time"])


# =============================================================================
# REPORTING
# =============================================================================

def report(from_time: int, to_time: int) -> list[dict]:
    """
    Statement rows for the given period in the gateway's report format.

    Times are epoch seconds; `id` is the gateway's id and `transaction`
    the merchant-side id.
    """
    return [
        {
            "id": row.paycom_transaction_id,
            "time": row.paycom_time,
            "amount": row.amount,
            "account": {
                "order_id": row.order_id,
            },
            "create_time": datetime_to_timestamp(row.create_time),
            "perform_time": datetime_to_timestamp(row.perform_time),
            "cancel_time": datetime_to_timestamp(row.cancel_time),
            "transaction": str(row.id),
            "state": row.state,
            "reason": row.reason,
            "receivers": row.receivers,
        }
        for row in list_in_period(from_time, to_time)
    ]


# =============================================================================
# INTERNAL HELPERS
# =============================================================================

def _changed_columns(transaction: PaycomTransaction) -> list[str]:
    state = sa.inspect(transaction)
    return [
        column.key
        for column in state.mapper.column_attrs
        if state.attrs[column.key].history.has_changes()
    ]


def _committed_snapshot(transaction: PaycomTransaction) -> dict:
    """Column values as last loaded from the database, ignoring pending changes."""
    state = sa.inspect(transaction)
    values = {}
    for column in state.mapper.column_attrs:
        history = state.attrs[column.key].history
        if history.has_changes():
            values[column.key] = history.deleted[0] if history.deleted else None
        else:
            values[column.key] = getattr(transaction, column.key)
    return serialize_transaction_values(values)
