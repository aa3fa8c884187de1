# Overview: Audit trail for transaction mutations (before/after snapshots).

from __future__ import annotations

from typing import Optional

from flask import current_app

from ..extensions import db
from ..models import PaycomTransaction, TransactionAudit
from paycom_merchant.time_utils import utcnow

"""
Audit Invariants

- Append-only: entries are never updated or deleted.
- Written in the same DB transaction as the mutation they describe,
  so an entry exists if and only if the mutation committed.
- Observability side channel only; nothing here feeds RPC responses.
"""

ACTION_INSERT = "INSERT"
ACTION_UPDATE = "UPDATE"
ACTION_CANCEL = "CANCEL"


def record_mutation(
    transaction: PaycomTransaction,
    action: str,
    before: Optional[dict],
) -> TransactionAudit:
    after = transaction.to_dict()
    entry = TransactionAudit(
        transaction_id=transaction.id,
        action=action,
        before_json=before,
        after_json=after,
        occurred_at=utcnow(),
    )
    db.session.add(entry)

    current_app.logger.info(
        "paycom transaction %s %s: before=%s after=%s",
        transaction.paycom_transaction_id,
        action.lower(),
        before,
        after,
    )
    return entry


def get_audit_trail(transaction_id: int) -> list[TransactionAudit]:
    return (
        db.session.query(TransactionAudit)
        .filter_by(transaction_id=transaction_id)
        .order_by(TransactionAudit.id)
        .all()
    )
