# Overview: Pytest coverage for concurrent delivery of the same CreateTransaction.

"""
Duplicate Create Race

Two deliveries of one CreateTransaction can both miss the lookup and both
try to insert. The unique index on the gateway id lets exactly one win; the
loser must answer with the winner's snapshot instead of an error.

The race is made deterministic by inserting the competing row right before
the request's own insert.
"""

from paycom_merchant.extensions import db
from paycom_merchant.models import PaycomTransaction
from paycom_merchant.models.transactions import STATE_CREATED
from paycom_merchant.services import transaction_service
from paycom_merchant.time_utils import datetime_to_milliseconds

from conftest import now_ms


def _race_with_rival(monkeypatch):
    real_insert = transaction_service.insert
    losers = []

    def racing_insert(transaction):
        monkeypatch.setattr(transaction_service, "insert", real_insert)
        rival = transaction_service.new_transaction(
            paycom_transaction_id=transaction.paycom_transaction_id,
            paycom_time=transaction.paycom_time,
            amount=transaction.amount,
            order_id=transaction.order_id,
        )
        real_insert(rival)
        losers.append(transaction)
        return real_insert(transaction)

    monkeypatch.setattr(transaction_service, "insert", racing_insert)
    return losers


class TestDuplicateCreate:
    def test_loser_replays_winner_snapshot(self, call, monkeypatch):
        losers = _race_with_rival(monkeypatch)
        params = {"id": "R-1", "time": now_ms(), "amount": 500000, "account": {"order_id": "1"}}

        body = call("CreateTransaction", params)

        assert "error" not in body
        result = body["result"]
        assert result["transaction"] == "R-1"
        assert result["state"] == STATE_CREATED

        rows = db.session.query(PaycomTransaction).filter_by(paycom_transaction_id="R-1").all()
        assert len(rows) == 1
        assert result["create_time"] == datetime_to_milliseconds(rows[0].create_time)

        (loser,) = losers
        assert loser.id is None

    def test_later_retry_sees_single_row(self, call, monkeypatch):
        _race_with_rival(monkeypatch)
        params = {"id": "R-2", "time": now_ms(), "amount": 500000, "account": {"order_id": "1"}}

        first = call("CreateTransaction", params)
        second = call("CreateTransaction", params)

        assert first["result"] == second["result"]
        assert db.session.query(PaycomTransaction).count() == 1
