import json

import pytest

from paycom_merchant.extensions import db
from paycom_merchant.models import Order
from paycom_merchant.models.transactions import STATE_COMPLETED


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


class TestOrderCommands:
    def test_create_order(self, runner):
        result = runner.invoke(args=["orders", "create", "--amount", "500000", "--description", "Course fee"])

        assert result.exit_code == 0, result.output
        assert "PASS Created order" in result.output
        order = db.session.query(Order).one()
        assert order.amount == 500000
        assert order.description == "Course fee"

    def test_create_order_rejects_zero_amount(self, runner):
        result = runner.invoke(args=["orders", "create", "--amount", "0"])
        assert result.exit_code != 0
        assert db.session.query(Order).count() == 0

    def test_list_orders(self, runner):
        runner.invoke(args=["orders", "create", "--amount", "100"])
        result = runner.invoke(args=["orders", "list"])
        assert result.exit_code == 0
        assert "100" in result.output

    def test_list_orders_empty(self, runner):
        result = runner.invoke(args=["orders", "list"])
        assert "No orders found." in result.output


class TestTransactionCommands:
    def test_list_transactions(self, runner, make_transaction):
        make_transaction(paycom_id="C-1")
        make_transaction(paycom_id="C-2", order_id="2", state=STATE_COMPLETED)

        result = runner.invoke(args=["transactions", "list", "--state", "2"])

        assert result.exit_code == 0, result.output
        assert "C-2" in result.output
        assert "C-1" not in result.output

    def test_statement(self, runner, make_transaction):
        make_transaction(paycom_id="C-1", paycom_time=1700000000000)

        result = runner.invoke(args=["transactions", "statement", "--from", "1700000000000", "--to", "1700000001000"])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert [row["id"] for row in payload["transactions"]] == ["C-1"]

    def test_statement_rejects_inverted_period(self, runner):
        result = runner.invoke(args=["transactions", "statement", "--from", "2", "--to", "1"])
        assert result.exit_code != 0


class TestInitDb:
    def test_init_db(self, runner):
        result = runner.invoke(args=["paycom", "init-db"])
        assert result.exit_code == 0
        assert "Database ready." in result.output


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["details"]["transactions"] == 0
