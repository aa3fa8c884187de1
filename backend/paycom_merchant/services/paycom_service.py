# Overview: Paycom RPC dispatcher; routes each method to its handler and drives the transaction state machine.

"""
Paycom Merchant API Dispatcher

WHY: The gateway drives the whole payment lifecycle through six RPC methods
and retries any call whose answer it did not receive. Every handler is
therefore either read-only or checks the current state first, so that a
retried call replays the earlier answer instead of repeating its effect.

STATE MACHINE:
    CREATED --PerformTransaction--> COMPLETED
    CREATED --CancelTransaction / timeout--> CANCELLED
    COMPLETED --CancelTransaction (allow_cancel)--> CANCELLED_AFTER_COMPLETE

Responses use the gateway's field names. Times are milliseconds since the
epoch (null while unset); `transaction` echoes the gateway's id.
"""

from __future__ import annotations

from typing import Callable

from flask import current_app

from ..config import TRANSACTION_TIMEOUT_MS
from ..errors import (
    CouldNotCancel,
    CouldNotPerform,
    DuplicateTransaction,
    InsufficientPrivilege,
    InternalSystemError,
    InvalidAccount,
    MethodNotFound,
    TransactionNotFound,
    localized,
)
from ..models import PaycomTransaction
from ..models.transactions import (
    CANCELLED_STATES,
    REASON_CANCELLED_BY_TIMEOUT,
    STATE_COMPLETED,
    STATE_CREATED,
)
from ..rpc import RpcRequest
from paycom_merchant.time_utils import datetime_to_milliseconds, timestamp, timestamp_to_milliseconds
from . import transaction_service
from .credential_service import CredentialStore, CredentialStoreUnavailable
from .order_service import MerchantOrder


OrderFactory = Callable[[], MerchantOrder]


class PaycomDispatcher:
    """Holds the injected collaborators and maps method names to handlers."""

    def __init__(self, order_factory: OrderFactory, credentials: CredentialStore):
        self.order_factory = order_factory
        self.credentials = credentials
        self.methods = {
            "CheckPerformTransaction": self.check_perform_transaction,
            "CheckTransaction": self.check_transaction,
            "CreateTransaction": self.create_transaction,
            "PerformTransaction": self.perform_transaction,
            "CancelTransaction": self.cancel_transaction,
            "ChangePassword": self.change_password,
            "GetStatement": self.get_statement,
        }

    def dispatch(self, rpc: RpcRequest) -> dict:
        handler = self.methods.get(rpc.method)
        if handler is None:
            raise MethodNotFound(data=rpc.method)
        return handler(rpc)

    # =========================================================================
    # METHODS
    # =========================================================================

    def check_perform_transaction(self, rpc: RpcRequest) -> dict:
        order = self._load_order(rpc.account)
        rpc.int_param("amount")
        order.validate(rpc.params)

        found = transaction_service.find_active_by_order(order.order_id)
        if found is not None and found.state in (STATE_CREATED, STATE_COMPLETED):
            raise CouldNotPerform("There is other active/completed transaction for this order.")

        return {"allow": True}

    def check_transaction(self, rpc: RpcRequest) -> dict:
        found = self._find_or_fail(rpc)
        return {
            "create_time": datetime_to_milliseconds(found.create_time),
            "perform_time": datetime_to_milliseconds(found.perform_time),
            "cancel_time": datetime_to_milliseconds(found.cancel_time),
            "transaction": found.paycom_transaction_id,
            "state": found.state,
            "reason": found.reason,
        }

    def create_transaction(self, rpc: RpcRequest) -> dict:
        paycom_id = rpc.str_param("id")
        paycom_time = rpc.time_param("time")

        order = self._load_order(rpc.account)
        amount = rpc.amount
        order.validate(rpc.params)

        found = transaction_service.find_by_paycom_id(paycom_id, for_update=True)
        if found is not None:
            return self._replay_created(found)

        transaction_service.ensure_can_create(order.order_id)

        if timestamp(milliseconds=True) - timestamp_to_milliseconds(paycom_time) >= TRANSACTION_TIMEOUT_MS:
            raise InvalidAccount(
                localized(
                    f"С даты создания транзакции прошло {TRANSACTION_TIMEOUT_MS}мс",
                    f"Tranzaksiya yaratilgan sanadan {TRANSACTION_TIMEOUT_MS}ms o`tgan",
                    f"Since create time of the transaction passed {TRANSACTION_TIMEOUT_MS}ms",
                ),
                "time",
            )

        transaction = transaction_service.new_transaction(
            paycom_transaction_id=paycom_id,
            paycom_time=paycom_time,
            amount=amount,
            order_id=order.order_id,
        )
        try:
            transaction_service.insert(transaction)
        except DuplicateTransaction:
            # A concurrent delivery of the same call won the insert
            found = transaction_service.find_by_paycom_id(paycom_id)
            return self._replay_created(found)

        return {
            "create_time": datetime_to_milliseconds(transaction.create_time),
            "transaction": transaction.paycom_transaction_id,
            "state": transaction.state,
            "receivers": None,
        }

    def perform_transaction(self, rpc: RpcRequest) -> dict:
        found = self._find_or_fail(rpc, for_update=True)

        if found.state == STATE_CREATED:
            self._cancel_if_expired(found)

            order = self._load_order({"order_id": found.order_id})
            order.set_paid(found.id)
            transaction_service.complete(found)
            return self._perform_snapshot(found)

        if found.state == STATE_COMPLETED:
            return self._perform_snapshot(found)

        raise CouldNotPerform()

    def cancel_transaction(self, rpc: RpcRequest) -> dict:
        found = self._find_or_fail(rpc, for_update=True)

        if found.state in CANCELLED_STATES:
            return self._cancel_snapshot(found)

        reason = rpc.int_param("reason", required=False)

        if found.state == STATE_CREATED:
            order = self._load_order({"order_id": found.order_id})
            order.cancel(after_complete=False)
            transaction_service.cancel(found, reason)
            return self._cancel_snapshot(found)

        if found.state == STATE_COMPLETED:
            order = self._load_order({"order_id": found.order_id})
            if not order.allow_cancel():
                raise CouldNotCancel()
            order.cancel(after_complete=True)
            transaction_service.cancel(found, reason)
            return self._cancel_snapshot(found)

        raise CouldNotCancel()

    def change_password(self, rpc: RpcRequest) -> dict:
        password = rpc.params.get("password")
        if not isinstance(password, str) or not password.strip():
            raise InvalidAccount("New password not specified.", "password")
        if "\r" in password or "\n" in password:
            raise InvalidAccount("New password must not contain line breaks.", "password")

        if password == self.credentials.key:
            raise InsufficientPrivilege("Insufficient privilege. Incorrect new password.")

        try:
            self.credentials.change_key(password)
        except CredentialStoreUnavailable as exc:
            current_app.logger.error("Failed to store new Paycom key: %s", exc)
            raise InternalSystemError() from exc

        return {"success": True}

    def get_statement(self, rpc: RpcRequest) -> dict:
        if not rpc.has("from"):
            raise InvalidAccount("Incorrect period.", "from")
        if not rpc.has("to"):
            raise InvalidAccount("Incorrect period.", "to")

        from_time = rpc.time_param("from")
        to_time = rpc.time_param("to")
        if from_time >= to_time:
            raise InvalidAccount("Incorrect period. (from >= to)", "from")

        return {"transactions": transaction_service.report(from_time, to_time)}

    # =========================================================================
    # INTERNAL HELPERS
    # =========================================================================

    def _load_order(self, account: dict) -> MerchantOrder:
        order = self.order_factory()
        order.find(account)
        return order

    def _find_or_fail(self, rpc: RpcRequest, for_update: bool = False) -> PaycomTransaction:
        found = transaction_service.find_by_paycom_id(rpc.str_param("id"), for_update=for_update)
        if found is None:
            raise TransactionNotFound()
        return found

    def _cancel_if_expired(self, transaction: PaycomTransaction) -> None:
        if transaction_service.is_expired(transaction):
            transaction_service.cancel(transaction, REASON_CANCELLED_BY_TIMEOUT)
            raise CouldNotPerform("Transaction is expired.")

    def _replay_created(self, found: PaycomTransaction) -> dict:
        if found.state != STATE_CREATED:
            raise CouldNotPerform("Transaction found, but is not active.")

        self._cancel_if_expired(found)

        return {
            "create_time": datetime_to_milliseconds(found.create_time),
            "transaction": found.paycom_transaction_id,
            "state": found.state,
            "receivers": found.receivers,
        }

    @staticmethod
    def _perform_snapshot(transaction: PaycomTransaction) -> dict:
        return {
            "transaction": transaction.paycom_transaction_id,
            "perform_time": datetime_to_milliseconds(transaction.perform_time),
            "state": transaction.state,
        }

    @staticmethod
    def _cancel_snapshot(transaction: PaycomTransaction) -> dict:
        return {
            "transaction": transaction.paycom_transaction_id,
            "cancel_time": datetime_to_milliseconds(transaction.cancel_time),
            "state": transaction.state,
        }
