# Overview: JSON-RPC error taxonomy shared by the dispatcher, store and routes.

"""
Paycom error protocol.

Every failure that reaches the gateway is a PaycomError: a numeric code the
gateway understands, a message (plain string or localized ru/uz/en dict) and
an optional `data` member naming the offending field.

Codes are fixed by the gateway and must not change.
"""

from __future__ import annotations

from typing import Any, Optional, Union

Message = Union[str, dict]


ERROR_INTERNAL_SYSTEM = -32400
ERROR_INSUFFICIENT_PRIVILEGE = -32504
ERROR_INVALID_JSON_RPC_OBJECT = -32600
ERROR_METHOD_NOT_FOUND = -32601
ERROR_TRANSACTION_NOT_FOUND = -31001
ERROR_COULD_NOT_CANCEL = -31007
ERROR_COULD_NOT_PERFORM = -31008
ERROR_INVALID_ACCOUNT = -31050


def localized(ru: str, uz: str, en: str) -> dict:
    """Build a message in the three languages the gateway displays."""
    return {"ru": ru, "uz": uz, "en": en}


class PaycomError(Exception):
    """Base class for errors rendered into the JSON-RPC error envelope."""

    code = ERROR_INTERNAL_SYSTEM
    default_message: Message = "Internal System Error."

    def __init__(self, message: Optional[Message] = None, data: Optional[str] = None):
        self.message = message if message is not None else self.default_message
        self.data = data
        text = self.message.get("en") if isinstance(self.message, dict) else self.message
        super().__init__(text)

    def to_dict(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


class InternalSystemError(PaycomError):
    code = ERROR_INTERNAL_SYSTEM
    default_message = "Internal System Error."


class InsufficientPrivilege(PaycomError):
    code = ERROR_INSUFFICIENT_PRIVILEGE
    default_message = "Insufficient privilege to perform this method."


class InvalidRpcRequest(PaycomError):
    code = ERROR_INVALID_JSON_RPC_OBJECT
    default_message = "Invalid JSON-RPC object."


class MethodNotFound(PaycomError):
    code = ERROR_METHOD_NOT_FOUND
    default_message = "Method not found."


class TransactionNotFound(PaycomError):
    code = ERROR_TRANSACTION_NOT_FOUND
    default_message = "Transaction not found."


class CouldNotCancel(PaycomError):
    code = ERROR_COULD_NOT_CANCEL
    default_message = "Could not cancel transaction. Order is delivered/Service is completed."


class CouldNotPerform(PaycomError):
    code = ERROR_COULD_NOT_PERFORM
    default_message = "Could not perform this operation."


class InvalidAccount(PaycomError):
    code = ERROR_INVALID_ACCOUNT
    default_message = "Invalid account."


class DuplicateTransaction(Exception):
    """Raised by the store when another request inserted the same external id first."""

    def __init__(self, paycom_transaction_id: str):
        self.paycom_transaction_id = paycom_transaction_id
        super().__init__(f"Transaction {paycom_transaction_id} already exists")
