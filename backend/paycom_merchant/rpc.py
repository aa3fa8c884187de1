# Overview: JSON-RPC request parsing and strict parameter coercion.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .errors import InvalidAccount, InvalidRpcRequest
from .time_utils import timestamp_to_datetime


def extract_request_id(payload: Any) -> Any:
    """Best-effort id lookup so even rejected requests echo it back."""
    if isinstance(payload, dict):
        return payload.get("id")
    return None


def parse_int(value: Any, field_name: str) -> int:
    """
    Strictly coerce a gateway parameter into an integer.

    Accepts JSON integers, integral floats (e.g. 500000.0) and plain digit
    strings. Booleans, decimals, scientific notation and anything else fail
    with InvalidAccount naming the field.
    """
    if isinstance(value, bool):
        raise InvalidAccount(f"{field_name} must be an integer", field_name)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise InvalidAccount(f"{field_name} must be an integer, not a decimal", field_name)
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.startswith("-"):
            digits = stripped[1:]
        else:
            digits = stripped
        if not digits.isdigit() or not digits.isascii():
            raise InvalidAccount(f"{field_name} must be an integer", field_name)
        return int(stripped)
    raise InvalidAccount(f"{field_name} must be an integer", field_name)


@dataclass
class RpcRequest:
    method: str
    params: dict = field(default_factory=dict)
    id: Any = None

    @classmethod
    def from_payload(cls, payload: Any) -> "RpcRequest":
        if not isinstance(payload, dict):
            raise InvalidRpcRequest()

        method = payload.get("method")
        if not isinstance(method, str) or not method:
            raise InvalidRpcRequest("Method not specified.", "method")

        params = payload.get("params", {})
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise InvalidRpcRequest("Params must be an object.", "params")

        return cls(method=method, params=params, id=payload.get("id"))

    def has(self, name: str) -> bool:
        return self.params.get(name) is not None

    def require(self, name: str) -> Any:
        value = self.params.get(name)
        if value is None:
            raise InvalidAccount(f"{name} is required", name)
        return value

    def int_param(self, name: str, required: bool = True) -> Optional[int]:
        value = self.params.get(name)
        if value is None:
            if required:
                raise InvalidAccount(f"{name} is required", name)
            return None
        return parse_int(value, name)

    def time_param(self, name: str) -> int:
        """Integer timestamp (seconds or milliseconds) that maps onto a calendar date."""
        value = self.int_param(name)
        try:
            timestamp_to_datetime(value)
        except (OverflowError, ValueError):
            raise InvalidAccount(f"{name} is out of range", name)
        return value

    def str_param(self, name: str) -> str:
        value = self.require(name)
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            raise InvalidAccount(f"{name} must be a string", name)
        value = str(value).strip()
        if not value:
            raise InvalidAccount(f"{name} is required", name)
        return value

    @property
    def amount(self) -> int:
        return self.int_param("amount")

    @property
    def account(self) -> dict:
        account = self.params.get("account")
        if not isinstance(account, dict):
            raise InvalidAccount("Account not specified.", "account")
        return account
