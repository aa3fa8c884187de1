import pytest

from paycom_merchant.errors import (
    ERROR_INVALID_ACCOUNT,
    ERROR_INVALID_JSON_RPC_OBJECT,
    InvalidAccount,
    InvalidRpcRequest,
)
from paycom_merchant.rpc import RpcRequest, extract_request_id, parse_int


# =============================================================================
# ENVELOPE PARSING
# =============================================================================


class TestFromPayload:
    def test_parses_method_params_and_id(self):
        rpc = RpcRequest.from_payload({"method": "CheckTransaction", "params": {"id": "abc"}, "id": 7})
        assert rpc.method == "CheckTransaction"
        assert rpc.params == {"id": "abc"}
        assert rpc.id == 7

    def test_missing_params_become_empty(self):
        rpc = RpcRequest.from_payload({"method": "GetStatement", "params": None})
        assert rpc.params == {}

    @pytest.mark.parametrize("payload", [None, [], "CheckTransaction", 42])
    def test_non_object_rejected(self, payload):
        with pytest.raises(InvalidRpcRequest) as exc:
            RpcRequest.from_payload(payload)
        assert exc.value.code == ERROR_INVALID_JSON_RPC_OBJECT

    def test_missing_method_rejected(self):
        with pytest.raises(InvalidRpcRequest) as exc:
            RpcRequest.from_payload({"params": {}})
        assert exc.value.data == "method"

    def test_non_object_params_rejected(self):
        with pytest.raises(InvalidRpcRequest) as exc:
            RpcRequest.from_payload({"method": "CheckTransaction", "params": [1, 2]})
        assert exc.value.data == "params"

    def test_extract_request_id(self):
        assert extract_request_id({"id": 5}) == 5
        assert extract_request_id(["not", "a", "dict"]) is None
        assert extract_request_id(None) is None


# =============================================================================
# PARAMETER COERCION
# =============================================================================


class TestParseInt:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (500000, 500000),
            (500000.0, 500000),
            ("500000", 500000),
            (" 42 ", 42),
            ("-3", -3),
        ],
    )
    def test_accepts_integral_values(self, value, expected):
        assert parse_int(value, "amount") == expected

    @pytest.mark.parametrize("value", [True, 1.5, "1.5", "1e3", "abc", "", [1], {"a": 1}])
    def test_rejects_everything_else(self, value):
        with pytest.raises(InvalidAccount) as exc:
            parse_int(value, "amount")
        assert exc.value.code == ERROR_INVALID_ACCOUNT
        assert exc.value.data == "amount"


class TestParamAccessors:
    def test_int_param_required(self):
        rpc = RpcRequest(method="CreateTransaction", params={})
        with pytest.raises(InvalidAccount) as exc:
            rpc.int_param("time")
        assert exc.value.data == "time"

    def test_int_param_optional(self):
        rpc = RpcRequest(method="CancelTransaction", params={"id": "x"})
        assert rpc.int_param("reason", required=False) is None

    def test_str_param_accepts_numbers(self):
        rpc = RpcRequest(method="CheckTransaction", params={"id": 123})
        assert rpc.str_param("id") == "123"

    @pytest.mark.parametrize("value", ["", "   ", None, True, {"x": 1}])
    def test_str_param_rejects_blank_and_non_scalar(self, value):
        rpc = RpcRequest(method="CheckTransaction", params={"id": value})
        with pytest.raises(InvalidAccount) as exc:
            rpc.str_param("id")
        assert exc.value.data == "id"

    def test_account_must_be_object(self):
        rpc = RpcRequest(method="CheckPerformTransaction", params={"account": "1"})
        with pytest.raises(InvalidAccount) as exc:
            rpc.account
        assert exc.value.data == "account"

    def test_amount(self):
        rpc = RpcRequest(method="CheckPerformTransaction", params={"amount": "500000"})
        assert rpc.amount == 500000

    @pytest.mark.parametrize("value", [10**17, -(10**17), "99999999999999999"])
    def test_time_param_rejects_unrepresentable_dates(self, value):
        rpc = RpcRequest(method="CreateTransaction", params={"time": value})
        with pytest.raises(InvalidAccount) as exc:
            rpc.time_param("time")
        assert exc.value.data == "time"

    @pytest.mark.parametrize("value", [1700000000000, 1700000000, "1700000000000"])
    def test_time_param_accepts_seconds_and_milliseconds(self, value):
        rpc = RpcRequest(method="GetStatement", params={"from": value})
        assert rpc.time_param("from") == int(value)
