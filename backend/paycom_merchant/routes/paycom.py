# Overview: Flask endpoint for the Paycom merchant API; authorizes, dispatches and renders JSON-RPC envelopes.

# backend/paycom_merchant/routes/paycom.py
"""
Paycom Merchant API Route

WHY: The gateway talks to the merchant through a single JSON-RPC endpoint.

DESIGN:
- Always HTTP 200; success and failure are told apart by the envelope
- The request id is echoed in every response, including auth failures
- Authorization runs before the body is interpreted as an RPC call
- Any unexpected exception becomes -32400 after being logged

Request body:
{
    "method": "CreateTransaction",
    "params": {"id": "...", "time": 1700000000000, "amount": 500000, "account": {"order_id": "1"}},
    "id": 12345
}
"""

from flask import Blueprint, request, jsonify, current_app

from ..extensions import db
from ..errors import InsufficientPrivilege, InternalSystemError, PaycomError
from ..rpc import RpcRequest, extract_request_id
from ..services.authorization_service import authorize


paycom_bp = Blueprint("paycom", __name__)


@paycom_bp.post("")
def paycom_endpoint():
    payload = request.get_json(silent=True)
    request_id = extract_request_id(payload)
    dispatcher = current_app.extensions["paycom"]

    authorized = False
    try:
        authorize(request.headers.get, dispatcher.credentials)
        authorized = True
        rpc = RpcRequest.from_payload(payload)
        result = dispatcher.dispatch(rpc)

    except InsufficientPrivilege as e:
        # ChangePassword also answers -32504 after the gate has passed
        if not authorized:
            current_app.logger.warning("Paycom authorization failed from %s", request.remote_addr)
        db.session.rollback()
        return _error_response(e, request_id)
    except PaycomError as e:
        db.session.rollback()
        return _error_response(e, request_id)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to handle Paycom request")
        return _error_response(InternalSystemError(), request_id)

    return jsonify({"result": result, "id": request_id})


def _error_response(error: PaycomError, request_id):
    return jsonify({"error": error.to_dict(), "id": request_id})
