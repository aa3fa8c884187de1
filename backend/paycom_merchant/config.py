# backend/paycom_merchant/config.py
from __future__ import annotations
import os


# 43 200 000 ms = 12 hours
TRANSACTION_TIMEOUT_MS = 43_200_000


class Config:
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///paycom_merchant.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Credentials the gateway presents in the Basic Authorization header
    PAYCOM_LOGIN = os.environ.get("PAYCOM_LOGIN", "Paycom")
    PAYCOM_KEY = os.environ.get("PAYCOM_KEY", "")

    # Optional file holding the current key; ChangePassword rewrites it
    PAYCOM_KEY_FILE = os.environ.get("PAYCOM_KEY_FILE")

    PAYCOM_ENDPOINT = os.environ.get("PAYCOM_ENDPOINT", "/api/paycom")
