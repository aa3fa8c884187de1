# Overview: Basic-auth gate run before any Paycom method is dispatched.

from __future__ import annotations

import base64
import binascii
import hmac
import re
from typing import Callable, Optional

from ..errors import InsufficientPrivilege
from .credential_service import CredentialStore


HeaderLookup = Callable[[str], Optional[str]]

BASIC_AUTH_RE = re.compile(r"^\s*Basic\s+(\S+)\s*$", re.IGNORECASE)


def authorize(get_header: HeaderLookup, credentials: CredentialStore) -> None:
    """
    Check the Authorization header against the merchant credentials.

    The header must be `Basic base64(login:key)` and the decoded pair must
    match byte for byte.

    Raises:
        InsufficientPrivilege: header missing, malformed or wrong
    """
    key = credentials.key
    # An unconfigured key must never match an empty secret
    if not key:
        raise InsufficientPrivilege()

    header = get_header("Authorization")
    if not header:
        raise InsufficientPrivilege()

    match = BASIC_AUTH_RE.match(header)
    if not match:
        raise InsufficientPrivilege()

    try:
        presented = base64.b64decode(match.group(1), validate=True)
    except (binascii.Error, ValueError):
        raise InsufficientPrivilege()

    expected = f"{credentials.login}:{key}".encode("utf-8")
    if not hmac.compare_digest(presented, expected):
        raise InsufficientPrivilege()
