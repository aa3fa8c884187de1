# Overview: Merchant credential store backing authorization and ChangePassword.

from __future__ import annotations

import os
import tempfile
from typing import Optional


class CredentialStoreUnavailable(Exception):
    """Raised when the new key cannot be persisted."""
    pass


class CredentialStore:
    """
    Holds the login/key pair the gateway must present.

    The key is read from `key_file` when that file exists, otherwise the
    configured `key` is used. Only ChangePassword writes, and only to the
    key file; without one the store is read-only.
    """

    def __init__(self, login: str, key: str, key_file: Optional[str] = None):
        self.login = login
        self._key = key
        self.key_file = key_file

    @classmethod
    def from_config(cls, config) -> "CredentialStore":
        return cls(
            login=config["PAYCOM_LOGIN"],
            key=config["PAYCOM_KEY"],
            key_file=config.get("PAYCOM_KEY_FILE"),
        )

    @property
    def key(self) -> str:
        if self.key_file and os.path.exists(self.key_file):
            # Only a trailing line ending is dropped; the key itself must round-trip byte for byte
            with open(self.key_file, "r", encoding="utf-8", newline="") as fh:
                return fh.read().rstrip("\r\n")
        return self._key

    def change_key(self, new_key: str) -> None:
        """
        Persist a new key atomically (write temp file, then rename).

        Raises:
            CredentialStoreUnavailable: no key file configured or it cannot be written
        """
        if not self.key_file:
            raise CredentialStoreUnavailable("No key file configured")

        directory = os.path.dirname(os.path.abspath(self.key_file))
        try:
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".paycom-key-")
            try:
                with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
                    fh.write(new_key)
                os.replace(tmp_path, self.key_file)
            except OSError:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as exc:
            raise CredentialStoreUnavailable(str(exc)) from exc
