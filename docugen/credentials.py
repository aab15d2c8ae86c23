"""Secure credential storage for the Gemini API key.

Responsibilities:
- Persist the provider API key in the OS-backed keyring.
- Provide deterministic read/write/delete operations for that key.
- Never log or echo secret values.

Key types:
- `CredentialStore`: interface for provider credential persistence.
- `KeyringCredentialStore`: keyring-backed secure credential storage.
"""

from __future__ import annotations

from dataclasses import dataclass

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from .parsing import normalize_optional_string

_DEFAULT_SERVICE_NAME = "docugen"
_DEFAULT_ACCOUNT_NAME = "gemini_api_key"


class CredentialStore:
    """Interface for secure provider credential operations."""

    def get_api_key(self) -> str | None:
        """Load the stored API key, if one exists."""

        raise NotImplementedError

    def set_api_key(self, api_key: str) -> None:
        """Persist an API key in secure storage."""

        raise NotImplementedError

    def clear_api_key(self) -> bool:
        """Delete a stored API key and return whether one existed."""

        raise NotImplementedError


@dataclass(slots=True)
class KeyringCredentialStore(CredentialStore):
    """Secure credential store backed by the `keyring` package."""

    service_name: str = _DEFAULT_SERVICE_NAME
    account_name: str = _DEFAULT_ACCOUNT_NAME

    def get_api_key(self) -> str | None:
        """Return the normalized stored key, or `None` when missing or unreadable."""

        try:
            value = keyring.get_password(self.service_name, self.account_name)
        except KeyringError:
            return None
        return normalize_optional_string(value)

    def set_api_key(self, api_key: str) -> None:
        """Persist a normalized API key in keyring."""

        normalized = normalize_optional_string(api_key)
        if normalized is None:
            raise ValueError("API key must be a non-empty string.")
        keyring.set_password(self.service_name, self.account_name, normalized)

    def clear_api_key(self) -> bool:
        """Remove the stored API key and report whether one was present."""

        if self.get_api_key() is None:
            return False
        try:
            keyring.delete_password(self.service_name, self.account_name)
        except PasswordDeleteError:
            return False
        return True


def create_credential_store() -> CredentialStore:
    """Create the default secure credential store implementation."""

    return KeyringCredentialStore()
