"""Tenant access token resolution.

Tokens are written by the OAuth install flow, which lives outside this
service. When TOKEN_ENCRYPTION_KEY is configured the stored value is a Fernet
token and is decrypted here; otherwise the stored value is used as-is.
A token that fails to decrypt is an error, never a silent plaintext fallback.
"""
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from storesync.config import get_settings
from storesync.exceptions import CredentialError, MissingCredentialError


def _fernet(key: str) -> Fernet:
    try:
        return Fernet(key.encode() if isinstance(key, str) else key)
    except (ValueError, TypeError) as e:
        raise CredentialError(f"TOKEN_ENCRYPTION_KEY is not a valid Fernet key: {e}") from e


def encrypt_access_token(token: str, key: Optional[str] = None) -> str:
    """Encrypt a plaintext token for storage (used by provisioning and tests)."""
    key = key or get_settings().token_encryption_key
    if not key:
        return token
    return _fernet(key).encrypt(token.encode()).decode()


def resolve_access_token(tenant, key: Optional[str] = None) -> str:
    """Return the usable Shopify access token for a tenant.

    Raises:
        MissingCredentialError: The tenant has no stored token
        CredentialError: The stored token cannot be decrypted with the configured key
    """
    stored = tenant.access_token
    if not stored:
        raise MissingCredentialError(tenant.id)

    key = key or get_settings().token_encryption_key
    if not key:
        return stored

    try:
        return _fernet(key).decrypt(stored.encode()).decode()
    except InvalidToken as e:
        raise CredentialError(f"Access token for tenant {tenant.id} could not be decrypted") from e
