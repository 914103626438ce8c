"""
Encryption utilities

Symmetric encryption for secrets held at rest, such as the opaque card
tokens issued by the payment provider for saved payment methods.
Uses Fernet (AES-128-CBC + HMAC-SHA256) from the cryptography package.
"""

import base64
import hashlib
from functools import lru_cache

from cryptography.fernet import Fernet, InvalidToken
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured


def derive_fernet_key(secret: str | bytes) -> bytes:
    """
    Turn an arbitrary configured secret into a valid Fernet key.

    Fernet keys are 32 url-safe base64 encoded bytes; the secret is hashed
    with SHA-256 so any non-empty string can be configured.
    """
    if isinstance(secret, str):
        secret = secret.encode()
    return base64.urlsafe_b64encode(hashlib.sha256(secret).digest())


@lru_cache(maxsize=4)
def _fernet_for(secret: str) -> Fernet:
    return Fernet(derive_fernet_key(secret))


def get_fernet() -> Fernet:
    secret = getattr(settings, 'ENCRYPTION_KEY', None)
    if not secret:
        raise ImproperlyConfigured(
            "ENCRYPTION_KEY not configured in settings. "
            "Generate one with: python -c 'from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())'"
        )
    return _fernet_for(secret)


def encrypt_string(plaintext: str) -> str:
    """Encrypt a string, returning the Fernet token as text."""
    if not plaintext:
        return ''
    return get_fernet().encrypt(plaintext.encode()).decode()


def decrypt_string(encrypted: str) -> str:
    """
    Decrypt a Fernet token produced by encrypt_string.

    Raises InvalidToken when the value was encrypted with another key or tampered with.
    """
    if not encrypted:
        return ''
    return get_fernet().decrypt(encrypted.encode()).decode()


__all__ = ['InvalidToken', 'decrypt_string', 'derive_fernet_key', 'encrypt_string', 'get_fernet']
