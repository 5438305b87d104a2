"""Password-keyed Fernet envelope used to encrypt keypairs at rest."""

from __future__ import annotations

import base64

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from solwallet.errors import InvalidPassword

PASSWORD_LENGTH = 32
KDF_INFO = b"solwallet fernet key"


def validate_password(password: str | bytes) -> bytes:
    """Return the password as bytes, rejecting anything that is not 32 bytes long."""
    raw = password.encode("utf-8") if isinstance(password, str) else bytes(password)
    if len(raw) != PASSWORD_LENGTH:
        raise InvalidPassword("The password must be 32 bytes long")
    return raw


def _derive_key_from_password(password: bytes) -> bytes:
    kdf = HKDF(
        algorithm=hashes.SHA256(),
        length=32,
        salt=None,
        info=KDF_INFO,
    )
    return base64.urlsafe_b64encode(kdf.derive(password))


def get_fernet(password: str | bytes) -> Fernet:
    """Build a Fernet instance keyed by HKDF-SHA256 of the 32-byte password.

    Both halves of the Fernet key (HMAC signing key and AES key) depend on
    every password byte, so any other password fails authentication.
    """
    return Fernet(_derive_key_from_password(validate_password(password)))


def encrypt(password: str | bytes, plaintext: bytes) -> str:
    """Encrypt *plaintext* and return the Fernet token as text."""
    return get_fernet(password).encrypt(plaintext).decode("ascii")


def decrypt(password: str | bytes, token: str) -> bytes:
    """Decrypt a Fernet token.

    Raises
    ------
    InvalidPassword
        If the password is not 32 bytes long, or the token does not
        authenticate under it (wrong password, corrupted or foreign data).
    """
    fernet = get_fernet(password)
    try:
        return fernet.decrypt(token.encode("ascii"))
    except (InvalidToken, UnicodeEncodeError) as exc:
        raise InvalidPassword("The password is not correct") from exc
