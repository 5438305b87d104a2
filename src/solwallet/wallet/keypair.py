"""Keypair entity: plaintext and encrypted forms, plus import classification."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

from nacl.exceptions import CryptoError
from nacl.signing import SigningKey
from pydantic import BaseModel

from solwallet.errors import (
    InvalidBytesLength,
    InvalidPrivateKey,
    KeypairError,
)
from solwallet.wallet import crypto
from solwallet.wallet.utils import b58decode, b58encode, short_public_key

logger = logging.getLogger("solwallet.wallet.keypair")

SECRET_KEY_LENGTH = 32
PRIVATE_KEY_LENGTH = 64

_BYTE_RE = re.compile(r"[0-9]+")


# ---------------------------------------------------------------------------
# Import classification
# ---------------------------------------------------------------------------


class ImportKind(str, Enum):
    PRIVATE_KEY = "private_key"
    SECRET_KEY = "secret_key"


@dataclass(frozen=True)
class ImportType:
    """Raw key material typed by its length: 64-byte private key or 32-byte secret key."""

    kind: ImportKind
    data: bytes

    def __repr__(self) -> str:
        return f"ImportType(kind={self.kind.value!r}, data=<{len(self.data)} bytes>)"

    @classmethod
    def parse(cls, raw: str) -> ImportType:
        """Classify user input as a private key or a secret key.

        ``"[1, 2, ...]"`` is read as a list of byte values; anything else is
        read as base58.

        Raises
        ------
        KeypairError
            If the input is neither a valid byte list nor valid base58.
        InvalidBytesLength
            If the decoded material is neither 32 nor 64 bytes long.
        """
        text = raw.strip()
        if text.startswith("[") and text.endswith("]"):
            data = _parse_byte_list(text[1:-1])
        else:
            try:
                data = b58decode(text)
            except ValueError as exc:
                raise KeypairError("The key is not a valid base58 string") from exc

        if len(data) == PRIVATE_KEY_LENGTH:
            return cls(ImportKind.PRIVATE_KEY, data)
        if len(data) == SECRET_KEY_LENGTH:
            return cls(ImportKind.SECRET_KEY, data)
        raise InvalidBytesLength(len(data))


def _parse_byte_list(body: str) -> bytes:
    if not body.strip():
        return b""
    items = [item.strip() for item in body.split(",")]
    if not all(_BYTE_RE.fullmatch(item) for item in items):
        raise KeypairError("The bytes array must contain only numbers between 0 and 255")
    try:
        return bytes(int(item) for item in items)
    except ValueError as exc:
        # values above 255
        raise KeypairError(
            "The bytes array must contain only numbers between 0 and 255"
        ) from exc


# ---------------------------------------------------------------------------
# Keypairs
# ---------------------------------------------------------------------------


class EncryptedKeyPair(BaseModel):
    """A keypair as stored in the wallet file.

    ``name`` and ``private_key`` are Fernet tokens; ``is_default`` is stored
    in clear so the file stays readable without the password.
    """

    name: str
    private_key: str
    is_default: bool = False

    def decrypt(self, password: str | bytes) -> KeyPair:
        """Decrypt back into a :class:`KeyPair`.

        Raises :class:`InvalidPassword` when the tokens do not authenticate.
        """
        encoded_name = crypto.decrypt(password, self.name)
        try:
            name = b58decode(encoded_name.decode("ascii")).decode("utf-8")
        except (UnicodeDecodeError, ValueError) as exc:
            raise KeypairError("Failed to decrypt the keypair name") from exc

        private_key = crypto.decrypt(password, self.private_key)
        try:
            encoded_private_key = private_key.decode("ascii")
        except UnicodeDecodeError as exc:
            raise InvalidPrivateKey(name) from exc
        return KeyPair.from_private_key(name, encoded_private_key, self.is_default)


class KeyPair:
    """A decrypted ed25519 keypair with a wallet-local name.

    The public key is always derived from the signing key and cannot be
    assigned on its own.
    """

    __slots__ = ("name", "is_default", "_signing_key")

    def __init__(self, name: str, signing_key: SigningKey, is_default: bool = False) -> None:
        self.name = name
        self.is_default = is_default
        self._signing_key = signing_key

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def generate(cls, name: str, is_default: bool = False) -> KeyPair:
        """Create a new random keypair from the OS CSPRNG."""
        return cls(name, SigningKey.generate(), is_default)

    @classmethod
    def from_private_key(
        cls, name: str, encoded_private_key: str, is_default: bool = False
    ) -> KeyPair:
        """Build a keypair from a base58 64-byte ``secret || public`` key.

        Raises :class:`InvalidPrivateKey` if the string is not base58, is
        not 64 bytes, or its public half does not match its secret half.
        """
        try:
            raw = b58decode(encoded_private_key)
        except ValueError as exc:
            raise InvalidPrivateKey(name) from exc
        if len(raw) != PRIVATE_KEY_LENGTH:
            raise InvalidPrivateKey(name)

        secret, public = raw[:SECRET_KEY_LENGTH], raw[SECRET_KEY_LENGTH:]
        try:
            signing_key = SigningKey(secret)
        except (CryptoError, ValueError, TypeError) as exc:
            raise InvalidPrivateKey(name) from exc
        if signing_key.verify_key.encode() != public:
            raise InvalidPrivateKey(name)
        return cls(name, signing_key, is_default)

    @classmethod
    def from_secret_key(cls, name: str, secret: bytes, is_default: bool = False) -> KeyPair:
        """Build a keypair from a 32-byte secret key, deriving the public key."""
        if len(secret) != SECRET_KEY_LENGTH:
            raise InvalidBytesLength(len(secret))
        try:
            signing_key = SigningKey(bytes(secret))
        except (CryptoError, ValueError, TypeError) as exc:
            raise InvalidPrivateKey(name) from exc
        return cls(name, signing_key, is_default)

    @classmethod
    def import_keypair(
        cls, name: str, import_type: ImportType, is_default: bool = False
    ) -> KeyPair:
        """Build a keypair from classified user input (see :meth:`ImportType.parse`)."""
        logger.info(f"Importing `{name}` from a {import_type.kind.value}")
        if import_type.kind is ImportKind.PRIVATE_KEY:
            return cls.from_private_key(name, b58encode(import_type.data), is_default)
        return cls.from_secret_key(name, import_type.data, is_default)

    # ------------------------------------------------------------------
    # Key material
    # ------------------------------------------------------------------

    @property
    def public_key(self) -> bytes:
        return self._signing_key.verify_key.encode()

    @property
    def secret_key(self) -> bytes:
        return self._signing_key.encode()

    @property
    def private_key(self) -> str:
        """Base58 of the 64-byte ``secret || public`` key."""
        return b58encode(self.secret_key + self.public_key)

    @property
    def address(self) -> str:
        """The base58 public key, i.e. the Solana address."""
        return b58encode(self.public_key)

    @property
    def secret_key_b58(self) -> str:
        return b58encode(self.secret_key)

    @property
    def signing_key(self) -> SigningKey:
        return self._signing_key

    # ------------------------------------------------------------------
    # Encryption
    # ------------------------------------------------------------------

    def encrypt(self, password: str | bytes) -> EncryptedKeyPair:
        """Encrypt the name and private key under *password*.

        The name is base58-encoded before encryption.
        """
        name = crypto.encrypt(password, b58encode(self.name.encode("utf-8")).encode("ascii"))
        private_key = crypto.encrypt(password, self.private_key.encode("ascii"))
        return EncryptedKeyPair(
            name=name,
            private_key=private_key,
            is_default=self.is_default,
        )

    # ------------------------------------------------------------------
    # Copying, comparison, display
    # ------------------------------------------------------------------

    def copy(self) -> KeyPair:
        """Return an independent copy, rebuilding the signing key from its seed."""
        return KeyPair(self.name, SigningKey(self._signing_key.encode()), self.is_default)

    def __copy__(self) -> KeyPair:
        return self.copy()

    def __deepcopy__(self, memo: dict) -> KeyPair:
        return self.copy()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeyPair):
            return NotImplemented
        return (
            self.name == other.name
            and self.public_key == other.public_key
            and self.private_key == other.private_key
            and self.is_default == other.is_default
        )

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        return (
            f"KeyPair(name={self.name!r}, "
            f"public_key={short_public_key(self.public_key)!r}, "
            f"private_key='****', is_default={self.is_default})"
        )
