"""Small encoding helpers shared by the wallet modules."""

from __future__ import annotations

import base58


def b58encode(data: bytes) -> str:
    """Base58-encode *data* and return text."""
    return base58.b58encode(data).decode("ascii")


def b58decode(text: str) -> bytes:
    """Decode base58 *text*. Raises ``ValueError`` on characters outside the alphabet."""
    return base58.b58decode(text)


def short_public_key(public_key: bytes | str) -> str:
    """Shorten a public key for display, e.g. ``"7xKX...sAsU"``.

    Accepts raw key bytes or an already base58-encoded address.
    """
    encoded = public_key if isinstance(public_key, str) else b58encode(public_key)
    if len(encoded) <= 8:
        return encoded
    return f"{encoded[:4]}...{encoded[-4:]}"
