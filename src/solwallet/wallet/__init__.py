"""Solana keypair wallet.

Keypairs are held in memory in clear and stored on disk encrypted with a
32-byte password (Fernet). Balances, airdrops and prices go through thin
HTTP collaborators that only ever see public keys.
"""

from solwallet.wallet.keypair import EncryptedKeyPair, ImportKind, ImportType, KeyPair
from solwallet.wallet.store import EncryptedWallet, Wallet, clean_wallet
from solwallet.wallet.utils import short_public_key

__all__ = [
    "EncryptedKeyPair",
    "EncryptedWallet",
    "ImportKind",
    "ImportType",
    "KeyPair",
    "Wallet",
    "clean_wallet",
    "short_public_key",
]
