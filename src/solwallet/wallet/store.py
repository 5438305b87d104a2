"""The wallet aggregate and its encrypted on-disk form."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

from pydantic import BaseModel, Field, ValidationError

from solwallet.errors import (
    AppDataDirError,
    DuplicateKeyPairName,
    KeyPairNotFound,
    NoDefaultKeyPair,
    OtherError,
    WalletError,
)
from solwallet.wallet.keypair import EncryptedKeyPair, KeyPair
from solwallet.wallet.utils import short_public_key

logger = logging.getLogger("solwallet.wallet.store")


class EncryptedWallet(BaseModel):
    """The wallet file contents: every keypair in encrypted form."""

    keypairs: list[EncryptedKeyPair] = Field(default_factory=list)

    @classmethod
    def from_file(cls, path: Path) -> EncryptedWallet:
        """Read and parse the wallet file at *path*."""
        logger.info(f"Reading encrypted wallet from `{path}`")
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise WalletError(f"Failed to open wallet file: {exc}") from exc
        try:
            wallet = cls.model_validate_json(raw)
        except ValidationError as exc:
            raise WalletError(f"Failed to deserialize wallet: {exc}") from exc
        logger.info(f"Encrypted wallet read from `{path}` ({len(wallet.keypairs)} keypairs)")
        return wallet

    def decrypt(self, password: str | bytes) -> Wallet:
        """Decrypt every keypair; one failure aborts the whole wallet.

        The resulting keypairs are sorted by name.
        """
        logger.info("Decrypting the wallet")
        keypairs = [keypair.decrypt(password) for keypair in self.keypairs]
        keypairs.sort(key=lambda kp: kp.name)
        logger.info("Wallet decrypted successfully")
        return Wallet(keypairs)

    def export(self, path: Path) -> None:
        """Overwrite *path* with this wallet.

        The file is truncated and rewritten in place, so a crash mid-write
        can leave it corrupted.
        """
        logger.info(f"Writing encrypted wallet to `{path}`")
        try:
            payload = self.model_dump_json()
        except ValueError as exc:
            raise WalletError(f"Failed to serialize wallet: {exc}") from exc
        try:
            path.write_text(payload, encoding="utf-8")
        except OSError as exc:
            raise AppDataDirError(f"Failed to create wallet file: {exc}") from exc
        logger.info(f"Wallet exported successfully to `{path}`")


class Wallet:
    """The decrypted wallet: an ordered list of keypairs.

    Mutations only change memory; call :meth:`export` to persist them.
    """

    def __init__(self, keypairs: list[KeyPair] | None = None) -> None:
        self.keypairs: list[KeyPair] = list(keypairs or [])

    def __repr__(self) -> str:
        return f"Wallet(keypairs={self.keypairs!r})"

    def __len__(self) -> int:
        return len(self.keypairs)

    def __iter__(self) -> Iterator[KeyPair]:
        return iter(self.keypairs)

    def __contains__(self, name: object) -> bool:
        return any(kp.name == name for kp in self.keypairs)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, password: str | bytes, app_file: Path) -> Wallet:
        """Load and decrypt the wallet at *app_file*.

        A missing file is a first run and yields an empty wallet; the file
        is created by the first :meth:`export`.
        """
        logger.info(f"Loading the wallet from `{app_file}`")
        if not app_file.exists():
            logger.warning(f"No wallet file at `{app_file}`, starting a new wallet")
            return cls()
        return EncryptedWallet.from_file(app_file).decrypt(password)

    def encrypt(self, password: str | bytes) -> EncryptedWallet:
        logger.info("Encrypting the wallet")
        encrypted = EncryptedWallet(keypairs=[kp.encrypt(password) for kp in self.keypairs])
        logger.info("Wallet encrypted successfully")
        return encrypted

    def export(self, password: str | bytes, app_file: Path) -> None:
        """Encrypt the wallet and overwrite *app_file* with it."""
        self.encrypt(password).export(app_file)

    # ------------------------------------------------------------------
    # Keypair management
    # ------------------------------------------------------------------

    def add_keypair(self, new_keypair: KeyPair) -> None:
        """Append *new_keypair*.

        Rejects a public key or a name that is already in the wallet, leaving
        the wallet unchanged. A new default keypair demotes every other one.
        """
        logger.info(f"Adding {new_keypair!r} to the wallet")
        for kp in self.keypairs:
            if kp.public_key == new_keypair.public_key:
                raise OtherError(
                    f"The public key `{short_public_key(kp.public_key)}` already "
                    f"exists in the wallet with the name `{kp.name}`"
                )
        if new_keypair.name in self:
            logger.warning(f"The keypair name `{new_keypair.name}` already exists in the wallet")
            raise DuplicateKeyPairName(new_keypair.name)

        if new_keypair.is_default:
            for kp in self.keypairs:
                kp.is_default = False
        self.keypairs.append(new_keypair)
        logger.info(f"{new_keypair!r} added to the wallet successfully")

    def get_keypair(self, name: str) -> KeyPair:
        for kp in self.keypairs:
            if kp.name == name:
                logger.info(f"`{name}` found in the wallet")
                return kp
        logger.warning(f"`{name}` not found in the wallet")
        raise KeyPairNotFound(name)

    def delete_keypair(self, name: str) -> KeyPair:
        """Remove and return the keypair called *name*.

        Deleting the default keypair leaves the wallet without a default.
        """
        for index, kp in enumerate(self.keypairs):
            if kp.name == name:
                logger.info(f"`{name}` deleted from the wallet")
                return self.keypairs.pop(index)
        logger.warning(f"`{name}` not found in the wallet")
        raise KeyPairNotFound(name)

    def default_keypair(self) -> KeyPair:
        for kp in self.keypairs:
            if kp.is_default:
                logger.info(f"{kp!r} is the default keypair")
                return kp
        logger.warning("No default keypair found in the wallet")
        raise NoDefaultKeyPair()

    def set_default(self, name: str) -> KeyPair:
        """Make *name* the only default keypair, in place."""
        target = self.get_keypair(name)
        for kp in self.keypairs:
            kp.is_default = kp is target
        logger.info(f"{target!r} is now the default keypair")
        return target

    def keypair_name(self, name: str | None = None) -> str:
        """Return *name*, or the default keypair's name when *name* is ``None``."""
        if name is not None:
            return name
        return self.default_keypair().name


def clean_wallet(app_file: Path) -> None:
    """Delete the wallet file."""
    logger.info(f"Removing the wallet file `{app_file}`")
    try:
        app_file.unlink()
    except OSError as exc:
        raise WalletError(f"Failed to remove wallet file: {exc}") from exc
    logger.info("Wallet file removed successfully")
