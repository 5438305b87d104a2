"""Error hierarchy for solwallet.

Every failure the wallet can report is a :class:`SolwalletError`. Each
subclass carries the process exit code the CLI uses for it, following the
BSD ``sysexits`` convention.
"""

from __future__ import annotations

# sysexits.h
EX_USAGE = 64
EX_DATAERR = 65
EX_SOFTWARE = 70
EX_IOERR = 74


class SolwalletError(Exception):
    """Base class for all wallet errors."""

    exit_code: int = EX_SOFTWARE


class IOFailure(SolwalletError):
    """A file system operation failed."""

    exit_code = EX_IOERR


class AppDataDirError(SolwalletError):
    """The application data directory or file could not be resolved or created."""

    exit_code = EX_IOERR


class InvalidPassword(SolwalletError):
    """The password has the wrong length or does not decrypt the wallet."""

    exit_code = EX_DATAERR


class WalletError(SolwalletError):
    """The wallet file could not be read, parsed, written or removed."""


class KeypairError(SolwalletError):
    """A keypair is structurally broken (e.g. its name is not valid text)."""


class DuplicateKeyPairName(SolwalletError):
    exit_code = EX_USAGE

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"The keypair name `{name}` is already taken, please choose another name"
        )


class KeyPairNotFound(SolwalletError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"The keypair `{name}` doesn't exist")


class InvalidPrivateKey(SolwalletError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"The private key of `{name}` is invalid")


class NoDefaultKeyPair(SolwalletError):
    def __init__(self) -> None:
        super().__init__(
            "No default keypair is set, please set a default keypair using "
            "`solwallet keypair set-default <keypair-name>`, "
            "or enter the keypair name after the command"
        )


class InvalidBytesLength(SolwalletError):
    """Key material is neither 32 bytes (secret key) nor 64 bytes (private key)."""

    def __init__(self, length: int) -> None:
        self.length = length
        super().__init__(
            f"Invalid bytes length: {length}. "
            "Secret key is 32 bytes, private key is 64 bytes"
        )


class OtherError(SolwalletError):
    """Catch-all for RPC, network and formatting failures."""
