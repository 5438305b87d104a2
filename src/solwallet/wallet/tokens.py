"""Supported SPL tokens."""

from __future__ import annotations

from enum import Enum


class Token(str, Enum):
    USDC = "usdc"
    USDT = "usdt"
    SRM = "srm"

    @property
    def symbol(self) -> str:
        return self.value.upper()

    @property
    def mint_address(self) -> str:
        return _MINTS[self]

    @property
    def base_units(self) -> float:
        """Base units per whole token (all supported tokens use 6 decimals)."""
        return 1e6


_MINTS: dict[Token, str] = {
    Token.USDC: "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
    Token.USDT: "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB",
    Token.SRM: "SRMuApVNdxXokk5GT7XD5cUUgXMBCoAz2LHeuAoKWRt",
}

LAMPORTS_PER_SOL = 1e9
