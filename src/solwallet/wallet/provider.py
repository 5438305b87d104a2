"""Solana JSON-RPC client over httpx."""

from __future__ import annotations

import itertools
import logging
import time
from typing import Any

import httpx

from solwallet.errors import OtherError
from solwallet.wallet.tokens import Token

logger = logging.getLogger("solwallet.wallet.provider")

_CONFIRMED = {"confirmed", "finalized"}


class SolanaRPC:
    """Minimal blocking JSON-RPC client for balance and airdrop calls."""

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.rpc_url = rpc_url
        self._client = httpx.Client(timeout=timeout, transport=transport)
        self._ids = itertools.count(1)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> SolanaRPC:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def call(self, method: str, params: list[Any] | None = None) -> Any:
        """Send one JSON-RPC request and return its ``result``.

        Transport failures, HTTP errors and JSON-RPC errors are all raised as
        :class:`OtherError`.
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }
        logger.debug(f"RPC {method} -> {self.rpc_url}")
        try:
            resp = self._client.post(self.rpc_url, json=payload)
            resp.raise_for_status()
            body = resp.json()
        except httpx.HTTPError as exc:
            raise OtherError(f"RPC request `{method}` failed: {exc}") from exc
        except ValueError as exc:
            raise OtherError(f"RPC response for `{method}` is not valid JSON") from exc

        if body.get("error"):
            error = body["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise OtherError(f"RPC error from `{method}`: {message}")
        return body.get("result")

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    def get_balance(self, address: str) -> int:
        """SOL balance of *address* in lamports."""
        result = self.call("getBalance", [address])
        return int(result["value"])

    def get_token_balance(self, address: str, token: Token) -> int:
        """Balance of an SPL *token* owned by *address*, in base units."""
        result = self.call(
            "getTokenAccountsByOwner",
            [address, {"mint": token.mint_address}, {"encoding": "jsonParsed"}],
        )
        total = 0
        for account in result.get("value", []):
            info = account["account"]["data"]["parsed"]["info"]
            total += int(info["tokenAmount"]["amount"])
        return total

    # ------------------------------------------------------------------
    # Airdrops
    # ------------------------------------------------------------------

    def request_airdrop(self, address: str, lamports: int) -> str:
        """Request an airdrop and return the transaction signature."""
        logger.info(f"Requesting an airdrop of {lamports} lamports to {address}")
        return str(self.call("requestAirdrop", [address, lamports]))

    def confirm_signature(
        self, signature: str, *, attempts: int = 30, interval: float = 2.0
    ) -> None:
        """Poll until *signature* is confirmed.

        Raises :class:`OtherError` if the transaction failed or is still
        unconfirmed after *attempts* polls.
        """
        for attempt in range(1, attempts + 1):
            result = self.call(
                "getSignatureStatuses",
                [[signature], {"searchTransactionHistory": True}],
            )
            status = (result.get("value") or [None])[0]
            if status is not None:
                if status.get("err"):
                    raise OtherError(f"Transaction `{signature}` failed: {status['err']}")
                if status.get("confirmationStatus") in _CONFIRMED:
                    logger.info(f"Transaction `{signature}` confirmed")
                    return
            logger.debug(f"Transaction `{signature}` not confirmed yet ({attempt}/{attempts})")
            if attempt < attempts:
                time.sleep(interval)
        raise OtherError(
            f"Transaction `{signature}` was not confirmed after {attempts} attempts"
        )
