"""Token price lookup with a small on-disk cache."""

from __future__ import annotations

import logging
import time
from pathlib import Path

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from solwallet.errors import IOFailure, OtherError

logger = logging.getLogger("solwallet.wallet.price")


class PriceData(BaseModel):
    """The ``data`` object of the market API response."""

    model_config = ConfigDict(populate_by_name=True)

    price: float = Field(alias="priceUsdt")
    price_change_24h: float = Field(default=0.0, alias="priceChange24h")


class Price(BaseModel):
    """A token price in USDT, stamped with when it was fetched."""

    symbol: str
    price: float
    price_change_24h: float = 0.0
    timestamp: float = Field(default_factory=time.time)


def fetch_price(
    symbol: str,
    api_url: str,
    *,
    timeout: float = 15.0,
    transport: httpx.BaseTransport | None = None,
) -> Price:
    """Fetch the current price of *symbol* (e.g. ``"SOL"``) from the market API."""
    symbol = symbol.upper()
    logger.info(f"Fetching the {symbol} price from {api_url}")
    try:
        with httpx.Client(timeout=timeout, transport=transport) as client:
            resp = client.get(api_url, params={"symbol": symbol})
            resp.raise_for_status()
            body = resp.json()
    except httpx.HTTPError as exc:
        raise OtherError(f"Failed to get the {symbol} price: {exc}") from exc
    except ValueError as exc:
        raise OtherError(f"Failed to parse price data: {exc}") from exc

    if not body.get("success", True):
        raise OtherError(f"The price API has no price for {symbol}")
    try:
        data = PriceData.model_validate(body.get("data") or {})
    except ValidationError as exc:
        raise OtherError(f"Failed to parse price data: {exc}") from exc
    return Price(symbol=symbol, price=data.price, price_change_24h=data.price_change_24h)


class PriceCache(BaseModel):
    """Recently fetched prices, persisted as JSON.

    Prices older than ``ttl_seconds`` are dropped when the cache is loaded.
    """

    prices: list[Price] = Field(default_factory=list)

    @classmethod
    def load(cls, path: Path, ttl_seconds: float = 300) -> PriceCache:
        if not path.exists():
            logger.info(f"No price cache at `{path}`, starting a new one")
            return cls()
        try:
            cache = cls.model_validate_json(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise IOFailure(f"Failed to open cache file: {exc}") from exc
        except ValidationError as exc:
            raise IOFailure(f"Failed to load cache file: {exc}") from exc
        cache.evict_older_than(ttl_seconds)
        logger.info(f"Price cache loaded from `{path}` ({len(cache.prices)} fresh prices)")
        return cache

    def evict_older_than(self, ttl_seconds: float, now: float | None = None) -> None:
        now = time.time() if now is None else now
        self.prices = [p for p in self.prices if p.timestamp + ttl_seconds > now]

    def add_price(self, price: Price) -> Price:
        """Store *price*, replacing any cached price for the same symbol."""
        self.prices = [p for p in self.prices if p.symbol != price.symbol]
        self.prices.append(price)
        return price

    def get_price(self, symbol: str) -> Price | None:
        symbol = symbol.upper()
        for price in self.prices:
            if price.symbol == symbol:
                logger.info(f"Price of {symbol} found in cache")
                return price
        logger.info(f"Price of {symbol} not in cache")
        return None

    def save(self, path: Path) -> None:
        try:
            path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        except OSError as exc:
            raise IOFailure(f"Failed to save cache file: {exc}") from exc


def get_price(
    symbol: str,
    cache: PriceCache,
    api_url: str,
    *,
    timeout: float = 15.0,
    transport: httpx.BaseTransport | None = None,
) -> Price:
    """Return the cached price of *symbol*, fetching and caching it on a miss."""
    cached = cache.get_price(symbol)
    if cached is not None:
        return cached
    return cache.add_price(fetch_price(symbol, api_url, timeout=timeout, transport=transport))
