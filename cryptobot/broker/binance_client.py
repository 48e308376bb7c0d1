"""Binance spot REST API async client.

Handles kline fetching and signed MARKET order placement.
"""

import asyncio
import hashlib
import hmac
import logging
import time
from typing import Optional
from urllib.parse import urlencode

import httpx

from cryptobot.broker.models import Candle, OrderResponse
from cryptobot.config import Config
from cryptobot.errors import ExecutionError, TransportError

logger = logging.getLogger("cryptobot")

# Retry settings (market data only; orders are never retried)
_MAX_RETRIES = 3
_RETRY_BASE_DELAY = 2.0  # seconds; doubles each attempt
_RETRYABLE_STATUS_CODES = {502, 503, 504, 429}


def sign_params(params: dict, secret: str) -> str:
    """Return the hex HMAC-SHA256 signature of the urlencoded *params*."""
    payload = urlencode(params)
    return hmac.new(
        secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256
    ).hexdigest()


class BinanceClient:
    """Async client wrapping the Binance v3 REST API."""

    def __init__(self, config: Config) -> None:
        self._config = config
        self._base_url = config.api_url
        self._api_key = config.api_key
        self._api_secret = config.api_secret

    # ── Retry helper ─────────────────────────────────────────────────────

    async def _get_with_retry(self, url: str, **kwargs) -> httpx.Response:
        """Execute a GET with exponential-backoff retry.

        Retries on transient server errors (502, 503, 504), rate-limits
        (429) and transport failures. Anything else raises immediately.
        """
        last_exc: Optional[Exception] = None

        for attempt in range(_MAX_RETRIES):
            try:
                async with httpx.AsyncClient() as client:
                    resp = await client.get(url, timeout=30.0, **kwargs)

                if resp.status_code in _RETRYABLE_STATUS_CODES:
                    delay = _RETRY_BASE_DELAY * (2 ** attempt)
                    logger.warning(
                        "Binance GET %s returned %d — retry %d/%d in %.1fs",
                        url, resp.status_code, attempt + 1, _MAX_RETRIES, delay,
                    )
                    last_exc = httpx.HTTPStatusError(
                        f"Server error '{resp.status_code}'",
                        request=resp.request,
                        response=resp,
                    )
                    await asyncio.sleep(delay)
                    continue

                resp.raise_for_status()
                return resp

            except httpx.TransportError as exc:
                delay = _RETRY_BASE_DELAY * (2 ** attempt)
                logger.warning(
                    "Binance GET %s transport error (%s) — retry %d/%d in %.1fs",
                    url, exc, attempt + 1, _MAX_RETRIES, delay,
                )
                last_exc = exc
                await asyncio.sleep(delay)

            except httpx.HTTPStatusError as exc:
                raise TransportError(
                    f"GET {url} failed with status {exc.response.status_code}: "
                    f"{exc.response.text}"
                ) from exc

        raise TransportError(
            f"GET {url} failed after {_MAX_RETRIES} attempts: {last_exc}"
        ) from last_exc

    # ── Candle data ──────────────────────────────────────────────────────

    async def fetch_candles(
        self,
        symbol: str,
        interval: str,
        limit: int = 100,
    ) -> list[Candle]:
        """Fetch kline data from Binance.

        Args:
            symbol: e.g. ``"BTCUSDT"``
            interval: e.g. ``"15m"``, ``"1h"``
            limit: number of klines to request (max 1000)

        Returns:
            List of ``Candle`` objects ordered oldest-first.

        Raises:
            TransportError: the request failed or the payload is malformed.
        """
        url = f"{self._base_url}/api/v3/klines"
        params = {"symbol": symbol, "interval": interval, "limit": limit}

        resp = await self._get_with_retry(url, params=params)

        try:
            candles = [_parse_kline(raw) for raw in resp.json()]
        except (ValueError, TypeError, IndexError) as exc:
            raise TransportError(f"Malformed kline payload from {url}: {exc}") from exc
        return candles

    # ── Orders ───────────────────────────────────────────────────────────

    async def submit_market_order(
        self,
        symbol: str,
        side: str,
        quantity: float,
    ) -> OrderResponse:
        """Place a signed MARKET order.

        A single attempt is made. Any failure raises ``ExecutionError``
        carrying the exchange's error message when one was returned. A
        200 whose body cannot be parsed still counts as filled and yields
        an ``OrderResponse`` with ``status="UNKNOWN"`` and no order id.
        """
        if side not in ("BUY", "SELL"):
            raise ValueError(f"side must be 'BUY' or 'SELL', got {side!r}")

        url = f"{self._base_url}/api/v3/order"
        params = {
            "symbol": symbol,
            "side": side,
            "type": "MARKET",
            "quantity": f"{quantity:f}",
            "timestamp": int(time.time() * 1000),
        }
        params["signature"] = sign_params(params, self._api_secret)
        headers = {
            "X-MBX-APIKEY": self._api_key,
            "Content-Type": "application/x-www-form-urlencoded",
        }

        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    url,
                    headers=headers,
                    content=urlencode(params),
                    timeout=30.0,
                )
        except httpx.HTTPError as exc:
            raise ExecutionError(f"{side} {symbol} transport failure: {exc}") from exc

        if resp.status_code != 200:
            raise ExecutionError(_error_detail(resp))

        # The order was accepted; an unreadable body must not hide the fill.
        try:
            data = resp.json()
            return OrderResponse(
                order_id=str(data.get("orderId", "")),
                symbol=data.get("symbol", symbol),
                side=data.get("side", side),
                quantity=float(data.get("executedQty", quantity)),
                status=data.get("status", ""),
                time=int(data.get("transactTime", params["timestamp"])),
            )
        except (ValueError, TypeError, AttributeError) as exc:
            logger.error(
                "%s %s accepted (HTTP 200) but response was unreadable: %s; body=%r",
                side, symbol, exc, resp.text[:200],
            )
            return OrderResponse(
                order_id="",
                symbol=symbol,
                side=side,
                quantity=quantity,
                status="UNKNOWN",
                time=params["timestamp"],
            )


def _parse_kline(raw: list) -> Candle:
    """Convert one kline array into a ``Candle``."""
    return Candle(
        open_time=int(raw[0]),
        open=float(raw[1]),
        high=float(raw[2]),
        low=float(raw[3]),
        close=float(raw[4]),
        volume=float(raw[5]),
        close_time=int(raw[6]),
        quote_volume=float(raw[7]),
        trades=int(raw[8]),
        taker_buy_base_volume=float(raw[9]),
        taker_buy_quote_volume=float(raw[10]),
    )


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return f"HTTP {resp.status_code}: {resp.text}"
    if isinstance(body, dict) and "msg" in body:
        return f"HTTP {resp.status_code}: {body['msg']} (code {body.get('code')})"
    return f"HTTP {resp.status_code}: {resp.text}"
