"""Broker data models — typed representations of Binance REST API objects."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Candle:
    """A single kline bar. Times are epoch milliseconds."""

    open_time: int
    open: float
    high: float
    low: float
    close: float
    volume: float
    close_time: int
    quote_volume: float = 0.0
    trades: int = 0
    taker_buy_base_volume: float = 0.0
    taker_buy_quote_volume: float = 0.0


@dataclass(frozen=True)
class OrderResponse:
    """Acknowledgement of a filled market order."""

    order_id: str
    symbol: str
    side: str  # "BUY" or "SELL"
    quantity: float
    status: str
    time: int
