"""Technical indicators — SMA and RSI over closing prices. Pure functions, no I/O."""

import math
from collections.abc import Sequence

from cryptobot.errors import InsufficientDataError


def _check_period(period: int) -> None:
    if period <= 0:
        raise ValueError(f"Indicator period must be positive, got {period}")


# ── SMA ──────────────────────────────────────────────────────────────────


def sma(prices: Sequence[float], period: int) -> float:
    """Calculate the Simple Moving Average of the last *period* prices.

    Earlier prices are ignored.

    Raises ``InsufficientDataError`` if fewer than *period* prices are
    provided.
    """
    _check_period(period)
    if len(prices) < period:
        raise InsufficientDataError(
            f"Need at least {period} prices for SMA({period}), "
            f"got {len(prices)}"
        )

    window = prices[len(prices) - period:]
    return sum(window) / period


# ── RSI ──────────────────────────────────────────────────────────────────


def _window_average(
    prices: Sequence[float],
    period: int,
    start: int,
) -> tuple[float, float]:
    """Average gain and loss over the *period* diffs starting at *start*.

    The window is clipped at the end of the series but the sums are
    always divided by the full *period*.
    """
    gain = 0.0
    loss = 0.0
    end = min(start + period, len(prices))
    for i in range(start, end):
        diff = prices[i] - prices[i - 1]
        if diff > 0:
            gain += diff
        else:
            loss += abs(diff)
    return gain / period, loss / period


def _rsi_from_avgs(avg_gain: float, avg_loss: float) -> float:
    """Convert smoothed averages to RSI with IEEE division semantics.

    ``avg_loss == 0`` gives ``rs = +inf`` (RSI 100) when there were gains
    and ``rs = nan`` (RSI nan) when there were none.
    """
    if avg_loss == 0:
        rs = math.inf if avg_gain > 0 else math.nan
    else:
        rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def rsi(prices: Sequence[float], period: int = 14) -> float:
    """Calculate the Relative Strength Index of the whole series.

    Algorithm:
        1. For every index ``i`` in ``1 .. len-1`` take the average gain
           and loss of the sliding window of *period* diffs starting at
           ``i`` (see ``_window_average``; short windows near the end
           still divide by *period*).
        2. Seed ``avg_gain``/``avg_loss`` from the window at ``i = 1``.
        3. Afterwards: ``avg = (avg × (period-1) + window) / period``
        4. RS = avg_gain / avg_loss
        5. RSI = 100 - 100 / (1 + RS)

    A series with no losses yields 100, one with no gains yields 0 and a
    flat series yields ``nan``.

    Raises ``InsufficientDataError`` if fewer than ``period + 1`` prices
    are provided.
    """
    _check_period(period)
    if len(prices) < period + 1:
        raise InsufficientDataError(
            f"Need at least {period + 1} prices for RSI({period}), "
            f"got {len(prices)}"
        )

    avg_gain, avg_loss = _window_average(prices, period, 1)
    for i in range(2, len(prices)):
        gain, loss = _window_average(prices, period, i)
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period

    return _rsi_from_avgs(avg_gain, avg_loss)


def last_price(prices: Sequence[float]) -> float:
    """Return the most recent price.

    Raises ``InsufficientDataError`` on an empty series.
    """
    if not prices:
        raise InsufficientDataError("Price series is empty")
    return prices[-1]
