"""CryptoBot — Trading engine (orchestration loop).

Connects market data, strategy, ledger and order execution into a single
polling loop. One call to ``run_once`` is one decision cycle:
fetch candles → readings → read position → decide → execute → record.
"""

import asyncio
import logging
import math
from datetime import datetime, timezone
from typing import Optional

from cryptobot.api.routers import update_bot_status
from cryptobot.broker.binance_client import BinanceClient
from cryptobot.config import Config
from cryptobot.errors import (
    ExecutionError,
    InsufficientDataError,
    PersistenceError,
    TransportError,
)
from cryptobot.ledger import PositionLedger
from cryptobot.strategy.base import StrategyProtocol

logger = logging.getLogger("cryptobot")

BUY = "BUY"
SELL = "SELL"


class TradingEngine:
    """Orchestrates one evaluation-and-execution cycle per call.

    Args:
        config: Application configuration.
        broker: A ``BinanceClient`` (or compatible duck-type / mock).
        strategy: A strategy implementing ``StrategyProtocol``.
        ledger: The ``PositionLedger`` holding durable position state.
    """

    def __init__(
        self,
        config: Config,
        broker: BinanceClient,
        strategy: StrategyProtocol,
        ledger: PositionLedger,
    ) -> None:
        self._config = config
        self._broker = broker
        self._strategy = strategy
        self._ledger = ledger
        self._running: bool = False
        self._cycle_count: int = 0
        # Display only; every decision re-reads the ledger.
        self._is_open: bool = False

    @property
    def symbol(self) -> str:
        return self._config.symbol

    @property
    def is_open(self) -> bool:
        """Last known position state, for display."""
        return self._is_open

    @property
    def cycle_count(self) -> int:
        return self._cycle_count

    # ── Lifecycle ────────────────────────────────────────────────────────

    def initialize(self) -> None:
        """Seed the display flag from the ledger and mark the engine running."""
        try:
            self._is_open = self._ledger.initialize(self.symbol)
        except PersistenceError as exc:
            logger.error("Failed to load position for %s: %s", self.symbol, exc)
            self._is_open = False
        update_bot_status(
            running=True,
            symbol=self.symbol,
            strategy=self._strategy.name,
            is_open=self._is_open,
            started_at=datetime.now(timezone.utc).isoformat(),
        )
        self._running = True

    def stop(self) -> None:
        """Signal the engine to stop after the current cycle."""
        self._running = False

    # ── Polling loop ─────────────────────────────────────────────────────

    async def run(
        self,
        poll_interval: int | None = None,
        max_cycles: int = 0,
    ) -> list[dict]:
        """Run the trading loop until stopped.

        Call ``initialize()`` first. A failing cycle is logged and the
        loop carries on with the next tick.

        Args:
            poll_interval: Seconds between cycles. Defaults to
                           ``config.poll_interval_seconds``.
            max_cycles: Stop after this many cycles (0 = unlimited).

        Returns:
            List of per-cycle result dicts.
        """
        if poll_interval is None:
            poll_interval = self._config.poll_interval_seconds
        results: list[dict] = []
        cycle = 0

        while self._running:
            cycle += 1
            try:
                result = await self.run_once()
            except Exception as exc:
                logger.exception("Cycle %d error: %s", cycle, exc)
                result = {"action": "error", "reason": str(exc)}
                update_bot_status(last_action="error", last_reason=str(exc))
            results.append(result)
            logger.info("Cycle %d: %s", cycle, result.get("action", "unknown"))

            if max_cycles > 0 and cycle >= max_cycles:
                break

            # Interruptible sleep, checks _running every second
            for _ in range(poll_interval):
                if not self._running:
                    break
                await asyncio.sleep(1)

        update_bot_status(running=False)
        return results

    # ── Single cycle ─────────────────────────────────────────────────────

    async def run_once(self, utc_now: Optional[datetime] = None) -> dict:
        """Execute one trading cycle.

        Returns a dict describing the outcome:

        - ``{"action": "skipped", "reason": "..."}``
        - ``{"action": "waiting", ...}``
        - ``{"action": "order_placed", ...}``
        - ``{"action": "error", "reason": "order_failed", ...}``
        - ``{"action": "inconsistent", ...}`` (order filled, ledger write failed)

        Args:
            utc_now: Current UTC datetime.  Defaults to ``datetime.now(UTC)``.
        """
        if utc_now is None:
            utc_now = datetime.now(timezone.utc)
        self._cycle_count += 1
        update_bot_status(
            cycle_count=self._cycle_count,
            last_cycle_at=utc_now.isoformat(),
        )

        # 1 ── Fetch
        try:
            candles = await self._broker.fetch_candles(
                self.symbol,
                self._config.candle_interval,
                self._config.candle_limit,
            )
        except TransportError as exc:
            logger.error("Failed to fetch candles for %s: %s", self.symbol, exc)
            return self._finish("skipped", "fetch_failed")

        if not candles:
            logger.warning("No candles returned for %s", self.symbol)
            return self._finish("skipped", "no_data")

        prices = [c.close for c in candles]
        last_price = prices[-1]

        # 2 ── Evaluate
        try:
            readings = self._strategy.current_readings(prices)
        except InsufficientDataError as exc:
            logger.error("Cannot evaluate %s: %s", self.symbol, exc)
            return self._finish("skipped", "insufficient_data")

        if math.isnan(readings.rsi):
            logger.warning("RSI is NaN for %s (flat price window)", self.symbol)
        logger.info(
            "%s last=%.2f rsi=%.2f sma=%s open=%s",
            self.symbol,
            last_price,
            readings.rsi,
            f"{readings.sma:.2f}" if readings.sma is not None else "—",
            self._is_open,
        )
        update_bot_status(
            last_price=last_price,
            rsi=None if math.isnan(readings.rsi) else readings.rsi,
            sma=readings.sma,
        )

        # 3 ── Decide
        try:
            is_open = self._ledger.get_position(self.symbol)
        except PersistenceError as exc:
            logger.error("Position unknown for %s, skipping: %s", self.symbol, exc)
            return self._finish("skipped", "position_unknown")
        self._is_open = is_open
        update_bot_status(is_open=is_open)

        try:
            if self._strategy.evaluate_enter(prices) and not is_open:
                side = BUY
                logger.info("Oversold, buying %s", self.symbol)
            elif self._strategy.evaluate_exit(prices) and is_open:
                side = SELL
                logger.info("Overbought, selling %s", self.symbol)
            else:
                return self._finish("waiting", "no_signal", price=last_price)
        except InsufficientDataError as exc:
            logger.error("Cannot evaluate %s: %s", self.symbol, exc)
            return self._finish("skipped", "insufficient_data")

        # 4 ── Execute
        return await self._execute(side, last_price, utc_now)

    async def _execute(self, side: str, price: float, utc_now: datetime) -> dict:
        quantity = self._config.order_quantity
        try:
            order = await self._broker.submit_market_order(self.symbol, side, quantity)
        except ExecutionError as exc:
            logger.error(
                "%s order for %s failed (qty=%s, price=%.2f): %s",
                side, self.symbol, quantity, price, exc.detail,
            )
            return self._finish("error", "order_failed", side=side, price=price)

        logger.info(
            "%s order %s filled for %s (qty=%s, price=%.2f)",
            side, order.order_id, self.symbol, quantity, price,
        )
        if not order.order_id:
            logger.warning(
                "%s order for %s has no exchange details (status=%s), "
                "recording it as filled; verify on the exchange",
                side, self.symbol, order.status,
            )

        try:
            order_row = self._ledger.record_order(self.symbol, side, quantity, price)
            self._ledger.update_position(self.symbol, side == BUY)
        except PersistenceError as exc:
            logger.critical(
                "Order filled but ledger is stale, reconcile manually: "
                "symbol=%s side=%s qty=%s price=%.2f at=%s order_id=%s: %s",
                self.symbol, side, quantity, price, utc_now.isoformat(),
                order.order_id, exc,
            )
            return self._finish(
                "inconsistent", "ledger_write_failed",
                side=side, price=price, order_id=order.order_id,
            )

        self._is_open = side == BUY
        update_bot_status(is_open=self._is_open, last_order_time=utc_now.isoformat())
        return self._finish(
            "order_placed", None,
            side=side,
            quantity=quantity,
            price=price,
            order_id=order.order_id,
            order_row=order_row,
        )

    def _finish(self, action: str, reason: Optional[str], **extra) -> dict:
        update_bot_status(last_action=action, last_reason=reason)
        result = {"action": action}
        if reason is not None:
            result["reason"] = reason
        result.update(extra)
        return result
