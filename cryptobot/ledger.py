"""Position ledger — authoritative open/closed state plus the order log.

Wraps the order and position repositories and turns ``sqlite3`` failures
into ``PersistenceError`` so the engine can treat them per cycle.
"""

import logging
import sqlite3
from typing import Optional

from cryptobot.errors import PersistenceError
from cryptobot.repos.order_repo import OrderRepo
from cryptobot.repos.position_repo import PositionRepo

logger = logging.getLogger("cryptobot")

SIDES = ("BUY", "SELL")


class PositionLedger:
    """Read-before-decide, write-after-execute access to position state.

    Args:
        db_path: Path to an initialised SQLite database (see ``init_db``).
    """

    def __init__(self, db_path: str) -> None:
        self._orders = OrderRepo(db_path)
        self._positions = PositionRepo(db_path)

    def initialize(self, symbol: str) -> bool:
        """Read the startup position for *symbol* and log it."""
        is_open = self.get_position(symbol)
        logger.info(
            "Loaded position for %s: %s",
            symbol, "open" if is_open else "closed",
        )
        return is_open

    # ── Position ─────────────────────────────────────────────────────────

    def get_position(self, symbol: str) -> bool:
        """Return True when *symbol* has an open position.

        A symbol that was never written is closed.
        """
        try:
            record = self._positions.get(symbol)
        except sqlite3.Error as exc:
            raise PersistenceError(
                f"Failed to read position for {symbol}: {exc}"
            ) from exc
        if record is None:
            return False
        return record["is_opened"]

    def get_position_record(self, symbol: str) -> dict | None:
        """Return the full position row (``is_opened``, ``updated_at``)."""
        try:
            return self._positions.get(symbol)
        except sqlite3.Error as exc:
            raise PersistenceError(
                f"Failed to read position for {symbol}: {exc}"
            ) from exc

    def update_position(self, symbol: str, is_open: bool) -> None:
        """Upsert the position row for *symbol*; repeating a value is a no-op."""
        try:
            self._positions.upsert(symbol, is_open)
        except sqlite3.Error as exc:
            raise PersistenceError(
                f"Failed to update position for {symbol} "
                f"(is_open={is_open}): {exc}"
            ) from exc

    # ── Orders ───────────────────────────────────────────────────────────

    def record_order(
        self,
        symbol: str,
        side: str,
        quantity: float,
        price: float,
    ) -> int:
        """Append an executed order and return its ``id``.

        Does not touch the position row; callers follow up with
        ``update_position``.
        """
        if side not in SIDES:
            raise ValueError(f"side must be one of {SIDES}, got {side!r}")
        try:
            return self._orders.insert_order(symbol, side, quantity, price)
        except sqlite3.Error as exc:
            raise PersistenceError(
                f"Failed to record {side} order for {symbol} "
                f"(qty={quantity}, price={price}): {exc}"
            ) from exc

    def recent_orders(
        self,
        symbol: Optional[str] = None,
        limit: int = 20,
    ) -> list[dict]:
        """Return recorded orders, newest first."""
        try:
            return self._orders.get_orders(limit=limit, symbol=symbol)
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to read orders: {exc}") from exc
