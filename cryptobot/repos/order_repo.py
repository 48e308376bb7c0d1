"""Order repository — append-only SQLite access for the orders table."""

from datetime import datetime, timezone
from typing import Optional

from cryptobot.repos.db import get_connection


class OrderRepo:
    """Data access layer for executed orders.

    Rows are inserted once and never updated or deleted.

    Args:
        db_path: Path to the SQLite database file.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def insert_order(
        self,
        symbol: str,
        side: str,
        quantity: float,
        price: float,
    ) -> int:
        """Insert an executed order and return its ``id``."""
        created_at = datetime.now(timezone.utc).isoformat()
        conn = get_connection(self._db_path)
        try:
            cur = conn.execute(
                """
                INSERT INTO orders (symbol, side, quantity, price, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (symbol, side, quantity, price, created_at),
            )
            conn.commit()
            return cur.lastrowid
        finally:
            conn.close()

    def get_orders(
        self,
        limit: int = 20,
        symbol: Optional[str] = None,
    ) -> list[dict]:
        """Return the most recent orders, newest first."""
        conn = get_connection(self._db_path)
        try:
            if symbol:
                rows = conn.execute(
                    "SELECT * FROM orders WHERE symbol = ? ORDER BY id DESC LIMIT ?",
                    (symbol, limit),
                ).fetchall()
            else:
                rows = conn.execute(
                    "SELECT * FROM orders ORDER BY id DESC LIMIT ?",
                    (limit,),
                ).fetchall()
            return [dict(row) for row in rows]
        finally:
            conn.close()
