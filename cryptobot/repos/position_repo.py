"""Position repository — one row per symbol in the positions table."""

from datetime import datetime, timezone

from cryptobot.repos.db import get_connection


class PositionRepo:
    """Data access layer for per-symbol position state.

    Args:
        db_path: Path to the SQLite database file.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def upsert(self, symbol: str, is_opened: bool) -> None:
        """Create or update the position row for *symbol*."""
        updated_at = datetime.now(timezone.utc).isoformat()
        conn = get_connection(self._db_path)
        try:
            conn.execute(
                """
                INSERT INTO positions (symbol, is_opened, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT (symbol)
                DO UPDATE SET is_opened = excluded.is_opened,
                              updated_at = excluded.updated_at
                """,
                (symbol, int(is_opened), updated_at),
            )
            conn.commit()
        finally:
            conn.close()

    def get(self, symbol: str) -> dict | None:
        """Return the position row for *symbol*, or ``None``."""
        conn = get_connection(self._db_path)
        try:
            row = conn.execute(
                "SELECT * FROM positions WHERE symbol = ?", (symbol,)
            ).fetchone()
            if row is None:
                return None
            record = dict(row)
            record["is_opened"] = bool(record["is_opened"])
            return record
        finally:
            conn.close()
