"""Internal API routers — /status, /position, /orders endpoints.

No business logic. Reads the shared status dict updated by the engine and
delegates persistence reads to the position ledger.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from cryptobot.errors import PersistenceError

logger = logging.getLogger("cryptobot")
router = APIRouter()

# ── Shared state (set during app startup) ────────────────────────────────

_DEFAULT_STATUS: dict = {
    "running": False,
    "symbol": None,
    "strategy": None,
    "is_open": False,
    "last_price": None,
    "rsi": None,
    "sma": None,
    "started_at": None,
    "cycle_count": 0,
    "last_cycle_at": None,
    "last_action": None,
    "last_reason": None,
    "last_order_time": None,
}

_bot_status: dict = {**_DEFAULT_STATUS}
_ledger = None  # Set via configure_routers()
_symbol: Optional[str] = None  # Set via configure_routers()


def configure_routers(ledger, symbol: Optional[str] = None) -> None:
    """Inject dependencies from the application startup.

    Args:
        ledger: A ``PositionLedger`` instance (or duck-type for tests).
        symbol: The traded symbol, used as the default for queries.
    """
    global _ledger, _symbol  # noqa: PLW0603
    _ledger = ledger
    _symbol = symbol
    if symbol:
        _bot_status["symbol"] = symbol


def update_bot_status(**fields) -> None:
    """Update individual fields of the status dict."""
    _bot_status.update(fields)


def reset_bot_status() -> None:
    """Restore the status dict to its defaults."""
    _bot_status.clear()
    _bot_status.update(_DEFAULT_STATUS)


def get_bot_status() -> dict:
    """Return a copy of the current status dict."""
    return dict(_bot_status)


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/status")
async def get_status():
    """Return the engine's latest cycle status."""
    return get_bot_status()


@router.get("/position")
async def get_position(symbol: Optional[str] = Query(None)):
    """Return the durable position row for *symbol* (defaults to the traded pair)."""
    if _ledger is None:
        raise HTTPException(status_code=503, detail="Ledger not configured")
    target = symbol or _symbol
    if not target:
        raise HTTPException(status_code=400, detail="symbol is required")
    try:
        record = _ledger.get_position_record(target)
    except PersistenceError as exc:
        logger.error("Position lookup failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    if record is None:
        return {"symbol": target, "is_opened": False, "updated_at": None}
    return {
        "symbol": record["symbol"],
        "is_opened": record["is_opened"],
        "updated_at": record["updated_at"],
    }


@router.get("/orders")
async def get_orders(
    limit: int = Query(20, ge=1, le=500),
    symbol: Optional[str] = Query(None),
):
    """Return recorded orders, newest first."""
    if _ledger is None:
        raise HTTPException(status_code=503, detail="Ledger not configured")
    try:
        orders = _ledger.recent_orders(symbol=symbol, limit=limit)
    except PersistenceError as exc:
        logger.error("Order lookup failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return {"orders": orders, "total": len(orders)}
