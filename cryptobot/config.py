"""CryptoBot — application configuration.

Loads .env variables into a typed config object.
Validates required variables on startup.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from cryptobot.strategy.models import StrategyConfig


_REQUIRED_VARS = [
    "API_URL",
    "SYMBOL",
    "PERIOD",
    "BINANCE_API_KEY",
    "BINANCE_API_SECRET",
]


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    api_url: str
    symbol: str
    period: int
    api_key: str
    api_secret: str
    strategy: str = "rsi"  # "rsi" or "combined"
    sma_period: int = 20
    overbought: float = 70.0
    oversold: float = 30.0
    trend_strength: float = 1.0
    candle_interval: str = "15m"
    candle_limit: int = 100
    order_quantity: float = 0.001
    poll_interval_seconds: int = 10
    db_path: str = "data/cryptobot.db"
    log_level: str = "INFO"
    api_port: int = 8080

    def strategy_config(self) -> StrategyConfig:
        """Return the immutable strategy parameters for this config."""
        return StrategyConfig(
            rsi_period=self.period,
            sma_period=self.sma_period,
            overbought=self.overbought,
            oversold=self.oversold,
            trend_strength=self.trend_strength,
        )


def _parse_positive_int(
    name: str, invalid: list[str], default: str | None = None
) -> int:
    raw = os.environ.get(name) or default or ""
    try:
        value = int(raw)
    except ValueError:
        invalid.append(name)
        return 0
    if value <= 0:
        invalid.append(name)
    return value


def _parse_positive_float(name: str, invalid: list[str], default: str) -> float:
    raw = os.environ.get(name) or default
    try:
        value = float(raw)
    except ValueError:
        invalid.append(name)
        return 0.0
    if not value > 0:
        invalid.append(name)
    return value


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    Raises ``ValueError`` with a message naming every missing or invalid
    variable. ``PERIOD``, ``SMA_PERIOD``, ``CANDLE_LIMIT``,
    ``POLL_INTERVAL_SECONDS`` and ``ORDER_QUANTITY`` must be greater
    than zero.
    """
    load_dotenv(dotenv_path=env_path)

    missing = [v for v in _REQUIRED_VARS if not os.environ.get(v)]
    if missing:
        raise ValueError(
            f"Missing required environment variable(s): {', '.join(missing)}"
        )

    invalid: list[str] = []
    period = _parse_positive_int("PERIOD", invalid)
    sma_period = _parse_positive_int("SMA_PERIOD", invalid, "20")
    candle_limit = _parse_positive_int("CANDLE_LIMIT", invalid, "100")
    poll_interval = _parse_positive_int("POLL_INTERVAL_SECONDS", invalid, "10")
    order_quantity = _parse_positive_float("ORDER_QUANTITY", invalid, "0.001")
    if invalid:
        raise ValueError(
            f"Invalid environment variable(s): {', '.join(invalid)} "
            "(must be a positive number)"
        )

    return Config(
        api_url=os.environ["API_URL"].rstrip("/"),
        symbol=os.environ["SYMBOL"],
        period=period,
        api_key=os.environ["BINANCE_API_KEY"],
        api_secret=os.environ["BINANCE_API_SECRET"],
        strategy=os.environ.get("STRATEGY", "rsi"),
        sma_period=sma_period,
        overbought=float(os.environ.get("OVERBOUGHT", "70")),
        oversold=float(os.environ.get("OVERSOLD", "30")),
        trend_strength=float(os.environ.get("TREND_STRENGTH", "1.0")),
        candle_interval=os.environ.get("CANDLE_INTERVAL", "15m"),
        candle_limit=candle_limit,
        order_quantity=order_quantity,
        poll_interval_seconds=poll_interval,
        db_path=os.environ.get("DB_PATH", "data/cryptobot.db"),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        api_port=int(os.environ.get("API_PORT", "8080")),
    )
