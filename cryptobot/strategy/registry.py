"""Strategy registry — maps strategy names to classes.

Used at startup to instantiate the strategy named by ``Config.strategy``.
"""

from cryptobot.strategy.base import StrategyProtocol
from cryptobot.strategy.combined import CombinedStrategy
from cryptobot.strategy.models import StrategyConfig
from cryptobot.strategy.rsi_strategy import RsiStrategy


STRATEGY_REGISTRY: dict[str, type] = {
    "rsi": RsiStrategy,
    "combined": CombinedStrategy,
}


def get_strategy(name: str, config: StrategyConfig) -> StrategyProtocol:
    """Look up and instantiate a strategy by registry key.

    Raises ``KeyError`` if the strategy name is not registered.
    """
    if name not in STRATEGY_REGISTRY:
        raise KeyError(
            f"Unknown strategy '{name}'. "
            f"Available: {', '.join(STRATEGY_REGISTRY.keys())}"
        )
    return STRATEGY_REGISTRY[name](config)
