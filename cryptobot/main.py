"""CryptoBot — application entry point.

Boots the FastAPI status server and provides the CLI entry point that
runs the trading loop.
"""

import logging
import sys

from fastapi import FastAPI

from cryptobot.api.routers import router

app = FastAPI(title="CryptoBot Internal API", version="0.1.0")
app.include_router(router)

logger = logging.getLogger("cryptobot")


# ── CLI ──────────────────────────────────────────────────────────────────


def _run_cli(argv: list[str] | None = None) -> None:
    """Parse CLI arguments, load config and start the bot."""
    import argparse
    import asyncio
    import signal

    from cryptobot.api.routers import configure_routers
    from cryptobot.broker.binance_client import BinanceClient
    from cryptobot.config import load_config
    from cryptobot.engine import TradingEngine
    from cryptobot.ledger import PositionLedger
    from cryptobot.repos.db import init_db
    from cryptobot.strategy.registry import get_strategy

    parser = argparse.ArgumentParser(description="CryptoBot RSI trading bot")
    parser.add_argument("--env-file", help="Path to a .env file")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single trading cycle and exit",
    )
    parser.add_argument(
        "--engine-only",
        action="store_true",
        help="Run the trading loop without the status API server",
    )
    args = parser.parse_args(argv)

    try:
        config = load_config(env_path=args.env_file)
        strategy = get_strategy(config.strategy, config.strategy_config())
    except (ValueError, KeyError) as exc:
        logging.basicConfig(level=logging.ERROR)
        logger.error("Invalid configuration: %s", exc)
        sys.exit(1)

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    init_db(config.db_path)
    ledger = PositionLedger(config.db_path)
    broker = BinanceClient(config)
    engine = TradingEngine(config=config, broker=broker, strategy=strategy, ledger=ledger)
    configure_routers(ledger=ledger, symbol=config.symbol)
    engine.initialize()

    def handle_shutdown(signum, frame):
        logger.info("Shutdown signal received, stopping gracefully.")
        engine.stop()

    signal.signal(signal.SIGINT, handle_shutdown)

    logger.info(
        "Starting CryptoBot on %s (%s strategy, period=%d, poll=%ds)",
        config.symbol, strategy.name, config.period, config.poll_interval_seconds,
    )

    if args.once:
        asyncio.run(engine.run(max_cycles=1))
    elif args.engine_only:
        asyncio.run(engine.run())
    else:
        asyncio.run(_run_with_api(engine, config.api_port))


async def _run_with_api(engine, port: int) -> None:
    """Start the status API server and the trading loop concurrently."""
    import asyncio
    import uvicorn

    uvi_config = uvicorn.Config(app, host="0.0.0.0", port=port, log_level="info")
    server = uvicorn.Server(uvi_config)

    async def _run_engine():
        try:
            await engine.run()
        finally:
            server.should_exit = True

    async def _run_server():
        try:
            await server.serve()
        finally:
            # uvicorn takes over SIGINT while serving
            engine.stop()

    logger.info("Status API available at http://localhost:%d/status", port)
    results = await asyncio.gather(
        _run_server(),
        _run_engine(),
        return_exceptions=True,
    )
    logger.info("CryptoBot stopped. Results: %s", results)


def main() -> None:
    _run_cli()


if __name__ == "__main__":
    main()
