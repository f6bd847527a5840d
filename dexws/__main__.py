"""
Print the exchange's listed markets.

Usage:
    python -m dexws [path/to/.env]
"""

import logging
import sys
import threading

from .client import DexClient
from .config import ClientConfig

logger = logging.getLogger(__name__)


def main() -> None:
    """Entry point."""
    # Setup logging
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Load config
    if len(sys.argv) > 1:
        config = ClientConfig.from_env_file(sys.argv[1])
    else:
        config = ClientConfig.from_env()

    # Override log level if configured
    if config.log_level:
        logging.getLogger().setLevel(config.log_level)

    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(f"Config: {error}")
        sys.exit(1)

    client = DexClient(config)
    opened = threading.Event()
    client.on("wsOpen", opened.set)
    client.connect()

    try:
        if not opened.wait(timeout=10):
            logger.error("Timed out connecting")
            sys.exit(1)

        client.invoke("getListed").result(timeout=10)
        listed = client.listed
        for symbol, market in sorted(listed.markets.items()):
            traded = listed.traded_token(market)
            quote = listed.quote_token(market)
            print(f"{symbol:12} {traded.symbol}({traded.decimals}) / {quote.symbol}({quote.decimals})")
    finally:
        client.disconnect()


if __name__ == "__main__":
    main()
