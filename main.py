#Description: Entry point: start the accumulation loop and run until interrupted.
import time

from adapters.binance_common import validate_api_credentials
from models.errors import RulesUnavailable
from utils.config import settings
from utils.context import get_app_context
from utils.logging import logger


def main() -> int:
    ctx = get_app_context()
    if ctx.mode == "live":
        ok, err = validate_api_credentials(settings.BINANCE_API_KEY, settings.BINANCE_API_SECRET)
        if not ok:
            logger.error(err)
            return 2

    ok, msg = ctx.spot.test_connectivity()
    if ok:
        logger.info(msg)
    else:
        logger.warning(msg)

    try:
        ctx.coordinator.start()
    except RulesUnavailable as e:
        logger.error(f"Cannot start: {e}")
        return 1

    logger.info(f"Running in {ctx.mode} mode. Ctrl+C to stop.")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        ctx.coordinator.stop()
        logger.info(f"Final status: {ctx.coordinator.get_status()}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
