#Description: Loguru configuration for structured logging.

from loguru import logger
import sys

from utils.config import settings

logger.remove()
logger.add(sys.stdout, level=settings.LOG_LEVEL.upper(),
           colorize=True,
           format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level}</level> | <magenta>{name}</magenta> | <cyan>{message}</cyan>")
