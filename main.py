"""
Main entry point for the Healing Operator.
"""
import sys
import threading

import kopf
from loguru import logger
from dotenv import load_dotenv

from healing_operator.errors import ConfigurationError
from healing_operator.utils.config import get_config

# Load environment variables
load_dotenv()

# Initialize configuration
try:
    config = get_config()
except ConfigurationError as e:
    logger.critical(str(e))
    sys.exit(2)

# Configure logging
logger.add("operator.log", rotation="1 day", retention="7 days", level=config.log_level)
logger.info("Starting Healing Operator")

# Handlers read the configuration at import time.
from healing_operator.handlers import register_handlers  # noqa: E402
from healing_operator.handlers.startup import configure_operator, load_credentials, start_healer, stop_healer  # noqa: E402


# Register startup handler
@kopf.on.startup()
async def startup(settings: kopf.OperatorSettings, memo: kopf.Memo, **kwargs):
    """Configure the operator and launch the pod healer."""
    configure_operator(settings, config)
    start_healer(memo, config)


@kopf.on.cleanup()
async def cleanup(memo: kopf.Memo, **kwargs):
    """Stop the pod healer on shutdown."""
    await stop_healer(memo)


# Register all handlers
register_handlers()


if __name__ == "__main__":
    try:
        load_credentials(config)
    except ConfigurationError as e:
        logger.critical(str(e))
        sys.exit(2)

    memo = kopf.Memo(stop_flag=threading.Event(), failures=[])

    # Run the operator
    logger.info("Running Healing Operator")
    try:
        kopf.run(clusterwide=True, standalone=True, memo=memo, stop_flag=memo.stop_flag)
    except kopf.ActivityError as e:
        logger.critical(f"Operator failed to start: {e}")
        sys.exit(1)

    if memo.failures:
        sys.exit(1)
