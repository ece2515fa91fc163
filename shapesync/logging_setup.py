# ==============================================
# Logging Setup
# ==============================================
#
# PURPOSE:
#   Every module logs through logging.getLogger(__name__).
#   This file wires one stream handler onto the package logger
#   for the CLI; library callers are free to configure logging
#   themselves and never call this.
#
# FUNCTION:
# ---------
# - setup_logging(level: str = "INFO", verbose: bool = False) -> logging.Logger
#     verbose forces DEBUG, which is where statement text is logged.
#
# ==============================================

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-5s [%(name)s] %(message)s"
HANDLER_NAME = "shapesync"


def setup_logging(level: str = "INFO", verbose: bool = False) -> logging.Logger:
    logger = logging.getLogger("shapesync")
    logger.setLevel(logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO))

    # Calling twice must not duplicate output
    if not any(h.get_name() == HANDLER_NAME for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.set_name(HANDLER_NAME)
        logger.addHandler(handler)

    logger.propagate = False
    return logger
