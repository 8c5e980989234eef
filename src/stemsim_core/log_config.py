# --- src/stemsim_core/log_config.py ---
import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] [%(name)s] %(message)s"


def setup_logging(level=logging.INFO, force=False):
    """
    Attaches a stdout handler to the root logger.

    A host application that configured logging first keeps its handlers; pass
    `force=True` to replace them anyway.
    """
    root_logger = logging.getLogger()
    if root_logger.handlers and not force:
        logging.getLogger(__name__).debug("Root logger already configured; leaving its handlers in place.")
        return

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)
    logging.getLogger(__name__).debug("Logging configured at level %s.", logging.getLevelName(level))
