import logging
import sys

from retailops.config import settings


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger under the `retailops.` namespace that writes to stdout.
    The handler is attached once per logger so repeated imports don't duplicate lines.
    """
    log = logging.getLogger(f"retailops.{name}")
    log.setLevel(settings.LOG_LEVEL.upper())
    if not log.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(logging.Formatter(f"[{name.upper()}] %(levelname)s %(message)s"))
        log.addHandler(h)
    return log
