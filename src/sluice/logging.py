"""Logging helpers."""
import logging
import sys

default_handler = logging.StreamHandler(sys.stderr)
default_handler.setFormatter(
    logging.Formatter("[%(asctime)s] %(levelname)s in %(module)s: %(message)s")
)


def has_level_handler(logger):
    """Check whether a handler in the logger's hierarchy would emit at
    the logger's effective level."""
    level = logger.getEffectiveLevel()
    current = logger
    while current:
        if any(handler.level <= level for handler in current.handlers):
            return True
        if not current.propagate:
            break
        current = current.parent
    return False


def create_logger(app):
    """Return the logger for *app*, named after its import name.

    The default stream handler is only attached when nothing in the
    logger hierarchy handles the effective level already.
    """
    logger = logging.getLogger(app.import_name or "sluice")
    if app.debug and not logger.level:
        logger.setLevel(logging.DEBUG)
    if not has_level_handler(logger):
        logger.addHandler(default_handler)
    return logger
