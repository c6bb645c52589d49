import logging

__all__ = ["log", "set_up_logging"]

log = logging.getLogger("range_reader")  # Provided for ease of access in other modules

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] - %(message)s"

# Console handler, added at most once
_console = None


def set_up_logging(quiet: bool = True):
    """
    Initialise the log

    Args:
      quiet : Change this flag to True/False to turn off/on console logging
    """
    global _console
    log.setLevel(logging.DEBUG)
    if not quiet and _console is None:
        _console = logging.StreamHandler()
        _console.setLevel(logging.DEBUG)
        _console.setFormatter(logging.Formatter(LOG_FORMAT))
        log.addHandler(_console)
