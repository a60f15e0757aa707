# logger.py
import logging

LOGGER_NAMES = [
    "main",
    "simulation",
    "analysis",
    "export",
    "config",
]

_FMT = "%(levelname)s | %(name)s | %(message)s"


def setup_logging(log_level: int = logging.INFO) -> None:
    """Console logging for the simulator loggers. Safe to call on every rerun."""
    fmt = logging.Formatter(_FMT)

    for name in LOGGER_NAMES:
        log = logging.getLogger(name)
        log.setLevel(log_level)
        log.propagate = False
        for h in list(log.handlers):
            log.removeHandler(h)

        console = logging.StreamHandler()
        console.setFormatter(fmt)
        console.setLevel(log_level)
        log.addHandler(console)

    logging.getLogger("main").debug("Logging system initialized.")
