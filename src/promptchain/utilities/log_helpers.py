import contextlib
import logging

LOG_FMT = "%(asctime)s - %(levelname)-8s - %(name)s - %(funcName)s:%(lineno)d - %(message)s"


def basic_log_config(level=logging.WARNING, **kwargs) -> None:
    """Configure logging defaults for all loggers."""
    logging.basicConfig(level=level, format=LOG_FMT, **kwargs)


@contextlib.contextmanager
def suppress_logs(logger: logging.Logger):
    """Context manager to temporarily disable logs.

    Handy around lenient template rendering where unresolved placeholders are expected.
    """
    try:
        logger.disabled = True
        yield
    finally:
        logger.disabled = False
