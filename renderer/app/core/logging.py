import logging
import sys


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Bind process logging to stderr.

    Called once from the application lifespan. Library loggers that are
    chatty at INFO (googleapiclient discovery, httpx request lines) are
    raised to WARNING.
    """
    logging.basicConfig(
        level=level.upper(),
        stream=sys.stderr,
        format=LOG_FORMAT,
    )

    for noisy in ("googleapiclient.discovery_cache", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
