import logging
import sys

from .config import Settings

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def configure_logging(settings: Settings) -> None:
    # stdout carries the stdio protocol, so everything goes to stderr
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )
    # discovery cache warnings from googleapiclient are noise at INFO
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)
