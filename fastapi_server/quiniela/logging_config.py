import logging

from quiniela.config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = LOG_LEVEL) -> logging.Logger:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)

    logger = logging.getLogger("quiniela")
    logger.setLevel(getattr(logging, level, logging.INFO))
    return logger
