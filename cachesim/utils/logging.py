import logging


def get_logger(name: str = "cachesim", level: int = logging.INFO):
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(message)s")
    logger = logging.getLogger(name)
    logger.setLevel(level)
    return logger
