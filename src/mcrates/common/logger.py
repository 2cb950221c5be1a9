import logging

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def configure_logging(level="INFO", log_file=None):
    """
    Attach a stream handler (and optionally a file handler) to the package logger.

    The library itself never calls this on import; scripts and applications do.

    Args:
        level (str | int): Logging level name or number, e.g. "DEBUG".
        log_file (str, optional): Path of an additional log file.

    Returns:
        logging.Logger: The configured ``mcrates`` logger.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger("mcrates")
    logger.setLevel(level)

    formatter = logging.Formatter(LOG_FORMAT)
    handlers = [logging.StreamHandler()]
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file, mode="w"))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
