"""Logging setup for pynetfs."""

import logging


def setup_logger(
    name: str = "pynetfs",
    level: int = logging.INFO,
    log_file: str | None = None,
) -> logging.Logger:
    """
    Attach console (and optional file) handlers to the package logger once.

    Later calls only change the level of the logger and its handlers.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
    else:
        formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")

        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
