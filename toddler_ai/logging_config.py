import logging
import sys

from pythonjsonlogger import jsonlogger


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Install a JSON stream handler on the root and uvicorn loggers.

    Safe to call more than once: existing handlers are replaced, not stacked.
    Returns the root logger.
    """
    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s"
    )
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [stream_handler]

    for logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        u_logger = logging.getLogger(logger_name)
        u_logger.setLevel(level)
        u_logger.handlers = [stream_handler]
        u_logger.propagate = False

    return root_logger
