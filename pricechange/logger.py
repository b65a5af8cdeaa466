"""Structured JSON logging for the price change service."""
import logging
import json
from logging.handlers import RotatingFileHandler

from . import config


def setup_logger():
    """
    Sets up a logger to output structured JSON logs to a rotating file.
    """
    logger = logging.getLogger("price_logger")
    logger.setLevel(config.LOG_LEVEL)
    logger.propagate = False  # Prevent logs from being duplicated by the root logger

    # Use a rotating file handler to prevent the log file from growing indefinitely
    handler = RotatingFileHandler(config.LOG_FILE, maxBytes=10485760, backupCount=5) # 10MB per file

    class JsonFormatter(logging.Formatter):
        def format(self, record):
            log_object = {
                "timestamp": self.formatTime(record, self.datefmt),
                "level": record.levelname,
            }
            # If the message is a dictionary, merge it into the log object
            if isinstance(record.msg, dict):
                log_object.update(record.msg)
            else:
                log_object["message"] = record.getMessage()

            if record.exc_info:
                log_object["exception"] = self.formatException(record.exc_info)

            return json.dumps(log_object, default=str)

    handler.setFormatter(JsonFormatter())

    # Avoid adding handlers multiple times
    if not logger.handlers:
        logger.addHandler(handler)

    return logger

# Initialize and export the logger
price_logger = setup_logger()
