"""
Logging setup for the API and the table scripts.

Records go to stderr.  boto3 and botocore log every request at DEBUG,
so they are held at WARNING unless the application itself runs at
DEBUG.
"""

import logging

AWS_LOGGERS = ("boto3", "botocore", "urllib3")


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger once; later calls are no-ops.

    ``level`` is a logging level name, case insensitive.  Unknown names
    fall back to ``INFO``.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(numeric_level)

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(handler)

    if numeric_level > logging.DEBUG:
        for name in AWS_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
