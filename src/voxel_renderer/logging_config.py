"""
Logging Configuration
Console logging for the voxrender command.
"""
import logging
import sys

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: int = logging.WARNING) -> logging.Logger:
    """
    Send 'voxel_renderer' log records to stderr at the given level.

    Calling it again replaces the previous handler, so repeated main() calls
    in one process do not duplicate lines.
    """
    logger = logging.getLogger("voxel_renderer")
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S'))
    logger.addHandler(handler)
    return logger
