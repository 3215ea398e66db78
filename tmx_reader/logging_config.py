"""
Logging configuration for the tmx_reader command line tool.

The library modules never log; only __main__ sets this up.
"""

import logging
import sys
from typing import Optional


def setup_logging(verbose: bool = False, debug: bool = False) -> logging.Logger:
    """
    Configure logging for tmx_reader.

    Args:
        verbose: If True, show INFO level messages
        debug: If True, show DEBUG level messages (implies verbose)

    Returns:
        Configured logger instance
    """
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stderr)
        ],
        force=True
    )

    logger = logging.getLogger('tmx_reader')
    logger.setLevel(level)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Optional module name (defaults to 'tmx_reader')
    """
    if name:
        return logging.getLogger(f'tmx_reader.{name}')
    return logging.getLogger('tmx_reader')
