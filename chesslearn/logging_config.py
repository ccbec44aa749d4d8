"""Root logger setup shared by the CLI and the API server."""

import logging
import sys
from typing import Optional

from chesslearn.config import CONFIG

LOG_FORMAT = "%(asctime)s - %(name)-24s - %(levelname)-8s - %(message)s"


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None):
    """Configure the root logger once for CLI and server entry points."""
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="a"))
    logging.basicConfig(
        level=(level or CONFIG.log_level).upper(),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
