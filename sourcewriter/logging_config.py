"""Root logger setup for the API and CLI entrypoints."""

import logging
import sys
from typing import Union


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Union[str, int, None] = None) -> None:
    """Attach a stdout handler to the root logger once and set its level."""
    if isinstance(level, str):
        name = level.strip().upper()
        desired_level = int(name) if name.isdigit() else logging.getLevelName(name)
        if not isinstance(desired_level, int):
            desired_level = logging.INFO
    elif isinstance(level, int):
        desired_level = level
    else:
        desired_level = logging.INFO

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        logging.captureWarnings(True)
    root.setLevel(desired_level)
