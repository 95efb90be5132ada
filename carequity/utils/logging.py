"""Logger factory shared by calculation and data layers."""

from __future__ import annotations

import logging

ROOT_LOGGER_NAME = 'carequity'


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the package namespace.

    No handlers are attached here; the host application decides where records go.
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(f'{ROOT_LOGGER_NAME}.'):
        name = f'{ROOT_LOGGER_NAME}.{name}'
    logger = logging.getLogger(name)
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        root.addHandler(logging.NullHandler())
    return logger
