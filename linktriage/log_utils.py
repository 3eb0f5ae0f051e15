#!/usr/bin/env python3
"""
log_utils.py - Logging setup with icons

Message-only output (no per-line timestamps), each line prefixed with an
icon for its level. Library modules only call logging.getLogger(__name__);
the CLI calls setup_logging() once.
"""

import logging

from linktriage.icons import icons

LOG_FORMAT = "%(message)s"

LEVEL_ICONS = {
    logging.DEBUG: icons.DEBUG,
    logging.INFO: icons.SUCCESS,
    logging.WARNING: icons.WARNING,
    logging.ERROR: icons.ERROR,
    logging.CRITICAL: icons.CRITICAL,
}


class IconLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        icon = LEVEL_ICONS.get(record.levelno, icons.SUCCESS)
        base = super().format(record)
        return f"{icon} {base}"


def setup_logging(verbosity: int = 0) -> None:
    level = logging.INFO
    if verbosity >= 1:
        level = logging.DEBUG

    handler = logging.StreamHandler()
    formatter = IconLogFormatter(LOG_FORMAT)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(handler)
