#!/usr/bin/env python3
"""
icons.py - Centralized icon/emoji definitions for linktriage output

Usage:
    from linktriage.icons import icons
    print(f"{icons.SUCCESS} Report written")

Or import individual icons:
    from linktriage.icons import SUCCESS, WARNING, ERROR

All unicode characters are defined here once. Never edit unicode
characters in other files - import from this module instead.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Icons:
    """
    Centralized icon definitions.

    Categories:
    - Status: SUCCESS, ERROR, WARNING, DEBUG, CRITICAL
    - Run output: ARCHIVE, REPORT
    """

    # =========================================================================
    # Status Icons
    # =========================================================================
    SUCCESS: str = "✅"      # Green checkmark - operation succeeded
    ERROR: str = "❌"        # Red X - operation failed
    WARNING: str = "⚠️"      # Warning triangle
    DEBUG: str = "🔍"       # Magnifier - debug detail
    CRITICAL: str = "💥"    # Collision - unrecoverable

    # =========================================================================
    # Run Output Icons
    # =========================================================================
    ARCHIVE: str = "📦"     # Course export archive
    REPORT: str = "📊"      # Spreadsheet report


# Global singleton instance
icons = Icons()

# Also export individual icons for convenience
SUCCESS = icons.SUCCESS
ERROR = icons.ERROR
WARNING = icons.WARNING
ARCHIVE = icons.ARCHIVE
REPORT = icons.REPORT
