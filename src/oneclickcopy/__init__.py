"""
OneClickCopy -- snippet notes with one-tap copy and Drive backup.

Documents live in a local SQLite table, are saved as you type,
and travel to a single JSON backup on your cloud drive.
"""

import os

__version__ = "0.1.0"
__author__ = "oneclickcopy"

APP_HOME = os.environ.get("ONECLICKCOPY_HOME", "~/.oneclickcopy")
