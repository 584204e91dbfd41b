"""Filesystem locations used by FocusRank.

Everything lives under one application-support directory.  Set
``FOCUSRANK_HOME`` to move it (handy for portable installs and CI).
"""

import os
from pathlib import Path

APP_SUPPORT_DIR = Path(
    os.environ.get(
        "FOCUSRANK_HOME",
        Path.home() / "Library" / "Application Support" / "FocusRank",
    )
)
DB_PATH = APP_SUPPORT_DIR / "focusrank.db"
SETTINGS_PATH = APP_SUPPORT_DIR / "settings.json"
SOUNDS_DIR = APP_SUPPORT_DIR / "sounds"
