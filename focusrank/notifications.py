"""Desktop notifications through the system tray.

Mirrors the browser permission model: the state starts as ``default``,
and :meth:`TrayNotifier.request_permission` settles it to ``granted``
(a tray that can show messages exists) or ``denied``.
"""

from __future__ import annotations

import logging

from PyQt6.QtWidgets import QSystemTrayIcon

logger = logging.getLogger(__name__)

PERMISSION_DEFAULT = "default"
PERMISSION_GRANTED = "granted"
PERMISSION_DENIED = "denied"


class TrayNotifier:
    """Shows notifications as tray balloon messages."""

    def __init__(self, tray_icon: QSystemTrayIcon | None = None) -> None:
        self._tray = tray_icon
        self._permission = PERMISSION_DEFAULT

    @property
    def permission(self) -> str:
        return self._permission

    def is_permitted(self) -> bool:
        return self._permission == PERMISSION_GRANTED

    def request_permission(self) -> str:
        if self._permission != PERMISSION_DEFAULT:
            return self._permission
        available = (
            self._tray is not None
            and QSystemTrayIcon.isSystemTrayAvailable()
            and QSystemTrayIcon.supportsMessages()
        )
        self._permission = PERMISSION_GRANTED if available else PERMISSION_DENIED
        logger.info("Notification permission %s", self._permission)
        return self._permission

    def show(self, title: str, body: str) -> None:
        if not self.is_permitted():
            return
        self._tray.showMessage(title, body)
