"""Allow running FocusRank as a module: python -m focusrank."""

import logging
import sys

from PyQt6.QtWidgets import QApplication

from . import paths
from .database.db import init_db
from .app import FocusRankApp


def _configure_logging() -> None:
    paths.APP_SUPPORT_DIR.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(paths.APP_SUPPORT_DIR / "focusrank.log", encoding="utf-8"),
        ],
    )


def main() -> None:
    _configure_logging()
    init_db()
    logging.getLogger(__name__).info("FocusRank ready")

    app = QApplication(sys.argv)
    app.setApplicationName("FocusRank")
    app.setOrganizationName("FocusRank")

    # Dock icon (generated placeholder)
    from PyQt6.QtGui import QIcon, QPixmap, QPainter, QColor
    icon = QPixmap(256, 256)
    icon.fill(QColor(0, 0, 0, 0))
    p = QPainter(icon)
    p.setRenderHint(QPainter.RenderHint.Antialiasing)
    p.setBrush(QColor("#E8684A"))
    p.setPen(QColor("#E8684A").darker(120))
    p.drawEllipse(16, 16, 224, 224)
    p.end()
    app.setWindowIcon(QIcon(icon))

    window = FocusRankApp()
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
