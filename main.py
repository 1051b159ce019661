"""
Make Your Choice - pick which Dead by Daylight server regions you play on.

Entry point: boots the PyQt6 UI, wires core modules, and keeps logic minimal.

How it works:
- Gatekeep: unselected GameLift regions are null-routed in the hosts file.
- Universal Redirect: every GameLift hostname points at one chosen region.
- Revert removes only our own section of the hosts file.

Editing the hosts file requires admin/root.
"""

import logging
import sys
import traceback

from PyQt6.QtGui import QAction, QColor, QFont, QIcon, QPainter, QPixmap
from PyQt6.QtWidgets import QApplication, QMenu, QMessageBox, QSystemTrayIcon

from mychoice.aws_ranges import AwsIpRanges
from mychoice.config import APP_NAME, APP_VERSION, AppConfig
from mychoice.hosts_manager import HostsManager
from mychoice.presets import load_catalog
from mychoice.startup import Startup
from mychoice.state_store import SettingsStore
from mychoice.ui import MakeYourChoiceWindow

logger = logging.getLogger("mychoice")


def _tray_icon() -> QIcon:
    pix = QPixmap(64, 64)
    pix.fill(QColor(245, 245, 247))
    p = QPainter(pix)
    p.setRenderHint(QPainter.RenderHint.Antialiasing, True)
    p.setBrush(QColor(200, 40, 40))
    p.setPen(QColor(200, 40, 40))
    p.drawRoundedRect(4, 4, 56, 56, 10, 10)
    p.setPen(QColor(255, 255, 255))
    f = QFont()
    f.setBold(True)
    f.setPointSize(18)
    p.setFont(f)
    p.drawText(pix.rect(), 0x84, "MYC")  # center
    p.end()
    return QIcon(pix)


def main() -> None:
    config = AppConfig.from_env()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    def excepthook(type_, value, tb):
        msg = ''.join(traceback.format_exception(type_, value, tb))
        logger.error("Unhandled exception:\n%s", msg)
        try:
            QMessageBox.critical(None, "Unexpected Error", msg)
        except Exception:
            pass
    sys.excepthook = excepthook

    app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setOrganizationName(APP_NAME)

    settings = SettingsStore(APP_NAME)
    if settings.get_last_launched_version() != APP_VERSION:
        logger.info("First launch of %s %s", APP_NAME, APP_VERSION)
        settings.set_last_launched_version(APP_VERSION)
    hosts = HostsManager(config.hosts_path, help_url=config.help_url)
    catalog = load_catalog()
    ranges = AwsIpRanges(config.feed_url, timeout=config.feed_timeout)

    report = Startup.inspect(hosts, catalog)
    window = MakeYourChoiceWindow(settings, hosts, catalog, ranges, report)

    tray = None
    if QSystemTrayIcon.isSystemTrayAvailable():
        tray = QSystemTrayIcon(_tray_icon())
        tray.setToolTip("Make Your Choice")
        menu = QMenu()
        action_open = QAction("Open Make Your Choice", menu)
        menu.addAction(action_open)
        action_apply = QAction("Apply selection", menu)
        menu.addAction(action_apply)
        action_revert = QAction("Revert to default", menu)
        menu.addAction(action_revert)
        menu.addSeparator()
        action_quit = QAction("Quit", menu)
        menu.addAction(action_quit)

        def _open():
            window.show()
            window.raise_()
            window.activateWindow()

        action_open.triggered.connect(_open)
        action_apply.triggered.connect(window.apply_selection)
        action_revert.triggered.connect(window.revert)
        action_quit.triggered.connect(app.quit)
        tray.setContextMenu(menu)
        tray.show()

    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
