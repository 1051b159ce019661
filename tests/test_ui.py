import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
QtWidgets = pytest.importorskip("PyQt6.QtWidgets")

from PyQt6.QtCore import QThreadPool  # noqa: E402

from mychoice.state_store import SettingsStore  # noqa: E402
from mychoice.ui import MakeYourChoiceWindow  # noqa: E402


class FakeRanges:
    def __init__(self):
        self.calls = []

    def get_region(self, ip):
        self.calls.append(ip)
        return "Europe (Ireland)"


@pytest.fixture
def qapp():
    return QtWidgets.QApplication.instance() or QtWidgets.QApplication([])


@pytest.fixture
def window(qapp, tmp_path, manager, catalog):
    settings = SettingsStore("make-your-choice", app_dir=tmp_path / "settings")
    win = MakeYourChoiceWindow(settings, manager, catalog, FakeRanges())
    yield win
    QThreadPool.globalInstance().waitForDone()
    win.deleteLater()


def test_return_key_does_nothing_while_lookup_is_running(window):
    window.ip_input.setText("3.120.0.1")
    window.lookup_btn.setEnabled(False)

    window.ip_input.returnPressed.emit()

    assert window._tasks == []
    assert window.ranges.calls == []


def test_lookup_disables_button_until_done(qapp, window):
    window.ip_input.setText("3.120.0.1")
    window._lookup_clicked()
    assert not window.lookup_btn.isEnabled()

    window._lookup_clicked()
    QThreadPool.globalInstance().waitForDone()
    qapp.processEvents()

    assert window.ranges.calls == ["3.120.0.1"]
    assert window.lookup_btn.isEnabled()
    assert "Europe (Ireland)" in window.lookup_result.text()
