"""
PyQt6 UI for Make Your Choice.

Provides:
- Region list: tick the servers you want to play on.
- Buttons: Apply selection, Revert (remove our entries), Settings.
- Conflict prompt when the hosts file already maps one of our hostnames.
- IP lookup: which AWS region does an address belong to.

The window only collects choices and reports outcomes; HostsManager does the
file work.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from PyQt6.QtCore import QObject, QRunnable, Qt, QThreadPool, pyqtSignal
from PyQt6.QtWidgets import (
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from mychoice.aws_ranges import AwsIpRanges
from mychoice.errors import MyChoiceError
from mychoice.hosts_manager import HostsManager
from mychoice.hosts_section import SectionState
from mychoice.regions import ApplyMode, RegionCatalog
from mychoice.settings_dialog import SettingsDialog
from mychoice.startup import StartupReport
from mychoice.state_store import SettingsStore

logger = logging.getLogger(__name__)

UNSTABLE_MARK = " ⚠︎"
UNSTABLE_TIP = "Unstable: issues may occur."
NAME_ROLE = Qt.ItemDataRole.UserRole


class _LookupSignals(QObject):
    done = pyqtSignal(str, object)


class _LookupTask(QRunnable):
    """Runs a region lookup off the UI thread; the feed fetch can be slow."""

    def __init__(self, ranges: AwsIpRanges, ip: str):
        super().__init__()
        self.ranges = ranges
        self.ip = ip
        self.signals = _LookupSignals()

    def run(self) -> None:
        self.signals.done.emit(self.ip, self.ranges.get_region(self.ip))


class MakeYourChoiceWindow(QWidget):
    def __init__(
        self,
        settings: SettingsStore,
        hosts: HostsManager,
        catalog: RegionCatalog,
        ranges: AwsIpRanges,
        report: Optional[StartupReport] = None,
    ):
        super().__init__()
        self.settings = settings
        self.hosts = hosts
        self.catalog = catalog
        self.ranges = ranges
        self.report = report
        self._tasks: List[_LookupTask] = []

        self.setWindowTitle("Make Your Choice (DbD Server Selector)")
        self.resize(560, 640)

        self.status_label = QLabel("", self)
        self.status_label.setWordWrap(True)
        self.status_label.setStyleSheet("font-size:14px; font-weight:600; color:#1a1a1a;")

        self.region_list = QListWidget(self)
        self.region_list.setSelectionMode(QListWidget.SelectionMode.NoSelection)

        self.apply_btn = QPushButton("Apply selection", self)
        self.revert_btn = QPushButton("Revert to default", self)
        self.settings_btn = QPushButton("Settings…", self)
        self.reset_btn = QPushButton("Reset hosts file…", self)

        self.ip_input = QLineEdit(self)
        self.ip_input.setPlaceholderText("Server IP, e.g. 3.120.0.1")
        self.lookup_btn = QPushButton("Look up", self)
        self.lookup_result = QLabel("", self)

        layout = QVBoxLayout(self)
        status_box = QGroupBox("Status")
        status_layout = QVBoxLayout(status_box)
        status_layout.addWidget(self.status_label)
        layout.addWidget(status_box)

        regions_box = QGroupBox("Servers to allow")
        regions_layout = QVBoxLayout(regions_box)
        regions_layout.addWidget(self.region_list)
        layout.addWidget(regions_box)

        btn_row1 = QHBoxLayout()
        btn_row1.addWidget(self.apply_btn)
        btn_row1.addWidget(self.revert_btn)
        btn_row2 = QHBoxLayout()
        btn_row2.addWidget(self.settings_btn)
        btn_row2.addWidget(self.reset_btn)
        actions_box = QGroupBox("Actions")
        actions_layout = QVBoxLayout(actions_box)
        actions_layout.addLayout(btn_row1)
        actions_layout.addLayout(btn_row2)
        layout.addWidget(actions_box)

        lookup_box = QGroupBox("Which region is this IP?")
        lookup_layout = QVBoxLayout(lookup_box)
        lookup_row = QHBoxLayout()
        lookup_row.addWidget(self.ip_input)
        lookup_row.addWidget(self.lookup_btn)
        lookup_layout.addLayout(lookup_row)
        lookup_layout.addWidget(self.lookup_result)
        layout.addWidget(lookup_box)

        self.apply_btn.setToolTip("Write your selection to the hosts file")
        self.revert_btn.setToolTip("Remove our entries; your own hosts lines stay untouched")
        self.reset_btn.setToolTip("Replace the whole hosts file with the system default")

        self.apply_btn.clicked.connect(self._apply_clicked)
        self.revert_btn.clicked.connect(self._revert_clicked)
        self.settings_btn.clicked.connect(self._open_settings)
        self.reset_btn.clicked.connect(self._reset_hosts)
        self.lookup_btn.clicked.connect(self._lookup_clicked)
        self.ip_input.returnPressed.connect(self._lookup_clicked)

        self._populate()
        self._update_status()

    # Region list
    def _populate(self) -> None:
        self.region_list.clear()
        selected = set(self.settings.get_selected_regions())
        for group, regions in self.catalog.grouped().items():
            header = QListWidgetItem(group)
            header.setFlags(Qt.ItemFlag.NoItemFlags)
            font = header.font()
            font.setBold(True)
            header.setFont(font)
            self.region_list.addItem(header)
            for region in regions:
                item = QListWidgetItem(region.name)
                item.setData(NAME_ROLE, region.name)
                item.setFlags(item.flags() | Qt.ItemFlag.ItemIsUserCheckable)
                checked = region.name in selected
                item.setCheckState(Qt.CheckState.Checked if checked else Qt.CheckState.Unchecked)
                self.region_list.addItem(item)
        self._refresh_warning_marks()

    def _region_items(self):
        for i in range(self.region_list.count()):
            item = self.region_list.item(i)
            if item is not None and item.data(NAME_ROLE):
                yield item

    def _refresh_warning_marks(self) -> None:
        merge = self.settings.get_merge_unstable()
        for item in self._region_items():
            name = item.data(NAME_ROLE)
            region = self.catalog.get(name)
            flagged = region is not None and not region.stable and not merge
            item.setText(name + UNSTABLE_MARK if flagged else name)
            item.setToolTip(UNSTABLE_TIP if flagged else "")

    def _selected_regions(self) -> List[str]:
        return [
            item.data(NAME_ROLE)
            for item in self._region_items()
            if item.checkState() == Qt.CheckState.Checked
        ]

    def _update_status(self) -> None:
        blocked_hosts = self.hosts.blocked_hostnames()
        blocked = [
            r.name for r in self.catalog.regions.values()
            if any(h.lower() in blocked_hosts for h in r.hosts)
        ]
        mode = self.settings.get_apply_mode()
        if blocked:
            text = f"{len(blocked)} of {len(self.catalog.regions)} servers are blocked."
        else:
            text = "No servers are blocked."
        text += f"\nMode: {'Universal Redirect' if mode == ApplyMode.UNIVERSAL_REDIRECT else 'Gatekeep'}"
        if self.report is not None and not self.report.writable:
            text += "\nRun this app as administrator/root to change the hosts file."
        if self.hosts.section_state() == SectionState.PARTIAL:
            text += "\nThe hosts file has an unfinished Make Your Choice section; applying will repair it."
        self.status_label.setText(text)

    # Actions
    def _apply_clicked(self) -> None:
        selected = self._selected_regions()
        self.settings.set_selected_regions(selected)
        conflicts = self.hosts.detect_conflicts(self.catalog)
        if conflicts and not self._resolve_conflicts(conflicts):
            return
        self._apply(selected)

    def _resolve_conflicts(self, conflicts: List[str]) -> bool:
        """Ask what to do about conflicting lines. False means cancel."""
        box = QMessageBox(self)
        box.setIcon(QMessageBox.Icon.Warning)
        box.setWindowTitle("Conflicting entries")
        box.setText(
            "It seems like there are conflicting entries in your hosts file.\n\n"
            "Would you like to clear out all conflicting entries?"
        )
        box.setDetailedText("\n".join(conflicts))
        clear_btn = box.addButton("Clear conflicts and apply (recommended)", QMessageBox.ButtonRole.AcceptRole)
        keep_btn = box.addButton("Apply without clearing", QMessageBox.ButtonRole.DestructiveRole)
        box.addButton(QMessageBox.StandardButton.Cancel)
        box.exec()
        clicked = box.clickedButton()

        if clicked is clear_btn:
            try:
                self.hosts.clear_conflicts(conflicts)
            except PermissionError:
                self._permission_warning("clear conflicting entries")
                return False
            except OSError as e:
                QMessageBox.critical(self, "Error", f"Failed to clear conflicting entries:\n{e}")
                return False
            return True
        if clicked is keep_btn:
            reply = QMessageBox.warning(
                self,
                "Are you sure?",
                "Not clearing out conflicting entries will cause unexpected behavior.\n\nContinue anyway?",
                QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            )
            return reply == QMessageBox.StandardButton.Yes
        return False

    def _apply(self, selected: List[str]) -> None:
        mode = self.settings.get_apply_mode()
        try:
            self.hosts.apply(
                self.catalog,
                selected,
                mode,
                self.settings.get_block_mode(),
                self.settings.get_merge_unstable(),
            )
            label = "Universal Redirect" if mode == ApplyMode.UNIVERSAL_REDIRECT else "Gatekeep"
            QMessageBox.information(
                self,
                "Success",
                f"The hosts file was updated successfully ({label} mode).\n\n"
                "Please restart the game for changes to take effect.",
            )
        except PermissionError:
            self._permission_warning("apply your selection")
        except MyChoiceError as e:
            QMessageBox.warning(self, "Cannot apply", str(e))
        except Exception as e:
            logger.exception("Apply failed")
            QMessageBox.critical(self, "Error", f"Failed to modify hosts file: {e}")
        finally:
            self._update_status()

    def _revert_clicked(self) -> None:
        try:
            self.hosts.revert()
            QMessageBox.information(
                self,
                "Reverted",
                "Cleared Make Your Choice entries. Your existing hosts lines were left untouched.",
            )
        except PermissionError:
            self._permission_warning("revert the hosts file")
        except Exception as e:
            logger.exception("Revert failed")
            QMessageBox.critical(self, "Error", f"Failed to modify hosts file: {e}")
        finally:
            self._update_status()

    def _reset_hosts(self) -> None:
        reply = QMessageBox.question(
            self,
            "Restore default hosts file",
            "If the program doesn't seem to work correctly, try resetting your hosts file.\n\n"
            "This will overwrite your entire hosts file with the system default.\n\n"
            "A backup will be saved as hosts.bak. Continue?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
        )
        if reply != QMessageBox.StandardButton.Yes:
            return
        try:
            self.hosts.restore_default()
            QMessageBox.information(self, "Success", "Hosts file restored to the default template.")
        except PermissionError:
            self._permission_warning("reset the hosts file")
        except Exception as e:
            logger.exception("Restore default failed")
            QMessageBox.critical(self, "Error", str(e))
        finally:
            self._update_status()

    def _open_settings(self) -> None:
        dialog = SettingsDialog(self.settings, self)
        if dialog.exec():
            self._refresh_warning_marks()
            self._update_status()

    def _lookup_clicked(self) -> None:
        if not self.lookup_btn.isEnabled():
            return
        ip = self.ip_input.text().strip()
        if not ip:
            return
        self.lookup_btn.setEnabled(False)
        self.lookup_result.setText("Looking up…")
        task = _LookupTask(self.ranges, ip)
        task.signals.done.connect(self._lookup_done)
        self._tasks.append(task)
        QThreadPool.globalInstance().start(task)

    def _lookup_done(self, ip: str, region: Optional[str]) -> None:
        self._tasks = [t for t in self._tasks if t.ip != ip]
        self.lookup_btn.setEnabled(True)
        self.lookup_result.setText(f"{ip}: {region}" if region else f"{ip}: no AWS region found")

    def _permission_warning(self, purpose: str) -> None:
        QMessageBox.warning(self, "Permission needed", (
            "Editing the hosts file needs administrator/root access.\n"
            f"Run this app with elevated permissions to {purpose}."
        ))

    # Public helpers for tray actions
    def apply_selection(self) -> None:
        self._apply_clicked()

    def revert(self) -> None:
        self._revert_clicked()
