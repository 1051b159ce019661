"""
Program settings dialog.

- Apply mode: Gatekeep (block unselected servers) or Universal Redirect
  (send every server's traffic to one chosen region).
- Block scope for Gatekeep: ping endpoints, service endpoints, or both.
- Merge unstable servers with a stable one from the same area.
"""

from __future__ import annotations

from PyQt6.QtWidgets import (
    QButtonGroup,
    QCheckBox,
    QDialog,
    QDialogButtonBox,
    QGroupBox,
    QLabel,
    QRadioButton,
    QVBoxLayout,
)

from mychoice.regions import ApplyMode, BlockMode
from mychoice.state_store import SettingsStore

APPLY_MODE_LABELS = {
    ApplyMode.GATEKEEP: "Gatekeep (block unselected servers)",
    ApplyMode.UNIVERSAL_REDIRECT: "Universal Redirect (one server only)",
}

BLOCK_MODE_LABELS = {
    BlockMode.BOTH: "Block both ping and service",
    BlockMode.ONLY_PING: "Block ping only",
    BlockMode.ONLY_SERVICE: "Block service only",
}


class SettingsDialog(QDialog):
    def __init__(self, settings: SettingsStore, parent=None):
        super().__init__(parent)
        self.settings = settings
        self.setWindowTitle("Program settings")
        self.setModal(True)
        layout = QVBoxLayout(self)

        mode_box = QGroupBox("Method")
        mode_layout = QVBoxLayout(mode_box)
        self.mode_group = QButtonGroup(self)
        self.mode_buttons = {}
        for mode, label in APPLY_MODE_LABELS.items():
            btn = QRadioButton(label, self)
            self.mode_group.addButton(btn)
            self.mode_buttons[mode] = btn
            mode_layout.addWidget(btn)
        layout.addWidget(mode_box)

        block_box = QGroupBox("Gatekeep options")
        block_layout = QVBoxLayout(block_box)
        self.block_group = QButtonGroup(self)
        self.block_buttons = {}
        for mode, label in BLOCK_MODE_LABELS.items():
            btn = QRadioButton(label, self)
            self.block_group.addButton(btn)
            self.block_buttons[mode] = btn
            block_layout.addWidget(btn)
        self.merge_check = QCheckBox("Merge unstable servers with a stable one nearby (recommended)", self)
        block_layout.addWidget(self.merge_check)
        hint = QLabel(
            "When only unstable servers are selected, a stable server from the same\n"
            "area is allowed too so matchmaking keeps working.")
        hint.setWordWrap(True)
        block_layout.addWidget(hint)
        layout.addWidget(block_box)

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel,
            parent=self,
        )
        buttons.accepted.connect(self._save)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

        self.mode_group.buttonToggled.connect(lambda *_: self._sync_enabled())
        self._load()

    def _load(self) -> None:
        self.mode_buttons[self.settings.get_apply_mode()].setChecked(True)
        self.block_buttons[self.settings.get_block_mode()].setChecked(True)
        self.merge_check.setChecked(self.settings.get_merge_unstable())
        self._sync_enabled()

    def _sync_enabled(self) -> None:
        gatekeep = self.mode_buttons[ApplyMode.GATEKEEP].isChecked()
        for btn in self.block_buttons.values():
            btn.setEnabled(gatekeep)
        self.merge_check.setEnabled(gatekeep)

    def selected_apply_mode(self) -> ApplyMode:
        return next(m for m, b in self.mode_buttons.items() if b.isChecked())

    def selected_block_mode(self) -> BlockMode:
        return next(m for m, b in self.block_buttons.items() if b.isChecked())

    def _save(self) -> None:
        self.settings.set_apply_mode(self.selected_apply_mode())
        self.settings.set_block_mode(self.selected_block_mode())
        self.settings.set_merge_unstable(self.merge_check.isChecked())
        self.accept()
