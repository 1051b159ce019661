"""
Settings persistence for Make Your Choice.

Stores the operator's apply mode, block scope, merge flag and last selection.
Data lives in the user's OS-specific application data directory.
- macOS: ~/Library/Application Support/<APP_NAME>
- Windows: %APPDATA%\\<APP_NAME>
- Linux: ~/.<app_name>
"""

from __future__ import annotations

import json
import logging
import os
import platform
from pathlib import Path
from typing import Dict, List, Optional

from mychoice.regions import ApplyMode, BlockMode

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = {
    "apply_mode": ApplyMode.GATEKEEP.value,
    "block_mode": BlockMode.BOTH.value,
    "merge_unstable": True,
    "selected_regions": [],
    "last_launched_version": None,
}


class SettingsStore:
    """Simple JSON-backed settings store.

    Schema:
    {
        "apply_mode": "gatekeep" | "universal_redirect",
        "block_mode": "both" | "only_ping" | "only_service",
        "merge_unstable": bool,
        "selected_regions": List[str],
        "last_launched_version": Optional[str],
    }
    """

    def __init__(self, app_name: str, app_dir: Optional[Path] = None):
        self.app_name = app_name
        self.app_dir = Path(app_dir) if app_dir else self._resolve_app_data_dir(app_name)
        self.state_path = self.app_dir / "settings.json"
        self.app_dir.mkdir(parents=True, exist_ok=True)
        if not self.state_path.exists():
            self._write_state(dict(DEFAULT_SETTINGS))

    @staticmethod
    def _resolve_app_data_dir(app_name: str) -> Path:
        system = platform.system().lower()
        if system == "darwin":  # macOS
            return Path.home() / "Library" / "Application Support" / app_name
        elif system == "windows":
            base = os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming")
            return Path(base) / app_name
        else:  # linux/other
            return Path.home() / f".{app_name.lower()}"

    def _write_state(self, data: Dict) -> None:
        tmp = self.state_path.with_suffix(".tmp")
        tmp.write_text(json.dumps(data, indent=2))
        tmp.replace(self.state_path)

    def load(self) -> Dict:
        try:
            data = json.loads(self.state_path.read_text())
            if not isinstance(data, dict):
                raise ValueError("settings root is not an object")
        except (OSError, ValueError) as exc:
            logger.warning("Resetting unreadable settings %s: %s", self.state_path, exc)
            reset = dict(DEFAULT_SETTINGS)
            self._write_state(reset)
            return reset
        for key, value in DEFAULT_SETTINGS.items():
            data.setdefault(key, value)
        return data

    def save(self, data: Dict) -> None:
        self._write_state(data)

    def _update(self, **changes) -> None:
        state = self.load()
        state.update(changes)
        self.save(state)

    # Convenience helpers
    def get_apply_mode(self) -> ApplyMode:
        try:
            return ApplyMode(self.load()["apply_mode"])
        except ValueError:
            return ApplyMode.GATEKEEP

    def set_apply_mode(self, mode: ApplyMode) -> None:
        self._update(apply_mode=ApplyMode(mode).value)

    def get_block_mode(self) -> BlockMode:
        try:
            return BlockMode(self.load()["block_mode"])
        except ValueError:
            return BlockMode.BOTH

    def set_block_mode(self, mode: BlockMode) -> None:
        self._update(block_mode=BlockMode(mode).value)

    def get_merge_unstable(self) -> bool:
        return bool(self.load().get("merge_unstable", True))

    def set_merge_unstable(self, enabled: bool) -> None:
        self._update(merge_unstable=bool(enabled))

    def get_selected_regions(self) -> List[str]:
        value = self.load().get("selected_regions")
        if not isinstance(value, list):
            return []
        return [str(v) for v in value]

    def set_selected_regions(self, regions: List[str]) -> None:
        self._update(selected_regions=[r for r in regions if r])

    def get_last_launched_version(self) -> Optional[str]:
        value = self.load().get("last_launched_version")
        return value if isinstance(value, str) else None

    def set_last_launched_version(self, version: str) -> None:
        self._update(last_launched_version=version)
