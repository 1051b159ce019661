import json

from mychoice.regions import ApplyMode, BlockMode
from mychoice.state_store import DEFAULT_SETTINGS, SettingsStore


def test_creates_defaults(tmp_path):
    store = SettingsStore("MakeYourChoice", app_dir=tmp_path / "cfg")
    assert store.state_path.exists()
    assert store.load() == DEFAULT_SETTINGS
    assert store.get_apply_mode() == ApplyMode.GATEKEEP
    assert store.get_block_mode() == BlockMode.BOTH
    assert store.get_merge_unstable() is True
    assert store.get_selected_regions() == []


def test_round_trip_settings(tmp_path):
    store = SettingsStore("MakeYourChoice", app_dir=tmp_path)
    store.set_apply_mode(ApplyMode.UNIVERSAL_REDIRECT)
    store.set_block_mode(BlockMode.ONLY_PING)
    store.set_merge_unstable(False)
    store.set_selected_regions(["Europe (Ireland)", ""])
    store.set_last_launched_version("v2.1.0")

    again = SettingsStore("MakeYourChoice", app_dir=tmp_path)
    assert again.get_apply_mode() == ApplyMode.UNIVERSAL_REDIRECT
    assert again.get_block_mode() == BlockMode.ONLY_PING
    assert again.get_merge_unstable() is False
    assert again.get_selected_regions() == ["Europe (Ireland)"]
    assert again.get_last_launched_version() == "v2.1.0"
    assert json.loads(again.state_path.read_text())["apply_mode"] == "universal_redirect"


def test_corrupt_file_resets(tmp_path):
    store = SettingsStore("MakeYourChoice", app_dir=tmp_path)
    store.state_path.write_text("{not json")
    assert store.load() == DEFAULT_SETTINGS
    assert json.loads(store.state_path.read_text()) == DEFAULT_SETTINGS


def test_unknown_enum_values_fall_back(tmp_path):
    store = SettingsStore("MakeYourChoice", app_dir=tmp_path)
    store.save({"apply_mode": "teleport", "block_mode": 3, "selected_regions": "nope"})
    assert store.get_apply_mode() == ApplyMode.GATEKEEP
    assert store.get_block_mode() == BlockMode.BOTH
    assert store.get_selected_regions() == []
