import json

from mychoice.presets import load_catalog, load_catalog_preset
from mychoice.regions import default_catalog


def test_missing_preset_uses_builtin(tmp_path):
    assert load_catalog_preset(tmp_path / "regions.json") is None
    assert load_catalog(tmp_path / "regions.json") == default_catalog()


def test_valid_preset(tmp_path):
    path = tmp_path / "regions.json"
    path.write_text(json.dumps({
        "regions": {"Europe (Ireland)": {"hosts": ["gamelift.eu-west-1.amazonaws.com"], "stable": False}},
        "blocked": {"China (Beijing)": {"hosts": ["gamelift.cn-north-1.amazonaws.com.cn"]}},
    }), encoding="utf-8")
    catalog = load_catalog(path)
    assert list(catalog.regions) == ["Europe (Ireland)"]
    assert catalog.regions["Europe (Ireland)"].stable is False
    assert catalog.blocked["China (Beijing)"].stable is True


def test_invalid_preset_is_ignored(tmp_path):
    path = tmp_path / "regions.json"
    for payload in ("[]", "{broken", json.dumps({"regions": {"X": {"hosts": []}}}), json.dumps({"regions": {}})):
        path.write_text(payload, encoding="utf-8")
        assert load_catalog_preset(path) is None
