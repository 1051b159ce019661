"""
Region catalog preset loader.

The built-in catalog tracks the regions the game uses today. Operators can
drop a `presets/regions.json` next to the app to replace it without a new
release:

    {
        "regions": {"Europe (Ireland)": {"hosts": ["...", "..."], "stable": true}},
        "blocked": {"China (Beijing)": {"hosts": ["..."]}}
    }

A missing or invalid file falls back to the built-in catalog.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Optional

from mychoice.regions import Region, RegionCatalog, default_catalog

logger = logging.getLogger(__name__)

PRESET_PATH = Path(__file__).resolve().parent.parent / "presets" / "regions.json"


def _parse_regions(raw) -> Dict[str, Region]:
    if not isinstance(raw, dict):
        raise ValueError("expected an object of regions")
    out: Dict[str, Region] = {}
    for name, info in raw.items():
        hosts = info.get("hosts") if isinstance(info, dict) else None
        if not isinstance(hosts, list) or not hosts or not all(isinstance(h, str) and h for h in hosts):
            raise ValueError(f"region {name!r} needs a non-empty list of hosts")
        out[name] = Region(name=name, hosts=tuple(hosts), stable=bool(info.get("stable", True)))
    return out


def load_catalog_preset(path: Optional[Path] = None) -> Optional[RegionCatalog]:
    """Load a catalog override, or None if there is none (or it is broken)."""
    preset_path = Path(path) if path else PRESET_PATH
    if not preset_path.exists():
        return None
    try:
        data = json.loads(preset_path.read_text(encoding="utf-8"))
        regions = _parse_regions(data.get("regions"))
        blocked = _parse_regions(data.get("blocked", {}))
    except (OSError, ValueError, AttributeError) as exc:
        logger.warning("Ignoring region preset %s: %s", preset_path, exc)
        return None
    if not regions:
        logger.warning("Ignoring region preset %s: no selectable regions", preset_path)
        return None
    return RegionCatalog(regions, blocked)


def load_catalog(path: Optional[Path] = None) -> RegionCatalog:
    return load_catalog_preset(path) or default_catalog()
