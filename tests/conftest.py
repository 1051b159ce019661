import pytest

from mychoice.hosts_manager import HostsManager
from mychoice.regions import Region, RegionCatalog


def _region(name, code, stable=True):
    return Region(name, (f"gamelift.{code}.amazonaws.com", f"gamelift-ping.{code}.api.aws"), stable)


@pytest.fixture
def catalog():
    return RegionCatalog.from_lists(
        [
            _region("Europe (Ireland)", "eu-west-1"),
            _region("Europe (London)", "eu-west-2", stable=False),
            _region("US East (N. Virginia)", "us-east-1"),
        ],
        [_region("China (Beijing)", "cn-north-1")],
    )


@pytest.fixture
def hosts_file(tmp_path):
    path = tmp_path / "hosts"
    path.write_text("127.0.0.1 localhost\n", encoding="utf-8")
    return path


@pytest.fixture
def manager(hosts_file):
    resolved = {
        "gamelift.eu-west-1.amazonaws.com": "3.3.3.3",
        "gamelift-ping.eu-west-1.api.aws": "4.4.4.4",
    }
    return HostsManager(hosts_file, resolver=resolved.__getitem__, flush_cache=False)
