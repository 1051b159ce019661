import threading
import time
from concurrent.futures import Future

import pytest
import requests

from mychoice import aws_ranges
from mychoice.aws_ranges import AwsIpRanges, CidrTable, parse_ipv4_cidr, pretty_region_name
from mychoice.errors import FeedError

FEED = {
    "syncToken": "1",
    "prefixes": [
        {"ip_prefix": "10.0.0.0/8", "region": "eu-west-1"},
        {"ip_prefix": "10.1.0.0/16", "region": "us-east-1"},
        {"ip_prefix": "3.120.0.0/14", "region": "eu-central-1"},
        {"ip_prefix": "52.0.0.0/8", "region": "xx-test-9"},
    ],
}


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append((url, headers, timeout))
        return self.response


def test_parse_ipv4_cidr():
    assert parse_ipv4_cidr("10.1.2.3/16") == (0x0A010000, 0xFFFF0000, 16)
    assert parse_ipv4_cidr("0.0.0.0/0") == (0, 0, 0)
    assert parse_ipv4_cidr("1.2.3.4/32") == (0x01020304, 0xFFFFFFFF, 32)


@pytest.mark.parametrize(
    "bad",
    ["10.0.0.0", "10.0.0.0/33", "10.0.0.0/8/1", "300.0.0.0/8", "10.0.0.0/x", "/8", "2600:1f00::/24"],
)
def test_parse_ipv4_cidr_rejects(bad):
    assert parse_ipv4_cidr(bad) is None


def test_longest_prefix_wins():
    table = CidrTable.from_feed(FEED)
    assert table.classify("10.1.2.3") == "US East (N. Virginia)"
    assert table.classify("10.2.2.3") == "Europe (Ireland)"
    assert table.classify("3.121.4.5") == "Europe (Frankfurt am Main)"


def test_unknown_code_passes_through_and_misses():
    table = CidrTable.from_feed(FEED)
    assert table.classify("52.1.1.1") == "xx-test-9"
    assert table.classify("192.168.1.1") is None
    assert table.classify("::1") is None
    assert table.classify("not an ip") is None


def test_equal_specificity_keeps_first_entry():
    table = CidrTable.from_feed({"prefixes": [
        {"ip_prefix": "10.0.0.0/8", "region": "eu-west-1"},
        {"ip_prefix": "10.0.0.0/8", "region": "eu-west-2"},
    ]})
    assert table.classify("10.9.9.9") == "Europe (Ireland)"


def test_malformed_records_are_skipped():
    table = CidrTable.from_feed({"prefixes": [
        {"ip_prefix": "", "region": "eu-west-1"},
        {"region": "eu-west-1"},
        {"ip_prefix": "10.0.0.0/40", "region": "eu-west-1"},
        "garbage",
        {"ip_prefix": "10.0.0.0/8"},
    ]})
    assert len(table) == 1
    assert table.lookup("10.0.0.1").region == ""


def test_pretty_region_name():
    assert pretty_region_name("ap-southeast-2") == "Asia Pacific (Sydney)"
    assert pretty_region_name("mars-1") == "mars-1"


def test_refresh_publishes_table_and_passes_timeout():
    session = FakeSession(FakeResponse(FEED))
    ranges = AwsIpRanges("https://feed.invalid/ip-ranges.json", timeout=7.5, session=session)
    assert ranges.classify("10.1.2.3") is None

    assert ranges.get_region("10.1.2.3") == "US East (N. Virginia)"
    assert ranges.classify("10.1.2.3") == "US East (N. Virginia)"
    url, headers, timeout = session.calls[0]
    assert url == "https://feed.invalid/ip-ranges.json"
    assert headers["User-Agent"] == aws_ranges.USER_AGENT
    assert timeout == 7.5


@pytest.mark.parametrize(
    "response",
    [FakeResponse(FEED, status=503), FakeResponse(ValueError("bad json")), FakeResponse(["not", "a", "dict"])],
)
def test_failed_refresh(response):
    ranges = AwsIpRanges(session=FakeSession(response))
    with pytest.raises(FeedError):
        ranges.refresh()
    assert ranges.get_region("10.1.2.3") is None


def test_failed_refresh_keeps_previous_table():
    session = FakeSession(FakeResponse(FEED))
    ranges = AwsIpRanges(session=session)
    ranges.refresh()
    session.response = FakeResponse(FEED, status=500)
    assert ranges.get_region("10.1.2.3") is None
    assert ranges.classify("10.1.2.3") == "US East (N. Virginia)"


def test_concurrent_refreshes_share_one_fetch(monkeypatch):
    waiting = []

    class CountingFuture(Future):
        def result(self, timeout=None):
            waiting.append(threading.current_thread().name)
            return super().result(timeout)

    monkeypatch.setattr(aws_ranges, "Future", CountingFuture)

    started = threading.Event()
    release = threading.Event()

    class BlockingSession(FakeSession):
        def get(self, url, headers=None, timeout=None):
            self.calls.append(url)
            started.set()
            release.wait(5)
            return self.response

    session = BlockingSession(FakeResponse(FEED))
    ranges = AwsIpRanges(session=session)
    results = {}

    def lookup(name, ip):
        results[name] = ranges.get_region(ip)

    owner = threading.Thread(target=lookup, args=("owner", "10.1.2.3"), name="owner")
    owner.start()
    assert started.wait(5)

    joiners = [
        threading.Thread(target=lookup, args=(f"joiner{i}", "10.2.0.1"), name=f"joiner{i}")
        for i in range(2)
    ]
    for t in joiners:
        t.start()
    deadline = time.monotonic() + 5
    while len(waiting) < 2 and time.monotonic() < deadline:
        time.sleep(0.01)
    release.set()
    for t in [owner, *joiners]:
        t.join(5)

    assert len(session.calls) == 1
    assert sorted(waiting) == ["joiner0", "joiner1"]
    assert results == {
        "owner": "US East (N. Virginia)",
        "joiner0": "Europe (Ireland)",
        "joiner1": "Europe (Ireland)",
    }


def test_next_refresh_after_completion_fetches_again():
    session = FakeSession(FakeResponse(FEED))
    ranges = AwsIpRanges(session=session)
    ranges.refresh()
    ranges.refresh()
    assert len(session.calls) == 2
