from mychoice.conflicts import find_conflicts, remove_lines
from mychoice.hosts_section import SECTION_MARKER as M

MANAGED = {"gamelift.us-east-1.amazonaws.com", "gamelift-ping.us-east-1.api.aws"}


def test_single_external_entry_is_reported():
    text = "127.0.0.1 localhost\n1.2.3.4 gamelift.us-east-1.amazonaws.com\n"
    assert find_conflicts(text, MANAGED) == ["1.2.3.4 gamelift.us-east-1.amazonaws.com"]


def test_lines_inside_section_are_ignored():
    text = f"{M}\n0.0.0.0 gamelift.us-east-1.amazonaws.com\n{M}\n"
    assert find_conflicts(text, MANAGED) == []


def test_partial_section_content_is_owned():
    text = f"{M}\n0.0.0.0 gamelift.us-east-1.amazonaws.com\n"
    assert find_conflicts(text, MANAGED) == []


def test_comments_short_lines_and_other_hosts_skipped():
    text = (
        "# 1.2.3.4 gamelift.us-east-1.amazonaws.com\n"
        "gamelift.us-east-1.amazonaws.com\n"
        "1.2.3.4 example.com gamelift.us-east-1.amazonaws.com\n"
        "\n"
    )
    assert find_conflicts(text, MANAGED) == []


def test_case_insensitive_dedup_first_seen_order():
    text = (
        "  5.5.5.5 GAMELIFT-PING.us-east-1.api.aws  \n"
        "1.2.3.4 gamelift.us-east-1.amazonaws.com\n"
        "5.5.5.5 GAMELIFT-PING.us-east-1.api.aws\n"
    )
    assert find_conflicts(text, MANAGED) == [
        "5.5.5.5 GAMELIFT-PING.us-east-1.api.aws",
        "1.2.3.4 gamelift.us-east-1.amazonaws.com",
    ]


def test_content_after_second_marker_is_scanned():
    text = f"{M}\n{M}\n1.2.3.4 gamelift.us-east-1.amazonaws.com\n"
    assert find_conflicts(text, MANAGED) == ["1.2.3.4 gamelift.us-east-1.amazonaws.com"]


def test_remove_lines_matches_trimmed_text_everywhere():
    text = "a\r\n  1.2.3.4 h  \r\nb\n1.2.3.4 h"
    assert remove_lines(text, ["1.2.3.4 h"]) == "a\r\nb"


def test_removing_unterminated_last_line_keeps_file_unterminated():
    assert remove_lines("a\nX", ["X"]) == "a"
    assert remove_lines("a\nX\n", ["X"]) == "a\n"
    assert remove_lines("X", ["X"]) == ""


def test_remove_lines_with_nothing_to_remove():
    assert remove_lines("a\n", []) == "a\n"
