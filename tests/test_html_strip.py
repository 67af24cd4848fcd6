from infrastructure.html_strip import scan_tag, strip_html
from infrastructure.text_cursor import TextCursor

import pytest


def test_matched_pairs_are_removed():
    assert strip_html('<span style="color: #fff">Pay</span> rent') == "Pay rent"
    assert strip_html("<b><i>x</i></b>") == "x"


def test_unmatched_tags_pass_through():
    assert strip_html("<b>bold") == "<b>bold"
    assert strip_html("x</b>") == "x</b>"


def test_stray_angle_brackets_are_literal():
    assert strip_html("a < b > c") == "a < b > c"
    assert strip_html("I <3 tea") == "I <3 tea"


def test_void_and_self_closing_tags_are_removed():
    assert strip_html("x<br>y") == "xy"
    assert strip_html("x<br/>y") == "xy"
    assert strip_html('a<img src="p.png" />b') == "ab"


def test_scan_tag_reports_kind_and_raw_text():
    tag = scan_tag('say <em class="k">hi', 4)
    assert tag.kind == "open"
    assert tag.name == "em"
    assert tag.raw == '<em class="k">'
    assert scan_tag("</EM>", 0).kind == "close"
    assert scan_tag("< em>", 0) is None


def test_cursor_rewinds_only_one_step():
    cursor = TextCursor("ab")
    assert cursor.next() == "a"
    cursor.rewind()
    assert cursor.next() == "a"
    assert cursor.next() == "b"
    assert cursor.at_end()
    assert cursor.next() is None
    cursor.rewind()
    with pytest.raises(RuntimeError):
        cursor.rewind()
