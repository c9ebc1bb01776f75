"""Unit tests for core/extract/meta.py"""

from datetime import date, datetime, timezone

import pytest

from sitepub.core.extract.meta import (
    as_bool, as_term_list, normalize_date, normalize_url, permalink,
    reading_time, section_of, summarize, word_count,
)


# --- normalize_date ---

@pytest.mark.parametrize("value,expected", [
    (None, None),
    ("", None),
    (date(2024, 3, 5), datetime(2024, 3, 5)),
    (datetime(2024, 3, 5, 10, 30), datetime(2024, 3, 5, 10, 30)),
    ("2024-03-05", datetime(2024, 3, 5)),
    ("2024-03-05T10:00:00+02:00", datetime(2024, 3, 5, 8, 0)),
    ("2024-03-05T10:00:00Z", datetime(2024, 3, 5, 10, 0)),
    (datetime(2024, 3, 5, 10, 0, tzinfo=timezone.utc), datetime(2024, 3, 5, 10, 0)),
])
def test_normalize_date(value, expected):
    """Dates, datetimes, and ISO strings become naive UTC datetimes."""
    assert normalize_date(value) == expected


@pytest.mark.parametrize("value", ["yesterday", "2024-13-45", 12345, ["2024-01-01"]])
def test_normalize_date_invalid(value):
    """Anything else raises ValueError."""
    with pytest.raises(ValueError, match="Invalid date"):
        normalize_date(value)


# --- as_term_list / as_bool ---

@pytest.mark.parametrize("value,expected", [
    (None, []),
    ("Linux", ["Linux"]),
    (["kvm", "kvm", " ", "go"], ["kvm", "go"]),
    ((" padded ",), ["padded"]),
    ([2024], ["2024"]),
])
def test_as_term_list(value, expected):
    """Bare strings become lists; blanks and duplicates are dropped in order."""
    assert as_term_list(value, "tags") == expected


def test_as_term_list_invalid():
    """A mapping is not a term list."""
    with pytest.raises(ValueError, match="Invalid tags"):
        as_term_list({"a": 1}, "tags")


@pytest.mark.parametrize("value,expected", [
    (True, True), (False, False), (None, False), ("yes", True), ("false", False), ("1", True),
])
def test_as_bool(value, expected):
    assert as_bool(value, "draft") is expected


def test_as_bool_invalid():
    with pytest.raises(ValueError, match="Invalid draft"):
        as_bool("maybe", "draft")


# --- paths and urls ---

@pytest.mark.parametrize("path,expected", [
    ("post/kvm.md", "post"),
    ("post/deep/kvm.md", "post"),
    ("about.md", ""),
])
def test_section_of(path, expected):
    """Section is the first directory; root pages have none."""
    assert section_of(path) == expected


@pytest.mark.parametrize("url,expected", [
    ("about", "/about/"),
    ("/about", "/about/"),
    ("nested/path/", "/nested/path/"),
    ("/feed.xml", "/feed.xml"),
    ("/", "/"),
])
def test_normalize_url(url, expected):
    assert normalize_url(url) == expected


@pytest.mark.parametrize("section,slug,url,expected", [
    ("post", "kvm", "", "/post/kvm/"),
    ("", "about", "", "/about/"),
    ("post", "kvm", "/custom/path", "/custom/path/"),
])
def test_permalink(section, slug, url, expected):
    """An explicit url wins over the section/slug permalink."""
    assert permalink(section, slug, url) == expected


# --- summary / counts ---

def test_summarize_leading_paragraphs(sample_tokens):
    """Without a marker the summary joins paragraph text; code and headings are skipped."""
    assert summarize(sample_tokens, 70) == (
        "Intro paragraph with bold text. Install the tools. Second setup section. Footer paragraph."
    )


def test_summarize_truncates_with_ellipsis(sample_tokens):
    """Summaries over the word limit are cut at a word boundary."""
    assert summarize(sample_tokens, 4) == "Intro paragraph with bold…"


def test_summarize_exact_length_no_ellipsis(parser):
    """A summary exactly at the limit is not marked truncated."""
    assert summarize(parser.parse("one two three\n"), 3) == "one two three"


def test_summarize_more_marker_block(parser):
    """Text before a standalone <!--more--> is the summary, regardless of length."""
    tokens = parser.parse("First para.\n\nSecond para.\n\n<!--more-->\n\nHidden text.\n")
    assert summarize(tokens, 1) == "First para. Second para."


def test_summarize_more_marker_inline(parser):
    """An inline <!--more--> cuts the paragraph it appears in."""
    tokens = parser.parse("Lead text <!--more--> hidden rest.\n")
    assert summarize(tokens, 70) == "Lead text"


def test_word_count_excludes_code(sample_tokens):
    """Headings and paragraphs count; fenced and indented code do not."""
    assert word_count(sample_tokens) == 16


@pytest.mark.parametrize("words,minutes", [(0, 1), (213, 1), (214, 2), (1000, 5)])
def test_reading_time(words, minutes):
    """213 words per minute, rounded up, at least one minute."""
    assert reading_time(words) == minutes
