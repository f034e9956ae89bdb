import pytest

from chatdesk.search.text import (
    NO_PREVIEW,
    create_snippet,
    extract_search_query,
    is_valid_search_query,
)


def test_create_snippet_strips_markup_and_entities():
    html = "<p>Reset&nbsp;your <b>password</b> &amp; sign&#39;s &lt;ok&gt; &quot;now&quot;</p>\n\n"

    assert create_snippet(html) == "Reset your password & sign's <ok> \"now\""


@pytest.mark.parametrize("value", [None, "", 42, "<br/>   <p></p>"])
def test_create_snippet_returns_placeholder_for_empty_input(value):
    assert create_snippet(value) == NO_PREVIEW


def test_create_snippet_breaks_at_word_boundary_near_the_end():
    text = "word " * 50

    snippet = create_snippet(text, 20)

    assert snippet == "word word word word..."


def test_create_snippet_hard_cuts_when_no_late_word_boundary():
    text = "a" * 30 + " tail"

    assert create_snippet(text, 20) == "a" * 20 + "..."


def test_create_snippet_is_idempotent_on_clean_text():
    text = "Resetting your password takes two minutes."

    once = create_snippet(text, 150)

    assert once == text
    assert create_snippet(once, 150) == once


@pytest.mark.parametrize("max_length", [10, 37, 80, 150, 200])
def test_create_snippet_never_exceeds_limit_plus_ellipsis(max_length):
    body = "<div>" + " ".join(f"token{i}" for i in range(200)) + "</div>"

    assert len(create_snippet(body, max_length)) <= max_length + 3


def test_extract_search_query_drops_greeting_and_filler():
    assert extract_search_query("Hi, I need help with password reset") == "password reset"


def test_extract_search_query_removes_role_markers():
    message = "      \U0001F4ACcan you help me with billing      \U0001F642"

    assert extract_search_query(message) == "billing"


@pytest.mark.parametrize(
    ("message", "expected"),
    [
        ("Please reset my password", "reset my password"),
        ("I'm having trouble logging in", "trouble logging in"),
        ("hello could you export my invoices", "export my invoices"),
        ("his account is locked", "his account is locked"),
        (None, ""),
    ],
)
def test_extract_search_query_patterns(message, expected):
    assert extract_search_query(message) == expected


@pytest.mark.parametrize("query", ["help", " HELP ", "Issue", "pw", "", "   ", None])
def test_is_valid_search_query_rejects_short_and_common_words(query):
    assert is_valid_search_query(query) is False


def test_is_valid_search_query_accepts_real_queries():
    assert is_valid_search_query("password reset") is True
    assert is_valid_search_query("pw", min_length=2) is True
