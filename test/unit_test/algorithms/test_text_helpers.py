import pytest

from mundo_tango.algorithms.text import (
    caps_ratio,
    count_urls,
    extract_hashtags,
    extract_mentions,
    letter_count,
    levenshtein_distance,
    string_similarity,
)


@pytest.mark.parametrize(
    "a,b,distance",
    [("kitten", "sitting", 3), ("tango", "tango", 0), ("", "vals", 4), ("milonga", "", 7)],
)
def test_levenshtein_distance(a, b, distance):
    assert levenshtein_distance(a, b) == distance
    assert levenshtein_distance(b, a) == distance


def test_string_similarity():
    assert string_similarity("", "") == 1.0
    assert string_similarity("abcd", "wxyz") == 0.0
    assert string_similarity("tango", "tangos") == pytest.approx(5 / 6)


def test_hashtags_lower_cased_and_unique():
    text = "Tonight #Milonga at #LaViruta, then more #milonga!"
    assert extract_hashtags(text) == ["milonga", "laviruta"]
    assert extract_hashtags("") == []


def test_mentions_ignore_emails():
    text = "Thanks @lucia.m. and @carlos_b, write to info@mundotango.life or @lucia.m again"
    assert extract_mentions(text) == ["lucia.m", "carlos_b"]


def test_counts():
    assert count_urls("see https://a.example and www.b.example and c.example") == 2
    assert caps_ratio("ABcd") == 0.5
    assert caps_ratio("1234") == 0.0
    assert letter_count("Vals 3x3!") == 5
