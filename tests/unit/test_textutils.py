import pytest

from discoverer.textutils import (
    deobfuscate_emails,
    find_emails,
    fold_word,
    normalize_text,
    remove_standalone_numbers,
    sanitize_mailto,
    split_honorifics,
    split_parenthesised,
)


def test_normalize_text_entities_and_spaces():
    assert normalize_text("  Jos&eacute;\u00a0 P\u200berez \n") == "José Perez"
    assert normalize_text(None) == ""


def test_fold_word_ignores_case_and_accents():
    assert fold_word("José") == "jose"
    assert fold_word("NÚÑEZ") == "nunez"
    assert fold_word("Straße") == "strasse"


def test_split_parenthesised_groups():
    text, groups = split_parenthesised("Jane Doe (Chair) (on leave)")
    assert text == "Jane Doe"
    assert groups == ["Chair", "on leave"]


def test_remove_standalone_numbers_keeps_words():
    assert remove_standalone_numbers("Room 12 Jane 3.5 R2D2") == "Room Jane R2D2"


@pytest.mark.parametrize(
    "tokens,titles,rest",
    [
        (["Dr.", "Jane", "Doe"], ["Dr."], ["Jane", "Doe"]),
        (["Prof", "Dr.", "Jane", "Doe"], ["Prof", "Dr."], ["Jane", "Doe"]),
        (["D.", "Smith"], ["D."], ["Smith"]),
        (["D", "Smith"], [], ["D", "Smith"]),
        (["Dr."], [], ["Dr."]),
    ],
)
def test_split_honorifics(tokens, titles, rest):
    assert split_honorifics(tokens) == (titles, rest)


def test_find_emails_distinct_lowercase_in_order():
    text = "Mail Jane@Example.com or jane@example.com. Also bob.smith@dept.uni.org."
    assert find_emails(text) == ["jane@example.com", "bob.smith@dept.uni.org"]
    assert find_emails("") == []


def test_mailto_with_params_sanitized_lowercase():
    assert sanitize_mailto("mailto:User@Site.COM?subject=Hi") == "user@site.com"
    assert sanitize_mailto("MAILTO:a.b@c.io#top") == "a.b@c.io"


def test_mailto_broken_href_rejected():
    assert sanitize_mailto("mailto:broken") is None
    assert sanitize_mailto("") is None


@pytest.mark.parametrize(
    "text,expected",
    [
        ("jane (at) example (dot) com", ["jane@example.com"]),
        ("jane[arroba]example[punto]es", ["jane@example.es"]),
        ("jane at example dot com", ["jane@example.com"]),
        ("Meet at noon", []),
        ("no address here", []),
    ],
)
def test_deobfuscate_emails(text, expected):
    assert deobfuscate_emails(text) == expected
