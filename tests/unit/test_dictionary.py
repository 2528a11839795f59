"""
Unit tests for name dictionaries and the LooksLikeName predicate.
"""

import pytest

from discoverer.dictionary import EMPTY_DICTIONARY, LooksLikeName, NameDictionary


class TestNameDictionary:

    def test_lookup_is_case_and_accent_insensitive(self):
        d = NameDictionary(["García", "Smith"])
        assert d.contains("GARCIA")
        assert d.is_known_surname("smith,")
        assert not d.contains("Jones")
        assert len(d) == 2

    def test_from_file_skips_comments_and_columns(self, tmp_path):
        path = tmp_path / "surnames.txt"
        path.write_text("# surname,frequency\nGarcía,12345\nSmith\t99\n\n  Núñez  \n", encoding="utf-8")
        d = NameDictionary.from_file(path)
        assert len(d) == 3
        assert d.contains("nunez")
        assert not d.contains("surname")

    def test_from_file_latin1(self, tmp_path):
        path = tmp_path / "surnames.txt"
        path.write_bytes("Peña\n".encode("latin-1"))
        assert NameDictionary.from_file(path, encoding="latin-1").contains("Pena")

    def test_empty_dictionary_is_falsy(self):
        assert not EMPTY_DICTIONARY
        assert not EMPTY_DICTIONARY.is_known_surname("Smith")


class TestLooksLikeName:

    def setup_method(self):
        self.is_name = LooksLikeName()

    @pytest.mark.parametrize(
        "text",
        [
            "Jane Doe",
            "Dr. Jane Doe",
            "Doe, Jane",
            "Jan van der Berg",
            "José María Torralba (ICS)",
            "Mary-Ann O'Neill",
        ],
    )
    def test_accepts_names(self, text):
        assert self.is_name(text)

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "Jane",
            "Our Team",
            "Professor of Physics",
            "Emergency Contact",
            "Room 101 Main",
            "jane@example.com",
            "Visit www.example.com",
            "van Berg Jan",
            "A B C D E F G",
            "Doe, Jane, Smith",
        ],
    )
    def test_rejects_non_names(self, text):
        assert not self.is_name(text)

    def test_dictionary_must_agree_when_given(self):
        is_name = LooksLikeName(surnames=NameDictionary(["Doe"]))
        assert is_name("Jane Doe")
        assert not is_name("Acme Widgets")

    def test_first_name_dictionary(self):
        is_name = LooksLikeName(first_names=NameDictionary(["jane"]))
        assert is_name("Jane Roe")
        assert not is_name("Board Members")

    def test_empty_dictionaries_are_ignored(self):
        assert LooksLikeName(EMPTY_DICTIONARY, NameDictionary())("Acme Widgets")
