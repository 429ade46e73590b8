import logging

import pytest

from wordlebot.words import Dictionary, compute_fingerprint, load_word_list


def test_dictionary_normalizes_and_dedupes():
    d = Dictionary([" Crane", "slate", "", "crane", "SLATE\n"])
    assert d.words == ("crane", "slate")
    assert len(d) == 2
    assert d.index("slate") == 1
    assert "crane" in d


def test_dictionary_drops_bad_words(caplog):
    with caplog.at_level(logging.WARNING, logger="wordlebot.words"):
        d = Dictionary(["crane", "cranes", "cr4ne", "ox", "slate"])
    assert d.words == ("crane", "slate")
    assert "Dropped 3 entries" in caplog.text


def test_stray_line_in_word_file_is_dropped(tmp_path):
    path = tmp_path / "words.txt"
    path.write_text("crane\nwordlist\nslate\n", encoding="utf-8")
    assert Dictionary.from_file(path).words == ("crane", "slate")


def test_index_of_missing_word():
    with pytest.raises(ValueError, match="not found"):
        Dictionary(["crane"]).index("slate")


def test_fingerprint_ignores_order():
    a = Dictionary(["crane", "slate", "erupt"])
    b = Dictionary(["erupt", "crane", "slate"])
    assert a.fingerprint == b.fingerprint == compute_fingerprint(["slate", "erupt", "crane"])
    assert a.fingerprint != Dictionary(["crane", "slate"]).fingerprint
    assert len(a.fingerprint) == 64


def test_encoded_views_are_read_only(dictionary):
    assert dictionary.encoded.shape == (len(dictionary), 5)
    assert dictionary.letter_counts.shape == (len(dictionary), 26)
    with pytest.raises(ValueError):
        dictionary.encoded[0, 0] = 1


def test_load_word_list(tmp_path):
    path = tmp_path / "words.txt"
    path.write_text("crane\n\nslate\n  erupt  \n", encoding="utf-8")
    assert load_word_list(path) == ["crane", "slate", "erupt"]
    assert Dictionary.from_file(path).words == ("crane", "slate", "erupt")
