"""
words.py

Handles loading and validating the dictionary used for one session.

A Dictionary is immutable once built. It is identified by a content
fingerprint so that derived caches can be reused across sessions.
"""

import hashlib
import logging
import string
from functools import cached_property
from pathlib import Path

from .patterns import WORD_LENGTH, encode_words, letter_count_matrix


logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent.parent / "data"
_VALID_LETTERS = frozenset(string.ascii_lowercase)


def load_word_list(path):
    """Load a newline-separated word list into a Python list."""
    with open(path, "r", encoding="utf-8") as f:
        return [line.strip() for line in f if line.strip()]


def is_valid_word(word):
    return len(word) == WORD_LENGTH and all(ch in _VALID_LETTERS for ch in word)


def compute_fingerprint(words):
    """SHA-256 hex digest of the sorted words joined by newlines."""
    canonical = "\n".join(sorted(words))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class Dictionary:
    """
    Ordered, validated list of lowercase 5-letter words.

    The numpy views (`encoded`, `letter_counts`) are computed on first use
    and shared by the constraint filter and the entropy engine.
    """

    def __init__(self, words):
        cleaned = []
        seen = set()
        skipped = []
        for raw in words:
            word = raw.strip().lower()
            if not word:
                continue
            if not is_valid_word(word):
                skipped.append(word)
                continue
            if word in seen:
                continue
            seen.add(word)
            cleaned.append(word)
        if skipped:
            logger.warning(
                "Dropped %d entries that are not %d-letter words (first: %r)",
                len(skipped),
                WORD_LENGTH,
                skipped[0],
            )
        self._words = tuple(cleaned)
        self._index = {w: i for i, w in enumerate(self._words)}

    @classmethod
    def from_file(cls, path):
        return cls(load_word_list(path))

    @classmethod
    def coerce(cls, obj):
        """Return OBJ unchanged if it is a Dictionary, else wrap it."""
        if isinstance(obj, cls):
            return obj
        return cls(obj)

    @property
    def words(self):
        return self._words

    def __len__(self):
        return len(self._words)

    def __getitem__(self, index):
        return self._words[index]

    def __iter__(self):
        return iter(self._words)

    def __contains__(self, word):
        return word in self._index

    def index(self, word):
        try:
            return self._index[word]
        except KeyError as exc:
            raise ValueError(f"word not found in dictionary: {word}") from exc

    @cached_property
    def fingerprint(self):
        return compute_fingerprint(self._words)

    @cached_property
    def encoded(self):
        """(N, 5) uint8 array of letter codes 0..25."""
        encoded = encode_words(self._words)
        encoded.setflags(write=False)
        return encoded

    @cached_property
    def letter_counts(self):
        """(N, 26) array: occurrences of each letter in each word."""
        counts = letter_count_matrix(self.encoded)
        counts.setflags(write=False)
        return counts

    def all_indices(self):
        return list(range(len(self._words)))

    def __repr__(self):
        return f"Dictionary({len(self._words)} words, fingerprint={self.fingerprint[:8]})"


def load_dictionary(path=None):
    """Load the session dictionary, defaulting to data/words.txt."""
    if path is None:
        path = DATA_DIR / "words.txt"
    return Dictionary.from_file(path)
