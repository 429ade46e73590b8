"""
frequency.py

Letter-frequency statistics over a dictionary:

    positional : (26, 5) counts of each letter at each position
    overall    : (26,) number of words containing each letter at least once
    bigram     : counts of the 4 adjacent letter pairs of every word

Built once per dictionary and read-only afterwards.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict

import numpy as np

from .patterns import ALPHABET_SIZE, WORD_LENGTH
from .words import Dictionary


logger = logging.getLogger(__name__)

_A = ord("a")


def _letter_code(letter):
    if not isinstance(letter, str) or len(letter) != 1:
        return None
    code = ord(letter) - _A
    if code < 0 or code >= ALPHABET_SIZE:
        return None
    return code


@dataclass
class FrequencyTables:
    positional: np.ndarray
    overall: np.ndarray
    bigram: Dict[str, int] = field(default_factory=dict)
    word_count: int = 0

    def positional_freq(self, letter, position):
        code = _letter_code(letter)
        if code is None or not 0 <= position < WORD_LENGTH:
            return 0
        return int(self.positional[code, position])

    def overall_freq(self, letter):
        code = _letter_code(letter)
        if code is None:
            return 0
        return int(self.overall[code])

    def bigram_freq(self, pair):
        if not isinstance(pair, str) or len(pair) != 2:
            return 0
        return self.bigram.get(pair, 0)

    def serialize(self):
        """Plain nested data, safe for JSON."""
        return {
            "positional": self.positional.astype(int).tolist(),
            "overall": self.overall.astype(int).tolist(),
            "bigram": dict(self.bigram),
            "word_count": int(self.word_count),
        }

    @classmethod
    def restore(cls, data):
        positional = np.asarray(data["positional"], dtype=np.int32)
        overall = np.asarray(data["overall"], dtype=np.int32)
        if positional.shape != (ALPHABET_SIZE, WORD_LENGTH) or overall.shape != (ALPHABET_SIZE,):
            raise ValueError("frequency tables have the wrong shape")
        return cls(
            positional=positional,
            overall=overall,
            bigram={str(k): int(v) for k, v in data["bigram"].items()},
            word_count=int(data["word_count"]),
        )


def build_tables(dictionary):
    """Build positional, overall and bigram tables in one pass over the words."""
    dictionary = Dictionary.coerce(dictionary)
    encoded = dictionary.encoded

    positional = np.zeros((ALPHABET_SIZE, WORD_LENGTH), dtype=np.int32)
    for i in range(WORD_LENGTH):
        positional[:, i] = np.bincount(encoded[:, i], minlength=ALPHABET_SIZE)

    # unique-per-word: a letter counts once no matter how often it repeats
    overall = (dictionary.letter_counts > 0).sum(axis=0).astype(np.int32)

    bigram = Counter()
    for word in dictionary:
        for i in range(WORD_LENGTH - 1):
            bigram[word[i : i + 2]] += 1

    logger.debug(
        "Built frequency tables for %d words (%d distinct bigrams)", len(dictionary), len(bigram)
    )
    return FrequencyTables(
        positional=positional,
        overall=overall,
        bigram=dict(bigram),
        word_count=len(dictionary),
    )
