"""
scoring.py

Composite "commonness" score of a word, an estimate of how likely it is to
be the hidden answer based on how ordinary its letters are:

    composite = 0.60 * positional + 0.30 * overall + 0.10 * bigram

Each component is a frequency ratio (count / word_count) averaged over the
word's positions, unique letters or adjacent pairs.
"""

from collections import namedtuple
from dataclasses import dataclass

import numpy as np

from .patterns import WORD_LENGTH
from .words import Dictionary


WEIGHT_POSITIONAL = 0.60
WEIGHT_OVERALL = 0.30
WEIGHT_BIGRAM = 0.10

ScoringWeights = namedtuple("ScoringWeights", ["positional", "overall", "bigram"])
DEFAULT_WEIGHTS = ScoringWeights(WEIGHT_POSITIONAL, WEIGHT_OVERALL, WEIGHT_BIGRAM)

WordScore = namedtuple("WordScore", ["composite", "positional", "overall", "bigram"])

_A = ord("a")


def score_word(word, tables, weights=DEFAULT_WEIGHTS):
    wc = tables.word_count
    if wc <= 0:
        return WordScore(0.0, 0.0, 0.0, 0.0)

    positional = sum(
        tables.positional[ord(ch) - _A, i] / wc for i, ch in enumerate(word)
    ) / WORD_LENGTH

    # unique letters only, still averaged over all five slots
    overall = sum(tables.overall[ord(ch) - _A] / wc for ch in set(word)) / WORD_LENGTH

    pairs = WORD_LENGTH - 1
    bigram = sum(tables.bigram.get(word[k : k + 2], 0) / wc for k in range(pairs)) / pairs

    composite = (
        weights.positional * positional + weights.overall * overall + weights.bigram * bigram
    )
    return WordScore(float(composite), float(positional), float(overall), float(bigram))


def score_words(dictionary, tables, weights=DEFAULT_WEIGHTS):
    """All words with their scores, sorted by descending composite."""
    results = [(word, score_word(word, tables, weights)) for word in dictionary]
    results.sort(key=lambda item: item[1].composite, reverse=True)
    return results


@dataclass
class CommonnessScores:
    scores: np.ndarray
    max: float

    def __len__(self):
        return len(self.scores)

    def serialize(self):
        return {"scores": [float(s) for s in self.scores], "max": float(self.max)}

    @classmethod
    def restore(cls, data):
        return cls(scores=np.asarray(data["scores"], dtype=np.float64), max=float(data["max"]))


def compute_commonness(dictionary, tables, weights=DEFAULT_WEIGHTS):
    """Composite score of every word, in dictionary order."""
    dictionary = Dictionary.coerce(dictionary)
    scores = np.array(
        [score_word(word, tables, weights).composite for word in dictionary], dtype=np.float64
    )
    best = float(scores.max()) if scores.size else 0.0
    return CommonnessScores(scores=scores, max=max(best, 0.0))
