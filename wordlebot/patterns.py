"""
patterns.py

Maps a (guess, secret) pair to one of the 243 feedback patterns.

Each pattern is an integer 0..242 encoding the 5 tile outcomes in base-3,
with position i contributing value * 3**i:

    0 = absent (gray)
    1 = present (yellow)
    2 = correct (green)

Two implementations are provided: `compute_pattern` works on plain strings,
and `pattern_row` scores one encoded guess against many encoded secrets at
once so that entropy can be computed from a single bincount.
"""

from collections import Counter

import numpy as np


WORD_LENGTH = 5
ALPHABET_SIZE = 26
PATTERN_COUNT = 3**WORD_LENGTH

ABSENT = 0
PRESENT = 1
CORRECT = 2

POWERS_OF_3 = np.array([3**i for i in range(WORD_LENGTH)], dtype=np.int32)
ALL_CORRECT = int(CORRECT * POWERS_OF_3.sum())

_A = ord("a")


def compute_pattern(guess: str, secret: str) -> int:
    """
    Encode feedback for a (guess, secret) pair as a base-3 integer.

    1. First mark greens (correct letter in correct position).
       Each green consumes one instance of that letter from the secret.

    2. Then mark yellows only if unused instances of that letter remain.
       Resolving every green before any yellow is what keeps repeated
       letters from being over-counted.
    """
    result = [ABSENT] * WORD_LENGTH
    counts = Counter(secret)

    # First pass: mark greens and consume letters
    for i in range(WORD_LENGTH):
        if guess[i] == secret[i]:
            result[i] = CORRECT
            counts[guess[i]] -= 1

    # Second pass: mark yellows where letters remain unused
    for i in range(WORD_LENGTH):
        if result[i] == ABSENT and counts[guess[i]] > 0:
            result[i] = PRESENT
            counts[guess[i]] -= 1

    return pattern_from_statuses(result)


def pattern_from_statuses(statuses) -> int:
    """Little-endian base-3 encoding of five tile values."""
    code = 0
    for i, value in enumerate(statuses):
        code += int(value) * 3**i
    return code


def decode_pattern(code: int) -> tuple:
    if not 0 <= code < PATTERN_COUNT:
        raise ValueError(f"pattern out of range: {code}")
    digits = []
    for _ in range(WORD_LENGTH):
        digits.append(code % 3)
        code //= 3
    return tuple(digits)


def encode_word(word: str) -> np.ndarray:
    return np.frombuffer(word.encode("ascii"), dtype=np.uint8) - _A


def encode_words(words) -> np.ndarray:
    """Encode words as an (N, 5) uint8 array of letter codes 0..25."""
    if len(words) == 0:
        return np.zeros((0, WORD_LENGTH), dtype=np.uint8)
    raw = "".join(words).encode("ascii")
    flat = np.frombuffer(raw, dtype=np.uint8) - _A
    return flat.reshape(len(words), WORD_LENGTH).astype(np.uint8)


def letter_count_matrix(encoded: np.ndarray) -> np.ndarray:
    """(N, 26) int16 matrix of letter multiplicities per word."""
    n = encoded.shape[0]
    counts = np.zeros((n, ALPHABET_SIZE), dtype=np.int16)
    rows = np.arange(n)
    for i in range(WORD_LENGTH):
        # each row is touched once per position, so plain fancy-index add is safe
        counts[rows, encoded[:, i]] += 1
    return counts


def pattern_row(guess: np.ndarray, secrets: np.ndarray, secret_counts=None) -> np.ndarray:
    """
    Feedback patterns of one encoded guess against every encoded secret.

    `secret_counts` may be passed in (see `letter_count_matrix`) when the
    same secrets are scored against many guesses; it is not modified.
    """
    m = secrets.shape[0]
    if m == 0:
        return np.zeros(0, dtype=np.uint8)

    if secret_counts is None:
        remaining = letter_count_matrix(secrets)
    else:
        remaining = np.array(secret_counts, dtype=np.int16, copy=True)

    greens = secrets == guess

    # Pass 1: every green consumes its letter before any yellow is assigned
    for i in range(WORD_LENGTH):
        remaining[greens[:, i], guess[i]] -= 1

    # Pass 2: yellows, left to right, while unused copies remain
    codes = np.zeros(m, dtype=np.int32)
    for i in range(WORD_LENGTH):
        letter = guess[i]
        green = greens[:, i]
        yellow = ~green & (remaining[:, letter] > 0)
        remaining[yellow, letter] -= 1
        codes += (CORRECT * green + PRESENT * yellow) * POWERS_OF_3[i]

    return codes.astype(np.uint8)
