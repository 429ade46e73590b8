"""
entropy.py

Shannon entropy of the partition a guess induces on a candidate set, and the
full self-pairing pass used to seed the first-guess cache.

`full_pass_entropies` is the function shipped to the worker process. It only
receives a flat uint8 buffer and a word count, and only returns a float64
array, so nothing is shared with the calling process.
"""

import numpy as np
from tqdm import tqdm

from .patterns import PATTERN_COUNT, WORD_LENGTH, letter_count_matrix, pattern_row


def entropy_from_counts(counts):
    """Compute Shannon entropy (bits) from bucket counts."""
    counts = np.asarray(counts)
    total = counts.sum()
    if total <= 1:
        return 0.0
    nonzero = counts[counts > 0]
    # H = sum (c/n) * log2(n/c)
    return float(np.sum((nonzero / total) * np.log2(total / nonzero)))


def single_guess_entropy(pattern_codes):
    """Entropy of one guess given its feedback pattern against each candidate."""
    counts = np.bincount(pattern_codes, minlength=PATTERN_COUNT)
    return entropy_from_counts(counts)


def guess_entropy(guess, secrets, secret_counts=None):
    """Entropy of an encoded guess against encoded secrets."""
    if secrets.shape[0] <= 1:
        return 0.0
    return single_guess_entropy(pattern_row(guess, secrets, secret_counts))


def full_pass_entropies(encoded_buffer, word_count, show_progress=False):
    """
    Entropy of every word as a guess against every word as the secret.

    This is O(N^2) pattern computations and the single most expensive step
    in the project. It runs once per dictionary, off the calling process.
    """
    encoded = np.frombuffer(encoded_buffer, dtype=np.uint8).reshape(word_count, WORD_LENGTH)
    secret_counts = letter_count_matrix(encoded)
    entropies = np.zeros(word_count, dtype=np.float64)

    rows = range(word_count)
    if show_progress:
        rows = tqdm(rows, desc="First-guess entropy")

    for g in rows:
        entropies[g] = guess_entropy(encoded[g], encoded, secret_counts)

    return entropies
