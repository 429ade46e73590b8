"""
constraints.py

Turns a guess history into exact letter / position constraints and filters
a dictionary down to the words consistent with all of them.

Per guess, feedback is tallied per letter first and only then turned into
bounds. This two-pass order is what makes repeated letters come out right:

    min_count = greens + yellows
    max_count = min_count if the letter also shows a gray tile, else unbounded

Constraints from several guesses are merged by monotonic tightening (union
of positions, max of lower bounds, min of upper bounds), so the final result
does not depend on guess order. Results are memoized per engine instance,
keyed by the guesses and their tile statuses.
"""

import logging
from collections import namedtuple
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from .board import STATUS_ABSENT, STATUS_CORRECT, STATUS_PRESENT, VALID_STATUSES
from .errors import BoardValidationError
from .patterns import ALPHABET_SIZE, WORD_LENGTH
from .words import Dictionary


logger = logging.getLogger(__name__)

STATUS_CHARS = {STATUS_CORRECT: "c", STATUS_PRESENT: "p", STATUS_ABSENT: "a"}
NO_CANDIDATES_WARNING = "No candidates remaining -- board state may be invalid"

_A = ord("a")

CacheInfo = namedtuple("CacheInfo", ["hits", "misses", "size"])


def _code(letter):
    return ord(letter) - _A


@dataclass(frozen=True)
class LetterConstraint:
    """Everything known about one letter. `max_count` of None means unbounded."""

    letter: str
    green_positions: Tuple[int, ...] = ()
    yellow_positions: Tuple[int, ...] = ()
    gray_positions: Tuple[int, ...] = ()
    min_count: int = 0
    max_count: Optional[int] = None

    @property
    def absent(self):
        return self.max_count == 0

    def allows(self, count):
        if count < self.min_count:
            return False
        return self.max_count is None or count <= self.max_count

    def merge(self, other):
        """Tighten with another constraint on the same letter."""
        if other.max_count is None:
            max_count = self.max_count
        elif self.max_count is None:
            max_count = other.max_count
        else:
            max_count = min(self.max_count, other.max_count)
        return LetterConstraint(
            letter=self.letter,
            green_positions=tuple(sorted(set(self.green_positions) | set(other.green_positions))),
            yellow_positions=tuple(sorted(set(self.yellow_positions) | set(other.yellow_positions))),
            gray_positions=tuple(sorted(set(self.gray_positions) | set(other.gray_positions))),
            min_count=max(self.min_count, other.min_count),
            max_count=max_count,
        )


@dataclass(frozen=True)
class PositionConstraint:
    required_letter: Optional[str] = None
    excluded_letters: Tuple[str, ...] = ()


@dataclass(frozen=True)
class GuessDelta:
    """What one guess added on top of the guesses before it."""

    word: str
    greens: Tuple[str, ...] = ()
    yellows: Tuple[str, ...] = ()
    grays: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Constraints:
    # indexed by letter code 0..25, None for letters never guessed
    per_letter: Tuple[Optional[LetterConstraint], ...]
    per_position: Tuple[PositionConstraint, ...]
    per_guess: Tuple[GuessDelta, ...] = ()

    def letter(self, letter):
        return self.per_letter[_code(letter)]

    def seen(self):
        return [c for c in self.per_letter if c is not None]


@dataclass(frozen=True)
class FilterResult:
    candidates: Tuple[int, ...]
    unconstrained: bool
    warning: Optional[str]
    constraints: Constraints = field(repr=False)


def _is_letter(value):
    return isinstance(value, str) and len(value) == 1 and value.isascii() and value.isalpha()


def neutral_constraints():
    return Constraints(
        per_letter=(None,) * ALPHABET_SIZE,
        per_position=tuple(PositionConstraint() for _ in range(WORD_LENGTH)),
    )


def validate_board_state(board_state):
    """Raise BoardValidationError describing the first malformed entry."""
    guesses = getattr(board_state, "guesses", None)
    if guesses is None or isinstance(guesses, (str, bytes)):
        raise BoardValidationError("Invalid board state: missing guesses array")

    for g, guess in enumerate(guesses):
        tiles = getattr(guess, "tiles", None)
        if not hasattr(tiles, "__len__") or len(tiles) != WORD_LENGTH:
            raise BoardValidationError(f"Invalid guess at index {g}: expected {WORD_LENGTH} tiles")
        for t, tile in enumerate(tiles):
            letter = getattr(tile, "letter", None)
            if not _is_letter(letter):
                raise BoardValidationError(f"Invalid tile letter at guess {g}, tile {t}")
            status = getattr(tile, "status", None)
            if status not in VALID_STATUSES:
                raise BoardValidationError(
                    f"Invalid tile status at guess {g}, tile {t}: {status}"
                )


def build_cache_key(board_state):
    """'crane:apcaa|soupy:aaaca' -- guess words plus one status char per tile."""
    parts = []
    for guess in board_state.guesses:
        codes = "".join(STATUS_CHARS[tile.status] for tile in guess.tiles)
        parts.append(f"{guess.word}:{codes}")
    return "|".join(parts)


def derive_guess_constraints(guess):
    """
    Constraints implied by one guess alone, keyed by letter.

    Step 1 tallies all tiles per letter; step 2 derives bounds from the
    complete tally. A gray tile next to a green/yellow of the same letter
    means that occurrence exceeds the true count, giving an exact maximum.
    """
    tally = {}
    for position, tile in enumerate(guess.tiles):
        letter = tile.letter.lower()
        greens, yellows, grays = tally.setdefault(letter, ([], [], []))
        if tile.status == STATUS_CORRECT:
            greens.append(position)
        elif tile.status == STATUS_PRESENT:
            yellows.append(position)
        else:
            grays.append(position)

    derived = {}
    for letter, (greens, yellows, grays) in tally.items():
        min_count = len(greens) + len(yellows)
        derived[letter] = LetterConstraint(
            letter=letter,
            green_positions=tuple(greens),
            yellow_positions=tuple(yellows),
            gray_positions=tuple(grays),
            min_count=min_count,
            max_count=min_count if grays else None,
        )
    return derived


def merge_constraints(per_letter, guess_constraints):
    """Return a new 26-slot tuple with GUESS_CONSTRAINTS merged in."""
    merged = list(per_letter)
    for letter, constraint in guess_constraints.items():
        code = _code(letter)
        current = merged[code]
        merged[code] = constraint if current is None else current.merge(constraint)
    return tuple(merged)


def build_per_position(per_letter):
    required = [None] * WORD_LENGTH
    excluded = [set() for _ in range(WORD_LENGTH)]

    for constraint in per_letter:
        if constraint is None:
            continue
        for p in constraint.green_positions:
            required[p] = constraint.letter

    for constraint in per_letter:
        if constraint is None:
            continue
        letter = constraint.letter
        if constraint.absent:
            blocked = range(WORD_LENGTH)
        else:
            # yellow and gray tiles both mean the secret differs at that spot
            blocked = constraint.yellow_positions + constraint.gray_positions
        for p in blocked:
            # green overrides yellow/gray at the same position
            if required[p] != letter:
                excluded[p].add(letter)

    return tuple(
        PositionConstraint(required[p], tuple(sorted(excluded[p]))) for p in range(WORD_LENGTH)
    )


def build_guess_delta(word, guess_constraints, snapshot):
    greens, yellows, grays = [], [], []
    for letter, gc in guess_constraints.items():
        before = snapshot[_code(letter)]
        for p in gc.green_positions:
            if before is None or p not in before.green_positions:
                greens.append(f"{letter}@{p}")
        for p in gc.yellow_positions:
            if before is None or p not in before.yellow_positions:
                yellows.append(f"{letter}@{p}")
        if gc.max_count == 0 and gc.min_count == 0:
            if before is None or before.max_count != 0:
                grays.append(letter)
    return GuessDelta(word, tuple(greens), tuple(yellows), tuple(grays))


def derive_constraints(board_state):
    """Unified constraints for a validated, non-empty board."""
    per_letter = (None,) * ALPHABET_SIZE
    per_guess = []
    for guess in board_state.guesses:
        guess_constraints = derive_guess_constraints(guess)
        # per_letter is immutable, so the pre-merge state is its own snapshot
        per_guess.append(build_guess_delta(guess.word, guess_constraints, per_letter))
        per_letter = merge_constraints(per_letter, guess_constraints)

    return Constraints(
        per_letter=per_letter,
        per_position=build_per_position(per_letter),
        per_guess=tuple(per_guess),
    )


def accept_mask(dictionary, constraints):
    """Boolean mask over the dictionary of words satisfying CONSTRAINTS."""
    encoded = dictionary.encoded
    counts = dictionary.letter_counts
    mask = np.ones(len(dictionary), dtype=bool)

    for p, pc in enumerate(constraints.per_position):
        if pc.required_letter is not None:
            mask &= encoded[:, p] == _code(pc.required_letter)
        if pc.excluded_letters:
            mask &= ~np.isin(encoded[:, p], [_code(ch) for ch in pc.excluded_letters])

    for constraint in constraints.seen():
        code = _code(constraint.letter)
        column = counts[:, code]
        mask &= column >= constraint.min_count
        if constraint.max_count is not None:
            mask &= column <= constraint.max_count
        # conflicting greens at one position leave nothing
        for p in constraint.green_positions:
            mask &= encoded[:, p] == code

    return mask


class ConstraintEngine:
    """
    Filters a dictionary against a board state, memoizing per board.

    The cache key does not include the dictionary: call `clear_cache()`
    whenever the dictionary changes, or stale entries will hand back
    indices into the old word list.
    """

    def __init__(self):
        self._cache = {}
        self._hits = 0
        self._misses = 0

    def filter_candidates(self, dictionary, board_state):
        dictionary = Dictionary.coerce(dictionary)

        try:
            validate_board_state(board_state)
        except BoardValidationError as exc:
            logger.warning("%s", exc)
            return FilterResult(
                candidates=(),
                unconstrained=False,
                warning=str(exc),
                constraints=neutral_constraints(),
            )

        if len(board_state.guesses) == 0:
            return FilterResult(
                candidates=tuple(range(len(dictionary))),
                unconstrained=True,
                warning=None,
                constraints=neutral_constraints(),
            )

        key = build_cache_key(board_state)
        cached = self._cache.get(key)
        if cached is not None:
            self._hits += 1
            return cached
        self._misses += 1

        constraints = derive_constraints(board_state)
        mask = accept_mask(dictionary, constraints)
        candidates = tuple(int(i) for i in np.flatnonzero(mask))

        warning = None
        if not candidates:
            warning = NO_CANDIDATES_WARNING

        result = FilterResult(
            candidates=candidates,
            unconstrained=False,
            warning=warning,
            constraints=constraints,
        )
        self._cache[key] = result
        logger.debug("Filtered %d -> %d candidates for %s", len(dictionary), len(candidates), key)
        return result

    def clear_cache(self):
        self._cache.clear()
        self._hits = 0
        self._misses = 0
        logger.info("Constraint engine cache cleared")

    def cache_info(self):
        return CacheInfo(self._hits, self._misses, len(self._cache))
