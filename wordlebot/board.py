"""
board.py

Guess history as seen on the game board.

A BoardState is rebuilt by the board reader on every change and handed to
the constraint engine; nothing here holds mutable state.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from .patterns import ABSENT, CORRECT, PRESENT, WORD_LENGTH, decode_pattern


TOTAL_ROWS = 6

STATUS_CORRECT = "correct"
STATUS_PRESENT = "present"
STATUS_ABSENT = "absent"
VALID_STATUSES = (STATUS_CORRECT, STATUS_PRESENT, STATUS_ABSENT)

STATUS_VALUES = {STATUS_ABSENT: ABSENT, STATUS_PRESENT: PRESENT, STATUS_CORRECT: CORRECT}
VALUE_STATUSES = {v: k for k, v in STATUS_VALUES.items()}

GAME_IN_PROGRESS = "in_progress"
GAME_WON = "won"
GAME_LOST = "lost"

# Accepted symbols when feedback is typed by hand: 'GYBBY' or '21001'
_FEEDBACK_SYMBOLS = {
    "G": STATUS_CORRECT,
    "2": STATUS_CORRECT,
    "Y": STATUS_PRESENT,
    "1": STATUS_PRESENT,
    "B": STATUS_ABSENT,
    "0": STATUS_ABSENT,
    "X": STATUS_ABSENT,
    ".": STATUS_ABSENT,
    "-": STATUS_ABSENT,
}


@dataclass(frozen=True)
class Tile:
    letter: str
    status: str
    position: int


@dataclass(frozen=True)
class GuessRecord:
    word: str
    tiles: Tuple[Tile, ...]

    @classmethod
    def from_statuses(cls, word, statuses):
        word = word.strip().lower()
        tiles = tuple(Tile(ch, status, i) for i, (ch, status) in enumerate(zip(word, statuses)))
        return cls(word, tiles)

    @classmethod
    def from_feedback(cls, word, feedback):
        """
        Build a record from a typed feedback string.

        Accepts 'GYBBY' style (G = green, Y = yellow, B/X/./- = gray) or
        '21001' style digits.
        """
        text = feedback.strip().upper().replace(" ", "")
        if len(text) != WORD_LENGTH:
            raise ValueError(f"Feedback must have exactly {WORD_LENGTH} symbols: {feedback!r}")
        if len(word.strip()) != WORD_LENGTH:
            raise ValueError(f"Guess must have exactly {WORD_LENGTH} letters: {word!r}")

        statuses = []
        for ch in text:
            try:
                statuses.append(_FEEDBACK_SYMBOLS[ch])
            except KeyError as exc:
                raise ValueError(f"Bad feedback symbol: {ch!r}") from exc
        return cls.from_statuses(word, statuses)

    @classmethod
    def from_pattern(cls, word, code):
        return cls.from_statuses(word, [VALUE_STATUSES[v] for v in decode_pattern(code)])

    @property
    def solved(self):
        return len(self.tiles) == WORD_LENGTH and all(
            t.status == STATUS_CORRECT for t in self.tiles
        )


@dataclass(frozen=True)
class BoardState:
    guesses: Tuple[GuessRecord, ...] = field(default_factory=tuple)
    total_rows: int = TOTAL_ROWS

    @property
    def status(self):
        if self.guesses and self.guesses[-1].solved:
            return GAME_WON
        if len(self.guesses) >= self.total_rows:
            return GAME_LOST
        return GAME_IN_PROGRESS

    @property
    def guesses_left(self):
        return max(0, self.total_rows - len(self.guesses))

    def with_guess(self, record: GuessRecord) -> "BoardState":
        return BoardState(self.guesses + (record,), self.total_rows)


def board_from_feedback(pairs, total_rows: Optional[int] = None):
    """Build a BoardState from (word, feedback) pairs."""
    records = tuple(GuessRecord.from_feedback(word, fb) for word, fb in pairs)
    if total_rows is None:
        total_rows = TOTAL_ROWS
    return BoardState(records, total_rows)
