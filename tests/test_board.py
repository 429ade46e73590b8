import pytest

from wordlebot.board import (
    GAME_IN_PROGRESS,
    GAME_LOST,
    GAME_WON,
    BoardState,
    GuessRecord,
    board_from_feedback,
)
from wordlebot.patterns import compute_pattern


def test_from_feedback_letters_and_digits():
    a = GuessRecord.from_feedback("CRANE", "gybbx")
    b = GuessRecord.from_feedback("crane", "21000")
    assert a == b
    assert a.word == "crane"
    assert [t.status for t in a.tiles] == ["correct", "present", "absent", "absent", "absent"]
    assert [t.position for t in a.tiles] == [0, 1, 2, 3, 4]


def test_from_feedback_rejects_bad_input():
    with pytest.raises(ValueError, match="symbol"):
        GuessRecord.from_feedback("crane", "GYBBQ")
    with pytest.raises(ValueError, match="exactly 5"):
        GuessRecord.from_feedback("crane", "GYB")
    with pytest.raises(ValueError):
        GuessRecord.from_feedback("cranes", "GGGGG")


def test_from_pattern():
    record = GuessRecord.from_pattern("speed", compute_pattern("speed", "erupt"))
    assert [t.status for t in record.tiles] == ["absent", "present", "present", "absent", "absent"]


def test_board_status():
    assert BoardState().status == GAME_IN_PROGRESS
    assert BoardState().guesses_left == 6

    won = board_from_feedback([("crane", "BBBBB"), ("slate", "GGGGG")])
    assert won.status == GAME_WON

    lost = board_from_feedback([("crane", "BBBBB")] * 6)
    assert lost.status == GAME_LOST
    assert lost.guesses_left == 0

    # a win on the last row is still a win
    last = board_from_feedback([("crane", "BBBBB")] * 5 + [("slate", "GGGGG")])
    assert last.status == GAME_WON


def test_with_guess():
    board = BoardState().with_guess(GuessRecord.from_feedback("crane", "BBBBB"))
    assert len(board.guesses) == 1
    assert board.guesses_left == 5
