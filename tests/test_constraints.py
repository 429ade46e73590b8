import itertools

import pytest

from wordlebot.board import BoardState, GuessRecord, Tile
from wordlebot.constraints import (
    NO_CANDIDATES_WARNING,
    ConstraintEngine,
    LetterConstraint,
    build_cache_key,
    build_per_position,
    derive_guess_constraints,
)
from wordlebot.patterns import compute_pattern


def board_for(secret, guesses):
    """Board with the feedback SECRET would give for each guess."""
    return BoardState(tuple(GuessRecord.from_pattern(g, compute_pattern(g, secret)) for g in guesses))


def raw_board(letters, status="absent"):
    """A one-guess board built without going through the record constructors."""
    tiles = tuple(Tile(ch, status, i) for i, ch in enumerate(letters))
    return BoardState((GuessRecord("".join(letters), tiles),))


def test_empty_board_is_unconstrained(dictionary):
    result = ConstraintEngine().filter_candidates(dictionary, BoardState())
    assert result.unconstrained is True
    assert result.warning is None
    assert list(result.candidates) == list(range(len(dictionary)))
    assert all(pc.required_letter is None for pc in result.constraints.per_position)


@pytest.mark.parametrize(
    "guesses",
    [
        ("crane",),
        ("speed", "erupt"),
        ("eerie", "abbey"),
        ("geese", "there", "kebab"),
        ("sissy", "staff", "floss"),
    ],
)
def test_candidates_match_resimulated_feedback(words, dictionary, guesses):
    engine = ConstraintEngine()
    for secret in words:
        board = board_for(secret, guesses)
        result = engine.filter_candidates(dictionary, board)

        expected = [
            i
            for i, word in enumerate(words)
            if all(compute_pattern(g, word) == compute_pattern(g, secret) for g in guesses)
        ]
        assert list(result.candidates) == expected, (secret, guesses)
        assert words.index(secret) in result.candidates
        assert result.warning is None


def test_second_call_hits_cache(dictionary):
    engine = ConstraintEngine()
    board = board_for("erupt", ["speed"])
    first = engine.filter_candidates(dictionary, board)
    second = engine.filter_candidates(dictionary, board)
    assert second == first
    info = engine.cache_info()
    assert (info.hits, info.misses, info.size) == (1, 1, 1)

    engine.clear_cache()
    assert engine.cache_info() == (0, 0, 0)


def test_cache_key_format():
    board = board_for("grade", ["crane", "speed"])
    assert build_cache_key(board) == "crane:accac|speed:aapap"


def test_merge_is_order_invariant(dictionary):
    guesses = ["crane", "speed", "abbey"]
    engine = ConstraintEngine()
    results = [
        engine.filter_candidates(dictionary, board_for("babes", order))
        for order in itertools.permutations(guesses)
    ]
    first = results[0]
    for result in results[1:]:
        assert result.constraints.per_letter == first.constraints.per_letter
        assert result.constraints.per_position == first.constraints.per_position
        assert result.candidates == first.candidates


def test_speed_against_erupt_bounds_e_exactly(dictionary):
    result = ConstraintEngine().filter_candidates(dictionary, board_for("erupt", ["speed"]))
    e = result.constraints.letter("e")
    assert (e.min_count, e.max_count) == (1, 1)
    assert e.yellow_positions == (2,)
    assert e.gray_positions == (3,)
    assert "e" in result.constraints.per_position[2].excluded_letters
    assert "e" in result.constraints.per_position[3].excluded_letters
    assert result.constraints.letter("s").absent


def test_all_absent_guess(words, dictionary):
    board = BoardState((GuessRecord.from_feedback("crane", "BBBBB"),))
    result = ConstraintEngine().filter_candidates(dictionary, board)
    expected = [i for i, w in enumerate(words) if not set(w) & set("crane")]
    assert list(result.candidates) == expected
    assert words.index("sissy") in result.candidates
    assert words.index("slate") not in result.candidates


def test_repeated_guess_converges_to_true_count(dictionary):
    # ERUPT has exactly one e
    board = BoardState(
        (
            GuessRecord.from_pattern("sheik", compute_pattern("sheik", "erupt")),
            GuessRecord.from_pattern("speed", compute_pattern("speed", "erupt")),
        )
    )
    after_first = ConstraintEngine().filter_candidates(dictionary, BoardState(board.guesses[:1]))
    e1 = after_first.constraints.letter("e")
    assert (e1.min_count, e1.max_count) == (1, None)

    result = ConstraintEngine().filter_candidates(dictionary, board)
    e = result.constraints.letter("e")
    assert e.min_count == e.max_count == "erupt".count("e")


def test_contradictory_board_gives_warning_not_error(dictionary):
    board = BoardState(
        (
            GuessRecord.from_feedback("crane", "GGGGG"),
            GuessRecord.from_feedback("slate", "GGGGG"),
        )
    )
    result = ConstraintEngine().filter_candidates(dictionary, board)
    assert result.candidates == ()
    assert result.warning == NO_CANDIDATES_WARNING
    assert result.unconstrained is False


@pytest.mark.parametrize(
    "board, message",
    [
        (None, "missing guesses array"),
        (raw_board("cran"), "expected 5 tiles"),
        (raw_board("crane", status="gray"), "Invalid tile status at guess 0, tile 0"),
        (raw_board(["c", "r", "a", "ab", "e"]), "Invalid tile letter at guess 0, tile 3"),
    ],
)
def test_malformed_board_gives_warning(dictionary, board, message):
    result = ConstraintEngine().filter_candidates(dictionary, board)
    assert result.candidates == ()
    assert message in result.warning
    assert result.unconstrained is False
    assert result.constraints.seen() == []
    assert all(not pc.excluded_letters for pc in result.constraints.per_position)


def test_two_pass_derivation_for_repeated_letter():
    record = GuessRecord.from_feedback("eerie", "YBBBG")
    derived = derive_guess_constraints(record)
    e = derived["e"]
    assert e.green_positions == (4,)
    assert e.yellow_positions == (0,)
    assert e.gray_positions == (1,)
    assert (e.min_count, e.max_count) == (2, 2)
    assert derived["r"].max_count == 0


def test_green_overrides_yellow_at_same_position():
    per_letter = [None] * 26
    per_letter[ord("a") - 97] = LetterConstraint(
        "a", green_positions=(0,), yellow_positions=(0, 2), min_count=1
    )
    per_position = build_per_position(per_letter)
    assert per_position[0].required_letter == "a"
    assert "a" not in per_position[0].excluded_letters
    assert per_position[2].excluded_letters == ("a",)


def test_absent_letter_excluded_everywhere_but_green():
    per_letter = [None] * 26
    per_letter[ord("z") - 97] = LetterConstraint("z", gray_positions=(1,), max_count=0)
    per_position = build_per_position(per_letter)
    assert all(pc.excluded_letters == ("z",) for pc in per_position)


def test_per_guess_deltas(dictionary):
    board = board_for("grade", ["crane", "crane", "speed"])
    per_guess = ConstraintEngine().filter_candidates(dictionary, board).constraints.per_guess
    assert per_guess[0].word == "crane"
    assert per_guess[0].greens == ("r@1", "a@2", "e@4")
    assert set(per_guess[0].grays) == {"c", "n"}
    # the repeat adds nothing new
    assert per_guess[1].greens == () and per_guess[1].grays == ()
    assert set(per_guess[2].grays) == {"s", "p"}
