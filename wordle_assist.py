"""
wordle_assist.py

Command-line driver for the solver core.

Loads a word list, restores (or builds and saves) the per-dictionary cache,
applies the guesses played so far and prints both recommendation tracks.

Examples:
    python wordle_assist.py -dict data/words.txt
    python wordle_assist.py -dict data/words.txt -guess crane BYBBG -guess soupy BBBYB

Feedback notation: G = green, Y = yellow, B (or X . -) = gray, or digits 2/1/0.
"""

import argparse
import logging

from wordlebot.board import GAME_IN_PROGRESS, TOTAL_ROWS, BoardState, GuessRecord
from wordlebot.constraints import ConstraintEngine
from wordlebot.engine import EntropyEngine, RankingConfig
from wordlebot.store import CACHE_ENV, JsonFileStore, load_or_build
from wordlebot.words import DATA_DIR, Dictionary


TOP_SUGGESTIONS = 5


def _print_track(title, ranked, top):
    print(f"\n{title}:")
    if not ranked:
        print("  (none)")
        return
    print("Legend: word: entropy bits | commonness | blended")
    for r in ranked[:top]:
        print(f"  {r.word}: {r.entropy:.4f} bits | {r.commonness:.4f} | {r.blended_score:.4f}")


def _print_constraints(result):
    for delta in result.constraints.per_guess:
        parts = []
        if delta.grays:
            parts.append("eliminated " + ", ".join(letter.upper() for letter in delta.grays))
        if delta.greens:
            parts.append("confirmed " + ", ".join(g.upper() for g in delta.greens))
        if delta.yellows:
            parts.append("present " + ", ".join(y.upper() for y in delta.yellows))
        print(f"  {delta.word}: {'; '.join(parts) or 'nothing new'}")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Entropy-based next-guess assistant for the 5-letter word game."
    )
    parser.add_argument(
        "-dict",
        type=str,
        default=str(DATA_DIR / "words.txt"),
        help="Newline-separated word list (default: data/words.txt).",
    )
    parser.add_argument(
        "-guess",
        nargs=2,
        action="append",
        default=[],
        metavar=("WORD", "FEEDBACK"),
        help="A guess already played and its feedback, e.g. -guess crane BYBBG. Repeatable.",
    )
    parser.add_argument(
        "-rows",
        type=int,
        default=TOTAL_ROWS,
        help=f"Rows on the board (default: {TOTAL_ROWS}).",
    )
    parser.add_argument(
        "-top",
        type=int,
        default=TOP_SUGGESTIONS,
        help=f"Suggestions to show per track (default: {TOP_SUGGESTIONS}).",
    )
    parser.add_argument(
        "-cache-dir",
        type=str,
        default=None,
        help=f"Directory for the per-dictionary cache (default: ${CACHE_ENV} "
        "or ~/.cache/wordlebot).",
    )
    parser.add_argument(
        "-force",
        action="store_true",
        help="Ignore any saved cache and rebuild it.",
    )
    parser.add_argument(
        "-progress",
        action="store_true",
        help="Show a progress bar during the first-guess pass.",
    )
    parser.add_argument(
        "-verbose",
        action="store_true",
        help="Debug logging.",
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        dictionary = Dictionary.from_file(args.dict)
        records = tuple(GuessRecord.from_feedback(word, fb) for word, fb in args.guess)
    except (OSError, ValueError) as exc:
        raise SystemExit(str(exc)) from exc

    board = BoardState(records, args.rows)
    engine = EntropyEngine(RankingConfig(show_progress=args.progress))
    load_or_build(dictionary, JsonFileStore(args.cache_dir), engine, force=args.force)

    result = ConstraintEngine().filter_candidates(dictionary, board)

    print(f"Dictionary: {len(dictionary):,} words (fingerprint {dictionary.fingerprint[:8]})")
    print(f"Board: {len(board.guesses)}/{board.total_rows} rows, status {board.status}")
    if board.guesses:
        _print_constraints(result)
    if result.warning:
        print(f"Warning: {result.warning}")
    print(f"Candidates: {len(result.candidates):,}")

    if board.status != GAME_IN_PROGRESS:
        return

    rankings = engine.rank_guesses_for_state(result.candidates, board.guesses_left)
    _print_track("Best information guesses", rankings.best_info_guesses, args.top)
    _print_track("Best answer guesses", rankings.best_answer_guesses, args.top)

    if 0 < len(result.candidates) <= args.top:
        words = ", ".join(dictionary[i] for i in result.candidates)
        print(f"\nRemaining: {words}")


if __name__ == "__main__":
    main()
