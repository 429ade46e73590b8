"""
engine.py

Ranks guesses by expected information gain.

Two recommendation tracks are produced for every board state:

    best_info_guesses    pure entropy ranking; the guess pool is the whole
                         dictionary until few candidates remain, then only
                         the candidates themselves.
    best_answer_guesses  candidates only, ranked by a blend of normalized
                         entropy and normalized commonness. The commonness
                         weight ("urgency") grows as guesses run out.

Initialization runs the full self-pairing pass (every word against every
word) in a worker process and caches the top first guesses, so that the
opening board never pays the O(N^2) cost twice.
"""

import logging
import multiprocessing as mp
import threading
import time
from concurrent.futures import Future, ProcessPoolExecutor
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Dict, Optional, Tuple

import numpy as np

from .entropy import full_pass_entropies, guess_entropy
from .errors import InitializationError
from .patterns import WORD_LENGTH
from .words import Dictionary


logger = logging.getLogger(__name__)


ADAPTIVE_THRESHOLD = 20  # below this, guessing outside the candidates rarely pays off
TIE_EPSILON = 1e-6  # bits
FIRST_GUESS_CACHE_SIZE = 20
WORKER_START_METHOD = "spawn"

# guesses left -> commonness weight in the answer track
URGENCY = {
    4: 0.0,  # 4 or more: pure entropy
    3: 0.15,
    2: 0.4,
    1: 1.0,  # 1 or fewer: pure commonness, entropy is skipped
}


def _sign(x):
    return int(x > 0) - int(x < 0)


def _commonness_at(commonness, index):
    if commonness is None or commonness.max <= 0:
        return 0.0
    return float(commonness.scores[index])


@dataclass
class RankingConfig:
    adaptive_threshold: int = ADAPTIVE_THRESHOLD
    tie_epsilon: float = TIE_EPSILON
    top_k: int = FIRST_GUESS_CACHE_SIZE
    urgency: Dict[int, float] = field(default_factory=lambda: dict(URGENCY))
    start_method: str = WORKER_START_METHOD
    show_progress: bool = False

    def urgency_for(self, guesses_left):
        """Monotone map from guesses left to urgency; None means least urgent."""
        if guesses_left is None or guesses_left >= 4:
            return self.urgency[4]
        if guesses_left <= 1:
            return self.urgency[1]
        return self.urgency[guesses_left]


@dataclass(frozen=True)
class RankedGuess:
    word_index: int
    word: str
    entropy: float
    commonness: float
    blended_score: float

    def to_dict(self):
        return {
            "word_index": int(self.word_index),
            "word": self.word,
            "entropy": float(self.entropy),
            "commonness": float(self.commonness),
            "blended_score": float(self.blended_score),
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            word_index=int(data["word_index"]),
            word=str(data["word"]),
            entropy=float(data["entropy"]),
            commonness=float(data["commonness"]),
            blended_score=float(data["blended_score"]),
        )


@dataclass(frozen=True)
class Rankings:
    best_info_guesses: Tuple[RankedGuess, ...] = ()
    best_answer_guesses: Tuple[RankedGuess, ...] = ()

    def to_dict(self):
        return {
            "best_info_guesses": [r.to_dict() for r in self.best_info_guesses],
            "best_answer_guesses": [r.to_dict() for r in self.best_answer_guesses],
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            best_info_guesses=tuple(RankedGuess.from_dict(r) for r in data["best_info_guesses"]),
            best_answer_guesses=tuple(
                RankedGuess.from_dict(r) for r in data["best_answer_guesses"]
            ),
        )


class EntropyEngine:
    """
    Owns the encoded dictionary and the first-guess cache for one session.

    Everything except `init` runs synchronously on the caller's thread.
    """

    def __init__(self, config: Optional[RankingConfig] = None):
        self.config = config or RankingConfig()
        self._dictionary = None
        self._encoded = None
        self._letter_counts = None
        self._tables = None
        self._commonness = None
        self._first_guess_cache = None
        self._generation = 0
        # guards the generation counter and the first-guess cache
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def ready(self):
        return self._encoded is not None

    @property
    def dictionary(self):
        return self._dictionary

    def _attach(self, dictionary, tables, commonness):
        dictionary = Dictionary.coerce(dictionary)
        if commonness is not None and len(commonness) != len(dictionary):
            raise ValueError(
                f"commonness has {len(commonness)} scores for {len(dictionary)} words"
            )
        self._dictionary = dictionary
        self._encoded = dictionary.encoded
        self._letter_counts = dictionary.letter_counts
        self._tables = tables
        self._commonness = commonness

    def init(self, dictionary, tables, commonness, executor=None) -> Future:
        """
        Start the one-time first-guess pass and return a Future at once.

        The pass runs in a separate process (a single-worker pool is created
        unless EXECUTOR is given). The future resolves to the first-guess
        Rankings, or fails with InitializationError; there is no retry and
        no fallback to computing on this thread.
        """
        with self._lock:
            self._attach(dictionary, tables, commonness)
            self._generation += 1
            generation = self._generation
            self._first_guess_cache = None
            # the callback works on what was submitted, not on later state
            dictionary = self._dictionary
            commonness = self._commonness
            encoded = self._encoded

        outcome = Future()
        outcome.set_running_or_notify_cancel()
        started = time.perf_counter()
        word_count = len(dictionary)

        # the worker gets the only copy of the flat buffer
        buffer = bytearray(encoded.tobytes())
        owns_executor = executor is None
        try:
            if owns_executor:
                context = mp.get_context(self.config.start_method)
                executor = ProcessPoolExecutor(max_workers=1, mp_context=context)
            job = executor.submit(
                full_pass_entropies, buffer, word_count, self.config.show_progress
            )
        except (OSError, RuntimeError, ValueError) as exc:
            error = InitializationError(f"Entropy worker could not start: {exc}")
            error.__cause__ = exc
            outcome.set_exception(error)
            return outcome
        finally:
            del buffer
            if owns_executor and executor is not None:
                # queued work still completes; the pool exits after it
                executor.shutdown(wait=False)

        logger.debug("Submitted first-guess pass #%d for %d words", generation, word_count)
        job.add_done_callback(
            lambda done: self._finish_init(
                done, generation, dictionary, commonness, outcome, started
            )
        )
        return outcome

    def _finish_init(self, job, generation, dictionary, commonness, outcome, started):
        """Done-callback of the worker job. Resolves OUTCOME exactly once."""
        try:
            rankings = self._complete_init(job, generation, dictionary, commonness)
        except InitializationError as exc:
            logger.warning("%s", exc)
            outcome.set_exception(exc)
            return
        except Exception as exc:
            error = InitializationError(f"First-guess cache could not be built: {exc}")
            error.__cause__ = exc
            logger.error("%s", error)
            outcome.set_exception(error)
            return

        elapsed_ms = (time.perf_counter() - started) * 1000
        info = rankings.best_info_guesses
        if info:
            logger.info(
                "Entropy engine initialized in %.0fms via worker (top info guess: %s at %.2f bits)",
                elapsed_ms,
                info[0].word,
                info[0].entropy,
            )
        else:
            logger.info("Entropy engine initialized in %.0fms (empty dictionary)", elapsed_ms)
        outcome.set_result(rankings)

    def _complete_init(self, job, generation, dictionary, commonness):
        if generation != self._generation:
            raise self._superseded(generation)

        try:
            result = job.result()
        except Exception as exc:  # anything the worker raised becomes a hard failure
            raise InitializationError(f"Entropy worker failed: {exc}") from exc

        entropies = np.asarray(result, dtype=np.float64)
        if entropies.shape != (len(dictionary),):
            raise InitializationError(
                f"Entropy worker returned {entropies.shape} for {len(dictionary)} words"
            )

        rankings = self._build_first_guess_cache(entropies, dictionary, commonness)
        with self._lock:
            if generation != self._generation:
                raise self._superseded(generation)
            self._first_guess_cache = rankings
        return rankings

    @staticmethod
    def _superseded(generation):
        logger.info("Ignoring result of superseded first-guess pass #%d", generation)
        return InitializationError("initialization superseded by a newer call")

    def _build_first_guess_cache(self, entropies, dictionary, commonness):
        # word indices and positions coincide over the full dictionary
        order = self._sort_by_entropy(range(len(entropies)), entropies, commonness)
        top = order[: self.config.top_k]

        info = tuple(
            RankedGuess(
                word_index=int(i),
                word=dictionary[i],
                entropy=float(entropies[i]),
                commonness=_commonness_at(commonness, i),
                blended_score=float(entropies[i]),
            )
            for i in top
        )

        max_entropy = info[0].entropy if info and info[0].entropy > 0 else 1.0
        answer = tuple(
            RankedGuess(r.word_index, r.word, r.entropy, r.commonness, r.entropy / max_entropy)
            for r in info
        )
        return Rankings(best_info_guesses=info, best_answer_guesses=answer)

    def get_first_guess_cache(self):
        cache = self._first_guess_cache
        if cache is None:
            return Rankings()
        return cache

    def serialize_cache(self):
        """Plain nested data for the snapshot store, or None before init."""
        encoded, cache = self._encoded, self._first_guess_cache
        if encoded is None or cache is None:
            return None
        return {
            "first_guess_cache": cache.to_dict(),
            "encoded_words": encoded.astype(int).tolist(),
        }

    def restore_cache(self, data, dictionary, tables, commonness):
        """Adopt a serialized cache instead of running `init`."""
        dictionary = Dictionary.coerce(dictionary)
        encoded = np.asarray(data["encoded_words"], dtype=np.uint8).reshape(-1, WORD_LENGTH)
        if not np.array_equal(encoded, dictionary.encoded):
            raise ValueError("cached word encoding does not match the dictionary")
        cache = Rankings.from_dict(data["first_guess_cache"])

        with self._lock:
            self._attach(dictionary, tables, commonness)
            self._generation += 1
            self._first_guess_cache = cache
        logger.info("Entropy engine restored from cache")

    def clear_cache(self):
        with self._lock:
            self._generation += 1
            self._dictionary = None
            self._encoded = None
            self._letter_counts = None
            self._tables = None
            self._commonness = None
            self._first_guess_cache = None
        logger.info("Entropy engine caches cleared")

    # ------------------------------------------------------------------
    # Ranking
    # ------------------------------------------------------------------

    def _require_ready(self):
        if self._encoded is None:
            raise RuntimeError("EntropyEngine used before init() or restore_cache()")

    def _commonness_of(self, index):
        return _commonness_at(self._commonness, index)

    def _ranked(self, index, entropy, blended=None):
        return RankedGuess(
            word_index=int(index),
            word=self._dictionary[index],
            entropy=entropy,
            commonness=self._commonness_of(index),
            blended_score=entropy if blended is None else blended,
        )

    def _sort_by_entropy(self, word_indices, entropies, commonness=None):
        """
        Positions into WORD_INDICES by descending entropy. Entropies within
        `tie_epsilon` of each other are ordered by descending commonness.
        """
        epsilon = self.config.tie_epsilon
        word_indices = list(word_indices)
        entropies = [float(e) for e in entropies]
        if commonness is None:
            commonness = self._commonness

        def compare(a, b):
            diff = entropies[b] - entropies[a]
            if abs(diff) < epsilon:
                return _sign(
                    _commonness_at(commonness, word_indices[b])
                    - _commonness_at(commonness, word_indices[a])
                )
            return _sign(diff)

        return sorted(range(len(word_indices)), key=cmp_to_key(compare))

    def compute_entropy(self, guess_index, remaining):
        """Entropy (bits) of one guess against a set of candidate indices."""
        self._require_ready()
        remaining = np.asarray(remaining, dtype=np.intp)
        if remaining.size <= 1:
            return 0.0
        return guess_entropy(
            self._encoded[guess_index], self._encoded[remaining], self._letter_counts[remaining]
        )

    def rank_guesses(self, guess_pool, remaining):
        """Every guess in the pool, scored against REMAINING, best first."""
        self._require_ready()
        remaining = np.asarray(remaining, dtype=np.intp)
        if remaining.size == 0:
            return []

        pool = [int(g) for g in guess_pool]
        secrets = self._encoded[remaining]
        counts = self._letter_counts[remaining]
        entropies = [guess_entropy(self._encoded[g], secrets, counts) for g in pool]

        order = self._sort_by_entropy(pool, entropies)
        return [self._ranked(pool[k], entropies[k]) for k in order]

    def rank_guesses_for_state(self, candidates, guesses_left=None):
        self._require_ready()
        candidates = [int(c) for c in candidates]
        if not candidates:
            return Rankings()

        urgency = self.config.urgency_for(guesses_left)
        word_count = len(self._dictionary)

        if urgency == 0.0 and self._first_guess_cache is not None and self._is_full(candidates):
            return self._first_guess_cache

        if len(candidates) <= self.config.adaptive_threshold:
            best_info = self.rank_guesses(candidates, candidates)
            candidate_ranking = best_info
        else:
            best_info = self.rank_guesses(range(word_count), candidates)
            candidate_ranking = None

        if urgency >= 1.0:
            best_answer = self._rank_by_commonness(candidates)
        else:
            if candidate_ranking is None:
                candidate_ranking = self.rank_guesses(candidates, candidates)
            best_answer = self._blend(candidate_ranking, urgency)

        return Rankings(best_info_guesses=tuple(best_info), best_answer_guesses=tuple(best_answer))

    def _is_full(self, candidates):
        return len(candidates) == len(self._dictionary) and candidates == list(
            range(len(self._dictionary))
        )

    def _rank_by_commonness(self, candidates):
        ordered = sorted(candidates, key=lambda i: -self._commonness_of(i))
        max_common = max(self._commonness_of(i) for i in ordered)
        if max_common <= 0:
            max_common = 1.0
        return [self._ranked(i, 0.0, self._commonness_of(i) / max_common) for i in ordered]

    def _blend(self, ranked, urgency):
        max_entropy = max(r.entropy for r in ranked)
        if max_entropy <= 0:
            max_entropy = 1.0
        max_common = max(r.commonness for r in ranked)
        if max_common <= 0:
            max_common = 1.0

        blended = [
            RankedGuess(
                r.word_index,
                r.word,
                r.entropy,
                r.commonness,
                (1 - urgency) * (r.entropy / max_entropy) + urgency * (r.commonness / max_common),
            )
            for r in ranked
        ]
        blended.sort(key=lambda r: r.blended_score, reverse=True)
        return blended
