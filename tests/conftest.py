from concurrent.futures import ThreadPoolExecutor

import pytest

from wordlebot.engine import EntropyEngine, RankingConfig
from wordlebot.frequency import build_tables
from wordlebot.scoring import compute_commonness
from wordlebot.words import Dictionary


WORDS = [
    "crane", "slate", "speed", "erupt", "abbey", "kebab", "babes", "eerie",
    "geese", "there", "three", "ether", "cigar", "rebut", "sissy", "humph",
    "awake", "blush", "focal", "evade", "naval", "serve", "heath", "dwarf",
    "model", "karma", "stink", "grade", "quiet", "bench", "abate", "feign",
    "major", "death", "fresh", "crust", "stool", "colon", "abase", "marry",
    "react", "batty", "pride", "floss", "helix", "croak", "staff", "paper",
    "unfed", "whelp",
]


@pytest.fixture(scope="session")
def words():
    return list(WORDS)


@pytest.fixture(scope="session")
def dictionary():
    return Dictionary(WORDS)


@pytest.fixture(scope="session")
def tables(dictionary):
    return build_tables(dictionary)


@pytest.fixture(scope="session")
def commonness(dictionary, tables):
    return compute_commonness(dictionary, tables)


@pytest.fixture
def thread_executor():
    with ThreadPoolExecutor(max_workers=1) as executor:
        yield executor


@pytest.fixture
def engine(dictionary, tables, commonness, thread_executor):
    """An initialized engine; the first-guess pass runs on a thread pool."""
    engine = EntropyEngine(RankingConfig())
    engine.init(dictionary, tables, commonness, executor=thread_executor).result(timeout=60)
    return engine
