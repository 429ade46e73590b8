"""
store.py

Persists the per-dictionary computational cache so a session with an
unchanged dictionary can skip the O(N^2) first-guess pass.

Snapshot shape (plain JSON-compatible data):

    {
        "fingerprint":   dictionary content fingerprint,
        "freq_tables":   FrequencyTables.serialize(),
        "commonness":    CommonnessScores.serialize(),
        "entropy_cache": EntropyEngine.serialize_cache(),
    }

The store itself is a simple key -> blob mapping; `JsonFileStore` keeps one
JSON file per key in a directory.
"""

import json
import logging
import os
from pathlib import Path

from .frequency import FrequencyTables, build_tables
from .scoring import CommonnessScores, compute_commonness
from .words import Dictionary


logger = logging.getLogger(__name__)

CACHE_ENV = "WORDLEBOT_CACHE_DIR"


def default_cache_dir():
    """$WORDLEBOT_CACHE_DIR if set, else ~/.cache/wordlebot."""
    env = os.getenv(CACHE_ENV, "").strip()
    if env:
        return Path(env).expanduser()
    return Path.home() / ".cache" / "wordlebot"


SNAPSHOT_KEY = "wordlebot_cache"


class JsonFileStore:
    def __init__(self, directory=None):
        self.directory = Path(directory) if directory is not None else default_cache_dir()

    def _path(self, key):
        return self.directory / f"{key}.json"

    def get(self, key):
        path = self._path(key)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def set(self, key, value):
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_name(path.name + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(value, f)
        os.replace(tmp, path)

    def remove(self, key):
        path = self._path(key)
        if path.exists():
            path.unlink()


def build_snapshot(fingerprint, tables, commonness, engine):
    return {
        "fingerprint": fingerprint,
        "freq_tables": tables.serialize(),
        "commonness": commonness.serialize(),
        "entropy_cache": engine.serialize_cache(),
    }


def restore_snapshot(snapshot, dictionary, engine):
    """Restore tables, commonness and the engine cache; returns (tables, commonness)."""
    tables = FrequencyTables.restore(snapshot["freq_tables"])
    commonness = CommonnessScores.restore(snapshot["commonness"])
    engine.restore_cache(snapshot["entropy_cache"], dictionary, tables, commonness)
    return tables, commonness


def _read_snapshot(store):
    """The stored snapshot, or None when it is missing or cannot be parsed."""
    try:
        snapshot = store.get(SNAPSHOT_KEY)
    except (OSError, ValueError) as exc:
        logger.warning("Cached snapshot unreadable (%s). Rebuilding.", exc)
        return None
    if snapshot is not None and not isinstance(snapshot, dict):
        logger.warning("Cached snapshot is not a mapping. Rebuilding.")
        return None
    return snapshot


def load_or_build(dictionary, store, engine, force=False, timeout=None, executor=None):
    """
    Restore the computational cache for DICTIONARY, or rebuild and save it.

    Rebuilding blocks on the engine's initialization future; a caller that
    must stay responsive should call the pieces directly instead.

    Returns (tables, commonness, rebuilt).
    """
    dictionary = Dictionary.coerce(dictionary)
    fingerprint = dictionary.fingerprint
    short = fingerprint[:8]

    if force:
        logger.info("Force rebuild requested")
    else:
        snapshot = _read_snapshot(store)
        # Guard 1: cache must belong to this exact word list.
        if snapshot and snapshot.get("fingerprint") == fingerprint and snapshot.get("entropy_cache"):
            try:
                tables, commonness = restore_snapshot(snapshot, dictionary, engine)
            except (KeyError, TypeError, ValueError) as exc:
                # Guard 2: a damaged or mismatched snapshot is rebuilt, not trusted.
                logger.warning("Cached snapshot unusable (%s). Rebuilding.", exc)
            else:
                logger.info("Computational cache reused (fingerprint: %s)", short)
                return tables, commonness, False
        elif snapshot and snapshot.get("fingerprint"):
            logger.info(
                "Dictionary fingerprint changed: %s -> %s. Rebuilding.",
                snapshot["fingerprint"][:8],
                short,
            )
        else:
            logger.info("No computational cache found, building fresh")

    tables = build_tables(dictionary)
    commonness = compute_commonness(dictionary, tables)
    engine.init(dictionary, tables, commonness, executor=executor).result(timeout=timeout)

    store.set(SNAPSHOT_KEY, build_snapshot(fingerprint, tables, commonness, engine))
    logger.info("Computational cache rebuilt (fingerprint: %s)", short)
    return tables, commonness, True
