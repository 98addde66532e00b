"""In-memory trigger progress keyed by monitoring session."""

from __future__ import annotations

import threading
from typing import Optional

from swingtrack.triggers.models import BarCounter, SessionCounter, ValueHistory


def session_key(plan_id: str, strategy_id: str) -> str:
    return f"{plan_id}_{strategy_id}"


class TriggerStateStore:
    """Session counters, bar counters and value histories for each session key.

    Callers serialize work on one key through ``lock_for``; the store's own
    guard only protects its dictionaries. Lock entries live as long as the
    store: ``release`` runs while the caller holds the key's lock, and a
    thread already waiting on that lock must keep sharing it with later
    callers for the same key.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._sessions: dict[str, SessionCounter] = {}
        self._bars: dict[str, dict[str, BarCounter]] = {}
        self._histories: dict[str, dict[str, ValueHistory]] = {}

    def lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    def session(self, key: str) -> Optional[SessionCounter]:
        with self._guard:
            return self._sessions.get(key)

    def put_session(self, key: str, session: SessionCounter) -> None:
        with self._guard:
            self._sessions[key] = session

    def bar_counter(self, key: str, trigger_id: str) -> Optional[BarCounter]:
        with self._guard:
            return self._bars.get(key, {}).get(trigger_id)

    def put_bar_counter(self, key: str, counter: BarCounter) -> None:
        with self._guard:
            self._bars.setdefault(key, {})[counter.trigger_id] = counter

    def bar_counters(self, key: str) -> list[BarCounter]:
        with self._guard:
            return list(self._bars.get(key, {}).values())

    def history(self, key: str, name: str, maxlen: int = 2) -> ValueHistory:
        with self._guard:
            histories = self._histories.setdefault(key, {})
            history = histories.get(name)
            if history is None:
                history = ValueHistory(maxlen=maxlen)
                histories[name] = history
            return history

    def keys(self) -> list[str]:
        with self._guard:
            return list(self._sessions)

    def release(self, key: str) -> bool:
        """Drop all progress for ``key``; returns False when nothing was held.

        The key's lock is kept so ``lock_for`` keeps handing out the same one.
        """
        with self._guard:
            found = key in self._sessions or key in self._bars or key in self._histories
            self._sessions.pop(key, None)
            self._bars.pop(key, None)
            self._histories.pop(key, None)
            return found
