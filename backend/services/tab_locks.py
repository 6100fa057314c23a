"""Per-tab locks shared by every service that reads then writes a month tab."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field


@dataclass(slots=True)
class TabLocks:
    _locks: dict[str, threading.Lock] = field(default_factory=dict, init=False, repr=False)
    _guard: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def lock_for(self, tab: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(tab, threading.Lock())
