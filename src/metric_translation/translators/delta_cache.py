"""Previous-observation store for delta and rate rules.

Entries are spread over a fixed number of shards, each with its own lock, so
updates for different series rarely contend while the read-modify-write for a
single series is always serialized. Entries that have not been touched for
``ttl_seconds`` are treated as absent; each shard also purges its expired
entries lazily, at most once per TTL period, which keeps memory bounded when
series stop reporting.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import structlog

from metric_translation.errors import RuleConfigError
from metric_translation.models.metrics import DimensionSignature, Number

logger = structlog.get_logger(__name__)

DEFAULT_SHARDS = 16


@dataclass(frozen=True)
class CacheEntry:
    previous_value: Number
    previous_timestamp: int
    touched_at: float


class _Shard:
    def __init__(self):
        self.lock = threading.Lock()
        self.entries: Dict[DimensionSignature, CacheEntry] = {}
        self.next_purge = 0.0


class DeltaStateCache:
    def __init__(
        self,
        ttl_seconds: float,
        shards: int = DEFAULT_SHARDS,
        clock: Optional[Callable[[], float]] = None,
    ):
        if ttl_seconds <= 0:
            raise RuleConfigError(f"delta translation ttl must be positive, got {ttl_seconds}")
        if shards < 1:
            raise RuleConfigError(f"shard count must be at least 1, got {shards}")
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.monotonic
        self._shards: List[_Shard] = [_Shard() for _ in range(shards)]

    def _shard_for(self, signature: DimensionSignature) -> _Shard:
        return self._shards[hash(signature) % len(self._shards)]

    def _purge_expired(self, shard: _Shard, now: float):
        if now < shard.next_purge:
            return
        expired = [
            sig for sig, entry in shard.entries.items()
            if now - entry.touched_at > self.ttl_seconds
        ]
        for sig in expired:
            del shard.entries[sig]
        if expired:
            logger.debug(f"Evicted {len(expired)} expired delta cache entries")
        shard.next_purge = now + self.ttl_seconds

    def swap(
        self, signature: DimensionSignature, value: Number, timestamp: int
    ) -> Optional[CacheEntry]:
        """Store the current observation and return the previous live one, if any"""
        shard = self._shard_for(signature)
        with shard.lock:
            now = self._clock()
            self._purge_expired(shard, now)
            previous = shard.entries.get(signature)
            if previous is not None and now - previous.touched_at > self.ttl_seconds:
                previous = None
            shard.entries[signature] = CacheEntry(value, timestamp, now)
            return previous

    def delta(
        self, signature: DimensionSignature, value: Number, timestamp: int
    ) -> Optional[Number]:
        """Return ``value - previous`` when the series has a strictly older live observation"""
        previous = self.swap(signature, value, timestamp)
        if previous is None or timestamp <= previous.previous_timestamp:
            return None
        return value - previous.previous_value

    def lookup_and_update(
        self, signature: DimensionSignature, value: Number, timestamp: int
    ) -> Optional[float]:
        """Return the per-second rate since the previous observation.

        Timestamps are epoch milliseconds. Nothing is returned on the first
        observation of a series or when elapsed time is not positive, but the
        current observation is stored either way.
        """
        previous = self.swap(signature, value, timestamp)
        if previous is None:
            return None
        elapsed_seconds = (timestamp - previous.previous_timestamp) / 1000.0
        if elapsed_seconds <= 0:
            return None
        return (value - previous.previous_value) / elapsed_seconds

    def __len__(self) -> int:
        return sum(len(shard.entries) for shard in self._shards)

    def clear(self):
        for shard in self._shards:
            with shard.lock:
                shard.entries.clear()
