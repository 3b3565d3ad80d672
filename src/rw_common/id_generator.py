"""Snowflake-style string IDs for offers, assets and settlement records.

IDs are strictly increasing within a process, so list endpoints can page with
`ORDER BY id DESC` and a plain `id < :cursor_id` predicate.
"""

import threading
import time


class SnowflakeIdGenerator:
    """Layout (63 bits used):
      - 41 bits: milliseconds since _EPOCH_MS
      - 10 bits: worker_id (0-1023)
      - 12 bits: per-millisecond sequence (0-4095)

    A clock that moves backwards is treated as the last seen millisecond, so
    IDs never repeat or decrease.
    """

    _EPOCH_MS = 1_735_689_600_000  # 2025-01-01T00:00:00Z
    _WORKER_BITS = 10
    _SEQUENCE_BITS = 12
    _SEQUENCE_MASK = (1 << _SEQUENCE_BITS) - 1

    def __init__(self, worker_id: int = 0) -> None:
        if not (0 <= worker_id < (1 << self._WORKER_BITS)):
            raise ValueError(f"worker_id must be 0-{(1 << self._WORKER_BITS) - 1}")
        self._worker_id = worker_id
        self._sequence = 0
        self._last_ms = -1
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            now_ms = max(self._now_ms(), self._last_ms)
            if now_ms == self._last_ms:
                self._sequence = (self._sequence + 1) & self._SEQUENCE_MASK
                if self._sequence == 0:
                    now_ms = self._until_after(self._last_ms)
            else:
                self._sequence = 0
            self._last_ms = now_ms
            value = (
                ((now_ms - self._EPOCH_MS) << (self._WORKER_BITS + self._SEQUENCE_BITS))
                | (self._worker_id << self._SEQUENCE_BITS)
                | self._sequence
            )
            return str(value)

    @staticmethod
    def _now_ms() -> int:
        return time.time_ns() // 1_000_000

    def _until_after(self, last_ms: int) -> int:
        now_ms = self._now_ms()
        while now_ms <= last_ms:
            time.sleep(0.0001)
            now_ms = self._now_ms()
        return now_ms


_default_generator = SnowflakeIdGenerator()


def generate_id() -> str:
    return _default_generator.next_id()
