"""
In-memory caches for assembled test data.

Each data shape gets its own bounded TTL cache so that eviction pressure from
one shape never starves another. The caches are advisory: callers must stay
correct when every lookup misses.
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from quiz_api import config

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass
class _Entry:
    value: Any
    expires_at: float
    last_accessed: float
    seq: int


class TTLCache:
    """
    Bounded cache with per-entry expiry and least-recently-used eviction.

    Thread-safe with a lock around every operation. Expired entries are
    treated as misses and removed lazily on read; inserting past capacity
    evicts exactly one entry, the one with the oldest last access.
    """

    def __init__(self, capacity: int, ttl: float, clock: Clock = time.monotonic):
        """
        Args:
            capacity: Maximum number of entries kept.
            ttl: Default time-to-live in seconds.
            clock: Monotonic time source, injectable for tests.
        """
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._data: dict[str, _Entry] = {}
        self._capacity = capacity
        self._ttl = ttl
        self._clock = clock
        self._lock = threading.RLock()
        # Orders accesses that land on the same clock reading
        self._seq = 0

    def _next_seq(self) -> int:
        self._seq += 1
        return self._seq

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if absent or expired."""
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None

            if self._clock() >= entry.expires_at:
                del self._data[key]
                return None

            entry.last_accessed = self._clock()
            entry.seq = self._next_seq()
            return entry.value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Insert or replace a value, evicting one LRU entry when over capacity."""
        with self._lock:
            now = self._clock()
            self._data[key] = _Entry(
                value=value,
                expires_at=now + (self._ttl if ttl is None else ttl),
                last_accessed=now,
                seq=self._next_seq(),
            )
            if len(self._data) > self._capacity:
                self._evict_lru()

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def _evict_lru(self) -> None:
        oldest_key = None
        oldest_rank = None
        for key, entry in self._data.items():
            rank = (entry.last_accessed, entry.seq)
            if oldest_rank is None or rank < oldest_rank:
                oldest_key = key
                oldest_rank = rank

        if oldest_key is not None:
            del self._data[oldest_key]
            logger.debug("Evicted cache entry %s", oldest_key)

    def stats(self) -> dict:
        """Cache statistics (for monitoring/debugging)."""
        with self._lock:
            return {"size": len(self._data), "max_size": self._capacity}


def batch_key(question_type: str, question_ids: Iterable[str]) -> str:
    return f"batch:{question_type}:{','.join(sorted(question_ids))}"


class DerivedDataCaches:
    """The three caches used by the test assembly layer."""

    def __init__(
        self,
        tests: TTLCache,
        questions: TTLCache,
        answers: TTLCache,
    ):
        self.tests = tests
        self.questions = questions
        self.answers = answers

    @classmethod
    def from_config(cls, clock: Clock = time.monotonic) -> "DerivedDataCaches":
        return cls(
            tests=TTLCache(config.TEST_CACHE_SIZE, config.TEST_CACHE_TTL_SECONDS, clock),
            questions=TTLCache(
                config.QUESTIONS_CACHE_SIZE, config.QUESTIONS_CACHE_TTL_SECONDS, clock
            ),
            answers=TTLCache(
                config.ANSWERS_CACHE_SIZE, config.ANSWERS_CACHE_TTL_SECONDS, clock
            ),
        )

    def get_test(self, test_id: str) -> Any | None:
        return self.tests.get(f"test:{test_id}")

    def set_test(self, test_id: str, data: Any) -> None:
        self.tests.set(f"test:{test_id}", data)

    def get_questions(self, test_id: str) -> Any | None:
        return self.questions.get(f"questions:{test_id}")

    def set_questions(self, test_id: str, questions: Any) -> None:
        self.questions.set(f"questions:{test_id}", questions)

    def get_answers(self, question_id: str) -> Any | None:
        return self.answers.get(f"answers:{question_id}")

    def set_answers(self, question_id: str, answers: Any) -> None:
        self.answers.set(f"answers:{question_id}", answers)

    def get_batch_answers(
        self, question_type: str, question_ids: Iterable[str]
    ) -> Any | None:
        return self.answers.get(batch_key(question_type, question_ids))

    def set_batch_answers(
        self, question_type: str, question_ids: Iterable[str], answers: Any
    ) -> None:
        self.answers.set(batch_key(question_type, question_ids), answers)

    def invalidate_test(self, test_id: str) -> None:
        """Drop the test payload and question list for a test."""
        self.tests.delete(f"test:{test_id}")
        self.questions.delete(f"questions:{test_id}")

    def invalidate_question(self, question_id: str) -> None:
        # Batch entries containing this question expire by TTL
        self.answers.delete(f"answers:{question_id}")

    def clear(self) -> None:
        self.tests.clear()
        self.questions.clear()
        self.answers.clear()

    def stats(self) -> dict:
        return {
            "tests": self.tests.stats(),
            "questions": self.questions.stats(),
            "answers": self.answers.stats(),
        }
