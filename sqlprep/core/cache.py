"""Prepared statement cache.

Bounded mapping from exact SQL text to a compiled statement handle with FIFO
eviction. Entries are ordered by insertion time only: a cache hit does not
move an entry, so the oldest inserted statement is always the next one to go.

A capacity of 0 disables caching. Every acquisition then compiles a fresh,
uncached handle that the caller must close after use.
"""

from collections import OrderedDict
from typing import TYPE_CHECKING, Final

from mypy_extensions import mypyc_attr

from sqlprep.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from sqlprep.driver._common import StatementHandle

__all__ = ("DEFAULT_STATEMENT_CACHE_SIZE", "CacheStats", "StatementCache")

logger = get_logger("core.cache")

DEFAULT_STATEMENT_CACHE_SIZE: Final[int] = 128

CACHE_STATS_SLOTS: Final = ("hits", "misses", "evictions", "uncached")
STATEMENT_CACHE_SLOTS: Final = ("_capacity", "_entries", "_prepare", "_stats")


@mypyc_attr(allow_interpreted_subclasses=False)
class CacheStats:
    """Cache statistics tracking."""

    __slots__ = CACHE_STATS_SLOTS

    def __init__(self) -> None:
        self.hits = 0
        self.misses = 0
        self.evictions = 0
        self.uncached = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate as percentage."""
        total = self.hits + self.misses
        return (self.hits / total * 100) if total > 0 else 0.0

    def record_hit(self) -> None:
        self.hits += 1

    def record_miss(self) -> None:
        self.misses += 1

    def record_eviction(self) -> None:
        self.evictions += 1

    def record_uncached(self) -> None:
        self.uncached += 1

    def reset(self) -> None:
        """Reset all statistics."""
        self.hits = 0
        self.misses = 0
        self.evictions = 0
        self.uncached = 0

    def __repr__(self) -> str:
        return (
            f"CacheStats(hit_rate={self.hit_rate:.1f}%, "
            f"hits={self.hits}, misses={self.misses}, "
            f"evictions={self.evictions}, uncached={self.uncached})"
        )


@mypyc_attr(allow_interpreted_subclasses=False)
class StatementCache:
    """FIFO-bounded cache of compiled statements keyed by SQL text.

    The cache is the sole owner of the handles it stores and closes them on
    eviction, on :meth:`clear` and when resized to a smaller capacity.

    Args:
        prepare: Callable compiling SQL text into a new handle.
        capacity: Maximum number of cached handles; 0 disables caching.
    """

    __slots__ = STATEMENT_CACHE_SLOTS

    def __init__(self, prepare: "Callable[[str], StatementHandle]", capacity: int = DEFAULT_STATEMENT_CACHE_SIZE) -> None:
        self._prepare = prepare
        self._capacity = max(0, capacity)
        self._entries: OrderedDict[str, StatementHandle] = OrderedDict()
        self._stats = CacheStats()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def enabled(self) -> bool:
        """Whether statements are retained at all."""
        return self._capacity > 0

    @property
    def stats(self) -> CacheStats:
        return self._stats

    def acquire(self, sql: str) -> "StatementHandle":
        """Return the compiled handle for ``sql``, compiling it on a miss.

        Compilation errors propagate and leave the cache untouched.

        Args:
            sql: Exact SQL text; any byte difference is a distinct entry.

        Returns:
            A cached handle, or a fresh uncached one when caching is disabled.
        """
        if not self._capacity:
            handle = self._prepare(sql)
            handle.cached = False
            self._stats.record_uncached()
            return handle

        handle = self._entries.get(sql)
        if handle is not None:
            self._stats.record_hit()
            return handle

        self._stats.record_miss()
        handle = self._prepare(sql)
        while len(self._entries) >= self._capacity:
            self._evict_oldest()
        handle.cached = True
        self._entries[sql] = handle
        return handle

    def resize(self, capacity: int) -> None:
        """Change the capacity, evicting oldest entries until the cache fits.

        Args:
            capacity: New capacity; negative values are treated as 0.
        """
        self._capacity = max(0, capacity)
        if not self._capacity:
            self.clear()
            return
        while len(self._entries) > self._capacity:
            self._evict_oldest()

    def clear(self) -> None:
        """Close and remove every cached handle. Capacity is unchanged."""
        while self._entries:
            _, handle = self._entries.popitem(last=False)
            handle.close()

    def keys(self) -> "list[str]":
        """Cached SQL texts, oldest first."""
        return list(self._entries)

    def _evict_oldest(self) -> None:
        sql, handle = self._entries.popitem(last=False)
        handle.close()
        self._stats.record_eviction()
        logger.debug("Evicted cached statement: %s", sql)

    def __contains__(self, sql: object) -> bool:
        return sql in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> "Iterator[str]":
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"StatementCache(capacity={self._capacity}, size={len(self._entries)}, stats={self._stats!r})"
