"""
parse_cache.py - In-memory parse cache for JavaScriptParser.

Responsibilities (single):
    Cache converted SyntaxNode trees by the SHA-256 of their source bytes so
    identical content is parsed once per run.  In a typical comparison most
    modified files are byte-identical to their originals, so the second
    parse of every unchanged pair is a hit.

Design notes
------------
- Keyed by content hash only, not by path: the original and modified copy
  of an unchanged file share one slot.
- SyntaxNode trees are immutable, so sharing one instance between both
  sides of a pair is safe.
- Guarded by a lock; the pipeline may parse from a worker pool.
"""

from __future__ import annotations

import hashlib
import logging
import threading
from typing import Optional

from ast_compare.models import SyntaxNode

logger = logging.getLogger(__name__)


class ParseCache:
    """Content-addressed in-memory cache for parsed syntax trees.

    Usage::

        cache = ParseCache()

        # Before parsing:
        tree = cache.get(source_bytes)

        # After parsing:
        cache.put(source_bytes, tree)

        # Stats:
        print(cache.stats())
    """

    def __init__(self) -> None:
        # key: sha256 hex of the source bytes
        self._store: dict[str, SyntaxNode] = {}
        self._lock = threading.Lock()
        self._hits: int = 0
        self._misses: int = 0

    # ------------------------------------------------------------------
    # Core interface
    # ------------------------------------------------------------------

    @staticmethod
    def hash_source(source: bytes) -> str:
        """Return the SHA-256 hex digest of source bytes."""
        return hashlib.sha256(source).hexdigest()

    def get(self, source: bytes) -> Optional[SyntaxNode]:
        """Return the cached tree for *source*, or None on a miss."""
        key = self.hash_source(source)
        with self._lock:
            tree = self._store.get(key)
            if tree is not None:
                self._hits += 1
                logger.debug("ParseCache HIT : %s", key[:12])
                return tree
            self._misses += 1
        logger.debug("ParseCache MISS: %s", key[:12])
        return None

    def put(self, source: bytes, tree: SyntaxNode) -> None:
        """Store (or refresh) the tree parsed from *source*."""
        key = self.hash_source(source)
        with self._lock:
            self._store[key] = tree
        logger.debug("ParseCache PUT : %s", key[:12])

    def evict(self, source: bytes) -> None:
        with self._lock:
            removed = self._store.pop(self.hash_source(source), None)
        if removed is not None:
            logger.debug("ParseCache EVICT")

    def discard(self, tree: SyntaxNode) -> None:
        """Evict the entry holding *tree* (matched by identity)."""
        with self._lock:
            keys = [key for key, cached in self._store.items() if cached is tree]
            for key in keys:
                del self._store[key]
        if keys:
            logger.debug("ParseCache DISCARD: %s", keys[0][:12])

    def clear(self) -> None:
        """Evict *all* cached trees."""
        with self._lock:
            self._store.clear()
        logger.debug("ParseCache cleared")

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    def stats(self) -> dict:
        """Snapshot of cache performance counters.

        Returns::

            {
                'size':     int,    # number of cached trees currently stored
                'hits':     int,    # cumulative hits since instantiation
                'misses':   int,    # cumulative misses since instantiation
                'hit_rate': float,  # hits / (hits + misses), or 0.0 if no ops
            }
        """
        with self._lock:
            total = self._hits + self._misses
            return {
                "size": len(self._store),
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": self._hits / total if total else 0.0,
            }
