# In-memory audio cache
# Keeps the raw bytes of the last N downloaded songs, evicting in insertion order

import logging
import threading
from collections import OrderedDict
from concurrent.futures import Future
from typing import Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class AudioCache:
    """Bounded song_id -> audio bytes store with FIFO eviction.

    Overwriting an existing song keeps its original position, so eviction
    order is decided by first insertion only. All methods are thread-safe.
    """

    def __init__(self, max_items: int = 10):
        if max_items < 1:
            raise ValueError("max_items must be at least 1")
        self.max_items = max_items
        self._store: "OrderedDict[str, bytes]" = OrderedDict()
        self._lock = threading.Lock()
        # Downloads in progress, shared by concurrent misses for the same song
        self._inflight: Dict[str, Future] = {}

    def has(self, song_id: str) -> bool:
        with self._lock:
            return song_id in self._store

    def get(self, song_id: str) -> Optional[bytes]:
        with self._lock:
            return self._store.get(song_id)

    def put(self, song_id: str, data: bytes) -> None:
        with self._lock:
            self._store[song_id] = data
            if len(self._store) > self.max_items:
                evicted, _ = self._store.popitem(last=False)
                logger.info(f"[CACHE] Evicted {evicted} (limit {self.max_items} songs)")

    def size(self) -> int:
        with self._lock:
            return len(self._store)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._store.keys())

    def get_or_fetch(self, song_id: str, fetch: Callable[[str], bytes]) -> Tuple[bytes, bool]:
        """Return (audio, hit). On a miss, fetch(song_id) runs once and is stored.

        Callers that miss while a download for the same song is running wait
        for it instead of starting their own, and see its result or error.
        """
        with self._lock:
            data = self._store.get(song_id)
            if data is not None:
                return data, True

            future = self._inflight.get(song_id)
            leader = future is None
            if leader:
                future = Future()
                self._inflight[song_id] = future

        if not leader:
            logger.info(f"[PENDING] Download already in progress for {song_id}, waiting...")
            return future.result(), False

        try:
            data = fetch(song_id)
            self.put(song_id, data)
        except BaseException as e:
            future.set_exception(e)
            raise
        else:
            future.set_result(data)
        finally:
            with self._lock:
                self._inflight.pop(song_id, None)

        return data, False
