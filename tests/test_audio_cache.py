"""Unit tests for the in-memory FIFO audio cache."""

import threading
from concurrent.futures import Future
from unittest.mock import MagicMock

import pytest

from audio_cache import AudioCache


class TestAudioCacheStore:
    def test_get_missing_key_returns_none(self, cache: AudioCache) -> None:
        assert cache.get("missing") is None
        assert cache.has("missing") is False

    def test_put_and_get(self, cache: AudioCache) -> None:
        cache.put("A", b"aaa")
        assert cache.has("A") is True
        assert cache.get("A") == b"aaa"

    def test_eviction_is_fifo(self) -> None:
        cache = AudioCache(max_items=2)
        cache.put("A", b"a")
        cache.put("B", b"b")
        cache.put("C", b"c")

        assert set(cache.keys()) == {"B", "C"}
        assert cache.has("A") is False

    def test_size_never_exceeds_capacity(self) -> None:
        cache = AudioCache(max_items=3)
        for i in range(20):
            cache.put(f"song-{i}", b"x")
            assert cache.size() <= 3
        assert cache.keys() == ["song-17", "song-18", "song-19"]

    def test_reads_do_not_change_eviction_order(self) -> None:
        cache = AudioCache(max_items=2)
        cache.put("A", b"a")
        cache.put("B", b"b")
        cache.get("A")
        cache.has("A")
        cache.put("C", b"c")

        assert cache.keys() == ["B", "C"]

    def test_overwrite_keeps_position(self) -> None:
        cache = AudioCache(max_items=2)
        cache.put("A", b"a")
        cache.put("B", b"b")
        cache.put("A", b"new")

        assert cache.keys() == ["A", "B"]
        assert cache.get("A") == b"new"

        cache.put("C", b"c")
        assert cache.keys() == ["B", "C"]

    def test_keys_in_insertion_order(self, cache: AudioCache) -> None:
        for key in ("x", "y", "z"):
            cache.put(key, b"1")
        assert cache.keys() == ["x", "y", "z"]
        assert cache.size() == 3

    def test_rejects_zero_capacity(self) -> None:
        with pytest.raises(ValueError):
            AudioCache(max_items=0)


class TestGetOrFetch:
    def test_hit_does_not_fetch(self, cache: AudioCache) -> None:
        cache.put("A", b"cached")
        fetch = MagicMock()

        data, hit = cache.get_or_fetch("A", fetch)

        assert (data, hit) == (b"cached", True)
        fetch.assert_not_called()

    def test_miss_fetches_and_stores(self, cache: AudioCache) -> None:
        fetch = MagicMock(return_value=b"fresh")

        data, hit = cache.get_or_fetch("A", fetch)

        assert (data, hit) == (b"fresh", False)
        fetch.assert_called_once_with("A")
        assert cache.get("A") == b"fresh"

    def test_failed_fetch_caches_nothing(self, cache: AudioCache) -> None:
        fetch = MagicMock(side_effect=TimeoutError("upstream timed out"))

        with pytest.raises(TimeoutError):
            cache.get_or_fetch("A", fetch)

        assert cache.has("A") is False
        assert cache.size() == 0

        # The next request gets its own attempt
        fetch.side_effect = None
        fetch.return_value = b"ok"
        assert cache.get_or_fetch("A", fetch) == (b"ok", False)

    def test_concurrent_misses_share_one_download(self, cache: AudioCache) -> None:
        started = threading.Event()
        release = threading.Event()
        calls = []

        def slow_fetch(song_id):
            calls.append(song_id)
            started.set()
            release.wait(5)
            return b"audio"

        results = []
        leader = threading.Thread(target=lambda: results.append(cache.get_or_fetch("A", slow_fetch)))
        leader.start()
        assert started.wait(5)

        follower = threading.Thread(target=lambda: results.append(cache.get_or_fetch("A", slow_fetch)))
        follower.start()
        follower.join(0.1)

        release.set()
        leader.join(5)
        follower.join(5)

        assert calls == ["A"]
        assert [data for data, _ in results] == [b"audio", b"audio"]
        assert cache.keys() == ["A"]

    def test_waiting_request_sees_download_error(self, cache: AudioCache) -> None:
        pending = Future()
        cache._inflight["A"] = pending
        fetch = MagicMock()
        errors = []

        def request():
            try:
                cache.get_or_fetch("A", fetch)
            except ConnectionError as e:
                errors.append(e)

        waiter = threading.Thread(target=request)
        waiter.start()
        pending.set_exception(ConnectionError("reset"))
        waiter.join(5)

        assert len(errors) == 1
        fetch.assert_not_called()
        assert cache.has("A") is False
