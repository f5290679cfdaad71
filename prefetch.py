# Pre-download of search results into the audio cache

import logging
from typing import Any, Dict, List, Tuple

from audio_cache import AudioCache
from zmp3_client import ZMP3Client

logger = logging.getLogger(__name__)

# Only the best match is downloaded and returned
TOP_RESULTS = 1


def prefetch_audio(cache: AudioCache, client: ZMP3Client, song_id: str) -> bool:
    """Make sure the audio for song_id is cached. Returns True if it already was.

    Download errors propagate and leave the cache untouched.
    """
    if cache.has(song_id):
        logger.info(f"[CACHE HIT] Using cached audio for {song_id}")
        return True

    logger.info(f"[PREFETCH] Pre-downloading audio for {song_id}...")
    _, hit = cache.get_or_fetch(song_id, client.fetch_audio)
    return hit


def prefetch_top_songs(cache: AudioCache, client: ZMP3Client, songs: List[Dict[str, Any]],
                       limit: int = TOP_RESULTS) -> List[Tuple[Dict[str, Any], bool]]:
    """Pre-download the top search results, returns [(song_item, from_cache)].

    Songs without an ID or whose download fails are left out; there is no
    fallback to lower ranked results.
    """
    results = []
    for song_item in songs[:limit]:
        song_id = song_item.get("encodeId")
        if not song_id:
            logger.warning(f"[PREFETCH] Skipping song without ID: {song_item.get('title')}")
            continue

        logger.info(f"[PREFETCH] Processing: {song_item.get('title')} (ID: {song_id})")
        try:
            from_cache = prefetch_audio(cache, client, song_id)
        except Exception as e:
            logger.error(f"[PREFETCH] Failed to pre-download {song_id}: {e}")
            continue

        results.append((song_item, from_cache))

    return results
