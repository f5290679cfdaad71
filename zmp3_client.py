# ZMP3 API Client

import logging
import requests
from typing import Optional, Dict, Any, List
from config import (
    MP3_API_URL, USER_AGENT, SEARCH_TIMEOUT, AUDIO_TIMEOUT, LYRIC_TIMEOUT
)

logger = logging.getLogger(__name__)


class ZMP3Error(Exception):
    """Upstream answered, but not with something usable"""


class ZMP3Client:
    """Client for the ZMP3 backend (search, audio stream, lyric)"""

    def __init__(self, base_url: Optional[str] = None):
        self.base_url = (base_url or MP3_API_URL).rstrip("/")
        self.headers = {
            "User-Agent": USER_AGENT,
        }

    def search(self, keyword: str) -> List[Dict[str, Any]]:
        """Search songs, returns the raw song items in upstream ranking order"""
        url = f"{self.base_url}/api/search"
        response = requests.get(url, params={"q": keyword}, headers=self.headers, timeout=SEARCH_TIMEOUT)
        response.raise_for_status()
        return self._parse_search_result(response.json())

    def fetch_audio(self, song_id: str) -> bytes:
        """Download the full audio file for a song"""
        url = f"{self.base_url}/api/song/stream"
        response = requests.get(url, params={"id": song_id}, headers=self.headers, timeout=AUDIO_TIMEOUT)
        response.raise_for_status()

        if not response.content:
            raise ZMP3Error(f"Empty audio response for {song_id}")

        logger.info(f"[DOWNLOAD] {song_id}: {len(response.content)} bytes")
        return response.content

    def get_lyric(self, song_id: str) -> Dict[str, Any]:
        """Get lyric data: either {"file": url} or {"sentences": [...]}"""
        url = f"{self.base_url}/api/lyric"
        response = requests.get(url, params={"id": song_id}, headers=self.headers, timeout=LYRIC_TIMEOUT)
        response.raise_for_status()
        data = response.json()

        if not isinstance(data, dict) or data.get("err") != 0 or not data.get("data"):
            raise ZMP3Error(f"ZMP3 lyric error: {data.get('msg', 'no data') if isinstance(data, dict) else 'bad payload'}")
        return data["data"]

    def fetch_lyric_file(self, file_url: str) -> str:
        """Download a raw lyric file referenced by get_lyric"""
        response = requests.get(file_url, headers=self.headers, timeout=LYRIC_TIMEOUT)
        response.raise_for_status()
        return response.text

    def _parse_search_result(self, result: Any) -> List[Dict[str, Any]]:
        """Unwrap {"err": 0, "data": {"songs": [...]}}; anything else means no results"""
        if not isinstance(result, dict) or result.get("err") != 0:
            return []

        data = result.get("data") or {}
        songs = data.get("songs") if isinstance(data, dict) else None
        if not isinstance(songs, list):
            return []
        return songs
