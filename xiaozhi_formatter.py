# Xiaozhi Response Formatter
# Converts ZMP3 data to the format expected by the Xiaozhi ESP32 firmware

from typing import Dict, Any, List, Optional
from urllib.parse import quote


def resolve_base_url(public_url: Optional[str], host: str) -> str:
    """Base URL for links handed to the client: PUBLIC_URL wins over the Host header"""
    if public_url:
        return public_url[:-1] if public_url.endswith("/") else public_url
    return f"http://{host}"


def extract_ip(base_url: str) -> str:
    """Host part of the base URL, as reported in the "ip" field"""
    host = base_url.replace("http://", "").replace("https://", "")
    return host.split(":")[0]


def format_stream_metadata(song_item: Dict[str, Any], base_url: str, from_cache: bool,
                           song: str = "", artist: str = "") -> Dict[str, Any]:
    """Format /stream_pcm response from a ZMP3 search item"""
    song_id = song_item["encodeId"]
    audio_link = f"{base_url}/proxy_audio?id={quote(song_id)}"

    return {
        "title": song_item.get("title") or song,
        "artist": song_item.get("artistsNames") or artist or "Unknown",

        # The firmware only plays audio_url, the other two point at the same file
        "audio_url": audio_link,
        "audio_full_url": audio_link,
        "m3u8_url": audio_link,

        "lyric_url": f"{base_url}/proxy_lyric?id={quote(song_id)}",
        "cover_url": song_item.get("thumbnail") or song_item.get("thumbnailM") or "",
        "duration": song_item.get("duration") or 0,

        "from_cache": from_cache,
        "ip": extract_ip(base_url),
    }


def format_lrc_timestamp(millis: int) -> str:
    """61000 -> [01:01.00]"""
    minutes = millis // 60000
    seconds = (millis % 60000) // 1000
    centis = (millis % 1000) // 10
    return f"[{minutes:02d}:{seconds:02d}.{centis:02d}]"


def format_lrc(sentences: List[Dict[str, Any]]) -> str:
    """Build LRC text from ZMP3 sentences, one line per timed word"""
    lines = []
    for sentence in sentences:
        for word in sentence.get("words") or []:
            start = int(word.get("startTime") or 0)
            lines.append(f"{format_lrc_timestamp(start)}{word.get('data', '')}\n")
    return "".join(lines)
