"""Shared fixtures: a fresh cache and a mocked ZMP3 client per test."""

import os
import tempfile

# Keep the rotating log file out of the working tree
os.environ.setdefault("LOG_FILE", os.path.join(tempfile.gettempdir(), "xiaozhi-adapter-test.log"))

from unittest.mock import MagicMock

import pytest

from audio_cache import AudioCache
from zmp3_client import ZMP3Client


SONG_ITEM = {
    "encodeId": "ZWZB9WAB",
    "title": "Nơi Này Có Anh",
    "artistsNames": "Sơn Tùng M-TP",
    "thumbnail": "https://photo-resize-zmp3.zmdcdn.me/w94_r1x1_jpeg/cover.jpg",
    "thumbnailM": "https://photo-resize-zmp3.zmdcdn.me/w240_r1x1_jpeg/cover.jpg",
    "duration": 260,
}

AUDIO = b"ID3\x03\x00\x00\x00fake-mp3"


@pytest.fixture()
def cache() -> AudioCache:
    return AudioCache(max_items=10)


@pytest.fixture()
def client() -> MagicMock:
    mock_client = MagicMock(spec=ZMP3Client)
    mock_client.search.return_value = [dict(SONG_ITEM)]
    mock_client.fetch_audio.return_value = AUDIO
    return mock_client


@pytest.fixture()
def app(cache, client):
    from server import create_app

    app = create_app(audio_cache=cache, client=client)
    app.config["TESTING"] = True
    app.config["PUBLIC_URL"] = ""
    return app


@pytest.fixture()
def http(app):
    return app.test_client()


@pytest.fixture()
def song_item() -> dict:
    return dict(SONG_ITEM)


@pytest.fixture()
def audio() -> bytes:
    return AUDIO
