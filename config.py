# Xiaozhi MP3 Adapter Configuration

import os
from dotenv import load_dotenv

load_dotenv()

# Server Settings
SERVER_HOST = os.getenv("SERVER_HOST", "0.0.0.0")
SERVER_PORT = int(os.getenv("PORT", "5006"))

# ZMP3 backend (mp3-api container)
MP3_API_URL = os.getenv("MP3_API_URL", "http://mp3-api:5555").rstrip("/")

# Public URL (DDNS/domain) used in returned links, e.g. http://my-domain.com:5006
# Empty = derive from the request Host header
PUBLIC_URL = os.getenv("PUBLIC_URL", "")

# Upstream request settings (seconds)
USER_AGENT = "Xiaozhi-Adapter/1.0"
SEARCH_TIMEOUT = 15
AUDIO_TIMEOUT = 120
LYRIC_TIMEOUT = 10

# Audio Cache Settings (number of songs kept in memory)
AUDIO_CACHE_MAX_ITEMS = int(os.getenv("AUDIO_CACHE_MAX_ITEMS", "10"))
AUDIO_CACHE_MAX_AGE = 24 * 60 * 60  # Cache-Control max-age for cached audio

# Logging
LOG_FILE = os.getenv("LOG_FILE", "server.log")
