# Xiaozhi MP3 Adapter Server
# Bridges the ZMP3 API to the Xiaozhi ESP32 music player, caching audio in memory

from flask import Blueprint, Flask, Response, current_app, jsonify, request
import logging
from logging.handlers import RotatingFileHandler

from config import (
    SERVER_HOST, SERVER_PORT, MP3_API_URL, PUBLIC_URL,
    AUDIO_CACHE_MAX_ITEMS, AUDIO_CACHE_MAX_AGE, LOG_FILE
)
from audio_cache import AudioCache
from prefetch import prefetch_top_songs
from zmp3_client import ZMP3Client
from xiaozhi_formatter import format_lrc, format_stream_metadata, resolve_base_url

# Configure logging - both console and file
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Add file handler for persistent logs
file_handler = RotatingFileHandler(LOG_FILE, maxBytes=5*1024*1024, backupCount=3)
file_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s'))
logging.getLogger().addHandler(file_handler)

bp = Blueprint("adapter", __name__)


def get_audio_cache() -> AudioCache:
    return current_app.extensions["audio_cache"]


def get_client() -> ZMP3Client:
    return current_app.extensions["zmp3_client"]


def audio_response(data: bytes, cacheable: bool) -> Response:
    """Raw MP3 response; honours Range requests against the full buffer"""
    response = Response(data, mimetype="audio/mpeg")
    response.headers["Content-Length"] = str(len(data))
    response.headers["Accept-Ranges"] = "bytes"
    if cacheable:
        response.headers["Cache-Control"] = f"public, max-age={AUDIO_CACHE_MAX_AGE}"
    return response.make_conditional(request, accept_ranges=True, complete_length=len(data))


# ============ Metadata Endpoint ============

@bp.route("/stream_pcm", methods=["GET"])
def stream_pcm():
    """Search a song, pre-download its audio and return Xiaozhi metadata"""
    try:
        song = request.args.get("song", "")
        artist = request.args.get("artist", "")

        if not song:
            return jsonify({"error": "Missing song parameter"}), 400

        logger.info(f"[SEARCH] \"{song}\" by \"{artist}\"")
        search_query = f"{song} {artist}" if artist else song
        songs = get_client().search(search_query)

        if not songs:
            return jsonify({
                "error": "Song not found",
                "title": song,
                "artist": artist or "Unknown",
            }), 404

        logger.info(f"[SEARCH] Found {len(songs)} songs")

        base_url = resolve_base_url(current_app.config.get("PUBLIC_URL"), request.host)
        results = prefetch_top_songs(get_audio_cache(), get_client(), songs)

        if not results:
            return jsonify({"error": "Failed to process any songs"}), 500

        song_item, from_cache = results[0]
        logger.info(f"[SEARCH] Returning {song_item.get('encodeId')} (base URL: {base_url})")
        return jsonify(format_stream_metadata(song_item, base_url, from_cache, song, artist))

    except Exception as e:
        logger.error(f"Error in stream_pcm: {e}")
        return jsonify({"error": "Internal server error"}), 500


# ============ Proxy Endpoints ============

@bp.route("/proxy_audio", methods=["GET"])
def proxy_audio():
    """Serve audio from the memory cache, downloading it first on a miss"""
    song_id = request.args.get("id", "")
    if not song_id:
        return Response("Missing id parameter", status=400, mimetype="text/plain")

    try:
        data, hit = get_audio_cache().get_or_fetch(song_id, get_client().fetch_audio)
    except Exception as e:
        logger.error(f"[PROXY] Proxy audio error for {song_id}: {e}")
        return Response("Failed to proxy audio", status=500, mimetype="text/plain")

    if hit:
        logger.info(f"[CACHE HIT] Serving {song_id} from memory ({len(data)} bytes)")
    else:
        logger.info(f"[PROXY] Downloaded and cached {song_id} ({len(data)} bytes)")
    # Freshly downloaded audio is not advertised as cacheable downstream
    return audio_response(data, cacheable=hit)


@bp.route("/proxy_lyric", methods=["GET"])
def proxy_lyric():
    """Return lyrics as plain text; every failure is reported as not found"""
    song_id = request.args.get("id", "")
    if not song_id:
        return Response("Missing id parameter", status=400, mimetype="text/plain")

    try:
        client = get_client()
        lyric_data = client.get_lyric(song_id)

        if lyric_data.get("file"):
            content = client.fetch_lyric_file(lyric_data["file"])
        elif isinstance(lyric_data.get("sentences"), list):
            content = format_lrc(lyric_data["sentences"])
        else:
            return Response("Lyric not found", status=404, mimetype="text/plain")

        return Response(content, content_type="text/plain; charset=utf-8")
    except Exception as e:
        logger.warning(f"[LYRIC] Failed to get lyric for {song_id}: {e}")
        return Response("Lyric not found", status=404, mimetype="text/plain")


# ============ Health ============

@bp.route("/health", methods=["GET"])
def health():
    cache = get_audio_cache()
    return jsonify({
        "status": "ok",
        "cache_size": cache.size(),
        "cached_songs": cache.keys(),
    })


def create_app(audio_cache: AudioCache = None, client: ZMP3Client = None) -> Flask:
    """Build the adapter app around one audio cache and one upstream client"""
    app = Flask(__name__)
    app.json.ensure_ascii = False
    app.config["PUBLIC_URL"] = PUBLIC_URL
    app.extensions["audio_cache"] = audio_cache if audio_cache is not None else AudioCache(AUDIO_CACHE_MAX_ITEMS)
    app.extensions["zmp3_client"] = client if client is not None else ZMP3Client()
    app.register_blueprint(bp)
    return app


app = create_app()


if __name__ == "__main__":
    logger.info("=" * 60)
    logger.info(f"Starting Xiaozhi Adapter on {SERVER_HOST}:{SERVER_PORT}")
    logger.info(f"MP3 API: {MP3_API_URL}")
    if PUBLIC_URL:
        logger.info(f"PUBLIC_URL set: {PUBLIC_URL}")
    else:
        logger.info("No PUBLIC_URL set, using auto-detection")
    logger.info(f"Audio cache: {AUDIO_CACHE_MAX_ITEMS} songs")
    logger.info("=" * 60)

    app.run(host=SERVER_HOST, port=SERVER_PORT, threaded=True)
