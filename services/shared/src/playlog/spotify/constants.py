"""Spotify API URLs and retry defaults."""

# Spotify Auth
SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"

# Spotify Web API base
SPOTIFY_API_BASE = "https://api.spotify.com/v1"

# Spotify Web API endpoints
RECENTLY_PLAYED_URL = f"{SPOTIFY_API_BASE}/me/player/recently-played"

# Recently-played accepts at most 50 items per page
RECENTLY_PLAYED_MAX_LIMIT = 50

# Retry defaults
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BASE_DELAY = 1.0  # seconds
DEFAULT_REQUEST_TIMEOUT = 30.0  # seconds
