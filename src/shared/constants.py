from datetime import timedelta

# Zoom levels cached for offline use (first one is the coverage probe level)
TILE_ZOOMS = (13, 14, 15)

# Storage key of the single cache metadata record
OFFLINE_TILE_METADATA_KEY = 'offline_tile_metadata_v1'

# Local tile layout relative to the tile root
TILE_PATH_TEMPLATE = '{z}/{x}/{y}.png'

# Directory name of the tile tree inside the data directory
TILE_DIR_NAME = 'offlineTiles'

# Application directory name for per-user data
APP_DIR_NAME = 'FieldSurvey'

# Distance from the cached center that triggers a refresh (meters)
REFRESH_DISTANCE_THRESHOLD_M = 5000.0

# Cache age that triggers a refresh
REFRESH_TIME_THRESHOLD = timedelta(days=7)

# Connectivity polling interval (seconds)
NETWORK_POLL_INTERVAL_S = 10.0

# Area of the square cached around a point (km²)
TARGET_OFFLINE_AREA_SQ_KM = 5.0

# Smallest area allowed for a box around a point (km²)
MIN_OFFLINE_AREA_SQ_KM = 0.25

# Kilometers per degree of latitude
KM_PER_DEG_LAT = 110.574

# Kilometers per degree of longitude at the equator
KM_PER_DEG_LON_EQUATOR = 111.32

# Lower bound of km per degree of longitude (avoids blow-up near the poles)
MIN_KM_PER_DEG_LON = 0.0001

# Containment slack in degrees (~55 m at the equator)
BOUNDS_TOLERANCE_DEG = 0.0005

# Mean Earth radius for haversine distances (meters)
EARTH_RADIUS_M = 6371000.0

# Largest latitude representable in Web Mercator
MERCATOR_MAX_LAT = 85.05112878

# Per-tile request timeout (seconds)
HTTP_TIMEOUT_DEFAULT = 20.0

# Attempts per tile for retryable responses (429/5xx, transport errors)
HTTP_RETRIES_DEFAULT = 3

# Exponential backoff base between attempts (seconds)
HTTP_BACKOFF_FACTOR = 1.6

# Number of tiles fetched in parallel (1 = sequential)
DOWNLOAD_CONCURRENCY = 1

# Visible characters of the API key in logs
API_KEY_VISIBLE_PREFIX_LEN = 4

# Default tile provider (Mapbox satellite streets)
DEFAULT_TILE_PROVIDER_URL = (
    'https://api.mapbox.com/styles/v1/mapbox/satellite-streets-v12/tiles/256/'
    '{z}/{x}/{y}?access_token={apiKey}'
)
DEFAULT_TILE_PROVIDER_NAME = 'Mapbox Satellite'
DEFAULT_TILE_PROVIDER_USER_AGENT = 'AppReflorest/1.0 (mapbox)'

# Environment variables of the tile provider (plain and Expo-prefixed names)
ENV_TILE_PROVIDER_URL = 'TILE_PROVIDER_URL'
ENV_TILE_PROVIDER_API_KEY = 'TILE_PROVIDER_API_KEY'
ENV_TILE_PROVIDER_NAME = 'TILE_PROVIDER_NAME'
ENV_TILE_PROVIDER_USER_AGENT = 'TILE_PROVIDER_USER_AGENT'
ENV_EXPO_PREFIX = 'EXPO_PUBLIC_'

# Placeholder substituted with the API key inside URL templates
API_KEY_PLACEHOLDER = '{apiKey}'

# Query parameter used when the template has no key placeholder
API_KEY_QUERY_PARAM = 'key'

# HTTP statuses
HTTP_OK = 200
HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
HTTP_NOT_FOUND = 404
HTTP_TOO_MANY_REQUESTS = 429
HTTP_5XX_MIN = 500
HTTP_5XX_MAX = 600

# Log format shared by the CLI and tests
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_FILE_NAME = 'offline_tiles.log'
