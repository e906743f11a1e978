"""
Application-wide constants for the station network collector.

Defaults used when the configuration file does not override a value.
"""

# Fetch defaults
DEFAULT_REQUEST_TIMEOUT = 12  # seconds, per attempt
DEFAULT_MAX_ATTEMPTS = 2
DEFAULT_BACKOFF_BASE = 1.0  # seconds
DEFAULT_BACKOFF_JITTER = 0.5  # seconds
DEFAULT_INTER_CALL_DELAY = 0.8  # seconds between sequential endpoint calls
DEFAULT_MAX_CONCURRENT = 1
USER_AGENT = "station-network-collector/0.1"

# Default feeds (NEA Singapore real-time environment API)
DEFAULT_ENDPOINTS = {
    "temperature": "https://api.data.gov.sg/v1/environment/air-temperature",
    "humidity": "https://api.data.gov.sg/v1/environment/relative-humidity",
    "rainfall": "https://api.data.gov.sg/v1/environment/rainfall",
    "wind_speed": "https://api.data.gov.sg/v1/environment/wind-speed",
    "wind_direction": "https://api.data.gov.sg/v1/environment/wind-direction",
}

# Priority scoring
PROXIMITY_CUTOFF_KM = 10.0
PROXIMITY_WEIGHT = 10.0
DATA_TYPE_WEIGHT = 5.0
RELIABILITY_WEIGHT = 20.0
DEFAULT_RELIABILITY = 1.0

PRIORITY_THRESHOLDS = {
    "critical": 80.0,
    "high": 60.0,
    "medium": 40.0,
}

# Station selection
SELECTION_FRACTION = 0.3
MIN_STATIONS_PER_TYPE = 3
MAX_STATIONS_PER_TYPE = 8

# Data quality score
EXPECTED_TOTAL_STATIONS = 50
SUCCESS_RATE_WEIGHT = 0.4
STATION_COVERAGE_WEIGHT = 0.3
DATA_TYPE_COVERAGE_WEIGHT = 0.3

# Geography (Singapore)
EARTH_RADIUS_KM = 6371.0

COVERAGE_BOUNDS = {
    "north": 1.4710,
    "south": 1.1496,
    "east": 104.0280,
    "west": 103.5900,
}

# Region classifier thresholds, evaluated in order north, south, east, west
REGION_THRESHOLDS = {
    "north_lat": 1.38,
    "south_lat": 1.28,
    "east_lng": 103.85,
    "west_lng": 103.75,
}

REGIONS = ("north", "south", "east", "west", "central")

# Sub-bounds used for estimated positions: (lat_min, lat_max, lng_min, lng_max).
# Each box lies inside the matching REGION_THRESHOLDS partition.
REGION_ESTIMATE_BOUNDS = {
    "north": (1.390, 1.460, 103.700, 103.900),
    "south": (1.250, 1.275, 103.760, 103.900),
    "east": (1.290, 1.370, 103.860, 103.980),
    "west": (1.290, 1.370, 103.640, 103.740),
    "central": (1.290, 1.370, 103.760, 103.840),
}

# Numeric station id bands used to choose an estimation region
REGION_ID_BANDS = (
    (50, "north"),
    (100, "central"),
    (150, "east"),
    (200, "west"),
)
REGION_ID_DEFAULT = "south"

# Storage
DEFAULT_REGISTRY_PATH = "data/stations/registry.json"
DEFAULT_OUTPUT_DIR = "data/weather"
DEFAULT_TIMEZONE = "Asia/Singapore"
REGISTRY_FORMAT_VERSION = "1.0.0"
