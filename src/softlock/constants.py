"""Constants for softlock."""

# Data-root layout
ARCHIVE_DATA_DIRNAME = "dMagy Portable Archive Data"
LOCKS_DIRNAME = "_locks"
META_DIRNAME = "_meta"
CONFIG_FILENAME = "softlock.toml"

# Lock record files
LOCK_FILE_PREFIX = "lock_"
LOCK_FILE_SUFFIX = ".json"
TEMP_FILE_SUFFIX = ".tmp"

# Resource keys
SETTINGS_RESOURCE_KEY = "settings"
ITEM_KEY_PREFIX = "photo:"

# Lease timing (seconds)
STALE_THRESHOLD_SECONDS = 300  # 5 minutes without renewal
HEARTBEAT_INTERVAL_SECONDS = 60
MAX_CLOCK_SKEW_SECONDS = 30
PROPAGATION_DELAY_SECONDS = 10
MIN_HEARTBEAT_SAFETY_RATIO = 3

# Session fallbacks
UNKNOWN_USER = "Unknown User"
UNKNOWN_DEVICE = "Unknown Device"
