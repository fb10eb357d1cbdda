"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_GRACE_WINDOW_MINUTES = 15
DEFAULT_ABSENT_TIMEOUT_MINUTES = 10
DEFAULT_PRESENCE_THRESHOLD = 20.0
DEFAULT_TICK_SECONDS = 1.0
DEFAULT_AVAILABLE_SENSORS = ("Sensor1", "Sensor2", "Sensor3")

DEFAULT_FEED_MAX_RETRIES = 3
DEFAULT_FEED_RETRY_BACKOFF_SECONDS = 0.5

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
