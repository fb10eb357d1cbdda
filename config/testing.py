import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "classroom_attendance_test"),
}

DEVICE_TOKEN = "test-device-token"

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

GRACE_WINDOW_MINUTES = 15
ABSENT_TIMEOUT_MINUTES = 10
PRESENCE_THRESHOLD = 20.0
UNVERIFIED_TAP_POLICY = "absent"

# Tests drive the loop with pump(now=...)
TICK_SECONDS = 1
AUTOSTART_LOOP = False
AVAILABLE_SENSORS = ("Sensor1", "Sensor2", "Sensor3")

DEVICE_FEED_ENABLED = False
FEED_MAX_RETRIES = 3
FEED_RETRY_BACKOFF_SECONDS = 0.0
