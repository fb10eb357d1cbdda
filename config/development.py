import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "classroom_attendance"),
}

# Shared secret sent by RFID readers and seat sensors in X-Device-Token
DEVICE_TOKEN = os.getenv("DEVICE_TOKEN", "dev-device-token")

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

GRACE_WINDOW_MINUTES = float(os.getenv("GRACE_WINDOW_MINUTES", "15"))
ABSENT_TIMEOUT_MINUTES = float(os.getenv("ABSENT_TIMEOUT_MINUTES", "10"))
PRESENCE_THRESHOLD = float(os.getenv("PRESENCE_THRESHOLD", "20"))
# "absent" or "late": what a tap without seat confirmation becomes
UNVERIFIED_TAP_POLICY = os.getenv("UNVERIFIED_TAP_POLICY", "absent")

TICK_SECONDS = float(os.getenv("TICK_SECONDS", "1"))
AUTOSTART_LOOP = bool(int(os.getenv("AUTOSTART_LOOP", "1")))
AVAILABLE_SENSORS = tuple(s.strip() for s in os.getenv("AVAILABLE_SENSORS", "Sensor1,Sensor2,Sensor3").split(",") if s.strip())

DEVICE_FEED_ENABLED = bool(int(os.getenv("DEVICE_FEED_ENABLED", "0")))
FEED_MAX_RETRIES = int(os.getenv("FEED_MAX_RETRIES", "3"))
FEED_RETRY_BACKOFF_SECONDS = float(os.getenv("FEED_RETRY_BACKOFF_SECONDS", "0.5"))
