import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "classroom_attendance"),
}

# Empty token rejects every device request until one is configured
DEVICE_TOKEN = os.getenv("DEVICE_TOKEN", "")

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

GRACE_WINDOW_MINUTES = float(os.getenv("GRACE_WINDOW_MINUTES", "15"))
ABSENT_TIMEOUT_MINUTES = float(os.getenv("ABSENT_TIMEOUT_MINUTES", "10"))
PRESENCE_THRESHOLD = float(os.getenv("PRESENCE_THRESHOLD", "20"))
UNVERIFIED_TAP_POLICY = os.getenv("UNVERIFIED_TAP_POLICY", "absent")

TICK_SECONDS = float(os.getenv("TICK_SECONDS", "1"))
AUTOSTART_LOOP = True
AVAILABLE_SENSORS = tuple(s.strip() for s in os.getenv("AVAILABLE_SENSORS", "Sensor1,Sensor2,Sensor3").split(",") if s.strip())

DEVICE_FEED_ENABLED = bool(int(os.getenv("DEVICE_FEED_ENABLED", "1")))
FEED_MAX_RETRIES = int(os.getenv("FEED_MAX_RETRIES", "3"))
FEED_RETRY_BACKOFF_SECONDS = float(os.getenv("FEED_RETRY_BACKOFF_SECONDS", "0.5"))
