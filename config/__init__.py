"""Settings modules for the attendance service.

``APP_ENV`` picks one of them; each reads its values from the environment
(``.env`` is loaded by ``create_app`` before this runs).
"""

import os

_ENVIRONMENTS = {
    "prod": "config.production",
    "production": "config.production",
    "test": "config.testing",
    "testing": "config.testing",
}


def get_settings_module() -> str:
    env = os.getenv("APP_ENV", "development").strip().lower()
    return _ENVIRONMENTS.get(env, "config.development")
