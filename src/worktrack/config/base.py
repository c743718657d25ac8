import os


def env_flag(name: str, default: str = "0") -> bool:
    return bool(int(os.getenv(name, default)))


def db_config_from_env(default_password: str = "") -> dict:
    return {
        "host": os.getenv("DB_HOST", "localhost"),
        "port": int(os.getenv("DB_PORT", "3306")),
        "user": os.getenv("DB_USER", "root"),
        "password": os.getenv("DB_PASSWORD", default_password),
        "database": os.getenv("DB_NAME", "worktrack"),
    }


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

PRESENCE_THRESHOLD_SECONDS = int(os.getenv("PRESENCE_THRESHOLD_SECONDS", "3600"))
TIMER_LOCK_TIMEOUT = float(os.getenv("TIMER_LOCK_TIMEOUT", "5"))
RATE_LIMIT_MAX = int(os.getenv("RATE_LIMIT_MAX", "30"))
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))
