import os
from datetime import timedelta

# DEV ONLY defaults. Override through the environment in any real deployment.
SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE = timedelta(minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60")))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Push notification gateway
GATEWAY_URL = os.getenv("GATEWAY_URL", "http://localhost:3000")
GATEWAY_TOKEN = os.getenv("GATEWAY_TOKEN", "gateway-token")
NOTIFICATION_TIMEOUT_SECONDS = float(os.getenv("NOTIFICATION_TIMEOUT_SECONDS", "5"))

# Deadline reminders
DEADLINE_LOOKAHEAD = timedelta(minutes=70)  # must exceed the check interval
DEADLINE_CHECK_INTERVAL = timedelta(hours=1)
DEADLINE_WORKERS = int(os.getenv("DEADLINE_WORKERS", "4"))


def deadline_scheduler_enabled() -> bool:
    # read lazily so tests can switch it off before the app starts
    return os.getenv("DEADLINE_SCHEDULER_ENABLED", "true").lower() in ("1", "true", "yes")
