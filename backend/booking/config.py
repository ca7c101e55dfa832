import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent

# .env at the backend root
load_dotenv(dotenv_path=BASE_DIR.parent / ".env")

DATABASE_URL = os.getenv("BOOKING_DATABASE_URL", f"sqlite:///{BASE_DIR / 'app.db'}")
# seconds SQLite waits on a locked database before failing
DB_TIMEOUT = float(os.getenv("BOOKING_DB_TIMEOUT", "30"))

LOG_LEVEL = os.getenv("BOOKING_LOG_LEVEL", "INFO")

SLOT_STEP_MINUTES = int(os.getenv("BOOKING_SLOT_STEP_MINUTES", "30"))
# "exact_start" matches appointments by start time only, "overlap" checks intervals
CONFLICT_POLICY = os.getenv("BOOKING_CONFLICT_POLICY", "exact_start")

CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("BOOKING_CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if o.strip()
]

RETRY_ATTEMPTS = int(os.getenv("BOOKING_RETRY_ATTEMPTS", "3"))
RETRY_MAX_DELAY = float(os.getenv("BOOKING_RETRY_MAX_DELAY", "10"))

SEED_DEMO_DATA = os.getenv("BOOKING_SEED_DEMO_DATA", "true").lower() in ("1", "true", "yes")
