import os
from pathlib import Path

PROJECT_DIR = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_DIR / "data"
SQLITE_PATH = Path(os.environ.get("SQLITE_PATH", str(DATA_DIR / "store.db")))

PORT = int(os.environ.get("PORT", "19876"))
MODEL = os.environ.get("MODEL", "claude-sonnet-4-5-20250929")
ROOT_PATH = os.environ.get("ROOT_PATH", "")

JWT_SECRET = os.environ.get("JWT_SECRET", "dev-secret-key")
JWT_ALGORITHM = "HS256"
SESSION_TTL_MINUTES = int(os.environ.get("SESSION_TTL_MINUTES", str(30 * 24 * 60)))

MAX_GENERATION_ATTEMPTS = 3
RETRY_BASE_DELAY_SECS = float(os.environ.get("RETRY_BASE_DELAY_SECS", "0.5"))

DEFAULT_TITLE = "New Chat"
TITLE_MAX_CHARS = 50
DEFAULT_ACTIVE_FILE = "app/page.js"
