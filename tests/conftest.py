import os
import tempfile

# settings are read at import time and have no fallbacks
_DB_FILE = os.path.join(tempfile.gettempdir(), "storefront_test.db")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_DB_FILE}")
os.environ.setdefault(
    "SECRET_KEY", "test-secret-key-0123456789abcdef0123456789abcdef0123456789abcdef"
)
os.environ.setdefault("LOG_LEVEL", "WARNING")
