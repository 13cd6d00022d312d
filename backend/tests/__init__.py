# Ensure the `backend` directory is importable so `import scribe` works
from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT_DIR))

# `scribe.main` builds an app at import time; give it a usable environment
os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("DB_ECHO", "0")
os.environ.setdefault("DATA_ROOT", tempfile.mkdtemp(prefix="scribe-data-"))
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="scribe-logs-"))
