"""Application configuration driven by environment variables.

All settings have sensible defaults for local development. The CLI loads a
``.env`` file from the project root before this module is imported.
"""

import os

# ---------------------------------------------------------------------------
# Local storage
# ---------------------------------------------------------------------------

DATA_DIR: str = os.getenv("TASTE_TIMELINE_DATA_DIR", "data")

# Where exported snapshots are written by the CLI
EXPORT_DIR: str = os.getenv("TASTE_TIMELINE_EXPORT_DIR", "exports")

# ---------------------------------------------------------------------------
# Result cache
# ---------------------------------------------------------------------------

CACHE_TTL_SECONDS: int = int(os.getenv("TASTE_TIMELINE_CACHE_TTL_SECONDS", str(30 * 60)))

# ---------------------------------------------------------------------------
# Remote listening-history service (optional)
# ---------------------------------------------------------------------------

# When set, feedback and listening events are read over HTTP instead of
# from the local data file.
HISTORY_API_URL: str = os.getenv("HISTORY_API_URL", "")
HISTORY_API_TOKEN: str = os.getenv("HISTORY_API_TOKEN", "")
HISTORY_API_TIMEOUT_SECONDS: float = float(os.getenv("HISTORY_API_TIMEOUT_SECONDS", "10"))

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "WARNING")
