"""
Single place for default game mode configuration.
Change DEFAULT_ECONOMY_OPTION to switch which resource preset is used when the lobby does not provide one.
"""
import os

# Preset id from data/options.json (e.g. "resource_200", "resource_500").
DEFAULT_ECONOMY_OPTION = "resource_200"

# Origins allowed to call the match API from a browser.
CORS_ORIGINS = ["http://localhost:5173", "http://localhost:3000"]

LOG_LEVEL = os.environ.get("MARIOBERG_LOG_LEVEL", "INFO")

# When set, 500 responses from the API carry the exception and traceback.
DEBUG = os.environ.get("MARIOBERG_DEBUG", "").lower() in ("1", "true", "yes")
