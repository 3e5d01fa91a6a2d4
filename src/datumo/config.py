"""
Datumo Configuration

Module-level settings read once from the environment at import time.
Override them with environment variables (or a .env file loaded by the
calling process) before importing datumo.
"""

import os

# Mapping specification syntax
MAPPING = {
    # Separator between candidate keys in a fallback chain ("sn || surname")
    "fallback_separator": os.getenv("DATUMO_FALLBACK_SEPARATOR", "||"),
}

# Schema resolution
SCHEMA_CACHE = {
    "maxsize": int(os.getenv("DATUMO_SCHEMA_CACHE_SIZE", "1024")),
}

# Format checking
FORMATS = {
    # "accept" treats unknown format tags as satisfied, "reject" fails them
    "unknown_policy": os.getenv("DATUMO_UNKNOWN_FORMATS", "accept").lower(),
}
