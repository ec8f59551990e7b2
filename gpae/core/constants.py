"""Application-wide constants for the GPAE booking API."""

from __future__ import annotations

from datetime import timedelta

BRAND_NAME = "Auto-École Essentiel"
API_TITLE = "GPAE - Planning Auto École"

# Every reservation occupies exactly one hour starting at its slot
SLOT_DURATION = timedelta(hours=1)

DEFAULT_REFERENCE_TIMEZONE = "Europe/Paris"

# Origins served by the calendar front-end
DEFAULT_ALLOWED_ORIGINS = (
    "http://localhost:5173",
    "https://auto-ecole-essentiel.lovable.app",
)

# Query limits
DEFAULT_QUERY_LIMIT = 500
