"""Shared schema keys to avoid magic strings across deindexer modules."""

from __future__ import annotations

# Cache record keys (on-disk JSON layout)
K_STATUS = "status"
K_LAST_CHECKED_AT = "lastCheckedAt"

# CSV input
K_URL = "url"

# Inspection API payload
K_INSPECTION_RESULT = "inspectionResult"
K_INDEX_STATUS_RESULT = "indexStatusResult"
K_COVERAGE_STATE = "coverageState"

# Run summary keys
K_SITE_URL = "site_url"
K_COUNTS = "counts"
K_DELETION = "deletion"
