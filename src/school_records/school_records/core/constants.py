"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_GRADE_WEIGHT = 1.0
DEFAULT_LIST_LIMIT = 500

# Retries after the first attempt when the store reports a write race.
CONFLICT_RETRIES = 1

MAX_ATTACHMENT_BYTES = 2 * 1024 * 1024
ALLOWED_ATTACHMENT_TYPES = {
    "application/pdf": "pdf",
    "image/jpeg": "jpg",
    "image/png": "png",
}
