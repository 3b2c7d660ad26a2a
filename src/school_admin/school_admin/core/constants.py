"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7
DEFAULT_PAGE_SIZE = 10
DEFAULT_LOG_LIMIT = 100
MIN_PASSWORD_LENGTH = 6

BREAK_GLASS_CODE_LENGTH = 32
BREAK_GLASS_CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789!@#$%^&*"
SYSTEM_ACTOR = "SYSTEM"

# before/after payloads of an audit entry are capped at 50 KB of JSON
AUDIT_MAX_FIELD_BYTES = 50 * 1024
