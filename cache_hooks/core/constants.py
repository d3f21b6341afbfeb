"""Core constants: wildcard marker, completeness sentinel, and defaults.

Single source of truth for the reserved literals shared by the controller,
the storage clients, and the collection hooks.
"""

# Field-set wildcard: "every field currently stored under the key".
ALL_FIELDS = "*"

# Reserved hash field marking a collection as complete. Never a member id.
COMPLETE_FIELD = "$"
COMPLETE_MARKER = "*"

# Delimiter for namespaced keys
CACHE_KEY_SEP = ":"

# Default time-to-live in seconds; values <= 0 mean "no expiry".
DEFAULT_TTL_SECONDS = 300.0
