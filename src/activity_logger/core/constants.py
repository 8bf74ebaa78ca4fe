"""Application-wide constants.

This module defines constants used throughout the application
to avoid magic numbers and ensure consistency.
"""

# Activity actions
ACTION_CREATE = "create"
ACTION_UPDATE = "update"
ACTION_DELETE = "delete"
ACTIONS = frozenset({ACTION_CREATE, ACTION_UPDATE, ACTION_DELETE})

# Generic CRUD actions that mutate records
MUTATION_ACTIONS = ("create", "update", "destroy")

# Field names starting with this marker are reserved metadata
INTERNAL_FIELD_PREFIX = "_"

# Entity type under which activity entries are stored
ACTIVITY_ENTITY = "activitylog"

# String field lengths
MAX_ACTION_LENGTH = 16
MAX_ENTITY_TYPE_LENGTH = 100
MAX_RECORD_ID_LENGTH = 255
MAX_ACTOR_ID_LENGTH = 255
MAX_EMAIL_LENGTH = 255
MAX_NAME_LENGTH = 255

# Activity query defaults
DEFAULT_ACTIVITY_LIMIT = 30
MAX_ACTIVITY_LIMIT = 500
SORT_DIRECTIONS = frozenset({"asc", "desc"})
