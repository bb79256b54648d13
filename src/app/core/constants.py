"""Field limits, RACI workload bounds and security defaults shared across modules."""

# Slugs
MIN_SLUG_LENGTH = 2
MAX_SLUG_LENGTH = 50
SLUG_PATTERN = r"^[a-z0-9-]+$"

# String field lengths
MAX_EMAIL_LENGTH = 255
MAX_NAME_LENGTH = 255
MAX_JOB_TITLE_LENGTH = 255
MAX_DESCRIPTION_LENGTH = 2000
MAX_NOTES_LENGTH = 2000
MAX_ACTION_LENGTH = 50
MAX_RESOURCE_TYPE_LENGTH = 50
MAX_COLOR_LENGTH = 32

# Assignment workload bounds (percentage points)
MIN_WORKLOAD = 0
MAX_WORKLOAD = 100

# Pagination defaults
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100

# Bulk operation limits
MAX_BULK_ITEMS = 500

# Token settings
ACCESS_TOKEN_JTI_LENGTH = 32

# Secret key requirements
MIN_SECRET_KEY_LENGTH = 32
DEFAULT_INSECURE_SECRET = "change-me-in-production"
