"""Default configuration constants for the Classroom Seating Planner."""

# Seat scoring scale
SCORE_MAX = 100
SCORE_NEUTRAL = 50
SCORE_ROW_STEP = 10   # Points lost (FRONT_ROW) or gained (BACK_ROW) per row
SCORE_RANK_STEP = 10  # Points lost per rank in a proximity list

# Radius (Euclidean, in grid cells) for "near teacher" / "near door"
DEFAULT_PROXIMITY_DISTANCE = 2

# Mean seat score a location rule needs to count as satisfied
LOCATION_SATISFACTION_THRESHOLD = 70

# Placement defaults
DEFAULT_CLEAR_EXISTING = True
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_PRIORITIZE_RULES = True
DEFAULT_ALLOW_PARTIAL_PLACEMENT = False

# PuLP / CBC limits for the separation solver
SOLVER_TIME_LIMIT_SECONDS = 10

# Reorder persistence retry policy (fixed delay, no backoff)
REORDER_MAX_ATTEMPTS = 3
REORDER_RETRY_DELAY_SECONDS = 1.0

# Progress channel history kept for late subscribers
PROGRESS_HISTORY_LIMIT = 256

# Rule list filtering / sorting
RULE_STATUS_OPTIONS = ["all", "active", "inactive"]
RULE_SORT_FIELDS = ["priority", "created_at", "updated_at", "type"]
DEFAULT_RULE_SORT = "priority"

# Priority level bands (share of rules ranked at or below this one)
PRIORITY_LEVELS = [
    (0.8, "Highest priority"),
    (0.6, "High priority"),
    (0.4, "Medium priority"),
    (0.2, "Low priority"),
]
LOWEST_PRIORITY_LEVEL = "Lowest priority"

# Roster import
ROSTER_NAME_COLUMNS = ["First Name", "Last Name"]
ROSTER_FULL_NAME_COLUMN = "Full Name"
ROSTER_STUDENT_ID_COLUMN = "Student ID"
MAX_NAME_LENGTH = 30

# Layout import cell codes
LAYOUT_SEAT_CODE = "S"
LAYOUT_DESK_CODE = "D"
LAYOUT_DOOR_CODE = "X"

# Environment / logging
DEFAULT_ENVIRONMENT = "development"
