"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

SECONDS_PER_HOUR = 3600

# A member counts as present for a day once this much work is tracked.
PRESENCE_THRESHOLD_SECONDS = 3600

# Productivity is measured linearly against a 40 hour week.
PRODUCTIVITY_BASELINE_HOURS = 40

AVERAGE_WINDOW_DAYS = 30
TOP_PROJECTS_LIMIT = 10
RECENT_ENTRIES_LIMIT = 10

DEFAULT_ENTRIES_LIMIT = 50
MAX_ENTRIES_LIMIT = 500
DEFAULT_PAGE_SIZE = 10

DEFAULT_TIMER_LOCK_TIMEOUT = 5.0
DEFAULT_RATE_LIMIT_MAX = 30
DEFAULT_RATE_LIMIT_WINDOW_SECONDS = 60

# Index 0 is Sunday, matching the week start used by the dashboards.
DAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
