"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

ABSENCE_ALERT_THRESHOLD = 3

DEFAULT_HISTORY_LIMIT = 5
HISTORY_PAGE_SIZE = 5
DEFAULT_UPCOMING_LIMIT = 5

DEFAULT_SERVICE_TIME_NAME = "11h"

# Request cache (seconds)
STALE_TIME_MEDIUM = 5 * 60
STALE_TIME_DEFAULT = 55 * 60

MAX_QUERY_RETRIES = 3
MAX_MUTATION_RETRIES = 2
INITIAL_RETRY_DELAY = 1.0
MAX_RETRY_DELAY = 30.0

SEARCH_THRESHOLD = 0.3

UNAUTHORIZED_TEACHER_MESSAGE = "Acesso não autorizado. Apenas professores podem usar esta aplicação."
