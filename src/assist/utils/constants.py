import re

PHONE_REGEX = re.compile(r"^\+?[\d\s\-()]{10,}$")

MAX_ADDRESS_LENGTH = 500
MAX_PROBLEM_DESCRIPTION_LENGTH = 1000
MAX_NOTE_LENGTH = 500
MAX_FEEDBACK_LENGTH = 500

MIN_SERVICE_DURATION = 15
MAX_SERVICE_DURATION = 480

DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100
DEFAULT_QUEUE_LIMIT = 20

RECENT_BOOKINGS_DAYS = 7
