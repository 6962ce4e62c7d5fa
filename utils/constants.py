"""
Application-wide constants.
Centralizes magic numbers and default messages.
"""

# Booking limits
MAX_NOTES_LENGTH = 500
MAX_SPECIAL_INSTRUCTIONS_LENGTH = 1000
MAX_ENQUIRY_MESSAGE_LENGTH = 2000
MAX_NAME_LENGTH = 100

# Booking locations
LOCATION_HOME = "home"
LOCATION_SALON = "salon"
BOOKING_LOCATIONS = (LOCATION_HOME, LOCATION_SALON)

# Default validation messages
REQUIRED_MESSAGE = "This field is required"
INVALID_FORMAT_MESSAGE = "Invalid format"

# Weekday names as used in stylist working_days (Monday first, like date.weekday())
WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

# Virtualized lists
DEFAULT_OVERSCAN = 5
