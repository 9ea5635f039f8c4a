"""
Application-wide constants.
Centralizes magic numbers and configuration values.
"""

# Weekday key names per locale, indexed by date.weekday() (Monday = 0)
WEEKDAY_NAMES = {
    "pt-BR": ("Segunda", "Terça", "Quarta", "Quinta", "Sexta", "Sábado", "Domingo"),
    "en-US": ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"),
}
DEFAULT_LOCALE = "pt-BR"

# Default working hours for a newly registered provider
DEFAULT_OPEN_TIME = "09:00"
DEFAULT_CLOSE_TIME = "18:00"
DEFAULT_CLOSED_WEEKDAYS = (5, 6)  # Saturday, Sunday

# Admission control
MAX_APPOINTMENTS_PER_DAY = 10

# Calendar layout
SUNDAY_FIRST = 6
DEFAULT_WINDOW_DAYS = 14

# Validation limits
MAX_SERVICE_NAME_LENGTH = 100
MAX_NOTES_LENGTH = 1000
MAX_CONTACT_FIELD_LENGTH = 200

# Display labels
STATUS_LABELS = {
    "pending": "Pendente",
    "confirmed": "Confirmado",
    "cancelled": "Cancelado",
    "completed": "Concluído",
    "no_show": "Ausente",
}
TODAY_LABEL = "Hoje"
YESTERDAY_LABEL = "Ontem"
TWO_DAYS_AGO_LABEL = "Anteontem"

# Cache
PROVIDER_CACHE_TTL_MINUTES = 5
