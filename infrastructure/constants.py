"""
Constants Module - Centralized booking values
=============================================

PURPOSE: Single source of truth for the business constants of the booking flow
PATTERN: Plain module-level values grouped by concern
SCOPE: Defaults only; runtime overrides live in ``infrastructure.settings``
"""
from tracking import t

# Backend
DEFAULT_API_BASE = "http://localhost:4000"
DEFAULT_TIMEOUT_SECONDS = 20.0
DEFAULT_TIMEZONE = "America/Sao_Paulo"

UNITS_PATH = "/v1/units/public/options/list"
AREAS_BY_UNIT_PATH = "/v1/areas/public/by-unit/{unit_id}"
AVAILABILITY_PATH = "/v1/reservations/public/availability"
CREATE_RESERVATION_PATH = "/v1/reservations/public"
ACTIVE_RESERVATION_PATH = "/v1/reservations/public/active"
RESERVATION_STATUS_PATH = "/v1/reservations/{reservation_id}/status"
RESERVATION_QRCODE_PATH = "/v1/reservations/{reservation_id}/qrcode"
LOOKUP_BY_CODE_PATH = "/v1/reservations/lookup"
RESERVATION_BY_CODE_PATH = "/v1/reservations/code/{code}"

# Conflict / capacity error codes returned by the backend
ALREADY_HAS_ACTIVE_RESERVATION = "ALREADY_HAS_ACTIVE_RESERVATION"
NO_CAPACITY = "NO_CAPACITY"

# Time slots (canonical profile, plus the extended 13-slot profile)
STANDARD_TIME_SLOTS = ("12:00", "12:30", "13:00", "18:00", "18:30", "19:00")
EXTENDED_TIME_SLOTS = (
    "12:00", "12:30", "13:00", "13:30", "14:00",
    "18:00", "18:30", "19:00", "19:30", "20:00", "20:30", "21:00", "21:30",
)
SLOT_PROFILES = {
    "standard": STANDARD_TIME_SLOTS,
    "extended": EXTENDED_TIME_SLOTS,
}

OPENING_TIME = "12:00"
CLOSING_TIME = "21:30"

# Party rules
LARGE_GROUP_THRESHOLD = 40
DEFAULT_ADULTS = 2
DEFAULT_CHILDREN = 0
MIN_NAME_LENGTH = 3
CPF_DIGITS = 11

# Ticket windows (minutes after the reservation instant)
TOLERANCE_MINUTES = 15
GUEST_WINDOW_MINUTES = 45

# Wizard presentation
PROGRESS_TARGETS = (33, 66, 100, 100)
LOADING_MESSAGES = (
    "Verificando disponibilidade...",
    "Escolhendo setor...",
    "Encontrando lugares...",
    "Gerando QR Code...",
    "Finalizando reserva...",
)
LOADING_MESSAGE_INTERVAL_SECONDS = 1.3
COUNTDOWN_TICK_SECONDS = 1.0
STATUS_POLL_SECONDS = 5.0
PROBE_DELAY_SECONDS = 0.25

# Local persistence
SNAPSHOT_KEY = "mane:lastReservation"
DEFAULT_SNAPSHOT_FILE = "data/last_reservation.json"

# Statuses the backend reports for a reservation that is still active
ACTIVE_STATUSES = frozenset({"PENDING", "CONFIRMED", "AWAITING_CHECKIN"})
CHECKED_IN_STATUS = "CHECKED_IN"

# Fixed attribution sent with every reservation created by this client
ATTRIBUTION_SOURCE = "site"

# Known venues: (pattern on the normalised label, code)
KNOWN_VENUE_CODES = (
    (r"aguas\s+claras", "MMAC"),
    (r"\barena\b", "MMAR"),
    (r"sao\s+paulo", "MMSP"),
)
VENUE_BRAND_PATTERN = r"mane\s+mercado"
VENUE_BRAND_PREFIX = "MM"

# Fallback labels used when a looked-up reservation only carries ids
FALLBACK_UNIT_LABELS = {
    "aguas-claras": "Mané Mercado — Águas Claras",
    "arena-brasilia": "Mané Mercado — Arena Brasília",
}
FALLBACK_AREA_LABELS = {
    "salao": "Salão",
    "varanda": "Varanda",
    "bar": "Balcão",
}
DEFAULT_UNIT_LABEL = "Mané Mercado"

PLACEHOLDER = "—"


def get_slot_profile(name: str) -> tuple:
    """Return the slot tuple for ``name``, falling back to the standard profile."""
    t('infrastructure.constants.get_slot_profile')
    return SLOT_PROFILES.get((name or "").strip().lower(), STANDARD_TIME_SLOTS)
