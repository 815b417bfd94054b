"""Centralized constants for kairos.

Scheduling thresholds and client defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Scheduling ----------
RISK_MULTIPLIER = 2  # at risk after this many intervals without review
PROBLEMATIC_SESSION_THRESHOLD = 3  # stuck when sessions exceed this while touched
WEEK_WINDOW_DAYS = 7
UPCOMING_MIN_LEAD_DAYS = 1.0  # due-this-week cards are at least this far from due
SECONDS_PER_DAY = 86400.0

# ---------- Notifications ----------
BADGE_CAP = 9

# ---------- Notion / HTTP ----------
NOTION_API_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"
NOTION_PAGE_SIZE = 100
REQUEST_TIMEOUT = 30.0
DEFAULT_CACHE_TTL = 300.0  # seconds
DEFAULT_STATE_PROPERTY = "Dominio"

# ---------- Notion property name candidates (normalized) ----------
STATE_PROPERTY_NAMES = (
    "estado",
    "state",
    "status",
    "knowledge_state",
    "tipo_concepto",
    "dominio",
)
NOTES_PROPERTY_NAMES = ("notas", "notes", "observaciones", "nota_propia")
RELATED_PROPERTY_NAMES = (
    "relacionados",
    "related",
    "conceptos",
    "tags",
    "conceptos_relacionados",
)
VIEW_COUNT_PROPERTY_NAMES = ("vistas", "views", "view_count")
LAST_REVIEW_PROPERTY_NAMES = (
    "ultimo_repaso",
    "ultima_vez_repasado",
    "fecha_repaso",
    "last_review",
    "last_reviewed",
)

# ---------- Study tracking ----------
STUDY_API_URL = "http://localhost:3001/api"
