# ============================================================
#  Project  : Sales Ledger & Credit Risk Engine
#             محرك حسابات المندوبين والعيادات والمخاطر الائتمانية
#  Module   : config.py - Settings
# ============================================================
import os


def _env_int(name, default):
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


def _env_float(name, default):
    try:
        return float(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


# Leaderboards
TOP_N_DEFAULT = _env_int("TOP_N_DEFAULT", 5)

# Credit tiers (utilization %)
CREDIT_DANGER_PCT  = _env_float("CREDIT_DANGER_PCT", 90.0)
CREDIT_WARNING_PCT = _env_float("CREDIT_WARNING_PCT", 70.0)
CREDIT_CAUTION_PCT = _env_float("CREDIT_CAUTION_PCT", 50.0)

# Pre-submission check for a pending order
CREDIT_BLOCKING_PCT        = _env_float("CREDIT_BLOCKING_PCT", 100.0)
CREDIT_PREVIEW_WARNING_PCT = _env_float("CREDIT_PREVIEW_WARNING_PCT", 80.0)

# Fallback keys / labels
UNKNOWN_PRODUCT_KEY = os.environ.get("UNKNOWN_PRODUCT_KEY", "unknown")
UNKNOWN_CLINIC_KEY  = os.environ.get("UNKNOWN_CLINIC_KEY", "unknown")
UNSPECIFIED_NAME    = os.environ.get("UNSPECIFIED_NAME", "غير محدد")

# Batch reports
OUTPUT_DIR     = os.environ.get("OUTPUT_DIR", "reports")
ROSTER_WORKERS = _env_int("ROSTER_WORKERS", 1)

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
