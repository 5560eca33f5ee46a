"""Shared defaults."""

DEFAULT_DISCOUNT = 1.0
# Upper bound used by --clamp-discount; the solver itself accepts 1.0.
MAX_CLAMPED_DISCOUNT = 0.9999

LAYOUT_AUTO = "auto"
LAYOUT_STATIONARY = "stationary"
LAYOUT_TIME_VARYING = "time-varying"
LAYOUTS = (LAYOUT_AUTO, LAYOUT_STATIONARY, LAYOUT_TIME_VARYING)

DEBUG_SAMPLE_SIZE = 5
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"
