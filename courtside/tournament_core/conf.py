"""
Engine settings.

Values come from the ``COURTSIDE_ENGINE`` dict in Django settings when a
settings module is configured, so a host project can tune defaults in one
place::

    COURTSIDE_ENGINE = {
        "COURT_STRATEGY": "sequential",
        "POINTS_PER_WIN": 2,
    }

Without Django settings the built-in defaults below are used, which keeps the
engine importable from plain scripts and unit tests.
"""

from typing import Any, Dict

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

DEFAULTS: Dict[str, Any] = {
    "COURT_STRATEGY": "balanced",
    "SWISS_PAIRING_METHOD": "slide",
    "SEEDING_METHOD": "ranked",
    "POINTS_PER_WIN": 3,
    "POINTS_PER_DRAW": 1,
    "POINTS_PER_LOSS": 0,
    "MATCH_DURATION_MINUTES": 20,
}


def get_setting(name: str) -> Any:
    """Return an engine setting, preferring the host project's override."""
    if name not in DEFAULTS:
        raise ImproperlyConfigured(f"Unknown courtside engine setting '{name}'")
    if settings.configured:
        overrides = getattr(settings, "COURTSIDE_ENGINE", None) or {}
        if name in overrides:
            return overrides[name]
    return DEFAULTS[name]
