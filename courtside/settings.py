"""
Minimal settings for running the engine's management commands standalone.

Host projects add ``courtside.tournament_core`` to their own INSTALLED_APPS
and set ``COURTSIDE_ENGINE`` there instead of using this module.
"""

SECRET_KEY = "courtside-local-only"

DEBUG = False

INSTALLED_APPS = [
    "courtside.tournament_core",
]

DATABASES = {}

USE_TZ = True

COURTSIDE_ENGINE = {
    "COURT_STRATEGY": "balanced",
}
