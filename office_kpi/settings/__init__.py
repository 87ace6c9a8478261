"""Settings package for the project.

Defaults to development settings. For production, set DJANGO_SETTINGS_MODULE to
"office_kpi.settings.prod".
"""

# Default to development settings so that
# DJANGO_SETTINGS_MODULE=office_kpi.settings works.
from .dev import *  # noqa: F401,F403
