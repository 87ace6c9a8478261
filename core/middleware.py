from __future__ import annotations

import logging

from django.conf import settings
from django.utils import timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


class BusinessTimezoneMiddleware:
    """Activate BUSINESS_TIMEZONE for each request so rendered dates use local time."""

    def __init__(self, get_response):
        self.get_response = get_response
        self._tz = None
        tz_name = getattr(settings, 'BUSINESS_TIMEZONE', None)
        if tz_name:
            try:
                self._tz = ZoneInfo(tz_name)
            except ZoneInfoNotFoundError:
                logger.warning("Unknown BUSINESS_TIMEZONE %r; using %s", tz_name, settings.TIME_ZONE)

    def __call__(self, request):
        if self._tz is None:
            return self.get_response(request)
        timezone.activate(self._tz)
        try:
            return self.get_response(request)
        finally:
            timezone.deactivate()
