from datetime import date, datetime, timedelta, timezone as dt_timezone

from django.utils import timezone

from core.middleware import BusinessTimezoneMiddleware
from core.utils.dates import add_months, as_utc_date, business_localdate, days_between, months_in_range


def test_days_between_counts_calendar_days():
    assert days_between(date(2025, 3, 10), date(2025, 3, 14)) == 4
    assert days_between(date(2025, 3, 10), datetime(2025, 3, 9, 23, 59, tzinfo=dt_timezone.utc)) == -1


def test_aware_datetimes_are_converted_to_utc_dates():
    late_evening_west = datetime(2025, 3, 10, 22, 0, tzinfo=dt_timezone(timedelta(hours=-5)))
    assert as_utc_date(late_evening_west) == date(2025, 3, 11)


def test_add_months_rolls_over_the_year():
    assert add_months(date(2025, 11, 20), 3) == date(2026, 2, 1)


def test_months_in_range_includes_partial_months():
    assert months_in_range(date(2025, 1, 31), date(2025, 3, 1)) == [
        date(2025, 1, 1), date(2025, 2, 1), date(2025, 3, 1),
    ]


def test_business_localdate_uses_configured_zone(settings):
    settings.BUSINESS_TIMEZONE = 'Pacific/Kiritimati'
    utc_today = timezone.now().date()
    assert business_localdate() in (utc_today, utc_today + timedelta(days=1))


def test_middleware_activates_business_timezone(settings):
    settings.BUSINESS_TIMEZONE = 'Asia/Ho_Chi_Minh'
    middleware = BusinessTimezoneMiddleware(lambda request: timezone.get_current_timezone_name())

    assert middleware(object()) == 'Asia/Ho_Chi_Minh'
    assert timezone.get_current_timezone_name() == 'UTC'


def test_middleware_passes_through_without_zone(settings):
    settings.BUSINESS_TIMEZONE = None
    middleware = BusinessTimezoneMiddleware(lambda request: timezone.get_current_timezone_name())
    assert middleware(object()) == 'UTC'
